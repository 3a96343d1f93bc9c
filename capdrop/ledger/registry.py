"""
ClaimRegistry: write-once set of addresses that have claimed.
"""

from typing import List, Optional

from capdrop.core.exceptions import AlreadyClaimed
from capdrop.core.models import ClaimRecord
from capdrop.ledger.state import CLAIMS


class ClaimRegistry:

    def get(self, store, address: str) -> Optional[ClaimRecord]:
        return CLAIMS.may_load(store, address)

    def has_claimed(self, store, address: str) -> bool:
        return CLAIMS.has(store, address)

    def try_register(self, store, address: str, amount: int) -> ClaimRecord:
        """Stage a ClaimRecord for address. Raises AlreadyClaimed if one exists."""
        if self.has_claimed(store, address):
            raise AlreadyClaimed("You already claimed", {"address": address})
        record = ClaimRecord(address=address, amount=amount)
        CLAIMS.save(store, address, record)
        return record

    def list(
        self,
        store,
        start_after: Optional[str] = None,
        limit:       Optional[int] = None,
    ) -> List[ClaimRecord]:
        return CLAIMS.range(store, start_after=start_after, limit=limit)

    def count(self, store) -> int:
        return CLAIMS.count(store)

    def total_claimed(self, store) -> int:
        return sum(record.amount for record in self.list(store))
