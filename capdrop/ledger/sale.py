"""
SaleLedger: running total of tokens distributed.
"""

from capdrop.core.exceptions import SupplyExhausted
from capdrop.core.models import SaleInfo
from capdrop.ledger.state import SALE_INFO


class SaleLedger:

    def open(self, store) -> SaleInfo:
        info = SaleInfo(total_distributed=0)
        SALE_INFO.save(store, info)
        return info

    def read(self, store) -> SaleInfo:
        return SALE_INFO.load(store)

    def reserve(self, store, amount: int, total_supply: int) -> SaleInfo:
        """
        Stage `amount` against the cap.

        Raises SupplyExhausted if total_distributed + amount > total_supply.
        Only writes when the check passes.
        """
        info = self.read(store)
        if info.total_distributed + amount > total_supply:
            raise SupplyExhausted(
                "There are not enough tokens left for this claim",
                {
                    "requested":         amount,
                    "total_distributed": info.total_distributed,
                    "total_supply":      total_supply,
                },
            )
        info = SaleInfo(total_distributed=info.total_distributed + amount)
        SALE_INFO.save(store, info)
        return info

    def leftover(self, store, total_supply: int) -> int:
        return total_supply - self.read(store).total_distributed
