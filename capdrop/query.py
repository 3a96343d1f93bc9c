"""
Read-only queries over committed state.
"""

from typing import List, Optional

from capdrop.core.models import ClaimRecord, Config, ContractVersion, SaleInfo
from capdrop.ledger.state import CLAIMS, CONFIG, CONTRACT_INFO, SALE_INFO

DEFAULT_LIMIT = 10
MAX_LIMIT     = 30


def query_user_info(store, address: str) -> Optional[ClaimRecord]:
    return CLAIMS.may_load(store, address)


def query_sale_info(store) -> SaleInfo:
    return SALE_INFO.load(store)


def query_config(store) -> Config:
    return CONFIG.load(store)


def query_contract_version(store) -> ContractVersion:
    return CONTRACT_INFO.load(store)


def query_user_infos(
    store,
    start_after:   Optional[str] = None,
    limit:         Optional[int] = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit:     int = MAX_LIMIT,
) -> List[ClaimRecord]:
    """
    Claim records in ascending address order.

    `limit` falls back to default_limit and is clamped to [1, max_limit].
    Pass the last address of one page as `start_after` to get the next.
    """
    if limit is None:
        limit = default_limit
    limit = max(1, min(limit, max_limit))
    return CLAIMS.range(store, start_after=start_after, limit=limit)
