"""
capdrop Ledger - claim state machine and its supporting records.

Components:
- ConfigStore: admin, token reference, supply cap, claim amount
- SaleLedger: running total distributed, capped reservation
- ClaimRegistry: write-once claim markers
- ClaimCoordinator: reservation + registration as one unit
- WithdrawalOp: admin reclaim of unclaimed tokens
"""

from capdrop.ledger.auth import require_admin
from capdrop.ledger.config import ConfigStore
from capdrop.ledger.coordinator import ClaimCoordinator
from capdrop.ledger.registry import ClaimRegistry
from capdrop.ledger.sale import SaleLedger
from capdrop.ledger.transfer import describe_transfer
from capdrop.ledger.withdrawal import LEGACY_TOKEN_REFERENCE, WithdrawalOp

__all__ = [
    "ConfigStore",
    "SaleLedger",
    "ClaimRegistry",
    "ClaimCoordinator",
    "WithdrawalOp",
    "LEGACY_TOKEN_REFERENCE",
    "describe_transfer",
    "require_admin",
]
