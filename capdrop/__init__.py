"""
capdrop/__init__.py

capdrop: Capped Token Airdrop Ledger

Each eligible address claims a fixed allotment exactly once. The running
total distributed never exceeds the configured supply. A single admin
may reconfigure the airdrop or withdraw what was never claimed.

Every committed operation is journaled with a signed, hash-chained entry
in the same transaction as the state change.
"""

__version__ = "0.3.0"

from capdrop.core.exceptions import (
    AlreadyClaimed,
    CapDropError,
    ConfigInvalid,
    ErrorKind,
    StorageError,
    SupplyExhausted,
    Unauthorized,
    VersionMismatch,
)
from capdrop.core.models import (
    ClaimRecord,
    Config,
    ContractVersion,
    Response,
    SaleInfo,
    TransferInstruction,
)
from capdrop.core.crypto import JournalSigner
from capdrop.contract import CONTRACT_NAME, AirdropContract
from capdrop.messages import (
    ChangeAdmin,
    Claim,
    InstantiateMsg,
    MigrateMsg,
    UpdateConfig,
    WithdrawByAdmin,
)
from capdrop.storage import JsonFileStorage, MemoryStorage

__all__ = [
    # Entry points
    "AirdropContract",
    "CONTRACT_NAME",
    # Messages
    "InstantiateMsg",
    "MigrateMsg",
    "Claim",
    "ChangeAdmin",
    "UpdateConfig",
    "WithdrawByAdmin",
    # Records
    "Config",
    "SaleInfo",
    "ClaimRecord",
    "ContractVersion",
    "TransferInstruction",
    "Response",
    # Storage and signing
    "MemoryStorage",
    "JsonFileStorage",
    "JournalSigner",
    # Errors
    "CapDropError",
    "ErrorKind",
    "Unauthorized",
    "ConfigInvalid",
    "AlreadyClaimed",
    "SupplyExhausted",
    "VersionMismatch",
    "StorageError",
]
