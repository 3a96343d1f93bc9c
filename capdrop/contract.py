"""
AirdropContract: the entry points of a capped airdrop ledger.

    instantiate(msg)        → Response
    execute(caller, msg)    → Response
    query(msg)              → record(s)
    migrate(msg)            → Response

Every entry point runs under one lock, so operations are applied one at
a time. Every mutating entry point runs inside one storage transaction
and journals its response attributes in that same transaction: the
state change and its journal entry commit together or not at all.
"""

import threading
from typing import Optional

from capdrop import __version__
from capdrop.core.address import AddressValidator
from capdrop.core.crypto import JournalSigner
from capdrop.core.exceptions import StorageError, VersionMismatch
from capdrop.core.models import ContractVersion, Response
from capdrop.journal.journal import EventJournal
from capdrop.ledger.config import ConfigStore
from capdrop.ledger.coordinator import ClaimCoordinator
from capdrop.ledger.registry import ClaimRegistry
from capdrop.ledger.sale import SaleLedger
from capdrop.ledger.state import CONTRACT_INFO
from capdrop.ledger.withdrawal import TOKEN_MODE_CONFIGURED, WithdrawalOp
from capdrop.messages import (
    ChangeAdmin,
    Claim,
    ExecuteMsg,
    GetConfig,
    GetContractVersion,
    GetSaleInfo,
    GetUserInfo,
    InstantiateMsg,
    ListUserInfos,
    MigrateMsg,
    QueryMsg,
    UpdateConfig,
    WithdrawByAdmin,
)
from capdrop.query import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    query_config,
    query_contract_version,
    query_sale_info,
    query_user_info,
    query_user_infos,
)
from capdrop.storage.backend import MemoryStorage, Storage

CONTRACT_NAME    = "capdrop:airdrop-ledger"
CONTRACT_VERSION = __version__


class AirdropContract:
    """
    Args:
        storage:           Committed state. Defaults to a fresh MemoryStorage.
        signer:            Journal signing key. Defaults to a generated key.
        validator:         Address syntax check.
        withdraw_token:    "configured" or "legacy" (see WithdrawalOp).
        lock_claim_amount: Forbid claim_amount changes once claims exist.
        default_limit:     ListUserInfos page size when none is given.
        max_limit:         ListUserInfos page size ceiling.
    """

    def __init__(
        self,
        storage:           Optional[Storage] = None,
        signer:            Optional[JournalSigner] = None,
        validator:         Optional[AddressValidator] = None,
        withdraw_token:    str = TOKEN_MODE_CONFIGURED,
        lock_claim_amount: bool = False,
        default_limit:     int = DEFAULT_LIMIT,
        max_limit:         int = MAX_LIMIT,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.journal = EventJournal(signer or JournalSigner.generate())

        self.config_store = ConfigStore(validator, lock_claim_amount=lock_claim_amount)
        self.sale_ledger  = SaleLedger()
        self.registry     = ClaimRegistry()
        self.coordinator  = ClaimCoordinator(self.config_store, self.sale_ledger, self.registry)
        self.withdrawal   = WithdrawalOp(self.config_store, self.sale_ledger, withdraw_token)

        self.default_limit = default_limit
        self.max_limit     = max_limit

        self._lock = threading.Lock()

    # ── Entry points ──────────────────────────────────────────

    def instantiate(self, msg: InstantiateMsg) -> Response:
        with self._lock, self.storage.transaction() as txn:
            config = self.config_store.initialize(
                txn,
                admin=           msg.admin,
                token_reference= msg.token_reference,
                total_supply=    msg.total_supply,
                claim_amount=    msg.claim_amount,
            )
            self.sale_ledger.open(txn)
            CONTRACT_INFO.save(txn, ContractVersion(CONTRACT_NAME, CONTRACT_VERSION))

            response = (
                Response()
                .add_attribute("action", "instantiate")
                .add_attribute("admin", config.admin)
                .add_attribute("token_reference", config.token_reference)
                .add_attribute("total_supply", config.total_supply)
                .add_attribute("claim_amount", config.claim_amount)
            )
            self._journal(txn, response)
            return response

    def execute(self, caller: str, msg: ExecuteMsg) -> Response:
        with self._lock, self.storage.transaction() as txn:
            if isinstance(msg, Claim):
                response = self.coordinator.claim(txn, caller)
            elif isinstance(msg, ChangeAdmin):
                config = self.config_store.set_admin(txn, caller, msg.address)
                response = (
                    Response()
                    .add_attribute("action", "change_admin")
                    .add_attribute("address", config.admin)
                )
            elif isinstance(msg, UpdateConfig):
                self.config_store.overwrite(txn, caller, msg.config)
                response = Response().add_attribute("action", "update_config")
            elif isinstance(msg, WithdrawByAdmin):
                response = self.withdrawal.withdraw(txn, caller)
            else:
                raise StorageError(f"Unknown execute message {type(msg).__name__}")

            response.add_attribute("sender", caller)
            self._journal(txn, response)
            return response

    def query(self, msg: QueryMsg):
        with self._lock:
            if isinstance(msg, GetUserInfo):
                return query_user_info(self.storage, msg.address)
            if isinstance(msg, GetSaleInfo):
                return query_sale_info(self.storage)
            if isinstance(msg, GetConfig):
                return query_config(self.storage)
            if isinstance(msg, ListUserInfos):
                return query_user_infos(
                    self.storage,
                    start_after=   msg.start_after,
                    limit=         msg.limit,
                    default_limit= self.default_limit,
                    max_limit=     self.max_limit,
                )
            if isinstance(msg, GetContractVersion):
                return query_contract_version(self.storage)
            raise StorageError(f"Unknown query message {type(msg).__name__}")

    def migrate(self, msg: MigrateMsg = None) -> Response:
        """
        Refuse to migrate state written by a different deployment.

        Raises VersionMismatch if the stored contract name is not
        CONTRACT_NAME, or if msg.previous_version is given and does not
        match the stored version.
        """
        msg = msg or MigrateMsg()
        with self._lock, self.storage.transaction() as txn:
            stored = CONTRACT_INFO.load(txn)
            if stored.contract != CONTRACT_NAME:
                raise VersionMismatch(
                    f"Cannot migrate from different contract type: {stored.contract}",
                    {"previous_contract": stored.contract},
                )
            if msg.previous_version is not None and msg.previous_version != stored.version:
                raise VersionMismatch(
                    "Stored version does not match expected previous version",
                    {"stored": stored.version, "expected": msg.previous_version},
                )

            CONTRACT_INFO.save(txn, ContractVersion(CONTRACT_NAME, CONTRACT_VERSION))
            response = (
                Response()
                .add_attribute("action", "migrate")
                .add_attribute("from_version", stored.version)
                .add_attribute("to_version", CONTRACT_VERSION)
            )
            self._journal(txn, response)
            return response

    # ── Internal ──────────────────────────────────────────────

    def _journal(self, txn, response: Response) -> None:
        attributes = dict(response.attributes)
        action = attributes.pop("action")
        for i, message in enumerate(response.messages):
            attributes[f"transfer.{i}.token_reference"] = message.token_reference
            attributes[f"transfer.{i}.recipient"] = message.recipient
            attributes[f"transfer.{i}.amount"] = message.amount
        self.journal.record(txn, action, attributes)
