"""
ClaimCoordinator: the claim state machine.

Per address:  Unclaimed ──claim──▶ Claimed   (terminal)

A claim is two writes: the SaleLedger reservation and the ClaimRegistry
marker. Both are staged in a scratch overlay on top of the caller's
transaction and only moved into it once both preconditions have passed.
If either step raises, the scratch overlay is dropped and the caller's
transaction is untouched.
"""

from capdrop.core.models import Response
from capdrop.ledger.config import ConfigStore
from capdrop.ledger.registry import ClaimRegistry
from capdrop.ledger.sale import SaleLedger
from capdrop.ledger.transfer import describe_transfer
from capdrop.storage.backend import StagedStorage


class ClaimCoordinator:

    def __init__(
        self,
        config_store: ConfigStore,
        sale_ledger:  SaleLedger,
        registry:     ClaimRegistry,
    ):
        self.config_store = config_store
        self.sale_ledger  = sale_ledger
        self.registry     = registry

    def claim(self, txn: StagedStorage, caller: str) -> Response:
        """
        Claim the fixed allotment for `caller`.

        Raises:
            ConfigInvalid:   caller is not a well-formed address
            SupplyExhausted: the claim would push distribution past total_supply
            AlreadyClaimed:  caller already holds a claim record
        """
        config = self.config_store.read(txn)
        self.config_store.validator.validate(caller, "claimer")

        scratch = StagedStorage(txn)
        self.sale_ledger.reserve(scratch, config.claim_amount, config.total_supply)
        self.registry.try_register(scratch, caller, config.claim_amount)
        scratch.apply_to(txn)

        transfer = describe_transfer(config.token_reference, caller, config.claim_amount)

        return (
            Response()
            .add_attribute("action", "claim")
            .add_attribute("claimer", caller)
            .add_attribute("amount", config.claim_amount)
            .add_message(transfer)
        )
