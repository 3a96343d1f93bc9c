"""
WithdrawalOp: admin reclaims tokens that were never claimed.

leftover = total_supply - total_distributed. The SaleLedger is not
touched, so raising total_supply later makes the same tokens claimable
again.
"""

from capdrop.core.models import Response
from capdrop.ledger.auth import require_admin
from capdrop.ledger.config import ConfigStore
from capdrop.ledger.sale import SaleLedger
from capdrop.ledger.transfer import describe_transfer

# Literal token identity the first deployment paid withdrawals from
LEGACY_TOKEN_REFERENCE = "token_address"

TOKEN_MODE_CONFIGURED = "configured"
TOKEN_MODE_LEGACY     = "legacy"
TOKEN_MODES = (TOKEN_MODE_CONFIGURED, TOKEN_MODE_LEGACY)


class WithdrawalOp:
    """
    Args:
        token_mode: "configured" pays from Config.token_reference.
                    "legacy" pays from LEGACY_TOKEN_REFERENCE, reproducing
                    the first deployment's behavior.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        sale_ledger:  SaleLedger,
        token_mode:   str = TOKEN_MODE_CONFIGURED,
    ):
        if token_mode not in TOKEN_MODES:
            raise ValueError(
                f"Invalid token_mode '{token_mode}'. Valid: {list(TOKEN_MODES)}"
            )
        self.config_store = config_store
        self.sale_ledger  = sale_ledger
        self.token_mode   = token_mode

    def token_reference(self, config) -> str:
        if self.token_mode == TOKEN_MODE_LEGACY:
            return LEGACY_TOKEN_REFERENCE
        return config.token_reference

    def withdraw(self, store, caller: str) -> Response:
        config = self.config_store.read(store)
        require_admin(caller, config)

        leftover = self.sale_ledger.leftover(store, config.total_supply)
        transfer = describe_transfer(self.token_reference(config), config.admin, leftover)

        return (
            Response()
            .add_attribute("action", "withdraw_by_admin")
            .add_attribute("recipient", config.admin)
            .add_attribute("amount", leftover)
            .add_message(transfer)
        )
