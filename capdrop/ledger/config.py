"""
ConfigStore: the singleton Config record and its gated mutations.
"""

from dataclasses import replace

from capdrop.core.address import AddressValidator
from capdrop.core.exceptions import ConfigInvalid
from capdrop.core.models import Config, check_amount
from capdrop.ledger.auth import require_admin
from capdrop.ledger.state import CLAIMS, CONFIG, SALE_INFO


class ConfigStore:
    """
    Owns the Config record.

    Args:
        validator:         Address syntax check applied to admin and token_reference.
        lock_claim_amount: When True, UpdateConfig may not change claim_amount
                           once any claim has been recorded.
    """

    def __init__(
        self,
        validator:         AddressValidator = None,
        lock_claim_amount: bool = False,
    ):
        self.validator         = validator or AddressValidator()
        self.lock_claim_amount = lock_claim_amount

    def validate(self, config: Config) -> Config:
        """Return a normalized copy of config, or raise ConfigInvalid."""
        return Config(
            admin=           self.validator.validate(config.admin, "admin"),
            token_reference= self.validator.validate(config.token_reference, "token_reference"),
            total_supply=    check_amount(config.total_supply, "total_supply"),
            claim_amount=    check_amount(config.claim_amount, "claim_amount"),
        )

    def initialize(
        self,
        store,
        admin:           str,
        token_reference: str,
        total_supply:    int,
        claim_amount:    int,
    ) -> Config:
        if CONFIG.may_load(store) is not None:
            raise ConfigInvalid("Ledger is already initialized")

        config = self.validate(Config(
            admin=           admin,
            token_reference= token_reference,
            total_supply=    total_supply,
            claim_amount=    claim_amount,
        ))
        CONFIG.save(store, config)
        return config

    def read(self, store) -> Config:
        return CONFIG.load(store)

    def overwrite(self, store, caller: str, new_config: Config) -> Config:
        current = self.read(store)
        require_admin(caller, current)

        config = self.validate(new_config)

        distributed = SALE_INFO.load(store).total_distributed
        if config.total_supply < distributed:
            raise ConfigInvalid(
                "total_supply below amount already distributed",
                {"total_supply": config.total_supply, "total_distributed": distributed},
            )

        if (
            self.lock_claim_amount
            and config.claim_amount != current.claim_amount
            and CLAIMS.count(store) > 0
        ):
            raise ConfigInvalid(
                "claim_amount is locked once claims exist",
                {"claim_amount": current.claim_amount, "requested": config.claim_amount},
            )

        CONFIG.save(store, config)
        return config

    def set_admin(self, store, caller: str, new_admin: str) -> Config:
        current = self.read(store)
        require_admin(caller, current)

        config = replace(current, admin=self.validator.validate(new_admin, "admin"))
        CONFIG.save(store, config)
        return config
