"""
Runtime settings, loaded from YAML.

Example capdrop.yaml:

    state_path: .capdrop/state.json
    key_path: .capdrop/journal.key
    withdraw_token: configured      # or: legacy
    lock_claim_amount: false
    address:
      min_length: 3
      max_length: 90
    query:
      default_limit: 10
      max_limit: 30

Relative paths resolve against the YAML file's directory.
"""

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from capdrop.contract import AirdropContract
from capdrop.core.address import AddressValidator
from capdrop.core.crypto import JournalSigner
from capdrop.core.exceptions import ConfigInvalid
from capdrop.ledger.withdrawal import TOKEN_MODE_CONFIGURED, TOKEN_MODES
from capdrop.query import DEFAULT_LIMIT, MAX_LIMIT
from capdrop.storage.backend import JsonFileStorage

DEFAULT_STATE_PATH = Path(".capdrop/state.json")
DEFAULT_KEY_PATH   = Path(".capdrop/journal.key")


@dataclass
class Settings:
    state_path:         Path = DEFAULT_STATE_PATH
    key_path:           Path = DEFAULT_KEY_PATH
    withdraw_token:     str  = TOKEN_MODE_CONFIGURED
    lock_claim_amount:  bool = False
    address_min_length: int  = 3
    address_max_length: int  = 90
    default_limit:      int  = DEFAULT_LIMIT
    max_limit:          int  = MAX_LIMIT

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "Settings":
        data     = data or {}
        base_dir = Path(base_dir) if base_dir else Path(".")
        address  = data.get("address") or {}
        query    = data.get("query") or {}

        def _path(value, default: Path) -> Path:
            path = Path(value) if value else default
            return path if path.is_absolute() else base_dir / path

        lock = data.get("lock_claim_amount", False)
        if not isinstance(lock, bool):
            raise ConfigInvalid(
                "lock_claim_amount must be true or false",
                {"lock_claim_amount": lock},
            )

        try:
            settings = cls(
                state_path=         _path(data.get("state_path"), DEFAULT_STATE_PATH),
                key_path=           _path(data.get("key_path"), DEFAULT_KEY_PATH),
                withdraw_token=     str(data.get("withdraw_token", TOKEN_MODE_CONFIGURED)),
                lock_claim_amount=  lock,
                address_min_length= int(address.get("min_length", 3)),
                address_max_length= int(address.get("max_length", 90)),
                default_limit=      int(query.get("default_limit", DEFAULT_LIMIT)),
                max_limit=          int(query.get("max_limit", MAX_LIMIT)),
            )
        except (TypeError, ValueError, AttributeError) as exc:
            raise ConfigInvalid("Malformed settings", {"error": exc}) from exc

        settings.check()
        return settings

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigInvalid("Settings file is not valid YAML", {"path": path, "error": exc}) from exc
        if data is not None and not isinstance(data, dict):
            raise ConfigInvalid("Settings file must hold a mapping", {"path": path})
        return cls.from_dict(data, base_dir=path.parent)

    def check(self) -> None:
        if self.withdraw_token not in TOKEN_MODES:
            raise ConfigInvalid(
                f"withdraw_token must be one of {list(TOKEN_MODES)}",
                {"withdraw_token": self.withdraw_token},
            )
        if not (1 <= self.address_min_length <= self.address_max_length):
            raise ConfigInvalid(
                "address length bounds are inconsistent",
                {"min_length": self.address_min_length, "max_length": self.address_max_length},
            )
        if not (1 <= self.default_limit <= self.max_limit):
            raise ConfigInvalid(
                "query limits are inconsistent",
                {"default_limit": self.default_limit, "max_limit": self.max_limit},
            )

    def address_validator(self) -> AddressValidator:
        return AddressValidator(self.address_min_length, self.address_max_length)

    def build_contract(self) -> AirdropContract:
        """Open the state file and journal key named by these settings."""
        storage = JsonFileStorage(self.state_path)
        if not Path(self.key_path).exists() and storage.keys("journal/"):
            warnings.warn(
                f"Journal key {self.key_path} not found; generating a new one. "
                "Existing journal entries stay signed by the previous key.",
                RuntimeWarning,
                stacklevel=2,
            )
        return AirdropContract(
            storage=           storage,
            signer=            JournalSigner.load_or_create(self.key_path),
            validator=         self.address_validator(),
            withdraw_token=    self.withdraw_token,
            lock_claim_amount= self.lock_claim_amount,
            default_limit=     self.default_limit,
            max_limit=         self.max_limit,
        )
