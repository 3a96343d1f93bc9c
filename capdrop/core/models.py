"""
capdrop/core/models.py

Persisted records and value types.

═══════════════════════════════════════════════════════════════════
RECORD LAYOUT
═══════════════════════════════════════════════════════════════════
    config              → Config          (singleton)
    sale_info           → SaleInfo        (singleton)
    contract_info       → ContractVersion (singleton)
    user_info/<address> → ClaimRecord     (keyed, write-once)
    journal/<sequence>  → JournalEntry    (keyed, append-only)

Amounts are unsigned 128-bit integers. In dict form they travel as
decimal strings so JSON consumers never round them through a double.
═══════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from capdrop.core.exceptions import ConfigInvalid, StorageError

AMOUNT_MAX = 2 ** 128 - 1


def check_amount(value: Any, field_name: str = "amount") -> int:
    """
    Coerce an int or a decimal string to an Amount.
    Raises ConfigInvalid if the value is not in [0, 2**128).
    """
    if isinstance(value, bool):
        raise ConfigInvalid(
            f"{field_name} must be an unsigned integer",
            {"field": field_name, "value": value},
        )
    if isinstance(value, str):
        if not (value.isascii() and value.isdigit()):
            raise ConfigInvalid(
                f"{field_name} must be a decimal integer string",
                {"field": field_name, "value": value},
            )
        value = int(value)
    if not isinstance(value, int):
        raise ConfigInvalid(
            f"{field_name} must be an unsigned integer",
            {"field": field_name, "type": type(value).__name__},
        )
    if value < 0 or value > AMOUNT_MAX:
        raise ConfigInvalid(
            f"{field_name} out of range",
            {"field": field_name, "value": value},
        )
    return value


def _decode(cls, data: Dict[str, Any], build):
    """Run a from_dict body, turning malformed persisted data into StorageError."""
    try:
        return build(data)
    except (KeyError, TypeError, ValueError, AttributeError, ConfigInvalid) as exc:
        raise StorageError(
            f"Corrupt {cls.__name__} record",
            {"error": exc},
        ) from exc


@dataclass
class Config:
    admin:           str
    token_reference: str
    total_supply:    int
    claim_amount:    int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin":           self.admin,
            "token_reference": self.token_reference,
            "total_supply":    str(self.total_supply),
            "claim_amount":    str(self.claim_amount),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        return _decode(cls, data, lambda d: cls(
            admin=           d["admin"],
            token_reference= d["token_reference"],
            total_supply=    check_amount(d["total_supply"], "total_supply"),
            claim_amount=    check_amount(d["claim_amount"], "claim_amount"),
        ))


@dataclass
class SaleInfo:
    total_distributed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"total_distributed": str(self.total_distributed)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SaleInfo":
        return _decode(cls, data, lambda d: cls(
            total_distributed=check_amount(d["total_distributed"], "total_distributed"),
        ))


@dataclass(frozen=True)
class ClaimRecord:
    """Permanent marker that an address has claimed. Never mutated."""
    address: str
    amount:  int
    claimed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "claimed": self.claimed,
            "amount":  str(self.amount),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClaimRecord":
        return _decode(cls, data, lambda d: cls(
            address=d["address"],
            amount= check_amount(d["amount"], "amount"),
            claimed=bool(d.get("claimed", True)),
        ))


@dataclass(frozen=True)
class ContractVersion:
    contract: str
    version:  str

    def to_dict(self) -> Dict[str, Any]:
        return {"contract": self.contract, "version": self.version}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractVersion":
        return _decode(cls, data, lambda d: cls(
            contract=str(d["contract"]),
            version= str(d["version"]),
        ))


@dataclass(frozen=True)
class TransferInstruction:
    """
    Move `amount` of the token at `token_reference` to `recipient`.

    A description only. The host's token-transfer collaborator executes it.
    """
    token_reference: str
    recipient:       str
    amount:          int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_reference": self.token_reference,
            "recipient":       self.recipient,
            "amount":          str(self.amount),
        }


@dataclass
class Response:
    """Result of a committed operation: attributes plus outbound transfers."""
    attributes: List[Tuple[str, str]]         = field(default_factory=list)
    messages:   List[TransferInstruction]     = field(default_factory=list)

    def add_attribute(self, key: str, value: Any) -> "Response":
        self.attributes.append((key, str(value)))
        return self

    def add_message(self, message: TransferInstruction) -> "Response":
        self.messages.append(message)
        return self

    def attribute(self, key: str):
        for k, v in self.attributes:
            if k == key:
                return v
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": [{"key": k, "value": v} for k, v in self.attributes],
            "messages":   [m.to_dict() for m in self.messages],
        }
