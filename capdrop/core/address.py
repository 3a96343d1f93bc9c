"""
Address validation.

The host chain owns real address syntax. AddressValidator enforces the
minimal shape every host agrees on: a normalized (lowercase) string
without whitespace and within a length window.
"""

from dataclasses import dataclass

from capdrop.core.exceptions import ConfigInvalid


@dataclass(frozen=True)
class AddressValidator:
    min_length: int = 3
    max_length: int = 90

    def validate(self, address, field: str = "address") -> str:
        """Return the address unchanged, or raise ConfigInvalid."""
        if not isinstance(address, str):
            raise ConfigInvalid(
                f"{field} must be a string",
                {"field": field, "type": type(address).__name__},
            )
        if not (self.min_length <= len(address) <= self.max_length):
            raise ConfigInvalid(
                f"{field} length out of range",
                {
                    "field": field,
                    "address": address,
                    "min": self.min_length,
                    "max": self.max_length,
                },
            )
        if any(c.isspace() for c in address):
            raise ConfigInvalid(
                f"{field} contains whitespace",
                {"field": field, "address": address},
            )
        if address.lower() != address:
            raise ConfigInvalid(
                f"{field} is not normalized",
                {"field": field, "address": address},
            )
        return address

    def is_valid(self, address) -> bool:
        try:
            self.validate(address)
        except ConfigInvalid:
            return False
        return True
