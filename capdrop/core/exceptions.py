"""
capdrop Exception Hierarchy

All exceptions inherit from CapDropError for easy catching.
Each concrete class carries exactly one ErrorKind so callers can
branch on the kind instead of parsing messages.
"""

from enum import Enum


class ErrorKind(Enum):
    UNAUTHORIZED     = "unauthorized"
    CONFIG_INVALID   = "config_invalid"
    ALREADY_CLAIMED  = "already_claimed"
    SUPPLY_EXHAUSTED = "supply_exhausted"
    VERSION_MISMATCH = "version_mismatch"
    STORAGE_ERROR    = "storage_error"


class CapDropError(Exception):
    """Base exception for all capdrop errors"""

    kind: ErrorKind = ErrorKind.STORAGE_ERROR

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": {k: str(v) for k, v in self.details.items()},
        }


class Unauthorized(CapDropError):
    """Raised when a gated operation is invoked by someone other than the admin"""
    kind = ErrorKind.UNAUTHORIZED


class ConfigInvalid(CapDropError):
    """Raised when an address or amount is malformed, or an update is inconsistent"""
    kind = ErrorKind.CONFIG_INVALID


class AlreadyClaimed(CapDropError):
    """Raised when the claimant already has a claim record"""
    kind = ErrorKind.ALREADY_CLAIMED


class SupplyExhausted(CapDropError):
    """Raised when a reservation would push distribution past the supply cap"""
    kind = ErrorKind.SUPPLY_EXHAUSTED


class VersionMismatch(CapDropError):
    """Raised when migrating from an unrelated or unexpected deployment"""
    kind = ErrorKind.VERSION_MISMATCH


class StorageError(CapDropError):
    """Raised when persistence or decoding fails"""
    kind = ErrorKind.STORAGE_ERROR


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (
        Unauthorized,
        ConfigInvalid,
        AlreadyClaimed,
        SupplyExhausted,
        VersionMismatch,
        StorageError,
    )
}
