"""
capdrop/core/crypto.py

Ed25519 key that signs journal entries.

Signatures are base64url without padding. Each journal entry carries the
hex public key of its signer, so anyone holding an exported journal can
check it without access to the key file.
"""

import base64
import binascii
from pathlib import Path
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

PathLike = Union[str, Path]


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _unb64url(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


class JournalSigner:

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._key = private_key
        raw = private_key.public_key().public_bytes(
            serialization.Encoding.Raw,
            serialization.PublicFormat.Raw,
        )
        self.public_key_hex = raw.hex()

    @classmethod
    def generate(cls) -> "JournalSigner":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_file(cls, path: PathLike) -> "JournalSigner":
        """
        Read a PKCS8 PEM key.

        Raises FileNotFoundError if the file is missing, ValueError if it
        does not hold an unencrypted Ed25519 private key.
        """
        pem = Path(path).read_bytes()
        try:
            key = serialization.load_pem_private_key(pem, password=None)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"{path}: not a usable private key ({exc})") from exc
        if not isinstance(key, Ed25519PrivateKey):
            raise ValueError(f"{path}: expected an Ed25519 key, got {type(key).__name__}")
        return cls(key)

    @classmethod
    def load_or_create(cls, path: PathLike) -> "JournalSigner":
        """Reuse the key at `path`, or generate one and store it there."""
        path = Path(path)
        if path.exists():
            return cls.from_file(path)
        signer = cls.generate()
        signer.save(path)
        return signer

    def save(self, path: PathLike) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self._key.private_bytes(
            encoding=             serialization.Encoding.PEM,
            format=               serialization.PrivateFormat.PKCS8,
            encryption_algorithm= serialization.NoEncryption(),
        ))

    def sign(self, data: bytes) -> str:
        return _b64url(self._key.sign(data))

    @staticmethod
    def verify_detached(data: bytes, signature: str, public_key_hex: str) -> bool:
        """True only if `signature` is a valid signature of `data` by that key."""
        try:
            public_key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))
            public_key.verify(_unb64url(signature), data)
        except (InvalidSignature, ValueError, TypeError, binascii.Error):
            return False
        return True

    def __repr__(self) -> str:
        return f"JournalSigner({self.public_key_hex[:16]}...)"
