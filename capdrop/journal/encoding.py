"""
Byte encodings behind journal signatures and chain links.

    signing_bytes(record)  → RFC 8785 (JCS) bytes; the exact input to Ed25519
    chain_digest(record)   → hex SHA-256 of signing_bytes; the causal link
    entry_timestamp()      → UTC, millisecond precision, "Z" suffix

Entry fields are strings and small ints only, so JCS number handling
never rounds anything. Amounts reach the journal as decimal strings.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib
import re
from datetime import datetime, timezone
from typing import Any, Dict

import jcs

TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def signing_bytes(record: Dict[str, Any]) -> bytes:
    return jcs.canonicalize(record)


def chain_digest(record: Dict[str, Any]) -> str:
    return hashlib.sha256(signing_bytes(record)).hexdigest()


def entry_timestamp() -> str:
    """e.g. 2026-03-01T12:00:00.123Z"""
    now = datetime.now(timezone.utc)
    return "{}.{:03d}Z".format(now.strftime("%Y-%m-%dT%H:%M:%S"), now.microsecond // 1000)
