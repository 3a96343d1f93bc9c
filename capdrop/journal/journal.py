"""
capdrop/journal/journal.py

Signed, hash-chained audit journal.

record() MUST, in this exact order:
  1. Build the entry with sequence = number of existing entries
  2. causal_hash = SHA-256(JCS(prev.to_signing_dict())), or GENESIS_HASH
  3. Sign JCS(entry.to_signing_dict()) with the journal signer
  4. Stage the entry in the caller's transaction

Entries are staged in the same transaction as the state change they
describe, so the journal and the ledger state commit together.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from capdrop.core.crypto import JournalSigner
from capdrop.core.exceptions import StorageError
from capdrop.journal.encoding import TIMESTAMP_RE, chain_digest, entry_timestamp, signing_bytes
from capdrop.storage.items import Map

GENESIS_HASH = "0" * 64

_SEQUENCE_WIDTH = 10


@dataclass
class JournalEntry:
    sequence:          int
    timestamp:         str
    action:            str
    attributes:        Dict[str, str]
    causal_hash:       str
    signer_public_key: str
    signature:         Optional[str] = None

    def to_signing_dict(self) -> Dict[str, Any]:
        """Every field except the signature. Also the chaining surface."""
        return {
            "sequence":          self.sequence,
            "timestamp":         self.timestamp,
            "action":            self.action,
            "attributes":        self.attributes,
            "causal_hash":       self.causal_hash,
            "signer_public_key": self.signer_public_key,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_signing_dict()
        data["signature"] = self.signature
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        try:
            return cls(
                sequence=          data["sequence"],
                timestamp=         data["timestamp"],
                action=            data["action"],
                attributes=        dict(data["attributes"]),
                causal_hash=       data["causal_hash"],
                signer_public_key= data["signer_public_key"],
                signature=         data.get("signature"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageError("Corrupt JournalEntry record", {"error": exc}) from exc

    def chain_hash(self) -> str:
        return chain_digest(self.to_signing_dict())

    def sign(self, signer: JournalSigner) -> "JournalEntry":
        self.signature = signer.sign(signing_bytes(self.to_signing_dict()))
        return self

    def verify_signature(self) -> bool:
        if not self.signature:
            return False
        return JournalSigner.verify_detached(
            signing_bytes(self.to_signing_dict()),
            self.signature,
            self.signer_public_key,
        )

    def verify_chain(self, prev: Optional["JournalEntry"]) -> bool:
        expected = prev.chain_hash() if prev is not None else GENESIS_HASH
        return self.causal_hash == expected


@dataclass
class JournalViolation:
    sequence:       int
    violation_type: str
    detail:         str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence":       self.sequence,
            "violation_type": self.violation_type,
            "detail":         self.detail,
        }


@dataclass
class JournalReport:
    total_entries: int
    violations:    List[JournalViolation] = field(default_factory=list)
    head_hash:     Optional[str] = None

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid":         self.valid,
            "total_entries": self.total_entries,
            "head_hash":     self.head_hash,
            "violations":    [v.to_dict() for v in self.violations],
        }


class EventJournal:
    """
    Journal of committed operations, stored under `journal/<sequence>`.

    record() writes into whatever store it is given. Pass the
    transaction's StagedStorage so the entry commits with the state.
    """

    ENTRIES = Map("journal", JournalEntry)

    def __init__(self, signer: JournalSigner) -> None:
        self.signer = signer

    @staticmethod
    def _key(sequence: int) -> str:
        return str(sequence).zfill(_SEQUENCE_WIDTH)

    def record(self, store, action: str, attributes: Dict[str, Any]) -> JournalEntry:
        sequence = self.ENTRIES.count(store)
        prev = (
            self.ENTRIES.may_load(store, self._key(sequence - 1))
            if sequence > 0 else None
        )
        entry = JournalEntry(
            sequence=          sequence,
            timestamp=         entry_timestamp(),
            action=            action,
            attributes=        {k: str(v) for k, v in attributes.items()},
            causal_hash=       prev.chain_hash() if prev is not None else GENESIS_HASH,
            signer_public_key= self.signer.public_key_hex,
        ).sign(self.signer)
        self.ENTRIES.save(store, self._key(sequence), entry)
        return entry

    @classmethod
    def entries(cls, store) -> List[JournalEntry]:
        return cls.ENTRIES.range(store)

    def verify(self, store, expected_public_key: Optional[str] = None) -> JournalReport:
        """
        Check sequence continuity, causal chain, signatures and signer of
        every entry. Entries must be signed by `expected_public_key`, which
        defaults to this journal's own signer.
        Reports all violations rather than stopping at the first.
        """
        return verify_entries(
            self.entries(store),
            expected_public_key or self.signer.public_key_hex,
        )

    @classmethod
    def export_jsonl(cls, store, path: Path) -> int:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        entries = cls.entries(store)
        with open(path, "w", encoding="utf-8") as f:
            for entry in entries:
                f.write(json.dumps(entry.to_dict(), sort_keys=True) + "\n")
        return len(entries)


def verify_entries(
    entries:             List[JournalEntry],
    expected_public_key: Optional[str] = None,
) -> JournalReport:
    """
    Without `expected_public_key` the first entry's key is pinned, so a
    journal that changes signer partway through is still reported. A valid
    report then only proves self-consistency, not who wrote the journal.
    """
    report = JournalReport(total_entries=len(entries))
    prev: Optional[JournalEntry] = None
    pinned = expected_public_key or (entries[0].signer_public_key if entries else None)

    for i, entry in enumerate(entries):
        if entry.sequence != i:
            report.violations.append(JournalViolation(
                i, "sequence_gap", f"expected sequence {i}, got {entry.sequence}",
            ))
        if not isinstance(entry.timestamp, str) or not TIMESTAMP_RE.match(entry.timestamp):
            report.violations.append(JournalViolation(
                i, "schema", f"malformed timestamp {entry.timestamp!r}",
            ))
        if not entry.verify_chain(prev):
            report.violations.append(JournalViolation(
                i, "chain_break", "causal_hash does not match previous entry",
            ))
        if not entry.verify_signature():
            report.violations.append(JournalViolation(
                i, "signature", "signature does not verify",
            ))
        if entry.signer_public_key != pinned:
            report.violations.append(JournalViolation(
                i, "signer", f"signed by unexpected key {str(entry.signer_public_key)[:16]}...",
            ))
        prev = entry

    if entries:
        report.head_hash = entries[-1].chain_hash()
    return report


def load_jsonl(path: Path) -> List[JournalEntry]:
    """Read an exported journal. Raises StorageError on malformed lines."""
    entries = []
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(JournalEntry.from_dict(json.loads(line)))
            except json.JSONDecodeError as exc:
                raise StorageError(
                    f"Invalid JSON at line {line_num}",
                    {"path": path, "error": exc},
                ) from exc
    return entries
