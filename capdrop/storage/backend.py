"""
Key/value storage with an explicit stage-then-commit transaction.

Writes never touch a backend directly. They are staged in a
StagedStorage overlay and applied together by Storage._apply() when the
transaction block exits cleanly. Any exception inside the block discards
the overlay, so a failed operation commits nothing.

JsonFileStorage applies a commit by writing the complete new snapshot to
a temp file, fsyncing it, and os.replace()-ing it over the state file.
A crash at any point leaves either the old snapshot or the new one.
"""

import copy
import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from capdrop.core.exceptions import StorageError

# Sentinel for a staged deletion
_DELETED = object()


class Storage:
    """Committed state. Read-only outside a transaction."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._in_transaction = False

    # ── Reads ─────────────────────────────────────────────────

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._data)

    # ── Transactions ──────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator["StagedStorage"]:
        """
        Yield a staging overlay. Staged writes are applied together on
        clean exit and dropped on exception.
        """
        if self._in_transaction:
            raise StorageError("Nested transactions are not supported")
        self._in_transaction = True
        try:
            staged = StagedStorage(self)
            yield staged
            if staged.writes:
                self._apply(staged.writes)
        finally:
            self._in_transaction = False

    def _apply(self, writes: Dict[str, Any]) -> None:
        self._data = self._merged(writes)

    def _merged(self, writes: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        merged = dict(self._data)
        for key, value in writes.items():
            if value is _DELETED:
                merged.pop(key, None)
            else:
                merged[key] = value
        return merged


class MemoryStorage(Storage):
    """In-process storage. State lives as long as the object."""


class JsonFileStorage(Storage):
    """
    Storage persisted as one JSON document.

    Loaded once at construction; every commit rewrites the whole
    document atomically.
    """

    def __init__(self, path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._data = self._load()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise StorageError(
                "State file is not valid JSON",
                {"path": self.path, "error": exc},
            ) from exc
        except OSError as exc:
            raise StorageError(
                "Failed to read state file",
                {"path": self.path, "error": exc},
            ) from exc

        if not isinstance(data, dict) or not isinstance(data.get("records"), dict):
            raise StorageError(
                "State file has no 'records' object",
                {"path": self.path},
            )
        return data["records"]

    def _apply(self, writes: Dict[str, Any]) -> None:
        merged = self._merged(writes)
        self._write_snapshot(merged)
        self._data = merged

    def _write_snapshot(self, records: Dict[str, Dict[str, Any]]) -> None:
        """Write state to disk atomically"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump({"records": records}, f, sort_keys=True, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)

        except (OSError, TypeError, ValueError) as exc:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(
                "Failed to write state file",
                {"path": self.path, "error": exc},
            ) from exc


class StagedStorage:
    """
    Copy-on-write overlay over a Storage.

    Reads see staged writes first, then committed state.
    """

    def __init__(self, base: Storage) -> None:
        self._base  = base
        self.writes: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        if key in self.writes:
            value = self.writes[key]
            return None if value is _DELETED else copy.deepcopy(value)
        return self._base.get(key)

    def set(self, key: str, value: Dict[str, Any]) -> None:
        if not isinstance(value, dict):
            raise StorageError(
                "Record values must be dicts",
                {"key": key, "type": type(value).__name__},
            )
        self.writes[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self.writes[key] = _DELETED

    def apply_to(self, target: "StagedStorage") -> None:
        """Move every staged write into an enclosing overlay."""
        for key, value in self.writes.items():
            if value is _DELETED:
                target.remove(key)
            else:
                target.set(key, value)
        self.writes = {}

    def keys(self, prefix: str = "") -> List[str]:
        keys = set(self._base.keys(prefix))
        for key, value in self.writes.items():
            if not key.startswith(prefix):
                continue
            if value is _DELETED:
                keys.discard(key)
            else:
                keys.add(key)
        return sorted(keys)
