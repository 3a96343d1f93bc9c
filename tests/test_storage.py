"""
tests/test_storage.py

Storage backends and the stage-then-commit transaction.

Laws:
  a transaction that raises commits nothing
  a transaction that exits cleanly commits every staged write
  JsonFileStorage survives reopen and never leaves a half-written file
"""

import json
import os

import pytest

from capdrop import StorageError
from capdrop.core.models import SaleInfo
from capdrop.storage import Item, JsonFileStorage, Map, MemoryStorage, StagedStorage


SALE = Item("sale_info", SaleInfo)


@pytest.fixture(params=["memory", "file"])
def storage(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    return JsonFileStorage(tmp_path / "state.json")


class TestTransaction:

    def test_clean_exit_commits(self, storage):
        with storage.transaction() as txn:
            txn.set("a", {"v": 1})
            txn.set("b", {"v": 2})

        assert storage.get("a") == {"v": 1}
        assert storage.keys() == ["a", "b"]

    def test_exception_discards_everything(self, storage):
        with storage.transaction() as txn:
            txn.set("a", {"v": 1})

        with pytest.raises(RuntimeError):
            with storage.transaction() as txn:
                txn.set("a", {"v": 99})
                txn.set("b", {"v": 2})
                raise RuntimeError("boom")

        assert storage.get("a") == {"v": 1}
        assert storage.get("b") is None

    def test_staged_reads_see_own_writes(self, storage):
        with storage.transaction() as txn:
            txn.set("user_info/b", {"v": 1})
            assert txn.get("user_info/b") == {"v": 1}
            assert storage.get("user_info/b") is None, "Uncommitted write leaked"
            txn.remove("user_info/b")
            assert txn.get("user_info/b") is None
            assert txn.keys("user_info/") == []

    def test_remove_commits_deletion(self, storage):
        with storage.transaction() as txn:
            txn.set("a", {"v": 1})
        with storage.transaction() as txn:
            txn.remove("a")
        assert storage.get("a") is None

    def test_nested_transaction_refused(self, storage):
        with storage.transaction():
            with pytest.raises(StorageError, match="Nested"):
                with storage.transaction():
                    pass

    def test_non_dict_value_refused(self, storage):
        with pytest.raises(StorageError):
            with storage.transaction() as txn:
                txn.set("a", "not a record")

    def test_reads_return_copies(self, storage):
        with storage.transaction() as txn:
            txn.set("a", {"v": [1]})
        storage.get("a")["v"].append(2)
        assert storage.get("a") == {"v": [1]}


class TestStagedOverlay:

    def test_apply_to_moves_writes_into_outer_overlay(self):
        storage = MemoryStorage()
        with storage.transaction() as txn:
            scratch = StagedStorage(txn)
            scratch.set("a", {"v": 1})
            assert txn.get("a") is None
            scratch.apply_to(txn)
            assert txn.get("a") == {"v": 1}
            assert scratch.writes == {}
        assert storage.get("a") == {"v": 1}

    def test_abandoned_scratch_commits_nothing(self):
        storage = MemoryStorage()
        with storage.transaction() as txn:
            scratch = StagedStorage(txn)
            scratch.set("a", {"v": 1})
        assert storage.snapshot() == {}


class TestItemsAndMaps:

    def test_item_round_trip(self):
        storage = MemoryStorage()
        assert SALE.may_load(storage) is None
        with pytest.raises(StorageError, match="SaleInfo not found"):
            SALE.load(storage)

        with storage.transaction() as txn:
            SALE.save(txn, SaleInfo(total_distributed=2 ** 128 - 1))

        assert storage.get("sale_info") == {"total_distributed": str(2 ** 128 - 1)}
        assert SALE.load(storage).total_distributed == 2 ** 128 - 1

    def test_map_range_is_ordered_and_paged(self):
        storage = MemoryStorage()
        entries = Map("entries", SaleInfo)
        with storage.transaction() as txn:
            for name in ("c", "a", "d", "b"):
                entries.save(txn, name, SaleInfo(ord(name)))

        assert [e.total_distributed for e in entries.range(storage)] == [97, 98, 99, 100]
        assert [e.total_distributed for e in entries.range(storage, start_after="b", limit=1)] == [99]
        assert entries.count(storage) == 4
        assert entries.has(storage, "a") and not entries.has(storage, "z")

    def test_corrupt_record_raises_storage_error(self):
        storage = MemoryStorage()
        with storage.transaction() as txn:
            txn.set("sale_info", {"total_distributed": "-3"})
        with pytest.raises(StorageError, match="Corrupt SaleInfo"):
            SALE.load(storage)


class TestJsonFileStorage:

    def test_persists_across_reopen(self, tmp_path):
        path = tmp_path / "state.json"
        storage = JsonFileStorage(path)
        with storage.transaction() as txn:
            txn.set("a", {"v": 1})

        assert JsonFileStorage(path).get("a") == {"v": 1}
        assert json.loads(path.read_text())["records"] == {"a": {"v": 1}}

    def test_no_file_until_first_commit(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        storage = JsonFileStorage(path)
        with storage.transaction():
            pass
        assert not path.exists()

        with storage.transaction() as txn:
            txn.set("a", {"v": 1})
        assert path.exists()

    def test_failed_write_leaves_old_state(self, tmp_path, monkeypatch):
        """If the atomic replace fails, neither the file nor memory changes."""
        path = tmp_path / "state.json"
        storage = JsonFileStorage(path)
        with storage.transaction() as txn:
            txn.set("a", {"v": 1})
        before = path.read_text()

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)

        with pytest.raises(StorageError, match="Failed to write state file"):
            with storage.transaction() as txn:
                txn.set("a", {"v": 2})

        assert path.read_text() == before
        assert storage.get("a") == {"v": 1}
        assert not (tmp_path / "state.json.tmp").exists(), "Temp file must be cleaned up"

    def test_corrupt_file_refused(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json")
        with pytest.raises(StorageError, match="not valid JSON"):
            JsonFileStorage(path)

    def test_wrong_shape_refused(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"entries": []}))
        with pytest.raises(StorageError, match="records"):
            JsonFileStorage(path)
