"""Tests for the local snapshot storage."""

import json
from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.models import CurrencyCode, Goal, Transaction, TransactionKind
from finance_tracker.services.storage import (
    BackendUnavailableError,
    CorruptSnapshotError,
    LocalStorage,
)
from finance_tracker.services.storage import local
from finance_tracker.services.storage.local import (
    CURRENCY_KEY,
    GOALS_KEY,
    TRANSACTIONS_KEY,
    InMemoryBackend,
    LocalFileBackend,
    SnapshotRepository,
)


def make_tx(tx_id: str, amount: str = "10") -> Transaction:
    return Transaction(
        id=tx_id,
        kind=TransactionKind.EXPENSE,
        amount=Decimal(amount),
        category_id="c1",
        date=date(2024, 2, 1),
    )


class FailingBackend(InMemoryBackend):
    """In-memory backend whose writes can be switched off."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False

    def write(self, key, value):
        if self.fail_writes:
            raise BackendUnavailableError("disk full")
        super().write(key, value)


class TestSnapshotRepository:
    """Tests for the full-snapshot repository."""

    @pytest.fixture
    def backend(self):
        return InMemoryBackend()

    @pytest.fixture
    def repository(self, backend):
        return SnapshotRepository(backend, TRANSACTIONS_KEY, Transaction)

    def test_missing_key_reads_as_empty(self, repository):
        assert repository.exists() is False
        assert repository.list_all() == []

    def test_put_writes_the_whole_snapshot(self, backend, repository):
        repository.put(make_tx("a"))
        repository.put(make_tx("b"))

        stored = json.loads(backend.read(TRANSACTIONS_KEY))
        assert [entry["id"] for entry in stored] == ["a", "b"]
        assert stored[0]["amount"] == "10.00"

    def test_prepend_puts_newest_first(self, repository):
        repository.put(make_tx("old"))
        repository.put(make_tx("new"), prepend=True)
        assert [t.id for t in repository.list_all()] == ["new", "old"]

    def test_put_with_existing_id_replaces_in_place(self, repository):
        repository.put(make_tx("a"))
        repository.put(make_tx("b"))

        created = repository.put(make_tx("a", "99"))

        assert created is False
        assert [t.id for t in repository.list_all()] == ["a", "b"]
        assert repository.get("a").amount == Decimal("99.00")

    def test_delete_unknown_id_changes_nothing(self, backend, repository):
        repository.put(make_tx("a"))
        before = backend.read(TRANSACTIONS_KEY)

        assert repository.delete("zzz") is False
        assert backend.read(TRANSACTIONS_KEY) == before

    def test_delete_existing_id(self, repository):
        repository.put(make_tx("a"))
        assert repository.delete("a") is True
        assert repository.list_all() == []

    def test_reload_from_backend(self, backend, repository):
        repository.put(make_tx("a", "45.50"))
        fresh = SnapshotRepository(backend, TRANSACTIONS_KEY, Transaction)
        assert fresh.list_all() == repository.list_all()

    def test_goal_snapshot_with_progress_reloads(self, backend):
        """The computed progress field is written but ignored on read."""
        goals = SnapshotRepository(backend, GOALS_KEY, Goal)
        goals.put(Goal(id="g1", title="Trip", target_amount=100, current_amount=50))

        assert json.loads(backend.read(GOALS_KEY))[0]["progress_percent"] == 50
        assert SnapshotRepository(backend, GOALS_KEY, Goal).get("g1").progress_percent == 50

    def test_corrupt_snapshot_raises(self):
        backend = InMemoryBackend({TRANSACTIONS_KEY: "{not json"})
        repository = SnapshotRepository(backend, TRANSACTIONS_KEY, Transaction)
        with pytest.raises(CorruptSnapshotError) as exc_info:
            repository.list_all()
        assert exc_info.value.key == TRANSACTIONS_KEY

    def test_use_in_memory_does_not_write(self):
        backend = InMemoryBackend({TRANSACTIONS_KEY: "[{\"id\": 1}]"})
        repository = SnapshotRepository(backend, TRANSACTIONS_KEY, Transaction)
        repository.use_in_memory([make_tx("a")])

        assert [t.id for t in repository.list_all()] == ["a"]
        assert backend.read(TRANSACTIONS_KEY) == "[{\"id\": 1}]"

    def test_failed_write_leaves_collection_unchanged(self):
        """What list_all returns always matches what was last written."""
        backend = FailingBackend()
        repository = SnapshotRepository(backend, TRANSACTIONS_KEY, Transaction)
        repository.put(make_tx("a"))
        backend.fail_writes = True

        with pytest.raises(BackendUnavailableError):
            repository.put(make_tx("b"))
        with pytest.raises(BackendUnavailableError):
            repository.put(make_tx("a", "99"))
        with pytest.raises(BackendUnavailableError):
            repository.delete("a")
        with pytest.raises(BackendUnavailableError):
            repository.replace_all([])

        assert [(t.id, t.amount) for t in repository.list_all()] == [("a", Decimal("10.00"))]
        fresh = SnapshotRepository(backend, TRANSACTIONS_KEY, Transaction)
        assert fresh.list_all() == repository.list_all()


class TestLocalFileBackend:
    """Tests for the file-per-key backend."""

    def test_write_then_read(self, tmp_path):
        backend = LocalFileBackend(tmp_path / "data")
        backend.write("transactions", "[]")

        assert (tmp_path / "data" / "transactions").read_text() == "[]"
        assert backend.read("transactions") == "[]"

    def test_missing_file_reads_as_none(self, tmp_path):
        assert LocalFileBackend(tmp_path).read("goals") is None

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        backend = LocalFileBackend(tmp_path)
        backend.write("goals", "[1]")
        backend.write("goals", "[2]")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["goals"]
        assert backend.read("goals") == "[2]"

    def test_failed_rename_removes_temp_file(self, tmp_path, monkeypatch):
        backend = LocalFileBackend(tmp_path)
        backend.write("goals", "[1]")

        def refuse(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr(local.os, "replace", refuse)
        with pytest.raises(BackendUnavailableError):
            backend.write("goals", "[2]")

        assert sorted(p.name for p in tmp_path.iterdir()) == ["goals"]
        assert (tmp_path / "goals").read_text() == "[1]"

    def test_invalid_utf8_is_a_corrupt_snapshot(self, tmp_path):
        (tmp_path / "transactions").write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(CorruptSnapshotError) as exc_info:
            LocalFileBackend(tmp_path).read("transactions")
        assert exc_info.value.key == "transactions"

    def test_delete(self, tmp_path):
        backend = LocalFileBackend(tmp_path)
        backend.write("currency", "USD")
        assert backend.delete("currency") is True
        assert backend.delete("currency") is False

    def test_rejects_path_like_keys(self, tmp_path):
        with pytest.raises(ValueError):
            LocalFileBackend(tmp_path).read("../etc/passwd")


class TestPreferences:
    """Tests for the currency preference."""

    def test_currency_is_stored_as_bare_code(self):
        storage = LocalStorage.in_memory()
        storage.preferences.set_currency(CurrencyCode.EUR)

        assert storage.backend.read(CURRENCY_KEY) == "EUR"
        assert storage.preferences.get_currency() == CurrencyCode.EUR

    def test_unknown_code_reads_as_none(self):
        storage = LocalStorage(InMemoryBackend({CURRENCY_KEY: "GBP"}))
        assert storage.preferences.get_currency() is None

    def test_undecodable_currency_file_reads_as_none(self, tmp_path):
        (tmp_path / CURRENCY_KEY).write_bytes(b"\xe9UR")
        assert LocalStorage.in_directory(tmp_path).preferences.get_currency() is None

    def test_storage_in_directory_persists(self, tmp_path):
        LocalStorage.in_directory(tmp_path).transactions.put(make_tx("a"))
        assert [t.id for t in LocalStorage.in_directory(tmp_path).transactions.list_all()] == ["a"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
