"""
Local Snapshot Storage Implementation

Each collection is stored as one JSON array under a fixed key; the
currency preference is stored as a plain code string. Every change
rewrites the full snapshot for its key.

TRADEOFFS:
- No transactions across keys: each collection is written independently
- No incremental diff or log: fine for a single user's data volume

Repositories follow the abstract interface, so the backend can be swapped
without touching the state store.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Generic, Optional

from pydantic import TypeAdapter, ValidationError

from finance_tracker.models.finance import CurrencyCode, Goal, Investment, Transaction
from finance_tracker.services.storage.interface import (
    BackendUnavailableError,
    CorruptSnapshotError,
    EntityRepository,
    KeyValueBackend,
    T,
)


# Fixed keys in the persistence store
TRANSACTIONS_KEY = "transactions"
INVESTMENTS_KEY = "investments"
GOALS_KEY = "goals"
CURRENCY_KEY = "currency"

_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class InMemoryBackend(KeyValueBackend):
    """Dict-backed store. Used by tests and when no data directory is set."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._values: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def write(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> bool:
        return self._values.pop(key, None) is not None


class LocalFileBackend(KeyValueBackend):
    """
    One file per key inside a data directory.

    Writes go to a temporary file first and are then renamed over the
    target, so a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, directory: Path):
        self._directory = Path(directory)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendUnavailableError(
                f"Cannot create data directory {self._directory}: {e}"
            )

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / key

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise BackendUnavailableError(f"Cannot read {path}: {e}")
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptSnapshotError(key, f"not valid UTF-8: {e}")

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise BackendUnavailableError(f"Cannot write {path}: {e}")

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True


class SnapshotRepository(EntityRepository[T], Generic[T]):
    """
    Repository keeping a whole collection under one backend key.

    The collection is read once and cached; every change rewrites the full
    snapshot. The on-disk format is whatever pydantic produces for the
    model in JSON mode.
    """

    def __init__(self, backend: KeyValueBackend, key: str, model: type[T]):
        self._backend = backend
        self._key = key
        self._adapter = TypeAdapter(list[model])
        self._cache: Optional[list[T]] = None

    @property
    def key(self) -> str:
        return self._key

    def _entities(self) -> list[T]:
        if self._cache is None:
            self._cache = self._load()
        return self._cache

    def _load(self) -> list[T]:
        raw = self._backend.read(self._key)
        if raw is None:
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            raise CorruptSnapshotError(self._key, str(e))

    def _commit(self, entities: list[T]) -> None:
        """Write `entities` and only then make them the cached collection."""
        self._backend.write(
            self._key,
            self._adapter.dump_json(entities).decode("utf-8"),
        )
        self._cache = entities

    def list_all(self) -> list[T]:
        return list(self._entities())

    def get(self, entity_id: str) -> Optional[T]:
        for entity in self._entities():
            if entity.id == entity_id:
                return entity
        return None

    def put(self, entity: T, prepend: bool = False) -> bool:
        entities = list(self._entities())
        for index, existing in enumerate(entities):
            if existing.id == entity.id:
                entities[index] = entity
                self._commit(entities)
                return False

        if prepend:
            entities.insert(0, entity)
        else:
            entities.append(entity)
        self._commit(entities)
        return True

    def delete(self, entity_id: str) -> bool:
        entities = self._entities()
        remaining = [entity for entity in entities if entity.id != entity_id]
        if len(remaining) == len(entities):
            return False
        self._commit(remaining)
        return True

    def replace_all(self, entities: list[T]) -> None:
        self._commit(list(entities))

    def exists(self) -> bool:
        return self._backend.read(self._key) is not None

    def use_in_memory(self, entities: list[T]) -> None:
        """Serve `entities` without writing them (e.g. after a corrupt read)."""
        self._cache = list(entities)


class PreferenceRepository:
    """The currency preference, stored as a bare code string."""

    def __init__(self, backend: KeyValueBackend):
        self._backend = backend

    def get_currency(self) -> Optional[CurrencyCode]:
        """None when nothing usable is stored."""
        try:
            raw = self._backend.read(CURRENCY_KEY)
        except CorruptSnapshotError:
            return None
        if raw is None:
            return None
        try:
            return CurrencyCode(raw.strip())
        except ValueError:
            return None

    def set_currency(self, code: CurrencyCode) -> None:
        self._backend.write(CURRENCY_KEY, code.value)


class LocalStorage:
    """Bundle of the repositories the state store needs, over one backend."""

    def __init__(self, backend: KeyValueBackend):
        self.backend = backend
        self.transactions: SnapshotRepository[Transaction] = SnapshotRepository(
            backend, TRANSACTIONS_KEY, Transaction
        )
        self.goals: SnapshotRepository[Goal] = SnapshotRepository(
            backend, GOALS_KEY, Goal
        )
        self.investments: SnapshotRepository[Investment] = SnapshotRepository(
            backend, INVESTMENTS_KEY, Investment
        )
        self.preferences = PreferenceRepository(backend)

    @classmethod
    def in_directory(cls, directory: Path) -> "LocalStorage":
        return cls(LocalFileBackend(directory))

    @classmethod
    def in_memory(cls) -> "LocalStorage":
        return cls(InMemoryBackend())
