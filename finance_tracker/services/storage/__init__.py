"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements local snapshot files, but designed to be swappable.
"""

from finance_tracker.services.storage.interface import (
    BackendUnavailableError,
    CorruptSnapshotError,
    EntityRepository,
    KeyValueBackend,
    StorageError,
)
from finance_tracker.services.storage.local import (
    CURRENCY_KEY,
    GOALS_KEY,
    INVESTMENTS_KEY,
    TRANSACTIONS_KEY,
    InMemoryBackend,
    LocalFileBackend,
    LocalStorage,
    PreferenceRepository,
    SnapshotRepository,
)

__all__ = [
    # Interfaces
    "EntityRepository",
    "KeyValueBackend",
    # Exceptions
    "BackendUnavailableError",
    "CorruptSnapshotError",
    "StorageError",
    # Local implementation
    "CURRENCY_KEY",
    "GOALS_KEY",
    "INVESTMENTS_KEY",
    "TRANSACTIONS_KEY",
    "InMemoryBackend",
    "LocalFileBackend",
    "LocalStorage",
    "PreferenceRepository",
    "SnapshotRepository",
]
