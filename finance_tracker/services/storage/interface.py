"""
Abstract Storage Interface

We define abstract interfaces for storage operations. This allows us to:
1. Keep snapshots in local files today
2. Use in-memory storage for testing
3. Keep the in-memory shape of entities decoupled from the on-disk format

Two layers:
- KeyValueBackend: where bytes live (one value per fixed key)
- EntityRepository: get/put/delete per entity on top of a backend

The interface is intentionally simple - we're not building a full ORM.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel


T = TypeVar("T", bound=BaseModel)


class KeyValueBackend(ABC):
    """
    Abstract persistence store holding one string value per key.

    Writes replace the whole value; last write wins.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored string, or None if nothing was ever written

        Raises:
            CorruptSnapshotError: If the stored value is not valid text
        """
        pass

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if something was removed
        """
        pass


class EntityRepository(ABC, Generic[T]):
    """
    Abstract interface for one collection of entities.

    Entities are identified by their `id` attribute. Collection order is
    meaningful (e.g. newest transactions first) and is preserved.
    """

    @abstractmethod
    def list_all(self) -> list[T]:
        """
        Return every entity, in collection order.

        Raises:
            CorruptSnapshotError: If the stored data cannot be read
        """
        pass

    @abstractmethod
    def get(self, entity_id: str) -> Optional[T]:
        """
        Retrieve an entity by its ID.

        Returns:
            The entity if found, None otherwise
        """
        pass

    @abstractmethod
    def put(self, entity: T, prepend: bool = False) -> bool:
        """
        Insert or replace an entity.

        An entity whose id already exists is replaced in place. A new
        entity is appended, or inserted first when `prepend` is set.

        Returns:
            True if the entity was created, False if it replaced one
        """
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """
        Delete an entity by ID. Deleting a missing ID is not an error.

        Returns:
            True if an entity was removed
        """
        pass

    @abstractmethod
    def replace_all(self, entities: list[T]) -> None:
        """Replace the whole collection."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Has this collection ever been persisted?"""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptSnapshotError(StorageError):
    """A persisted snapshot could not be parsed."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Snapshot '{key}' is unreadable: {message}")


class BackendUnavailableError(StorageError):
    """The storage location cannot be read or written."""
    pass
