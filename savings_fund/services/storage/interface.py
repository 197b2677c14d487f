"""
Abstract Storage Interface

DESIGN DECISION: The fund keeps its data as a handful of independently
keyed collections, each one a JSON array (or a small JSON object). The
storage interface is therefore a plain key/value store of JSON text:
1. An in-memory store for tests and throwaway sessions
2. A directory of JSON files for local persistence
3. Anything else that can hold a string per key

Every write replaces the whole value for a key. There is no row-level
update, no locking and no versioning: two writers sharing one store race
and the last write wins.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract interface for the backing store.

    Values are JSON text. Implementations must not interpret them.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored text, or None if the key was never written
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List every key currently stored."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """A stored value could not be parsed back into records."""
    pass
