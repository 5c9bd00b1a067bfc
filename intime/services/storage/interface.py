"""
Abstract Storage Interface

DESIGN DECISION: Intime persists into a plain key-value store, the same shape
as a browser's localStorage: string keys, string values, whole-value writes.
This allows us to:
1. Use a JSON file on disk for the real app
2. Use in-memory storage for testing
3. Swap in another backend without touching the ledger logic

The interface is intentionally tiny - get, set, delete.
"""

from abc import ABC, abstractmethod
from typing import Optional

from intime.models.audit import AuditEvent


class KeyValueStore(ABC):
    """
    Abstract interface for durable key-value storage.

    Writes replace the whole value; there are no partial updates.
    """

    @property
    def location(self) -> str:
        """Identifies the backing storage; two stores with the same location share data."""
        return f"{type(self).__name__}:{id(self):x}"

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageReadError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: Storage key
            value: Serialized value

        Raises:
            StorageWriteError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Args:
            key: Storage key

        Returns:
            True if the key existed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """The backend exists but could not be read."""
    pass


class StorageWriteError(StorageError):
    """A value could not be written."""
    pass


class StorageConflictError(StorageWriteError):
    """The stored value changed since this writer last read or wrote it."""
    pass
