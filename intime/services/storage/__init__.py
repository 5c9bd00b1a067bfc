"""
Storage Services Package

Provides the key-value storage abstraction, its JSON-file and in-memory
implementations, and the gateway that persists the snapshot collection.
"""

from intime.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    StorageError,
    StorageConflictError,
    StorageReadError,
    StorageWriteError,
)
from intime.services.storage.json_file import JsonFileKeyValueStore
from intime.services.storage.memory import InMemoryKeyValueStore
from intime.services.storage.audit_store import KeyValueAuditStorage
from intime.services.storage.gateway import DEFAULT_ENTRIES, PersistenceGateway

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    # Exceptions
    "StorageConflictError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
    # Snapshot persistence
    "DEFAULT_ENTRIES",
    "PersistenceGateway",
]
