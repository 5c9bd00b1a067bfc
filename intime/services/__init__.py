"""Services package."""

from intime.services.storage import (
    DEFAULT_ENTRIES,
    AuditStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueStore,
    PersistenceGateway,
    StorageConflictError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "DEFAULT_ENTRIES",
    "AuditStorageInterface",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
    "KeyValueStore",
    "PersistenceGateway",
    "StorageConflictError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
