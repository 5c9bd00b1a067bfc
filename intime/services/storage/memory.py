"""In-memory key-value store, for tests and throwaway sessions."""

from typing import Optional

from intime.services.storage.interface import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None
