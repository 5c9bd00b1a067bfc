"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON object on disk, mapping keys to string values,
stands in for the browser's localStorage:
1. Human-readable, easy to inspect and repair by hand
2. No database setup required
3. Whole-file writes match the whole-collection persistence model

TRADEOFFS:
- Every write rewrites the file (fine for a handful of entries)
- One process owns the file; there is no locking

Writes go to a temporary file in the same directory and are moved into place
with os.replace, so a crash mid-write leaves the previous file intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from intime.services.storage.interface import (
    KeyValueStore,
    StorageReadError,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store persisted as one JSON object file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path.resolve())

    def _read_all(self) -> dict[str, str]:
        """Load the whole file. A missing file is an empty store."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageReadError(f"Failed to read {self._path}: {e}")

        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageReadError(f"Corrupt storage file {self._path}: {e}")

        if not isinstance(data, dict):
            raise StorageReadError(
                f"Storage file {self._path} must hold a JSON object, got {type(data).__name__}"
            )
        return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in data.items()}

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_all(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2, sort_keys=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageReadError as e:
            # The file is already lost; start over rather than never saving again
            logger.warning("storage_file_reset", path=str(self._path), error=str(e))
            data = {}

        data[key] = value
        try:
            self._write_all(data)
        except OSError as e:
            raise StorageWriteError(f"Failed to write {self._path}: {e}")

    def delete(self, key: str) -> bool:
        data = self._read_all()
        if key not in data:
            return False
        del data[key]
        try:
            self._write_all(data)
        except OSError as e:
            raise StorageWriteError(f"Failed to write {self._path}: {e}")
        return True
