"""Key/value stores holding lists of text records."""
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from event_cache.errors import PersistenceError

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Durable mapping of string keys to lists of strings."""

    @abstractmethod
    def get(self, key: str) -> Optional[List[str]]:
        """Return the list stored under ``key``, or None if never set."""

    @abstractmethod
    def set(self, key: str, values: List[str]) -> None:
        """Replace the list stored under ``key``."""

    def set_many(self, values: Dict[str, List[str]]) -> None:
        """Write several keys. Backends may override to batch the writes."""
        for key, records in values.items():
            self.set(key, records)


class InMemoryRecordStore(RecordStore):
    """Process-local store, mainly for tests and dry runs."""

    def __init__(self, initial: Optional[Dict[str, List[str]]] = None):
        self._data: Dict[str, List[str]] = {
            key: list(values) for key, values in (initial or {}).items()
        }

    def get(self, key: str) -> Optional[List[str]]:
        values = self._data.get(key)
        return list(values) if values is not None else None

    def set(self, key: str, values: List[str]) -> None:
        self._data[key] = list(values)


class JsonFileRecordStore(RecordStore):
    """
    Store backed by a single JSON file.

    Writes go to a temporary file that replaces the original, so a crash
    mid-write leaves the previous contents intact.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Optional[List[str]]:
        values = self._load().get(key)
        if values is None:
            return None
        return [str(value) for value in values]

    def set(self, key: str, values: List[str]) -> None:
        self.set_many({key: values})

    def set_many(self, values: Dict[str, List[str]]) -> None:
        data = self._load()
        data.update({key: list(records) for key, records in values.items()})
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing record file {self.path}: {e}")
            raise PersistenceError(str(e)) from e

    def _load(self) -> Dict[str, List[str]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading record file {self.path}: {e}")
            raise PersistenceError(str(e)) from e
        if not isinstance(data, dict):
            raise PersistenceError(f"record file {self.path} does not hold an object")
        return data
