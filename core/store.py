from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .config import settings
from .models import new_id

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class StoreError(Exception):
    """Any failure of the backing record store."""


class RecordNotFound(StoreError):
    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection}/{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class RecordStore(ABC):
    """Generic record store: named collections of dict records keyed by `id`."""

    @abstractmethod
    def list(self, collection: str) -> list[Record]:
        raise NotImplementedError

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Record:
        """Returns the record or raises RecordNotFound."""
        raise NotImplementedError

    @abstractmethod
    def create(self, collection: str, record: Record) -> Record:
        """Stores a new record, assigning an id when it has none."""
        raise NotImplementedError

    @abstractmethod
    def update(self, collection: str, record_id: str, changes: Record) -> Record:
        raise NotImplementedError

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        raise NotImplementedError


class MemoryStore(RecordStore):
    def __init__(self) -> None:
        self._data: dict[str, dict[str, Record]] = {}

    def _collection(self, collection: str) -> dict[str, Record]:
        return self._data.setdefault(collection, {})

    def list(self, collection: str) -> list[Record]:
        return [copy.deepcopy(r) for r in self._collection(collection).values()]

    def get(self, collection: str, record_id: str) -> Record:
        records = self._collection(collection)
        if record_id not in records:
            raise RecordNotFound(collection, record_id)
        return copy.deepcopy(records[record_id])

    def create(self, collection: str, record: Record) -> Record:
        stored = copy.deepcopy(record)
        stored["id"] = stored.get("id") or new_id()
        self._collection(collection)[stored["id"]] = stored
        return copy.deepcopy(stored)

    def update(self, collection: str, record_id: str, changes: Record) -> Record:
        records = self._collection(collection)
        if record_id not in records:
            raise RecordNotFound(collection, record_id)
        records[record_id].update(copy.deepcopy(changes))
        records[record_id]["id"] = record_id
        return copy.deepcopy(records[record_id])

    def delete(self, collection: str, record_id: str) -> None:
        records = self._collection(collection)
        if record_id not in records:
            raise RecordNotFound(collection, record_id)
        del records[record_id]


class JsonFileStore(RecordStore):
    """One `<collection>.json` file per collection under a data directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _read(self, collection: str) -> dict[str, Record]:
        path = self._path(collection)
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read {path}: {e}") from e
        try:
            return {r["id"]: r for r in raw}
        except (TypeError, KeyError) as e:
            raise StoreError(f"Malformed records in {path}: {e!r}") from e

    def _write(self, collection: str, records: dict[str, Record]) -> None:
        path = self._path(collection)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(list(records.values()), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise StoreError(f"Cannot write {path}: {e}") from e

    def list(self, collection: str) -> list[Record]:
        return list(self._read(collection).values())

    def get(self, collection: str, record_id: str) -> Record:
        records = self._read(collection)
        if record_id not in records:
            raise RecordNotFound(collection, record_id)
        return records[record_id]

    def create(self, collection: str, record: Record) -> Record:
        records = self._read(collection)
        stored = dict(record)
        stored["id"] = stored.get("id") or new_id()
        records[stored["id"]] = stored
        self._write(collection, records)
        return stored

    def update(self, collection: str, record_id: str, changes: Record) -> Record:
        records = self._read(collection)
        if record_id not in records:
            raise RecordNotFound(collection, record_id)
        records[record_id].update(changes)
        records[record_id]["id"] = record_id
        self._write(collection, records)
        return records[record_id]

    def delete(self, collection: str, record_id: str) -> None:
        records = self._read(collection)
        if record_id not in records:
            raise RecordNotFound(collection, record_id)
        del records[record_id]
        self._write(collection, records)


def build_store() -> RecordStore:
    backend = settings.STORE_BACKEND.strip().lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "json":
        logger.info("Using JSON record store in %s", settings.DATA_DIR)
        return JsonFileStore(settings.DATA_DIR)
    raise ValueError(f"Unsupported STORE_BACKEND '{settings.STORE_BACKEND}'. Use 'json' or 'memory'.")
