"""JSON-file record store used for durable checkpointing.

Each collection is a directory and each record is one JSON file named after
its id. Writes go through a temporary file and os.replace so a concurrent
reader never sees a half-written record; the last write for a key wins.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TASKS = "tasks"
MEMORIES = "memories"
LOGS = "logs"
AGENTS = "agents"

COLLECTIONS = (TASKS, MEMORIES, LOGS, AGENTS)


class JsonRecordStore:
    """Durable key-value store with per-collection record files.

    Attributes:
        root: Directory holding one subdirectory per collection
    """

    def __init__(self, root: Path):
        """Initialize the store and create collection directories.

        Args:
            root: Base directory for all collections
        """
        self.root = root
        for collection in COLLECTIONS:
            self._collection_dir(collection).mkdir(parents=True, exist_ok=True)

    def _collection_dir(self, collection: str) -> Path:
        if "/" in collection or "\\" in collection or collection.startswith("."):
            raise ValueError(f"Invalid collection name: {collection}")
        return self.root / collection

    def _record_path(self, collection: str, record_id: str) -> Path:
        if not record_id or "/" in record_id or "\\" in record_id:
            raise ValueError(f"Invalid record id: {record_id!r}")
        return self._collection_dir(collection) / f"{record_id}.json"

    def put(self, collection: str, record_id: str, record: dict[str, Any]) -> None:
        """Insert or replace a record.

        Args:
            collection: Collection name (e.g. "tasks")
            record_id: Unique id within the collection
            record: JSON-serializable record
        """
        directory = self._collection_dir(collection)
        directory.mkdir(parents=True, exist_ok=True)
        path = self._record_path(collection, record_id)

        fd, tmp_name = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Stored {collection}/{record_id}")

    def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Get a record by id, or None if it does not exist."""
        path = self._record_path(collection, record_id)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def scan(self, collection: str) -> list[dict[str, Any]]:
        """List every record in a collection (unordered).

        Records that cannot be parsed are skipped with a warning.
        """
        records: list[dict[str, Any]] = []
        directory = self._collection_dir(collection)
        if not directory.exists():
            return records

        for file_path in directory.glob("*.json"):
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    records.append(json.load(f))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to load {collection}/{file_path.stem}: {e}")
                continue

        return records

    def list_recent(
        self,
        collection: str,
        limit: int | None = None,
        key: str = "timestamp",
    ) -> list[dict[str, Any]]:
        """List records newest first by a timestamp field.

        Args:
            collection: Collection name
            limit: Maximum number of records to return (None for all)
            key: Field holding an ISO-8601 timestamp

        Returns:
            list[dict]: Records sorted descending by ``key``
        """
        records = self.scan(collection)
        records.sort(key=lambda r: r.get(key) or "", reverse=True)
        if limit is not None:
            return records[:limit]
        return records

    def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns False if it did not exist."""
        path = self._record_path(collection, record_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def clear(self, collection: str) -> int:
        """Remove every record in a collection.

        Returns:
            int: Number of records removed
        """
        removed = 0
        directory = self._collection_dir(collection)
        if not directory.exists():
            return removed
        for file_path in directory.glob("*.json"):
            file_path.unlink(missing_ok=True)
            removed += 1
        logger.info(f"Cleared {removed} records from {collection}")
        return removed

    def count(self, collection: str) -> int:
        """Count records in a collection without loading them."""
        directory = self._collection_dir(collection)
        if not directory.exists():
            return 0
        return sum(1 for _ in directory.glob("*.json"))
