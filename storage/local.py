from __future__ import annotations
import json
import logging
import sqlite3
import threading
from typing import Any, Dict, List, Optional

from core.exceptions import StorageWriteError

logger = logging.getLogger(__name__)

MIRROR_PREFIX = "nexus_v2_"


class LocalStorage:
    """String key/value store persisted in a single SQLite file.

    Each ``set_item`` is one transaction, so readers see either the previous
    value or the new one.
    """
    def __init__(self, path: str = ":memory:"):
        self.path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        self._conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        except sqlite3.Error as e:
            raise StorageWriteError(f"Could not write {key!r}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageWriteError(f"Could not remove {key!r}: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class LocalMirror:
    """Last-known snapshot of each collection, stored as a JSON array."""
    def __init__(self, storage: LocalStorage, prefix: str = MIRROR_PREFIX):
        self.storage = storage
        self.prefix = prefix

    def key(self, collection: str) -> str:
        return f"{self.prefix}{collection}"

    def get(self, collection: str) -> List[Dict[str, Any]]:
        raw = self.storage.get_item(self.key(collection))
        if raw is None:
            return []
        try:
            records = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed local snapshot for %s", collection)
            return []
        if not isinstance(records, list):
            logger.warning("Local snapshot for %s is not a list; treating as empty", collection)
            return []
        return [r for r in records if isinstance(r, dict)]

    def set(self, collection: str, records: List[Dict[str, Any]]) -> None:
        self.storage.set_item(self.key(collection), json.dumps(records, ensure_ascii=False))
