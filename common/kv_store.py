"""Key-value persistence capability used by the bundle store and resource cache.

Two backends share one async interface: an in-memory map (tests, ephemeral
sessions) and a SQLite table (persistent store shared by every context that
opens the same database file).
"""

import asyncio
import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Dict, Generator, List, Optional

from common.exceptions import StorageFullError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Abstract string-to-string store with per-key atomic operations.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            StorageFullError: If the write would exceed the storage quota
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove key. Returns True if it existed."""

    @abstractmethod
    async def keys(self, prefix: str = "") -> List[str]:
        """List stored keys starting with prefix, in insertion order."""

    async def contains(self, key: str) -> bool:
        return await self.get(key) is not None


def _entry_size(key: str, value: str) -> int:
    return len(key) + len(value)


class MemoryKeyValueStore(KeyValueStore):
    """
    In-memory backend with an optional quota measured in characters.
    """

    def __init__(self, quota: Optional[int] = None):
        """
        Initialize empty store.

        Args:
            quota: Maximum total size (keys + values, in characters); None for unlimited
        """
        self._data: Dict[str, str] = {}
        self.quota = quota

    def usage(self) -> int:
        return sum(_entry_size(k, v) for k, v in self._data.items())

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.quota is not None:
            current = self.usage()
            if key in self._data:
                current -= _entry_size(key, self._data[key])
            required = current + _entry_size(key, value)
            if required > self.quota:
                raise StorageFullError(
                    f"Storage quota exceeded writing '{key}' ({required} > {self.quota})"
                )
        self._data[key] = value

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def keys(self, prefix: str = "") -> List[str]:
        return [key for key in self._data if key.startswith(prefix)]


class SqliteKeyValueStore(KeyValueStore):
    """
    SQLite-backed store. Each operation opens its own connection and runs in
    the default executor so the event loop is never blocked on disk I/O.
    """

    def __init__(self, db_path: str, quota: Optional[int] = None):
        """
        Initialize store and create the backing table if needed.

        Args:
            db_path: Path to the SQLite database file
            quota: Maximum total size (keys + values, in characters); None for unlimited
        """
        self.db_path = Path(db_path).expanduser()
        self.quota = quota
        self._init_database()
        logger.info(f"Key-value store initialized [path={self.db_path}]")

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_database(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    def _get_sync(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM kv_entries WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    def _set_sync(self, key: str, value: str) -> None:
        try:
            with self._get_connection() as conn:
                if self.quota is not None:
                    row = conn.execute(
                        "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) AS used "
                        "FROM kv_entries WHERE key != ?",
                        (key,)
                    ).fetchone()
                    required = row["used"] + _entry_size(key, value)
                    if required > self.quota:
                        raise StorageFullError(
                            f"Storage quota exceeded writing '{key}' ({required} > {self.quota})"
                        )
                conn.execute(
                    "INSERT OR REPLACE INTO kv_entries (key, value) VALUES (?, ?)",
                    (key, value)
                )
                conn.commit()
        except sqlite3.OperationalError as e:
            error_lower = str(e).lower()
            if "full" in error_lower or "no space" in error_lower:
                raise StorageFullError(f"Key-value store full: {e}") from e
            raise

    def _delete_sync(self, key: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
            conn.commit()
            return cursor.rowcount > 0

    def _keys_sync(self, prefix: str) -> List[str]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT key FROM kv_entries WHERE substr(key, 1, ?) = ? ORDER BY rowid",
                (len(prefix), prefix)
            ).fetchall()
        return [row["key"] for row in rows]

    async def get(self, key: str) -> Optional[str]:
        return await self._run(self._get_sync, key)

    async def set(self, key: str, value: str) -> None:
        await self._run(self._set_sync, key, value)

    async def delete(self, key: str) -> bool:
        return await self._run(self._delete_sync, key)

    async def keys(self, prefix: str = "") -> List[str]:
        return await self._run(self._keys_sync, prefix)
