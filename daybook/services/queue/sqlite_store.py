"""
SQLite Queue Store Implementation

DESIGN DECISION: SQLite is used as the device store because:
1. It ships with Python, nothing to install on the till
2. A committed write survives a crash or power loss (WAL journal)
3. Both namespaces fit in one file as two tables

Entries are stored as their JSON serialization. FIFO order is the capture
timestamp, with insertion order (rowid) breaking ties.
"""

import sqlite3
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from daybook.config import get_settings
from daybook.models.entry import BusinessConfigCache, PendingEntry
from daybook.services.queue.interface import (
    ConfigCacheInterface,
    QueueStoreInterface,
    StorageError,
    StorageUnavailable,
)


logger = structlog.get_logger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS pending_entries (
    id TEXT PRIMARY KEY,
    business_id TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    payload TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_pending_entries_timestamp
    ON pending_entries (timestamp);
CREATE TABLE IF NOT EXISTS business_config (
    business_id TEXT PRIMARY KEY,
    cached_at TEXT NOT NULL,
    payload TEXT NOT NULL
);
"""


class SqliteDatabase:
    """
    Owns the SQLite connection shared by both namespaces.

    The connection is opened lazily on first use, so constructing the
    store never fails; the first operation raises StorageUnavailable
    instead.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings().queue
        self._db_path = db_path or settings.db_path
        self._timeout = timeout or settings.busy_timeout_seconds
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def db_path(self) -> str:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        """Open (once) and return the connection, creating tables if needed."""
        if self._conn is None:
            if self._db_path != ":memory:":
                parent = Path(self._db_path).parent
                if not parent.is_dir():
                    raise StorageUnavailable(f"Queue directory does not exist: {parent}")
            try:
                conn = sqlite3.connect(self._db_path, timeout=self._timeout)
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL;")
                conn.execute("PRAGMA synchronous=NORMAL;")
                conn.executescript(SCHEMA)
                conn.commit()
            except sqlite3.Error as e:
                raise StorageUnavailable(f"Cannot open queue store {self._db_path}: {e}")
            self._conn = conn
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


class SqliteQueueStore(QueueStoreInterface):
    """Pending entries namespace."""

    def __init__(self, database: Optional[SqliteDatabase] = None):
        self._db = database or SqliteDatabase()

    async def enqueue(self, entry: PendingEntry) -> None:
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO pending_entries (id, business_id, timestamp, payload) "
                    "VALUES (?, ?, ?, ?)",
                    (entry.id, entry.business_id, entry.timestamp, entry.model_dump_json()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to enqueue entry {entry.id}: {e}")

    async def list_pending(self) -> list[PendingEntry]:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT id, payload FROM pending_entries ORDER BY timestamp ASC, rowid ASC"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list pending entries: {e}")

        entries = []
        for row in rows:
            try:
                entries.append(PendingEntry.model_validate_json(row["payload"]))
            except ValidationError as e:
                # Skip malformed rows, they stay on disk for inspection
                logger.warning("pending_entry_unreadable", entry_id=row["id"], error=str(e))
        return entries

    async def count(self) -> int:
        conn = self._db.connect()
        try:
            row = conn.execute("SELECT COUNT(*) AS n FROM pending_entries").fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to count pending entries: {e}")
        return int(row["n"])

    async def remove(self, entry_id: str) -> None:
        conn = self._db.connect()
        try:
            with conn:
                conn.execute("DELETE FROM pending_entries WHERE id = ?", (entry_id,))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to remove entry {entry_id}: {e}")


class SqliteConfigCache(ConfigCacheInterface):
    """Cached reference configuration namespace."""

    def __init__(self, database: Optional[SqliteDatabase] = None):
        self._db = database or SqliteDatabase()

    async def save_config(self, config: BusinessConfigCache) -> None:
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO business_config (business_id, cached_at, payload) "
                    "VALUES (?, ?, ?)",
                    (config.business_id, config.cached_at.isoformat(), config.model_dump_json()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to cache config for {config.business_id}: {e}")

    async def load_config(self, business_id: str) -> Optional[BusinessConfigCache]:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT payload FROM business_config WHERE business_id = ?",
                (business_id,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to load config for {business_id}: {e}")

        if row is None:
            return None
        try:
            return BusinessConfigCache.model_validate_json(row["payload"])
        except ValidationError as e:
            # Treated as a cache miss; the next save_config overwrites it
            logger.warning("business_config_unreadable", business_id=business_id, error=str(e))
            return None
