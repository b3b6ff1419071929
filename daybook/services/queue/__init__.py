"""
Queue Store Package

Durable on-device storage for pending entries and cached configuration.
Currently implemented on SQLite, designed to be swappable.
"""

from daybook.services.queue.interface import (
    ConfigCacheInterface,
    QueueStoreInterface,
    StorageError,
    StorageUnavailable,
)
from daybook.services.queue.sqlite_store import (
    SqliteConfigCache,
    SqliteDatabase,
    SqliteQueueStore,
)

__all__ = [
    # Interfaces
    "ConfigCacheInterface",
    "QueueStoreInterface",
    # Exceptions
    "StorageError",
    "StorageUnavailable",
    # SQLite implementation
    "SqliteConfigCache",
    "SqliteDatabase",
    "SqliteQueueStore",
]
