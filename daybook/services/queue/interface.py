"""
Abstract Queue Store Interface

DESIGN DECISION: The device store is hidden behind two small interfaces,
one per namespace:
1. Pending entries - the offline queue drained by the sync engine
2. Cached reference configuration - so the entry form works offline

Any embedded store that survives a process restart can implement them
(SQLite file, append log, key/value database).
"""

from abc import ABC, abstractmethod
from typing import Optional

from daybook.models.entry import BusinessConfigCache, PendingEntry


class QueueStoreInterface(ABC):
    """
    Durable FIFO queue of pending entries, keyed by entry id.

    Implementations must raise StorageUnavailable when the underlying
    store cannot be opened.
    """

    @abstractmethod
    async def enqueue(self, entry: PendingEntry) -> None:
        """
        Persist an entry under its id.

        Raises:
            StorageUnavailable: If the device store cannot be opened
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def list_pending(self) -> list[PendingEntry]:
        """
        All pending entries, ascending capture timestamp.

        Reflects the persisted state at the time of the call.
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of pending entries."""
        pass

    @abstractmethod
    async def remove(self, entry_id: str) -> None:
        """
        Remove an entry. Removing an absent id is a no-op.
        """
        pass


class ConfigCacheInterface(ABC):
    """
    Reference configuration cache keyed by business id.

    Last write wins. No TTL; the caller decides what is stale.
    """

    @abstractmethod
    async def save_config(self, config: BusinessConfigCache) -> None:
        pass

    @abstractmethod
    async def load_config(self, business_id: str) -> Optional[BusinessConfigCache]:
        """The cached config for a business, or None if never cached."""
        pass


class StorageError(Exception):
    """Base exception for local store operations."""
    pass


class StorageUnavailable(StorageError):
    """The device store could not be opened. Callers degrade, never crash."""
    pass
