"""Services package."""

from daybook.services.connectivity import (
    ConnectivitySource,
    TcpProbeConnectivity,
)
from daybook.services.queue import (
    ConfigCacheInterface,
    QueueStoreInterface,
    SqliteConfigCache,
    SqliteDatabase,
    SqliteQueueStore,
    StorageError,
    StorageUnavailable,
)
from daybook.services.remote import (
    DuplicateRemoteRecord,
    GoogleSheetsClient,
    GoogleSheetsRemoteStore,
    RemoteError,
    RemoteStoreInterface,
    SupabaseRemoteStore,
    TransientSubmissionFailure,
)

__all__ = [
    # Connectivity
    "ConnectivitySource",
    "TcpProbeConnectivity",
    # Queue store
    "ConfigCacheInterface",
    "QueueStoreInterface",
    "SqliteConfigCache",
    "SqliteDatabase",
    "SqliteQueueStore",
    "StorageError",
    "StorageUnavailable",
    # Remote store
    "DuplicateRemoteRecord",
    "GoogleSheetsClient",
    "GoogleSheetsRemoteStore",
    "RemoteError",
    "RemoteStoreInterface",
    "SupabaseRemoteStore",
    "TransientSubmissionFailure",
]
