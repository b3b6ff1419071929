"""
Main Orchestrator for Daybook Sync

Ties the queue, the remote store, connectivity and the audit log together
into the three components the application talks to:
1. EntryRecorder  - capture a day's entry (direct submit or queue)
2. SyncController - "sync now", reconnect and periodic drains
3. SyncEngine     - pending count and last drain result for status display

DESIGN DECISION: All components share one SqliteDatabase, one AuditLogger
and one ConnectivitySource. The remote backend is chosen by
APP_REMOTE_BACKEND; a backend that is not configured is a startup error,
since entries queued against no remote would never drain.
"""

from typing import Optional

import structlog

from daybook.audit import AuditLogger
from daybook.config import get_settings
from daybook.services.connectivity import ConnectivitySource, TcpProbeConnectivity
from daybook.services.queue import SqliteConfigCache, SqliteDatabase, SqliteQueueStore
from daybook.services.remote import (
    GoogleSheetsRemoteStore,
    RemoteStoreInterface,
    SupabaseRemoteStore,
)
from daybook.sync import EntryRecorder, SyncController, SyncEngine


logger = structlog.get_logger(__name__)


def create_remote_store(backend: Optional[str] = None) -> RemoteStoreInterface:
    """
    Build the configured remote backend.

    Raises:
        ValueError: Unknown backend name
        pydantic.ValidationError: The backend's settings are missing
    """
    backend = backend or get_settings().app.remote_backend
    try:
        if backend == "supabase":
            return SupabaseRemoteStore()
        if backend == "google_sheets":
            return GoogleSheetsRemoteStore()
    except Exception as e:
        logger.error("remote_store_not_configured", backend=backend, error=str(e))
        raise
    raise ValueError(f"Unknown remote backend: {backend}")


def create_app_components(
    remote_store: Optional[RemoteStoreInterface] = None,
    connectivity: Optional[ConnectivitySource] = None,
    db_path: Optional[str] = None,
) -> tuple[EntryRecorder, SyncController, SyncEngine]:
    """
    Factory function to create all application components.

    Args:
        remote_store: Remote backend to use. Built from settings if omitted.
        connectivity: Connectivity source. A TCP probe if omitted.
        db_path: SQLite file for the queue. DAYBOOK_QUEUE_DB_PATH if omitted.

    Returns:
        (recorder, controller, engine). Call `await controller.start()`
        from inside the event loop to begin scheduled work.
    """
    audit_logger = AuditLogger()

    database = SqliteDatabase(db_path)
    queue_store = SqliteQueueStore(database)
    config_cache = SqliteConfigCache(database)

    remote_store = remote_store or create_remote_store()
    connectivity = connectivity or TcpProbeConnectivity()

    engine = SyncEngine(queue_store, remote_store, audit_logger=audit_logger)
    controller = SyncController(engine, connectivity, audit_logger=audit_logger)
    recorder = EntryRecorder(
        queue_store,
        engine,
        connectivity,
        config_cache=config_cache,
        audit_logger=audit_logger,
    )

    logger.info(
        "app_components_created",
        db_path=database.db_path,
        remote=type(remote_store).__name__,
    )
    return recorder, controller, engine
