"""
Entry Capture

The path a freshly recorded day takes: straight to the remote store when
that is safe, otherwise into the durable queue.

CRITICAL: An entry is only submitted directly when the device is online
AND the queue is empty. With older entries still waiting, a direct submit
would overtake them and break capture order, so the new entry is queued
behind them instead.

If the queue itself cannot be written, the entry is tried once directly
(when online). An entry that cannot be queued or submitted is reported as
lost and its full payload goes to the audit log at error level, so the
data can still be recovered by hand.
"""

from typing import Optional

from daybook.audit import AuditLogger
from daybook.models.entry import BusinessConfigCache, PendingEntry
from daybook.models.sync import CaptureResult, SubmissionResult
from daybook.services.connectivity import ConnectivitySource
from daybook.services.queue import (
    ConfigCacheInterface,
    QueueStoreInterface,
    StorageError,
)
from daybook.sync.engine import InvalidEntryError, SyncEngine


class EntryRecorder:
    """
    Capture entries and cache reference configuration for offline use.
    """

    def __init__(
        self,
        queue_store: QueueStoreInterface,
        engine: SyncEngine,
        connectivity: ConnectivitySource,
        config_cache: Optional[ConfigCacheInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._queue = queue_store
        self._engine = engine
        self._connectivity = connectivity
        self._config_cache = config_cache
        self._audit_logger = audit_logger or AuditLogger()

    async def record(self, entry: PendingEntry) -> CaptureResult:
        """
        Capture one entry.

        Returns:
            SUBMITTED or DUPLICATE when sent directly, QUEUED when stored for
            a later drain, LOST when neither was possible

        Raises:
            InvalidEntryError: The entry has no valid entry_date
        """
        if entry.entry_date is None:
            raise InvalidEntryError(
                f"Entry {entry.id} has no valid entry_date: {entry.core_fields.get('entry_date')!r}"
            )

        online = self._connectivity.is_online()

        try:
            pending = await self._queue.count()
        except StorageError as e:
            await self._audit_logger.log_storage_unavailable("count", str(e))
            return await self._submit_or_lose(entry, online, reason=str(e))

        if online and pending == 0:
            result = await self._try_submit(entry)
            if result is not None:
                return result

        try:
            await self._queue.enqueue(entry)
        except StorageError as e:
            await self._audit_logger.log_storage_unavailable("enqueue", str(e))
            # A direct submit was already tried if we got here with an empty queue
            attempted = online and pending == 0
            return await self._submit_or_lose(
                entry, online and not attempted, reason=str(e),
            )

        await self._audit_logger.log_entry_queued(
            entry_id=entry.id,
            business_id=entry.business_id,
            entry_date=entry.entry_date.isoformat(),
        )
        await self._engine.refresh_pending_count()
        return CaptureResult.QUEUED

    async def _try_submit(self, entry: PendingEntry) -> Optional[CaptureResult]:
        """Submit directly. Returns None on a transient failure."""
        try:
            result = await self._engine.submit_entry(entry)
        except Exception as e:
            await self._audit_logger.log_entry_submission_failed(
                entry_id=entry.id,
                error_message=f"{type(e).__name__}: {e}",
            )
            return None

        if result == SubmissionResult.DUPLICATE:
            return CaptureResult.DUPLICATE
        return CaptureResult.SUBMITTED

    async def _submit_or_lose(
        self,
        entry: PendingEntry,
        may_submit: bool,
        reason: str,
    ) -> CaptureResult:
        if may_submit:
            result = await self._try_submit(entry)
            if result is not None:
                return result
            reason = f"queue unavailable and direct submit failed: {reason}"
        else:
            reason = f"queue unavailable: {reason}"

        await self._audit_logger.log_entry_lost(
            entry_id=entry.id,
            reason=reason,
            payload=entry.model_dump(mode="json"),
        )
        return CaptureResult.LOST

    # =========================================================================
    # CONFIG CACHE
    # =========================================================================

    async def cache_config(self, config: BusinessConfigCache) -> None:
        """Store reference configuration for offline use. No-op if storage is down."""
        if self._config_cache is None:
            return
        try:
            await self._config_cache.save_config(config)
        except StorageError as e:
            await self._audit_logger.log_storage_unavailable("save_config", str(e))
            return
        await self._audit_logger.log_config_cached(
            config.business_id, len(config.income_sources),
        )

    async def load_config(self, business_id: str) -> Optional[BusinessConfigCache]:
        if self._config_cache is None:
            return None
        try:
            return await self._config_cache.load_config(business_id)
        except StorageError as e:
            await self._audit_logger.log_storage_unavailable("load_config", str(e))
            return None
