"""
Connectivity / Trigger Controller

Bridges the three ways a drain can be requested into the sync engine:
1. The device comes back online (once per offline -> online transition)
2. The user presses "sync now"
3. A periodic timer

CRITICAL: At most one drain cycle runs at a time. A trigger arriving while
a drain is in flight is dropped, not queued; the running drain already
covers whatever it would have sent.

The guard is a plain in-process flag. Everything runs on one asyncio loop
and the test-and-set below has no await in between, so no lock is needed.
"""

import asyncio
from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from daybook.audit import AuditLogger
from daybook.config import get_settings
from daybook.models.sync import SyncOutcome, SyncStatus
from daybook.services.connectivity import ConnectivitySource
from daybook.sync.engine import SyncEngine


logger = structlog.get_logger(__name__)

PERIODIC_SYNC_JOB_ID = "daybook-periodic-sync"
CONNECTIVITY_CHECK_JOB_ID = "daybook-connectivity-check"


class SyncController:
    """
    Single entry point for starting drain cycles.
    """

    def __init__(
        self,
        engine: SyncEngine,
        connectivity: ConnectivitySource,
        audit_logger: Optional[AuditLogger] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
        periodic_interval_seconds: Optional[int] = None,
        connectivity_check_seconds: Optional[int] = None,
    ):
        self._engine = engine
        self._connectivity = connectivity
        self._audit_logger = audit_logger or AuditLogger()
        self._scheduler = scheduler

        if periodic_interval_seconds is None or connectivity_check_seconds is None:
            settings = get_settings().sync
            if periodic_interval_seconds is None:
                periodic_interval_seconds = settings.periodic_interval_seconds
            if connectivity_check_seconds is None:
                connectivity_check_seconds = settings.connectivity_check_seconds
        self._periodic_interval = periodic_interval_seconds
        self._connectivity_interval = connectivity_check_seconds

        self._draining = False
        self._was_online = connectivity.is_online()
        self._started = False

    @property
    def is_syncing(self) -> bool:
        return self._draining

    def status(self) -> SyncStatus:
        """Snapshot for status indicators."""
        return SyncStatus(
            is_online=self._connectivity.is_online(),
            is_syncing=self._draining,
            pending_count=self._engine.pending_count,
            last_result=self._engine.last_result,
        )

    async def sync_now(self) -> Optional[SyncOutcome]:
        """
        Run one drain cycle if none is running and the device is online.

        Returns:
            The cycle outcome, or None if the trigger was a no-op or the
            drain failed unexpectedly
        """
        if self._draining:
            await self._audit_logger.log_drain_skipped("drain already running")
            return None
        if not self._connectivity.is_online():
            await self._audit_logger.log_drain_skipped("offline")
            return None

        self._draining = True
        try:
            return await self._engine.run_cycle()
        except Exception as e:
            # Never raise into scheduler jobs or connectivity listeners
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": "sync_now"},
            )
            return None
        finally:
            self._draining = False

    async def handle_connectivity_change(self, online: bool) -> None:
        """
        Connectivity listener. Drains exactly once per offline -> online
        transition; repeated "online" notifications are ignored.
        """
        was_online = self._was_online
        self._was_online = online
        if online == was_online:
            return

        await self._audit_logger.log_connectivity_changed(online)
        if online:
            await self.sync_now()

    async def start(self) -> None:
        """
        Subscribe to connectivity events and schedule periodic work.

        Must be awaited from inside the running event loop.
        """
        if self._started:
            return
        self._connectivity.add_listener(self.handle_connectivity_change)
        await self._engine.refresh_pending_count()

        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler()

        job_defaults = {
            "max_instances": 1,  # never overlap with ourselves
            "coalesce": True,    # missed runs collapse into one
            "replace_existing": True,
        }
        if self._periodic_interval > 0:
            self._scheduler.add_job(
                self.sync_now,
                "interval",
                seconds=self._periodic_interval,
                id=PERIODIC_SYNC_JOB_ID,
                **job_defaults,
            )
        check = getattr(self._connectivity, "check", None)
        if check is not None:
            self._scheduler.add_job(
                check,
                "interval",
                seconds=self._connectivity_interval,
                id=CONNECTIVITY_CHECK_JOB_ID,
                **job_defaults,
            )

        if not self._scheduler.running:
            self._scheduler.start()
        self._started = True
        logger.info(
            "sync_controller_started",
            periodic_interval=self._periodic_interval,
            connectivity_interval=self._connectivity_interval,
            pending=self._engine.pending_count,
        )

    async def shutdown(self) -> None:
        """Stop scheduled work and unsubscribe. A running drain is not interrupted."""
        if not self._started:
            return
        self._connectivity.remove_listener(self.handle_connectivity_change)
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            # AsyncIOScheduler applies shutdown on the next loop iteration
            await asyncio.sleep(0)
        self._started = False
        logger.info("sync_controller_stopped")
