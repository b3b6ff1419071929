"""
Audit Logger

DESIGN DECISION: Every step of the offline pipeline is logged.
This provides:
1. Traceability of every captured day until it lands remotely
2. Debugging capability for partial drains
3. A last-resort record of payloads that had to be dropped

The audit logger:
- Is async so flows can await it uniformly
- Never raises into the caller (logging must not break a drain)
- Supports correlation IDs to group the events of one drain cycle
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from daybook.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """Central audit logging service (structured local log)."""

    def __init__(self, logger_name: str = "daybook.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event at the level matching its severity.

        Returns False if the event could not be written.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
            return True
        except Exception as e:
            # Audit failures are reported once and otherwise ignored
            try:
                self._logger.error(
                    "audit_log_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
            except Exception:
                pass
            return False

    async def log_entry_queued(
        self,
        entry_id: str,
        business_id: str,
        entry_date: Optional[str],
    ) -> None:
        await self.log(AuditEventBuilder.entry_queued(entry_id, business_id, entry_date))

    async def log_entry_lost(self, entry_id: str, reason: str, payload: dict) -> None:
        await self.log(AuditEventBuilder.entry_lost(entry_id, reason, payload))

    async def log_storage_unavailable(self, operation: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.storage_unavailable(operation, error_message))

    async def log_config_cached(self, business_id: str, income_sources: int) -> None:
        await self.log(AuditEventBuilder.config_cached(business_id, income_sources))

    async def log_entry_submitted(
        self,
        entry_id: str,
        remote_id: str,
        sub_records: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a committed entry with the number of sub-records sent per kind."""
        await self.log(AuditEventBuilder.entry_submitted(
            entry_id=entry_id,
            remote_id=remote_id,
            sub_records=sub_records,
            correlation_id=correlation_id,
        ))

    async def log_entry_duplicate(
        self,
        entry_id: str,
        entry_date: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entry_duplicate(entry_id, entry_date, correlation_id))

    async def log_entry_submission_failed(
        self,
        entry_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entry_submission_failed(
            entry_id, error_message, correlation_id,
        ))

    async def log_entry_rejected(
        self,
        entry_id: str,
        reason: str,
        payload: dict,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entry_rejected(entry_id, reason, payload, correlation_id))

    async def log_drain_started(self, pending: int, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.drain_started(pending, correlation_id))

    async def log_drain_completed(
        self,
        result: str,
        counts: dict[str, int],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.drain_completed(result, counts, correlation_id))

    async def log_drain_skipped(self, reason: str) -> None:
        await self.log(AuditEventBuilder.drain_skipped(reason))

    async def log_connectivity_changed(self, online: bool) -> None:
        await self.log(AuditEventBuilder.connectivity_changed(online))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a drain cycle and pass it through
    every submission made during that cycle.
    """
    return uuid4()
