"""
Audit Models for Daybook Sync

Every step an entry takes between capture and the remote store is logged.
This provides:
1. Traceability of each queued day (queued, submitted, retained, dropped)
2. The details behind the aggregate sync status shown to the user
3. A record of payloads that had to be dropped, so nothing vanishes silently

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Capture and queue
    ENTRY_QUEUED = "entry_queued"
    ENTRY_LOST = "entry_lost"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    CONFIG_CACHED = "config_cached"

    # Submission
    ENTRY_SUBMITTED = "entry_submitted"
    ENTRY_DUPLICATE = "entry_duplicate"
    ENTRY_SUBMISSION_FAILED = "entry_submission_failed"
    ENTRY_REJECTED = "entry_rejected"

    # Drain cycles
    DRAIN_STARTED = "drain_started"
    DRAIN_COMPLETED = "drain_completed"
    DRAIN_SKIPPED = "drain_skipped"

    # Environment
    CONNECTIVITY_CHANGED = "connectivity_changed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'pending_entry', 'drain', 'business')"
    )
    entity_id: Optional[str] = None

    # Correlation - all events of one drain cycle share an id
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_queued(entry_id, business_id, entry_date)
        event = AuditEventBuilder.drain_completed(result, counts, correlation_id)
    """

    @staticmethod
    def entry_queued(
        entry_id: str,
        business_id: str,
        entry_date: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_QUEUED,
            entity_type="pending_entry",
            entity_id=entry_id,
            description=f"Entry for {entry_date or 'unknown date'} queued for sync",
            details={"business_id": business_id, "entry_date": entry_date},
        )

    @staticmethod
    def entry_lost(
        entry_id: str,
        reason: str,
        payload: dict,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_LOST,
            severity=AuditSeverity.ERROR,
            entity_type="pending_entry",
            entity_id=entry_id,
            description="Entry could neither be queued nor submitted",
            error_message=reason,
            details={"payload": payload},
        )

    @staticmethod
    def storage_unavailable(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_UNAVAILABLE,
            severity=AuditSeverity.WARNING,
            entity_type="queue_store",
            description=f"Local store unavailable during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def config_cached(business_id: str, income_sources: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONFIG_CACHED,
            severity=AuditSeverity.DEBUG,
            entity_type="business",
            entity_id=business_id,
            description="Business configuration cached for offline use",
            details={"income_sources": income_sources},
        )

    @staticmethod
    def entry_submitted(
        entry_id: str,
        remote_id: str,
        sub_records: dict[str, int],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_SUBMITTED,
            entity_type="pending_entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry committed remotely as {remote_id}",
            details={"remote_id": remote_id, "sub_records": sub_records},
        )

    @staticmethod
    def entry_duplicate(
        entry_id: str,
        entry_date: Optional[str],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DUPLICATE,
            entity_type="pending_entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Day {entry_date} already exists remotely, treated as committed",
            details={"entry_date": entry_date},
        )

    @staticmethod
    def entry_submission_failed(
        entry_id: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_SUBMISSION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="pending_entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description="Submission failed, entry kept for next drain",
            error_message=error_message,
        )

    @staticmethod
    def entry_rejected(
        entry_id: str,
        reason: str,
        payload: dict,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_REJECTED,
            severity=AuditSeverity.ERROR,
            entity_type="pending_entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description="Entry can never be submitted and was dropped from the queue",
            error_message=reason,
            details={"payload": payload},
        )

    @staticmethod
    def drain_started(pending: int, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAIN_STARTED,
            entity_type="drain",
            correlation_id=correlation_id,
            description=f"Draining {pending} pending entries",
            details={"pending": pending},
        )

    @staticmethod
    def drain_completed(
        result: str,
        counts: dict[str, int],
        correlation_id: UUID,
    ) -> AuditEvent:
        severity = {
            "success": AuditSeverity.INFO,
            "partial": AuditSeverity.WARNING,
            "error": AuditSeverity.ERROR,
        }.get(result, AuditSeverity.INFO)
        return AuditEvent(
            event_type=AuditEventType.DRAIN_COMPLETED,
            severity=severity,
            entity_type="drain",
            correlation_id=correlation_id,
            description=f"Drain finished: {result}",
            details={"result": result, **counts},
        )

    @staticmethod
    def drain_skipped(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAIN_SKIPPED,
            severity=AuditSeverity.DEBUG,
            entity_type="drain",
            description=f"Drain not started: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def connectivity_changed(online: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONNECTIVITY_CHANGED,
            entity_type="device",
            description="Device is online" if online else "Device is offline",
            details={"online": online},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
