"""
Data Models Package

This package contains all Pydantic models used by Daybook Sync.
Everything queued, submitted or reported conforms to these schemas.
"""

from daybook.models.entry import (
    BusinessConfigCache,
    DailyEntryRecord,
    IncomeAmount,
    IncomeBreakdownRow,
    ParameterRow,
    PendingEntry,
    ProductUsage,
    ProductUsageRow,
    ReceiptRow,
    parse_count,
    parse_number,
)
from daybook.models.settlement import (
    DailyIncomeEntry,
    IncomeSource,
    SettledIncome,
    SettlementType,
)
from daybook.models.sync import (
    CaptureResult,
    SubmissionResult,
    SyncOutcome,
    SyncResult,
    SyncStatus,
)
from daybook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entry models
    "BusinessConfigCache",
    "DailyEntryRecord",
    "IncomeAmount",
    "IncomeBreakdownRow",
    "ParameterRow",
    "PendingEntry",
    "ProductUsage",
    "ProductUsageRow",
    "ReceiptRow",
    "parse_count",
    "parse_number",
    # Settlement models
    "DailyIncomeEntry",
    "IncomeSource",
    "SettledIncome",
    "SettlementType",
    # Sync models
    "CaptureResult",
    "SubmissionResult",
    "SyncOutcome",
    "SyncResult",
    "SyncStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
