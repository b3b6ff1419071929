"""
Offline sync: draining the queue, triggering drains, and capturing entries.
"""

from daybook.sync.engine import (
    InvalidEntryError,
    SyncEngine,
    build_daily_entry_record,
    build_income_rows,
    build_parameter_rows,
    build_product_usage_rows,
    build_receipt_rows,
)
from daybook.sync.controller import (
    CONNECTIVITY_CHECK_JOB_ID,
    PERIODIC_SYNC_JOB_ID,
    SyncController,
)
from daybook.sync.capture import EntryRecorder

__all__ = [
    "InvalidEntryError",
    "SyncEngine",
    "build_daily_entry_record",
    "build_income_rows",
    "build_parameter_rows",
    "build_product_usage_rows",
    "build_receipt_rows",
    "CONNECTIVITY_CHECK_JOB_ID",
    "PERIODIC_SYNC_JOB_ID",
    "SyncController",
    "EntryRecorder",
]
