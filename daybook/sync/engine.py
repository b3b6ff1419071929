"""
Sync Engine

Drains the pending queue into the remote store.

FLOW (one drain cycle):
1. Read all pending entries, oldest capture first
2. For each entry, create the day's primary record
3. If the remote says that day already exists, the entry was committed
   by an earlier attempt: skip its sub-records
4. Otherwise submit the non-empty sub-records and move product stock
5. Remove the entry from the queue
6. Any other failure leaves the entry queued and moves on to the next one

DESIGN DECISION: Strictly sequential. Later entries may depend on stock
written by earlier ones, and the remote uniqueness constraint is per day,
so submitting in capture order is the simplest correct design. Once a
remote call has been issued we always wait for its outcome; a cancelled
call that may have landed would bring back the double-submit problem.

This engine is not re-entrant. SyncController is the only caller that
should start a cycle.
"""

import time
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from daybook.audit import AuditLogger, create_correlation_id
from daybook.config import get_settings
from daybook.models.entry import (
    DailyEntryRecord,
    IncomeBreakdownRow,
    ParameterRow,
    PendingEntry,
    ProductUsageRow,
    ReceiptRow,
    parse_count,
    parse_number,
)
from daybook.models.sync import SubmissionResult, SyncOutcome, SyncResult
from daybook.services.queue import QueueStoreInterface, StorageError
from daybook.services.remote import DuplicateRemoteRecord, RemoteStoreInterface


class InvalidEntryError(Exception):
    """The entry cannot be turned into a primary record, now or ever."""
    pass


# =============================================================================
# ROW BUILDERS - zero-valued rows are never submitted
# =============================================================================

def build_daily_entry_record(entry: PendingEntry) -> DailyEntryRecord:
    entry_date = entry.entry_date
    if entry_date is None:
        raise InvalidEntryError(
            f"Entry {entry.id} has no valid entry_date: {entry.core_fields.get('entry_date')!r}"
        )

    fields = entry.core_fields
    return DailyEntryRecord(
        business_id=entry.business_id,
        entry_date=entry_date,
        total_register=parse_number(fields.get("total_register")),
        labor_cost=parse_number(fields.get("labor_cost")),
        labor_hours=parse_number(fields.get("labor_hours")),
        discounts=parse_number(fields.get("discounts")),
        day_factor=parse_number(fields.get("day_factor"), default=Decimal("1")),
        created_by=entry.user_id or None,
    )


def build_income_rows(entry: PendingEntry, daily_entry_id: str) -> list[IncomeBreakdownRow]:
    rows = []
    for source_id, income in entry.income_breakdown.items():
        amount = parse_number(income.amount)
        orders_count = parse_count(income.orders_count)
        if amount > 0 or orders_count > 0:
            rows.append(IncomeBreakdownRow(
                daily_entry_id=daily_entry_id,
                income_source_id=source_id,
                amount=amount,
                orders_count=orders_count,
            ))
    return rows


def build_receipt_rows(entry: PendingEntry, daily_entry_id: str) -> list[ReceiptRow]:
    rows = []
    for receipt_type_id, value in entry.receipts.items():
        amount = parse_number(value)
        if amount > 0:
            rows.append(ReceiptRow(
                daily_entry_id=daily_entry_id,
                receipt_type_id=receipt_type_id,
                amount=amount,
            ))
    return rows


def build_parameter_rows(entry: PendingEntry, daily_entry_id: str) -> list[ParameterRow]:
    rows = []
    for parameter_id, raw in entry.custom_parameters.items():
        value = parse_number(raw)
        if value > 0:
            rows.append(ParameterRow(
                daily_entry_id=daily_entry_id,
                parameter_id=parameter_id,
                value=value,
            ))
    return rows


def build_product_usage_rows(entry: PendingEntry, daily_entry_id: str) -> list[ProductUsageRow]:
    rows = []
    for product_id, usage in entry.product_usage.items():
        opening = parse_number(usage.opening_stock)
        received = parse_number(usage.received_quantity)
        closing = parse_number(usage.closing_stock)
        if opening > 0 or received > 0 or closing > 0:
            rows.append(ProductUsageRow(
                daily_entry_id=daily_entry_id,
                product_id=product_id,
                opening_stock=opening,
                received_quantity=received,
                closing_stock=closing,
                quantity=opening + received - closing,
            ))
    return rows


# =============================================================================
# ENGINE
# =============================================================================

class SyncEngine:
    """
    Submits pending entries and keeps the observable sync state
    (pending count and last cycle result).
    """

    def __init__(
        self,
        queue_store: QueueStoreInterface,
        remote_store: RemoteStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        result_display_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._queue = queue_store
        self._remote = remote_store
        self._audit_logger = audit_logger or AuditLogger()
        if result_display_seconds is None:
            result_display_seconds = get_settings().sync.result_display_seconds
        self._display_window = result_display_seconds
        self._clock = clock

        self._pending_count = 0
        self._last_outcome: Optional[SyncOutcome] = None
        self._last_outcome_at: Optional[float] = None

    @property
    def pending_count(self) -> int:
        return self._pending_count

    @property
    def last_outcome(self) -> Optional[SyncOutcome]:
        """The last finished cycle, until the display window has passed."""
        if self._last_outcome is None or self._last_outcome_at is None:
            return None
        if self._clock() - self._last_outcome_at >= self._display_window:
            return None
        return self._last_outcome

    @property
    def last_result(self) -> Optional[SyncResult]:
        outcome = self.last_outcome
        return outcome.result if outcome else None

    def clear_last_result(self) -> None:
        self._last_outcome = None
        self._last_outcome_at = None

    async def refresh_pending_count(self) -> int:
        """Re-read the queue size. On storage failure the previous count stays."""
        try:
            self._pending_count = await self._queue.count()
        except StorageError as e:
            await self._audit_logger.log_storage_unavailable("count", str(e))
        return self._pending_count

    async def submit_entry(
        self,
        entry: PendingEntry,
        correlation_id: Optional[UUID] = None,
    ) -> SubmissionResult:
        """
        Submit one entry and its sub-records.

        Returns:
            COMMITTED, or DUPLICATE if the day already existed remotely

        Raises:
            InvalidEntryError: The entry can never be submitted
            Any remote failure, to be treated as transient by the caller
        """
        record = build_daily_entry_record(entry)

        try:
            remote_id = await self._remote.create_daily_entry(record)
        except DuplicateRemoteRecord:
            await self._audit_logger.log_entry_duplicate(
                entry_id=entry.id,
                entry_date=record.entry_date.isoformat(),
                correlation_id=correlation_id,
            )
            return SubmissionResult.DUPLICATE

        income_rows = build_income_rows(entry, remote_id)
        receipt_rows = build_receipt_rows(entry, remote_id)
        parameter_rows = build_parameter_rows(entry, remote_id)
        usage_rows = build_product_usage_rows(entry, remote_id)

        if income_rows:
            await self._remote.add_income_breakdown(income_rows)
        if receipt_rows:
            await self._remote.add_receipts(receipt_rows)
        if parameter_rows:
            await self._remote.add_parameters(parameter_rows)
        if usage_rows:
            await self._remote.add_product_usage(usage_rows)
            for row in usage_rows:
                await self._remote.update_product_stock(row.product_id, row.closing_stock)

        await self._audit_logger.log_entry_submitted(
            entry_id=entry.id,
            remote_id=remote_id,
            sub_records={
                "income_breakdown": len(income_rows),
                "receipts": len(receipt_rows),
                "parameters": len(parameter_rows),
                "product_usage": len(usage_rows),
            },
            correlation_id=correlation_id,
        )
        return SubmissionResult.COMMITTED

    async def run_cycle(self) -> SyncOutcome:
        """
        Run one drain cycle over the current queue.

        An empty queue returns a NONE outcome and leaves the displayed
        result untouched. Never raises.
        """
        correlation_id = create_correlation_id()
        outcome = SyncOutcome(correlation_id=correlation_id)
        self.clear_last_result()

        try:
            entries = await self._queue.list_pending()
        except StorageError as e:
            await self._audit_logger.log_storage_unavailable("list_pending", str(e))
            outcome.result = SyncResult.ERROR
            return await self._finish(outcome)

        if not entries:
            outcome.result = SyncResult.NONE
            return outcome

        await self._audit_logger.log_drain_started(len(entries), correlation_id)

        try:
            for entry in entries:
                outcome.attempted += 1
                await self._drain_one(entry, outcome)
        except Exception as e:
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            outcome.result = SyncResult.ERROR
            return await self._finish(outcome)

        outcome.result = outcome.classify()
        return await self._finish(outcome)

    async def _drain_one(self, entry: PendingEntry, outcome: SyncOutcome) -> None:
        correlation_id = outcome.correlation_id
        try:
            result = await self.submit_entry(entry, correlation_id)
        except InvalidEntryError as e:
            await self._audit_logger.log_entry_rejected(
                entry_id=entry.id,
                reason=str(e),
                payload=entry.model_dump(mode="json"),
                correlation_id=correlation_id,
            )
            outcome.rejected += 1
            await self._remove(entry, correlation_id)
            return
        except Exception as e:
            # One entry's failure never blocks the rest of the batch
            await self._audit_logger.log_entry_submission_failed(
                entry_id=entry.id,
                error_message=f"{type(e).__name__}: {e}",
                correlation_id=correlation_id,
            )
            outcome.failed += 1
            return

        await self._remove(entry, correlation_id)
        outcome.committed += 1
        if result == SubmissionResult.DUPLICATE:
            outcome.duplicates += 1

    async def _remove(self, entry: PendingEntry, correlation_id: UUID) -> None:
        try:
            await self._queue.remove(entry.id)
        except StorageError as e:
            # Still queued: the next drain hits the duplicate signal and removes it
            await self._audit_logger.log_error(
                error_type="queue_remove_failed",
                error_message=str(e),
                details={"entry_id": entry.id},
                correlation_id=correlation_id,
            )

    async def _finish(self, outcome: SyncOutcome) -> SyncOutcome:
        outcome.pending_after = await self.refresh_pending_count()
        outcome.finished_at = datetime.utcnow()
        self._last_outcome = outcome
        self._last_outcome_at = self._clock()

        await self._audit_logger.log_drain_completed(
            result=outcome.result.value,
            counts={
                "attempted": outcome.attempted,
                "committed": outcome.committed,
                "duplicates": outcome.duplicates,
                "failed": outcome.failed,
                "rejected": outcome.rejected,
                "pending_after": outcome.pending_after,
            },
            correlation_id=outcome.correlation_id,
        )
        return outcome
