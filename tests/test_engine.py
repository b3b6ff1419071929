"""
Tests for the sync engine.

Integration-style: real SQLite queue in tmp_path, in-memory remote.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from daybook.models.entry import IncomeAmount, PendingEntry, ProductUsage
from daybook.models.sync import SubmissionResult, SyncResult
from daybook.services.queue import StorageError
from daybook.sync import (
    InvalidEntryError,
    build_daily_entry_record,
    build_income_rows,
    build_parameter_rows,
    build_product_usage_rows,
    build_receipt_rows,
)

from conftest import make_entry


def enqueue_all(queue_store, *entries):
    async def run():
        for entry in entries:
            await queue_store.enqueue(entry)
    asyncio.run(run())


class TestRowBuilders:
    """Turning a PendingEntry into remote rows."""

    def test_primary_record(self):
        """Core fields are parsed leniently; day factor defaults to 1."""
        entry = make_entry(
            "2024-03-01",
            core_fields={"labor_cost": "320.5", "labor_hours": 16, "discounts": ""},
            user_id="user-1",
        )

        record = build_daily_entry_record(entry)

        assert record.entry_date == date(2024, 3, 1)
        assert record.total_register == Decimal("1500")
        assert record.labor_cost == Decimal("320.5")
        assert record.labor_hours == Decimal("16")
        assert record.discounts == Decimal("0")
        assert record.day_factor == Decimal("1")
        assert record.manager_daily_cost == Decimal("0")
        assert record.created_by == "user-1"

    def test_primary_record_requires_date(self):
        """No parseable entry_date means the entry can never be submitted."""
        with pytest.raises(InvalidEntryError):
            build_daily_entry_record(make_entry("31/02/2024"))

    def test_income_kept_when_amount_or_orders(self):
        """An income row needs a positive amount or a positive order count."""
        entry = make_entry(income_breakdown={
            "card": IncomeAmount(amount="100", orders_count="0"),
            "delivery": IncomeAmount(amount="0", orders_count="4"),
            "cash": IncomeAmount(amount="", orders_count=""),
        })

        rows = build_income_rows(entry, "remote-1")

        assert [(r.income_source_id, r.amount, r.orders_count) for r in rows] == [
            ("card", Decimal("100"), 0),
            ("delivery", Decimal("0"), 4),
        ]
        assert all(r.daily_entry_id == "remote-1" for r in rows)

    def test_zero_receipts_and_parameters_dropped(self):
        """Receipts and parameters with no positive value are not submitted."""
        entry = make_entry(
            receipts={"z-report": "45", "void": "0", "blank": None},
            custom_parameters={"covers": "80", "tables": 0},
        )

        assert [r.receipt_type_id for r in build_receipt_rows(entry, "r")] == ["z-report"]
        assert [p.parameter_id for p in build_parameter_rows(entry, "r")] == ["covers"]

    def test_product_usage_quantity(self):
        """Used quantity is opening + received - closing; all-zero rows dropped."""
        entry = make_entry(product_usage={
            "milk": ProductUsage(opening_stock="10", received_quantity="20", closing_stock="12"),
            "sugar": ProductUsage(opening_stock="0", received_quantity="", closing_stock=None),
        })

        rows = build_product_usage_rows(entry, "remote-1")

        assert len(rows) == 1
        assert rows[0].product_id == "milk"
        assert rows[0].quantity == Decimal("18")
        assert rows[0].unit_cost_at_time == Decimal("0")


class TestSubmitEntry:
    """Submitting one entry."""

    def test_submits_primary_and_non_empty_sub_records(self, engine, remote):
        """Only sub-record kinds with rows are sent."""
        entry = make_entry(product_usage={
            "milk": ProductUsage(opening_stock="10", received_quantity="20", closing_stock="12"),
        })

        result = asyncio.run(engine.submit_entry(entry))

        assert result == SubmissionResult.COMMITTED
        assert remote.call_names == [
            "create_daily_entry",
            "add_income_breakdown",
            "add_product_usage",
            "update_product_stock",
        ]
        assert remote.stock == {"milk": Decimal("12")}

    def test_duplicate_skips_sub_records(self, engine, remote):
        """An existing day is treated as committed without resending nested rows."""
        remote.existing.add(("biz-1", "2024-03-01"))

        result = asyncio.run(engine.submit_entry(make_entry("2024-03-01")))

        assert result == SubmissionResult.DUPLICATE
        assert remote.call_names == ["create_daily_entry"]


class TestRunCycle:
    """Whole drain cycles."""

    def test_partial_failure_keeps_only_failed_entry(self, engine, remote, queue_store):
        """Entries 1 and 3 commit, entry 2 stays queued, result is partial."""
        e1 = make_entry("2024-03-01", timestamp=1)
        e2 = make_entry("2024-03-02", timestamp=2)
        e3 = make_entry("2024-03-03", timestamp=3)
        enqueue_all(queue_store, e1, e2, e3)
        remote.fail_dates.add("2024-03-02")

        outcome = asyncio.run(engine.run_cycle())

        assert outcome.result == SyncResult.PARTIAL
        assert (outcome.attempted, outcome.committed, outcome.failed) == (3, 2, 1)
        assert outcome.pending_after == 1
        assert [e.id for e in asyncio.run(queue_store.list_pending())] == [e2.id]
        assert engine.pending_count == 1

    def test_submits_in_capture_order(self, engine, remote, queue_store):
        """The remote sees entries oldest capture first."""
        enqueue_all(
            queue_store,
            make_entry("2024-03-03", timestamp=30),
            make_entry("2024-03-01", timestamp=10),
            make_entry("2024-03-02", timestamp=20),
        )

        asyncio.run(engine.run_cycle())

        dates = [args.entry_date for name, args in remote.calls if name == "create_daily_entry"]
        assert dates == [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 3)]

    def test_all_committed_is_success(self, engine, queue_store):
        """Every entry committed empties the queue."""
        enqueue_all(queue_store, make_entry("2024-03-01", timestamp=1), make_entry("2024-03-02", timestamp=2))

        outcome = asyncio.run(engine.run_cycle())

        assert outcome.result == SyncResult.SUCCESS
        assert asyncio.run(queue_store.count()) == 0
        assert engine.last_result == SyncResult.SUCCESS

    def test_all_failed_is_error(self, engine, remote, queue_store):
        """Nothing committed is an error and nothing is removed."""
        enqueue_all(queue_store, make_entry("2024-03-01", timestamp=1))
        remote.fail_dates.add("2024-03-01")

        outcome = asyncio.run(engine.run_cycle())

        assert outcome.result == SyncResult.ERROR
        assert asyncio.run(queue_store.count()) == 1

    def test_empty_queue_is_none(self, engine, remote):
        """An empty queue attempts nothing and shows no result."""
        outcome = asyncio.run(engine.run_cycle())

        assert outcome.result == SyncResult.NONE
        assert remote.calls == []
        assert engine.last_result is None

    def test_duplicate_is_removed_and_counted_committed(self, engine, remote, queue_store):
        """Replaying an already-committed day removes it from the queue."""
        enqueue_all(queue_store, make_entry("2024-03-01"))
        remote.existing.add(("biz-1", "2024-03-01"))

        outcome = asyncio.run(engine.run_cycle())

        assert outcome.result == SyncResult.SUCCESS
        assert outcome.duplicates == 1
        assert remote.call_names == ["create_daily_entry"]
        assert asyncio.run(queue_store.count()) == 0

    def test_nested_failure_then_replay_does_not_duplicate(self, engine, remote, queue_store):
        """A retried entry whose primary record landed is not resubmitted."""
        enqueue_all(queue_store, make_entry("2024-03-01"))
        remote.fail_sub_records = True

        first = asyncio.run(engine.run_cycle())
        remote.fail_sub_records = False
        second = asyncio.run(engine.run_cycle())

        assert first.result == SyncResult.ERROR
        assert second.result == SyncResult.SUCCESS
        assert second.duplicates == 1
        assert len(remote.daily_entries) == 1
        assert asyncio.run(queue_store.count()) == 0

    def test_invalid_entry_is_rejected_and_removed(self, engine, remote, queue_store):
        """An entry without a date never blocks later drains."""
        bad = PendingEntry(business_id="biz-1", timestamp=1, core_fields={"entry_date": ""})
        good = make_entry("2024-03-02", timestamp=2)
        enqueue_all(queue_store, bad, good)

        outcome = asyncio.run(engine.run_cycle())

        assert outcome.rejected == 1
        assert outcome.committed == 1
        assert outcome.result == SyncResult.PARTIAL
        assert asyncio.run(queue_store.count()) == 0

    def test_result_clears_after_display_window(self, engine, queue_store, clock):
        """The last result is visible for five seconds only."""
        enqueue_all(queue_store, make_entry())
        asyncio.run(engine.run_cycle())

        clock.now += 4.9
        assert engine.last_result == SyncResult.SUCCESS
        clock.now += 0.2
        assert engine.last_result is None

    def test_new_cycle_clears_previous_result(self, engine, queue_store):
        """Starting a drain hides the previous result."""
        enqueue_all(queue_store, make_entry())
        asyncio.run(engine.run_cycle())

        asyncio.run(engine.run_cycle())

        assert engine.last_result is None


class TestPendingCount:
    """Observable queue size."""

    def test_refresh(self, engine, queue_store):
        """refresh_pending_count re-reads the queue."""
        enqueue_all(queue_store, make_entry("2024-03-01", timestamp=1), make_entry("2024-03-02", timestamp=2))

        assert asyncio.run(engine.refresh_pending_count()) == 2
        assert engine.pending_count == 2

    def test_storage_failure_keeps_previous_count(self, engine, queue_store, monkeypatch):
        """A failing count does not reset the displayed value."""
        enqueue_all(queue_store, make_entry())
        asyncio.run(engine.refresh_pending_count())

        async def broken_count():
            raise StorageError("disk gone")

        monkeypatch.setattr(queue_store, "count", broken_count)

        assert asyncio.run(engine.refresh_pending_count()) == 1

    def test_unreadable_queue_is_error(self, engine, queue_store, monkeypatch):
        """A queue that cannot be listed ends the cycle with an error."""
        async def broken_list():
            raise StorageError("disk gone")

        monkeypatch.setattr(queue_store, "list_pending", broken_list)

        assert asyncio.run(engine.run_cycle()).result == SyncResult.ERROR
