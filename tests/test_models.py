"""
Tests for Daybook Sync

Test strategy:
1. Unit tests for individual components (models, row builders, scheduler)
2. Integration tests for sync flows (SQLite queue, in-memory remote)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from daybook.models.entry import (
    IncomeAmount,
    PendingEntry,
    parse_count,
    parse_number,
)
from daybook.models.settlement import IncomeSource
from daybook.settlement import schedule_settlement
from daybook.models.sync import SyncOutcome, SyncResult
from daybook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestParsing:
    """Lenient parsing of captured values."""

    @pytest.mark.parametrize("raw,expected", [
        ("1500", Decimal("1500")),
        ("12.5kg", Decimal("12.5")),
        ("  42 ", Decimal("42")),
        (".5", Decimal("0.5")),
        ("-3", Decimal("-3")),
        (7, Decimal("7")),
        (2.25, Decimal("2.25")),
    ])
    def test_parse_number(self, raw, expected):
        """The numeric prefix of a value is used."""
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", None, "0", 0, float("nan"), True])
    def test_parse_number_falls_back_to_default(self, raw):
        """Empty, non-numeric and zero values give the default."""
        assert parse_number(raw) == Decimal("0")
        assert parse_number(raw, default=Decimal("1")) == Decimal("1")

    def test_parse_count(self):
        """Order counts are truncated integers, never raising."""
        assert parse_count("12") == 12
        assert parse_count("3.9") == 3
        assert parse_count(4.7) == 4
        assert parse_count("") == 0
        assert parse_count(None) == 0
        assert parse_count(float("inf")) == 0


class TestPendingEntry:
    """Tests for the queued entry model."""

    def test_defaults(self):
        """Id and timestamp are generated at capture."""
        entry = PendingEntry(business_id="biz-1")

        assert entry.id
        assert entry.timestamp > 0
        assert entry.core_fields == {}
        assert entry.user_id is None

    def test_ids_are_unique(self):
        """Two captures never share an id."""
        assert PendingEntry(business_id="biz-1").id != PendingEntry(business_id="biz-1").id

    def test_immutable(self):
        """A queued entry cannot be edited in place."""
        entry = PendingEntry(business_id="biz-1")
        with pytest.raises(ValidationError):
            entry.business_id = "biz-2"

    def test_requires_business(self):
        """An entry always belongs to a business."""
        with pytest.raises(ValidationError):
            PendingEntry(business_id="")

    @pytest.mark.parametrize("raw,expected", [
        ("2024-03-01", date(2024, 3, 1)),
        ("2024-03-01T00:00:00Z", date(2024, 3, 1)),
        ("", None),
        ("yesterday", None),
        ("2024-02-30", None),
    ])
    def test_entry_date(self, raw, expected):
        """entry_date parses the ISO date in core_fields."""
        entry = PendingEntry(business_id="biz-1", core_fields={"entry_date": raw})
        assert entry.entry_date == expected

    def test_keeps_raw_values(self):
        """Captured values are stored exactly as typed."""
        entry = PendingEntry(
            business_id="biz-1",
            id=str(uuid4()),
            core_fields={"total_register": "1,500"},
            income_breakdown={"card": IncomeAmount(amount="100.10", orders_count=3)},
        )
        assert entry.core_fields["total_register"] == "1,500"
        assert entry.income_breakdown["card"].amount == "100.10"


class TestIncomeSource:
    """Reference data for settlement."""

    def test_commission_defaults(self):
        """Missing or blank commission rates are zero."""
        assert IncomeSource(id="a").commission_rate == Decimal("0")
        assert IncomeSource(id="a", commission_rate="").commission_rate == Decimal("0")
        assert IncomeSource(id="a", commission_rate=None).commission_rate == Decimal("0")

    def test_unknown_fields_ignored(self):
        """Extra columns from the remote table are dropped."""
        source = IncomeSource(id="a", name="Card", color="#fff", is_active=True)
        assert source.name == "Card"

    def test_unused_policy_fields_never_invalidate(self):
        """A stray weekday on a monthly source is ignored, not rejected."""
        source = IncomeSource(
            id="a",
            settlement_type="monthly",
            settlement_day_of_month=5,
            settlement_day_of_week=7,
        )
        assert schedule_settlement(date(2024, 1, 31), source) == date(2024, 2, 5)


class TestSyncOutcome:
    """Classification of a drain cycle."""

    @pytest.mark.parametrize("attempted,committed,expected", [
        (0, 0, SyncResult.NONE),
        (3, 3, SyncResult.SUCCESS),
        (3, 2, SyncResult.PARTIAL),
        (3, 0, SyncResult.ERROR),
    ])
    def test_classify(self, attempted, committed, expected):
        """success, partial and error follow the committed count."""
        outcome = SyncOutcome(attempted=attempted, committed=committed)
        assert outcome.classify() == expected


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ENTRY_QUEUED,
            description="Entry queued",
        )
        assert event.event_type == AuditEventType.ENTRY_QUEUED
        assert event.severity == AuditSeverity.INFO

    def test_to_log_dict(self):
        """Log dicts are plain JSON-friendly values."""
        correlation_id = uuid4()
        event = AuditEventBuilder.drain_started(3, correlation_id)

        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "drain_started"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"] == {"pending": 3}

    def test_rejected_entry_keeps_payload(self):
        """A dropped entry can be recovered from the audit log."""
        entry = PendingEntry(business_id="biz-1", core_fields={"entry_date": "bad"})
        payload = entry.model_dump(mode="json")

        event = AuditEventBuilder.entry_rejected(entry.id, "no entry_date", payload, None)

        assert event.severity == AuditSeverity.ERROR
        assert event.details["payload"]["id"] == entry.id

    @pytest.mark.parametrize("result,severity", [
        ("success", AuditSeverity.INFO),
        ("partial", AuditSeverity.WARNING),
        ("error", AuditSeverity.ERROR),
    ])
    def test_drain_completed_severity(self, result, severity):
        """Drain results map onto log levels."""
        event = AuditEventBuilder.drain_completed(result, {"attempted": 1}, uuid4())
        assert event.severity == severity
        assert event.details["result"] == result
