"""
Shared fixtures and fakes.

No real network or spreadsheet calls in tests: the remote store and the
connectivity source are in-memory fakes, the queue is SQLite in tmp_path.
"""

import asyncio
from decimal import Decimal
from typing import Optional

import pytest

from daybook.audit import AuditLogger
from daybook.models.entry import (
    DailyEntryRecord,
    IncomeAmount,
    IncomeBreakdownRow,
    ParameterRow,
    PendingEntry,
    ProductUsageRow,
    ReceiptRow,
)
from daybook.services.connectivity import ConnectivitySource
from daybook.services.queue import SqliteConfigCache, SqliteDatabase, SqliteQueueStore
from daybook.services.remote import (
    DuplicateRemoteRecord,
    RemoteStoreInterface,
    TransientSubmissionFailure,
)
from daybook.sync import SyncEngine


class InMemoryRemoteStore(RemoteStoreInterface):
    """
    Remote store that records every call.

    fail_dates: entry dates whose primary record fails transiently.
    existing: (business_id, entry_date) pairs that already exist remotely.
    gate: if set, create_daily_entry waits on it before answering.
    """

    def __init__(self):
        self.calls: list[tuple[str, object]] = []
        self.daily_entries: dict[str, DailyEntryRecord] = {}
        self.income_rows: list[IncomeBreakdownRow] = []
        self.receipt_rows: list[ReceiptRow] = []
        self.parameter_rows: list[ParameterRow] = []
        self.usage_rows: list[ProductUsageRow] = []
        self.stock: dict[str, Decimal] = {}
        self.fail_dates: set[str] = set()
        self.fail_sub_records = False
        self.existing: set[tuple[str, str]] = set()
        self.gate: Optional[asyncio.Event] = None

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def create_daily_entry(self, record: DailyEntryRecord) -> str:
        self.calls.append(("create_daily_entry", record))
        if self.gate is not None:
            await self.gate.wait()
        key = (record.business_id, record.entry_date.isoformat())
        if record.entry_date.isoformat() in self.fail_dates:
            raise TransientSubmissionFailure(f"remote down for {key}")
        if key in self.existing:
            raise DuplicateRemoteRecord(f"{key} exists")
        self.existing.add(key)
        remote_id = f"remote-{len(self.daily_entries) + 1}"
        self.daily_entries[remote_id] = record
        return remote_id

    async def add_income_breakdown(self, rows):
        self.calls.append(("add_income_breakdown", rows))
        if self.fail_sub_records:
            raise TransientSubmissionFailure("sub-record insert failed")
        self.income_rows.extend(rows)

    async def add_receipts(self, rows):
        self.calls.append(("add_receipts", rows))
        self.receipt_rows.extend(rows)

    async def add_parameters(self, rows):
        self.calls.append(("add_parameters", rows))
        self.parameter_rows.extend(rows)

    async def add_product_usage(self, rows):
        self.calls.append(("add_product_usage", rows))
        self.usage_rows.extend(rows)

    async def update_product_stock(self, product_id, current_stock):
        self.calls.append(("update_product_stock", (product_id, current_stock)))
        self.stock[product_id] = current_stock


class FakeConnectivity(ConnectivitySource):
    """Connectivity source flipped by hand."""

    def __init__(self, online: bool = True):
        super().__init__()
        self._online = online

    def is_online(self) -> bool:
        return self._online

    async def set_online(self, online: bool) -> None:
        self._online = online
        await self._notify(online)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_entry(entry_date: str = "2024-03-01", timestamp: int = 1, **kwargs) -> PendingEntry:
    """A PendingEntry with one income source unless overridden."""
    business_id = kwargs.pop("business_id", "biz-1")
    core_fields = {"entry_date": entry_date, "total_register": "1500"}
    core_fields.update(kwargs.pop("core_fields", {}))
    kwargs.setdefault("income_breakdown", {"src-card": IncomeAmount(amount="1000", orders_count="12")})
    return PendingEntry(
        business_id=business_id,
        timestamp=timestamp,
        core_fields=core_fields,
        **kwargs,
    )


@pytest.fixture
def database(tmp_path):
    db = SqliteDatabase(str(tmp_path / "queue.db"), timeout=5)
    yield db
    db.close()


@pytest.fixture
def queue_store(database):
    return SqliteQueueStore(database)


@pytest.fixture
def config_cache(database):
    return SqliteConfigCache(database)


@pytest.fixture
def remote():
    return InMemoryRemoteStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def engine(queue_store, remote, audit_logger, clock):
    return SyncEngine(
        queue_store,
        remote,
        audit_logger=audit_logger,
        result_display_seconds=5.0,
        clock=clock,
    )
