"""
Tests for the capture path (EntryRecorder).
"""

import asyncio

import pytest

from daybook.models.entry import BusinessConfigCache, PendingEntry
from daybook.models.settlement import IncomeSource
from daybook.models.sync import CaptureResult
from daybook.services.queue import StorageError, StorageUnavailable
from daybook.sync import EntryRecorder, InvalidEntryError

from conftest import FakeConnectivity, make_entry


@pytest.fixture
def connectivity():
    return FakeConnectivity(online=True)


@pytest.fixture
def recorder(queue_store, engine, connectivity, config_cache, audit_logger):
    return EntryRecorder(
        queue_store,
        engine,
        connectivity,
        config_cache=config_cache,
        audit_logger=audit_logger,
    )


def break_queue(monkeypatch, queue_store, *methods):
    async def unavailable(*args, **kwargs):
        raise StorageUnavailable("no disk")

    for method in methods:
        monkeypatch.setattr(queue_store, method, unavailable)


class TestRecord:
    """Direct submit versus queueing."""

    def test_online_with_empty_queue_submits_directly(self, recorder, remote, queue_store):
        """Nothing is queued when the entry can go straight through."""
        result = asyncio.run(recorder.record(make_entry()))

        assert result == CaptureResult.SUBMITTED
        assert remote.call_names[0] == "create_daily_entry"
        assert asyncio.run(queue_store.count()) == 0

    def test_online_duplicate(self, recorder, remote):
        """An already existing day is reported as duplicate."""
        remote.existing.add(("biz-1", "2024-03-01"))

        assert asyncio.run(recorder.record(make_entry("2024-03-01"))) == CaptureResult.DUPLICATE

    def test_offline_queues(self, recorder, connectivity, remote, queue_store, engine):
        """Offline entries go to the queue and the pending count follows."""
        connectivity._online = False

        result = asyncio.run(recorder.record(make_entry()))

        assert result == CaptureResult.QUEUED
        assert remote.calls == []
        assert asyncio.run(queue_store.count()) == 1
        assert engine.pending_count == 1

    def test_online_behind_older_entries_queues(self, recorder, remote, queue_store):
        """A new entry never overtakes entries already waiting."""
        asyncio.run(queue_store.enqueue(make_entry("2024-03-01", timestamp=1)))

        result = asyncio.run(recorder.record(make_entry("2024-03-02", timestamp=2)))

        assert result == CaptureResult.QUEUED
        assert remote.calls == []
        assert asyncio.run(queue_store.count()) == 2

    def test_transient_failure_falls_back_to_queue(self, recorder, remote, queue_store):
        """A failed direct submit is kept for the next drain."""
        remote.fail_dates.add("2024-03-01")

        result = asyncio.run(recorder.record(make_entry("2024-03-01")))

        assert result == CaptureResult.QUEUED
        assert asyncio.run(queue_store.count()) == 1

    def test_invalid_entry_is_refused(self, recorder, queue_store):
        """An entry without a date is refused before anything is stored."""
        entry = PendingEntry(business_id="biz-1", core_fields={})

        with pytest.raises(InvalidEntryError):
            asyncio.run(recorder.record(entry))
        assert asyncio.run(queue_store.count()) == 0


class TestRecordWithoutStorage:
    """Queue unavailable."""

    def test_online_submits_directly(self, recorder, remote, queue_store, monkeypatch):
        """With no queue, an online entry is still sent."""
        break_queue(monkeypatch, queue_store, "count", "enqueue")

        assert asyncio.run(recorder.record(make_entry())) == CaptureResult.SUBMITTED
        assert remote.call_names.count("create_daily_entry") == 1

    def test_offline_is_lost(self, recorder, connectivity, queue_store, monkeypatch):
        """No queue and no network means the entry is lost (and logged)."""
        connectivity._online = False
        break_queue(monkeypatch, queue_store, "count", "enqueue")

        assert asyncio.run(recorder.record(make_entry())) == CaptureResult.LOST

    def test_failed_submit_and_failed_enqueue_is_lost(self, recorder, remote, queue_store, monkeypatch):
        """The direct submit is not retried a second time when enqueue fails."""
        remote.fail_dates.add("2024-03-01")
        break_queue(monkeypatch, queue_store, "enqueue")

        result = asyncio.run(recorder.record(make_entry("2024-03-01")))

        assert result == CaptureResult.LOST
        assert remote.call_names.count("create_daily_entry") == 1


class TestConfigCache:
    """Cached reference configuration."""

    def test_cache_and_load(self, recorder):
        """A cached config can be read back offline."""
        config = BusinessConfigCache(business_id="biz-1", income_sources=[IncomeSource(id="card")])

        async def run():
            await recorder.cache_config(config)
            return await recorder.load_config("biz-1")

        assert asyncio.run(run()) == config

    def test_storage_failure_degrades(self, recorder, config_cache, monkeypatch):
        """Saving is a no-op and loading returns None when storage fails."""
        async def broken(*args, **kwargs):
            raise StorageError("locked")

        monkeypatch.setattr(config_cache, "save_config", broken)
        monkeypatch.setattr(config_cache, "load_config", broken)

        async def run():
            await recorder.cache_config(BusinessConfigCache(business_id="biz-1"))
            return await recorder.load_config("biz-1")

        assert asyncio.run(run()) is None

    def test_corrupt_cached_config_reads_as_missing(self, recorder, database):
        """A cached row that no longer parses never escapes as an exception."""
        conn = database.connect()
        with conn:
            conn.execute(
                "INSERT INTO business_config (business_id, cached_at, payload) VALUES (?, ?, ?)",
                ("biz-1", "2024-03-01T08:00:00", "{not json"),
            )

        assert asyncio.run(recorder.load_config("biz-1")) is None
