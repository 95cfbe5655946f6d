"""Tests for the in-memory bookmark overlay over a record store."""

from __future__ import annotations

import asyncio
import logging

import pytest

from job_browser.errors import StorageError
from job_browser.services.bookmark_service import BookmarkOverlay, HydrationResult


@pytest.fixture
def overlay(record_store):
    return BookmarkOverlay(record_store)


@pytest.mark.asyncio
async def test_unknown_ids_read_as_not_saved(overlay):
    assert overlay.is_saved("anything") is False
    assert overlay.known_ids() == frozenset()


@pytest.mark.asyncio
async def test_hydrate_reads_store_once_per_id(overlay, record_store, make_record):
    record_store.records["b"] = make_record("b")

    result = await overlay.hydrate(["a", "b", "a"])

    assert result.loaded == {"a": False, "b": True}
    assert result.ok
    assert record_store.exists_calls == ["a", "b"]
    assert overlay.saved_ids() == frozenset({"b"})


@pytest.mark.asyncio
async def test_known_ids_are_not_read_again(overlay, record_store):
    await overlay.hydrate(["a"])
    result = await overlay.hydrate(["a", "b"])

    assert record_store.exists_calls == ["a", "b"]
    assert result.loaded == {"b": False}


@pytest.mark.asyncio
async def test_empty_hydrate_is_noop(overlay, record_store):
    result = await overlay.hydrate([])

    assert result == HydrationResult()
    assert record_store.exists_calls == []


@pytest.mark.asyncio
async def test_concurrent_hydrates_share_reads(overlay, record_store):
    record_store.read_delay = 0.01

    first, second = await asyncio.gather(
        overlay.hydrate(["a", "b"]),
        overlay.hydrate(["b", "c"]),
    )

    assert sorted(record_store.exists_calls) == ["a", "b", "c"]
    assert first.loaded.keys() == {"a", "b"}
    assert second.loaded.keys() == {"b", "c"}
    assert overlay.known_ids() == frozenset({"a", "b", "c"})


@pytest.mark.asyncio
async def test_partial_failure_keeps_successful_reads(overlay, record_store, caplog):
    record_store.fail_ids = {"bad"}

    with caplog.at_level(logging.WARNING, logger="job_browser.services.bookmark_service"):
        result = await overlay.hydrate(["good", "bad"])

    assert not result.ok
    assert result.loaded == {"good": False}
    assert isinstance(result.failed["bad"], StorageError)
    assert overlay.known_ids() == frozenset({"good"})
    assert "bad" in caplog.text


@pytest.mark.asyncio
async def test_failed_id_is_retried_on_next_hydrate(overlay, record_store):
    record_store.fail_ids = {"flaky"}
    await overlay.hydrate(["flaky"])

    record_store.fail_ids = set()
    result = await overlay.hydrate(["flaky"])

    assert result.ok
    assert record_store.exists_calls == ["flaky", "flaky"]


@pytest.mark.asyncio
async def test_unexpected_read_error_is_reported_as_failure(overlay, record_store):
    real_exists = record_store.exists

    async def broken(record_id):
        if record_id == "x":
            raise RuntimeError("bug")
        return await real_exists(record_id)

    record_store.exists = broken

    result = await overlay.hydrate(["x", "y"])

    assert result.loaded == {"y": False}
    assert isinstance(result.failed["x"], StorageError)
    assert isinstance(result.failed["x"].__cause__, RuntimeError)
    assert overlay.known_ids() == frozenset({"y"})
    assert overlay._pending == {}


@pytest.mark.asyncio
async def test_toggle_round_trip(overlay, record_store, make_record):
    record = make_record("job-1")

    assert await overlay.toggle("job-1", record) is True
    assert overlay.is_saved("job-1") is True
    assert record_store.records["job-1"] == record

    assert await overlay.toggle("job-1", record) is False
    assert overlay.is_saved("job-1") is False
    assert "job-1" not in record_store.records


@pytest.mark.asyncio
async def test_toggle_of_hydrated_saved_record_removes_it(overlay, record_store, make_record):
    record_store.records["job-1"] = make_record("job-1")
    await overlay.hydrate(["job-1"])

    assert await overlay.toggle("job-1", make_record("job-1")) is False
    assert record_store.records == {}


@pytest.mark.asyncio
async def test_failed_write_leaves_overlay_unchanged(overlay, record_store, make_record):
    record_store.fail_writes = True

    with pytest.raises(StorageError):
        await overlay.toggle("job-1", make_record("job-1"))

    assert overlay.is_saved("job-1") is False
    assert "job-1" not in overlay.known_ids()


@pytest.mark.asyncio
async def test_toggle_wins_over_in_flight_read(overlay, record_store, make_record):
    release = asyncio.Event()

    async def stale_exists(record_id):
        await release.wait()
        return False

    record_store.exists = stale_exists

    hydrate = asyncio.ensure_future(overlay.hydrate(["job-1"]))
    await asyncio.sleep(0)
    await overlay.toggle("job-1", make_record("job-1"))
    release.set()
    result = await hydrate

    assert overlay.is_saved("job-1") is True
    assert result.loaded == {"job-1": True}


@pytest.mark.asyncio
async def test_concurrent_toggles_serialize(overlay, record_store, make_record):
    record = make_record("job-1")

    results = await asyncio.gather(overlay.toggle("job-1", record), overlay.toggle("job-1", record))

    assert results == [True, False]
    assert overlay.is_saved("job-1") is False


@pytest.mark.asyncio
async def test_forget_forces_reread(overlay, record_store, make_record):
    await overlay.hydrate(["job-1"])
    record_store.records["job-1"] = make_record("job-1")

    overlay.forget(["job-1", "never-known"])
    await overlay.hydrate(["job-1"])

    assert overlay.is_saved("job-1") is True
    assert record_store.exists_calls == ["job-1", "job-1"]


@pytest.mark.asyncio
async def test_toggle_locks_are_released_after_use(overlay, make_record):
    records = [make_record(f"job-{n}") for n in range(5)]

    for record in records:
        await overlay.toggle(record.id, record)
    await asyncio.gather(*(overlay.toggle("job-0", records[0]) for _ in range(3)))

    assert overlay._toggle_locks == {}
    assert overlay._toggle_users == {}


@pytest.mark.asyncio
async def test_toggle_lock_released_after_failed_write(overlay, record_store, make_record):
    record_store.fail_writes = True

    with pytest.raises(StorageError):
        await overlay.toggle("job-1", make_record("job-1"))

    assert overlay._toggle_locks == {}
    assert overlay._toggle_users == {}
