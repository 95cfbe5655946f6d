"""Shared test fixtures for job browser tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

import pytest

from job_browser import FetchError, JobRecord, StorageError

# ── Fakes ────────────────────────────────────────────────────────────────────


class FakePageSource:
    """Page source serving canned pages, optionally gated or failing per page."""

    def __init__(self, pages: dict[int, list[JobRecord]] | None = None) -> None:
        self.pages = pages or {}
        self.failures: dict[int, Exception] = {}
        self.gates: dict[int, asyncio.Event] = {}
        self.calls: list[int] = []

    def gate(self, page: int) -> asyncio.Event:
        """Block fetches of ``page`` until the returned event is set."""
        event = asyncio.Event()
        self.gates[page] = event
        return event

    async def fetch(self, page: int) -> list[JobRecord]:
        self.calls.append(page)
        gate = self.gates.get(page)
        if gate is not None:
            await gate.wait()
        failure = self.failures.get(page)
        if failure is not None:
            raise failure
        return list(self.pages.get(page, []))


class MemoryRecordStore:
    """In-memory record store that counts reads and can fail on demand."""

    def __init__(self, saved: Iterable[JobRecord] = ()) -> None:
        self.records: dict[str, JobRecord] = {r.id: r for r in saved}
        self.exists_calls: list[str] = []
        self.fail_ids: set[str] = set()
        self.fail_writes = False
        self.read_delay = 0.0

    async def exists(self, record_id: str) -> bool:
        self.exists_calls.append(record_id)
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if record_id in self.fail_ids:
            raise StorageError(f"read failed for {record_id}", record_id=record_id)
        return record_id in self.records

    async def put(self, record_id: str, record: JobRecord) -> None:
        if self.fail_writes:
            raise StorageError("disk full", record_id=record_id)
        self.records[record_id] = record

    async def remove(self, record_id: str) -> None:
        if self.fail_writes:
            raise StorageError("disk full", record_id=record_id)
        self.records.pop(record_id, None)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_record():
    """Factory fixture for creating JobRecord instances with sensible defaults."""

    def _make(record_id: str | int = "job-1", **kwargs: Any) -> JobRecord:
        defaults: dict[str, Any] = {
            "title": "Software Engineer",
            "company": "Acme Corp",
            "location": "Pune",
            "salary": "₹30,000",
            "experience": "2-5 years",
            "job_type": "Full Time",
        }
        defaults.update(kwargs)
        return JobRecord(id=str(record_id), **defaults)

    return _make


@pytest.fixture
def make_page(make_record):
    """Factory fixture for a page of ``count`` records with ids ``<prefix>-<n>``."""

    def _make(count: int, prefix: str = "job", start: int = 0) -> list[JobRecord]:
        return [
            make_record(f"{prefix}-{n}", title=f"Job {n}") for n in range(start, start + count)
        ]

    return _make


@pytest.fixture
def page_source():
    return FakePageSource()


@pytest.fixture
def record_store():
    return MemoryRecordStore()


@pytest.fixture
def fetch_error():
    def _make(message: str = "connection refused", page: int = 1) -> FetchError:
        return FetchError(message, page=page)

    return _make
