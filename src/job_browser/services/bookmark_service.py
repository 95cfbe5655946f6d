"""Bookmark overlay: in-memory saved flags reconciled with a record store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from job_browser.errors import StorageError
from job_browser.models import JobRecord

if TYPE_CHECKING:
    from job_browser.services.interfaces import RecordStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HydrationResult:
    """Outcome of one hydrate() call."""

    loaded: dict[str, bool] = field(default_factory=dict)
    failed: dict[str, StorageError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class BookmarkOverlay:
    """Lazily-populated mapping from record id to saved state.

    An id is present once its status has been read from the store or written
    by a toggle. Absent ids read as not saved. Hydration never overwrites an
    entry that is already present, so a toggle that lands while a read is in
    flight always wins over the older read.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._flags: dict[str, bool] = {}
        self._pending: dict[str, asyncio.Task[bool]] = {}
        self._toggle_locks: dict[str, asyncio.Lock] = {}
        self._toggle_users: dict[str, int] = {}

    def is_saved(self, record_id: str) -> bool:
        """Return the known saved flag, treating unknown ids as not saved."""
        return self._flags.get(record_id, False)

    def known_ids(self) -> frozenset[str]:
        return frozenset(self._flags)

    def saved_ids(self) -> frozenset[str]:
        return frozenset(rid for rid, saved in self._flags.items() if saved)

    def forget(self, record_ids: Iterable[str]) -> None:
        """Drop cached flags so the next hydrate re-reads them."""
        for record_id in record_ids:
            self._flags.pop(record_id, None)

    async def hydrate(self, record_ids: Iterable[str]) -> HydrationResult:
        """Read saved flags for ids not yet known, concurrently.

        Ids already being read by another hydrate() share that read. Results
        are merged only after every read has settled; failed ids stay unknown
        and are reported in the result. Read errors of any type are reported
        as ``StorageError`` entries rather than raised.
        """
        result = HydrationResult()
        waiting: dict[str, asyncio.Task[bool]] = {}
        for record_id in dict.fromkeys(record_ids):
            if record_id in self._flags or record_id in waiting:
                continue
            task = self._pending.get(record_id)
            if task is None:
                task = asyncio.ensure_future(self._read_flag(record_id))
                self._pending[record_id] = task
            waiting[record_id] = task

        if not waiting:
            return result

        outcomes = await asyncio.gather(*waiting.values(), return_exceptions=True)
        for record_id, outcome in zip(waiting, outcomes, strict=True):
            if self._pending.get(record_id) is waiting[record_id]:
                del self._pending[record_id]
            if isinstance(outcome, StorageError):
                result.failed[record_id] = outcome
                continue
            if isinstance(outcome, BaseException):
                logger.error(
                    "Unexpected error reading saved state for %s",
                    record_id,
                    exc_info=outcome,
                )
                error = StorageError(
                    f"Could not read saved state for {record_id}: {outcome}",
                    record_id=record_id,
                )
                error.__cause__ = outcome
                result.failed[record_id] = error
                continue
            # A toggle that completed meanwhile is newer than this read
            self._flags.setdefault(record_id, outcome)
            result.loaded[record_id] = self._flags[record_id]

        if result.failed:
            logger.warning(
                "Could not read saved state for %d record(s): %s",
                len(result.failed),
                ", ".join(sorted(result.failed)),
            )
        return result

    async def _read_flag(self, record_id: str) -> bool:
        return await self._store.exists(record_id)

    @asynccontextmanager
    async def _toggle_guard(self, record_id: str) -> AsyncIterator[None]:
        """Serialize toggles of one id; drop the lock once nobody holds or awaits it."""
        lock = self._toggle_locks.get(record_id)
        if lock is None:
            lock = asyncio.Lock()
            self._toggle_locks[record_id] = lock
        self._toggle_users[record_id] = self._toggle_users.get(record_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._toggle_users.pop(record_id) - 1
            if remaining:
                self._toggle_users[record_id] = remaining
            else:
                del self._toggle_locks[record_id]

    async def toggle(self, record_id: str, record: JobRecord) -> bool:
        """Flip the saved state of a record and return the new flag.

        The store is written first; the in-memory flag changes only once the
        write succeeded. StorageError propagates with the overlay unchanged.
        """
        async with self._toggle_guard(record_id):
            if self.is_saved(record_id):
                await self._store.remove(record_id)
                self._flags[record_id] = False
            else:
                await self._store.put(record_id, record)
                self._flags[record_id] = True
            logger.debug("Bookmark %s is now %s", record_id, self._flags[record_id])
            return self._flags[record_id]


__all__ = [
    "BookmarkOverlay",
    "HydrationResult",
]
