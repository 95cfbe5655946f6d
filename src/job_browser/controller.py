"""Listing controller: paged accumulation, search/filter view, bookmark flags.

The controller is the only owner of listing state. View code reads
``snapshot()`` and mutates through the public coroutines and setters; the
displayed subset is re-derived from (records, search text, filters) after any
of them changes and is never edited in place.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from job_browser.action_messages import describe_fetch_error
from job_browser.errors import ContractViolation, FetchError, StorageError
from job_browser.filters import filter_records
from job_browser.models import FilterSet, JobRecord, ListingItem, ListingSnapshot
from job_browser.services.bookmark_service import BookmarkOverlay, HydrationResult
from job_browser.services.interfaces import ListingServices, PageSource

logger = logging.getLogger(__name__)


def _validate_page(page: int, records: object) -> list[JobRecord]:
    """Check that a page source honoured its contract."""
    if not isinstance(records, Sequence) or isinstance(records, (str, bytes)):
        raise ContractViolation(
            f"Page source returned {type(records).__name__} instead of a record list",
            page=page,
        )
    bad = [type(item).__name__ for item in records if not isinstance(item, JobRecord)]
    if bad:
        raise ContractViolation(
            f"Page source returned non-record items: {', '.join(sorted(set(bad)))}",
            page=page,
        )
    return list(records)


class ListingController:
    """Owns the accumulated listing, page cursor, and derived view."""

    def __init__(
        self,
        pages: PageSource,
        overlay: BookmarkOverlay,
        *,
        search_text: str = "",
        filters: FilterSet | None = None,
    ) -> None:
        self._pages = pages
        self._overlay = overlay
        self._records: list[JobRecord] = []
        self._records_by_id: dict[str, JobRecord] = {}
        self._cursor = 0
        self._exhausted = False
        self._loading = False
        self._generation = 0
        self._error: FetchError | None = None
        self._error_message: str | None = None
        self._search_text = search_text
        self._filters = filters or FilterSet()
        self._displayed: tuple[JobRecord, ...] = ()
        self.last_hydration: HydrationResult | None = None

    @classmethod
    def from_services(cls, services: ListingServices, **kwargs) -> ListingController:
        """Build a controller with a fresh overlay over the services' store."""
        return cls(services.pages, BookmarkOverlay(services.store), **kwargs)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def records(self) -> tuple[JobRecord, ...]:
        return tuple(self._records)

    @property
    def displayed(self) -> tuple[JobRecord, ...]:
        return self._displayed

    @property
    def page(self) -> int:
        """Number of the last page loaded (0 before the first load)."""
        return self._cursor

    @property
    def has_more(self) -> bool:
        return not self._exhausted

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> FetchError | None:
        return self._error

    @property
    def search_text(self) -> str:
        return self._search_text

    @property
    def filters(self) -> FilterSet:
        return self._filters

    @property
    def overlay(self) -> BookmarkOverlay:
        return self._overlay

    def get_record(self, record_id: str) -> JobRecord | None:
        return self._records_by_id.get(record_id)

    def is_saved(self, record_id: str) -> bool:
        return self._overlay.is_saved(record_id)

    def unknown_saved_state(self) -> list[str]:
        """Return loaded ids whose saved flag could not be read, in load order."""
        known = self._overlay.known_ids()
        return list(dict.fromkeys(r.id for r in self._records if r.id not in known))

    def snapshot(self) -> ListingSnapshot:
        """Return an immutable view for rendering."""
        return ListingSnapshot(
            items=tuple(
                ListingItem(record=record, saved=self._overlay.is_saved(record.id))
                for record in self._displayed
            ),
            loading=self._loading,
            error=self._error_message,
            has_more=self.has_more,
            total_count=len(self._records),
            page=self._cursor,
            search_text=self._search_text,
            filters=self._filters,
        )

    # ------------------------------------------------------------------
    # Page loading
    # ------------------------------------------------------------------

    async def load_next(self) -> bool:
        """Append the next page. Returns True if a page was applied."""
        return await self._load(refresh=False)

    async def refresh(self) -> bool:
        """Reload from page 1, replacing the collection on success.

        Dropped, like load_next(), while another load is in flight.
        """
        if self._loading:
            logger.debug("Refresh dropped: a page load is already in flight")
            return False
        self._clear_error()
        return await self._load(refresh=True)

    async def _load(self, *, refresh: bool) -> bool:
        if self._loading:
            logger.debug("Load dropped: a page load is already in flight")
            return False
        if self._exhausted and not refresh:
            return False

        page = 1 if refresh else self._cursor + 1
        self._generation += 1
        generation = self._generation
        self._loading = True
        try:
            try:
                records = _validate_page(page, await self._pages.fetch(page))
            except FetchError as exc:
                self._fail(generation, exc, refresh=refresh)
                return False
            except (httpx.HTTPError, OSError) as exc:
                wrapped = FetchError(f"Could not fetch page {page}: {exc}", page=page)
                wrapped.__cause__ = exc
                self._fail(generation, wrapped, refresh=refresh)
                return False
            except Exception as exc:
                logger.exception("Page source raised unexpectedly for page %d", page)
                wrapped = FetchError(f"Could not fetch page {page}: {exc}", page=page)
                wrapped.__cause__ = exc
                self._fail(generation, wrapped, refresh=refresh)
                return False

            if generation != self._generation:
                logger.debug("Discarding stale response for page %d", page)
                return False

            self._apply_page(page, records, refresh=refresh)
            new_ids = [record.id for record in records]
            try:
                self.last_hydration = await self._overlay.hydrate(new_ids)
            except Exception as exc:
                logger.exception("Saved-state hydration failed for page %d", page)
                error = StorageError(f"Could not read saved state: {exc}")
                error.__cause__ = exc
                self.last_hydration = HydrationResult(failed=dict.fromkeys(new_ids, error))
            return True
        finally:
            if generation == self._generation:
                self._loading = False

    def _apply_page(self, page: int, records: list[JobRecord], *, refresh: bool) -> None:
        if refresh:
            self._records = list(records)
            self._records_by_id = {}
        else:
            duplicates = sorted({r.id for r in records if r.id in self._records_by_id})
            if duplicates:
                logger.warning(
                    "Page %d repeats %d id(s) already loaded: %s",
                    page,
                    len(duplicates),
                    ", ".join(duplicates),
                )
            self._records.extend(records)
        for record in records:
            self._records_by_id.setdefault(record.id, record)

        self._cursor = page
        self._exhausted = not records
        self._clear_error()
        logger.info(
            "Loaded page %d: %d record(s), %d total%s",
            page,
            len(records),
            len(self._records),
            " (exhausted)" if self._exhausted else "",
        )
        self._recompute()

    def _fail(self, generation: int, exc: FetchError, *, refresh: bool) -> None:
        if generation != self._generation:
            logger.debug("Ignoring failure from superseded load: %s", exc)
            return
        if isinstance(exc, ContractViolation):
            logger.error("Page source contract violation (page %s): %s", exc.page, exc)
        else:
            logger.warning("Page load failed (page %s): %s", exc.page, exc)
        self._error = exc
        self._error_message = describe_fetch_error(exc, refreshing=refresh)

    def _clear_error(self) -> None:
        self._error = None
        self._error_message = None

    def reset(self) -> None:
        """Drop all loaded state. Any in-flight load result will be ignored."""
        self._generation += 1
        self._loading = False
        self._records = []
        self._records_by_id = {}
        self._cursor = 0
        self._exhausted = False
        self._clear_error()
        self._recompute()

    # ------------------------------------------------------------------
    # Search, filters, bookmarks
    # ------------------------------------------------------------------

    def set_search_text(self, text: str) -> None:
        self._search_text = text or ""
        self._recompute()

    def set_filters(self, filters: FilterSet) -> None:
        self._filters = filters
        self._recompute()

    def toggle_filter(self, slot: str, value: str) -> FilterSet:
        """Select a filter option, or clear it if it is already selected."""
        self.set_filters(self._filters.toggle(slot, value))
        return self._filters

    async def toggle_bookmark(self, record_id: str) -> bool:
        """Flip a loaded record's saved flag and return the new flag.

        Raises:
            KeyError: If no loaded record has this id.
            StorageError: If the record store write fails; flags are unchanged.
        """
        record = self._records_by_id[record_id]
        return await self._overlay.toggle(record_id, record)

    def _recompute(self) -> None:
        self._displayed = tuple(filter_records(self._records, self._search_text, self._filters))


__all__ = [
    "ListingController",
]
