"""Service interfaces + default adapters for controller dependency injection."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx

from job_browser import bookmarks as _bookmarks
from job_browser.models import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_PAGE_PARAM,
    DEFAULT_REQUEST_TIMEOUT,
    JobRecord,
    UserConfig,
)
from job_browser.services import page_service as _page


@runtime_checkable
class PageSource(Protocol):
    """Interface for the remote listing source."""

    async def fetch(self, page: int) -> list[JobRecord]:
        """Fetch one page (1-based). An empty list signals exhaustion."""
        ...


@runtime_checkable
class RecordStore(Protocol):
    """Interface for bookmark persistence keyed by record id."""

    async def exists(self, record_id: str) -> bool:
        """Return True if the record is saved."""
        ...

    async def put(self, record_id: str, record: JobRecord) -> None:
        """Save (or overwrite) a record snapshot."""
        ...

    async def remove(self, record_id: str) -> None:
        """Delete a saved record."""
        ...


class HttpPageSource:
    """Default adapter that fetches listing pages over HTTP."""

    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        page_param: str = DEFAULT_PAGE_PARAM,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self.url = url
        self.client = client
        self.page_param = page_param
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries

    async def fetch(self, page: int) -> list[JobRecord]:
        return await _page.fetch_page(
            client=self.client,
            url=self.url,
            page=page,
            page_param=self.page_param,
            timeout_seconds=self.timeout_seconds,
            max_retries=self.max_retries,
        )


class SqliteRecordStore:
    """Default adapter that persists bookmarks to a SQLite file.

    Blocking SQLite calls run in worker threads.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    async def exists(self, record_id: str) -> bool:
        return await asyncio.to_thread(_bookmarks.bookmark_exists, self.db_path, record_id)

    async def put(self, record_id: str, record: JobRecord) -> None:
        if record.id != record_id:
            raise ValueError(f"Record id {record.id!r} does not match key {record_id!r}")
        await asyncio.to_thread(_bookmarks.save_bookmark, self.db_path, record)

    async def remove(self, record_id: str) -> None:
        await asyncio.to_thread(_bookmarks.remove_bookmark, self.db_path, record_id)

    async def list_saved(self) -> list[JobRecord]:
        return await asyncio.to_thread(_bookmarks.list_bookmarks, self.db_path)


@dataclass(slots=True)
class ListingServices:
    """Aggregated collaborators consumed by the listing controller."""

    pages: PageSource
    store: RecordStore


def resolve_bookmarks_db_path(config: UserConfig) -> Path:
    """Return the configured bookmarks database, or the platform default."""
    if config.bookmarks_db:
        return Path(config.bookmarks_db).expanduser()
    return _bookmarks.get_bookmarks_db_path()


def build_default_listing_services(
    config: UserConfig, client: httpx.AsyncClient | None = None
) -> ListingServices:
    """Build default services from user configuration."""
    return ListingServices(
        pages=HttpPageSource(
            config.api_url,
            client=client,
            page_param=config.page_param,
            timeout_seconds=config.request_timeout_seconds,
            max_retries=config.max_retries,
        ),
        store=SqliteRecordStore(resolve_bookmarks_db_path(config)),
    )


__all__ = [
    "HttpPageSource",
    "ListingServices",
    "PageSource",
    "RecordStore",
    "SqliteRecordStore",
    "build_default_listing_services",
    "resolve_bookmarks_db_path",
]
