"""Paged job listing browser with search, filters, and saved jobs."""

from job_browser.controller import ListingController
from job_browser.errors import ContractViolation, FetchError, StorageError
from job_browser.filters import filter_records, matches, parse_salary
from job_browser.models import (
    EMPLOYMENT_TYPES,
    EXPERIENCE_LEVELS,
    SALARY_RANGES,
    FilterSet,
    JobRecord,
    ListingItem,
    ListingSnapshot,
    UserConfig,
)
from job_browser.services.bookmark_service import BookmarkOverlay, HydrationResult
from job_browser.services.interfaces import (
    HttpPageSource,
    PageSource,
    RecordStore,
    SqliteRecordStore,
)

__all__ = [
    "EMPLOYMENT_TYPES",
    "EXPERIENCE_LEVELS",
    "SALARY_RANGES",
    "BookmarkOverlay",
    "ContractViolation",
    "FetchError",
    "FilterSet",
    "HttpPageSource",
    "HydrationResult",
    "JobRecord",
    "ListingController",
    "ListingItem",
    "ListingSnapshot",
    "PageSource",
    "RecordStore",
    "SqliteRecordStore",
    "StorageError",
    "UserConfig",
    "filter_records",
    "matches",
    "parse_salary",
]
