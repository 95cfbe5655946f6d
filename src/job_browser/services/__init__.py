"""Internal service layer: page source, record store, and bookmark overlay."""

from job_browser.services.bookmark_service import BookmarkOverlay, HydrationResult
from job_browser.services.page_service import fetch_page

__all__ = [
    "BookmarkOverlay",
    "HydrationResult",
    "fetch_page",
]
