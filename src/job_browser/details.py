"""Formatting helpers for a single job record's detail view."""

from __future__ import annotations

import re
from datetime import datetime

from job_browser.models import JobRecord

_NON_DIGIT_RE = re.compile(r"\D")


def format_vacancies(vacancies: int | None) -> str | None:
    """Format an openings count, hiding zero and unknown counts."""
    if not vacancies or vacancies <= 0:
        return None
    return f"{vacancies} Opening{'s' if vacancies != 1 else ''}"


def format_posted_on(created_on: str | None) -> str | None:
    """Format an ISO timestamp as a calendar date; pass other text through."""
    if not created_on:
        return None
    try:
        parsed = datetime.fromisoformat(created_on.replace("Z", "+00:00"))
    except ValueError:
        return created_on
    return parsed.strftime("%d %b %Y")


def detail_rows(record: JobRecord) -> list[tuple[str, str]]:
    """Return labelled detail rows in display order, skipping absent values."""
    rows = [
        ("Company", record.company),
        ("Location", record.location),
        ("Salary", record.salary),
        ("Job Type", record.job_type),
        ("Qualification", record.qualification),
        ("Experience", record.experience),
        ("Vacancies", format_vacancies(record.vacancies)),
        ("Posted On", format_posted_on(record.created_on)),
        ("Category", record.category),
        ("Role", record.role),
        ("Shift Timing", record.shift_timing),
    ]
    return [(label, value) for label, value in rows if value]


def tag_labels(record: JobRecord) -> list[str]:
    """Return a record's tags in source order without repeats."""
    return list(dict.fromkeys(tag for tag in record.tags if tag))


def phone_link(record: JobRecord) -> str | None:
    """Build a tel: link for the record's contact number."""
    if not record.phone:
        return None
    return f"tel:{record.phone}"


def whatsapp_link(record: JobRecord) -> str | None:
    """Build a WhatsApp chat link from the digits of the contact number."""
    if not record.phone:
        return None
    digits = _NON_DIGIT_RE.sub("", record.phone)
    if not digits:
        return None
    return f"https://wa.me/{digits}"


__all__ = [
    "detail_rows",
    "format_posted_on",
    "format_vacancies",
    "phone_link",
    "tag_labels",
    "whatsapp_link",
]
