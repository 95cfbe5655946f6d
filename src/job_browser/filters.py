"""Search and filter evaluation over job records.

Source records carry free-text descriptors with inconsistent vocabulary, so
the categorical filters use keyword containment rather than exact matching.
The heuristics are lossy; tests/test_filters.py lists the false positives
and negatives they accept.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from job_browser.models import FilterSet, JobRecord

# ============================================================================
# Keyword tables
# ============================================================================

EXPERIENCE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Entry Level": ("entry", "fresher", "0-1", "0 to 1"),
    "Mid Level": ("mid", "2-5", "2 to 5"),
    "Senior Level": ("senior", "5+", "5+ years"),
}

EMPLOYMENT_TYPE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Full Time": ("full", "permanent"),
    "Part Time": ("part",),
    "Contract": ("contract", "temporary"),
    "Internship": ("intern", "trainee"),
}

# Inclusive bounds; None max means open-ended
SALARY_BOUNDS: dict[str, tuple[int, int | None]] = {
    "0-20000": (0, 20000),
    "20000-50000": (20000, 50000),
    "50000-100000": (50000, 100000),
    "100000+": (100000, None),
}

_NON_DIGIT_RE = re.compile(r"[^0-9]")


# ============================================================================
# Free-text search
# ============================================================================


def normalize_search_text(text: str | None) -> str:
    """Trim and lowercase search input. None and whitespace become empty."""
    if not text:
        return ""
    return text.strip().lower()


def search_fields(record: JobRecord) -> list[str]:
    """Return the present, searchable fields of a record in evaluation order."""
    candidates = (
        record.title,
        record.company,
        record.location,
        record.experience,
        record.job_type,
        record.qualification,
        record.category,
        record.role,
    )
    return [value for value in candidates if value]


def matches_search(record: JobRecord, search_text: str) -> bool:
    """Substring match of normalized text against any searchable field."""
    needle = normalize_search_text(search_text)
    if not needle:
        return True
    return any(needle in value.lower() for value in search_fields(record))


# ============================================================================
# Categorical filters
# ============================================================================


def _contains_any(descriptor: str | None, keywords: Iterable[str]) -> bool:
    if not descriptor:
        return False
    lowered = descriptor.lower()
    return any(keyword in lowered for keyword in keywords)


def matches_experience(record: JobRecord, level: str) -> bool:
    """Check the experience descriptor against a level's keywords."""
    keywords = EXPERIENCE_KEYWORDS.get(level)
    if keywords is None:
        return False
    return _contains_any(record.experience, keywords)


def matches_employment_type(record: JobRecord, employment_type: str) -> bool:
    """Check the job-type descriptor against an employment type's keywords."""
    keywords = EMPLOYMENT_TYPE_KEYWORDS.get(employment_type)
    if keywords is None:
        return False
    return _contains_any(record.job_type, keywords)


def parse_salary(text: str | None) -> int:
    """Parse a free-form salary descriptor to an integer.

    Every non-digit character is discarded and the remaining digits are read
    as one number, so ``"₹15,000"`` is 15000 but a range such as
    ``"10,000 - 12,000"`` collapses to 1000012000. Missing or digit-less
    descriptors parse as 0.
    """
    if not text:
        return 0
    digits = _NON_DIGIT_RE.sub("", text)
    return int(digits) if digits else 0


def matches_salary_range(record: JobRecord, salary_range: str) -> bool:
    """Check the parsed salary against a range's inclusive bounds."""
    bounds = SALARY_BOUNDS.get(salary_range)
    if bounds is None:
        return False
    low, high = bounds
    salary = parse_salary(record.salary)
    if high is None:
        return salary >= low
    return low <= salary <= high


# ============================================================================
# Composite evaluation
# ============================================================================


def matches(record: JobRecord, search_text: str, filter_set: FilterSet) -> bool:
    """Return True if a record passes the search text and every active filter.

    Stages short-circuit in order: search, experience, employment type,
    salary range.
    """
    if not matches_search(record, search_text):
        return False
    if filter_set.experience and not matches_experience(record, filter_set.experience):
        return False
    if filter_set.employment_type and not matches_employment_type(
        record, filter_set.employment_type
    ):
        return False
    if filter_set.salary_range and not matches_salary_range(record, filter_set.salary_range):
        return False
    return True


def filter_records(
    records: Iterable[JobRecord], search_text: str, filter_set: FilterSet
) -> list[JobRecord]:
    """Filter records, preserving their order."""
    return [record for record in records if matches(record, search_text, filter_set)]


def format_result_count(count: int) -> str:
    """Build the result count line shown under an active search."""
    noun = "result" if count == 1 else "results"
    return f"{count} {noun} found"


__all__ = [
    "EMPLOYMENT_TYPE_KEYWORDS",
    "EXPERIENCE_KEYWORDS",
    "SALARY_BOUNDS",
    "filter_records",
    "format_result_count",
    "matches",
    "matches_employment_type",
    "matches_experience",
    "matches_salary_range",
    "matches_search",
    "normalize_search_text",
    "parse_salary",
    "search_fields",
]
