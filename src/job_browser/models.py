"""Data models and constants for the job browser."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

# Application identity, single source of truth for platformdirs config paths
CONFIG_APP_NAME = "job-browser"

# Filter slot enumerations (canonical spelling, as shown to the user)
EXPERIENCE_LEVELS = ("Entry Level", "Mid Level", "Senior Level")
EMPLOYMENT_TYPES = ("Full Time", "Part Time", "Contract", "Internship")
SALARY_RANGES = ("0-20000", "20000-50000", "50000-100000", "100000+")

SALARY_RANGE_LABELS: dict[str, str] = {
    "0-20000": "Below ₹20,000",
    "20000-50000": "₹20,000 - ₹50,000",
    "50000-100000": "₹50,000 - ₹100,000",
    "100000+": "Above ₹100,000",
}

FILTER_SLOTS: dict[str, tuple[str, ...]] = {
    "experience": EXPERIENCE_LEVELS,
    "employment_type": EMPLOYMENT_TYPES,
    "salary_range": SALARY_RANGES,
}

# Page source defaults
DEFAULT_PAGE_PARAM = "page"
DEFAULT_REQUEST_TIMEOUT = 15  # seconds
DEFAULT_MAX_RETRIES = 3


@dataclass(frozen=True, slots=True)
class JobRecord:
    """Immutable snapshot of one job listing as returned by the page source."""

    id: str
    title: str | None = None
    company: str | None = None
    location: str | None = None
    salary: str | None = None
    experience: str | None = None
    job_type: str | None = None
    qualification: str | None = None
    category: str | None = None
    role: str | None = None
    description: str | None = None
    requirements: str | None = None
    phone: str | None = None
    image: str | None = None
    vacancies: int | None = None
    created_on: str | None = None
    shift_timing: str | None = None
    contact_preference: str | None = None
    tags: tuple[str, ...] = ()


def _canonical_option(slot: str, value: str) -> str:
    """Resolve a user-supplied option to its canonical spelling for a slot."""
    options = FILTER_SLOTS[slot]
    wanted = value.strip().lower()
    for option in options:
        if option.lower() == wanted:
            return option
    raise ValueError(f"Unknown {slot} option {value!r}; expected one of {', '.join(options)}")


@dataclass(frozen=True, slots=True)
class FilterSet:
    """Categorical filter slots. An empty string means the slot is inactive."""

    experience: str = ""
    employment_type: str = ""
    salary_range: str = ""

    def __post_init__(self) -> None:
        for slot in FILTER_SLOTS:
            value = getattr(self, slot)
            if value:
                object.__setattr__(self, slot, _canonical_option(slot, value))

    @property
    def active_count(self) -> int:
        return sum(1 for slot in FILTER_SLOTS if getattr(self, slot))

    @property
    def is_empty(self) -> bool:
        return self.active_count == 0

    def toggle(self, slot: str, value: str) -> FilterSet:
        """Select an option, or clear the slot if that option is already selected."""
        if slot not in FILTER_SLOTS:
            raise ValueError(f"Unknown filter slot {slot!r}")
        option = _canonical_option(slot, value)
        if getattr(self, slot) == option:
            return replace(self, **{slot: ""})
        return replace(self, **{slot: option})

    def as_dict(self) -> dict[str, str]:
        return {slot: getattr(self, slot) for slot in FILTER_SLOTS}


@dataclass(frozen=True, slots=True)
class ListingItem:
    """One displayed row: a record plus its saved flag at snapshot time."""

    record: JobRecord
    saved: bool = False


@dataclass(frozen=True, slots=True)
class ListingSnapshot:
    """Read-only view of the listing controller state for the view layer."""

    items: tuple[ListingItem, ...]
    loading: bool
    error: str | None
    has_more: bool
    total_count: int
    page: int
    search_text: str = ""
    filters: FilterSet = field(default_factory=FilterSet)

    @property
    def result_count(self) -> int:
        return len(self.items)


@dataclass(slots=True)
class SessionState:
    """Search text and filters to restore on next run."""

    search_text: str = ""
    filters: FilterSet = field(default_factory=FilterSet)


@dataclass(slots=True)
class UserConfig:
    """Complete user configuration including session state and preferences."""

    api_url: str = ""
    page_param: str = DEFAULT_PAGE_PARAM
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    bookmarks_db: str = ""  # Empty = use the platformdirs config dir
    session: SessionState = field(default_factory=SessionState)
    version: int = 1


__all__ = [
    "CONFIG_APP_NAME",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_PAGE_PARAM",
    "DEFAULT_REQUEST_TIMEOUT",
    "EMPLOYMENT_TYPES",
    "EXPERIENCE_LEVELS",
    "FILTER_SLOTS",
    "SALARY_RANGES",
    "SALARY_RANGE_LABELS",
    "FilterSet",
    "JobRecord",
    "ListingItem",
    "ListingSnapshot",
    "SessionState",
    "UserConfig",
]
