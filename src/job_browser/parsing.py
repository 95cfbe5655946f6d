"""Parsing of page-source payloads into job records, and record (de)serialization.

Source payloads are loosely typed: any field but the identifier may be
missing, null, or of the wrong type. Wrong-typed values are treated as
absent instead of raising, so one bad listing never poisons a page.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any

from job_browser.errors import ContractViolation
from job_browser.models import JobRecord

logger = logging.getLogger(__name__)

# Record attribute -> accepted source keys, first present wins
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title",),
    "company": ("company", "company_name"),
    "location": ("location",),
    "salary": ("salary",),
    "experience": ("experience",),
    "job_type": ("jobType", "job_type"),
    "qualification": ("qualification",),
    "category": ("job_category", "category"),
    "role": ("job_role", "role"),
    "description": ("description",),
    "requirements": ("requirements",),
    "phone": ("phone",),
    "image": ("image",),
    "created_on": ("createdOn", "created_on"),
    "shift_timing": ("shift_timing",),
    "contact_preference": ("contact_preference",),
}

_ID_KEYS = ("id", "_id", "job_id")


def _coerce_text(value: Any) -> str | None:
    """Coerce untrusted values to a non-empty string, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _coerce_int(value: Any) -> int | None:
    """Coerce untrusted values to int, excluding bool."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _first_present(item: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _parse_tags(raw: Any) -> tuple[str, ...]:
    """Accept a list of strings or of ``{"value": ...}`` objects."""
    if not isinstance(raw, list):
        return ()
    tags: list[str] = []
    for entry in raw:
        if isinstance(entry, dict):
            entry = entry.get("value")
        text = _coerce_text(entry)
        if text:
            tags.append(text)
    return tuple(tags)


def _parse_record_id(item: dict[str, Any]) -> str | None:
    raw = _first_present(item, _ID_KEYS)
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


def parse_job_record(item: Any) -> JobRecord | None:
    """Parse a single listing object. Returns None if it has no usable identifier."""
    if not isinstance(item, dict):
        return None
    record_id = _parse_record_id(item)
    if record_id is None:
        return None
    values = {
        attr: _coerce_text(_first_present(item, keys)) for attr, keys in _FIELD_ALIASES.items()
    }
    return JobRecord(
        id=record_id,
        vacancies=_coerce_int(item.get("vacancies")),
        tags=_parse_tags(item.get("tags")),
        **values,
    )


def parse_page_payload(payload: Any, *, page: int | None = None) -> list[JobRecord]:
    """Turn a decoded page payload into records.

    Accepts ``{"data": [...]}`` or a bare list. Any other shape is a contract
    violation. Individual entries without an identifier are skipped with a
    warning rather than failing the page.
    """
    if isinstance(payload, dict):
        items = payload.get("data")
    elif isinstance(payload, list):
        items = payload
    else:
        raise ContractViolation(
            f"Expected an object or list, got {type(payload).__name__}", page=page
        )
    if not isinstance(items, list):
        raise ContractViolation(
            f"Expected 'data' to be a list, got {type(items).__name__}", page=page
        )

    records: list[JobRecord] = []
    skipped = 0
    for item in items:
        record = parse_job_record(item)
        if record is None:
            skipped += 1
            continue
        records.append(record)
    if skipped:
        logger.warning("Skipped %d listing(s) without an id on page %s", skipped, page)
    return records


def record_to_json(record: JobRecord) -> str:
    """Serialize a JobRecord to a JSON string for persistent storage."""
    data = asdict(record)
    data["tags"] = list(record.tags)
    return json.dumps(data, ensure_ascii=False)


def record_from_json(payload: str) -> JobRecord | None:
    """Deserialize a stored JobRecord. Returns None for unreadable payloads."""
    try:
        data = json.loads(payload)
    except (TypeError, json.JSONDecodeError):
        logger.warning("Failed to deserialize stored job record", exc_info=True)
        return None
    if not isinstance(data, dict):
        return None
    record_id = _coerce_text(data.get("id"))
    if record_id is None:
        return None
    raw_tags = data.get("tags")
    tags = tuple(t for t in raw_tags if isinstance(t, str)) if isinstance(raw_tags, list) else ()
    return JobRecord(
        id=record_id,
        vacancies=_coerce_int(data.get("vacancies")),
        tags=tags,
        **{attr: _coerce_text(data.get(attr)) for attr in _FIELD_ALIASES},
    )


__all__ = [
    "parse_job_record",
    "parse_page_payload",
    "record_from_json",
    "record_to_json",
]
