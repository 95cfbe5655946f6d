"""User-facing copy for listing errors and bookmark confirmations."""

from __future__ import annotations

from job_browser.errors import ContractViolation, FetchError, StorageError


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def describe_fetch_error(exc: FetchError, *, refreshing: bool) -> str:
    """Build the error state shown after a failed page load."""
    action = "refresh job listings" if refreshing else "load more job listings"
    if isinstance(exc, ContractViolation):
        return build_actionable_error(
            action,
            why="the listing source sent data in an unexpected format",
            next_step="try again later",
        )
    return build_actionable_error(action, why=str(exc), next_step="check connectivity and retry")


def describe_storage_error(exc: StorageError, *, saving: bool) -> str:
    """Build the message shown after a failed bookmark toggle."""
    action = "save this job" if saving else "remove this job from saved jobs"
    return build_actionable_error(action, why=str(exc), next_step="retry the bookmark")


def build_bookmark_notification(title: str | None, saved: bool) -> str:
    """Build confirmation text for a completed bookmark toggle."""
    label = title or "Job"
    if saved:
        return f"Saved: {label}"
    return f"Removed from saved: {label}"


__all__ = [
    "build_actionable_error",
    "build_bookmark_notification",
    "build_next_step_hint",
    "describe_fetch_error",
    "describe_storage_error",
]
