"""Configuration persistence: load and save."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from job_browser.models import (
    CONFIG_APP_NAME,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PAGE_PARAM,
    DEFAULT_REQUEST_TIMEOUT,
    FILTER_SLOTS,
    FilterSet,
    SessionState,
    UserConfig,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() guarantees valid output for any input:
#
#   Field                    Rule                          Handler
#   ───────────────────────  ────────────────────────────  ─────────────────────
#   request_timeout_seconds  1 ≤ x ≤ 300                   _coerce_positive_int
#   max_retries              1 ≤ x ≤ 10                    _coerce_positive_int
#   session.filters.*        in FILTER_SLOTS enumeration   _parse_filters
#   scalar fields            type-checked via _safe_get()  _dict_to_config
#
CONFIG_FILENAME = "config.json"
MAX_REQUEST_TIMEOUT = 300
MAX_RETRIES_LIMIT = 10


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/job-browser/config.json
    - macOS: ~/Library/Application Support/job-browser/config.json
    - Windows: %APPDATA%/job-browser/config.json
    """
    config_dir = Path(user_config_dir(CONFIG_APP_NAME))
    return config_dir / CONFIG_FILENAME


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "api_url": config.api_url,
        "page_param": config.page_param,
        "request_timeout_seconds": config.request_timeout_seconds,
        "max_retries": config.max_retries,
        "bookmarks_db": config.bookmarks_db,
        "session": {
            "search_text": config.session.search_text,
            "filters": config.session.filters.as_dict(),
        },
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type) or (
        expected_type is int and isinstance(value, bool)
    ):
        return default
    return value


def _coerce_positive_int(value: Any, default: int, limit: int) -> int:
    """Validate and clamp a positive integer setting."""
    if not isinstance(value, int) or isinstance(value, bool):
        return default
    return max(1, min(value, limit))


def _parse_filters(raw: Any) -> FilterSet:
    """Parse saved filter slots, dropping unknown slots and options."""
    if not isinstance(raw, dict):
        return FilterSet()
    values: dict[str, str] = {}
    for slot in FILTER_SLOTS:
        value = raw.get(slot, "")
        if not isinstance(value, str) or not value:
            continue
        try:
            FilterSet(**{slot: value})
        except ValueError:
            logger.warning("Ignoring saved %s filter %r", slot, value)
            continue
        values[slot] = value
    return FilterSet(**values)


def _parse_session_state(data: dict[str, Any]) -> SessionState:
    """Parse the session state section from config data."""
    session_data = data.get("session", {})
    if not isinstance(session_data, dict):
        session_data = {}
    return SessionState(
        search_text=_safe_get(session_data, "search_text", "", str),
        filters=_parse_filters(session_data.get("filters")),
    )


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    return UserConfig(
        api_url=_safe_get(data, "api_url", "", str),
        page_param=_safe_get(data, "page_param", DEFAULT_PAGE_PARAM, str) or DEFAULT_PAGE_PARAM,
        request_timeout_seconds=_coerce_positive_int(
            data.get("request_timeout_seconds"), DEFAULT_REQUEST_TIMEOUT, MAX_REQUEST_TIMEOUT
        ),
        max_retries=_coerce_positive_int(
            data.get("max_retries"), DEFAULT_MAX_RETRIES, MAX_RETRIES_LIMIT
        ),
        bookmarks_db=_safe_get(data, "bookmarks_db", "", str),
        session=_parse_session_state(data),
        version=_safe_get(data, "version", 1, int),
    )


def load_config(config_path: Path | None = None) -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    Logs specific errors to help diagnose config issues.
    """
    config_path = config_path or get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return UserConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return UserConfig()

    if not isinstance(data, dict):
        logger.warning("Config file root is %s, using defaults", type(data).__name__)
        return UserConfig()
    return _dict_to_config(data)


def save_config(config: UserConfig, config_path: Path | None = None) -> bool:
    """Save configuration to disk atomically.

    Uses write-to-tempfile + os.replace() to prevent partial writes
    on crash/interrupt from corrupting the config file.

    Creates the config directory if it doesn't exist.
    Returns True on success, False on failure.
    """
    config_path = config_path or get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = _config_to_dict(config)
        json_str = json.dumps(data, indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_APP_NAME",
    "CONFIG_FILENAME",
    "get_config_path",
    "load_config",
    "save_config",
]
