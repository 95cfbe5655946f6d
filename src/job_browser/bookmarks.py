"""SQLite persistence for saved (bookmarked) job records.

Each saved record is stored as a JSON snapshot keyed by its id. Every call
opens and closes its own connection so the functions are safe to run from
worker threads via ``asyncio.to_thread``. Failures raise ``StorageError``;
a failed write must never look like a successful toggle.
"""

from __future__ import annotations

__all__ = [
    "BOOKMARKS_DB_FILENAME",
    "bookmark_exists",
    "get_bookmarks_db_path",
    "init_bookmarks_db",
    "list_bookmarks",
    "remove_bookmark",
    "save_bookmark",
]

import logging
import sqlite3
from contextlib import closing
from datetime import UTC, datetime
from pathlib import Path

from platformdirs import user_config_dir

from job_browser.errors import StorageError
from job_browser.models import CONFIG_APP_NAME, JobRecord
from job_browser.parsing import record_from_json, record_to_json

logger = logging.getLogger(__name__)

BOOKMARKS_DB_FILENAME = "bookmarks.db"


def get_bookmarks_db_path() -> Path:
    """Get the default path to the bookmarks database."""
    config_dir = Path(user_config_dir(CONFIG_APP_NAME))
    return config_dir / BOOKMARKS_DB_FILENAME


def init_bookmarks_db(db_path: Path) -> None:
    """Create the bookmarks table if it doesn't exist."""
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(sqlite3.connect(str(db_path))) as conn, conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS bookmarks ("
                "  record_id TEXT PRIMARY KEY,"
                "  payload_json TEXT NOT NULL,"
                "  saved_at TEXT NOT NULL"
                ")"
            )
    except (sqlite3.Error, OSError) as exc:
        raise StorageError(f"Could not initialize bookmarks database: {exc}") from exc


def bookmark_exists(db_path: Path, record_id: str) -> bool:
    """Return True if a record with this id is saved."""
    if not db_path.exists():
        return False
    try:
        with closing(sqlite3.connect(str(db_path))) as conn:
            row = conn.execute(
                "SELECT 1 FROM bookmarks WHERE record_id = ?", (record_id,)
            ).fetchone()
    except sqlite3.Error as exc:
        raise StorageError(
            f"Could not read bookmark {record_id}: {exc}", record_id=record_id
        ) from exc
    return row is not None


def save_bookmark(db_path: Path, record: JobRecord) -> None:
    """Insert or overwrite the saved snapshot of a record."""
    init_bookmarks_db(db_path)
    now = datetime.now(UTC).isoformat()
    try:
        with closing(sqlite3.connect(str(db_path))) as conn, conn:
            conn.execute(
                "INSERT OR REPLACE INTO bookmarks (record_id, payload_json, saved_at) "
                "VALUES (?, ?, ?)",
                (record.id, record_to_json(record), now),
            )
    except sqlite3.Error as exc:
        raise StorageError(
            f"Could not save bookmark {record.id}: {exc}", record_id=record.id
        ) from exc
    logger.debug("Saved bookmark %s", record.id)


def remove_bookmark(db_path: Path, record_id: str) -> None:
    """Delete a saved record. Removing an unknown id is a no-op."""
    if not db_path.exists():
        return
    try:
        with closing(sqlite3.connect(str(db_path))) as conn, conn:
            conn.execute("DELETE FROM bookmarks WHERE record_id = ?", (record_id,))
    except sqlite3.Error as exc:
        raise StorageError(
            f"Could not remove bookmark {record_id}: {exc}", record_id=record_id
        ) from exc
    logger.debug("Removed bookmark %s", record_id)


def list_bookmarks(db_path: Path) -> list[JobRecord]:
    """Load every saved record, most recently saved first."""
    if not db_path.exists():
        return []
    try:
        with closing(sqlite3.connect(str(db_path))) as conn:
            rows = conn.execute(
                "SELECT payload_json FROM bookmarks ORDER BY saved_at DESC, record_id"
            ).fetchall()
    except sqlite3.Error as exc:
        raise StorageError(f"Could not list bookmarks: {exc}") from exc
    records: list[JobRecord] = []
    for (payload,) in rows:
        record = record_from_json(payload)
        if record is not None:
            records.append(record)
    return records
