"""Command-line entry point for browsing a paged job listing source."""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers
import sys
from collections.abc import Callable
from pathlib import Path

import httpx
from platformdirs import user_config_dir
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from job_browser.action_messages import (
    build_actionable_error,
    build_bookmark_notification,
    describe_storage_error,
)
from job_browser.config import load_config, save_config
from job_browser.controller import ListingController
from job_browser.details import detail_rows, phone_link, tag_labels, whatsapp_link
from job_browser.errors import StorageError
from job_browser.filters import format_result_count
from job_browser.models import (
    CONFIG_APP_NAME,
    EMPLOYMENT_TYPES,
    EXPERIENCE_LEVELS,
    SALARY_RANGE_LABELS,
    SALARY_RANGES,
    FilterSet,
    JobRecord,
    ListingItem,
    ListingSnapshot,
    UserConfig,
)
from job_browser.services.interfaces import (
    ListingServices,
    SqliteRecordStore,
    build_default_listing_services,
    resolve_bookmarks_db_path,
)

logger = logging.getLogger(__name__)

ServicesFactory = Callable[[UserConfig, httpx.AsyncClient], ListingServices]


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="job-browser",
        description="Browse, search, and bookmark job listings from a paged source",
    )
    parser.add_argument("--api-url", default=None, help="Listing endpoint (saved to config)")
    parser.add_argument(
        "-s", "--search", default=None, help="Free-text search over title, company, location..."
    )
    parser.add_argument(
        "--experience",
        default=None,
        help=f"Experience filter: {', '.join(EXPERIENCE_LEVELS)}",
    )
    parser.add_argument(
        "--job-type",
        default=None,
        help=f"Employment type filter: {', '.join(EMPLOYMENT_TYPES)}",
    )
    parser.add_argument(
        "--salary",
        default=None,
        help=f"Salary range filter: {', '.join(SALARY_RANGES)}",
    )
    parser.add_argument(
        "--clear-filters",
        action="store_true",
        help="Forget the saved search text and filters before applying new ones",
    )
    parser.add_argument(
        "-p", "--pages", type=int, default=1, help="Number of pages to load (default: 1)"
    )
    parser.add_argument("--save", metavar="ID", default=None, help="Toggle the saved flag of a job")
    parser.add_argument("--show", metavar="ID", default=None, help="Show details for one job")
    parser.add_argument("--saved", action="store_true", help="List saved jobs and exit")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/job-browser/debug.log)",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable terminal colors")
    return parser


def _apply_overrides(args: argparse.Namespace, config: UserConfig) -> bool:
    """Apply CLI flags onto config. Returns True if anything persistent changed.

    Raises:
        ValueError: If a filter option is not in its enumeration.
    """
    changed = False
    if args.api_url is not None:
        config.api_url = args.api_url
        changed = True
    session = config.session
    if args.clear_filters:
        session.search_text = ""
        session.filters = FilterSet()
        changed = True
    if args.search is not None:
        session.search_text = args.search
        changed = True
    overrides = {
        "experience": args.experience,
        "employment_type": args.job_type,
        "salary_range": args.salary,
    }
    current = session.filters.as_dict()
    for slot, value in overrides.items():
        if value is not None:
            current[slot] = value
            changed = True
    session.filters = FilterSet(**current)
    return changed


def _filter_summary(snapshot: ListingSnapshot) -> str:
    parts = []
    if snapshot.search_text.strip():
        parts.append(f'search "{snapshot.search_text.strip()}"')
    filters = snapshot.filters
    if filters.experience:
        parts.append(filters.experience)
    if filters.employment_type:
        parts.append(filters.employment_type)
    if filters.salary_range:
        parts.append(SALARY_RANGE_LABELS.get(filters.salary_range, filters.salary_range))
    return ", ".join(parts)


def build_listing_table(items: tuple[ListingItem, ...] | list[ListingItem], title: str) -> Table:
    """Render listing rows as a rich table."""
    table = Table(title=title, show_lines=False)
    table.add_column("", width=1)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Company")
    table.add_column("Location")
    table.add_column("Salary")
    table.add_column("Experience")
    for item in items:
        record = item.record
        table.add_row(
            "★" if item.saved else "",
            escape(record.id),
            escape(record.title or ""),
            escape(record.company or ""),
            escape(record.location or ""),
            escape(record.salary or ""),
            escape(record.experience or ""),
        )
    return table


def build_detail_table(record: JobRecord, saved: bool) -> Table:
    """Render one record's details as a two-column rich table."""
    heading = escape(record.title or record.id)
    table = Table(title=f"{'★ ' if saved else ''}{heading}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for label, value in detail_rows(record):
        table.add_row(label, escape(value))
    tags = tag_labels(record)
    if tags:
        table.add_row("Tags", escape(", ".join(tags)))
    for label, link in (("Call", phone_link(record)), ("WhatsApp", whatsapp_link(record))):
        if link:
            table.add_row(label, escape(link))
    for label, text in (("Description", record.description), ("Requirements", record.requirements)):
        if text:
            table.add_row(label, escape(text))
    return table


def _print_error(message: str) -> None:
    print(message, file=sys.stderr)


async def _toggle(controller: ListingController, record_id: str, console: Console) -> int:
    record = controller.get_record(record_id)
    if record is None:
        _print_error(
            build_actionable_error(
                f"toggle saved state of job {record_id}",
                why="that job is not in the loaded pages",
                next_step="load more pages with --pages or check the id",
            )
        )
        return 1
    if record_id not in controller.overlay.known_ids():
        retry = await controller.overlay.hydrate([record_id])
        if record_id in retry.failed:
            _print_error(
                build_actionable_error(
                    f"toggle saved state of job {record_id}",
                    why=str(retry.failed[record_id]),
                    next_step="retry once the bookmark store is readable",
                )
            )
            return 1
    saving = not controller.is_saved(record_id)
    try:
        saved = await controller.toggle_bookmark(record_id)
    except StorageError as exc:
        logger.warning("Bookmark toggle failed for %s: %s", record_id, exc)
        _print_error(describe_storage_error(exc, saving=saving))
        return 1
    console.print(escape(build_bookmark_notification(record.title, saved)))
    return 0


async def _run_listing(
    args: argparse.Namespace,
    config: UserConfig,
    console: Console,
    services_factory: ServicesFactory,
) -> int:
    async with httpx.AsyncClient() as client:
        services = services_factory(config, client)
        controller = ListingController.from_services(
            services,
            search_text=config.session.search_text,
            filters=config.session.filters,
        )
        for _ in range(max(1, args.pages)):
            if not await controller.load_next() or not controller.has_more:
                break

        snapshot = controller.snapshot()
        if snapshot.error:
            _print_error(snapshot.error)
            if snapshot.total_count == 0:
                return 1

        unknown = controller.unknown_saved_state()
        if unknown:
            _print_error(
                build_actionable_error(
                    "read saved state",
                    why=f"the bookmark store could not be read for {', '.join(unknown)}",
                    next_step="treat missing ★ marks as unknown and retry, or run with --debug",
                )
            )

        if args.save is not None:
            status = await _toggle(controller, args.save, console)
            if status:
                return status
            snapshot = controller.snapshot()

        if args.show is not None:
            record = controller.get_record(args.show)
            if record is None:
                _print_error(
                    build_actionable_error(
                        f"show job {args.show}",
                        why="that job is not in the loaded pages",
                        next_step="load more pages with --pages or check the id",
                    )
                )
                return 1
            console.print(build_detail_table(record, controller.is_saved(record.id)))
            return 0

    title = f"Jobs · page {snapshot.page}" + ("" if snapshot.has_more else " (end)")
    console.print(build_listing_table(snapshot.items, title))
    summary = _filter_summary(snapshot)
    footer = format_result_count(snapshot.result_count)
    if summary:
        footer = f"{footer} for {summary}"
    console.print(f"{escape(footer)} · {snapshot.total_count} loaded")
    return 0


def _run_saved(config: UserConfig, console: Console) -> int:
    store = SqliteRecordStore(resolve_bookmarks_db_path(config))
    try:
        records = asyncio.run(store.list_saved())
    except StorageError as exc:
        _print_error(
            build_actionable_error("list saved jobs", why=str(exc), next_step="check --debug log")
        )
        return 1
    if not records:
        console.print("No saved jobs yet. Save one with --save ID.")
        return 0
    items = [ListingItem(record=record, saved=True) for record in records]
    console.print(build_listing_table(items, f"Saved jobs ({len(records)})"))
    return 0


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    save_config_fn: Callable[[UserConfig], bool] = save_config,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    services_factory: ServicesFactory = build_default_listing_services,
    console: Console | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    args = _build_parser().parse_args(argv)
    configure_logging_fn(args.debug)
    logger.debug("job-browser starting, cwd=%s", Path.cwd())

    if console is None:
        console = Console(no_color=args.no_color)

    config = load_config_fn()
    try:
        changed = _apply_overrides(args, config)
    except ValueError as exc:
        _print_error(f"Error: {exc}")
        return 2
    if args.pages < 1:
        _print_error("Error: --pages must be at least 1")
        return 2
    if changed and not save_config_fn(config):
        logger.warning("Could not persist config changes")

    if args.saved:
        return _run_saved(config, console)

    if not config.api_url:
        _print_error(
            build_actionable_error(
                "load job listings",
                why="no listing endpoint is configured",
                next_step="pass --api-url https://example.com/api/jobs once; it is remembered",
            )
        )
        return 1

    return asyncio.run(_run_listing(args, config, console, services_factory))


__all__ = [
    "build_detail_table",
    "build_listing_table",
    "main",
]
