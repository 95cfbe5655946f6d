"""Internal page-fetch service: one HTTP GET per listing page, with retries."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable

import httpx

from job_browser.errors import ContractViolation, FetchError
from job_browser.models import DEFAULT_MAX_RETRIES, DEFAULT_PAGE_PARAM, JobRecord
from job_browser.parsing import parse_page_payload

logger = logging.getLogger(__name__)

USER_AGENT = "job-browser/1.0"
INITIAL_BACKOFF = 1.0  # seconds, doubles each retry
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


async def _get_once(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, int],
    timeout_seconds: float,
) -> httpx.Response:
    return await client.get(
        url,
        params=params,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        timeout=timeout_seconds,
    )


async def _get_with_retries(
    client: httpx.AsyncClient,
    *,
    url: str,
    page: int,
    params: dict[str, int],
    timeout_seconds: float,
    max_retries: int,
    sleep: Callable[[float], Awaitable[None]],
) -> httpx.Response:
    """GET a page, retrying timeouts and transient status codes with backoff."""
    attempts = max(1, max_retries)
    backoff = INITIAL_BACKOFF
    for attempt in range(attempts):
        last_attempt = attempt == attempts - 1
        try:
            response = await _get_once(client, url, params, timeout_seconds)
        except httpx.TimeoutException as exc:
            if last_attempt:
                raise FetchError(f"Timed out fetching page {page}", page=page) from exc
            logger.info("Page %d timeout, retrying (attempt %d/%d)", page, attempt + 1, attempts)
        except httpx.HTTPError as exc:
            raise FetchError(f"Network error fetching page {page}: {exc}", page=page) from exc
        except httpx.InvalidURL as exc:
            raise FetchError(f"Invalid listing URL {url!r}: {exc}", page=page) from exc
        else:
            if response.status_code in RETRYABLE_STATUS_CODES and not last_attempt:
                logger.info(
                    "Page %d returned HTTP %d, retrying (attempt %d/%d)",
                    page,
                    response.status_code,
                    attempt + 1,
                    attempts,
                )
            else:
                return response
        jitter = random.uniform(0, backoff * 0.5)
        await sleep(backoff + jitter)
        backoff *= 2
    # Unreachable: the final attempt always returns or raises
    raise FetchError(f"Could not fetch page {page}", page=page)


async def fetch_page(
    *,
    client: httpx.AsyncClient | None,
    url: str,
    page: int,
    page_param: str = DEFAULT_PAGE_PARAM,
    timeout_seconds: float = 15,
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[JobRecord]:
    """Fetch a single page of listings and parse it to records.

    Raises:
        FetchError: On network failure, timeout, or a non-success status.
        ContractViolation: When the body is not JSON or has the wrong shape.
    """
    if page < 1:
        raise ValueError(f"Page numbers start at 1, got {page}")
    params = {page_param: page}

    async def _fetch(active_client: httpx.AsyncClient) -> httpx.Response:
        return await _get_with_retries(
            active_client,
            url=url,
            page=page,
            params=params,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            sleep=sleep,
        )

    if client is not None:
        response = await _fetch(client)
    else:
        async with httpx.AsyncClient() as tmp_client:
            response = await _fetch(tmp_client)

    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(
            f"Listing source returned HTTP {response.status_code} for page {page}", page=page
        ) from exc

    try:
        payload = response.json()
    except ValueError as exc:
        raise ContractViolation(f"Page {page} is not valid JSON", page=page) from exc
    return parse_page_payload(payload, page=page)


__all__ = [
    "RETRYABLE_STATUS_CODES",
    "USER_AGENT",
    "fetch_page",
]
