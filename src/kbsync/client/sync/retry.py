"""Startup readiness gate with exponential backoff.

This module provides:
- retry_until_ready: Wait for the document store to resolve the workspace
- RETRYABLE_EXCEPTIONS: Failures that mean "not ready yet"
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx

from kbsync.client.api import APIError

if TYPE_CHECKING:
    from kbsync.client.api import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_BACKOFF = 5.0  # seconds
DEFAULT_MAX_BACKOFF = 60.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    APIError,
    httpx.HTTPError,
    ConnectionError,
    TimeoutError,
)


def retry_until_ready(
    client: DocumentStore,
    workspace_name: str,
    deadline: float,
    *,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    max_backoff: float = DEFAULT_MAX_BACKOFF,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    log: logging.Logger | None = None,
) -> str:
    """Ensure the workspace exists, retrying until the store is reachable.

    The slug returned is the one the store resolved, which may differ
    from workspace_name; use it for every later workspace operation.

    Args:
        client: Document store to call ensure_workspace on.
        workspace_name: Requested workspace name.
        deadline: Seconds after which to give up.
        initial_backoff: First delay in seconds.
        max_backoff: Delay ceiling in seconds.
        backoff_multiplier: Growth factor per attempt.
        sleep: Sleep function.
        clock: Monotonic clock.
        log: Logger to report retries on.

    Returns:
        Actual workspace slug.

    Raises:
        The last error if the next wait would pass the deadline.
    """
    log = log or logger
    start = clock()
    backoff = initial_backoff
    attempt = 0

    while True:
        attempt += 1
        try:
            slug = client.ensure_workspace(workspace_name)
        except RETRYABLE_EXCEPTIONS as e:
            elapsed = clock() - start
            if elapsed + backoff > deadline:
                log.error(
                    "Document store not ready after %d attempts (%.0fs): %s",
                    attempt,
                    elapsed,
                    e,
                )
                raise
            log.warning("Document store not ready, retrying in %.1fs: %s", backoff, e)
            sleep(backoff)
            backoff = min(backoff * backoff_multiplier, max_backoff)
            continue

        if attempt > 1:
            log.info("Document store ready after %d attempts", attempt)
        return slug
