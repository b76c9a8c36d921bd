"""Retry helper for rate-limited model endpoints."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

import httpx

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def is_rate_limited(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429
    text = str(exc).lower()
    return "429" in text or "rate limit" in text


def retry_with_backoff(
    operation: Callable[[], T],
    max_retries: int = 3,
    retry_delay: float = 1.0,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying rate-limit failures with exponential backoff.

    Any other error propagates immediately.
    """

    attempts = max(max_retries, 1)
    attempt = 0
    while True:
        try:
            return operation()
        except (httpx.HTTPError, RuntimeError) as exc:
            if not is_rate_limited(exc) or attempt + 1 >= attempts:
                raise
            delay = retry_delay * (2**attempt)
            LOGGER.warning("Rate limit hit, retrying in %.1fs...", delay)
            sleep(delay)
            attempt += 1
