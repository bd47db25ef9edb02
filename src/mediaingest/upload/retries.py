"""Retry decision logic and exponential backoff computation.

Two pure functions used by the upload transport:

* :func:`should_retry` -- decide whether a failed upload attempt is retryable.
* :func:`compute_backoff` -- compute the delay before the next attempt.

Only throttling (``429``), server errors and network-level failures are
retried; every other status is a definitive answer from the provider.
"""

from __future__ import annotations

import random

import httpx

RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether an upload attempt should be retried.

    Parameters
    ----------
    status_code:
        HTTP status of the response, or ``None`` if no response arrived.
    exception:
        The exception raised by the HTTP client, or ``None``.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Total attempts allowed, including the first.
    """
    if attempt + 1 >= max_attempts:
        return False
    if exception is not None:
        return isinstance(exception, RETRYABLE_EXCEPTIONS)
    if status_code is not None:
        return status_code in RETRYABLE_STATUSES
    return False


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 30.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Delay in seconds before the next attempt.

    ``base * 2**attempt`` capped at *maximum*, or the server's
    ``Retry-After`` value when one was sent (also capped).  With *jitter* the
    delay is scaled to 50-100 % of its value.
    """
    if retry_after is not None:
        delay = min(max(retry_after, 0.0), maximum)
    else:
        delay = min(base * (2 ** attempt), maximum)

    if jitter:
        delay *= 0.5 + random.random() * 0.5

    return delay


def parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as seconds, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None
