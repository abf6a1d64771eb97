"""Retry policy for the fetcher.

The decision to try again depends only on how the previous attempt ended and
how many attempts are left, so the policy can be tested without any I/O.
"""

from __future__ import annotations

from trustscrape.scraper.models import ErrorKind

# Statuses worth another attempt.  Every other 4xx is a terminal client error.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429})

_RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset({ErrorKind.TIMEOUT, ErrorKind.NETWORK_ERROR})


def is_retryable(error_kind: ErrorKind, status_code: int = 0) -> bool:
    """Return ``True`` if an attempt that ended this way may be retried."""
    if error_kind in _RETRYABLE_KINDS:
        return True
    if error_kind is ErrorKind.HTTP_ERROR:
        return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code <= 599
    return False


def should_retry(
    error_kind: ErrorKind,
    status_code: int,
    attempt: int,
    max_retries: int,
) -> bool:
    """Decide whether to make another attempt.

    Args:
        error_kind: How the attempt ended.
        status_code: HTTP status of the attempt (0 when there was no response).
        attempt: Zero-based index of the attempt that just finished.
        max_retries: Retries allowed on top of the first attempt.
    """
    return attempt < max_retries and is_retryable(error_kind, status_code)


def backoff_delay(attempt_number: int, base_delay: float) -> float:
    """Linear backoff: ``base_delay * attempt_number`` seconds (1-based)."""
    return base_delay * max(attempt_number, 1)
