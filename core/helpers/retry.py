"""
retry.py

Bounded retry with exponential backoff for collaborator calls
(persistence, blob storage). The engine's pure logic never retries;
only the service layer wraps its boundary calls with :func:`retry_call`.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Tuple, Type, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryExhaustedError(Exception):
    """All attempts failed; ``last_error`` holds the final cause."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{operation} failed after {attempts} attempt(s): {last_error}")


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before retry number *attempt* (1-based): base * 2**(attempt-1)."""
    return base_delay * (2 ** (attempt - 1))


def retry_call(
    fn: Callable[[], T],
    *,
    operation: str,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    retry_on: Tuple[Type[BaseException], ...] = (OSError, ConnectionError, TimeoutError),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call *fn* until it succeeds or *max_attempts* is reached.

    Only exceptions listed in *retry_on* are retried; anything else
    propagates immediately.
    """
    attempts = max(1, int(max_attempts))
    last: BaseException | None = None
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except retry_on as ex:
            last = ex
            if attempt == attempts:
                break
            delay = backoff_delay(attempt, base_delay)
            logger.warning("%s failed (attempt %d/%d), retrying in %.2fs: %s",
                           operation, attempt, attempts, delay, ex)
            sleep(delay)
    assert last is not None
    logger.error("%s gave up after %d attempt(s)", operation, attempts)
    raise RetryExhaustedError(operation, attempts, last)
