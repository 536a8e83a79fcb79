"""
Backoff Retrier - exponential backoff for overloaded upstream calls.

Only overload failures are retried. Anything else (bad key, unknown model,
quota) propagates on the first attempt, and when retries run out the last
underlying error is re-raised untouched.

Worst-case added latency for one call is the sum of the sleeps,
``base_delay * (2**(max_retries - 1) - 1)``, plus the calls themselves;
this compounds across model probing and generation.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from logging_config import log_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Case-insensitive substrings that mark a transient capacity failure
OVERLOAD_MARKERS = ("503", "overloaded", "service unavailable")


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts to make and the first backoff delay (seconds)."""

    max_retries: int
    base_delay: float

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after the 0-based ``attempt`` failed."""
        return self.base_delay * (2 ** attempt)


PROBE_POLICY = RetryPolicy(max_retries=2, base_delay=0.5)
GENERATION_POLICY = RetryPolicy(max_retries=3, base_delay=1.0)


def is_overload_error(error: BaseException) -> bool:
    """Check if error text signals an overloaded / unavailable service."""
    text = str(error).lower()
    return any(marker in text for marker in OVERLOAD_MARKERS)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = GENERATION_POLICY.max_retries,
    base_delay: float = GENERATION_POLICY.base_delay,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation``, retrying overload failures with exponential backoff.

    Args:
        operation: Zero-arg coroutine factory; called once per attempt
        max_retries: Total attempts (>= 1)
        base_delay: Delay in seconds before the second attempt; doubles after
        sleep: Awaitable sleep, injectable for tests

    Returns:
        Whatever ``operation`` returns on its first successful attempt.
    """
    policy = RetryPolicy(max_retries=max_retries, base_delay=base_delay)

    for attempt in range(policy.max_retries):
        try:
            return await operation()
        except Exception as e:
            if is_overload_error(e) and attempt < policy.max_retries - 1:
                delay = policy.delay_for(attempt)
                log_retry(logger, attempt + 1, policy.max_retries, delay)
                await sleep(delay)
                continue
            raise

    # range(max_retries) always returns or raises above
    raise AssertionError("unreachable")


async def retry_with_policy(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """``retry_with_backoff`` driven by a RetryPolicy."""
    return await retry_with_backoff(operation, policy.max_retries, policy.base_delay, sleep=sleep)
