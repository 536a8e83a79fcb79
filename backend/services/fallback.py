"""
Fallback Chain - ordered strategies, first success wins.

Both places that degrade gracefully (cached model -> ranked candidates,
multi-turn chat -> flattened prompt) are written as a list of named
strategies handed to ``run_fallback_chain``. Order in the list is the
fallback order; nothing else decides it.

Usage:
    name, value = await run_fallback_chain([
        Strategy("cached", probe_cached, on_failure=forget_cache),
        Strategy("gemini-2.5-flash", probe_flash),
    ])
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Strategy(Generic[T]):
    """One fallback step.

    Attributes:
        name: Label used in logs and returned on success
        run: Zero-arg coroutine factory producing the value
        on_failure: Optional hook called with the exception before moving on
    """

    name: str
    run: Callable[[], Awaitable[T]]
    on_failure: Optional[Callable[[Exception], None]] = None


class FallbackExhausted(Exception):
    """Every strategy failed. ``attempts`` holds (name, error) in order."""

    def __init__(self, attempts: Optional[List[Tuple[str, Exception]]] = None):
        self.attempts = list(attempts or [])
        super().__init__(str(self))

    @property
    def last_error(self) -> Optional[Exception]:
        return self.attempts[-1][1] if self.attempts else None

    def __str__(self) -> str:
        if not self.attempts:
            return "No strategies to try"
        name, error = self.attempts[-1]
        return f"All {len(self.attempts)} strategies failed; last ({name}): {error}"


async def run_fallback_chain(strategies: Sequence[Strategy[T]]) -> Tuple[str, T]:
    """Evaluate strategies in order and return ``(name, value)`` of the first success.

    Raises:
        FallbackExhausted: when every strategy raised (or the list was empty)
    """
    attempts: List[Tuple[str, Exception]] = []

    for strategy in strategies:
        try:
            value = await strategy.run()
        except Exception as e:
            attempts.append((strategy.name, e))
            logger.debug(f"Strategy {strategy.name} failed: {e}")
            if strategy.on_failure is not None:
                strategy.on_failure(e)
            continue
        return strategy.name, value

    raise FallbackExhausted(attempts)
