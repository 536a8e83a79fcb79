"""
Model Resolver - picks a working Gemini model and remembers it.

Resolution order:
1. The cached "last known good" model, if any, re-probed once.
2. Each ranked candidate in order, first passing probe wins and is cached.

A probe is a ``generate("test")`` call wrapped in the short probe retry
policy, so an overloaded or retired model fails fast without spending
quota. The cache never expires on a timer; it is only cleared when the
cached model fails its probe.

Concurrency: the cache is a single cell shared by all requests. Each read
or write is atomic, but resolution itself is not serialized. Concurrent
requests may probe redundantly and the last writer wins; a wrong cached
value is corrected by the next failed probe.
"""

import asyncio
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Awaitable, Callable, List, Optional, Sequence

from errors import ModelUnavailableError
from services.fallback import FallbackExhausted, Strategy, run_fallback_chain
from services.gemini_client import ModelFactory, ModelHandle
from services.retry import PROBE_POLICY, RetryPolicy, retry_with_policy

logger = logging.getLogger(__name__)

PROBE_PROMPT = "test"


class ModelCache:
    """Holds the last model name that passed a probe."""

    def __init__(self, name: Optional[str] = None):
        self._name = name
        self._lock = Lock()

    def get(self) -> Optional[str]:
        with self._lock:
            return self._name

    def set(self, name: str) -> None:
        with self._lock:
            self._name = name

    def clear(self) -> None:
        with self._lock:
            self._name = None


# Process-wide default cell; tests and alternate wiring pass their own
model_cache = ModelCache()


@dataclass(frozen=True)
class ResolvedModel:
    """A model name plus a handle ready for calls."""

    name: str
    handle: ModelHandle
    from_cache: bool = False


def _looks_overloaded(error: BaseException) -> bool:
    """Log-only overload check, narrower than the retrier's."""
    text = str(error)
    return "503" in text or "overloaded" in text


class ModelResolver:
    """Resolves a working model from a ranked candidate list."""

    def __init__(
        self,
        factory: ModelFactory,
        candidates: Sequence[str],
        cache: Optional[ModelCache] = None,
        probe_policy: RetryPolicy = PROBE_POLICY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.factory = factory
        self.candidates: List[str] = list(candidates)
        self.cache = cache if cache is not None else model_cache
        self.probe_policy = probe_policy
        self._sleep = sleep

    async def probe(self, handle: ModelHandle) -> None:
        """Liveness check: one cheap completion with short backoff."""
        await retry_with_policy(lambda: handle.generate(PROBE_PROMPT), self.probe_policy, sleep=self._sleep)

    def _cached_strategy(self, name: str) -> Strategy[ResolvedModel]:
        async def run() -> ResolvedModel:
            handle = self.factory.get_model(name)
            await self.probe(handle)
            logger.info(f"✓ Using cached model: {name}")
            return ResolvedModel(name=name, handle=handle, from_cache=True)

        def forget(error: Exception) -> None:
            logger.warning(f"Cached model {name} failed, trying others... ({error})")
            self.cache.clear()

        return Strategy(name=f"cached:{name}", run=run, on_failure=forget)

    def _candidate_strategy(self, name: str) -> Strategy[ResolvedModel]:
        async def run() -> ResolvedModel:
            handle = self.factory.get_model(name)
            await self.probe(handle)
            self.cache.set(name)
            logger.info(f"✓ Using model: {name}")
            return ResolvedModel(name=name, handle=handle)

        def report(error: Exception) -> None:
            if _looks_overloaded(error):
                logger.warning(f"Model {name} is overloaded, trying next model...")
            else:
                logger.warning(f"Model {name} not available: {error}")

        return Strategy(name=name, run=run, on_failure=report)

    def strategies(self) -> List[Strategy[ResolvedModel]]:
        """The ordered fallback plan for one resolution pass."""
        plan: List[Strategy[ResolvedModel]] = []
        cached = self.cache.get()
        if cached:
            plan.append(self._cached_strategy(cached))
        plan.extend(self._candidate_strategy(name) for name in self.candidates)
        return plan

    async def resolve(self) -> ResolvedModel:
        """Return a model that just passed its liveness probe.

        Raises:
            ModelUnavailableError: every candidate failed; ``last_error`` is
                the final candidate's failure.
        """
        try:
            _, resolved = await run_fallback_chain(self.strategies())
        except FallbackExhausted as e:
            tried = [name for name, _ in e.attempts]
            raise ModelUnavailableError(last_error=e.last_error, tried=tried) from e.last_error
        return resolved
