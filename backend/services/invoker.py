"""
Conversation Invoker - produces a reply from a resolved model.

Two strategies, tried in order:

1. ``primary``: with prior turns, seed a chat session with them and send the
   last turn; with no prior turns, a direct completion of the message.
2. ``flattened``: the whole conversation rendered as one plain-text prompt
   and sent as a direct completion. Used when session mode is unsupported
   or broken for the model.

Both sends use the generation retry policy. If the flattened prompt also
fails, its upstream error propagates unchanged.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from services.fallback import FallbackExhausted, Strategy, run_fallback_chain
from services.gemini_client import ModelHandle
from services.history import ConversationTurn, flatten_history, messages_from_turns
from services.retry import GENERATION_POLICY, RetryPolicy, retry_with_policy

logger = logging.getLogger(__name__)

EMPTY_REPLY_FALLBACK = "I couldn't generate a reply."


@dataclass(frozen=True)
class InvocationResult:
    """Reply text plus which path produced it ("direct", "chat" or "flattened")."""

    text: str
    path: str


class ConversationInvoker:
    """Sends a turn sequence to one model with graceful degradation."""

    def __init__(
        self,
        generation_policy: RetryPolicy = GENERATION_POLICY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.generation_policy = generation_policy
        self._sleep = sleep

    async def _with_retry(self, operation):
        return await retry_with_policy(operation, self.generation_policy, sleep=self._sleep)

    async def _primary(self, model: ModelHandle, turns: Sequence[ConversationTurn]) -> InvocationResult:
        seed, current = turns[:-1], turns[-1]

        if not seed:
            text = await self._with_retry(lambda: model.generate(current.text))
            return InvocationResult(text=text or EMPTY_REPLY_FALLBACK, path="direct")

        chat = model.start_chat(history=[t.to_content() for t in seed])
        text = await self._with_retry(lambda: chat.send(current.text))
        return InvocationResult(text=text or EMPTY_REPLY_FALLBACK, path="chat")

    async def _flattened(self, model: ModelHandle, turns: Sequence[ConversationTurn]) -> InvocationResult:
        prior, current = turns[:-1], turns[-1]
        prompt = flatten_history(messages_from_turns(prior), current.text)
        text = await self._with_retry(lambda: model.generate(prompt))
        return InvocationResult(text=text or EMPTY_REPLY_FALLBACK, path="flattened")

    async def invoke(self, model: ModelHandle, turns: Sequence[ConversationTurn]) -> InvocationResult:
        """Produce a reply for ``turns`` (the last one is the new user message)."""
        if not turns:
            raise ValueError("turns must contain at least the new user message")

        def degrade(error: Exception) -> None:
            logger.warning(f"Chat method failed, using simple generateContent: {error}")

        strategies = [
            Strategy(name="primary", run=lambda: self._primary(model, turns), on_failure=degrade),
            Strategy(name="flattened", run=lambda: self._flattened(model, turns)),
        ]
        try:
            _, result = await run_fallback_chain(strategies)
        except FallbackExhausted as e:
            raise e.last_error from None
        return result
