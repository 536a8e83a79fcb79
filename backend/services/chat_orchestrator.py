"""
Chat Orchestrator - one request/response cycle of the relay

    IDLE -> RESOLVING_MODEL -> INVOKING -> SUCCESS
                   |               |
                   +----> FAILED <-+

Preconditions are checked before any upstream traffic: a blank message is
a client error (400), a missing API key is a server misconfiguration (500).
Every other failure is classified into a user-facing message. Nothing here
raises to the caller; the result is always a ChatOutcome.

Persistence of the user's message and the reply is the caller's job.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from errors import ConfigError, ErrorCode, RelayError, ValidationError, chat_error_body, chat_reply_body, log_error
from logging_config import log_message_in, log_message_out
from services.error_classifier import ClassifiedError, classify
from services.history import Message, build_conversation_turns
from services.invoker import ConversationInvoker
from services.model_resolver import ModelResolver

logger = logging.getLogger(__name__)


class ChatState(str, Enum):
    IDLE = "idle"
    RESOLVING_MODEL = "resolving_model"
    INVOKING = "invoking"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class ChatOutcome:
    """What the HTTP shell sends back."""

    status_code: int
    body: Dict[str, Any]
    state: ChatState
    model: Optional[str] = None
    path: Optional[str] = None
    error: Optional[ClassifiedError] = None
    trail: List[ChatState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is ChatState.SUCCESS


class ChatOrchestrator:
    """Composes resolver, history adapter and invoker into one chat turn."""

    def __init__(
        self,
        resolver: ModelResolver,
        invoker: ConversationInvoker,
        has_credential: Callable[[], bool],
    ):
        self.resolver = resolver
        self.invoker = invoker
        self._has_credential = has_credential

    def _check_preconditions(self, message: Any) -> str:
        if message is not None and not isinstance(message, str):
            raise ValidationError(
                "message is required",
                parameter="message",
                expected="string",
                received=type(message).__name__,
                code=ErrorCode.VALIDATION_INVALID_TYPE,
            )
        if not message or not message.strip():
            raise ValidationError("message is required", parameter="message")
        if not self._has_credential():
            raise ConfigError("Gemini API key not configured", setting="GEMINI_API_KEY")
        return message.strip()

    async def handle(self, message: Any, history: Sequence[Message] = ()) -> ChatOutcome:
        """Run one chat turn.

        Args:
            message: The new user message
            history: Prior messages, oldest first, already trimmed by the caller

        Returns:
            ChatOutcome with ``{"reply": ...}`` or ``{"error": ...}``
        """
        trail = [ChatState.IDLE]

        try:
            text = self._check_preconditions(message)
        except RelayError as e:
            logger.warning(f"Rejected chat request ({e.code.value}): {e.message}")
            trail.append(ChatState.FAILED)
            return ChatOutcome(
                status_code=e.http_status,
                body=chat_error_body(e.message),
                state=ChatState.FAILED,
                trail=trail,
            )

        log_message_in(logger, text, history=len(history))
        model_name: Optional[str] = None

        try:
            trail.append(ChatState.RESOLVING_MODEL)
            resolved = await self.resolver.resolve()
            model_name = resolved.name

            trail.append(ChatState.INVOKING)
            turns = build_conversation_turns(history, text)
            result = await self.invoker.invoke(resolved.handle, turns)
        except Exception as e:
            log_error(logger, e, context="chat")
            classified = classify(e)
            trail.append(ChatState.FAILED)
            return ChatOutcome(
                status_code=500,
                body=chat_error_body(classified.message),
                state=ChatState.FAILED,
                model=model_name,
                error=classified,
                trail=trail,
            )

        trail.append(ChatState.SUCCESS)
        log_message_out(logger, model=model_name, path=result.path, chars=len(result.text))
        return ChatOutcome(
            status_code=200,
            body=chat_reply_body(result.text),
            state=ChatState.SUCCESS,
            model=model_name,
            path=result.path,
            trail=trail,
        )
