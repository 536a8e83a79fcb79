"""
History Adapter - shapes caller-supplied chat history for the upstream model.

The browser keeps a simple log of ``{"sender": "user"|"bot", "text": ...}``
entries. Gemini expects ``{"role": "user"|"model", "parts": [...]}`` turns.
This module converts between the two and builds the plain-text transcript
used when the multi-turn chat path is unavailable.

Everything here is pure: no network, no shared state.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Literal, Optional, Sequence

Sender = Literal["user", "bot"]
Role = Literal["user", "model"]

DEFAULT_HISTORY_LIMIT = 30

_ROLE_FOR_SENDER = {"user": "user", "bot": "model"}
_SPEAKER_FOR_SENDER = {"user": "User", "bot": "Assistant"}


@dataclass(frozen=True)
class Message:
    """One entry of the caller's chat log (oldest first)."""

    sender: Sender
    text: str


@dataclass(frozen=True)
class ConversationTurn:
    """One upstream-facing turn."""

    role: Role
    text: str

    def to_content(self) -> dict:
        """Render as a Gemini ``Content`` dict."""
        return {"role": self.role, "parts": [self.text]}


def coerce_history(raw: Optional[Iterable[Any]], limit: int = DEFAULT_HISTORY_LIMIT) -> List[Message]:
    """Build Message objects from a loosely-typed request payload.

    Accepts dicts or objects with ``sender``/``text`` attributes. Entries with
    an unknown sender or empty text are dropped; only the most recent
    ``limit`` entries are kept.
    """
    if not raw:
        return []

    messages: List[Message] = []
    for item in raw:
        if isinstance(item, Message):
            messages.append(item)
            continue
        if isinstance(item, dict):
            sender, text = item.get("sender"), item.get("text")
        else:
            sender, text = getattr(item, "sender", None), getattr(item, "text", None)
        if sender not in _ROLE_FOR_SENDER or not isinstance(text, str) or not text:
            continue
        messages.append(Message(sender=sender, text=text))

    if limit > 0:
        messages = messages[-limit:]
    return messages


def build_conversation_turns(history: Sequence[Message], new_message: str) -> List[ConversationTurn]:
    """Translate history and append the new message as the final user turn.

    Output length is always ``len(history) + 1``.
    """
    turns = [ConversationTurn(role=_ROLE_FOR_SENDER[m.sender], text=m.text) for m in history]
    turns.append(ConversationTurn(role="user", text=new_message))
    return turns


def flatten_history(history: Sequence[Message], new_message: str) -> str:
    """Render history as a single completion prompt.

    With no history the prompt is just the new message.
    """
    if not history:
        return new_message

    transcript = "\n".join(f"{_SPEAKER_FOR_SENDER[m.sender]}: {m.text}" for m in history)
    return f"Previous conversation:\n{transcript}\n\nUser: {new_message}\nAssistant:"


def messages_from_turns(turns: Sequence[ConversationTurn]) -> List[Message]:
    """Inverse of the role mapping, used when only turns are at hand."""
    return [Message(sender="user" if t.role == "user" else "bot", text=t.text) for t in turns]
