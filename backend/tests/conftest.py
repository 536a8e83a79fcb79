"""
Shared pytest fixtures and fakes for the chat relay tests.

Upstream Gemini is replaced by scripted in-memory handles that follow the
ModelHandle / ChatHandle protocols. A script is a list of outcomes consumed
one per call: a string is returned, an exception is raised. When the list
runs out the default outcome is used.

Liveness checks are told apart from real completions by their caller
(ModelResolver.probe), not by prompt text.
"""

import contextvars
from typing import Any, Dict, List, Optional, Sequence

import pytest

from services.model_resolver import ModelCache, ModelResolver

_probing = contextvars.ContextVar("probing", default=False)


class Script:
    """Sequence of canned outcomes for one kind of upstream call."""

    def __init__(self, outcomes: Sequence[Any] = (), default: Any = "ok"):
        self._outcomes = list(outcomes)
        self.default = default
        self.calls = 0

    def next(self) -> str:
        self.calls += 1
        item = self._outcomes.pop(0) if self._outcomes else self.default
        if isinstance(item, BaseException):
            raise item
        return item


class FakeChat:
    def __init__(self, history: List[Dict[str, Any]], script: Script):
        self.history = history
        self.sent: List[str] = []
        self._script = script

    async def send(self, text: str) -> str:
        self.sent.append(text)
        return self._script.next()


class FakeModel:
    """ModelHandle fake.

    ``probe`` scripts the liveness prompt, ``generate`` every other direct
    completion, ``chat`` the multi-turn sends.
    """

    def __init__(
        self,
        name: str,
        probe: Sequence[Any] = (),
        generate: Sequence[Any] = (),
        chat: Sequence[Any] = (),
        reply: Any = "Hello from Gemini",
        probe_default: Any = "ok",
        start_chat_error: Optional[Exception] = None,
    ):
        self.name = name
        self.probe_script = Script(probe, default=probe_default)
        self.generate_script = Script(generate, default=reply)
        self.chat_script = Script(chat, default=reply)
        self.start_chat_error = start_chat_error
        self.prompts: List[str] = []
        self.probe_prompts: List[str] = []
        self.chats: List[FakeChat] = []

    @property
    def probes(self) -> int:
        return self.probe_script.calls

    async def generate(self, prompt: str) -> str:
        if _probing.get():
            self.probe_prompts.append(prompt)
            return self.probe_script.next()
        self.prompts.append(prompt)
        return self.generate_script.next()

    def start_chat(self, history: List[Dict[str, Any]]) -> FakeChat:
        if self.start_chat_error is not None:
            raise self.start_chat_error
        chat = FakeChat(history, self.chat_script)
        self.chats.append(chat)
        return chat


class FakeFactory:
    """ModelFactory fake. Unknown names get a model whose probe 404s."""

    def __init__(self, *models: FakeModel):
        self.models = {m.name: m for m in models}
        self.requested: List[str] = []

    def get_model(self, name: str) -> FakeModel:
        self.requested.append(name)
        if name not in self.models:
            self.models[name] = FakeModel(
                name, probe_default=Exception(f"404 models/{name} is not found for API version v1beta")
            )
        return self.models[name]

    def total_probes(self) -> int:
        return sum(m.probes for m in self.models.values())


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


CANDIDATES = ["gemini-2.5-flash", "gemini-2.5-pro", "gemini-flash-latest"]


@pytest.fixture(autouse=True)
def _route_probe_calls(monkeypatch):
    """Send generate() calls made from ModelResolver.probe to the probe script."""
    original = ModelResolver.probe

    async def probe(self, handle):
        token = _probing.set(True)
        try:
            return await original(self, handle)
        finally:
            _probing.reset(token)

    monkeypatch.setattr(ModelResolver, "probe", probe)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def cache():
    """Fresh model cache (never the process-wide one)."""
    return ModelCache()


@pytest.fixture
def candidates():
    return list(CANDIDATES)
