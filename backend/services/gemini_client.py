"""
Gemini Client - wraps Google's Generative AI SDK.

Exposes the three upstream calls the relay makes as awaitables returning
plain text:

- ``GeminiModel.generate(prompt)``: single-shot completion (also the
  liveness probe)
- ``GeminiModel.start_chat(history)`` -> ``GeminiChat.send(text)``:
  stateful multi-turn send

The SDK is imported lazily so the rest of the backend (and its tests) can
run with fake handles that follow the ModelHandle protocol.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Protocol

from errors import ConfigError
from logging_config import log_llm

logger = logging.getLogger(__name__)


class ChatHandle(Protocol):
    """A live multi-turn session on one model."""

    async def send(self, text: str) -> str:
        ...


class ModelHandle(Protocol):
    """What the resolver and invoker need from a model."""

    name: str

    async def generate(self, prompt: str) -> str:
        ...

    def start_chat(self, history: List[Dict[str, Any]]) -> ChatHandle:
        ...


class ModelFactory(Protocol):
    """Builds a handle for a model name."""

    def get_model(self, name: str) -> ModelHandle:
        ...


def extract_text(response: Any) -> str:
    """Pull the reply text out of a GenerateContentResponse.

    ``response.text`` raises ValueError when the candidate has no text part
    (safety block, empty finish); that is reported as an empty reply.
    """
    try:
        return response.text or ""
    except ValueError as e:
        logger.debug(f"Response carried no text: {e}")
        return ""


class GeminiChat:
    """ChatSession wrapper around ``genai.ChatSession``."""

    def __init__(self, session: Any, model_name: str):
        self._session = session
        self._model_name = model_name

    async def send(self, text: str) -> str:
        log_llm(logger, "start", self._model_name)
        start = time.time()
        response = await self._session.send_message_async(text)
        log_llm(logger, "end", self._model_name, time.time() - start)
        return extract_text(response)


class GeminiModel:
    """ModelHandle over ``genai.GenerativeModel``."""

    def __init__(self, model: Any, name: str):
        self._model = model
        self.name = name

    async def generate(self, prompt: str) -> str:
        log_llm(logger, "start", self.name)
        start = time.time()
        response = await self._model.generate_content_async(prompt)
        log_llm(logger, "end", self.name, time.time() - start)
        return extract_text(response)

    def start_chat(self, history: List[Dict[str, Any]]) -> GeminiChat:
        return GeminiChat(self._model.start_chat(history=history), self.name)


class GeminiClient:
    """Factory for Gemini model handles.

    ``genai.configure`` sets the API key process-wide, so there is one
    client; a key change reconfigures the SDK on the next model request.
    """

    def __init__(self, api_key: str = ""):
        self._api_key = api_key
        self._genai: Optional[Any] = None

    @property
    def api_key(self) -> str:
        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        if api_key != self._api_key:
            self._api_key = api_key
            self._genai = None
            logger.info("Gemini API key changed, SDK will be reconfigured")

    def _get_sdk(self):
        if self._genai is None:
            import google.generativeai as genai

            if not self._api_key:
                raise ConfigError("Gemini API key not configured", setting="GEMINI_API_KEY")

            genai.configure(api_key=self._api_key)
            self._genai = genai
            logger.info("Gemini SDK configured")
        return self._genai

    def get_model(self, name: str) -> GeminiModel:
        genai = self._get_sdk()
        return GeminiModel(genai.GenerativeModel(name), name)


_client: Optional[GeminiClient] = None


def get_gemini_client(api_key: str) -> GeminiClient:
    """Get the shared client, switching it to ``api_key`` if needed."""
    global _client
    if _client is None:
        _client = GeminiClient(api_key)
    else:
        _client.set_api_key(api_key)
    return _client
