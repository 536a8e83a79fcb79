"""Gemini client and chat pipeline wiring.

Builds the orchestration objects from the current RuntimeConfig on each
call, so runtime config updates (candidates, retry policies, API key)
apply to the next request. The model cache is the process-wide cell and
survives across requests.
"""

from typing import Optional

from config import RuntimeConfig, runtime_config
from services.chat_orchestrator import ChatOrchestrator
from services.gemini_client import GeminiClient, get_gemini_client
from services.invoker import ConversationInvoker
from services.model_resolver import ModelCache, ModelResolver, model_cache
from services.retry import RetryPolicy


def get_model_factory(config: Optional[RuntimeConfig] = None) -> GeminiClient:
    """Get the Gemini client for the configured API key."""
    cfg = config or runtime_config
    return get_gemini_client(cfg.gemini_api_key)


def build_chat_orchestrator(
    config: Optional[RuntimeConfig] = None,
    cache: Optional[ModelCache] = None,
) -> ChatOrchestrator:
    """Assemble resolver + invoker + orchestrator from config.

    Args:
        config: RuntimeConfig to read; defaults to the singleton
        cache: Model cache cell; defaults to the process-wide one
    """
    cfg = config or runtime_config
    resolver = ModelResolver(
        factory=get_model_factory(cfg),
        candidates=cfg.model_candidates,
        cache=cache if cache is not None else model_cache,
        probe_policy=RetryPolicy(cfg.probe_max_retries, cfg.probe_base_delay),
    )
    invoker = ConversationInvoker(
        generation_policy=RetryPolicy(cfg.generation_max_retries, cfg.generation_base_delay),
    )
    return ChatOrchestrator(resolver=resolver, invoker=invoker, has_credential=lambda: cfg.has_api_key)


def get_chat_orchestrator() -> ChatOrchestrator:
    """FastAPI dependency for the chat route."""
    return build_chat_orchestrator()
