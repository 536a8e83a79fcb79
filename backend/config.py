"""
Runtime Configuration for the chat relay.

Provides a singleton RuntimeConfig class holding the upstream credential,
the ranked model candidates and the retry parameters. Values come from the
environment at startup; out-of-range numbers fall back to the built-in
defaults with a warning.

Usage:
    from config import runtime_config
    candidates = runtime_config.model_candidates
"""

import os
import logging
from dataclasses import dataclass, field, fields
from typing import Dict, Any, List

logger = logging.getLogger(__name__)


# Ranked by hand: stable and fast first, then more capable, then "latest" aliases
DEFAULT_MODEL_CANDIDATES = [
    "gemini-2.5-flash",        # Stable, fast model
    "gemini-2.5-pro",          # Stable, more capable
    "gemini-flash-latest",     # Latest flash version
    "gemini-pro-latest",       # Latest pro version
    "gemini-2.0-flash-001",    # Stable fallback
    "gemini-2.0-flash",        # Alternative fallback
]


def _split_candidates(raw: str) -> List[str]:
    """Parse a comma-separated candidate list, dropping blanks and duplicates."""
    names = [item.strip() for item in raw.split(",") if item.strip()]
    return list(dict.fromkeys(names))


def _candidates_default() -> List[str]:
    """Get model candidates: env var > built-in ranking."""
    raw = os.environ.get("GEMINI_MODEL_CANDIDATES", "")
    parsed = _split_candidates(raw)
    return parsed or list(DEFAULT_MODEL_CANDIDATES)


# Accepted ranges for numeric settings, with the value used when out of range
VALIDATION_RANGES: Dict[str, tuple] = {
    "probe_max_retries": (1, 10, 2),
    "probe_base_delay": (0.0, 30.0, 0.5),
    "generation_max_retries": (1, 10, 3),
    "generation_base_delay": (0.0, 60.0, 1.0),
    "history_limit": (1, 500, 30),
    "list_models_timeout": (1.0, 120.0, 15.0),
    "test_models_limit": (1, 50, 5),
}


@dataclass
class RuntimeConfig:
    """
    Singleton configuration for the relay.

    All values have defaults from environment variables; tests and
    alternate wiring construct their own instances with explicit values.
    """

    # Upstream credential (env only, never exported by to_dict)
    gemini_api_key: str = field(default_factory=lambda: os.environ.get("GEMINI_API_KEY", "").strip())
    gemini_api_base: str = field(
        default_factory=lambda: os.environ.get(
            "GEMINI_API_BASE", "https://generativelanguage.googleapis.com"
        ).rstrip("/")
    )

    # Ranked model candidates
    model_candidates: List[str] = field(default_factory=_candidates_default)

    # Liveness probe retry policy (cheap and short)
    probe_max_retries: int = field(default_factory=lambda: int(os.environ.get("PROBE_MAX_RETRIES", "2")))
    probe_base_delay: float = field(default_factory=lambda: float(os.environ.get("PROBE_BASE_DELAY", "0.5")))

    # Generation retry policy (more patient)
    generation_max_retries: int = field(
        default_factory=lambda: int(os.environ.get("GENERATION_MAX_RETRIES", "3"))
    )
    generation_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("GENERATION_BASE_DELAY", "1.0"))
    )

    # Conversation window the HTTP shell keeps before calling the core
    history_limit: int = field(default_factory=lambda: int(os.environ.get("CHAT_HISTORY_LIMIT", "30")))

    # Diagnostics endpoints
    list_models_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LIST_MODELS_TIMEOUT", "15.0"))
    )
    test_models_limit: int = field(default_factory=lambda: int(os.environ.get("TEST_MODELS_LIMIT", "5")))

    # HTTP shell
    cors_origins: str = field(default_factory=lambda: os.environ.get("CORS_ORIGINS", "*"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))

    def __post_init__(self):
        for key, (lo, hi, fallback) in VALIDATION_RANGES.items():
            value = getattr(self, key)
            if not (lo <= value <= hi):
                logger.warning(f"Config rejected {key}={value} (must be {lo}-{hi}), using {fallback}")
                setattr(self, key, fallback)
        if not self.model_candidates:
            logger.warning("Config rejected empty model candidate list, using built-in ranking")
            self.model_candidates = list(DEFAULT_MODEL_CANDIDATES)

    @property
    def has_api_key(self) -> bool:
        """True when an upstream credential is configured."""
        return bool(self.gemini_api_key)

    def get_cors_origins(self) -> List[str]:
        """CORS origins as a list ("*" stays a single wildcard entry)."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()] or ["*"]

    def to_dict(self) -> Dict[str, Any]:
        """Export current config as dict (the credential is reported as set/unset only)."""
        result = {}
        for field_info in fields(self):
            if field_info.name == "gemini_api_key":
                result["gemini_api_key_set"] = self.has_api_key
                continue
            result[field_info.name] = getattr(self, field_info.name)
        return result


# Singleton instance
runtime_config = RuntimeConfig()
