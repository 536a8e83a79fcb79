"""
Error Classifier - maps raw upstream failures to user-facing categories.

The upstream SDK reports failures as text ("503 The model is overloaded",
"404 models/x is not found", ...). Classification is an ordered list of
(predicate, category) rules; the first match wins, so precedence is the
list order:

    OVERLOADED > NOT_FOUND > UNAUTHORIZED > FORBIDDEN > RATE_LIMITED > UNKNOWN

Status codes match case-sensitively, words case-insensitively. This is
presentation only: retry decisions were already made by the retrier with
its own, narrower overload check.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from errors import ErrorCode, ModelUnavailableError

DEFAULT_ERROR_MESSAGE = "Error communicating with Gemini API"


class ErrorCategory(str, Enum):
    """Closed set of categories a failed chat turn is reported as."""

    OVERLOADED = "overloaded"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    UNKNOWN = "unknown"


USER_MESSAGES = {
    ErrorCategory.OVERLOADED: (
        "The AI model is currently overloaded. Please try again in a few moments. "
        "The system will automatically retry with different models."
    ),
    ErrorCategory.NOT_FOUND: "Model not found. Please check your API key has access to the requested model.",
    ErrorCategory.UNAUTHORIZED: "Invalid API key. Please check your GEMINI_API_KEY in .env file.",
    ErrorCategory.FORBIDDEN: "API key doesn't have permission to access this model.",
    ErrorCategory.RATE_LIMITED: "Rate limit exceeded. Please wait a moment before trying again.",
}

ERROR_CODES = {
    ErrorCategory.OVERLOADED: ErrorCode.LLM_OVERLOADED,
    ErrorCategory.NOT_FOUND: ErrorCode.LLM_NOT_FOUND,
    ErrorCategory.UNAUTHORIZED: ErrorCode.LLM_UNAUTHORIZED,
    ErrorCategory.FORBIDDEN: ErrorCode.LLM_FORBIDDEN,
    ErrorCategory.RATE_LIMITED: ErrorCode.LLM_RATE_LIMITED,
    ErrorCategory.UNKNOWN: ErrorCode.LLM_UNKNOWN,
}


def _contains(*codes: str, words: Tuple[str, ...] = ()) -> Callable[[str], bool]:
    lowered = tuple(w.lower() for w in words)

    def predicate(text: str) -> bool:
        if any(code in text for code in codes):
            return True
        folded = text.lower()
        return any(word in folded for word in lowered)

    return predicate


CLASSIFICATION_RULES: List[Tuple[Callable[[str], bool], ErrorCategory]] = [
    (_contains("503", words=("overloaded", "service unavailable")), ErrorCategory.OVERLOADED),
    (_contains("404", words=("not found",)), ErrorCategory.NOT_FOUND),
    (_contains("401", words=("api key",)), ErrorCategory.UNAUTHORIZED),
    (_contains("403"), ErrorCategory.FORBIDDEN),
    (_contains("429", words=("rate limit",)), ErrorCategory.RATE_LIMITED),
]


@dataclass(frozen=True)
class ClassifiedError:
    """Category plus the text shown to the user."""

    category: ErrorCategory
    message: str

    @property
    def code(self) -> ErrorCode:
        return ERROR_CODES[self.category]


def categorize(text: str) -> ErrorCategory:
    """Category for a raw failure message."""
    for predicate, category in CLASSIFICATION_RULES:
        if predicate(text):
            return category
    return ErrorCategory.UNKNOWN


def user_message(category: ErrorCategory, raw_message: Optional[str]) -> str:
    """Fixed template for a category; UNKNOWN passes the raw text through."""
    if category is ErrorCategory.UNKNOWN:
        return raw_message or DEFAULT_ERROR_MESSAGE
    return USER_MESSAGES[category]


def classify(error: BaseException) -> ClassifiedError:
    """Classify an exception that escaped the orchestration core.

    For ModelUnavailableError the category comes from the last candidate's
    failure; an UNKNOWN result still shows the composite message.
    """
    raw = str(error)
    basis = raw
    if isinstance(error, ModelUnavailableError) and error.last_error is not None:
        basis = str(error.last_error)
    category = categorize(basis)
    return ClassifiedError(category=category, message=user_message(category, raw))
