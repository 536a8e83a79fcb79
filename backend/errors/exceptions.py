"""
Custom exception hierarchy for the chat relay.

All exceptions inherit from RelayError and include:
- code: ErrorCode for categorization
- message: Human-readable error message
- details: Optional additional context
- recoverable: Whether the user can retry/fix the issue
- context: Additional key-value pairs for debugging
"""

from typing import Any, Optional
from .codes import ErrorCode


class RelayError(Exception):
    """Base exception for all relay errors.

    Attributes:
        code: The ErrorCode categorizing this error
        message: Human-readable error message
        details: Optional additional context for the user
        recoverable: Whether the error can be resolved by user action
        context: Additional debugging information
    """

    code: ErrorCode = ErrorCode.INTERNAL_UNEXPECTED
    recoverable: bool = False
    http_status: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        recoverable: Optional[bool] = None,
        **context: Any,
    ):
        self.message = message
        self.details = details
        self.context = context if context else None

        # Allow overriding class defaults
        if code is not None:
            self.code = code
        if recoverable is not None:
            self.recoverable = recoverable

        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(RelayError):
    """Client sent a malformed request (blank message, wrong types)."""

    code = ErrorCode.VALIDATION_MISSING_PARAM
    recoverable = True
    http_status = 400

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        parameter: Optional[str] = None,
        expected: Optional[str] = None,
        received: Optional[str] = None,
        **context: Any,
    ):
        ctx = {**context}
        if parameter:
            ctx["parameter"] = parameter
        if expected:
            ctx["expected"] = expected
        if received:
            ctx["received"] = received
        super().__init__(message, details, **ctx)


class ConfigError(RelayError):
    """Server is missing required configuration (e.g. the upstream API key)."""

    code = ErrorCode.INTERNAL_CONFIG_ERROR
    recoverable = False

    def __init__(self, message: str, details: Optional[str] = None, setting: Optional[str] = None, **context: Any):
        ctx = {**context}
        if setting:
            ctx["setting"] = setting
        super().__init__(message, details, **ctx)


class ModelUnavailableError(RelayError):
    """Every model candidate failed its liveness probe.

    ``last_error`` keeps the final underlying failure so callers can
    categorize it; the message itself is the composite summary.
    """

    code = ErrorCode.LLM_NO_MODEL_AVAILABLE
    recoverable = True

    def __init__(self, last_error: Optional[BaseException] = None, tried: Optional[list] = None, **context: Any):
        self.last_error = last_error
        last = str(last_error) if last_error is not None and str(last_error) else "Unknown"
        message = (
            "No available Gemini model found. All models are either unavailable or overloaded. "
            f"Last error: {last}. Please try again in a few moments."
        )
        ctx = {**context}
        if tried:
            ctx["tried"] = list(tried)
        super().__init__(message, code=ErrorCode.LLM_NO_MODEL_AVAILABLE, **ctx)


class ExternalServiceError(RelayError):
    """Error with a remote call outside the chat path (model listing)."""

    code = ErrorCode.EXTERNAL_NETWORK_ERROR
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        if service == "model_list":
            code = ErrorCode.EXTERNAL_MODEL_LIST_FAILED
        else:
            code = ErrorCode.EXTERNAL_NETWORK_ERROR

        ctx = {**context}
        if service:
            ctx["service"] = service
        if status_code:
            ctx["status_code"] = status_code
        super().__init__(message, details, code=code, **ctx)
