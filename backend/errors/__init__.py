"""
Chat Relay Error Handling Module

Provides standardized error codes, exceptions, and response builders
for consistent error handling across the application.

Usage:
    from errors import (
        # Error codes
        ErrorCode,

        # Exceptions
        RelayError,
        ValidationError,
        ConfigError,
        ModelUnavailableError,
        ExternalServiceError,

        # Response builders
        chat_error_body,
        chat_reply_body,

        # Decorators
        handle_async_route_errors,
        log_error,
    )

Example:
    from errors import ValidationError

    if not message or not message.strip():
        raise ValidationError("message is required", parameter="message")
"""

from .codes import ErrorCode
from .exceptions import (
    RelayError,
    ValidationError,
    ConfigError,
    ModelUnavailableError,
    ExternalServiceError,
)
from .response import (
    chat_error_body,
    chat_reply_body,
)
from .handlers import (
    handle_async_route_errors,
    log_error,
)

__all__ = [
    # Error codes
    "ErrorCode",
    # Exceptions
    "RelayError",
    "ValidationError",
    "ConfigError",
    "ModelUnavailableError",
    "ExternalServiceError",
    # Response builders
    "chat_error_body",
    "chat_reply_body",
    # Decorators
    "handle_async_route_errors",
    "log_error",
]
