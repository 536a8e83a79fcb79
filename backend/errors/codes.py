"""
Error codes for the chat relay.

Provides a standardized taxonomy of error codes organized by category.
Use these codes consistently across all error responses.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the relay.

    Categories:
    - VALIDATION_*: Malformed client input (4xx)
    - LLM_*: Upstream model failures, one per user-facing category
    - EXTERNAL_*: Other remote calls (model listing)
    - INTERNAL_*: Misconfiguration and unexpected failures
    """

    # Validation errors (input checking)
    VALIDATION_MISSING_PARAM = "VALIDATION_MISSING_PARAM"
    VALIDATION_INVALID_TYPE = "VALIDATION_INVALID_TYPE"

    # LLM errors (upstream model interactions)
    LLM_OVERLOADED = "LLM_OVERLOADED"
    LLM_NOT_FOUND = "LLM_NOT_FOUND"
    LLM_UNAUTHORIZED = "LLM_UNAUTHORIZED"
    LLM_FORBIDDEN = "LLM_FORBIDDEN"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"
    LLM_UNKNOWN = "LLM_UNKNOWN"
    LLM_NO_MODEL_AVAILABLE = "LLM_NO_MODEL_AVAILABLE"

    # External service errors
    EXTERNAL_MODEL_LIST_FAILED = "EXTERNAL_MODEL_LIST_FAILED"
    EXTERNAL_NETWORK_ERROR = "EXTERNAL_NETWORK_ERROR"

    # Internal errors (unexpected failures)
    INTERNAL_UNEXPECTED = "INTERNAL_UNEXPECTED"
    INTERNAL_CONFIG_ERROR = "INTERNAL_CONFIG_ERROR"
