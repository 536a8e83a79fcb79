"""
Error handling decorators and utilities for the chat relay.

Provides a decorator for consistent error handling across route functions.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from fastapi.responses import JSONResponse

from .exceptions import RelayError

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])


def handle_async_route_errors(route_name: str, logger: Optional[logging.Logger] = None):
    """Decorator that turns exceptions escaping a route into ``{"error": ...}`` JSON.

    RelayError subclasses keep their own HTTP status; anything else is a 500
    carrying the exception text, matching what the browser client renders.

    Args:
        route_name: Name used in the log prefix
        logger: Optional logger instance (defaults to a route-specific logger)

    Example:
        >>> @router.get("/api/list-models")
        ... @handle_async_route_errors("list_models")
        ... async def list_models():
        ...     ...
    """

    def decorator(func: F) -> F:
        log = logger or logging.getLogger(f"relay.{route_name}")

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except RelayError as e:
                log.error(f"[{route_name}] {e.code.value}: {e.message}", exc_info=True)
                body = {"error": e.message}
                if e.details:
                    body["details"] = e.details
                if e.context and e.context.get("suggestion"):
                    body["suggestion"] = e.context["suggestion"]
                return JSONResponse(status_code=e.http_status, content=body)
            except Exception as e:
                log.error(f"[{route_name}] Unexpected error: {e}", exc_info=True)
                return JSONResponse(status_code=500, content={"error": str(e)})

        return wrapper  # type: ignore

    return decorator


def log_error(
    logger: logging.Logger, error: Exception, context: Optional[str] = None, include_traceback: bool = True
) -> None:
    """Log an error with consistent formatting.

    Example:
        >>> log_error(logger, err, context="chat")
        # Logs: "[chat] LLM_OVERLOADED: The AI model is currently overloaded..."
    """
    if isinstance(error, RelayError):
        message = f"{error.code.value}: {error.message}"
    else:
        message = str(error)

    if context:
        message = f"[{context}] {message}"

    logger.error(message, exc_info=include_traceback)
