"""
Centralized logging and error handling utilities for chat streaming.

This module provides helpers that standardize how stream sessions log and
how their failures are classified and reported:
- Structured logging with contextual information
- Error classification for hard stream failures
- User-facing error messages
- Operation timing
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog

from .exceptions import (
    ChatStreamError,
    InvalidStreamFormat,
    StreamRequestError,
    StreamUnavailable,
)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

GENERIC_ERROR_MESSAGE = (
    "Sorry, I encountered an error processing your request. Please try again."
)
RATE_LIMIT_MARKER = "maximal inquiries"

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)


def configure_logging(level: str | int = "INFO") -> None:
    """Set the stdlib level that structlog's level filter reads."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(format="%(message)s")
    logging.getLogger().setLevel(level)


class StreamErrorHandler:
    """Centralized stream error handling with structured logging."""

    @staticmethod
    def classify_error(error: BaseException) -> str:
        """
        Classify an error into a reporting category.

        Args:
            error: The exception to classify

        Returns:
            Category name used in logs and error context
        """
        if isinstance(error, InvalidStreamFormat):
            return "invalid_format"
        if isinstance(error, StreamUnavailable):
            return "unavailable"
        if isinstance(error, StreamRequestError):
            return "request_error"
        if isinstance(error, asyncio.CancelledError):
            return "cancelled"
        if isinstance(error, TimeoutError | httpx.TimeoutException):
            return "timeout_error"
        if isinstance(error, ConnectionError | OSError | httpx.NetworkError):
            return "connection_error"
        if isinstance(error, ValueError | TypeError):
            return "parameter_error"
        return "unknown_error"

    @staticmethod
    def wrap_error(
        error: Exception,
        operation: str,
        request_id: str | None = None,
        endpoint: str | None = None,
    ) -> ChatStreamError:
        """
        Attach request context to an error, wrapping foreign exceptions.

        Args:
            error: Original exception
            operation: Description of the operation that failed
            request_id: Identifier of the originating request
            endpoint: Chat endpoint the request targeted

        Returns:
            ChatStreamError carrying the request context
        """
        category = StreamErrorHandler.classify_error(error)

        logger.error(
            "Operation failed",
            operation=operation,
            request_id=request_id,
            endpoint=endpoint,
            error_type=type(error).__name__,
            error_category=category,
            error_message=str(error),
        )

        if isinstance(error, ChatStreamError):
            error.request_id = error.request_id or request_id
            error.endpoint = error.endpoint or endpoint
            return error

        return ChatStreamError(
            f"{operation} failed: {error!s}",
            request_id=request_id,
            endpoint=endpoint,
        )

    @staticmethod
    def user_message(error: BaseException) -> str:
        """Single message suitable for showing to an end user."""
        message = str(error)
        if RATE_LIMIT_MARKER in message:
            return message
        return GENERIC_ERROR_MESSAGE


def format_stream_error(error: BaseException, endpoint: str) -> str:
    """Describe a stream failure for logs and diagnostics."""
    base_message = f"SSE streaming failed for {endpoint}"
    category = StreamErrorHandler.classify_error(error)
    message = str(error)

    if category == "cancelled":
        return f"{base_message}: Request was aborted"
    if category == "connection_error" or "network" in message.lower():
        return f"{base_message}: Network connection error"
    if category == "timeout_error" or "timeout" in message.lower():
        return f"{base_message}: Request timeout"
    return f"{base_message}: {message or 'Unknown error'}"


def log_operation(
    operation: str,
    *,
    log_timing: bool = True,
    context: dict[str, Any] | None = None,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """
    Decorator for logging async operations with structured context.

    Args:
        operation: Description of the operation being performed
        log_timing: Whether to log execution timing
        context: Additional context to include in logs

    Returns:
        Decorated function with logging
    """
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            operation_logger = logger.bind(
                operation=operation,
                function=func.__name__,
                **(context or {}),
            )
            operation_logger.debug("Operation started")
            start_time = time.perf_counter() if log_timing else None

            try:
                result = await func(*args, **kwargs)
            except BaseException as e:
                error_log_data: dict[str, Any] = {
                    "error_type": type(e).__name__,
                    "error_category": StreamErrorHandler.classify_error(e),
                    "error_message": str(e),
                }
                if log_timing and start_time is not None:
                    duration = round((time.perf_counter() - start_time) * 1000, 2)
                    error_log_data["duration_ms"] = duration

                operation_logger.error("Operation failed", **error_log_data)
                raise

            end_log_data: dict[str, Any] = {}
            if log_timing and start_time is not None:
                duration = round((time.perf_counter() - start_time) * 1000, 2)
                end_log_data["duration_ms"] = duration

            operation_logger.debug("Operation completed successfully", **end_log_data)
            return result

        return wrapper
    return decorator


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
    log_timing: bool = True,
):
    """
    Async context manager for operation logging.

    Args:
        operation: Description of the operation
        context: Additional context for logging
        log_timing: Whether to log operation timing

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(
        operation=operation,
        **(context or {}),
    )

    operation_logger.info("Operation started")
    start_time = time.perf_counter() if log_timing else None

    try:
        yield operation_logger

        log_data: dict[str, Any] = {}
        if log_timing and start_time is not None:
            duration = round((time.perf_counter() - start_time) * 1000, 2)
            log_data["duration_ms"] = duration

        operation_logger.info("Operation completed successfully", **log_data)

    except BaseException as e:
        error_log_data: dict[str, Any] = {
            "error_type": type(e).__name__,
            "error_category": StreamErrorHandler.classify_error(e),
            "error_message": str(e),
        }
        if log_timing and start_time is not None:
            duration = round((time.perf_counter() - start_time) * 1000, 2)
            error_log_data["duration_ms"] = duration

        operation_logger.error("Operation failed", **error_log_data)
        raise


class ContextualLogger:
    """Logger that maintains context across related operations."""

    def __init__(self, base_context: dict[str, Any] | None = None):
        self.base_context = base_context or {}
        self._logger = logger.bind(**self.base_context)

    def bind(self, **context: Any) -> ContextualLogger:
        """Create a new logger with additional context."""
        merged_context = {**self.base_context, **context}
        return ContextualLogger(merged_context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message with context."""
        self._logger.info(message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message with context."""
        self._logger.warning(message, **context)

    def error(self, message: str, **context: Any) -> None:
        """Log error message with context."""
        self._logger.error(message, **context)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug message with context."""
        self._logger.debug(message, **context)
