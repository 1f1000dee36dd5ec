"""
Incremental SSE decoding for streaming chat responses.

This package turns a streaming HTTP body into ordered chat tokens:
- Frame splitting that survives arbitrary chunk boundaries
- OpenAI-compatible chunk decoding with a plain-text fallback
- Cumulative response reconstruction with natural token spacing
- An httpx client for event-stream chat endpoints
"""

from __future__ import annotations

from .client import ChatStreamClient
from .config import Configuration
from .exceptions import (
    ChatStreamError,
    InvalidStreamFormat,
    StreamRequestError,
    StreamUnavailable,
)
from .logging_utils import GENERIC_ERROR_MESSAGE, StreamErrorHandler, format_stream_error
from .streaming import StreamDriver, StreamingToken, StreamSession, TokenDelta

__all__ = [
    # Client
    "ChatStreamClient",
    "Configuration",
    # Exceptions
    "ChatStreamError",
    "GENERIC_ERROR_MESSAGE",
    "InvalidStreamFormat",
    "StreamDriver",
    "StreamErrorHandler",
    "StreamRequestError",
    "StreamSession",
    "StreamUnavailable",
    "StreamingToken",
    "TokenDelta",
    "format_stream_error",
]
