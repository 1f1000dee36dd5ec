"""
Streaming functionality for chat responses.

This package contains:
- SSE frame splitting and event parsing
- Token extraction from chat-completion chunks and plain text
- Token spacing for the cumulative response
- The stream driver that ties them to a streaming HTTP body
"""

from __future__ import annotations

from .accumulator import accumulate, append_with_spacing, join_with_spacing, needs_space
from .driver import StreamDriver, StreamSource, TokenCallback
from .models import (
    ChatChunk,
    ParseCondition,
    PlainText,
    Sentinel,
    SessionState,
    SSEEvent,
    StreamingPayload,
    StreamingToken,
    StreamSession,
    TokenDelta,
)
from .parser import (
    FrameSplitter,
    decode_payload,
    extract_streaming_token,
    is_chat_chunk_format,
    parse_event_block,
    split_frames,
    validate_sse_headers,
)

__all__ = [
    "ChatChunk",
    "FrameSplitter",
    "ParseCondition",
    "PlainText",
    "SSEEvent",
    "Sentinel",
    "SessionState",
    "StreamDriver",
    "StreamSession",
    "StreamSource",
    "StreamingPayload",
    "StreamingToken",
    "TokenCallback",
    "TokenDelta",
    "accumulate",
    "append_with_spacing",
    "decode_payload",
    "extract_streaming_token",
    "is_chat_chunk_format",
    "join_with_spacing",
    "needs_space",
    "parse_event_block",
    "split_frames",
    "validate_sse_headers",
]
