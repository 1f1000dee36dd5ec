"""
SSE frame splitting, event parsing and token extraction.

The wire format is a subset of Server-Sent Events: records separated by a
blank line, with ``data:``, ``event:``, ``id:`` and ``retry:`` fields. A
``data:`` payload is either a completion sentinel, an OpenAI-compatible chat
completion chunk, or arbitrary plain text.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .models import (
    ChatChunk,
    ParseCondition,
    PlainText,
    Sentinel,
    SSEEvent,
    StreamingPayload,
    StreamingToken,
    StreamSession,
)

# Constants
EVENT_DELIMITER = "\n\n"
SENTINEL_VALUES = frozenset({"[DONE]", "null"})
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"

_RETRY_PATTERN = re.compile(r"[+-]?[0-9]+")


def _reject_constant(name: str) -> float:
    raise ValueError(f"{name} is not valid JSON")


def _loads_json(data: str) -> Any:
    """``json.loads`` without the NaN/Infinity extensions."""
    return json.loads(data, parse_constant=_reject_constant)


def split_frames(buffer: str) -> tuple[list[str], str]:
    """
    Split a buffer into complete event blocks and the unterminated remainder.

    Blocks holding only whitespace are dropped; the remainder is returned
    untouched so nothing is lost across chunk boundaries.
    """
    blocks: list[str] = []
    start = 0
    while (position := buffer.find(EVENT_DELIMITER, start)) >= 0:
        block = buffer[start:position]
        start = position + len(EVENT_DELIMITER)
        if block.strip():
            blocks.append(block)
    return blocks, buffer[start:]


class FrameSplitter:
    """Accumulates decoded text and hands out complete event blocks."""

    def __init__(self) -> None:
        self.buffer = ""

    def feed(self, text: str) -> list[str]:
        """Append text and return every block completed by it."""
        self.buffer += text
        return self.drain()

    def drain(self) -> list[str]:
        blocks, self.buffer = split_frames(self.buffer)
        return blocks

    def take_remainder(self) -> str:
        """Empty the buffer, returning whatever partial data it held."""
        remainder, self.buffer = self.buffer, ""
        return remainder


def _emit(fields: dict[str, Any], events: list[SSEEvent]) -> None:
    if "data" not in fields:
        return
    events.append(
        SSEEvent(
            data=fields["data"],
            type=fields.get("type") or "message",
            id=fields.get("id"),
            retry=fields.get("retry"),
        )
    )


def parse_event_block(
    block: str, session: StreamSession | None = None
) -> list[SSEEvent]:
    """
    Parse one event block into events.

    Repeated ``data:`` lines overwrite each other instead of being joined.
    A blank line inside the block closes the current event, so a block
    holding several records yields one event per record.
    """
    events: list[SSEEvent] = []
    fields: dict[str, Any] = {}

    for raw_line in block.split("\n"):
        line = raw_line.strip()

        if not line:
            _emit(fields, events)
            fields = {}
        elif line.startswith("data:"):
            fields["data"] = line[len("data:"):].strip()
        elif line.startswith("event:"):
            fields["type"] = line[len("event:"):].strip()
        elif line.startswith("id:"):
            fields["id"] = line[len("id:"):].strip()
        elif line.startswith("retry:"):
            match = _RETRY_PATTERN.match(line[len("retry:"):].strip())
            if match:
                fields["retry"] = int(match.group())
            elif session is not None:
                session.record(ParseCondition.RETRY_VALUE_INVALID)
        elif session is not None:
            session.record(ParseCondition.MALFORMED_EVENT)

    _emit(fields, events)
    return events


def decode_payload(data: str) -> StreamingPayload | None:
    """
    Classify an event payload.

    Returns ``None`` for JSON that is not shaped like a chat chunk; such
    payloads carry nothing to display.
    """
    if not data or data in SENTINEL_VALUES:
        return Sentinel(data)

    try:
        parsed = _loads_json(data)
    except ValueError:
        return PlainText(data)

    if not isinstance(parsed, dict) or not parsed.get("choices"):
        return None

    try:
        return ChatChunk.model_validate(parsed)
    except ValidationError:
        return None


def extract_streaming_token(
    data: str, session: StreamSession | None = None
) -> StreamingToken | None:
    """Turn an event payload into a token, or ``None`` when it is discarded."""
    payload = decode_payload(data)

    if session is not None:
        if payload is None:
            session.record(ParseCondition.DISCARDED_PAYLOAD)
        elif isinstance(payload, PlainText):
            session.record(ParseCondition.TOKEN_PARSE_FALLBACK)

    return payload.to_token() if payload is not None else None


def is_chat_chunk_format(data: str) -> bool:
    """Check whether a payload is JSON carrying a ``choices`` list."""
    try:
        parsed = _loads_json(data)
    except ValueError:
        return False
    return isinstance(parsed, dict) and isinstance(parsed.get("choices"), list)


def validate_sse_headers(headers: Mapping[str, str] | None) -> bool:
    """Check that response headers announce an event stream."""
    if headers is None:
        return False
    content_type = headers.get("content-type")
    return bool(content_type) and EVENT_STREAM_CONTENT_TYPE in content_type.lower()
