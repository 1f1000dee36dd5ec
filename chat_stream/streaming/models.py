"""
Streaming-specific models for SSE decoding and token accumulation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field


class SessionState(Enum):
    """Lifecycle of one stream session."""
    INIT = "init"
    READING = "reading"
    DRAINING = "draining"
    CLOSED = "closed"


class ParseCondition(Enum):
    """Soft parsing outcomes. Counted and logged, never raised."""
    MALFORMED_EVENT = "malformed_event"
    TOKEN_PARSE_FALLBACK = "token_parse_fallback"
    RETRY_VALUE_INVALID = "retry_value_invalid"
    DISCARDED_PAYLOAD = "discarded_payload"
    ERROR_EVENT = "error_event"


@dataclass(frozen=True)
class SSEEvent:
    """One parsed Server-Sent Event record."""
    data: str
    type: str = "message"
    id: str | None = None
    retry: int | None = None


@dataclass(frozen=True)
class StreamingToken:
    """Token extracted from an event payload."""
    content: str
    is_complete: bool
    finish_reason: str | None = None


# OpenAI-compatible chat completion chunk, only the fields we read
class ChoiceDelta(BaseModel):
    role: str | None = None
    content: str | None = None


class ChunkChoice(BaseModel):
    index: int = 0
    delta: ChoiceDelta | None = None
    finish_reason: str | None = None


class ChatChunk(BaseModel):
    """Structured ``data:`` payload in chat-completion chunk shape."""
    id: str | None = None
    model: str | None = None
    choices: list[ChunkChoice] = Field(default_factory=list)

    def to_token(self) -> StreamingToken:
        choice = self.choices[0]
        return StreamingToken(
            content=(choice.delta.content if choice.delta else None) or "",
            is_complete=bool(choice.finish_reason),
            finish_reason=choice.finish_reason,
        )


@dataclass(frozen=True)
class Sentinel:
    """Completion marker (``[DONE]``, ``null`` or an empty payload)."""
    raw: str = ""

    def to_token(self) -> StreamingToken:
        return StreamingToken(content="", is_complete=True, finish_reason="stop")


@dataclass(frozen=True)
class PlainText:
    """Payload that is not JSON, delivered verbatim."""
    text: str

    def to_token(self) -> StreamingToken:
        return StreamingToken(content=self.text, is_complete=False)


StreamingPayload = ChatChunk | Sentinel | PlainText


@dataclass(frozen=True)
class TokenDelta:
    """One delivered token together with the text accumulated so far."""
    content: str
    accumulated_content: str
    is_complete: bool = False
    finish_reason: str | None = None
    event_id: str | None = None


@dataclass
class StreamSession:
    """Mutable state owned by a single stream read-to-completion cycle."""
    request_id: str
    state: SessionState = SessionState.INIT
    cumulative: str = ""
    finish_reason: str | None = None
    last_event_id: str | None = None
    retry_ms: int | None = None
    token_count: int = 0
    conditions: dict[ParseCondition, int] = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        """True once a terminal token was seen."""
        return bool(self.finish_reason)

    def record(self, condition: ParseCondition) -> None:
        self.conditions[condition] = self.conditions.get(condition, 0) + 1

    def get_stats(self) -> dict[str, int]:
        """Counters for monitoring, keyed by condition name."""
        stats = {"tokens": self.token_count}
        stats.update({c.value: n for c, n in self.conditions.items()})
        return stats
