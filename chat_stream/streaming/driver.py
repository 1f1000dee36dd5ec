"""
Stream driver: reads a streaming HTTP body and turns it into ordered tokens.

A session moves INIT -> READING -> DRAINING -> CLOSED. The source is released
exactly once on every exit path, including cancellation.
"""

from __future__ import annotations

import codecs
import uuid
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Iterator, Mapping
from contextlib import aclosing
from typing import Protocol

import httpx

from ..exceptions import InvalidStreamFormat, StreamUnavailable
from ..logging_utils import ContextualLogger, log_operation
from .accumulator import accumulate
from .models import (
    ParseCondition,
    SessionState,
    SSEEvent,
    StreamSession,
    TokenDelta,
)
from .parser import (
    FrameSplitter,
    extract_streaming_token,
    parse_event_block,
    validate_sse_headers,
)

TokenCallback = Callable[[str, str], None]


class StreamSource(Protocol):
    """Readable streaming response; ``httpx.Response`` satisfies it."""

    headers: Mapping[str, str]

    def aiter_bytes(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


class StreamDriver:
    """
    Drives one or more independent stream sessions.

    The driver holds only policy; all per-session state lives in the
    StreamSession created for each run, so concurrent sessions can share a
    driver.
    """

    def __init__(self, strict_headers: bool = False, encoding: str = "utf-8"):
        self.strict_headers = strict_headers
        self.encoding = encoding

    @log_operation("stream_session")
    async def run(
        self,
        source: StreamSource | None,
        on_token: TokenCallback | None = None,
        *,
        request_id: str | None = None,
        session: StreamSession | None = None,
    ) -> str:
        """
        Read the source to completion, calling ``on_token(delta, cumulative)``
        for every token with content, and return the cumulative response.
        """
        session = session or StreamSession(request_id=request_id or uuid.uuid4().hex)

        async with aclosing(self.iter_deltas(source, session=session)) as deltas:
            async for delta in deltas:
                if on_token is not None:
                    on_token(delta.content, delta.accumulated_content)

        return session.cumulative

    async def iter_deltas(
        self,
        source: StreamSource | None,
        *,
        session: StreamSession | None = None,
    ) -> AsyncGenerator[TokenDelta]:
        """Yield token deltas in source order until the stream completes."""
        session = session or StreamSession(request_id=uuid.uuid4().hex)
        log = ContextualLogger(
            {"request_id": session.request_id, "component": "stream_driver"}
        )

        if source is None:
            session.state = SessionState.CLOSED
            raise StreamUnavailable(
                "Response body is not readable", request_id=session.request_id
            )

        try:
            self._check_source(source, session, log)

            splitter = FrameSplitter()
            decoder = codecs.getincrementaldecoder(self.encoding)()
            session.state = SessionState.READING
            log.debug("Stream session reading")

            try:
                async for chunk in source.aiter_bytes():
                    text = chunk if isinstance(chunk, str) else decoder.decode(chunk)
                    for block in splitter.feed(text):
                        for delta in self._process_block(session, block, log):
                            yield delta
                        if session.completed:
                            break
                    if session.completed:
                        break
            except (httpx.StreamConsumed, httpx.StreamClosed) as e:
                raise StreamUnavailable(
                    f"Response body is not readable: {e}",
                    request_id=session.request_id,
                ) from e

            if not session.completed:
                session.state = SessionState.DRAINING
                blocks = splitter.feed(decoder.decode(b"", final=True))
                if remainder := splitter.take_remainder():
                    blocks.append(remainder)
                for block in blocks:
                    for delta in self._process_block(session, block, log):
                        yield delta
                    if session.completed:
                        break

        finally:
            session.state = SessionState.CLOSED
            await source.aclose()
            log.debug(
                "Stream session closed",
                finish_reason=session.finish_reason,
                **session.get_stats(),
            )

    def _check_source(
        self, source: StreamSource, session: StreamSession, log: ContextualLogger
    ) -> None:
        if getattr(source, "is_closed", False) or not callable(
            getattr(source, "aiter_bytes", None)
        ):
            raise StreamUnavailable(
                "Response body is not readable", request_id=session.request_id
            )

        headers = getattr(source, "headers", None)
        if validate_sse_headers(headers):
            return

        content_type = headers.get("content-type") if headers is not None else None
        if self.strict_headers:
            raise InvalidStreamFormat(
                f"Expected text/event-stream but got: {content_type}",
                content_type=content_type,
                request_id=session.request_id,
            )
        log.warning("Unexpected content type for event stream", content_type=content_type)

    def _process_block(
        self, session: StreamSession, block: str, log: ContextualLogger
    ) -> Iterator[TokenDelta]:
        for event in parse_event_block(block, session):
            delta = self._process_event(session, event, log)
            if delta is not None:
                yield delta
            if session.completed:
                return

    def _process_event(
        self, session: StreamSession, event: SSEEvent, log: ContextualLogger
    ) -> TokenDelta | None:
        if event.id is not None:
            session.last_event_id = event.id

        if event.retry is not None:
            session.retry_ms = event.retry
            log.info("SSE retry hint received", retry_ms=event.retry)

        if event.type == "error":
            session.record(ParseCondition.ERROR_EVENT)
            log.warning("SSE error event received", data=event.data)
            return None

        token = extract_streaming_token(event.data, session)
        if token is None:
            return None

        if token.is_complete:
            session.finish_reason = token.finish_reason or "stop"

        if not token.content:
            return None

        accumulate(session, token.content)
        session.token_count += 1
        return TokenDelta(
            content=token.content,
            accumulated_content=session.cumulative,
            is_complete=token.is_complete,
            finish_reason=token.finish_reason,
            event_id=event.id,
        )
