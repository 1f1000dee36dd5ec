"""
Tests for SSE frame splitting and event parsing.
"""

import httpx

from chat_stream.streaming.models import ParseCondition, SSEEvent, StreamSession
from chat_stream.streaming.parser import (
    FrameSplitter,
    is_chat_chunk_format,
    parse_event_block,
    split_frames,
    validate_sse_headers,
)


class TestSplitFrames:
    """Test splitting a buffer into event blocks."""

    def test_single_complete_event(self):
        blocks, remainder = split_frames("data: Hello\n\n")
        assert blocks == ["data: Hello"]
        assert remainder == ""

    def test_multiple_events_and_partial_tail(self):
        blocks, remainder = split_frames("data: Hello\n\ndata: World\n\ndata: Incompl")
        assert blocks == ["data: Hello", "data: World"]
        assert remainder == "data: Incompl"

    def test_empty_blocks_between_delimiters_are_dropped(self):
        blocks, remainder = split_frames("\n\ndata: a\n\n\n\n  \n\ndata: b\n\n")
        assert blocks == ["data: a", "data: b"]
        assert remainder == ""

    def test_empty_buffer(self):
        assert split_frames("") == ([], "")

    def test_buffer_without_delimiter_is_unchanged(self):
        """Repeated calls on an undelimited buffer never consume it."""
        buffer = 'data: {"choices": [{"delta": {"content": "Hel'
        for _ in range(3):
            blocks, buffer = split_frames(buffer)
            assert blocks == []
        assert buffer == 'data: {"choices": [{"delta": {"content": "Hel'

    def test_single_newline_is_not_a_delimiter(self):
        blocks, remainder = split_frames("event: custom\ndata: x\n")
        assert blocks == []
        assert remainder == "event: custom\ndata: x\n"


class TestFrameSplitter:
    """Test the stateful buffer wrapper."""

    def test_delimiter_split_across_feeds(self):
        splitter = FrameSplitter()
        assert splitter.feed("data: one\n") == []
        assert splitter.feed("\ndata: tw") == ["data: one"]
        assert splitter.buffer == "data: tw"
        assert splitter.feed("o\n\n") == ["data: two"]
        assert splitter.buffer == ""

    def test_take_remainder_empties_buffer(self):
        splitter = FrameSplitter()
        splitter.feed("data: tail")
        assert splitter.take_remainder() == "data: tail"
        assert splitter.buffer == ""

    def test_no_characters_lost(self):
        text = "data: a\n\nid: 7\ndata: b\n\nretry: 10\ndata: c"
        splitter = FrameSplitter()
        blocks = []
        for char in text:
            blocks.extend(splitter.feed(char))
        assert blocks == ["data: a", "id: 7\ndata: b"]
        assert splitter.buffer == "retry: 10\ndata: c"


class TestParseEventBlock:
    """Test parsing one block into events."""

    def test_basic_event(self):
        assert parse_event_block("data: Hello world") == [
            SSEEvent(data="Hello world", type="message", id=None, retry=None)
        ]

    def test_custom_type(self):
        events = parse_event_block("event: custom\ndata: Custom data")
        assert events == [SSEEvent(data="Custom data", type="custom")]

    def test_id_and_retry(self):
        events = parse_event_block("id: 123\nevent: message\ndata: Test\nretry: 5000")
        assert events == [SSEEvent(data="Test", type="message", id="123", retry=5000)]

    def test_repeated_data_lines_overwrite(self):
        events = parse_event_block("data: first\ndata: second")
        assert len(events) == 1
        assert events[0].data == "second"

    def test_data_is_trimmed(self):
        assert parse_event_block("data:   spaced out  ")[0].data == "spaced out"

    def test_data_without_space_after_colon(self):
        assert parse_event_block("data:[DONE]")[0].data == "[DONE]"

    def test_empty_data_field_still_emits(self):
        assert parse_event_block("data:") == [SSEEvent(data="")]

    def test_no_data_no_event(self):
        assert parse_event_block("event: ping\nid: 4") == []

    def test_empty_event_type_falls_back_to_message(self):
        assert parse_event_block("event:\ndata: x")[0].type == "message"

    def test_sub_blocks_emit_one_event_each(self):
        events = parse_event_block("data: First\n\ndata: Second\n\n")
        assert [event.data for event in events] == ["First", "Second"]

    def test_fields_do_not_leak_between_sub_blocks(self):
        events = parse_event_block("event: custom\nid: 1\ndata: a\n\ndata: b")
        assert events[1] == SSEEvent(data="b")

    def test_carriage_returns_are_stripped(self):
        assert parse_event_block("data: windows\r")[0].data == "windows"

    def test_invalid_retry_is_dropped(self):
        session = StreamSession(request_id="test")
        events = parse_event_block("retry: soon\ndata: x", session)
        assert events == [SSEEvent(data="x", retry=None)]
        assert session.conditions[ParseCondition.RETRY_VALUE_INVALID] == 1

    def test_retry_with_trailing_text_keeps_leading_digits(self):
        assert parse_event_block("retry: 250ms\ndata: x")[0].retry == 250

    def test_retry_rejects_non_ascii_digits(self):
        session = StreamSession(request_id="test")
        events = parse_event_block("retry: ٣٠٠\ndata: x", session)
        assert events[0].retry is None
        assert session.conditions[ParseCondition.RETRY_VALUE_INVALID] == 1

    def test_unknown_lines_are_ignored(self):
        session = StreamSession(request_id="test")
        events = parse_event_block(": keep-alive\nfoo: bar\ndata: x", session)
        assert events == [SSEEvent(data="x")]
        assert session.conditions[ParseCondition.MALFORMED_EVENT] == 2


class TestHelpers:
    """Test header validation and format detection."""

    def test_event_stream_header(self):
        assert validate_sse_headers(httpx.Headers({"Content-Type": "text/event-stream"}))

    def test_event_stream_with_charset(self):
        headers = {"content-type": "text/event-stream;charset=UTF-8"}
        assert validate_sse_headers(headers)

    def test_wrong_or_missing_header(self):
        assert not validate_sse_headers({"content-type": "application/json"})
        assert not validate_sse_headers({})
        assert not validate_sse_headers(None)

    def test_chat_chunk_format(self):
        assert is_chat_chunk_format('{"choices": []}')
        assert not is_chat_chunk_format('{"choices": "nope"}')
        assert not is_chat_chunk_format('{"id": 1}')
        assert not is_chat_chunk_format("plain text")
        assert not is_chat_chunk_format('{"choices": [], "score": NaN}')
