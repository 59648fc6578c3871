#!/usr/bin/env python3
"""
Tests for incremental SSE frame decoding and frame-to-event mapping.
"""

import pytest

from openlore.streaming import (
    SSEFrameDecoder,
    StreamEvent,
    StreamEventType,
    StreamFrame,
    frame_to_event,
    parse_frame,
)

BODY = (
    'event: context\ndata: {"lore":[{"id":1,"title":"Älvheim"}]}\n\n'
    'event: chunk\ndata: {"delta":"Hel"}\n\n'
    'event: chunk\ndata: {"delta":"lo — wörld 🌍"}\n\n'
    "event: chunk\ndata: {not json}\n\n"
    "event: chunk\ndata: [DONE]\n\n"
    'event: reasoning\ndata: {"delta":"thinking"}\n\n'
    'event: done\ndata: {"chatId":42,"messageId":7,"preview":"Hi"}\n\n'
).encode("utf-8")


def decode_all(chunks: list[bytes]) -> list[StreamEvent]:
    decoder = SSEFrameDecoder()
    events = []
    for chunk in chunks:
        for frame in decoder.feed(chunk):
            event = frame_to_event(frame)
            if event is not None:
                events.append(event)
    for frame in decoder.flush():
        event = frame_to_event(frame)
        if event is not None:
            events.append(event)
    return events


class TestFragmentation:
    """The same bytes must yield the same events however they are split."""

    def test_single_chunk(self):
        events = decode_all([BODY])
        assert [e.type for e in events] == [
            StreamEventType.CONTEXT,
            StreamEventType.CHUNK,
            StreamEventType.CHUNK,
            StreamEventType.REASONING,
            StreamEventType.DONE,
        ]
        assert events[2].delta == "lo — wörld 🌍"
        assert events[0].data == {"lore": [{"id": 1, "title": "Älvheim"}]}

    def test_every_two_way_split_matches(self):
        expected = decode_all([BODY])
        for offset in range(1, len(BODY)):
            assert decode_all([BODY[:offset], BODY[offset:]]) == expected, offset

    def test_one_byte_at_a_time(self):
        expected = decode_all([BODY])
        assert decode_all([BODY[i:i + 1] for i in range(len(BODY))]) == expected

    def test_split_inside_multibyte_character(self):
        emoji_at = BODY.index("🌍".encode())
        chunks = [BODY[:emoji_at + 1], BODY[emoji_at + 1:emoji_at + 3], BODY[emoji_at + 3:]]
        events = decode_all(chunks)
        assert events[2].delta == "lo — wörld 🌍"

    def test_split_between_delimiter_newlines(self):
        body = b'event: chunk\ndata: {"delta":"a"}\n\nevent: chunk\ndata: {"delta":"b"}\n\n'
        first_delimiter = body.index(b"\n\n")
        decoder = SSEFrameDecoder()

        assert decoder.feed(body[:first_delimiter + 1]) == []
        frames = decoder.feed(body[first_delimiter + 1:])
        assert [frame_to_event(f).delta for f in frames] == ["a", "b"]


class TestDecoder:
    def test_partial_frame_is_retained(self):
        decoder = SSEFrameDecoder()
        assert decoder.feed(b'event: chunk\ndata: {"delta":"x"}') == []
        assert decoder.pending == 'event: chunk\ndata: {"delta":"x"}'
        assert decoder.feed(b"\n\n") == [StreamFrame("chunk", '{"delta":"x"}')]
        assert decoder.pending == ""

    def test_unterminated_frame_is_dropped_at_end(self):
        decoder = SSEFrameDecoder()
        decoder.feed(b'event: chunk\ndata: {"delta":"tail"}\n')
        assert decoder.flush() == []

    def test_crlf_line_endings(self):
        body = b'event: chunk\r\ndata: {"delta":"a"}\r\n\r\n'
        assert decode_all([body[:-1], body[-1:]]) == [
            StreamEvent(StreamEventType.CHUNK, delta="a")
        ]

    def test_stats_count_frames_and_bytes(self):
        decoder = SSEFrameDecoder()
        decoder.feed(BODY)
        assert decoder.stats == {"frames": 7, "bytes": len(BODY)}


class TestParseFrame:
    def test_lines_are_trimmed(self):
        frame = parse_frame('  event:  chunk  \n   data:   {"delta":"x"}  ')
        assert frame == StreamFrame("chunk", '{"delta":"x"}')

    def test_last_data_line_wins(self):
        frame = parse_frame('event: chunk\ndata: {"delta":"one"}\ndata: {"delta":"two"}')
        assert frame.data == '{"delta":"two"}'

    def test_frame_without_data_is_ignored(self):
        assert parse_frame("event: chunk") is None
        assert parse_frame(": keepalive comment") is None
        assert parse_frame("event: chunk\ndata:") is None

    def test_frame_without_event_name(self):
        frame = parse_frame('data: {"delta":"x"}')
        assert frame.event is None
        assert frame_to_event(frame) is None


class TestFrameToEvent:
    def test_done_sentinel_is_a_no_op(self):
        assert frame_to_event(StreamFrame("chunk", "[DONE]")) is None
        assert frame_to_event(StreamFrame(None, "[DONE]")) is None

    def test_malformed_json_is_dropped(self):
        assert frame_to_event(StreamFrame("chunk", '{"delta": ')) is None

    @pytest.mark.parametrize("payload", ['{"delta":""}', "{}", '{"delta":5}', "[1,2]", "7"])
    def test_chunk_without_usable_delta(self, payload):
        assert frame_to_event(StreamFrame("chunk", payload)) is None

    def test_unknown_event_is_ignored(self):
        assert frame_to_event(StreamFrame("ping", '{"t":1}')) is None

    def test_error_message(self):
        event = frame_to_event(StreamFrame("error", '{"message":"quota exceeded"}'))
        assert event == StreamEvent(StreamEventType.ERROR, message="quota exceeded")

    @pytest.mark.parametrize("payload", ["{}", '{"message":""}', '{"message":null}'])
    def test_error_without_message_uses_fallback(self, payload):
        event = frame_to_event(StreamFrame("error", payload))
        assert event.message == "Stream error"

    def test_done_payload_is_passed_through(self):
        event = frame_to_event(
            StreamFrame("done", '{"chatId":42,"messageId":7,"preview":"Hi"}')
        )
        assert event.type.is_terminal
        assert event.data == {"chatId": 42, "messageId": 7, "preview": "Hi"}

    def test_context_accepts_any_json(self):
        assert frame_to_event(StreamFrame("context", "[]")).data == []
