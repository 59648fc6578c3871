"""
Incremental SSE frame decoding for the chat stream.

Bytes go in as they arrive off the socket; complete frames come out. The
decoder keeps the only state of a stream: the incremental UTF-8 decoder and
the text of the frame still being assembled.
"""

from __future__ import annotations

import codecs
import json
import logging

from .models import (
    DONE_SENTINEL,
    STREAM_ERROR_FALLBACK,
    StreamEvent,
    StreamEventType,
    StreamFrame,
)

FRAME_DELIMITER = "\n\n"

logger = logging.getLogger(__name__)


class SSEFrameDecoder:
    """Turns arbitrary byte fragments of an SSE body into StreamFrames."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.stats = {"frames": 0, "bytes": 0}

    def feed(self, chunk: bytes) -> list[StreamFrame]:
        """Consume one fragment and return every frame it completed."""
        self.stats["bytes"] += len(chunk)
        return self._push(self._decoder.decode(chunk))

    def flush(self) -> list[StreamFrame]:
        """Finish decoding at end of stream.

        A frame still missing its blank-line terminator is discarded.
        """
        frames = self._push(self._decoder.decode(b"", final=True))
        self._buffer = ""
        return frames

    @property
    def pending(self) -> str:
        return self._buffer

    def _push(self, text: str) -> list[StreamFrame]:
        if not text:
            return []
        # A lone trailing "\r" stays put until its "\n" arrives
        self._buffer = (self._buffer + text).replace("\r\n", "\n")

        *complete, self._buffer = self._buffer.split(FRAME_DELIMITER)
        frames = []
        for block in complete:
            frame = parse_frame(block)
            if frame is not None:
                frames.append(frame)
        self.stats["frames"] += len(frames)
        return frames


def parse_frame(block: str) -> StreamFrame | None:
    """Parse the lines of one frame; frames without data are dropped."""
    event: str | None = None
    data: str | None = None

    for raw_line in block.split("\n"):
        line = raw_line.strip()
        if line.startswith("event:"):
            event = line[6:].strip()
        elif line.startswith("data:"):
            data = line[5:].strip()

    if not data:
        return None
    return StreamFrame(event=event, data=data)


def frame_to_event(frame: StreamFrame) -> StreamEvent | None:
    """Map a frame onto a typed event.

    Returns None for the ``[DONE]`` marker, malformed JSON, unknown event
    names and chunk frames without a usable delta.
    """
    if frame.data == DONE_SENTINEL:
        return None

    try:
        payload = json.loads(frame.data)
    except json.JSONDecodeError:
        logger.debug("Dropping malformed frame: event=%s data=%r", frame.event, frame.data)
        return None

    try:
        event_type = StreamEventType(frame.event)
    except ValueError:
        return None

    match event_type:
        case StreamEventType.CHUNK | StreamEventType.REASONING:
            delta = payload.get("delta") if isinstance(payload, dict) else None
            if not isinstance(delta, str) or not delta:
                return None
            return StreamEvent(event_type, delta=delta)
        case StreamEventType.CONTEXT | StreamEventType.DONE:
            return StreamEvent(event_type, data=payload)
        case StreamEventType.ERROR:
            message = payload.get("message") if isinstance(payload, dict) else None
            if not isinstance(message, str) or not message:
                message = STREAM_ERROR_FALLBACK
            return StreamEvent(event_type, message=message)
    return None
