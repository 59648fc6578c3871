"""
Chat streaming over Server-Sent Events.

- SSE frame decoding with byte-boundary safe UTF-8 handling
- Typed events and callback dispatch
- Cancellation handles for in-flight streams
"""

from __future__ import annotations

from .client import StreamClient, StreamHandle
from .models import (
    StreamAccumulator,
    StreamCallbacks,
    StreamDone,
    StreamEvent,
    StreamEventType,
    StreamFrame,
    StreamRequest,
    StreamResult,
)
from .parser import SSEFrameDecoder, frame_to_event, parse_frame

__all__ = [
    "SSEFrameDecoder",
    "StreamAccumulator",
    "StreamCallbacks",
    "StreamClient",
    "StreamDone",
    "StreamEvent",
    "StreamEventType",
    "StreamFrame",
    "StreamHandle",
    "StreamRequest",
    "StreamResult",
    "frame_to_event",
    "parse_frame",
]
