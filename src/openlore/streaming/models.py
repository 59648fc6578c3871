"""
Chat stream request, frame and event models.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DONE_SENTINEL = "[DONE]"
STREAM_ERROR_FALLBACK = "Stream error"
STREAM_FAILED_FALLBACK = "Stream failed"


class StreamEventType(Enum):
    """Event names recognized on the chat stream."""
    CHUNK = "chunk"
    REASONING = "reasoning"
    CONTEXT = "context"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamEventType.DONE, StreamEventType.ERROR)


class StreamRequest(BaseModel):
    """Parameters of one chat stream. Immutable once built.

    A missing ``chat_id`` asks the backend to create a new chat.
    """

    model_config = ConfigDict(frozen=True)

    model: str
    message: str
    chat_id: int | None = None
    system: str | None = None
    character_id: int | None = None
    lore_ids: tuple[int, ...] | None = None
    title: str | None = None

    @field_validator("model", "message")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON body posted to the stream endpoint."""
        payload: dict[str, Any] = {}
        if self.chat_id is not None:
            payload["chatId"] = self.chat_id
        payload.update({
            "model": self.model,
            "message": self.message,
            "system": self.system,
            "characterId": self.character_id,
            "loreIds": list(self.lore_ids) if self.lore_ids else None,
            "title": self.title,
        })
        return payload


@dataclass(frozen=True)
class StreamFrame:
    """One blank-line delimited block of the stream."""
    event: str | None
    data: str


@dataclass(frozen=True)
class StreamEvent:
    """Typed event produced from a frame, or from a request/transport failure."""
    type: StreamEventType
    delta: str | None = None
    data: Any = None
    message: str | None = None

    @classmethod
    def error(cls, message: str | None) -> StreamEvent:
        return cls(StreamEventType.ERROR, message=message or STREAM_FAILED_FALLBACK)


class StreamDone(BaseModel):
    """Typed view of a ``done`` payload."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    chat_id: int = Field(alias="chatId")
    message_id: int | None = Field(default=None, alias="messageId")
    preview: str = ""


@dataclass
class StreamCallbacks:
    """Caller hooks for the callback flavour of the stream client."""
    on_chunk: Callable[[str], Any] | None = None
    on_reasoning: Callable[[str], Any] | None = None
    on_context: Callable[[Any], Any] | None = None
    on_done: Callable[[Any], Any] | None = None
    on_error: Callable[[str], Any] | None = None

    def dispatch(self, event: StreamEvent) -> None:
        """Invoke the hook matching ``event``, if one was supplied."""
        match event.type:
            case StreamEventType.CHUNK:
                callback, argument = self.on_chunk, event.delta
            case StreamEventType.REASONING:
                callback, argument = self.on_reasoning, event.delta
            case StreamEventType.CONTEXT:
                callback, argument = self.on_context, event.data
            case StreamEventType.DONE:
                callback, argument = self.on_done, event.data
            case StreamEventType.ERROR:
                callback, argument = self.on_error, event.message
        if callback is not None:
            callback(argument)


@dataclass
class StreamResult:
    """Everything a completed stream delivered."""
    text: str = ""
    reasoning: str = ""
    context: Any = None
    done: dict[str, Any] | None = None
    events: int = 0

    @property
    def chat_id(self) -> int | None:
        if isinstance(self.done, dict):
            return self.done.get("chatId")
        return None

    @property
    def message_id(self) -> int | None:
        if isinstance(self.done, dict):
            return self.done.get("messageId")
        return None


@dataclass
class StreamAccumulator:
    """Folds stream events into a StreamResult as they arrive."""
    result: StreamResult = field(default_factory=StreamResult)
    error: str | None = None

    def add(self, event: StreamEvent) -> None:
        self.result.events += 1
        match event.type:
            case StreamEventType.CHUNK:
                self.result.text += event.delta or ""
            case StreamEventType.REASONING:
                self.result.reasoning += event.delta or ""
            case StreamEventType.CONTEXT:
                self.result.context = event.data
            case StreamEventType.DONE:
                self.result.done = event.data
            case StreamEventType.ERROR:
                self.error = event.message
