"""
Chat stream client.

POSTs a chat message to the backend and turns the Server-Sent-Events body
into typed events, either as an async generator (``events``) or through
caller callbacks with a cancellation handle (``stream``).
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncGenerator, Callable
from typing import TYPE_CHECKING, Any

import httpx

from openlore.exceptions import StreamError
from openlore.logging_utils import ContextualLogger

from .models import (
    StreamAccumulator,
    StreamCallbacks,
    StreamEvent,
    StreamRequest,
    StreamResult,
)
from .parser import SSEFrameDecoder, frame_to_event

if TYPE_CHECKING:
    from openlore.config import Configuration

DEFAULT_STREAM_PATH = "/chat/stream"
DEFAULT_READ_CHUNK_SIZE = 4096
DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=300.0, write=10.0, pool=10.0)

# Success statuses that never carry an event body
NO_BODY_STATUSES = frozenset({204, 205})


class StreamHandle:
    """Cancellation handle for one callback-driven stream."""

    def __init__(self) -> None:
        self._cancelled = False
        self._task: asyncio.Task[None] | None = None

    def _attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def cancel(self) -> None:
        """Abort the request. No callback fires after this returns."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def done(self) -> bool:
        return self._task is None or self._task.done()

    async def wait(self) -> None:
        """Wait for the stream to finish.

        Returns quietly when the stream was cancelled through ``cancel()``;
        re-raises anything a callback raised. Cancelling the waiting task
        itself still raises ``CancelledError``.
        """
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if not self._cancelled or (current is not None and current.cancelling()):
                raise


class StreamClient:
    """Streams chat completions from the backend's SSE endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        path: str = DEFAULT_STREAM_PATH,
        read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
        timeout: httpx.Timeout | None = None,
    ):
        if http_client is None and base_url is None:
            raise ValueError("StreamClient needs either base_url or http_client")

        self._owns_client = http_client is None
        self.http: httpx.AsyncClient = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout or DEFAULT_TIMEOUT,
        )
        self.path = path
        self.read_chunk_size = read_chunk_size

    @classmethod
    def from_config(
        cls,
        config: Configuration,
        http_client: httpx.AsyncClient | None = None,
    ) -> StreamClient:
        """Build a client from the ``stream`` and ``http_client`` sections."""
        stream_config = config.get_stream_config()
        if http_client is None:
            http_config = config.get_http_client_config()
            timeout = httpx.Timeout(
                connect=http_config["connect_timeout"],
                read=http_config["read_timeout"],
                write=http_config["write_timeout"],
                pool=http_config["pool_timeout"],
            )
            return cls(
                config.get_api_config()["base_url"],
                path=stream_config["path"],
                read_chunk_size=stream_config["read_chunk_size"],
                timeout=timeout,
            )
        return cls(
            http_client=http_client,
            path=stream_config["path"],
            read_chunk_size=stream_config["read_chunk_size"],
        )

    async def events(self, request: StreamRequest) -> AsyncGenerator[StreamEvent]:
        """
        Yield the events of one chat stream in wire order.

        The sequence is finite and ends after the first ``done`` or ``error``
        event, or when the body ends. Request rejection and transport
        failures arrive as a final ``error`` event. Closing the generator or
        cancelling its consumer closes the HTTP response.
        """
        log = ContextualLogger({"chat_id": request.chat_id, "model": request.model})
        decoder = SSEFrameDecoder()

        try:
            async with self.http.stream(
                "POST",
                self.path,
                json=request.to_payload(),
                headers={"Accept": "text/event-stream"},
            ) as response:
                if not response.is_success or response.status_code in NO_BODY_STATUSES:
                    message = await self._read_error_message(response)
                    log.warning(
                        "Stream request rejected",
                        status=response.status_code,
                        error_message=message,
                    )
                    yield StreamEvent.error(message)
                    return

                log.debug("Stream opened", status=response.status_code)
                async for chunk in response.aiter_bytes(self.read_chunk_size):
                    for frame in decoder.feed(chunk):
                        event = frame_to_event(frame)
                        if event is None:
                            continue
                        yield event
                        if event.type.is_terminal:
                            log.debug("Stream finished", outcome=event.type.value)
                            return

                for frame in decoder.flush():
                    event = frame_to_event(frame)
                    if event is not None:
                        yield event
                        if event.type.is_terminal:
                            return

                log.debug("Stream ended without terminal event", **decoder.stats)

        except asyncio.CancelledError:
            log.debug("Stream cancelled", **decoder.stats)
            raise
        except Exception as e:
            log.warning(
                "Stream transport failure",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            yield StreamEvent.error(str(e))

    @staticmethod
    async def _read_error_message(response: httpx.Response) -> str:
        try:
            await response.aread()
            body = response.text
        except httpx.HTTPError:
            body = ""
        if body.strip():
            return body
        return response.reason_phrase or f"HTTP {response.status_code}"

    def stream(
        self,
        request: StreamRequest,
        *,
        on_chunk: Callable[[str], Any] | None = None,
        on_reasoning: Callable[[str], Any] | None = None,
        on_context: Callable[[Any], Any] | None = None,
        on_done: Callable[[Any], Any] | None = None,
        on_error: Callable[[str], Any] | None = None,
    ) -> StreamHandle:
        """
        Start streaming on the running event loop and return immediately.

        Callbacks run on the loop in frame order. At most one of
        ``on_done``/``on_error`` fires; none fires after ``cancel()``.
        """
        callbacks = StreamCallbacks(
            on_chunk=on_chunk,
            on_reasoning=on_reasoning,
            on_context=on_context,
            on_done=on_done,
            on_error=on_error,
        )
        handle = StreamHandle()
        task = asyncio.get_running_loop().create_task(
            self._dispatch(request, callbacks, handle)
        )
        task.add_done_callback(_log_callback_failure)
        handle._attach(task)
        return handle

    async def _dispatch(
        self,
        request: StreamRequest,
        callbacks: StreamCallbacks,
        handle: StreamHandle,
    ) -> None:
        async with contextlib.aclosing(self.events(request)) as events:
            async for event in events:
                if handle.cancelled:
                    return
                callbacks.dispatch(event)

    async def complete(self, request: StreamRequest) -> StreamResult:
        """Drain a stream and return what it produced.

        Raises:
            StreamError: If the stream ended with an error event.
        """
        accumulator = StreamAccumulator()
        async with contextlib.aclosing(self.events(request)) as events:
            async for event in events:
                accumulator.add(event)

        if accumulator.error is not None:
            raise StreamError(accumulator.error, accumulator.result.text)
        return accumulator.result

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.http.aclose()

    async def __aenter__(self) -> StreamClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def _log_callback_failure(task: asyncio.Task[None]) -> None:
    """Log a caller callback that raised; stream failures never end the task."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        ContextualLogger().error(
            "Stream callback raised",
            error_type=type(error).__name__,
            error_message=str(error),
        )
