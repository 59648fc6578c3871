"""
Error types for the OpenLore client.

- ApiError: a REST call was rejected by the backend or never reached it
- StreamError: a chat stream ended with an error event
- StateError: the local state file could not be read
"""

from __future__ import annotations

from typing import Any


class OpenLoreError(Exception):
    """Base error for everything raised by this package."""


class ApiError(OpenLoreError):
    """Backend request failure with HTTP context.

    ``status`` is ``0`` when the request never produced a response
    (connection refused, timeout and similar transport failures).
    """

    def __init__(
        self,
        message: str,
        status: int,
        data: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data or {}

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401


class StreamError(OpenLoreError):
    """A chat stream terminated with an error instead of a done event."""

    def __init__(self, message: str, partial_text: str = ""):
        super().__init__(message)
        self.message = message
        self.partial_text = partial_text


class StateError(OpenLoreError):
    """Persisted client state is unreadable."""
