"""
Backend REST client.

- Lore and character CRUD
- Chat listing, messages and streaming
- Session authentication
- AI provider key management and lore extraction
"""

from __future__ import annotations

from openlore.exceptions import ApiError, OpenLoreError, StateError, StreamError

from .client import AiApi, ApiClient, AuthApi, ChatApi, Resource
from .models import (
    AuthResult,
    Character,
    Chat,
    ExtractLoreResult,
    KeyStatus,
    KeyUpdate,
    Lore,
    LoreSuggestion,
    Message,
    ModelInfo,
    User,
)

__all__ = [
    "AiApi",
    "ApiClient",
    # Exceptions
    "ApiError",
    "AuthApi",
    "AuthResult",
    "Character",
    "Chat",
    "ChatApi",
    "ExtractLoreResult",
    "KeyStatus",
    "KeyUpdate",
    "Lore",
    "LoreSuggestion",
    "Message",
    "ModelInfo",
    "OpenLoreError",
    "Resource",
    "StateError",
    "StreamError",
    "User",
]
