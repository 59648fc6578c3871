"""
Explicit client state with a load/save persistence boundary.
"""

from __future__ import annotations

from .models import (
    ChapterBook,
    ChatUiState,
    ComposerConfig,
    PersistedState,
    ThemeState,
)
from .store import StateStore, async_file_lock

__all__ = [
    "ChapterBook",
    "ChatUiState",
    "ComposerConfig",
    "PersistedState",
    "StateStore",
    "ThemeState",
    "async_file_lock",
]
