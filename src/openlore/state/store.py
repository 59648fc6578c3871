#!/usr/bin/env python3
"""
Client State Storage Module

Persists the explicit client state objects (chat UI state, theme preference,
chapter book) in a single JSON document, one named section per object.
Loading and saving are explicit calls; nothing is written implicitly.

Features:
- Missing file or section loads defaults
- Cross-process file locking around read-modify-write
- Atomic replace on save so a crash never leaves a half-written file
- Full async/await support
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

import aiofiles
import aiofiles.os
from filelock import FileLock, Timeout
from pydantic import ValidationError

from openlore.exceptions import StateError

from .models import PersistedState

if TYPE_CHECKING:
    from openlore.config import Configuration

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT", bound=PersistedState)


@asynccontextmanager
async def async_file_lock(
    file_path: str, timeout: float = 10.0
) -> AsyncGenerator[None]:
    """
    Async context manager for cross-process file locking with timeout.

    Creates ``<file_path>.lock`` beside the target and holds it for the body
    of the ``async with`` block. The blocking acquire runs in the default
    executor so the event loop keeps running while another process holds
    the lock.

    Raises:
        TimeoutError: If the lock cannot be acquired within the timeout period
    """
    lock_path = f"{file_path}.lock"
    # Acquire and release may run on different executor threads
    file_lock = FileLock(lock_path, timeout=timeout, thread_local=False)
    loop = asyncio.get_running_loop()

    try:
        await loop.run_in_executor(None, file_lock.acquire)
    except Timeout as e:
        raise TimeoutError(f"Failed to acquire file lock within {timeout}s") from e

    try:
        yield
    finally:
        await loop.run_in_executor(None, file_lock.release)


class StateStore:
    """JSON-file store for PersistedState sections."""

    def __init__(self, path: str, lock_timeout: float = 10.0):
        self.path = path
        self.lock_timeout = lock_timeout

    @classmethod
    def from_config(cls, config: Configuration) -> StateStore:
        state_config = config.get_state_config()
        return cls(state_config["path"], lock_timeout=state_config["lock_timeout"])

    async def load(self, state_cls: type[StateT]) -> StateT:
        """Load one section, falling back to defaults when it is absent.

        Raises:
            StateError: If the file is not valid JSON or the section does not
                match the state model.
        """
        self._ensure_parent()
        async with async_file_lock(self.path, self.lock_timeout):
            document = await self._read_document()

        section = document.get(state_cls.section)
        if section is None:
            return state_cls()

        try:
            return state_cls.model_validate(section)
        except ValidationError as e:
            raise StateError(
                f"State section '{state_cls.section}' in {self.path} is invalid: {e}"
            ) from e

    async def save(self, state: PersistedState) -> None:
        """Write one section, leaving the other sections untouched."""
        self._ensure_parent()
        async with async_file_lock(self.path, self.lock_timeout):
            document = await self._read_document()
            document[state.section] = state.to_persisted()
            await self._write_document(document)

        logger.debug("Saved state section %s to %s", state.section, self.path)

    async def clear(self, state_cls: type[PersistedState]) -> None:
        """Drop one section from the file."""
        self._ensure_parent()
        async with async_file_lock(self.path, self.lock_timeout):
            document = await self._read_document()
            if document.pop(state_cls.section, None) is None:
                return
            await self._write_document(document)

    async def _read_document(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return {}

        async with aiofiles.open(self.path, encoding="utf-8") as f:
            raw = await f.read()
        if not raw.strip():
            return {}

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StateError(f"State file {self.path} is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise StateError(
                f"State file {self.path} must hold a JSON object, got {type(document).__name__}"
            )
        return document

    async def _write_document(self, document: dict[str, Any]) -> None:
        tmp_path = f"{self.path}.tmp"
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(document, indent=2, ensure_ascii=False))
        await aiofiles.os.replace(tmp_path, self.path)

    def _ensure_parent(self) -> None:
        parent = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(parent, exist_ok=True)
