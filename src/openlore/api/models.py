# src/openlore/api/models.py
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Role = Literal["system", "user", "assistant"]


class ApiModel(BaseModel):
    """Base for backend payloads: camelCase on the wire, snake_case here."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class BaseEntity(ApiModel):
    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Lore(BaseEntity):
    title: str
    content: str


class Character(BaseEntity):
    name: str
    bio: str | None = None


class Chat(BaseEntity):
    title: str | None = None
    model: str
    character_id: int | None = None


class Message(ApiModel):
    """A stored chat message. Assistant messages are the passages of a story."""
    id: int
    chat_id: int | None = None
    user_id: str | None = None
    role: str
    content: str
    reasoning: str | None = None
    created_at: datetime | None = None


class User(ApiModel):
    id: str
    email: str
    name: str
    email_verified: bool = False
    image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResult(ApiModel):
    user: User | None = None
    token: str | None = None


class KeyStatus(ApiModel):
    """Whether an OpenRouter key is stored for the account."""
    exists: bool
    last4: str | None = None


class KeyUpdate(ApiModel):
    ok: bool
    last4: str | None = None


class ModelInfo(ApiModel):
    id: str
    name: str | None = None


class LoreSuggestion(ApiModel):
    title: str
    content: str


class ExtractLoreResult(ApiModel):
    suggestion: LoreSuggestion | None = None
    saved: Lore | None = None
