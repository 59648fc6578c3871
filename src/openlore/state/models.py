"""
Client state objects.

Each object is plain data passed explicitly to whatever needs it; nothing
here is global. ``StateStore`` moves them to and from disk, one named
section per object.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

from openlore.writing.chapters import Chapter
from openlore.writing.prompts import DEFAULT_LENGTH

Theme = Literal["light", "dark", "system"]
ResolvedTheme = Literal["light", "dark"]

NEW_CHAT_DRAFT_KEY = "new"


class PersistedState(BaseModel):
    """Base for state sections stored by StateStore."""

    section: ClassVar[str]
    # None persists every field
    persisted_fields: ClassVar[set[str] | None] = None

    def to_persisted(self) -> dict[str, Any]:
        return self.model_dump(mode="json", include=self.persisted_fields)


class ComposerConfig(BaseModel):
    length: str = DEFAULT_LENGTH
    style: str | None = None


class ChatUiState(PersistedState):
    """Selected chat, panel toggles, unsent drafts and composer settings."""

    section: ClassVar[str] = "chat-ui"
    persisted_fields: ClassVar[set[str] | None] = {"selected_chat_id", "drafts", "composer"}

    selected_chat_id: int | None = None
    show_context: bool = False
    show_sidebar: bool = False
    drafts: dict[str, str] = Field(default_factory=dict)
    composer: ComposerConfig = Field(default_factory=ComposerConfig)

    @property
    def draft_key(self) -> str:
        if self.selected_chat_id is None:
            return NEW_CHAT_DRAFT_KEY
        return str(self.selected_chat_id)

    def set_draft(self, key: str, value: str) -> None:
        self.drafts[key] = value

    def clear_draft(self, key: str) -> None:
        self.drafts.pop(key, None)

    def select_chat(self, chat_id: int | None) -> None:
        self.selected_chat_id = chat_id


class ThemeState(PersistedState):
    section: ClassVar[str] = "openlore-theme"
    persisted_fields: ClassVar[set[str] | None] = {"theme"}

    theme: Theme = "system"

    def resolve(self, system_prefers_dark: bool) -> ResolvedTheme:
        if self.theme == "system":
            return "dark" if system_prefers_dark else "light"
        return self.theme


class ChapterBook(PersistedState):
    """Chapters of every writing project, keyed by chat id."""

    section: ClassVar[str] = "writing-chapters"

    chapters_by_project: dict[int, list[Chapter]] = Field(default_factory=dict)

    def chapters(self, project_id: int) -> list[Chapter]:
        return self.chapters_by_project.get(project_id, [])

    def add_chapter(self, project_id: int, title: str, start_passage_id: int) -> Chapter:
        """Append a chapter, closing the previous open one just before it."""
        existing = self.chapters(project_id)
        if existing and existing[-1].end_passage_id is None:
            existing[-1] = existing[-1].model_copy(
                update={"end_passage_id": start_passage_id - 1}
            )

        chapter = Chapter(title=title, start_passage_id=start_passage_id)
        self.chapters_by_project[project_id] = [*existing, chapter]
        return chapter

    def update_chapter(self, project_id: int, chapter_id: str, **changes: Any) -> None:
        changes.pop("id", None)
        self.chapters_by_project[project_id] = [
            chapter.model_copy(update=changes) if chapter.id == chapter_id else chapter
            for chapter in self.chapters(project_id)
        ]

    def delete_chapter(self, project_id: int, chapter_id: str) -> None:
        """Remove a chapter; the one before it takes over its range end."""
        chapters = self.chapters(project_id)
        index = next((i for i, c in enumerate(chapters) if c.id == chapter_id), None)
        if index is None:
            return

        deleted = chapters[index]
        updated = chapters[:index] + chapters[index + 1:]
        if index > 0:
            updated[index - 1] = updated[index - 1].model_copy(
                update={"end_passage_id": deleted.end_passage_id}
            )
        self.chapters_by_project[project_id] = updated

    def reorder_chapters(self, project_id: int, chapter_ids: list[str]) -> None:
        """Put chapters in the given order; ids not in the project are dropped."""
        by_id = {chapter.id: chapter for chapter in self.chapters(project_id)}
        self.chapters_by_project[project_id] = [
            by_id[chapter_id] for chapter_id in chapter_ids if chapter_id in by_id
        ]

    def set_chapter_end(self, project_id: int, chapter_id: str, end_passage_id: int) -> None:
        self.update_chapter(project_id, chapter_id, end_passage_id=end_passage_id)

    def find_chapter_for_passage(self, project_id: int, passage_id: int) -> Chapter | None:
        for chapter in self.chapters(project_id):
            if chapter.contains(passage_id):
                return chapter
        return None
