#!/usr/bin/env python3
"""
Tests for explicit client state: chapter book edits and the JSON state store.
"""

import asyncio
import json

import pytest

from openlore.config import Configuration
from openlore.exceptions import StateError
from openlore.state import (
    ChapterBook,
    ChatUiState,
    StateStore,
    ThemeState,
    async_file_lock,
)


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / "nested" / "state.json")


@pytest.fixture
def store(state_path):
    return StateStore(state_path, lock_timeout=2.0)


class TestChapterBook:
    def test_add_closes_previous_open_chapter(self):
        book = ChapterBook()
        first = book.add_chapter(7, "Chapter 1", 1)
        second = book.add_chapter(7, "Chapter 2", 6)

        chapters = book.chapters(7)
        assert [c.id for c in chapters] == [first.id, second.id]
        assert chapters[0].end_passage_id == 5
        assert chapters[1].end_passage_id is None

    def test_add_keeps_explicit_end(self):
        book = ChapterBook()
        first = book.add_chapter(7, "Prologue", 1)
        book.set_chapter_end(7, first.id, 3)
        book.add_chapter(7, "Chapter 1", 10)
        assert book.chapters(7)[0].end_passage_id == 3

    def test_projects_are_independent(self):
        book = ChapterBook()
        book.add_chapter(1, "A", 1)
        assert book.chapters(2) == []

    def test_update_cannot_change_id(self):
        book = ChapterBook()
        chapter = book.add_chapter(1, "Draft", 1)
        book.update_chapter(1, chapter.id, title="Final", id="other")
        updated = book.chapters(1)[0]
        assert updated.id == chapter.id
        assert updated.title == "Final"

    def test_delete_extends_previous_chapter(self):
        book = ChapterBook()
        first = book.add_chapter(1, "One", 1)
        second = book.add_chapter(1, "Two", 5)
        book.add_chapter(1, "Three", 9)
        # Two now spans 5-8
        book.delete_chapter(1, second.id)

        chapters = book.chapters(1)
        assert [c.title for c in chapters] == ["One", "Three"]
        assert chapters[0].id == first.id
        assert chapters[0].end_passage_id == 8

    def test_delete_first_and_unknown(self):
        book = ChapterBook()
        first = book.add_chapter(1, "One", 1)
        book.add_chapter(1, "Two", 5)
        book.delete_chapter(1, "missing")
        assert len(book.chapters(1)) == 2
        book.delete_chapter(1, first.id)
        assert [c.title for c in book.chapters(1)] == ["Two"]

    def test_reorder_drops_unknown_ids(self):
        book = ChapterBook()
        a = book.add_chapter(1, "A", 1)
        b = book.add_chapter(1, "B", 4)
        book.reorder_chapters(1, [b.id, "ghost", a.id])
        assert [c.title for c in book.chapters(1)] == ["B", "A"]

    def test_find_chapter_for_passage(self):
        book = ChapterBook()
        book.add_chapter(1, "A", 2)
        book.add_chapter(1, "B", 4)
        assert book.find_chapter_for_passage(1, 3).title == "A"
        assert book.find_chapter_for_passage(1, 40).title == "B"
        assert book.find_chapter_for_passage(1, 1) is None


class TestUiState:
    def test_draft_key_follows_selection(self):
        ui = ChatUiState()
        assert ui.draft_key == "new"
        ui.select_chat(12)
        assert ui.draft_key == "12"

    def test_drafts(self):
        ui = ChatUiState()
        ui.set_draft("new", "Once upon a time")
        assert ui.drafts == {"new": "Once upon a time"}
        ui.clear_draft("new")
        ui.clear_draft("never-set")
        assert ui.drafts == {}

    def test_only_selected_fields_persist(self):
        ui = ChatUiState(show_sidebar=True, show_context=True)
        assert set(ui.to_persisted()) == {"selected_chat_id", "drafts", "composer"}

    @pytest.mark.parametrize(
        "theme, prefers_dark, expected",
        [("system", True, "dark"), ("system", False, "light"), ("light", True, "light")],
    )
    def test_theme_resolution(self, theme, prefers_dark, expected):
        assert ThemeState(theme=theme).resolve(prefers_dark) == expected


class TestStateStore:
    @pytest.mark.asyncio
    async def test_missing_file_loads_defaults(self, store):
        ui = await store.load(ChatUiState)
        assert ui.selected_chat_id is None
        assert ui.composer.length == "paragraph"

    @pytest.mark.asyncio
    async def test_sections_round_trip_independently(self, store, state_path):
        ui = ChatUiState(selected_chat_id=4, show_sidebar=True)
        ui.set_draft("4", "Ärger im Paradies")
        ui.composer.style = "poetic"
        book = ChapterBook()
        book.add_chapter(4, "Chapter 1", 1)

        await store.save(ui)
        await store.save(book)
        await store.save(ThemeState(theme="dark"))

        loaded_ui = await store.load(ChatUiState)
        assert loaded_ui.selected_chat_id == 4
        assert loaded_ui.drafts == {"4": "Ärger im Paradies"}
        assert loaded_ui.composer.style == "poetic"
        assert loaded_ui.show_sidebar is False
        assert (await store.load(ChapterBook)).chapters(4)[0].title == "Chapter 1"
        assert (await store.load(ThemeState)).theme == "dark"

        with open(state_path, encoding="utf-8") as f:
            document = json.load(f)
        assert set(document) == {"chat-ui", "writing-chapters", "openlore-theme"}
        assert "show_sidebar" not in document["chat-ui"]

    @pytest.mark.asyncio
    async def test_clear_section(self, store):
        await store.save(ThemeState(theme="light"))
        await store.save(ChatUiState(selected_chat_id=1))
        await store.clear(ThemeState)
        await store.clear(ThemeState)

        assert (await store.load(ThemeState)).theme == "system"
        assert (await store.load(ChatUiState)).selected_chat_id == 1

    @pytest.mark.asyncio
    async def test_corrupt_file(self, store, state_path):
        await store.save(ThemeState())
        with open(state_path, "w", encoding="utf-8") as f:
            f.write("{not json")

        with pytest.raises(StateError):
            await store.load(ThemeState)

    @pytest.mark.asyncio
    async def test_non_object_document(self, store, state_path):
        await store.save(ThemeState())
        with open(state_path, "w", encoding="utf-8") as f:
            f.write("[1, 2]")

        with pytest.raises(StateError):
            await store.load(ThemeState)

    @pytest.mark.asyncio
    async def test_invalid_section(self, store, state_path):
        await store.save(ThemeState())
        with open(state_path, "w", encoding="utf-8") as f:
            json.dump({"openlore-theme": {"theme": "sepia"}}, f)

        with pytest.raises(StateError):
            await store.load(ThemeState)

    @pytest.mark.asyncio
    async def test_empty_file_loads_defaults(self, store, state_path):
        await store.save(ThemeState())
        with open(state_path, "w", encoding="utf-8"):
            pass
        assert (await store.load(ThemeState)).theme == "system"

    @pytest.mark.asyncio
    async def test_concurrent_saves_keep_every_section(self, store):
        await asyncio.gather(
            store.save(ChatUiState(selected_chat_id=2)),
            store.save(ThemeState(theme="dark")),
            store.save(ChapterBook()),
        )
        assert (await store.load(ChatUiState)).selected_chat_id == 2
        assert (await store.load(ThemeState)).theme == "dark"

    def test_from_config(self, state_path, monkeypatch):
        monkeypatch.setenv("OPENLORE_STATE_PATH", state_path)
        config = Configuration.from_dict({"state": {"path": "~/ignored.json", "lock_timeout": 3}})
        store = StateStore.from_config(config)
        assert store.path == state_path
        assert store.lock_timeout == 3


@pytest.mark.asyncio
async def test_file_lock_times_out(tmp_path):
    target = str(tmp_path / "locked.json")
    async with async_file_lock(target, timeout=1.0):
        with pytest.raises(TimeoutError):
            async with async_file_lock(target, timeout=0.1):
                pass
