"""
Chapter bookkeeping over a chat's passages.

A chapter spans passage ids ``start_passage_id`` through ``end_passage_id``
inclusive; an open chapter (no end) runs to the end of the story. Only
assistant passages count towards word totals.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from pydantic import BaseModel, Field

from openlore.api.models import Message


def _chapter_id() -> str:
    return uuid.uuid4().hex[:10]


class Chapter(BaseModel):
    id: str = Field(default_factory=_chapter_id)
    title: str
    start_passage_id: int
    end_passage_id: int | None = None

    def contains(self, passage_id: int) -> bool:
        if passage_id < self.start_passage_id:
            return False
        return self.end_passage_id is None or passage_id <= self.end_passage_id


class ChapterStats(BaseModel):
    chapter_id: str
    title: str
    passage_count: int
    word_count: int
    start_passage_id: int
    end_passage_id: int | None = None


class ProjectStats(BaseModel):
    total_words: int
    total_passages: int
    chapter_count: int
    average_words_per_chapter: int
    average_words_per_passage: int


def count_words(text: str | None) -> int:
    if not text or not text.strip():
        return 0
    return len(text.split())


def calculate_passage_word_count(passages: Sequence[Message]) -> int:
    return sum(count_words(p.content) for p in passages if p.role == "assistant")


def find_chapter_for_passage(
    passage_id: int, chapters: Sequence[Chapter]
) -> Chapter | None:
    """First chapter whose range holds ``passage_id``."""
    for chapter in chapters:
        if chapter.contains(passage_id):
            return chapter
    return None


def group_passages_by_chapter(
    passages: Sequence[Message], chapters: Sequence[Chapter]
) -> dict[str | None, list[Message]]:
    """Bucket passages by chapter id; ``None`` holds those before any chapter."""
    groups: dict[str | None, list[Message]] = {None: []}
    for chapter in chapters:
        groups[chapter.id] = []

    for passage in passages:
        chapter = find_chapter_for_passage(passage.id, chapters)
        groups[chapter.id if chapter else None].append(passage)

    return groups


def get_chapter_stats(
    chapters: Sequence[Chapter], passages: Sequence[Message]
) -> list[ChapterStats]:
    grouped = group_passages_by_chapter(passages, chapters)
    return [
        ChapterStats(
            chapter_id=chapter.id,
            title=chapter.title,
            passage_count=len(grouped.get(chapter.id, [])),
            word_count=calculate_passage_word_count(grouped.get(chapter.id, [])),
            start_passage_id=chapter.start_passage_id,
            end_passage_id=chapter.end_passage_id,
        )
        for chapter in chapters
    ]


def get_project_stats(
    chapters: Sequence[Chapter], passages: Sequence[Message]
) -> ProjectStats:
    total_words = calculate_passage_word_count(passages)
    total_passages = sum(1 for p in passages if p.role == "assistant")
    chapter_count = len(chapters)

    return ProjectStats(
        total_words=total_words,
        total_passages=total_passages,
        chapter_count=chapter_count,
        average_words_per_chapter=(
            _round_half_up(total_words / chapter_count) if chapter_count else 0
        ),
        average_words_per_passage=(
            _round_half_up(total_words / total_passages) if total_passages else 0
        ),
    )


def _round_half_up(value: float) -> int:
    # round() would send 2.5 to 2
    return int(value + 0.5)


def is_chapter_start(passage_id: int, chapters: Sequence[Chapter]) -> Chapter | None:
    return next((c for c in chapters if c.start_passage_id == passage_id), None)


def next_chapter_number(chapters: Sequence[Chapter]) -> int:
    return len(chapters) + 1


def generate_chapter_title(chapter_number: int) -> str:
    return f"Chapter {chapter_number}"
