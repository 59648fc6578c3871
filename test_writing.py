#!/usr/bin/env python3
"""
Tests for prompt building, chapter bookkeeping and manuscript export.
"""

import pytest

from openlore.api import Message
from openlore.catalog import CURATED_MODELS, DEFAULT_MODEL, get_model_by_id, get_models_by_provider
from openlore.writing import (
    Chapter,
    ExportFormat,
    ExportOptions,
    PROMPT_TEMPLATES,
    build_length_instruction,
    build_style_instruction,
    build_system_prompt,
    calculate_passage_word_count,
    count_words,
    export_project,
    file_extension,
    find_chapter_for_passage,
    generate_chapter_title,
    get_chapter_stats,
    get_length_option,
    get_project_stats,
    get_prompt_template,
    group_passages_by_chapter,
    is_chapter_start,
    mime_type,
    next_chapter_number,
)
from openlore.writing.export import export_passage


def passage(pid, content, role="assistant"):
    return Message(id=pid, role=role, content=content)


PASSAGES = [
    passage(1, "Write the opening", role="user"),
    passage(2, "The rain fell on Älvheim."),
    passage(3, "Go on", role="user"),
    passage(4, "Mira unrolled the map.\n\nIt was blank."),
    passage(5, "She drew <lines> & hoped."),
]

CHAPTERS = [
    Chapter(id="c1", title="Rain", start_passage_id=1, end_passage_id=3),
    Chapter(id="c2", title="Maps", start_passage_id=4),
]


class TestPrompts:
    def test_templates_are_unique(self):
        ids = [t.id for t in PROMPT_TEMPLATES]
        assert len(ids) == len(set(ids)) == 8
        assert get_prompt_template("dialogue").label == "Write Dialogue"
        assert get_prompt_template("missing") is None

    def test_length_instruction(self):
        assert build_length_instruction("page") == "Aim for approximately 500-800 words."
        assert build_length_instruction("unknown") == ""
        assert get_length_option("short").word_range == (100, 300)

    def test_style_instruction(self):
        assert build_style_instruction("poetic").startswith("Use literary language")
        assert build_style_instruction("unknown") == ""

    def test_system_prompt_joins_parts(self):
        prompt = build_system_prompt("  You are a narrator. ", "short", "action-packed")
        parts = prompt.split("\n\n")
        assert parts[0] == "You are a narrator."
        assert parts[1] == "Aim for approximately 100-300 words."
        assert parts[2].startswith("Write with urgency")

    def test_system_prompt_empty(self):
        assert build_system_prompt(None) is None
        assert build_system_prompt("   ", None, "") is None
        assert build_system_prompt(None, "paragraph") == "Aim for approximately 300-500 words."


class TestCatalog:
    def test_default_model_is_curated(self):
        assert get_model_by_id(DEFAULT_MODEL) is not None
        assert get_model_by_id("nope/nothing") is None

    def test_grouping_keeps_every_model(self):
        grouped = get_models_by_provider()
        assert sum(len(models) for models in grouped.values()) == len(CURATED_MODELS)
        assert [m.id for m in grouped["Anthropic"]][0] == "anthropic/claude-3.5-sonnet"


class TestChapters:
    def test_count_words(self):
        assert count_words("  one two\nthree  ") == 3
        assert count_words("") == 0
        assert count_words("   ") == 0
        assert count_words(None) == 0

    def test_only_assistant_passages_count(self):
        assert calculate_passage_word_count(PASSAGES) == 5 + 7 + 5

    def test_contains(self):
        assert CHAPTERS[0].contains(3)
        assert not CHAPTERS[0].contains(4)
        assert CHAPTERS[1].contains(10_000)
        assert not CHAPTERS[1].contains(3)

    def test_find_chapter(self):
        assert find_chapter_for_passage(2, CHAPTERS).id == "c1"
        assert find_chapter_for_passage(5, CHAPTERS).id == "c2"
        assert find_chapter_for_passage(0, CHAPTERS) is None

    def test_group_passages(self):
        groups = group_passages_by_chapter(PASSAGES, CHAPTERS)
        assert [p.id for p in groups["c1"]] == [1, 2, 3]
        assert [p.id for p in groups["c2"]] == [4, 5]
        assert groups[None] == []

    def test_passages_before_first_chapter(self):
        chapters = [Chapter(id="late", title="Late", start_passage_id=4)]
        groups = group_passages_by_chapter(PASSAGES, chapters)
        assert [p.id for p in groups[None]] == [1, 2, 3]

    def test_chapter_stats(self):
        stats = get_chapter_stats(CHAPTERS, PASSAGES)
        assert [(s.chapter_id, s.passage_count, s.word_count) for s in stats] == [
            ("c1", 3, 5),
            ("c2", 2, 12),
        ]
        assert stats[1].end_passage_id is None

    def test_project_stats_round_half_up(self):
        # 17 words, 3 passages, 2 chapters: 8.5 -> 9, 5.67 -> 6
        stats = get_project_stats(CHAPTERS, PASSAGES)
        assert stats.total_words == 17
        assert stats.total_passages == 3
        assert stats.chapter_count == 2
        assert stats.average_words_per_chapter == 9
        assert stats.average_words_per_passage == 6

    def test_project_stats_empty(self):
        stats = get_project_stats([], [])
        assert stats.average_words_per_chapter == 0
        assert stats.average_words_per_passage == 0

    def test_chapter_helpers(self):
        assert is_chapter_start(4, CHAPTERS).id == "c2"
        assert is_chapter_start(5, CHAPTERS) is None
        assert next_chapter_number(CHAPTERS) == 3
        assert generate_chapter_title(3) == "Chapter 3"

    def test_generated_ids(self):
        first = Chapter(title="A", start_passage_id=1)
        second = Chapter(title="B", start_passage_id=2)
        assert len(first.id) == 10
        assert first.id != second.id


class TestExport:
    def test_txt(self):
        text = export_project(PASSAGES, CHAPTERS, ExportOptions(project_title="Glass City"))
        lines = text.split("\n")

        assert lines[:3] == ["GLASS CITY", "==========", ""]
        assert "CHAPTER 1: RAIN" in lines
        assert "CHAPTER 2: MAPS" in lines
        assert lines[lines.index("CHAPTER 1: RAIN") + 1] == "-" * 40
        assert "Write the opening" not in text

    def test_markdown(self):
        text = export_project(
            PASSAGES, CHAPTERS, ExportOptions(format=ExportFormat.MD, project_title="Glass City")
        )

        assert text.startswith("# Glass City\n")
        assert "## Chapter 1: Rain" in text
        assert "## Chapter 2: Maps" in text
        assert text.index("## Chapter 2: Maps") < text.index("Mira unrolled the map.")

    def test_headers_can_be_disabled(self):
        text = export_project(
            PASSAGES,
            CHAPTERS,
            ExportOptions(format=ExportFormat.MD, include_chapter_headers=False),
        )
        assert "## " not in text
        assert text.startswith("# Untitled")

    def test_no_chapters_means_no_headers(self):
        text = export_project(PASSAGES, [], ExportOptions())
        assert "CHAPTER" not in text

    def test_html_escapes_and_splits_paragraphs(self):
        text = export_project(
            PASSAGES,
            CHAPTERS,
            ExportOptions(format=ExportFormat.HTML, project_title="Tom & Jerry's"),
        )

        assert text.startswith("<!DOCTYPE html>")
        assert "<title>Tom &amp; Jerry&#x27;s</title>" in text
        assert "  <h2>Chapter 2: Maps</h2>" in text
        assert "  <p>Mira unrolled the map.</p>" in text
        assert "  <p>It was blank.</p>" in text
        assert "She drew &lt;lines&gt; &amp; hoped." in text
        assert text.endswith("</html>")

    def test_formats(self):
        assert mime_type(ExportFormat.MD) == "text/markdown"
        assert mime_type(ExportFormat.HTML) == "text/html"
        assert file_extension(ExportFormat.TXT) == ".txt"
        assert export_passage(PASSAGES[1]) == "The rain fell on Älvheim."

    @pytest.mark.parametrize("fmt", list(ExportFormat))
    def test_empty_story(self, fmt):
        text = export_project([], [], ExportOptions(format=fmt, project_title="Empty"))
        assert "Empty" in text or "EMPTY" in text
