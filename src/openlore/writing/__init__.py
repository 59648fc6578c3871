"""
Writing tools for long-form stories built from chat passages.

- Prompt templates plus length and style instructions
- Chapter ranges, word counts and statistics
- Export to plain text, Markdown and HTML
"""

from __future__ import annotations

from .chapters import (
    Chapter,
    ChapterStats,
    ProjectStats,
    calculate_passage_word_count,
    count_words,
    find_chapter_for_passage,
    generate_chapter_title,
    get_chapter_stats,
    get_project_stats,
    group_passages_by_chapter,
    is_chapter_start,
    next_chapter_number,
)
from .export import ExportFormat, ExportOptions, export_project, file_extension, mime_type
from .prompts import (
    LENGTH_OPTIONS,
    PROMPT_TEMPLATES,
    STYLE_OPTIONS,
    build_length_instruction,
    build_style_instruction,
    build_system_prompt,
    get_length_option,
    get_prompt_template,
    get_style_option,
)

__all__ = [
    "LENGTH_OPTIONS",
    "PROMPT_TEMPLATES",
    "STYLE_OPTIONS",
    "Chapter",
    "ChapterStats",
    "ExportFormat",
    "ExportOptions",
    "ProjectStats",
    "build_length_instruction",
    "build_style_instruction",
    "build_system_prompt",
    "calculate_passage_word_count",
    "count_words",
    "export_project",
    "file_extension",
    "find_chapter_for_passage",
    "generate_chapter_title",
    "get_chapter_stats",
    "get_length_option",
    "get_project_stats",
    "get_prompt_template",
    "get_style_option",
    "group_passages_by_chapter",
    "is_chapter_start",
    "mime_type",
    "next_chapter_number",
]
