"""Manuscript export of a chat's assistant passages."""

from __future__ import annotations

import html
import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from openlore.api.models import Message

from .chapters import Chapter, find_chapter_for_passage


class ExportFormat(Enum):
    TXT = "txt"
    MD = "md"
    HTML = "html"


MIME_TYPES = {
    ExportFormat.TXT: "text/plain",
    ExportFormat.MD: "text/markdown",
    ExportFormat.HTML: "text/html",
}

HTML_STYLE = [
    "    body { font-family: 'Crimson Pro', Georgia, serif; max-width: 42rem; "
    "margin: 2rem auto; padding: 0 1rem; line-height: 1.7; color: #333; }",
    "    h1 { font-size: 2.5rem; margin-bottom: 2rem; border-bottom: 2px solid "
    "#e5e5e5; padding-bottom: 1rem; }",
    "    h2 { font-size: 1.5rem; margin-top: 3rem; margin-bottom: 1rem; color: #666; }",
    "    p { margin-bottom: 1rem; text-align: justify; }",
    "    @media print { body { max-width: 100%; margin: 0; } "
    "h2 { page-break-before: always; } }",
]

_PARAGRAPH_BREAK = re.compile(r"\n\n+")


@dataclass(frozen=True)
class ExportOptions:
    format: ExportFormat = ExportFormat.TXT
    include_chapter_headers: bool = True
    project_title: str = "Untitled"


def mime_type(fmt: ExportFormat) -> str:
    return MIME_TYPES.get(fmt, "text/plain")


def file_extension(fmt: ExportFormat) -> str:
    return f".{fmt.value}"


def export_passage(passage: Message) -> str:
    return passage.content


def export_project(
    passages: Sequence[Message],
    chapters: Sequence[Chapter],
    options: ExportOptions,
) -> str:
    """Render the story's assistant passages in the requested format."""
    content = [p for p in passages if p.role == "assistant"]
    headers = options.include_chapter_headers and len(chapters) > 0

    match options.format:
        case ExportFormat.MD:
            return _to_markdown(content, chapters, options.project_title, headers)
        case ExportFormat.HTML:
            return _to_html(content, chapters, options.project_title, headers)
        case _:
            return _to_txt(content, chapters, options.project_title, headers)


def _chapter_changes(
    passages: Sequence[Message],
    chapters: Sequence[Chapter],
    headers: bool,
):
    """Pair each passage with (number, chapter) when it opens a new chapter."""
    current_id: str | None = None
    for passage in passages:
        opened = None
        if headers:
            chapter = find_chapter_for_passage(passage.id, chapters)
            if chapter is not None and chapter.id != current_id:
                current_id = chapter.id
                number = next(i for i, c in enumerate(chapters) if c.id == chapter.id) + 1
                opened = (number, chapter)
        yield passage, opened


def _to_txt(
    passages: Sequence[Message], chapters: Sequence[Chapter], title: str, headers: bool
) -> str:
    lines = [title.upper(), "=" * len(title), ""]

    for passage, opened in _chapter_changes(passages, chapters, headers):
        if opened:
            number, chapter = opened
            lines.extend(["", f"CHAPTER {number}: {chapter.title.upper()}", "-" * 40, ""])
        lines.extend([passage.content, ""])

    return "\n".join(lines)


def _to_markdown(
    passages: Sequence[Message], chapters: Sequence[Chapter], title: str, headers: bool
) -> str:
    lines = [f"# {title}", ""]

    for passage, opened in _chapter_changes(passages, chapters, headers):
        if opened:
            number, chapter = opened
            lines.extend(["", f"## Chapter {number}: {chapter.title}", ""])
        lines.extend([passage.content, ""])

    return "\n".join(lines)


def _to_html(
    passages: Sequence[Message], chapters: Sequence[Chapter], title: str, headers: bool
) -> str:
    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '  <meta charset="UTF-8">',
        f"  <title>{html.escape(title)}</title>",
        "  <style>",
        *HTML_STYLE,
        "  </style>",
        "</head>",
        "<body>",
        f"  <h1>{html.escape(title)}</h1>",
    ]

    for passage, opened in _chapter_changes(passages, chapters, headers):
        if opened:
            number, chapter = opened
            lines.append(f"  <h2>Chapter {number}: {html.escape(chapter.title)}</h2>")
        for paragraph in _PARAGRAPH_BREAK.split(passage.content):
            if paragraph.strip():
                lines.append(f"  <p>{html.escape(paragraph.strip())}</p>")

    lines.extend(["</body>", "</html>"])
    return "\n".join(lines)
