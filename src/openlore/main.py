"""
OpenLore command line client.

Streams chat messages to the terminal and manages the local writing state
(selected chat, composer settings, chapters) between runs.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import signal
import sys
from typing import Any

import aiofiles

from openlore.api import ApiClient
from openlore.catalog import CURATED_MODELS, get_models_by_provider
from openlore.config import Configuration
from openlore.exceptions import OpenLoreError
from openlore.logging_utils import configure_logging, operation_context
from openlore.state import ChapterBook, ChatUiState, StateStore
from openlore.streaming import StreamDone, StreamRequest
from openlore.writing import (
    ExportFormat,
    ExportOptions,
    LENGTH_OPTIONS,
    STYLE_OPTIONS,
    build_system_prompt,
    export_project,
    generate_chapter_title,
    get_chapter_stats,
    get_project_stats,
    next_chapter_number,
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


async def chat_command(args: argparse.Namespace, config: Configuration) -> int:
    """Send one message and print the streamed reply."""
    store = StateStore.from_config(config)
    ui = await store.load(ChatUiState)

    if args.new:
        ui.select_chat(None)
    elif args.chat_id is not None:
        ui.select_chat(args.chat_id)
    if args.length:
        ui.composer.length = args.length
    if args.style is not None:
        ui.composer.style = args.style or None

    message = " ".join(args.message).strip() or ui.drafts.get(ui.draft_key, "")
    if not message:
        print("Nothing to send: give a message or save a draft first", file=sys.stderr)
        return EXIT_ERROR

    request = StreamRequest(
        model=args.model or config.default_model,
        message=message,
        chat_id=ui.selected_chat_id,
        system=build_system_prompt(args.system, ui.composer.length, ui.composer.style),
        character_id=args.character_id,
        lore_ids=args.lore_id or None,
        title=args.title,
    )
    outcome: dict[str, Any] = {}

    def on_chunk(delta: str) -> None:
        sys.stdout.write(delta)
        sys.stdout.flush()

    def on_reasoning(delta: str) -> None:
        if args.show_reasoning:
            sys.stderr.write(delta)
            sys.stderr.flush()

    def on_context(context: Any) -> None:
        if args.show_context:
            print(json.dumps(context, indent=2), file=sys.stderr)

    def on_done(data: Any) -> None:
        outcome["done"] = data

    def on_error(error_message: str) -> None:
        outcome["error"] = error_message

    async with ApiClient.from_config(config) as api:
        handle = api.chats.stream(
            request,
            on_chunk=on_chunk,
            on_reasoning=on_reasoning,
            on_context=on_context,
            on_done=on_done,
            on_error=on_error,
        )
        loop = asyncio.get_running_loop()
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, handle.cancel)
        try:
            await handle.wait()
        finally:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(signal.SIGINT)

    print()
    draft_key = ui.draft_key
    if handle.cancelled or "error" in outcome:
        ui.set_draft(draft_key, message)
        await store.save(ui)
        if handle.cancelled:
            print("[cancelled]", file=sys.stderr)
            return EXIT_CANCELLED
        print(f"Error: {outcome['error']}", file=sys.stderr)
        return EXIT_ERROR

    ui.clear_draft(draft_key)
    if isinstance(outcome.get("done"), dict) and outcome["done"].get("chatId") is not None:
        done = StreamDone.model_validate(outcome["done"])
        ui.select_chat(done.chat_id)
    await store.save(ui)
    return EXIT_OK


async def models_command(args: argparse.Namespace, config: Configuration) -> int:
    if args.remote:
        async with ApiClient.from_config(config) as api:
            for model in await api.ai.models():
                print(f"{model.id}\t{model.name or ''}")
        return EXIT_OK

    for provider, models in get_models_by_provider().items():
        print(provider)
        for model in models:
            print(f"  {model.id:<40} {model.label}")
    return EXIT_OK


async def export_command(args: argparse.Namespace, config: Configuration) -> int:
    store = StateStore.from_config(config)
    book = await store.load(ChapterBook)
    fmt = ExportFormat(args.format)

    async with operation_context("export", context={"chat_id": args.chat_id}):
        async with ApiClient.from_config(config) as api:
            passages = await api.chats.messages(args.chat_id)
            title = args.title
            if title is None:
                chats = await api.chats.list()
                chat = next((c for c in chats if c.id == args.chat_id), None)
                title = (chat.title if chat else None) or "Untitled"

        document = export_project(
            passages,
            book.chapters(args.chat_id),
            ExportOptions(
                format=fmt,
                include_chapter_headers=not args.no_chapter_headers,
                project_title=title,
            ),
        )

    if args.output:
        async with aiofiles.open(args.output, "w", encoding="utf-8") as f:
            await f.write(document)
    else:
        print(document)
    return EXIT_OK


async def chapter_command(args: argparse.Namespace, config: Configuration) -> int:
    store = StateStore.from_config(config)
    book = await store.load(ChapterBook)

    if args.chapter_action == "add":
        async with ApiClient.from_config(config) as api:
            passages = await api.chats.messages(args.chat_id)
        if not passages:
            print("Add some content before creating a chapter", file=sys.stderr)
            return EXIT_ERROR
        chapters = book.chapters(args.chat_id)
        title = args.title or generate_chapter_title(next_chapter_number(chapters))
        chapter = book.add_chapter(args.chat_id, title, passages[-1].id)
        await store.save(book)
        print(f"Added {chapter.title} ({chapter.id})")
        return EXIT_OK

    if args.chapter_action == "delete":
        book.delete_chapter(args.chat_id, args.chapter_id)
        await store.save(book)
        return EXIT_OK

    async with ApiClient.from_config(config) as api:
        passages = await api.chats.messages(args.chat_id)
    chapters = book.chapters(args.chat_id)
    for stats in get_chapter_stats(chapters, passages):
        end = stats.end_passage_id if stats.end_passage_id is not None else "..."
        print(
            f"{stats.chapter_id}  {stats.title:<30} passages {stats.start_passage_id}-{end}"
            f"  {stats.word_count} words"
        )
    project = get_project_stats(chapters, passages)
    print(
        f"Total: {project.total_words} words in {project.total_passages} passages, "
        f"{project.chapter_count} chapters"
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="openlore", description=__doc__.strip().splitlines()[0])
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    chat = commands.add_parser("chat", help="send a message and stream the reply")
    chat.add_argument("message", nargs="*")
    chat.add_argument("--model", help=f"model id, e.g. {CURATED_MODELS[0].id}")
    chat.add_argument("--chat-id", type=int)
    chat.add_argument("--new", action="store_true", help="start a new chat")
    chat.add_argument("--system")
    chat.add_argument("--character-id", type=int)
    chat.add_argument("--lore-id", type=int, action="append")
    chat.add_argument("--title")
    chat.add_argument("--length", choices=[o.id for o in LENGTH_OPTIONS])
    chat.add_argument("--style", choices=["", *(o.id for o in STYLE_OPTIONS)])
    chat.add_argument("--show-reasoning", action="store_true")
    chat.add_argument("--show-context", action="store_true")
    chat.set_defaults(handler=chat_command)

    models = commands.add_parser("models", help="list available models")
    models.add_argument("--remote", action="store_true", help="ask the backend")
    models.set_defaults(handler=models_command)

    export = commands.add_parser("export", help="export a chat as a manuscript")
    export.add_argument("chat_id", type=int)
    export.add_argument("--format", choices=[f.value for f in ExportFormat], default="md")
    export.add_argument("--title")
    export.add_argument("--no-chapter-headers", action="store_true")
    export.add_argument("-o", "--output")
    export.set_defaults(handler=export_command)

    chapter = commands.add_parser("chapter", help="manage chapters of a chat")
    chapter_actions = chapter.add_subparsers(dest="chapter_action", required=True)
    add = chapter_actions.add_parser("add")
    add.add_argument("chat_id", type=int)
    add.add_argument("--title")
    delete = chapter_actions.add_parser("delete")
    delete.add_argument("chat_id", type=int)
    delete.add_argument("chapter_id")
    listing = chapter_actions.add_parser("list")
    listing.add_argument("chat_id", type=int)
    chapter.set_defaults(handler=chapter_command)

    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = Configuration(args.config)

    logging_config = config.get_logging_config()
    configure_logging(
        "DEBUG" if args.verbose else logging_config.get("level", "WARNING"),
        colors=logging_config.get("colors", True),
    )

    try:
        return await args.handler(args, config)
    except OpenLoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
