"""Shared helpers for CLI command handlers."""

import asyncio
import functools
import json
import logging
import sys

from martrello.config import build_persistence, load_config
from martrello.controller import MoveController
from martrello.errors import MartrelloError
from martrello.model.node import Node
from martrello.model.store import BoardStore

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(format=LOG_FORMAT, stream=sys.stderr, level=level.upper())


def command(handler):
    """Wrap ``async handler(args, controller)`` as a synchronous CLI handler.

    Loads config from args, opens the backend, loads every board into a
    fresh store and closes the backend afterwards. Errors exit 1.
    """

    @functools.wraps(handler)
    def run(args) -> int:
        try:
            config = load_config(api_url=getattr(args, "api", None), data_file=getattr(args, "file", None))
        except MartrelloError as e:
            error(str(e), args.json)
        configure_logging(config["log_level"])
        try:
            return asyncio.run(_session(config, handler, args))
        except MartrelloError as e:
            error(str(e), args.json)

    return run


async def _session(config: dict, handler, args) -> int:
    persistence = build_persistence(config)
    try:
        controller = MoveController(BoardStore(), persistence, timeout=config["timeout"])
        await controller.refresh()
        return await handler(args, controller)
    finally:
        await persistence.close()


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2))


def output_result(data: dict, text: str, json_mode: bool) -> None:
    """Output mutation result as JSON or plain text."""
    if json_mode:
        output_json(data)
    else:
        print(text)


def error(message: str, json_mode: bool) -> None:
    """Print error to stderr and exit 1."""
    if json_mode:
        print(json.dumps({"error": message}), file=sys.stderr)
    else:
        print(f"error: {message}", file=sys.stderr)
    sys.exit(1)


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def board_summary(board: Node) -> dict:
    """Build a board summary dict."""
    return {
        "id": board.id,
        "title": board.title,
        "lists": len(board.lists),
        "cards": sum(len(lst.cards) for lst in board.lists),
    }


def format_board_line(b: dict) -> str:
    return f"{b['id']}  {b['title']:<20} {plural(b['lists'], 'list')}, {plural(b['cards'], 'card')}"


def format_list_line(lst: Node, indent: str = "") -> str:
    return f"{indent}{lst.id}  {lst.title:<16} {plural(len(lst.cards), 'card')}"


def format_card_line(card: Node, indent: str = "  ") -> str:
    return f"{indent}{card.id}  {card.title}"
