"""Replay a captured chat transcript through the chat handler.

The transcript is JSON lines, one transport event per line:

    {"event": "connect"}
    {"event": "line", "text": "§7[§eSteve§7] §fready"}
    {"event": "page", "lines": ["§7Press §fSHIFT §7to continue", "", "Hi."], "last": false}
    {"event": "confirmationless", "text": "§7[1/1] §2Guard: §aMove along."}
    {"event": "effect", "name": "slowness", "amplifier": 3, "duration": 32767}
    {"event": "effect_remove", "name": "slowness"}
    {"event": "tick", "count": 5}
    {"event": "disconnect"}

Usage:
    python -m chatpage.replay session.jsonl
    python -m chatpage.replay session.jsonl --debug --log-file replay.log
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, TextIO

from dotenv import load_dotenv

from chatpage.config import CONFIG_FILE, HandlerConfig
from chatpage.handler import ChatHandler
from chatpage.router import ChatMessageReceived
from chatpage.styled_text import StyledText
from chatpage.types import NpcDialogue

_LOG_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def read_transcript(lines: Iterable[str]) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield (line number, event) pairs, skipping blank lines and # comments."""
    for number, raw in enumerate(lines, start=1):
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            event = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"line {number}: invalid JSON ({e.msg})") from e
        if not isinstance(event, dict) or "event" not in event:
            raise ValueError(f"line {number}: expected an object with an 'event' key")
        yield number, event


def format_dialogue(dialogue: NpcDialogue) -> str:
    tag = "protected" if dialogue.is_protected else "unprotected"
    body = " | ".join(line.get_string_without_formatting() for line in dialogue.lines)
    return f"DIALOGUE {dialogue.dialogue_type.value} ({tag}): {body}"


def format_chat(event: ChatMessageReceived) -> str:
    return f"CHAT [{event.recipient_type.value}] {event.message.get_string_without_formatting()}"


def _apply(handler: ChatHandler, event: dict[str, Any]) -> bool:
    """Apply one event. Returns False for an unknown event type."""
    kind = event["event"]
    if kind == "line":
        handler.handle_chat_line(StyledText(event["text"]))
    elif kind == "page":
        handler.handle_page(StyledText.of(event["lines"]), bool(event.get("last", False)))
    elif kind == "confirmationless":
        handler.handle_confirmationless_candidate(StyledText(event["text"]))
    elif kind == "effect":
        handler.on_status_effect_update(event["name"], int(event["amplifier"]), int(event["duration"]))
    elif kind == "effect_remove":
        handler.on_status_effect_remove(event["name"])
    elif kind == "tick":
        for _ in range(int(event.get("count", 1))):
            handler.on_tick()
    elif kind == "connect":
        handler.on_connect()
    elif kind == "disconnect":
        handler.on_disconnect()
    else:
        return False
    return True


def replay(events: Iterable[tuple[int, dict[str, Any]]], handler: ChatHandler) -> int:
    """Feed events to the handler. Returns the number of events applied."""
    applied = 0
    for number, event in events:
        try:
            known = _apply(handler, event)
        except KeyError as e:
            raise ValueError(f"line {number}: missing field {e.args[0]!r}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"line {number}: bad field value ({e})") from e
        if not known:
            raise ValueError(f"line {number}: unknown event type {event['event']!r}")
        applied += 1
    return applied


def build_handler(config: HandlerConfig, out: TextIO) -> ChatHandler:
    """Create a handler that prints chat lines and dialogues to ``out``."""
    handler = ChatHandler(on_dialogue=lambda d: print(format_dialogue(d), file=out), config=config)
    handler.router.add_received_listener(lambda e: print(format_chat(e), file=out))
    return handler


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay a chat transcript through the chat handler.")
    parser.add_argument("transcript", type=Path, help="JSON-lines transcript file")
    parser.add_argument("--config", type=Path, default=Path(CONFIG_FILE), help="handler config JSON")
    parser.add_argument("--no-extraction", action="store_true", help="disable NPC dialogue extraction")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    parser.add_argument("--log-file", type=Path, help="also write the log to this file")
    args = parser.parse_args(argv)

    load_dotenv()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if args.log_file:
        handlers.append(logging.FileHandler(args.log_file, encoding="utf-8", mode="w"))
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format=_LOG_FMT,
        handlers=handlers,
    )

    config = HandlerConfig.load(args.config).with_env()
    if args.no_extraction:
        config.needs_page_detector = False

    handler = build_handler(config, sys.stdout)

    try:
        with open(args.transcript, encoding="utf-8") as f:
            applied = replay(read_transcript(f), handler)
    except OSError as e:
        logger.error("Cannot read transcript: %s", e)
        return 1
    except ValueError as e:
        logger.error("Bad transcript: %s", e)
        return 1

    logger.info("Replayed %d event(s)", applied)
    return 0


if __name__ == "__main__":
    sys.exit(main())
