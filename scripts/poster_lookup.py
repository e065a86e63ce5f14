#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from poster_finder.core.config import settings
from poster_finder.host.memory import MemoryDocument
from poster_finder.schemas.messages import dump_outbound
from poster_finder.services.channel import RecordingChannel
from poster_finder.services.commands import CommandHandler
from poster_finder.services.tmdb import TmdbClient

logger = logging.getLogger("poster_lookup")

_COMMAND_TYPES = {
    "search": "search",
    "trending": "get-trending",
    "random": "random-pick",
    "insert": "insert-poster",
}


def _build_message(args: argparse.Namespace) -> dict[str, Any]:
    msg_type = _COMMAND_TYPES[args.command]
    media_type = "tv" if args.tv else "movie"

    if msg_type == "search":
        return {"type": msg_type, "mediaType": media_type, "query": " ".join(args.query)}
    if msg_type == "insert-poster":
        return {"type": msg_type, "posterPath": args.poster_path, "title": args.title}
    return {"type": msg_type, "mediaType": media_type}


def _placed_image(doc: MemoryDocument) -> bytes | None:
    for node in doc.page.children:
        for paint in getattr(node, "fills", []):
            data = doc.image_bytes(getattr(paint, "image_hash", ""))
            if data:
                return data
    return None


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run poster finder commands against TMDB and print the panel messages."
    )
    parser.add_argument("--tv", action="store_true", help="Query TV shows instead of movies.")
    parser.add_argument(
        "--direct",
        action="store_true",
        help="For random picks, download and place the poster instead of handing off to the panel.",
    )
    parser.add_argument(
        "--save",
        type=Path,
        default=None,
        help="Write the placed poster image to this path (random --direct and insert).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log requests and failures.")

    sub = parser.add_subparsers(dest="command", required=True)
    search = sub.add_parser("search", help="Keyword search.")
    search.add_argument("query", nargs="+")
    sub.add_parser("trending", help="Today's trending titles.")
    sub.add_parser("random", help="Pick a well-rated title at random.")
    insert = sub.add_parser("insert", help="Place a poster by its TMDB poster path.")
    insert.add_argument("poster_path")
    insert.add_argument("--title", default="")

    args = parser.parse_args(argv)
    if args.save is not None and args.command not in {"random", "insert"}:
        parser.error("--save only applies to the random and insert commands.")
    return args


async def _main_async(args: argparse.Namespace) -> tuple[RecordingChannel, MemoryDocument]:
    config = settings
    if args.direct:
        config = settings.model_copy(update={"random_pick_mode": "direct"})

    doc = MemoryDocument()
    channel = RecordingChannel()
    async with TmdbClient(config) as tmdb:
        handler = CommandHandler(doc, channel, tmdb=tmdb, config=config)
        await handler.dispatch(_build_message(args))
    return channel, doc


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    channel, doc = asyncio.run(_main_async(args))
    for message in channel.messages:
        print(json.dumps(dump_outbound(message)))

    if args.save is not None:
        data = _placed_image(doc)
        if data is None:
            logger.warning("no poster was placed; nothing written to %s", args.save)
            return 1
        args.save.write_bytes(data)

    failed = any(m.type in {"snackbar", "no-selection"} for m in channel.messages)
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
