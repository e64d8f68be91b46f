"""Run a single kowalski command from the terminal.

Usage (from the repository root)::

    python -m scripts.run_command anagram tca
    python -m scripts.run_command chunk abcdef --chunk "2 4"
    python -m scripts.run_command hidden --image puzzle.png --save-images out
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from config.settings import load_config
from modules.commands.catalog import default_catalog
from modules.commands.client import KowalskiClient
from modules.commands.dispatcher import CommandDispatcher, InputValidationError
from modules.rendering.renderers import render_entry
from modules.rendering.text import to_text
from modules.services.history_service import HistoryStore
from modules.services.storage_service import FileSlotStorage
from modules.utils.image_utils import save_result_images
from modules.utils.logging import setup_logging


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    catalog = default_catalog()
    epilog = "commands:\n" + "\n".join(
        f"  {spec.name:<14}{spec.description}" for spec in catalog.list_commands()
    )
    parser = argparse.ArgumentParser(
        description="Send one command to a kowalski backend.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", choices=[spec.name for spec in catalog.list_commands()])
    parser.add_argument("input", nargs="*", help="Text input (joined with spaces)")
    parser.add_argument("--image", type=Path, help="Image file for image commands")
    parser.add_argument("--chunk", default="", help='Chunk sizes for the chunk command, e.g. "2 3 4"')
    parser.add_argument("--save-images", type=Path, help="Directory for images returned by hidden/rgb")
    parser.add_argument("--url", help="Backend URL (overrides KOWALSKI_URL)")
    parser.add_argument("--no-history", action="store_true", help="Do not record the command")
    parser.add_argument("--env", help="Path of the .env file to load")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    config = load_config(args.env)
    if args.url:
        config.backend_url = args.url.rstrip("/")
    setup_logging(config)

    spec = default_catalog().get(args.command)
    storage = None if args.no_history else FileSlotStorage(config.storage_dir, config.storage_quota_bytes)
    history = HistoryStore(storage, key=config.history_key, limit=config.history_limit)
    history.load_from_persistent()

    client = KowalskiClient(config)
    dispatcher = CommandDispatcher(client, history)
    try:
        entry = dispatcher.execute(
            spec.name,
            spec.input_type,
            text=" ".join(args.input),
            special=spec.special,
            chunk_sizes=args.chunk,
            image=args.image,
        )
    except InputValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()

    print(to_text(render_entry(entry)))

    if args.save_images and entry.result:
        stem = Path(entry.input).stem if entry.type == "image" else entry.command
        try:
            saved = save_result_images(entry.command, entry.result, args.save_images, stem)
        except (ValueError, OSError) as exc:
            print(f"error: could not save images: {exc}", file=sys.stderr)
            return 1
        for path in saved:
            print(f"saved {path}")

    return 1 if entry.error else 0


if __name__ == "__main__":
    raise SystemExit(run(parse_args()))
