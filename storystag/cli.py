#!/usr/bin/env python3
"""Export a story from the command line.

Usage:
    python -m storystag story.json --format square --encoding gif

    # Only the third frame, into a custom directory:
    python -m storystag story.json --scope current --current 2 --output out/
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import settings
from .download import DirectorySink
from .models import Encoding, ExportRequest, ExportScope, Story, TargetFormat
from .orchestrator import ExportOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storystag", description="Export a story as images, GIF, video or ZIP"
    )
    parser.add_argument("story", type=Path, help="Path to the story JSON file")
    parser.add_argument(
        "--format",
        "-f",
        dest="target_format",
        choices=[f.value for f in TargetFormat],
        default=TargetFormat.ORIGINAL.value,
        help="Target format (default: original)",
    )
    parser.add_argument(
        "--scope",
        choices=[s.value for s in ExportScope],
        default=ExportScope.ALL.value,
        help="Export all frames or only the current one (default: all)",
    )
    parser.add_argument(
        "--encoding",
        "-e",
        choices=[e.value for e in Encoding],
        default=Encoding.VIDEO.value,
        help="Encoding for animations (default: video)",
    )
    parser.add_argument(
        "--current",
        type=int,
        default=0,
        help="Zero-based frame index for --scope current (default: 0)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=settings.DOWNLOAD_DIR,
        help=f"Output directory (default: {settings.DOWNLOAD_DIR})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        story = Story.load(args.story)
        request = ExportRequest(
            target_format=args.target_format,
            scope=args.scope,
            encoding=args.encoding,
            current_index=args.current,
        )
    except (OSError, ValueError, ValidationError) as e:
        print(f"Error: could not read story: {e}", file=sys.stderr)
        return 1

    orchestrator = ExportOrchestrator(sink=DirectorySink(args.output))
    result = asyncio.run(orchestrator.export(story, request))

    for notice in result.notices:
        print(f"[{notice.level.value}] {notice.message}")
    for path in orchestrator.sink.paths:
        print(path)
    return 0 if result.completed else 1


if __name__ == "__main__":
    sys.exit(main())
