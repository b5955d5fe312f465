"""Command line entry point.

Reads console lines from a file or stdin and prints every encoded block as a
JSON object on its own stdout line.

Usage:
    firehose-reader [--config settings.yaml] [--log-level DEBUG] [FILE]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator
from typing import TextIO

from .codec.encoder import MsgpackBlockEncoder
from .config import ReaderConfig
from .console.reader import ConsoleReader
from .exceptions import ConsoleReaderError
from .logging_utils import configure_structured_logging
from .sources import lines_from_file, lines_from_pipe

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="firehose-reader",
        description="Reconstruct blocks from a node's FIRE instrumentation lines.",
    )
    parser.add_argument("file", nargs="?", help="File holding the node output (default: stdin)")
    parser.add_argument("--config", help="YAML settings file with a 'reader' section")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--plain-logs", action="store_true", help="Log plain text instead of JSON")
    return parser


def load_config(args: argparse.Namespace) -> ReaderConfig:
    config = ReaderConfig.from_file(args.config) if args.config else ReaderConfig.from_env()
    if args.log_level:
        config = ReaderConfig(**{**config.to_dict(), "log_level": args.log_level})
    if args.plain_logs:
        config.json_logs = False
    return config


async def run(lines: AsyncIterator[str], config: ReaderConfig, out: TextIO) -> int:
    """Print every block read from ``lines``; returns the process exit code."""
    count = 0
    async with ConsoleReader(lines, MsgpackBlockEncoder(), config=config) as reader:
        try:
            async for block in reader:
                out.write(json.dumps(block.to_dict()) + "\n")
                out.flush()
                count += 1
        except ConsoleReaderError as e:
            logger.error(f"Console reader failed: {e}", extra=e.details)
            return 1

    logger.info(f"Read {count} blocks", extra={"block_count": count})
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ConsoleReaderError as e:
        print(f"firehose-reader: {e}", file=sys.stderr)
        return 2

    configure_structured_logging(config.log_level, json_output=config.json_logs)

    lines = lines_from_file(args.file) if args.file else lines_from_pipe(sys.stdin)
    return asyncio.run(run(lines, config, sys.stdout))


if __name__ == "__main__":
    sys.exit(main())
