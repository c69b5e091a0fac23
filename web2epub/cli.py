"""Command-line entry point for the article to EPUB converter."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Collection, Sequence

from .config import ConvertConfig, DEFAULT_USER_AGENT, VERSION
from .pipeline import convert_url

logger = logging.getLogger("web2epub.cli")

_TOP_LEVEL_FLAGS = {"-h", "--help", "-v", "--version"}


def _ensure_command_prefix(argv: Sequence[str], commands: Collection[str]) -> Sequence[str]:
    if not argv:
        return argv
    if argv[0] in _TOP_LEVEL_FLAGS or any(arg in commands for arg in argv):
        return argv
    return ("convert", *argv)


def _add_convert_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="URL of the article to convert")
    parser.add_argument(
        "--output",
        default=".",
        type=Path,
        help="Directory where the EPUB file should be written",
    )
    parser.add_argument(
        "--pandoc",
        default="pandoc",
        help="Path to the pandoc executable",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for each HTTP request",
    )
    parser.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help="User-Agent header sent with every request",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="web2epub",
        description="Extract a web article and save it as an EPUB.",
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {VERSION}"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_parser = subparsers.add_parser(
        "convert", help="Extract an article and save it as an EPUB"
    )
    _add_convert_arguments(convert_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _run_convert(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = ConvertConfig(
        output_root=Path(args.output).resolve(),
        user_agent=args.user_agent,
        request_timeout=args.timeout,
        pandoc_path=args.pandoc,
    )

    overall_start = time.perf_counter()
    result = convert_url(args.url, config)
    logger.debug("Finished in %.2fs", time.perf_counter() - overall_start)

    if not result.success:
        logger.error("An error occurred during the process: %s", result.message)
    return result.exit_code


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    return _run_convert(args)


if __name__ == "__main__":
    sys.exit(main())
