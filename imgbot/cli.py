#!/usr/bin/env python3
"""imgbot - image transform bot for Discord.

Start the bot (reads DISCORD_TOKEN from the environment or .env):
    imgbot run

Show the options the bot accepts:
    imgbot help

Try a command locally without Discord:
    imgbot apply "--flip x --tint orange -F jpg" -i photo.png -o out.jpg
    imgbot apply "--blur https://example.com/cat.png" -o - > cat.png
    imgbot apply -i photo.png -- --negate
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import httpx

from imgbot import config
from imgbot.fetch import fetch_image
from imgbot.logger import logger, setup_logging
from imgbot.options import CommandError, parse_command
from imgbot.output import format_error, format_help, format_options
from imgbot.pipeline import process_image


async def _download(url: str) -> bytes:
    async with httpx.AsyncClient(timeout=config.FETCH_TIMEOUT) as client:
        return await fetch_image(client, url, config.MAX_CONTENT_LENGTH)


def read_source(source: str) -> bytes:
    """Read image bytes from file, URL, or stdin.

    Args:
        source: File path, URL, or "-" for stdin.
    """
    if source == "-":
        return sys.stdin.buffer.read()
    if source.startswith(("http://", "https://")):
        return asyncio.run(_download(source))
    return Path(source).read_bytes()


# =============================================================================
# Command handlers
# =============================================================================


def cmd_run(args: argparse.Namespace) -> int:
    """Start the Discord bot."""
    from imgbot.bot import run_bot

    if not config.DISCORD_TOKEN:
        print("Error: DISCORD_TOKEN is not set", file=sys.stderr)
        return 1
    try:
        asyncio.run(run_bot(config.DISCORD_TOKEN))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


def cmd_help(args: argparse.Namespace) -> int:
    """Print the usage text the bot replies with."""
    print(format_help(config.TRIGGER))
    return 0


def cmd_apply(args: argparse.Namespace) -> int:
    """Apply a command to a local image (same path as the bot, minus Discord)."""
    try:
        options = parse_command(args.command)
    except CommandError as e:
        print(format_error(e), file=sys.stderr)
        return 1

    source = args.input or options.input
    if not source:
        print("Error: no image source (use -i or put a URL in the command)", file=sys.stderr)
        return 1

    filename, output = process_image(read_source(source), options)

    if args.output == "-":
        sys.stdout.buffer.write(output)
        sys.stdout.buffer.flush()
        return 0

    path = Path(args.output or filename)
    path.write_bytes(output)
    print(format_options(options), file=sys.stderr)
    print(f"Saved to {path}", file=sys.stderr)
    return 0


# =============================================================================
# Parser
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="imgbot",
        description="Discord bot that transforms attached images",
        epilog=(
            "Examples:\n"
            "  imgbot run\n"
            "  imgbot help\n"
            "  imgbot apply \"--crop '10 20' --rotate 90\" -i photo.png -o out.png\n"
            "  imgbot apply -i photo.png -- --negate\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: IMGBOT_LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command_name", help="Command to run")

    subparsers.add_parser("run", help="Start the Discord bot (default)")
    subparsers.add_parser("help", help="Show the options the bot accepts")

    apply_parser = subparsers.add_parser("apply", help="Apply a command to a local image")
    apply_parser.add_argument("command", help="Options as typed after the trigger word")
    apply_parser.add_argument("-i", "--input", default=None, help="File path, URL, or '-' for stdin")
    apply_parser.add_argument("-o", "--output", default=None, help="Output path, or '-' for stdout (default: img.<ext>)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(args.log_level.upper() if args.log_level else config.LOG_LEVEL)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    handlers = {
        "run": cmd_run,
        "help": cmd_help,
        "apply": cmd_apply,
    }
    handler = handlers[args.command_name or "run"]

    try:
        return handler(args)
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
