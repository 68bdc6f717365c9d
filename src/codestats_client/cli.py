"""Command line entry point.

Reads key events from stdin, one per line::

    <keyup|keydown> <keystrokes> [language]

and feeds them to a client until EOF or Ctrl-C. Every status change is
printed to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence, Tuple

from loguru import logger

from .config.logger_config import setup_logging
from .config.settings import CLIENT_NAME, CLIENT_VERSION, get_config_manager
from .core.app import CodeStatsClient
from .core.events import KeyEvent, KeyEventKind
from .status.reporter import StatusValue, TextStatusReporter


def parse_event_line(line: str) -> Optional[Tuple[KeyEvent, Optional[str]]]:
    """Parse one input line into a key event and a language.

    Returns:
        (event, language) or None for blank or malformed lines
    """
    parts = line.split(maxsplit=2)
    if len(parts) < 2:
        return None

    try:
        kind = KeyEventKind(parts[0].lower())
    except ValueError:
        logger.warning(f"Unknown event kind: {parts[0]}")
        return None

    language = parts[2].strip() if len(parts) > 2 else None
    # Lines without a language count as typing in an editor without a grammar
    return KeyEvent(kind=kind, keystrokes=parts[1]), language or ""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=CLIENT_NAME, description="Send typing activity read from stdin to Code::Stats.")
    parser.add_argument("--api-url", help="Pulse endpoint URL (default: $CODESTATS_API_URL)")
    parser.add_argument("--api-key", help="API token (default: $CODESTATS_API_KEY)")
    parser.add_argument("--update-delay", type=float, help="Seconds of inactivity before sending")
    parser.add_argument("--log-level", help="Log level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"{CLIENT_NAME} {CLIENT_VERSION}")
    return parser


class PrintingStatusReporter(TextStatusReporter):
    """Prints the status text to stdout whenever it changes."""

    def report(self, value: StatusValue) -> None:
        previous = self.text
        super().report(value)
        if self.text != previous:
            print(self.text, flush=True)


async def run(client: CodeStatsClient) -> int:
    """Feed stdin lines to the client until EOF, then send what was typed."""
    loop = asyncio.get_running_loop()
    client.activate()
    client.consume_status_reporter(PrintingStatusReporter(client.config_manager.get_config().status_prefix))

    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break

            parsed = parse_event_line(line)
            if parsed is None:
                continue

            event, language = parsed
            client.handle_key_event(event, language)

        # Piped input usually ends long before the quiet period does
        await client.pipeline.drain()
    finally:
        unsent = await client.deactivate()

    return unsent


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config_manager = get_config_manager()
    overrides = {}
    if args.update_delay is not None:
        overrides["update_delay_seconds"] = args.update_delay
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()

    config = config_manager.load_config(api_key=args.api_key, api_url=args.api_url, **overrides)
    setup_logging(config)

    is_valid, errors = config_manager.validate_config()
    if not is_valid:
        for error in errors:
            logger.error(error)
        return 2

    try:
        unsent = asyncio.run(run(CodeStatsClient(config_manager=config_manager)))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130

    return 1 if unsent else 0
