"""Command line launcher: serve the Telegram webhook or chat locally in a console."""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
import sys
from typing import TextIO

from dicebot.backend.config import BotSettings, load_settings
from dicebot.backend.engine import COMMANDS, InteractionStateMachine
from dicebot.backend.errors import DiceBotError
from dicebot.backend.fanout import NotificationFanout
from dicebot.backend.security import generate_webhook_secret
from dicebot.backend.store import InMemorySessionRegistry
from dicebot.backend.transport import RecordingTransport, SentMessage, TelegramTransport

logger = logging.getLogger(__name__)

DEFAULT_CONSOLE_USER = 1


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dice Room Bot launcher")
    parser.add_argument("--mode", choices=["serve", "console"], default="serve")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--webhook-url", default="", help="register this public URL with Telegram before serving")
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def parse_console_line(line: str) -> tuple[int, str]:
    """Split "<user id>: <text>" into its parts; bare text is sent by user 1."""
    head, sep, rest = line.partition(":")
    if sep and head.strip().isdigit():
        return int(head.strip()), rest.strip()
    return DEFAULT_CONSOLE_USER, line.strip()


def format_console_message(message: SentMessage) -> str:
    return f"[-> {message.recipient_id}] {message.text}"


def run_console(stdin: TextIO, stdout: TextIO) -> int:
    transport = RecordingTransport(echo=lambda message: print(format_console_message(message), file=stdout))
    machine = InteractionStateMachine(
        registry=InMemorySessionRegistry(),
        fanout=NotificationFanout(transport),
    )
    print("Type messages as '<user id>: <text>' (user 1 if omitted). Ctrl-D quits.", file=stdout)
    for raw_line in stdin:
        if not raw_line.strip():
            continue
        user_id, text = parse_console_line(raw_line)
        try:
            machine.handle_text(chat_id=user_id, user_id=user_id, text=text)
        except Exception:
            logger.exception("Failed to handle console input %r", text)
    return 0


def run_server(settings: BotSettings, host: str, port: int, webhook_url: str) -> int:
    import uvicorn

    from dicebot.backend.api import create_app

    try:
        settings.require_bot_credentials()
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    transport = TelegramTransport(bot_token=settings.bot_token, api_base=settings.api_base)
    if webhook_url:
        secret = settings.webhook_secret
        if secret is None:
            secret = generate_webhook_secret()
            settings = replace(settings, webhook_secret=secret)
        try:
            transport.set_webhook(webhook_url, secret_token=secret)
        except DiceBotError as exc:
            print(f"Webhook could not be registered: {exc}", file=sys.stderr)
            return 1

    app = create_app(settings=settings, transport=transport)
    logger.info("Dice Room Bot started with %d commands", len(COMMANDS))
    try:
        uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
    finally:
        transport.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_level)

    if args.mode == "console":
        return run_console(sys.stdin, sys.stdout)

    host = args.host if args.host is not None else settings.host
    port = args.port if args.port is not None else settings.port
    return run_server(settings, host=host, port=port, webhook_url=args.webhook_url)


if __name__ == "__main__":
    raise SystemExit(main())
