"""Application entry point for the chatledger bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.event_log import EventLog, log
from adapters.stackchat import StackChat
from client import bot_name, build_chat, build_state_config
from core.errors import ChatError
from core.state_keeper import StateKeeper

NAME = "CHATLEDGER"
FONT = "tarty-1"

# Shared with whatever serves the status image.
EVENT_LOG = EventLog()


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    # The activity log always runs; it backs the status image.
    EVENT_LOG.setFormatter(_RedactingFormatter(secrets, fmt="%(message)s"))
    handlers: list[logging.Handler] = [EVENT_LOG]

    if config.get("enabled", False):
        if config.get("console", True):
            console_handler = logging.StreamHandler()
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            handlers.append(console_handler)

        file_cfg = config.get("file", {})
        if file_cfg.get("enabled", False):
            path = file_cfg.get("path", "logs/chatledger.log")
            if not os.path.isabs(path):
                path = os.path.join(settings.PROJECT_ROOT, path)
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
            backup_count = int(file_cfg.get("backup_count", 5))
            file_handler = RotatingFileHandler(
                path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers)


async def _connect(chat: StackChat, name: str, delay_seconds: float = 0) -> None:
    if delay_seconds > 0:
        log(f"Got name {name}, connecting to chat in {delay_seconds:g} seconds.")
        await asyncio.sleep(delay_seconds)
    await chat.session.connect(name)
    log("Connected to chat.")


async def _run_bot() -> None:
    logger = logging.getLogger(__name__)
    name = bot_name()
    chat = build_chat()
    keeper = StateKeeper(chat, build_state_config(name))
    interval = settings.REFRESH_INTERVAL_MINUTES * 60

    async with chat.session:
        try:
            await _connect(chat, name, settings.CONNECT_DELAY_SECONDS)
            await keeper.initialize()
        except ChatError as exc:
            log(f"Failed to initialize bot: {exc}")
            raise
        log("Bot initialized.")

        while interval > 0:
            await asyncio.sleep(interval)
            try:
                refreshed = await keeper.refresh()
            except ChatError:
                logger.exception("Keep-alive pass failed")
                continue
            if refreshed:
                logger.info("Keep-alive re-signed rooms %s", refreshed)


def _print_messages(messages) -> None:
    for message in messages:
        print(
            f"[{message.room_id}] #{message.message_id} "
            f"{message.author_name or '?'} ({message.author_id}): {message.plain_text}"
        )


async def _search(text: str, room_id: Optional[int], mine: bool, page: int) -> None:
    chat = build_chat()
    async with chat.session:
        await _connect(chat, bot_name())
        messages = await chat.search(
            text,
            room_id=room_id,
            user_id=chat.user_id if mine else None,
            page=page,
        )
        _print_messages(messages)


async def _transcript(room_id: int) -> None:
    chat = build_chat()
    async with chat.session:
        await _connect(chat, bot_name())
        _print_messages(await chat.transcript(room_id))


async def _sign(room_id: int, keep_alive: Optional[bool]) -> None:
    name = bot_name()
    chat = build_chat()
    keeper = StateKeeper(chat, build_state_config(name))
    async with chat.session:
        await _connect(chat, name)
        await keeper.recover()
        changes = None if keep_alive is None else {"keepAlive": keep_alive}
        ack = await keeper.sign_state(room_id, changes)
        print(f"Signed state for room {room_id} in message {ack.message_id}: {keeper.get_state(room_id)}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="chatledger")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Connect, recover room state and keep it alive")

    search_parser = subparsers.add_parser("search", help="Search chat messages")
    search_parser.add_argument("text")
    search_parser.add_argument("--room", type=int, default=None)
    search_parser.add_argument("--mine", action="store_true", help="Only the bot's own messages")
    search_parser.add_argument("--page", type=int, default=1)

    transcript_parser = subparsers.add_parser("transcript", help="Show a room's latest messages")
    transcript_parser.add_argument("room", type=int)

    sign_parser = subparsers.add_parser("sign", help="Post a fresh state snapshot to a room")
    sign_parser.add_argument("room", type=int)
    sign_parser.add_argument(
        "--keep-alive",
        dest="keep_alive",
        action=argparse.BooleanOptionalAction,
        default=None,
    )

    args = parser.parse_args(argv)
    _print_banner()
    _configure_logging()

    if args.command == "search":
        asyncio.run(_search(args.text, args.room, args.mine, args.page))
        return
    if args.command == "transcript":
        asyncio.run(_transcript(args.room))
        return
    if args.command == "sign":
        asyncio.run(_sign(args.room, args.keep_alive))
        return
    logging.getLogger(__name__).info("Starting chatledger")
    asyncio.run(_run_bot())


if __name__ == "__main__":
    main()
