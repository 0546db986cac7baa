"""Application entry point for the report mention bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from nio import AsyncClient, MatrixRoom, RoomMessage, SyncError

from adapters.matrix_mapper import build_event, build_room_info
from adapters.matrix_transport import MatrixRoomHandle, MatrixTransport
from client import build_client
from core.config import BotContext
from core.dispatcher import ReportDispatcher
from core.errors import MentionBotError
from core.models import BotIdentity
from session_store import authorize
from settings import CONFIG_PATH, PROJECT_ROOT, Settings, load_settings

NAME = "MENTION BOT"
FONT = "tarty-1"

SYNC_TIMEOUT_MS = 30_000


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def add_secret(self, secret: str) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)
            self._secrets.sort(key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _configure_logging(settings: Settings) -> _RedactingFormatter:
    config = settings.logging or {}
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter([settings.password], fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/mention-bot.log")
        if not os.path.isabs(path):
            path = os.path.join(PROJECT_ROOT, path)
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

    if handlers:
        logging.basicConfig(level=level, handlers=handlers)
    else:
        logging.lastResort.handle(
            logging.makeLogRecord(
                {
                    "name": __name__,
                    "levelno": logging.WARNING,
                    "levelname": "WARNING",
                    "msg": "Console and file logging are both disabled; only warnings and errors will be shown",
                }
            )
        )
    return formatter


def build_context(settings: Settings, launched_ts_ms: int) -> BotContext:
    return BotContext(
        identity=BotIdentity.from_user_id(settings.mxid),
        watched_rooms=settings.watched_rooms,
        watched_test_rooms=settings.watched_test_rooms,
        report_rooms=settings.report_rooms,
        launched_ts_ms=launched_ts_ms,
        history_grace_ms=settings.history_grace_ms,
        ack_reaction=settings.ack_reaction,
    )


def make_message_callback(client: AsyncClient, dispatcher: ReportDispatcher):
    """Return the per-event callback registered with the sync loop."""

    logger = logging.getLogger(__name__)

    async def on_message(room: MatrixRoom, event: RoomMessage) -> None:
        # Errors stay inside one event so the sync loop keeps running.
        try:
            room_info = build_room_info(client, room)
            incoming = build_event(room, event)
            await dispatcher.handle(incoming, room_info, MatrixRoomHandle(client, room.room_id))
        except Exception:
            logger.exception("Error while processing %s in %s", getattr(event, "event_id", "?"), room.room_id)

    return on_message


async def _serve(settings: Settings, formatter: _RedactingFormatter) -> None:
    logger = logging.getLogger(__name__)
    context = build_context(settings, launched_ts_ms=int(time.time() * 1000))

    logger.debug("Data dir configured at %s", settings.data_dir)
    logger.debug(
        "Logging into %s as %s (%s)...",
        settings.homeserver_url,
        settings.mxid,
        context.identity.escaped_user_id,
    )

    client = build_client(settings)
    try:
        session = await authorize(client, settings)
        formatter.add_secret(session.access_token)

        # Sync once without the message callback so old messages are never handled.
        response = await client.sync(timeout=SYNC_TIMEOUT_MS, full_state=True)
        if isinstance(response, SyncError):
            raise MentionBotError(f"Initial sync failed: {response.message}")
        logger.info("Initial sync finished with token %s, start listening for events", response.next_batch)

        dispatcher = ReportDispatcher(MatrixTransport(client), context)
        client.add_event_callback(make_message_callback(client, dispatcher), RoomMessage)
        await client.sync_forever(timeout=SYNC_TIMEOUT_MS, since=response.next_batch)
    finally:
        await client.close()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="matrix-report-mention-bot")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to config.json (default: {CONFIG_PATH})",
    )
    args = parser.parse_args(argv)

    _print_banner()
    settings = load_settings(args.config)
    formatter = _configure_logging(settings)
    logging.getLogger(__name__).info("Starting report mention bot")

    asyncio.run(_serve(settings, formatter))


if __name__ == "__main__":
    main()
