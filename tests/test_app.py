from __future__ import annotations

import asyncio
import logging

from app import _configure_logging, _RedactingFormatter, build_context, make_message_callback
from settings import Settings


class ExplodingDispatcher:
    def __init__(self) -> None:
        self.calls = 0

    async def handle(self, event, room_info, room):
        self.calls += 1
        raise RuntimeError("boom")


class DummyClient:
    rooms = {"!abc:server": object()}
    invited_rooms: dict = {}


class DummyRoom:
    room_id = "!abc:server"
    own_user_id = "@bot:server"


class DummyMessage:
    sender = "@alice:server"
    event_id = "$ev"
    server_timestamp = 1
    body = "@bot:server"
    formatted_body = None
    source = {"content": {"msgtype": "m.text", "body": "@bot:server"}}


def _settings() -> Settings:
    return Settings(
        homeserver_url="https://matrix.example.org",
        mxid="@bot:server",
        password="hunter2",
        device_name="report-mention-bot",
        report_rooms=("!r:server",),
        watched_rooms=("!abc:server",),
        watched_test_rooms=("!t:server",),
        history_grace_ms=5_000,
        ack_reaction="📨",
        data_dir="/tmp/unused",
    )


def test_build_context_from_settings() -> None:
    context = build_context(_settings(), launched_ts_ms=100_000)
    assert context.identity.escaped_user_id == "%40bot%3Aserver"
    assert context.oldest_accepted_ts_ms == 95_000
    assert context.watched_test_rooms == ("!t:server",)


def test_callback_contains_pipeline_errors(caplog) -> None:
    dispatcher = ExplodingDispatcher()
    callback = make_message_callback(DummyClient(), dispatcher)

    with caplog.at_level(logging.ERROR):
        asyncio.run(callback(DummyRoom(), DummyMessage()))

    assert dispatcher.calls == 1
    assert "Error while processing $ev in !abc:server" in caplog.text


def test_redacting_formatter_masks_secrets() -> None:
    formatter = _RedactingFormatter(["hunter2"], fmt="%(message)s")
    formatter.add_secret("token-123")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "pw=hunter2 token=token-123", None, None)
    assert formatter.format(record) == "pw=*** token=***"


def test_warns_when_every_log_handler_is_disabled(capsys) -> None:
    settings = Settings(**{**_settings().__dict__, "logging": {"console": False, "file": {"enabled": False}}})

    _configure_logging(settings)

    assert "Console and file logging are both disabled" in capsys.readouterr().err
