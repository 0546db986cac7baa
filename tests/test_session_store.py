from __future__ import annotations

import asyncio
import json

import pytest
from nio import LoginError, LoginResponse

from core.errors import AuthenticationError
from session_store import StoredSession, authorize, read_session, write_session
from settings import Settings


class DummyClient:
    def __init__(self, response=None) -> None:
        self._response = response
        self.logins: list[tuple[str, str]] = []
        self.restored: list[tuple[str, str, str]] = []

    async def login(self, password, device_name=None):
        self.logins.append((password, device_name))
        return self._response

    def restore_login(self, user_id, device_id, access_token) -> None:
        self.restored.append((user_id, device_id, access_token))


def _settings(tmp_path) -> Settings:
    return Settings(
        homeserver_url="https://matrix.example.org",
        mxid="@bot:example.org",
        password="hunter2",
        device_name="report-mention-bot",
        report_rooms=("!r:example.org",),
        watched_rooms=("!w:example.org",),
        watched_test_rooms=(),
        history_grace_ms=10_000,
        ack_reaction="📨",
        data_dir=str(tmp_path / "data"),
    )


def test_fresh_login_persists_session(tmp_path) -> None:
    settings = _settings(tmp_path)
    client = DummyClient(LoginResponse("@bot:example.org", "DEVICE", "token-123"))

    session = asyncio.run(authorize(client, settings))

    assert client.logins == [("hunter2", "report-mention-bot")]
    assert session.access_token == "token-123"
    with open(settings.session_path, encoding="utf-8") as handle:
        stored = json.load(handle)
    assert stored["device_id"] == "DEVICE"


def test_existing_session_is_restored(tmp_path) -> None:
    settings = _settings(tmp_path)
    write_session(
        settings.session_path,
        StoredSession("https://matrix.example.org", "@bot:example.org", "DEVICE", "token-abc"),
    )
    client = DummyClient()

    asyncio.run(authorize(client, settings))

    assert client.logins == []
    assert client.restored == [("@bot:example.org", "DEVICE", "token-abc")]


def test_login_error_is_fatal(tmp_path) -> None:
    client = DummyClient(LoginError("Invalid password", "M_FORBIDDEN"))
    with pytest.raises(AuthenticationError):
        asyncio.run(authorize(client, _settings(tmp_path)))


def test_unreadable_session_file(tmp_path) -> None:
    path = tmp_path / "session"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(AuthenticationError):
        read_session(str(path))


def test_read_session_missing_file(tmp_path) -> None:
    assert read_session(str(tmp_path / "missing")) is None


@pytest.mark.parametrize(
    "stored",
    [
        StoredSession("https://matrix.example.org", "@other:example.org", "OLD", "token-old"),
        StoredSession("https://other.example.net", "@bot:example.org", "OLD", "token-old"),
    ],
)
def test_session_for_another_account_triggers_fresh_login(tmp_path, caplog, stored) -> None:
    settings = _settings(tmp_path)
    write_session(settings.session_path, stored)
    client = DummyClient(LoginResponse("@bot:example.org", "NEW", "token-new"))

    session = asyncio.run(authorize(client, settings))

    assert client.restored == []
    assert client.logins == [("hunter2", "report-mention-bot")]
    assert session.device_id == "NEW"
    assert read_session(settings.session_path).access_token == "token-new"
    assert "logging in again" in caplog.text
