"""Static configuration for the report mention bot.

All user-editable settings (login, rooms, logging) live in a single JSON
file for quick edits without touching Python. The password may instead come
from MATRIX_PASSWORD, loaded from a .env file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple
from urllib.parse import urlparse

from dotenv import load_dotenv

from core.config import DEFAULT_ACK_REACTION, DEFAULT_HISTORY_GRACE_MS
from core.errors import ConfigError

APP_NAME = "matrix-report-mention-bot"

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

DEFAULT_DEVICE_NAME = "report-mention-bot"

PASSWORD_ENV = "MATRIX_PASSWORD"


@dataclass(frozen=True)
class Settings:
    """Validated settings for one bot process."""

    homeserver_url: str
    mxid: str
    password: str
    device_name: str
    report_rooms: Tuple[str, ...]
    watched_rooms: Tuple[str, ...]
    watched_test_rooms: Tuple[str, ...]
    history_grace_ms: int
    ack_reaction: str
    data_dir: str
    logging: dict[str, Any] = field(default_factory=dict)

    @property
    def session_path(self) -> str:
        return os.path.join(self.data_dir, "session")

    @property
    def store_path(self) -> str:
        return os.path.join(self.data_dir, "store")


def default_data_dir() -> str:
    """Per-user data directory, following XDG_DATA_HOME when set."""

    base = os.getenv("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")
    return os.path.join(base, APP_NAME)


def _load_json_config(path: str) -> dict:
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        try:
            config = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(config, dict):
        raise ConfigError(f"Config root in {path} must be an object")
    return config


def _require_str(section: dict, section_name: str, key: str) -> str:
    value = section.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Missing {section_name}.{key} in config")
    return value.strip()


def _parse_homeserver_url(raw: str) -> str:
    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigError(f"Invalid homeserver url: {raw}")
    return raw


def _is_room_id(value: str) -> bool:
    localpart, sep, server = value[1:].partition(":")
    return value.startswith("!") and bool(localpart) and bool(sep) and bool(server)


def _parse_room_ids(section: dict, key: str, required: bool) -> Tuple[str, ...]:
    raw = section.get(key)
    if raw is None:
        if required:
            raise ConfigError(f"Missing bot.{key} in config")
        return ()
    if not isinstance(raw, list):
        raise ConfigError(f"bot.{key} must be a list of room ids")

    rooms = []
    for entry in raw:
        if not isinstance(entry, str) or not _is_room_id(entry.strip()):
            raise ConfigError(f"Invalid roomId in bot.{key}: {entry!r}")
        rooms.append(entry.strip())
    return tuple(rooms)


def _resolve_password(login: dict) -> str:
    password = os.getenv(PASSWORD_ENV) or login.get("password")
    if not isinstance(password, str) or not password:
        raise ConfigError(f"Password missing in config (login.password or {PASSWORD_ENV})")
    return password


def load_settings(path: Optional[str] = None) -> Settings:
    """Load and validate config.json.

    Any missing or malformed required setting raises ConfigError so startup
    aborts before the client connects.
    """

    load_dotenv()
    config = _load_json_config(path or CONFIG_PATH)

    login = config.get("login") or {}
    bot = config.get("bot") or {}

    homeserver_url = _parse_homeserver_url(_require_str(login, "login", "homeserver_url"))
    mxid = _require_str(login, "login", "mxid")
    password = _resolve_password(login)
    device_name = login.get("device_name") or DEFAULT_DEVICE_NAME

    grace_seconds = bot.get("history_grace_seconds")
    if grace_seconds is None:
        history_grace_ms = DEFAULT_HISTORY_GRACE_MS
    else:
        if isinstance(grace_seconds, bool):
            raise ConfigError(f"Invalid bot.history_grace_seconds: {grace_seconds!r}")
        try:
            history_grace_ms = int(float(grace_seconds) * 1000)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ConfigError(f"Invalid bot.history_grace_seconds: {grace_seconds!r}") from exc
        if history_grace_ms < 0:
            raise ConfigError("bot.history_grace_seconds must not be negative")

    data_dir = config.get("data_dir") or default_data_dir()
    if not os.path.isabs(data_dir):
        data_dir = os.path.join(PROJECT_ROOT, data_dir)

    return Settings(
        homeserver_url=homeserver_url,
        mxid=mxid,
        password=password,
        device_name=str(device_name),
        report_rooms=_parse_room_ids(bot, "report_rooms", required=True),
        watched_rooms=_parse_room_ids(bot, "watched_rooms", required=True),
        watched_test_rooms=_parse_room_ids(bot, "watched_test_rooms", required=False),
        history_grace_ms=history_grace_ms,
        ack_reaction=str(bot.get("ack_reaction") or DEFAULT_ACK_REACTION),
        data_dir=data_dir,
        logging=config.get("logging", {}) or {},
    )
