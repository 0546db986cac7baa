"""Login and session persistence.

A fresh password login writes the session (user id, device id, access
token) to <data_dir>/session; later starts restore it instead of logging in
again, so the bot keeps a single device.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Optional

from nio import AsyncClient, LoginError, LoginResponse

from core.errors import AuthenticationError
from settings import Settings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredSession:
    homeserver_url: str
    user_id: str
    device_id: str
    access_token: str


def read_session(path: str) -> Optional[StoredSession]:
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as handle:
        try:
            raw = json.load(handle)
            return StoredSession(
                homeserver_url=raw["homeserver_url"],
                user_id=raw["user_id"],
                device_id=raw["device_id"],
                access_token=raw["access_token"],
            )
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise AuthenticationError(f"Stored session at {path} is unreadable: {exc}") from exc


def write_session(path: str, session: StoredSession) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(asdict(session), handle)
    # The file holds an access token.
    os.chmod(path, 0o600)


async def _fresh_login(client: AsyncClient, settings: Settings) -> StoredSession:
    LOGGER.info("Doing a fresh login...")
    response = await client.login(settings.password, device_name=settings.device_name)
    if isinstance(response, LoginError) or not isinstance(response, LoginResponse):
        raise AuthenticationError(f"Login as {settings.mxid} failed: {getattr(response, 'message', response)}")

    LOGGER.info("Logged in as %s", response.device_id)
    session = StoredSession(
        homeserver_url=settings.homeserver_url,
        user_id=response.user_id,
        device_id=response.device_id,
        access_token=response.access_token,
    )
    write_session(settings.session_path, session)
    return session


async def authorize(client: AsyncClient, settings: Settings) -> StoredSession:
    """Restore the stored session if there is one, otherwise log in.

    A stored session for another account or homeserver is replaced by a
    fresh login.
    """

    session = read_session(settings.session_path)
    if session is None:
        return await _fresh_login(client, settings)

    if session.user_id != settings.mxid or session.homeserver_url != settings.homeserver_url:
        LOGGER.warning(
            "Stored session belongs to %s on %s, config says %s on %s; logging in again",
            session.user_id,
            session.homeserver_url,
            settings.mxid,
            settings.homeserver_url,
        )
        return await _fresh_login(client, settings)

    LOGGER.info("Restoring old login...")
    client.restore_login(
        user_id=session.user_id,
        device_id=session.device_id,
        access_token=session.access_token,
    )
    return session
