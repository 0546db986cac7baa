"""matrix-nio transport adapter.

Implements the core TransportPort and RoomPort contracts on top of
nio.AsyncClient.room_send.
"""

from __future__ import annotations

import logging
from typing import Optional

from nio import AsyncClient, RoomSendError

from adapters.notification_formatting import render_content
from core.errors import SendError
from core.ports import Content

LOGGER = logging.getLogger(__name__)


class MatrixRoomHandle:
    """A room the client has joined, able to send core content."""

    def __init__(self, client: AsyncClient, room_id: str) -> None:
        self._client = client
        self.room_id = room_id

    async def send(self, content: Content) -> None:
        """Send content, raising SendError if the homeserver rejects it."""

        message_type, body = render_content(content)
        response = await self._client.room_send(
            self.room_id,
            message_type=message_type,
            content=body,
            ignore_unverified_devices=True,
        )
        if isinstance(response, RoomSendError):
            raise SendError(f"{message_type} to {self.room_id} failed: {response.message} ({response.status_code})")
        LOGGER.debug("Sent %s to %s", message_type, self.room_id)


class MatrixTransport:
    """Room lookup backed by the client's joined rooms."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    def get_room(self, room_id: str) -> Optional[MatrixRoomHandle]:
        if room_id not in self._client.rooms:
            return None
        return MatrixRoomHandle(self._client, room_id)
