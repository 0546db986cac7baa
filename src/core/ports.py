"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the messaging transport so that the
core can be exercised with fakes in tests and reused with other clients.
"""

from __future__ import annotations

from typing import Optional, Protocol, Union

from core.models import Reaction, ReportContent

Content = Union[ReportContent, Reaction]


class RoomPort(Protocol):
    """A room the bot can post into."""

    room_id: str

    async def send(self, content: Content) -> None:
        """Send content, raising on failure."""
        ...


class TransportPort(Protocol):
    """Room lookup operations required by the dispatcher."""

    def get_room(self, room_id: str) -> Optional[RoomPort]:
        ...
