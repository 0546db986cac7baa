"""Matrix-to-core event mapping adapter.

This keeps matrix-nio specific details out of the core pipeline.
"""

from __future__ import annotations

from typing import Any, FrozenSet, Optional
from urllib.parse import quote

from nio import AsyncClient, MatrixRoom, RoomMessage

from core.models import IncomingEvent, RoomInfo, RoomMembership

MATRIX_TO_BASE = "https://matrix.to/#/"


def build_event_permalink(room_id: str, event_id: str) -> str:
    """Return a matrix.to link pointing at one event in one room."""

    return f"{MATRIX_TO_BASE}{quote(room_id, safe='')}/{quote(event_id, safe='')}"


def membership_for(client: AsyncClient, room_id: str) -> RoomMembership:
    """Derive the bot's membership from the client's room maps."""

    if room_id in client.rooms:
        return RoomMembership.JOINED
    if room_id in client.invited_rooms:
        return RoomMembership.INVITED
    return RoomMembership.LEFT


def build_room_info(client: AsyncClient, room: MatrixRoom) -> RoomInfo:
    return RoomInfo(
        room_id=room.room_id,
        own_user_id=room.own_user_id,
        membership=membership_for(client, room.room_id),
    )


def _content(event: RoomMessage) -> dict[str, Any]:
    source = getattr(event, "source", None) or {}
    content = source.get("content") if isinstance(source, dict) else None
    return content if isinstance(content, dict) else {}


def _mentioned_user_ids(content: dict[str, Any]) -> Optional[FrozenSet[str]]:
    mentions = content.get("m.mentions")
    if not isinstance(mentions, dict):
        return None
    user_ids = mentions.get("user_ids") or []
    if not isinstance(user_ids, list):
        return frozenset()
    return frozenset(user_id for user_id in user_ids if isinstance(user_id, str))


def _formatted_body(event: RoomMessage, content: dict[str, Any]) -> Optional[str]:
    formatted = getattr(event, "formatted_body", None)
    if isinstance(formatted, str):
        return formatted
    formatted = content.get("formatted_body")
    if isinstance(formatted, str):
        return formatted
    return None


def build_event(room: MatrixRoom, event: RoomMessage) -> IncomingEvent:
    """Build a core IncomingEvent from a matrix-nio room message."""

    content = _content(event)
    body = getattr(event, "body", None)
    if not isinstance(body, str):
        body = content.get("body") if isinstance(content.get("body"), str) else ""

    return IncomingEvent(
        sender=event.sender,
        event_id=event.event_id,
        room_id=room.room_id,
        origin_server_ts=int(event.server_timestamp),
        msgtype=str(content.get("msgtype", "")),
        body=body,
        permalink=build_event_permalink(room.room_id, event.event_id),
        formatted_body=_formatted_body(event, content),
        mentioned_user_ids=_mentioned_user_ids(content),
    )
