from __future__ import annotations

from typing import Optional

from core.config import BotContext
from core.models import BotIdentity, IncomingEvent, RoomInfo, RoomMembership

BOT_ID = "@bot:server"
WATCHED = "!abc:server"
WATCHED_TEST = "!test:server"
REPORT_A = "!reports-a:server"
REPORT_B = "!reports-b:server"
LAUNCHED_TS = 1_700_000_000_000


class FakeRoom:
    def __init__(self, room_id: str, fail_with: Optional[Exception] = None) -> None:
        self.room_id = room_id
        self.sent: list = []
        self._fail_with = fail_with

    async def send(self, content) -> None:
        self.sent.append(content)
        if self._fail_with is not None:
            raise self._fail_with


class FakeTransport:
    def __init__(self, rooms: dict[str, FakeRoom]) -> None:
        self._rooms = rooms
        self.lookups: list[str] = []

    def get_room(self, room_id: str) -> Optional[FakeRoom]:
        self.lookups.append(room_id)
        return self._rooms.get(room_id)


def make_context(**overrides) -> BotContext:
    values = dict(
        identity=BotIdentity.from_user_id(BOT_ID),
        watched_rooms=(WATCHED,),
        watched_test_rooms=(WATCHED_TEST,),
        report_rooms=(REPORT_A, REPORT_B),
        launched_ts_ms=LAUNCHED_TS,
    )
    values.update(overrides)
    return BotContext(**values)


def make_room(room_id: str = WATCHED, membership: RoomMembership = RoomMembership.JOINED) -> RoomInfo:
    return RoomInfo(room_id=room_id, own_user_id=BOT_ID, membership=membership)


def make_event(
    *,
    body: str = "hey @bot:server please look",
    room_id: str = WATCHED,
    sender: str = "@alice:server",
    ts: int = LAUNCHED_TS + 1000,
    msgtype: str = "m.text",
    formatted_body: Optional[str] = None,
    mentioned_user_ids=None,
    event_id: str = "$event1",
) -> IncomingEvent:
    return IncomingEvent(
        sender=sender,
        event_id=event_id,
        room_id=room_id,
        origin_server_ts=ts,
        msgtype=msgtype,
        body=body,
        permalink=f"https://matrix.to/#/{room_id}/{event_id}",
        formatted_body=formatted_body,
        mentioned_user_ids=mentioned_user_ids,
    )
