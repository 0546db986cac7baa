"""Mention classification (core domain).

Everything here is a pure function of its arguments so concurrent handlers
can call it freely and tests can drive it without a client.
"""

from __future__ import annotations

import logging
from typing import Iterable

from core.config import BotContext
from core.models import (
    BotIdentity,
    Decision,
    IncomingEvent,
    RoomClassification,
    RoomInfo,
    RoomMembership,
)

LOGGER = logging.getLogger(__name__)

TEXT_MSGTYPE = "m.text"


def classify_room(
    room_id: str,
    watched_rooms: Iterable[str],
    watched_test_rooms: Iterable[str],
) -> RoomClassification:
    """Return the classification of a room.

    A room listed in both watched sets is WATCHED, never WATCHED_TEST.
    """

    if room_id in watched_rooms:
        return RoomClassification.WATCHED
    if room_id in watched_test_rooms:
        return RoomClassification.WATCHED_TEST
    return RoomClassification.UNMONITORED


def mentions_bot(event: IncomingEvent, identity: BotIdentity) -> bool:
    """Return True if the event mentions the bot.

    Matching logic (case-sensitive substring, no normalization):
    - the plain body contains the raw user id;
    - the formatted body, if any, contains the raw or escaped user id;
    - the m.mentions user list, if any, contains the user id.
    """

    if identity.user_id in event.body:
        return True

    formatted = event.formatted_body
    if formatted is not None:
        if identity.user_id in formatted or identity.escaped_user_id in formatted:
            return True

    mentioned = event.mentioned_user_ids
    if mentioned is not None and identity.user_id in mentioned:
        return True

    return False


def classify_and_check(event: IncomingEvent, room: RoomInfo, context: BotContext) -> Decision:
    """Decide whether an event is a mention worth reporting."""

    if room.membership is not RoomMembership.JOINED:
        return Decision.reject()

    if event.sender == room.own_user_id or event.sender == context.identity.user_id:
        return Decision.reject()

    classification = classify_room(room.room_id, context.watched_rooms, context.watched_test_rooms)
    if classification is RoomClassification.UNMONITORED:
        return Decision.reject()

    if event.msgtype != TEXT_MSGTYPE:
        return Decision.reject()

    if event.origin_server_ts < context.oldest_accepted_ts_ms:
        LOGGER.info("Ignore message in the past: %s in %s", event.event_id, room.room_id)
        return Decision.reject()

    if not mentions_bot(event, context.identity):
        return Decision.reject()

    return Decision.accept(is_test=classification is RoomClassification.WATCHED_TEST)
