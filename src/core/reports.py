"""Report message templates (core domain)."""

from __future__ import annotations

from core.models import IncomingEvent, ReportContent

ROOM_MENTION_MARKER = "@room"


def compose_report(event: IncomingEvent, is_test: bool) -> ReportContent:
    """Build the report for a mention.

    Test rooms get a notice without the room ping; everything else is a
    regular message that pings the whole report room.
    """

    sender = event.sender
    permalink = event.permalink
    if is_test:
        body = (
            f"I was pinged by {sender} at {permalink}, which is a test room "
            "so I won't bother you with a room ping this time"
        )
        return ReportContent(
            body=body,
            sender=sender,
            permalink=permalink,
            notice=True,
            room_mention=False,
        )

    body = f"{ROOM_MENTION_MARKER}: I was pinged by {sender} at {permalink}"
    return ReportContent(
        body=body,
        sender=sender,
        permalink=permalink,
        notice=False,
        room_mention=True,
    )
