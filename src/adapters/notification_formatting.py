"""Matrix content rendering for reports and reactions.

Keeping rendering here keeps the core free of event content layouts.
"""

from __future__ import annotations

import html
from typing import Any, Tuple, Union

from core.models import Reaction, ReportContent

MESSAGE_EVENT_TYPE = "m.room.message"
REACTION_EVENT_TYPE = "m.reaction"
HTML_FORMAT = "org.matrix.custom.html"


def _format_html(report: ReportContent) -> str:
    """Escape the body and turn the permalink into a link."""

    safe_link = html.escape(report.permalink)
    anchor = f"<a href=\"{safe_link}\">{safe_link}</a>"
    return anchor.join(html.escape(part) for part in report.body.split(report.permalink))


def render_report(report: ReportContent) -> dict[str, Any]:
    """Return the m.room.message content for a report."""

    content: dict[str, Any] = {
        "msgtype": "m.notice" if report.notice else "m.text",
        "body": report.body,
        "format": HTML_FORMAT,
        "formatted_body": _format_html(report),
    }
    # Empty m.mentions: the report pings nobody.
    content["m.mentions"] = {"room": True} if report.room_mention else {}
    return content


def render_reaction(reaction: Reaction) -> dict[str, Any]:
    return {
        "m.relates_to": {
            "rel_type": "m.annotation",
            "event_id": reaction.event_id,
            "key": reaction.key,
        }
    }


def render_content(content: Union[ReportContent, Reaction]) -> Tuple[str, dict[str, Any]]:
    """Return (event type, content dict) for anything the core sends."""

    if isinstance(content, ReportContent):
        return MESSAGE_EVENT_TYPE, render_report(content)
    if isinstance(content, Reaction):
        return REACTION_EVENT_TYPE, render_reaction(content)
    raise ValueError(f"Unsupported content: {type(content).__name__}")
