"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any matrix-nio specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class BotIdentity:
    """The bot's own account id plus its URL-escaped form."""

    user_id: str
    escaped_user_id: str

    @classmethod
    def from_user_id(cls, user_id: str) -> "BotIdentity":
        # Pills in formatted bodies link to https://matrix.to/#/%40bot%3Aserver
        escaped = user_id.replace("@", "%40").replace(":", "%3A")
        return cls(user_id=user_id, escaped_user_id=escaped)


class RoomMembership(Enum):
    JOINED = "join"
    INVITED = "invite"
    LEFT = "leave"


class RoomClassification(Enum):
    WATCHED = "watched"
    WATCHED_TEST = "watched_test"
    UNMONITORED = "unmonitored"


@dataclass(frozen=True)
class RoomInfo:
    """The bot's view of the room an event arrived in."""

    room_id: str
    own_user_id: str
    membership: RoomMembership


@dataclass(frozen=True)
class IncomingEvent:
    """Minimal message event used by the classifier and dispatcher."""

    sender: str
    event_id: str
    room_id: str
    origin_server_ts: int
    msgtype: str
    body: str
    permalink: str
    formatted_body: Optional[str] = None
    mentioned_user_ids: Optional[FrozenSet[str]] = None


@dataclass(frozen=True)
class Decision:
    """Classifier verdict for one event."""

    accepted: bool
    is_test: bool = False

    @classmethod
    def accept(cls, is_test: bool) -> "Decision":
        return cls(accepted=True, is_test=is_test)

    @classmethod
    def reject(cls) -> "Decision":
        return cls(accepted=False)


@dataclass(frozen=True)
class ReportContent:
    """A composed report, independent of the wire format."""

    body: str
    sender: str
    permalink: str
    notice: bool
    room_mention: bool


@dataclass(frozen=True)
class Reaction:
    """An annotation attached to an existing event."""

    event_id: str
    key: str


@dataclass(frozen=True)
class ReportOutcome:
    """Result of one attempt to report into a single room."""

    room_id: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class DispatchResult:
    """Aggregated outcome of reporting one event."""

    outcomes: Tuple[ReportOutcome, ...] = field(default_factory=tuple)
    acknowledged: bool = False

    @property
    def any_succeeded(self) -> bool:
        return any(outcome.success for outcome in self.outcomes)
