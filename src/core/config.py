"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from core.models import BotIdentity

DEFAULT_HISTORY_GRACE_MS = 10_000
DEFAULT_ACK_REACTION = "📨"


@dataclass(frozen=True)
class BotContext:
    """Process-wide, read-only state shared by every event handler.

    Built once at startup and never mutated, so concurrent handlers can
    share it without locking.
    """

    identity: BotIdentity
    watched_rooms: Tuple[str, ...]
    watched_test_rooms: Tuple[str, ...]
    report_rooms: Tuple[str, ...]
    launched_ts_ms: int
    history_grace_ms: int = DEFAULT_HISTORY_GRACE_MS
    ack_reaction: str = DEFAULT_ACK_REACTION

    @property
    def oldest_accepted_ts_ms(self) -> int:
        return self.launched_ts_ms - self.history_grace_ms
