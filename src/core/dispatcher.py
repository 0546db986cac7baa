"""Report dispatch pipeline.

This module is integration-agnostic. It only relies on ports for room lookup
and sending, enabling other transports without changes here.

The pipeline enforces a strict order per accepted event:
1) Compose the report for the room classification
2) Send it to every report room, one after the other
3) Acknowledge the original event if at least one report went out
"""

from __future__ import annotations

import logging
from typing import List, Optional

from core.classifier import classify_and_check
from core.config import BotContext
from core.errors import RoomNotFoundError
from core.models import (
    Decision,
    DispatchResult,
    IncomingEvent,
    Reaction,
    ReportContent,
    ReportOutcome,
    RoomInfo,
)
from core.ports import RoomPort, TransportPort
from core.reports import compose_report

LOGGER = logging.getLogger(__name__)


class ReportDispatcher:
    """Orchestrates classification, report fan-out, and acknowledgement."""

    def __init__(self, transport: TransportPort, context: BotContext) -> None:
        self._transport = transport
        self._context = context

    async def handle(
        self,
        event: IncomingEvent,
        room_info: RoomInfo,
        room: RoomPort,
    ) -> Optional[DispatchResult]:
        """Process one message event through the full pipeline."""

        decision = classify_and_check(event, room_info, self._context)
        if not decision.accepted:
            return None
        return await self.dispatch(event, room, decision)

    async def dispatch(self, event: IncomingEvent, room: RoomPort, decision: Decision) -> DispatchResult:
        """Report an accepted mention to all report rooms."""

        content = compose_report(event, decision.is_test)
        outcomes: List[ReportOutcome] = []
        for report_room_id in self._context.report_rooms:
            outcomes.append(await self._report_to(report_room_id, content))

        result = DispatchResult(outcomes=tuple(outcomes))
        if not result.any_succeeded:
            LOGGER.error(
                "Failed to report message from %s at %s to any room, not sending any ack reaction",
                content.sender,
                content.permalink,
            )
            return result

        acknowledged = await self._acknowledge(event, room)
        return DispatchResult(outcomes=result.outcomes, acknowledged=acknowledged)

    async def _report_to(self, report_room_id: str, content: ReportContent) -> ReportOutcome:
        # Failures stay inside this call; the fan-out loop never stops early.
        try:
            report_room = self._transport.get_room(report_room_id)
            if report_room is None:
                raise RoomNotFoundError(f"Report room {report_room_id} is unknown to the client")
            await report_room.send(content)
        except Exception as exc:
            LOGGER.error(
                "Failed to report message from %s at %s to %s: %s",
                content.sender,
                content.permalink,
                report_room_id,
                exc,
            )
            return ReportOutcome(room_id=report_room_id, success=False, error=str(exc))

        LOGGER.info(
            "Successfully reported message from %s at %s to %s",
            content.sender,
            content.permalink,
            report_room_id,
        )
        return ReportOutcome(room_id=report_room_id, success=True)

    async def _acknowledge(self, event: IncomingEvent, room: RoomPort) -> bool:
        reaction = Reaction(event_id=event.event_id, key=self._context.ack_reaction)
        try:
            await room.send(reaction)
        except Exception as exc:
            LOGGER.error(
                "Failed to send ack reaction to %s in %s: %s",
                event.event_id,
                event.room_id,
                exc,
            )
            return False
        return True
