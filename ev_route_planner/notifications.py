import logging
from typing import List

from fastapi import WebSocket

from .models import ChargingPlan
from .planner import plan_summary

logger = logging.getLogger(__name__)


class WarningNotifier:
    """Pushes range warnings from finished plans to subscribed websockets."""

    def __init__(self):
        self.subscribers: List[WebSocket] = []

    async def subscribe(self, ws: WebSocket):
        await ws.accept()
        self.subscribers.append(ws)

    def unsubscribe(self, ws: WebSocket):
        if ws in self.subscribers:
            self.subscribers.remove(ws)

    async def publish_plan_warnings(self, plan: ChargingPlan) -> int:
        """Returns how many subscribers got the message. Plans without warnings send nothing."""
        if not plan.warnings or not self.subscribers:
            return 0

        message = {"type": "warnings", "items": list(plan.warnings), "summary": plan_summary(plan)}
        delivered = 0
        for ws in list(self.subscribers):
            try:
                await ws.send_json(message)
                delivered += 1
            except Exception as e:
                logger.debug("Dropping websocket subscriber: %s", e)
                self.unsubscribe(ws)
        return delivered
