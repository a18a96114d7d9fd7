"""Per-user notification socket: ws/notifications/?token=<JWT>"""

import logging
from typing import Dict, Any

from channels.db import database_sync_to_async

from common.exceptions import ServiceError
from .base import BaseConsumer

logger = logging.getLogger(__name__)


class NotificationConsumer(BaseConsumer):
    """
    Incoming messages:
        {"type": "ping"}
        {"type": "mark_read", "notification_id": <id>}
        {"type": "unread_count"}

    Outgoing (server push):
        {"type": "notification", "id", "notification_type", "title", "message", ...}
    """

    async def on_connect(self):
        unread = await self._count_unread()
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "user_type": self.user_type,
            "unread": unread,
        })

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        if msg_type == "ping":
            await self.send_json({"type": "pong"})
        elif msg_type == "unread_count":
            await self.send_json({"type": "unread_count", "unread": await self._count_unread()})
        elif msg_type == "mark_read":
            notification_id = data.get("notification_id")
            if not notification_id:
                await self.send_error("notification_id is required")
                return
            try:
                await self._mark_read(notification_id)
            except ServiceError as e:
                await self.send_error(e.message)
                return
            await self.send_json({
                "type": "marked_read",
                "notification_id": notification_id,
                "unread": await self._count_unread(),
            })
        else:
            await super().handle_message(msg_type, data)

    # ---------------------- Server push handlers ----------------------

    async def notification(self, event):
        """group_send type 'notification' from notifications.services"""
        payload = {k: v for k, v in event.items() if k != "type"}
        await self.send_json({"type": "notification", **payload})

    # ---------------------- DB helpers ----------------------

    @database_sync_to_async
    def _count_unread(self) -> int:
        from notifications.services import count_unread
        return count_unread(self.user)

    @database_sync_to_async
    def _mark_read(self, notification_id):
        from notifications.services import mark_read
        return mark_read(notification_id, self.user)
