from typing import Callable

from core.logger import setup_logger
from hub_engine.models import NotificationType, SYSTEM_PARTY_ID
from utils.time_util import now_millis

logger = setup_logger("NOTIFY")


class NotificationSink:
    """Creates in-app notification records; push delivery happens downstream."""

    def __init__(self, store, clock: Callable[[], int] = now_millis):
        self.store = store
        self.clock = clock

    async def create_notification(
        self,
        recipient_id: str,
        type: NotificationType,
        party_id: str,
        related_card_id: str = "",
        sender_id: str = SYSTEM_PARTY_ID,
        sender_name: str = "System Audit",
    ):
        record = await self.store.insert("notifications", {
            "recipient_id": recipient_id,
            "sender_id": sender_id,
            "sender_name": sender_name,
            "type": NotificationType(type),
            "related_card_id": related_card_id or "",
            "party_id": party_id,
            "timestamp": self.clock(),
            "read": False,
        })
        logger.debug(f"{NotificationType(type).value} -> {recipient_id} ({party_id})")
        return record

    async def mark_read(self, notification_id: str) -> bool:
        return await self.store.update("notifications", notification_id, {"read": True})
