"""Notification routing.

Maps a notification's category to the in-app destination that opens
when the user taps it.
"""

import inspect
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from src.care_notifications.config import NotificationCategory
from src.care_notifications.history import NotificationHistoryStore
from src.care_notifications.models import InboundNotification, NotificationRecord

logger = logging.getLogger(__name__)


class Destination(Enum):
    """In-app destinations reachable from a notification."""
    CHAT = "Chat"
    MEDICATIONS = "Medications"
    HOME = "Home"
    MAPS = "Maps"


DESTINATIONS: dict[NotificationCategory, Destination] = {
    NotificationCategory.CHAT: Destination.CHAT,
    NotificationCategory.MEDICATION: Destination.MEDICATIONS,
    NotificationCategory.PRESCRIPTION: Destination.MEDICATIONS,
    NotificationCategory.APPOINTMENT: Destination.HOME,
    NotificationCategory.EMERGENCY: Destination.MAPS,
}

Navigator = Callable[[Destination], Union[None, Awaitable[None]]]


class NotificationRouter:
    """Resolves destinations and opens records."""

    def __init__(
        self,
        history: NotificationHistoryStore,
        navigator: Optional[Navigator] = None,
    ):
        self.history = history
        self.navigator = navigator

    @staticmethod
    def destination_for(category: NotificationCategory) -> Optional[Destination]:
        """Destination for `category`, or None when nothing should open."""
        return DESTINATIONS.get(category)

    async def open(self, user_id: str, record: NotificationRecord) -> Optional[Destination]:
        """Mark `record` read, then navigate to its destination."""
        await self.history.mark_as_read(user_id, record.id)
        record.mark_read()

        destination = self.destination_for(record.category)
        if destination is not None:
            await self._navigate(destination)
        return destination

    async def open_inbound(self, notification: InboundNotification) -> Optional[Destination]:
        """Navigate for a tapped notification without touching history."""
        destination = self.destination_for(notification.category)
        if destination is not None:
            await self._navigate(destination)
        return destination

    async def _navigate(self, destination: Destination) -> None:
        if self.navigator is None:
            return
        try:
            result = self.navigator(destination)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                f"Navigation to {destination.value} failed: {e}",
                extra={"destination": destination.value},
            )
