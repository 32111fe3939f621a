"""Inbound notification events.

Two subscription points: notifications received while the app is in
the foreground, and notifications the user tapped. Subscribing returns
a `Subscription` whose `unsubscribe()` detaches the callback.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Union

from src.care_notifications.models import InboundNotification

logger = logging.getLogger(__name__)

Listener = Callable[[InboundNotification], Union[None, Awaitable[None]]]


@dataclass
class Subscription:
    """Handle returned at subscribe time."""

    _listeners: list = field(repr=False)
    _listener: Listener = field(repr=False)
    active: bool = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


class NotificationEvents:
    """Fan-out of inbound notifications to subscribed listeners."""

    def __init__(self):
        self._received: list[Listener] = []
        self._tapped: list[Listener] = []

    def on_received(self, listener: Listener) -> Subscription:
        self._received.append(listener)
        return Subscription(self._received, listener)

    def on_tapped(self, listener: Listener) -> Subscription:
        self._tapped.append(listener)
        return Subscription(self._tapped, listener)

    async def dispatch_received(self, notification: InboundNotification) -> None:
        logger.info(f"Notification received: {notification.identifier}")
        await self._dispatch(self._received, notification)

    async def dispatch_tapped(self, notification: InboundNotification) -> None:
        logger.info(f"Notification tapped: {notification.identifier}")
        await self._dispatch(self._tapped, notification)

    async def _dispatch(self, listeners: list[Listener], notification: InboundNotification) -> None:
        # Snapshot so listeners may unsubscribe while being called
        for listener in list(listeners):
            try:
                result = listener(notification)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Notification listener failed for {notification.identifier}")

    def listener_count(self) -> int:
        return len(self._received) + len(self._tapped)
