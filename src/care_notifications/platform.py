"""Platform notification capability.

`NotificationPlatform` is the seam between the notification core and
the device: permissions, channels, push tokens, the local pending queue
and the badge. `AsyncioNotificationPlatform` is the runtime adapter that
delivers local notifications on the running event loop; the in-memory
fake used by tests lives in `care_notifications.testing`.
"""

import asyncio
import logging
from datetime import datetime, time as dt_time, timedelta, timezone
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from src.care_notifications.config import DeviceType, PermissionStatus
from src.care_notifications.errors import PushServiceMisconfigured
from src.care_notifications.models import (
    DailyTrigger,
    InboundNotification,
    IntervalTrigger,
    ScheduledNotification,
)

logger = logging.getLogger(__name__)

DeliveryHandler = Callable[[InboundNotification], Awaitable[None]]
TokenProvider = Callable[[str], Awaitable[str]]
PermissionPrompt = Callable[[], Awaitable[bool]]


@runtime_checkable
class NotificationPlatform(Protocol):
    """Protocol for the device notification API."""

    is_physical_device: bool
    is_sandboxed: bool
    requires_channels: bool
    device_type: DeviceType

    async def get_permission_status(self) -> PermissionStatus: ...

    async def request_permission(self) -> PermissionStatus: ...

    async def create_channel(self, channel_id: str, spec: dict) -> None: ...

    async def get_push_token(self, project_id: str) -> str: ...

    async def schedule_local(self, notification: ScheduledNotification) -> str: ...

    async def cancel_local(self, notification_id: str) -> None: ...

    async def cancel_all_local(self) -> None: ...

    async def list_pending(self) -> list[ScheduledNotification]: ...

    async def get_badge_count(self) -> int: ...

    async def set_badge_count(self, count: int) -> None: ...


def next_daily_fire(hour: int, minute: int, after: Optional[datetime] = None) -> datetime:
    """First local hour:minute strictly after `after`, as an aware datetime.

    Each candidate day's wall-clock time is resolved against the local
    zone separately, so the result stays on hour:minute across DST
    changes. Naive `after` values are read as local time.
    """
    after = (after or datetime.now(timezone.utc)).astimezone()
    day = after.date()
    while True:
        target = datetime.combine(day, dt_time(hour, minute)).astimezone()
        if target > after:
            return target
        day += timedelta(days=1)


def seconds_until(hour: int, minute: int, now: Optional[datetime] = None) -> float:
    """Seconds from `now` (local time) until the next hour:minute."""
    now = (now or datetime.now(timezone.utc)).astimezone()
    return (next_daily_fire(hour, minute, now) - now).total_seconds()


class AsyncioNotificationPlatform:
    """Delivers local notifications with event-loop timers.

    Delivery goes to the handler installed with `set_delivery_handler`,
    normally `NotificationEvents.dispatch_received`. Remote push tokens
    come from an optional `token_provider`; without one the push service
    counts as misconfigured and the registrar falls back to local-only.
    """

    def __init__(
        self,
        device_type: DeviceType = DeviceType.WEB,
        is_physical_device: bool = True,
        is_sandboxed: bool = False,
        requires_channels: Optional[bool] = None,
        token_provider: Optional[TokenProvider] = None,
        permission_prompt: Optional[PermissionPrompt] = None,
    ):
        self.device_type = device_type
        self.is_physical_device = is_physical_device
        self.is_sandboxed = is_sandboxed
        if requires_channels is None:
            requires_channels = device_type == DeviceType.ANDROID
        self.requires_channels = requires_channels
        self._token_provider = token_provider
        self._permission_prompt = permission_prompt
        self._permission = PermissionStatus.UNDETERMINED
        self._channels: dict[str, dict] = {}
        self._pending: dict[str, ScheduledNotification] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._daily_fire_at: dict[str, datetime] = {}
        self._delivery_tasks: set[asyncio.Task] = set()
        self._handler: Optional[DeliveryHandler] = None
        self._badge = 0

    def set_delivery_handler(self, handler: Optional[DeliveryHandler]) -> None:
        self._handler = handler

    @property
    def channels(self) -> dict[str, dict]:
        return dict(self._channels)

    # ── Permissions / channels / tokens ─────────────────────────────

    async def get_permission_status(self) -> PermissionStatus:
        return self._permission

    async def request_permission(self) -> PermissionStatus:
        if self._permission == PermissionStatus.GRANTED:
            return self._permission
        if self._permission_prompt is None:
            self._permission = PermissionStatus.GRANTED
        else:
            granted = await self._permission_prompt()
            self._permission = PermissionStatus.GRANTED if granted else PermissionStatus.DENIED
        return self._permission

    async def create_channel(self, channel_id: str, spec: dict) -> None:
        self._channels[channel_id] = dict(spec)

    async def get_push_token(self, project_id: str) -> str:
        if self._token_provider is None:
            raise PushServiceMisconfigured("no push token provider configured")
        return await self._token_provider(project_id)

    # ── Local queue ─────────────────────────────────────────────────

    async def schedule_local(self, notification: ScheduledNotification) -> str:
        self._pending[notification.notification_id] = notification
        self._arm(notification)
        return notification.notification_id

    async def cancel_local(self, notification_id: str) -> None:
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        self._pending.pop(notification_id, None)
        self._daily_fire_at.pop(notification_id, None)

    async def cancel_all_local(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._pending.clear()
        self._daily_fire_at.clear()

    async def list_pending(self) -> list[ScheduledNotification]:
        return list(self._pending.values())

    def next_fire_at(self, notification_id: str) -> Optional[datetime]:
        """When a pending daily notification fires next."""
        return self._daily_fire_at.get(notification_id)

    async def get_badge_count(self) -> int:
        return self._badge

    async def set_badge_count(self, count: int) -> None:
        self._badge = max(0, count)

    async def close(self) -> None:
        await self.cancel_all_local()
        for task in list(self._delivery_tasks):
            task.cancel()

    def _arm(self, notification: ScheduledNotification) -> None:
        trigger = notification.trigger
        if isinstance(trigger, DailyTrigger):
            # Re-arms start from the previous fire time so an early wake-up cannot repeat it
            previous = self._daily_fire_at.get(notification.notification_id)
            fire_at = next_daily_fire(trigger.hour, trigger.minute, previous)
            self._daily_fire_at[notification.notification_id] = fire_at
            delay = max(0.0, (fire_at - datetime.now(timezone.utc)).total_seconds())
        elif isinstance(trigger, IntervalTrigger):
            delay = float(trigger.seconds)
        else:
            delay = 0.0

        loop = asyncio.get_running_loop()
        self._timers[notification.notification_id] = loop.call_later(
            delay, self._fire, notification.notification_id
        )

    def _fire(self, notification_id: str) -> None:
        self._timers.pop(notification_id, None)
        notification = self._pending.get(notification_id)
        if notification is None:
            return

        if getattr(notification.trigger, "repeats", False):
            self._arm(notification)
        else:
            del self._pending[notification_id]

        if self._handler is None:
            logger.debug(f"No delivery handler; dropping {notification_id}")
            return

        task = asyncio.get_running_loop().create_task(
            self._handler(InboundNotification.from_scheduled(notification))
        )
        self._delivery_tasks.add(task)
        task.add_done_callback(self._delivery_tasks.discard)
