"""In-memory notification platform for tests.

Records every platform call in order so tests can assert on what the
registrar and scheduler did, and never fires anything on its own:
tests deliver pending notifications explicitly with `fire()`.
"""

from typing import Optional

from src.care_notifications.config import DeviceType, PermissionStatus
from src.care_notifications.models import InboundNotification, ScheduledNotification


class InMemoryNotificationPlatform:
    """Deterministic fake of `NotificationPlatform`."""

    def __init__(
        self,
        device_type: DeviceType = DeviceType.ANDROID,
        is_physical_device: bool = True,
        is_sandboxed: bool = False,
        requires_channels: Optional[bool] = None,
        permission: PermissionStatus = PermissionStatus.GRANTED,
        grant_on_request: bool = True,
        token: str = "ExponentPushToken[test-token]",
        token_error: Optional[Exception] = None,
        schedule_error: Optional[Exception] = None,
    ):
        self.device_type = device_type
        self.is_physical_device = is_physical_device
        self.is_sandboxed = is_sandboxed
        if requires_channels is None:
            requires_channels = device_type == DeviceType.ANDROID
        self.requires_channels = requires_channels
        self.permission = permission
        self.grant_on_request = grant_on_request
        self.token = token
        self.token_error = token_error
        self.schedule_error = schedule_error
        self.calls: list[str] = []
        self.channels: dict[str, dict] = {}
        self.pending: dict[str, ScheduledNotification] = {}
        self.badge = 0

    async def get_permission_status(self) -> PermissionStatus:
        self.calls.append("get_permission_status")
        return self.permission

    async def request_permission(self) -> PermissionStatus:
        self.calls.append("request_permission")
        if self.grant_on_request:
            self.permission = PermissionStatus.GRANTED
        else:
            self.permission = PermissionStatus.DENIED
        return self.permission

    async def create_channel(self, channel_id: str, spec: dict) -> None:
        self.calls.append("create_channel")
        self.channels[channel_id] = dict(spec)

    async def get_push_token(self, project_id: str) -> str:
        self.calls.append("get_push_token")
        if self.token_error is not None:
            raise self.token_error
        return self.token

    async def schedule_local(self, notification: ScheduledNotification) -> str:
        self.calls.append("schedule_local")
        if self.schedule_error is not None:
            raise self.schedule_error
        self.pending[notification.notification_id] = notification
        return notification.notification_id

    async def cancel_local(self, notification_id: str) -> None:
        self.calls.append("cancel_local")
        self.pending.pop(notification_id, None)

    async def cancel_all_local(self) -> None:
        self.calls.append("cancel_all_local")
        self.pending.clear()

    async def list_pending(self) -> list[ScheduledNotification]:
        self.calls.append("list_pending")
        return list(self.pending.values())

    async def get_badge_count(self) -> int:
        return self.badge

    async def set_badge_count(self, count: int) -> None:
        self.badge = count

    def fire(self, notification_id: str) -> InboundNotification:
        """Deliver a pending notification; repeating ones stay pending."""
        scheduled = self.pending[notification_id]
        if not getattr(scheduled.trigger, "repeats", False):
            del self.pending[notification_id]
        return InboundNotification.from_scheduled(scheduled)
