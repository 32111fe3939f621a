"""Data models for care notifications."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union
import time
import uuid

from src.care_notifications.config import (
    NotificationCategory,
    NotificationPriority,
)

LOCAL_ONLY_SENTINEL = "local-only"


def _new_id() -> str:
    return uuid.uuid4().hex[:16]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class TokenKind(Enum):
    """Whether a push identity can receive remote pushes."""
    REMOTE = "remote"
    LOCAL_ONLY = "local_only"


@dataclass(frozen=True)
class PushToken:
    """Push identity obtained by the registrar.

    A REMOTE token carries the platform token. LOCAL_ONLY means only
    local scheduling works on this device.
    """

    kind: TokenKind
    value: str = ""

    @classmethod
    def remote(cls, value: str) -> "PushToken":
        return cls(kind=TokenKind.REMOTE, value=value)

    @classmethod
    def local_only(cls) -> "PushToken":
        return cls(kind=TokenKind.LOCAL_ONLY)

    @property
    def is_local_only(self) -> bool:
        return self.kind == TokenKind.LOCAL_ONLY

    def __str__(self) -> str:
        if self.is_local_only:
            return LOCAL_ONLY_SENTINEL
        return self.value


# ═══════════════════════════════════════════════════════════════════════
# Triggers
# ═══════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ImmediateTrigger:
    """Fire as soon as possible."""

    def to_dict(self) -> Optional[dict]:
        return None


@dataclass(frozen=True)
class IntervalTrigger:
    """Fire `seconds` after scheduling."""

    seconds: int
    repeats: bool = False

    def to_dict(self) -> dict:
        return {"type": "timeInterval", "seconds": self.seconds, "repeats": self.repeats}


@dataclass(frozen=True)
class DailyTrigger:
    """Fire every day at hour:minute local time until cancelled."""

    hour: int
    minute: int

    def __post_init__(self):
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour out of range: {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute out of range: {self.minute}")

    @property
    def repeats(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {"type": "calendar", "hour": self.hour, "minute": self.minute, "repeats": True}


Trigger = Union[ImmediateTrigger, IntervalTrigger, DailyTrigger]


# ═══════════════════════════════════════════════════════════════════════
# Notifications
# ═══════════════════════════════════════════════════════════════════════


@dataclass
class NotificationRequest:
    """Content of a notification to schedule."""

    category: NotificationCategory
    title: str
    body: str
    payload: dict = field(default_factory=dict)

    def content(self) -> dict:
        """Payload data with the category tag the receiving side routes on."""
        return {"type": self.category.value, **self.payload}


@dataclass
class ScheduledNotification:
    """A notification handed to the platform's pending queue."""

    request: NotificationRequest
    trigger: Trigger
    channel_id: str
    priority: NotificationPriority
    notification_id: str = field(default_factory=_new_id)
    scheduled_at: datetime = field(default_factory=_now)

    @property
    def category(self) -> NotificationCategory:
        return self.request.category

    def to_dict(self) -> dict:
        return {
            "notification_id": self.notification_id,
            "category": self.request.category.value,
            "title": self.request.title,
            "body": self.request.body,
            "data": self.request.content(),
            "channel_id": self.channel_id,
            "priority": self.priority.value,
            "trigger": self.trigger.to_dict(),
            "scheduled_at": self.scheduled_at.isoformat(),
        }


@dataclass
class InboundNotification:
    """A notification delivered by the platform to the running app."""

    identifier: str
    title: Optional[str] = None
    body: Optional[str] = None
    payload: dict = field(default_factory=dict)

    @property
    def category(self) -> NotificationCategory:
        return NotificationCategory.resolve((self.payload or {}).get("type"))

    @classmethod
    def from_scheduled(cls, scheduled: ScheduledNotification) -> "InboundNotification":
        return cls(
            identifier=scheduled.notification_id,
            title=scheduled.request.title,
            body=scheduled.request.body,
            payload=scheduled.request.content(),
        )


@dataclass
class NotificationRecord:
    """Persisted history entry.

    `read` only moves from False to True.
    """

    id: str
    title: str
    body: str
    received_at: int
    category: NotificationCategory = NotificationCategory.OTHER
    payload: dict = field(default_factory=dict)
    read: bool = False

    @property
    def conversation_id(self) -> Optional[str]:
        if not isinstance(self.payload, dict):
            return None
        return self.payload.get("conversationId")

    def mark_read(self) -> None:
        self.read = True

    @classmethod
    def from_inbound(cls, notification: InboundNotification, received_at: int) -> "NotificationRecord":
        return cls(
            id=notification.identifier,
            title=notification.title or "Notification",
            body=notification.body or "",
            payload=dict(notification.payload or {}),
            received_at=received_at,
            category=notification.category,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "data": self.payload,
            "timestamp": self.received_at,
            "read": self.read,
            "type": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationRecord":
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "Notification",
            body=data.get("body") or "",
            payload=data.get("data") or {},
            received_at=int(data.get("timestamp", 0)),
            read=bool(data.get("read", False)),
            category=NotificationCategory.resolve(data.get("type")),
        )
