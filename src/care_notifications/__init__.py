"""Care notification lifecycle.

Notification core for the care coordination app:
- Push registration with local-only fallback
- Local scheduling (immediate, delayed, daily)
- Per-user history with chat deduplication and read tracking
- Category routing to in-app destinations

Example:
    from src.care_notifications import (
        AsyncioNotificationPlatform, InMemoryStorage, NotificationService,
    )

    service = NotificationService(AsyncioNotificationPlatform(), InMemoryStorage())
    service.attach_user("user_1")
    await service.scheduler.schedule_daily_medication("Aspirin", "100mg", 9, 0)
"""

from src.care_notifications.config import (
    NotificationCategory,
    NotificationPriority,
    ChannelImportance,
    PermissionStatus,
    DeviceType,
    NotificationConfig,
    DEFAULT_NOTIFICATION_CONFIG,
    CATEGORY_CONFIGS,
)
from src.care_notifications.errors import (
    NotificationError,
    CapabilityUnavailable,
    PermissionDenied,
    PushServiceMisconfigured,
    NetworkFailure,
    PersistenceFailure,
)
from src.care_notifications.models import (
    PushToken,
    TokenKind,
    ImmediateTrigger,
    IntervalTrigger,
    DailyTrigger,
    NotificationRequest,
    ScheduledNotification,
    InboundNotification,
    NotificationRecord,
)
from src.care_notifications.platform import NotificationPlatform, AsyncioNotificationPlatform
from src.care_notifications.storage import KeyValueStorage, InMemoryStorage, RedisStorage
from src.care_notifications.backend import PushBackendClient
from src.care_notifications.registrar import PushRegistrar
from src.care_notifications.scheduler import NotificationScheduler
from src.care_notifications.history import NotificationHistoryStore, format_relative_time
from src.care_notifications.router import Destination, NotificationRouter
from src.care_notifications.events import NotificationEvents, Subscription
from src.care_notifications.session import Session, SessionStore
from src.care_notifications.service import NotificationService

__all__ = [
    # Config
    "NotificationCategory",
    "NotificationPriority",
    "ChannelImportance",
    "PermissionStatus",
    "DeviceType",
    "NotificationConfig",
    "DEFAULT_NOTIFICATION_CONFIG",
    "CATEGORY_CONFIGS",
    # Errors
    "NotificationError",
    "CapabilityUnavailable",
    "PermissionDenied",
    "PushServiceMisconfigured",
    "NetworkFailure",
    "PersistenceFailure",
    # Models
    "PushToken",
    "TokenKind",
    "ImmediateTrigger",
    "IntervalTrigger",
    "DailyTrigger",
    "NotificationRequest",
    "ScheduledNotification",
    "InboundNotification",
    "NotificationRecord",
    # Adapters
    "NotificationPlatform",
    "AsyncioNotificationPlatform",
    "KeyValueStorage",
    "InMemoryStorage",
    "RedisStorage",
    "PushBackendClient",
    # Components
    "PushRegistrar",
    "NotificationScheduler",
    "NotificationHistoryStore",
    "format_relative_time",
    "Destination",
    "NotificationRouter",
    "NotificationEvents",
    "Subscription",
    "Session",
    "SessionStore",
    "NotificationService",
]
