"""Configuration for care notifications."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NotificationCategory(Enum):
    """Notification categories.

    The first four can be scheduled. PRESCRIPTION and OTHER only appear
    on records received from elsewhere.
    """
    CHAT = "chat"
    APPOINTMENT = "appointment"
    MEDICATION = "medication"
    EMERGENCY = "emergency"
    PRESCRIPTION = "prescription"
    OTHER = "other"

    @classmethod
    def resolve(cls, value: Optional[str]) -> "NotificationCategory":
        """Map a payload `type` tag to a category, OTHER if unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


SCHEDULABLE_CATEGORIES = (
    NotificationCategory.CHAT,
    NotificationCategory.APPOINTMENT,
    NotificationCategory.MEDICATION,
    NotificationCategory.EMERGENCY,
)


class NotificationPriority(Enum):
    """Delivery priority attached to scheduled content."""
    MAX = "max"
    HIGH = "high"


class ChannelImportance(Enum):
    """Platform channel importance levels."""
    MAX = "max"
    HIGH = "high"
    DEFAULT = "default"


class PermissionStatus(Enum):
    """Notification permission state reported by the platform."""
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class DeviceType(Enum):
    """Device type tag reported to the backend."""
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


@dataclass
class NotificationConfig:
    """Notification core configuration."""

    # Backend
    api_url: str = "https://palliative-care.vercel.app"
    register_path: str = "/api/notifications/register"
    session_cookie_name: str = "bl_session"
    backend_timeout_seconds: float = 10.0

    # Push service
    project_id: Optional[str] = None

    # History
    chat_dedup_window_ms: int = 60_000
    history_limit: int = 100

    # Scheduling
    min_interval_seconds: int = 1
    default_reminder_minutes: int = 15

    @classmethod
    def from_settings(cls, settings) -> "NotificationConfig":
        return cls(
            api_url=settings.api_url,
            session_cookie_name=settings.session_cookie_name,
            backend_timeout_seconds=settings.backend_timeout_seconds,
            project_id=settings.push_project_id or None,
            chat_dedup_window_ms=settings.chat_dedup_window_ms,
            history_limit=settings.history_limit,
        )


DEFAULT_NOTIFICATION_CONFIG = NotificationConfig()


_STANDARD_VIBRATION = [0, 250, 250, 250]

# Channel definitions created on platforms that require them
CATEGORY_CONFIGS: dict[NotificationCategory, dict] = {
    NotificationCategory.CHAT: {
        "name": "Chat Messages",
        "importance": ChannelImportance.HIGH,
        "vibration_pattern": _STANDARD_VIBRATION,
        "sound": "default",
        "enable_vibrate": True,
    },
    NotificationCategory.APPOINTMENT: {
        "name": "Appointments",
        "importance": ChannelImportance.HIGH,
        "vibration_pattern": _STANDARD_VIBRATION,
        "sound": "default",
        "enable_vibrate": True,
    },
    NotificationCategory.MEDICATION: {
        "name": "Medication Reminders",
        "importance": ChannelImportance.HIGH,
        "vibration_pattern": _STANDARD_VIBRATION,
        "sound": "default",
        "enable_vibrate": True,
    },
    NotificationCategory.EMERGENCY: {
        "name": "Emergency Alerts",
        "importance": ChannelImportance.MAX,
        "vibration_pattern": [0, 100, 100, 100, 100, 100],
        "sound": "default",
        "enable_vibrate": True,
        "enable_lights": True,
        "light_color": "#FF0000",
    },
}


# Storage keys
HISTORY_KEY = "notifications_{user_id}"
SESSION_TOKEN_KEY = "session_token"
SESSION_USER_KEY = "user"
SESSION_ROLE_KEY = "user_role"
