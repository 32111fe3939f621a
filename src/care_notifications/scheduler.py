"""Local notification scheduling.

Turns a category-tagged request into a platform-scheduled delivery.
Scheduling is best effort: failures are logged and reported as None.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from src.care_notifications.config import (
    DEFAULT_NOTIFICATION_CONFIG,
    NotificationCategory,
    NotificationConfig,
    NotificationPriority,
    SCHEDULABLE_CATEGORIES,
)
from src.care_notifications.models import (
    DailyTrigger,
    ImmediateTrigger,
    IntervalTrigger,
    NotificationRequest,
    ScheduledNotification,
    Trigger,
)
from src.care_notifications.platform import NotificationPlatform

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(moment: datetime) -> datetime:
    # Naive datetimes are wall-clock local time
    if moment.tzinfo is None:
        return moment.astimezone()
    return moment


class NotificationScheduler:
    """Schedules, cancels and lists local notifications."""

    def __init__(
        self,
        platform: NotificationPlatform,
        config: Optional[NotificationConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.platform = platform
        self.config = config or DEFAULT_NOTIFICATION_CONFIG
        self._clock = clock

    def _priority(self, category: NotificationCategory) -> NotificationPriority:
        if category == NotificationCategory.EMERGENCY:
            return NotificationPriority.MAX
        return NotificationPriority.HIGH

    def _normalize(self, trigger: Optional[Trigger]) -> Trigger:
        if trigger is None:
            return ImmediateTrigger()
        if isinstance(trigger, IntervalTrigger):
            seconds = max(self.config.min_interval_seconds, int(trigger.seconds))
            if seconds != trigger.seconds:
                return IntervalTrigger(seconds=seconds, repeats=trigger.repeats)
        return trigger

    def seconds_until(self, moment: datetime) -> int:
        """Whole seconds from now until `moment`, at least the minimum interval."""
        delta = (_aware(moment) - self._clock()).total_seconds()
        return max(self.config.min_interval_seconds, round(delta))

    async def schedule_notification(
        self,
        request: NotificationRequest,
        trigger: Optional[Trigger] = None,
    ) -> Optional[str]:
        """Schedule `request`; None trigger fires immediately.

        Returns the notification id, or None if the platform refused.
        """
        if request.category not in SCHEDULABLE_CATEGORIES:
            logger.error(
                f"Cannot schedule {request.category.value} notification: no channel for it",
                extra={"category": request.category.value},
            )
            return None

        scheduled = ScheduledNotification(
            request=request,
            trigger=self._normalize(trigger),
            channel_id=request.category.value,
            priority=self._priority(request.category),
            scheduled_at=self._clock(),
        )
        try:
            notification_id = await self.platform.schedule_local(scheduled)
        except Exception as e:
            logger.error(
                f"Error scheduling {request.category.value} notification: {e}",
                extra={"category": request.category.value},
            )
            return None

        logger.debug(
            f"Scheduled notification {notification_id}",
            extra={"category": request.category.value, "trigger": scheduled.trigger.to_dict()},
        )
        return notification_id

    # ── Category builders ────────────────────────────────────────────

    async def send_chat_notification(
        self, sender_name: str, message: str, conversation_id: str
    ) -> Optional[str]:
        return await self.schedule_notification(
            NotificationRequest(
                category=NotificationCategory.CHAT,
                title=sender_name,
                body=message,
                payload={"conversationId": conversation_id},
            )
        )

    async def send_appointment_notification(
        self,
        title: str,
        appointment_time: datetime,
        minutes_before: Optional[int] = None,
    ) -> Optional[str]:
        """Remind `minutes_before` the appointment, or in 1s if that has passed."""
        if minutes_before is None:
            minutes_before = self.config.default_reminder_minutes
        fire_at = _aware(appointment_time) - timedelta(minutes=minutes_before)
        return await self.schedule_notification(
            NotificationRequest(
                category=NotificationCategory.APPOINTMENT,
                title="Appointment Reminder",
                body=f'Your appointment "{title}" is in {minutes_before} minutes',
                payload={"appointmentTime": _aware(appointment_time).isoformat()},
            ),
            IntervalTrigger(seconds=self.seconds_until(fire_at)),
        )

    async def send_medication_notification(
        self, name: str, dosage: str, time: datetime
    ) -> Optional[str]:
        return await self.schedule_notification(
            self._medication_request(name, dosage),
            IntervalTrigger(seconds=self.seconds_until(time)),
        )

    async def schedule_daily_medication(
        self, name: str, dosage: str, hour: int, minute: int
    ) -> Optional[str]:
        try:
            trigger = DailyTrigger(hour=hour, minute=minute)
        except ValueError as e:
            logger.error(f"Invalid daily medication time: {e}")
            return None
        return await self.schedule_notification(self._medication_request(name, dosage), trigger)

    async def send_emergency_notification(
        self, patient_name: str, alert_type: str
    ) -> Optional[str]:
        return await self.schedule_notification(
            NotificationRequest(
                category=NotificationCategory.EMERGENCY,
                title="EMERGENCY ALERT",
                body=f"{alert_type} detected for {patient_name}",
                payload={
                    "patientName": patient_name,
                    "alertType": alert_type,
                    "timestamp": self._clock().isoformat(),
                },
            )
        )

    def _medication_request(self, name: str, dosage: str) -> NotificationRequest:
        return NotificationRequest(
            category=NotificationCategory.MEDICATION,
            title="Medication Reminder",
            body=f"Time to take {name} ({dosage})",
            payload={"medicationName": name, "dosage": dosage},
        )

    # ── Queue management ─────────────────────────────────────────────

    async def cancel_notification(self, notification_id: str) -> None:
        try:
            await self.platform.cancel_local(notification_id)
        except Exception as e:
            logger.warning(f"Could not cancel notification {notification_id}: {e}")

    async def cancel_all_notifications(self) -> None:
        try:
            await self.platform.cancel_all_local()
        except Exception as e:
            logger.warning(f"Could not cancel scheduled notifications: {e}")

    async def get_scheduled_notifications(self) -> list[ScheduledNotification]:
        try:
            return await self.platform.list_pending()
        except Exception as e:
            logger.warning(f"Could not list scheduled notifications: {e}")
            return []

    # ── Badge ────────────────────────────────────────────────────────

    async def set_badge_count(self, count: int) -> None:
        try:
            await self.platform.set_badge_count(count)
        except Exception as e:
            logger.warning(f"Could not set badge count: {e}")

    async def get_badge_count(self) -> int:
        try:
            return await self.platform.get_badge_count()
        except Exception as e:
            logger.warning(f"Could not read badge count: {e}")
            return 0
