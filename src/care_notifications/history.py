"""Per-user notification history.

Keeps a bounded, most-recent-first log of received notifications under
`notifications_{user_id}`, independent of the platform notification
center. Rapid chat messages from one conversation collapse into a single
record. Every mutation for a user runs under that user's lock so
concurrent deliveries cannot lose updates.
"""

import asyncio
import json
import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional

from src.care_notifications.config import (
    DEFAULT_NOTIFICATION_CONFIG,
    HISTORY_KEY,
    NotificationCategory,
    NotificationConfig,
)
from src.care_notifications.errors import PersistenceFailure
from src.care_notifications.models import InboundNotification, NotificationRecord, now_ms
from src.care_notifications.storage import KeyValueStorage
from src.logging_config import NotificationContext, PerformanceTimer

logger = logging.getLogger(__name__)

MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS


def format_relative_time(epoch_millis: int, now_millis: Optional[int] = None) -> str:
    """Human label for how long ago `epoch_millis` was.

    >>> format_relative_time(0, 59_999)
    'Just now'
    >>> format_relative_time(0, 60_000)
    '1m ago'
    """
    if now_millis is None:
        now_millis = now_ms()
    delta = now_millis - epoch_millis

    if delta < MINUTE_MS:
        return "Just now"
    if delta < HOUR_MS:
        return f"{delta // MINUTE_MS}m ago"
    if delta < DAY_MS:
        return f"{delta // HOUR_MS}h ago"
    if delta < WEEK_MS:
        return f"{delta // DAY_MS}d ago"
    return datetime.fromtimestamp(epoch_millis / 1000).date().isoformat()


def _sort_recent_first(records: list[NotificationRecord]) -> list[NotificationRecord]:
    return sorted(records, key=lambda r: r.received_at, reverse=True)


class NotificationHistoryStore:
    """Owns the persisted notification history of every user."""

    def __init__(
        self,
        storage: KeyValueStorage,
        config: Optional[NotificationConfig] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.storage = storage
        self.config = config or DEFAULT_NOTIFICATION_CONFIG
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        # Last successfully read or written list per user
        self._views: dict[str, list[NotificationRecord]] = {}

    @staticmethod
    def storage_key(user_id: str) -> str:
        return HISTORY_KEY.format(user_id=user_id)

    # ── Persistence ──────────────────────────────────────────────────

    async def _read(self, user_id: str) -> list[NotificationRecord]:
        key = self.storage_key(user_id)
        with PerformanceTimer(f"history.read[{key}]"):
            raw = await self.storage.get_item(key)
        if raw is None:
            return []
        try:
            items = json.loads(raw)
            return [NotificationRecord.from_dict(item) for item in items]
        except (ValueError, TypeError, KeyError) as e:
            raise PersistenceFailure(f"corrupt history under {key}: {e}") from e

    async def _write(self, user_id: str, records: list[NotificationRecord]) -> None:
        key = self.storage_key(user_id)
        raw = json.dumps([r.to_dict() for r in records])
        with PerformanceTimer(f"history.write[{key}]"):
            await self.storage.set_item(key, raw)

    async def _read_or_stale(self, user_id: str) -> list[NotificationRecord]:
        try:
            records = await self._read(user_id)
        except Exception as e:
            logger.error(
                f"Error loading notification history: {e}",
                extra={"storage_key": self.storage_key(user_id)},
            )
            return list(self._views.get(user_id, []))
        self._views[user_id] = records
        return records

    async def _commit(self, user_id: str, records: list[NotificationRecord]) -> None:
        self._views[user_id] = records
        try:
            await self._write(user_id, records)
        except Exception as e:
            logger.error(
                f"Error saving notification history: {e}",
                extra={"storage_key": self.storage_key(user_id)},
            )

    # ── Operations ───────────────────────────────────────────────────

    async def load_notification_history(self, user_id: str) -> list[NotificationRecord]:
        """Records for `user_id`, newest first. Missing history is empty."""
        records = await self._read_or_stale(user_id)
        return _sort_recent_first(records)

    async def add_notification_to_history(
        self, user_id: str, notification: InboundNotification
    ) -> NotificationRecord:
        """Record an inbound notification and return the stored record."""
        async with self._locks[user_id]:
            with NotificationContext(user_id=user_id, notification_id=notification.identifier):
                existing = await self._read_or_stale(user_id)
                now = self._clock()
                candidate = NotificationRecord.from_inbound(notification, received_at=now)

                recent = self._recent_chat(existing, candidate, now)
                if recent is not None:
                    recent.body = candidate.body
                    recent.received_at = candidate.received_at
                    logger.debug(f"Collapsed chat notification into {recent.id}")
                    await self._commit(user_id, _sort_recent_first(existing))
                    return recent

                updated = _sort_recent_first([candidate, *existing])[: self.config.history_limit]
                await self._commit(user_id, updated)
                logger.debug(
                    "Recorded notification",
                    extra={"category": candidate.category.value},
                )
                return candidate

    def _recent_chat(
        self,
        existing: list[NotificationRecord],
        candidate: NotificationRecord,
        now: int,
    ) -> Optional[NotificationRecord]:
        if candidate.category != NotificationCategory.CHAT or candidate.conversation_id is None:
            return None
        for record in existing:
            if (
                record.category == NotificationCategory.CHAT
                and record.conversation_id == candidate.conversation_id
                and now - record.received_at < self.config.chat_dedup_window_ms
            ):
                return record
        return None

    async def get_record(self, user_id: str, record_id: str) -> Optional[NotificationRecord]:
        for record in await self._read_or_stale(user_id):
            if record.id == record_id:
                return record
        return None

    async def find_conversation_record(
        self, user_id: str, conversation_id: str
    ) -> Optional[NotificationRecord]:
        """Newest chat record for `conversation_id`, which absorbs collapsed deliveries."""
        for record in _sort_recent_first(await self._read_or_stale(user_id)):
            if (
                record.category == NotificationCategory.CHAT
                and record.conversation_id == conversation_id
            ):
                return record
        return None

    async def mark_as_read(self, user_id: str, record_id: str) -> None:
        """Mark one record read. Unknown ids and repeat calls are no-ops."""
        async with self._locks[user_id]:
            records = await self._read_or_stale(user_id)
            for record in records:
                if record.id == record_id:
                    if not record.read:
                        record.mark_read()
                        await self._commit(user_id, records)
                    return

    async def clear_all(self, user_id: str) -> None:
        async with self._locks[user_id]:
            self._views[user_id] = []
            try:
                await self.storage.remove_item(self.storage_key(user_id))
            except Exception as e:
                logger.error(f"Error clearing notification history: {e}")

    async def unread_count(self, user_id: str) -> int:
        records = await self._read_or_stale(user_id)
        return sum(1 for r in records if not r.read)
