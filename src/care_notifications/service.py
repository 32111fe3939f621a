"""Notification service composition root.

Builds the registrar, scheduler, history store, router and event hub
around one platform adapter and one storage backend, and connects
inbound deliveries to history and routing. Construct one per process
and pass it to whatever needs it.
"""

import asyncio
import logging
from typing import Callable, Optional

from src.care_notifications.backend import PushBackendClient
from src.care_notifications.config import (
    DEFAULT_NOTIFICATION_CONFIG,
    NotificationCategory,
    NotificationConfig,
)
from src.care_notifications.events import NotificationEvents, Subscription
from src.care_notifications.history import NotificationHistoryStore
from src.care_notifications.models import InboundNotification, NotificationRecord, now_ms
from src.care_notifications.platform import NotificationPlatform
from src.care_notifications.registrar import PushRegistrar
from src.care_notifications.router import Destination, Navigator, NotificationRouter
from src.care_notifications.scheduler import NotificationScheduler
from src.care_notifications.session import Session, SessionStore
from src.care_notifications.storage import InMemoryStorage, KeyValueStorage, RedisStorage
from src.logging_config import NotificationContext

logger = logging.getLogger(__name__)


class NotificationService:
    """Owns every notification component for the running app."""

    def __init__(
        self,
        platform: NotificationPlatform,
        storage: KeyValueStorage,
        config: Optional[NotificationConfig] = None,
        backend: Optional[PushBackendClient] = None,
        navigator: Optional[Navigator] = None,
        clock_ms: Callable[[], int] = now_ms,
        owns_storage: bool = False,
    ):
        self.config = config or DEFAULT_NOTIFICATION_CONFIG
        self.platform = platform
        self.storage = storage
        self._owns_storage = owns_storage
        self.events = NotificationEvents()
        self.backend = backend or PushBackendClient(self.config)
        self.registrar = PushRegistrar(platform, self.backend, self.config)
        self.scheduler = NotificationScheduler(platform, self.config)
        self.history = NotificationHistoryStore(storage, self.config, clock=clock_ms)
        self.router = NotificationRouter(self.history, navigator)
        self.sessions = SessionStore(storage)

        self._user_id: Optional[str] = None
        self._tasks: set[asyncio.Task] = set()
        self._subscriptions: list[Subscription] = [
            self.events.on_received(self.handle_received),
            self.events.on_tapped(self.handle_tapped),
        ]
        set_handler = getattr(platform, "set_delivery_handler", None)
        if set_handler is not None:
            set_handler(self.events.dispatch_received)

    @classmethod
    def from_settings(
        cls,
        platform: NotificationPlatform,
        settings=None,
        navigator: Optional[Navigator] = None,
    ) -> "NotificationService":
        """Build a service from `src.settings` (environment driven)."""
        if settings is None:
            from src.settings import get_settings
            settings = get_settings()

        config = NotificationConfig.from_settings(settings)
        if settings.use_redis:
            storage: KeyValueStorage = RedisStorage(settings.redis_url)
        else:
            storage = InMemoryStorage()
        return cls(platform, storage, config=config, navigator=navigator, owns_storage=True)

    # ── Signed-in user ───────────────────────────────────────────────

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def attach_user(self, user_id: str) -> None:
        self._user_id = user_id

    def detach_user(self) -> None:
        self._user_id = None

    async def restore_session(self) -> Optional[Session]:
        """Attach the user from a persisted session, if there is one."""
        session = await self.sessions.load()
        if session is not None and session.user_id:
            self.attach_user(session.user_id)
        return session

    async def on_login(self, session: Session) -> Optional[asyncio.Task]:
        """Persist the session and start push registration in the background."""
        await self.sessions.save(session)
        if not session.user_id:
            logger.warning("Session has no user id; skipping notification setup")
            return None
        self.attach_user(session.user_id)
        return self.register_after_login(session.user_id, session.session_token)

    async def on_logout(self) -> None:
        await self.sessions.clear()
        self.detach_user()

    # ── Push registration ────────────────────────────────────────────

    def register_after_login(self, user_id: str, session_token: str) -> asyncio.Task:
        """Fire-and-forget registration; the task result is True on success."""
        task = asyncio.get_running_loop().create_task(
            self._register(user_id, session_token)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _register(self, user_id: str, session_token: str) -> bool:
        with NotificationContext(user_id=user_id):
            try:
                token = await self.registrar.register_for_push_notifications()
                if token is None:
                    return False
                registered = await self.registrar.register_push_token_with_backend(
                    user_id, session_token
                )
            except Exception:
                logger.exception("Failed to register push notifications")
                return False
            if registered:
                logger.info("Push notifications registered successfully")
            return registered

    # ── Inbound deliveries ───────────────────────────────────────────

    async def handle_received(self, notification: InboundNotification) -> Optional[NotificationRecord]:
        """Record a foreground delivery in the signed-in user's history."""
        if self._user_id is None:
            logger.debug(f"No signed-in user; not recording {notification.identifier}")
            return None
        record = await self.history.add_notification_to_history(self._user_id, notification)
        await self._refresh_badge()
        return record

    async def handle_tapped(self, notification: InboundNotification) -> Optional[Destination]:
        """Open the tapped notification.

        A chat delivery that was collapsed into an earlier record opens that
        record. Anything else not yet in history is recorded first.
        """
        if self._user_id is None:
            return await self.router.open_inbound(notification)

        record = await self.history.get_record(self._user_id, notification.identifier)
        if record is None:
            record = await self._collapsed_chat_record(notification)
        if record is None:
            record = await self.history.add_notification_to_history(self._user_id, notification)
        destination = await self.router.open(self._user_id, record)
        await self._refresh_badge()
        return destination

    async def _collapsed_chat_record(
        self, notification: InboundNotification
    ) -> Optional[NotificationRecord]:
        conversation_id = (notification.payload or {}).get("conversationId")
        if notification.category != NotificationCategory.CHAT or conversation_id is None:
            return None
        return await self.history.find_conversation_record(self._user_id, conversation_id)

    async def open_record(self, record: NotificationRecord) -> Optional[Destination]:
        """Open a record from the history list."""
        if self._user_id is None:
            return None
        destination = await self.router.open(self._user_id, record)
        await self._refresh_badge()
        return destination

    async def _refresh_badge(self) -> None:
        if self._user_id is None:
            return
        await self.scheduler.set_badge_count(await self.history.unread_count(self._user_id))

    # ── Lifecycle ────────────────────────────────────────────────────

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        set_handler = getattr(self.platform, "set_delivery_handler", None)
        if set_handler is not None:
            set_handler(None)
        await self.backend.aclose()

        close_platform = getattr(self.platform, "close", None)
        if close_platform is not None:
            await close_platform()
        close_storage = getattr(self.storage, "close", None)
        if self._owns_storage and close_storage is not None:
            await close_storage()
