"""Push registration.

Acquires a push identity for this device and reports it to the backend.
Neither operation raises: registration runs after login and signup and
must never block them.
"""

import asyncio
import logging
from typing import Optional

from src.care_notifications.backend import PushBackendClient
from src.care_notifications.config import (
    CATEGORY_CONFIGS,
    DEFAULT_NOTIFICATION_CONFIG,
    NotificationConfig,
    PermissionStatus,
)
from src.care_notifications.errors import (
    CapabilityUnavailable,
    NetworkFailure,
    PermissionDenied,
    PushServiceMisconfigured,
)
from src.care_notifications.models import PushToken
from src.care_notifications.platform import NotificationPlatform

logger = logging.getLogger(__name__)


class PushRegistrar:
    """Obtains and reports the device push token."""

    def __init__(
        self,
        platform: NotificationPlatform,
        backend: PushBackendClient,
        config: Optional[NotificationConfig] = None,
    ):
        self.platform = platform
        self.backend = backend
        self.config = config or DEFAULT_NOTIFICATION_CONFIG
        self._token: Optional[PushToken] = None

    @property
    def push_token(self) -> Optional[PushToken]:
        """Last token obtained, if any."""
        return self._token

    async def permission_status(self) -> PermissionStatus:
        """Current permission, for screens that explicitly surface it."""
        try:
            return await self.platform.get_permission_status()
        except Exception as e:
            logger.warning(f"Could not read notification permission: {e}")
            return PermissionStatus.UNDETERMINED

    async def register_for_push_notifications(self) -> Optional[PushToken]:
        """Return a push token, a local-only token, or None.

        None means notifications are unavailable here: emulator, sandboxed
        dev client, or permission denied.
        """
        try:
            self._check_capability()
            await self._ensure_permission()
        except CapabilityUnavailable as e:
            logger.info(f"Push notifications unavailable: {e}")
            return None
        except PermissionDenied:
            logger.info("Notification permission denied")
            return None
        except Exception as e:
            logger.error(f"Permission check failed: {e}")
            return self._cache(PushToken.local_only())

        try:
            if self.platform.requires_channels:
                await self._create_channels()

            if not self.config.project_id:
                raise CapabilityUnavailable("no push project id configured")

            value = await self.platform.get_push_token(self.config.project_id)
        except CapabilityUnavailable as e:
            logger.warning(f"{e}; notifications will be local only")
            return self._cache(PushToken.local_only())
        except PushServiceMisconfigured as e:
            logger.warning(f"Push service not configured ({e}); using local notifications only")
            return self._cache(PushToken.local_only())
        except Exception as e:
            logger.error(f"Error getting push token: {type(e).__name__}: {e}")
            return self._cache(PushToken.local_only())

        logger.info("Obtained remote push token")
        return self._cache(PushToken.remote(value))

    async def register_push_token_with_backend(self, user_id: str, session_token: str) -> bool:
        """Send the cached token to the backend. True only on explicit success."""
        token = self._token
        if token is None:
            logger.error("No push token available")
            return False

        try:
            success = await asyncio.wait_for(
                self.backend.register_token(str(token), self.platform.device_type, session_token),
                timeout=self.config.backend_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Push token registration for {user_id} timed out after "
                f"{self.config.backend_timeout_seconds}s"
            )
            return False
        except NetworkFailure as e:
            logger.warning(f"Push token registration for {user_id} failed: {e}")
            return False
        except Exception as e:
            logger.error(f"Error registering push token for {user_id}: {type(e).__name__}: {e}")
            return False

        if not success:
            logger.warning(f"Backend did not acknowledge push token for {user_id}")
        return success

    def _check_capability(self) -> None:
        if not self.platform.is_physical_device:
            raise CapabilityUnavailable("must use a physical device for push notifications")
        if self.platform.is_sandboxed:
            raise CapabilityUnavailable("sandboxed development client lacks native push")

    async def _ensure_permission(self) -> None:
        status = await self.platform.get_permission_status()
        if status != PermissionStatus.GRANTED:
            status = await self.platform.request_permission()
        if status != PermissionStatus.GRANTED:
            raise PermissionDenied(status.value)

    async def _create_channels(self) -> None:
        # Channels must exist before a token is requested
        for category, spec in CATEGORY_CONFIGS.items():
            await self.platform.create_channel(category.value, spec)

    def _cache(self, token: PushToken) -> PushToken:
        self._token = token
        return token
