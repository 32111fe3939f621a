"""Backend client for push token registration.

Thin httpx wrapper around `POST /api/notifications/register`. Raises
`NetworkFailure` for transport errors, non-2xx answers and unparseable
bodies; the registrar turns those into a False result.
"""

import logging
from typing import Optional

import httpx

from src.care_notifications.config import (
    DEFAULT_NOTIFICATION_CONFIG,
    DeviceType,
    NotificationConfig,
)
from src.care_notifications.errors import NetworkFailure
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


class PushBackendClient:
    """Reports push tokens to the care backend."""

    def __init__(
        self,
        config: Optional[NotificationConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or DEFAULT_NOTIFICATION_CONFIG
        self._http_client = http_client
        self._owns_client = http_client is None

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.config.api_url,
                headers={"Content-Type": "application/json"},
                timeout=self.config.backend_timeout_seconds,
            )
        return self._http_client

    @log_performance(threshold_ms=2000)
    async def register_token(self, token: str, device_type: DeviceType, session_token: str) -> bool:
        """POST the token; return the backend's `success` flag."""
        try:
            resp = await self._client().post(
                self.config.register_path,
                json={"token": token, "deviceType": device_type.value},
                headers={"Cookie": f"{self.config.session_cookie_name}={session_token}"},
            )
        except httpx.HTTPError as e:
            raise NetworkFailure(f"push token registration failed: {type(e).__name__}: {e}") from e

        if not resp.is_success:
            raise NetworkFailure(f"push token registration returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise NetworkFailure("push token registration returned invalid JSON") from e

        return isinstance(data, dict) and data.get("success") is True

    async def aclose(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
        self._http_client = None
