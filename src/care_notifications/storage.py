"""Key-value persistence for notification history and sessions.

Values are JSON strings, matching the layout the mobile client keeps on
device. Adapter failures surface as `PersistenceFailure`; callers decide
whether to degrade.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from src.care_notifications.errors import PersistenceFailure

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStorage(Protocol):
    """Protocol for string key-value stores."""

    async def get_item(self, key: str) -> Optional[str]: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    """Process-local storage, for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class RedisStorage:
    """Redis-backed storage using redis.asyncio.

    Keys are namespaced with `prefix`. The client is created lazily so
    constructing the storage never touches the network.
    """

    def __init__(self, url: str = "redis://localhost:6379/0", prefix: str = "carelink:", client=None):
        self._url = url
        self._prefix = prefix
        self._client = client

    async def get_client(self):
        """Get or create the async Redis client."""
        if self._client is None:
            import redis.asyncio as aioredis
            self._client = aioredis.from_url(self._url, decode_responses=True)
        return self._client

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get_item(self, key: str) -> Optional[str]:
        try:
            client = await self.get_client()
            value = await client.get(self._key(key))
        except Exception as e:
            raise PersistenceFailure(f"Redis get failed for {key}: {e}") from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set_item(self, key: str, value: str) -> None:
        try:
            client = await self.get_client()
            await client.set(self._key(key), value)
        except Exception as e:
            raise PersistenceFailure(f"Redis set failed for {key}: {e}") from e

    async def remove_item(self, key: str) -> None:
        try:
            client = await self.get_client()
            await client.delete(self._key(key))
        except Exception as e:
            raise PersistenceFailure(f"Redis delete failed for {key}: {e}") from e

    async def close(self) -> None:
        """Close the connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
