"""Persisted sign-in session.

The login flow stores the session token, the user and their role under
fixed keys; the notification core reads the user id from here to pick
whose history to write.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from src.care_notifications.config import (
    SESSION_ROLE_KEY,
    SESSION_TOKEN_KEY,
    SESSION_USER_KEY,
)
from src.care_notifications.storage import KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Signed-in user session."""

    session_token: str
    user: dict[str, Any] = field(default_factory=dict)
    role: Optional[str] = None

    @property
    def user_id(self) -> Optional[str]:
        user_id = self.user.get("id")
        return str(user_id) if user_id is not None else None


class SessionStore:
    """Reads and writes the session keys."""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    async def save(self, session: Session) -> bool:
        try:
            await self.storage.set_item(SESSION_TOKEN_KEY, session.session_token)
            await self.storage.set_item(SESSION_USER_KEY, json.dumps(session.user))
            if session.role is not None:
                await self.storage.set_item(SESSION_ROLE_KEY, session.role)
        except Exception as e:
            logger.error(f"Error saving session: {e}")
            return False
        return True

    async def load(self) -> Optional[Session]:
        try:
            token = await self.storage.get_item(SESSION_TOKEN_KEY)
            raw_user = await self.storage.get_item(SESSION_USER_KEY)
            role = await self.storage.get_item(SESSION_ROLE_KEY)
        except Exception as e:
            logger.error(f"Error loading session: {e}")
            return None

        if not token or not raw_user:
            return None
        try:
            user = json.loads(raw_user)
        except ValueError:
            logger.warning("Stored user is not valid JSON; ignoring session")
            return None
        return Session(session_token=token, user=user, role=role)

    async def clear(self) -> None:
        for key in (SESSION_TOKEN_KEY, SESSION_USER_KEY, SESSION_ROLE_KEY):
            try:
                await self.storage.remove_item(key)
            except Exception as e:
                logger.error(f"Error clearing session key {key}: {e}")
