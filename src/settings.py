"""Centralized settings for the CareLink notification core.

Uses pydantic-settings to load from environment variables (prefixed CARELINK_)
with defaults matching the mobile client's behaviour.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """CareLink notification settings loaded from environment variables."""

    # --- Backend ---
    api_url: str = "https://palliative-care.vercel.app"
    session_cookie_name: str = "bl_session"
    backend_timeout_seconds: float = 10.0

    # --- Push service ---
    push_project_id: Optional[str] = None

    # --- History ---
    chat_dedup_window_ms: int = 60_000
    history_limit: int = 100

    # --- Storage ---
    redis_url: str = "redis://localhost:6379/0"
    use_redis: bool = False

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "json"

    model_config = {
        "env_prefix": "CARELINK_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
