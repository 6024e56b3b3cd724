# app/core/config.py

import os
from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


def _env_file() -> Optional[str]:
    path = os.environ.get('ENV_FILE', '.env')
    return path if os.path.exists(path) else None


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # Shopify Admin API
    SHOPIFY_SHOP_URL: Optional[str] = None
    SHOPIFY_ADMIN_API_ACCESS_TOKEN: Optional[str] = None
    SHOPIFY_API_VERSION: str = "2024-07"
    SHOPIFY_WEBHOOK_SECRET: str = ""  # Empty disables HMAC verification
    SHOPIFY_TIMEOUT_SECONDS: float = 10.0

    # Variant sync
    SYNC_CONCURRENCY: int = 2               # Global cap on simultaneous quantity writes
    SYNC_DEDUP_TTL_SECONDS: float = 30.0
    SYNC_CALL_TIMEOUT_SECONDS: float = 15.0
    SYNC_MAX_RETRIES: int = 0               # Retries for rate-limit/5xx only
    SYNC_RETRY_BACKOFF_SECONDS: float = 1.0
    SYNC_VARIANT_PAGE_SIZE: int = 50
    SYNC_RECENT_FAILURES: int = 50          # Failed outcomes kept for /health/sync

    # Logging
    LOG_LEVEL: str = "INFO"

    # Environment
    PORT: int = 3000
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    model_config = ConfigDict(
        env_file=_env_file(),
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file for every request"""
    return Settings()

def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()
