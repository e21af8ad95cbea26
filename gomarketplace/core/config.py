"""Environment-driven configuration for the cart store."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .constants import CART_STORAGE_KEY, DEFAULT_LOG_LEVEL
from .exceptions import ConfigurationException


def _str_to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"true", "1", "yes", "y"}


@dataclass(slots=True)
class Settings:
    redis_url: str | None = None
    storage_key: str = CART_STORAGE_KEY
    strict_hydration: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def uses_redis(self) -> bool:
        return bool(self.redis_url)


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    redis_url = os.getenv("REDIS_URL") or None
    storage_key = os.getenv("CART_STORAGE_KEY", "").strip() or CART_STORAGE_KEY
    strict_hydration = _str_to_bool(os.getenv("CART_STRICT_HYDRATION"))

    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationException(f"Unknown LOG_LEVEL: {log_level}")

    return Settings(
        redis_url=redis_url,
        storage_key=storage_key,
        strict_hydration=strict_hydration,
        log_level=log_level,
    )
