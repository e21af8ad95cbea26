"""Asynchronous key-value stores backing the cart snapshot."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from gomarketplace.core.exceptions import AccessError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract base for string key-value stores."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key`` or None."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Overwrite the value stored under ``key``."""
        pass

    async def close(self) -> None:
        """Release backend connections."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and single-process runs without Redis."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value


class RedisKeyValueStore(KeyValueStore):
    """
    Redis-backed store.

    The client is created on first use; connection and command failures
    are reported as AccessError.
    """

    def __init__(self, redis_url: str):
        self._redis_url = redis_url
        self._redis: Any = None

    def _ensure_connected(self) -> Any:
        """Ensure Redis client exists."""
        if self._redis is None:
            self._redis = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            logger.info("Redis cart storage enabled")
        return self._redis

    async def get(self, key: str) -> str | None:
        client = self._ensure_connected()
        try:
            value = await client.get(key)
        except (RedisError, OSError) as exc:
            logger.warning("Redis read failed for %s: %s", key, exc)
            raise AccessError("read", key, exc) from exc
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        client = self._ensure_connected()
        try:
            await client.set(key, value)
        except (RedisError, OSError) as exc:
            logger.warning("Redis write failed for %s: %s", key, exc)
            raise AccessError("write", key, exc) from exc

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
