"""Application bootstrap wiring storage and the cart store."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from gomarketplace.integrations.kv_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
)
from gomarketplace.logging_config import setup_logging

from .cart_store import CartStore
from .config import Settings, load_settings

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> KeyValueStore:
    """Create the key-value store from configuration."""
    # Priority 1: Redis (shared, survives restarts)
    if settings.redis_url:
        logger.info("Using Redis for cart storage")
        return RedisKeyValueStore(settings.redis_url)

    # Priority 2: process memory
    logger.warning("REDIS_URL is not set; cart uses in-memory storage")
    return InMemoryKeyValueStore()


def build_cart_store(settings: Settings, storage: KeyValueStore | None = None) -> CartStore:
    """Create a cart store bound to ``storage`` (or one built from settings)."""
    return CartStore(
        storage if storage is not None else build_storage(settings),
        storage_key=settings.storage_key,
        strict_hydration=settings.strict_hydration,
    )


@asynccontextmanager
async def open_cart_store(
    settings: Settings | None = None,
    storage: KeyValueStore | None = None,
) -> AsyncIterator[CartStore]:
    """Build and hydrate a cart store, closing it on exit.

    Storage passed in by the caller stays open; storage built here is closed.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    owns_storage = storage is None
    if storage is None:
        storage = build_storage(settings)
    store = build_cart_store(settings, storage)
    try:
        await store.hydrate()
        yield store
    finally:
        await store.close()
        if owns_storage:
            await storage.close()
