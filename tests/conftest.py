"""Shared pytest fixtures for cart tests."""
from __future__ import annotations

import asyncio

import pytest

from gomarketplace.core.cart_store import CartStore
from gomarketplace.core.constants import CART_STORAGE_KEY
from gomarketplace.integrations.kv_store import InMemoryKeyValueStore


class FlakyKeyValueStore(InMemoryKeyValueStore):
    """In-memory store that can be told to fail and yields on every call."""

    def __init__(self, initial: dict[str, str] | None = None):
        super().__init__(initial)
        self.fail_reads = False
        self.fail_writes = False
        self.writes: list[str] = []

    async def get(self, key: str) -> str | None:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise OSError("disk unavailable")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        # several suspension points between reading the cart and publishing it
        for _ in range(3):
            await asyncio.sleep(0)
        if self.fail_writes:
            raise OSError("quota exceeded")
        self.writes.append(value)
        await super().set(key, value)


@pytest.fixture
def storage() -> FlakyKeyValueStore:
    return FlakyKeyValueStore()


@pytest.fixture
def store(storage: FlakyKeyValueStore) -> CartStore:
    return CartStore(storage, storage_key=CART_STORAGE_KEY)


@pytest.fixture
def banana() -> dict:
    return {"id": "p1", "title": "Banana", "image_url": "https://cdn/banana.png", "price": 10}


@pytest.fixture
def apple() -> dict:
    return {"id": "p2", "title": "Apple", "image_url": "https://cdn/apple.png", "price": 4.5}
