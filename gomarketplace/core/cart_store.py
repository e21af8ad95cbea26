"""
Observable cart state mirrored to a key-value store.

Every mutation runs through a single worker task: it reads the current
cart, computes the next one and persists it. Committed carts are handed
to a separate notifier task, which calls subscribers in commit order, so
a subscriber may itself mutate the cart. Queued mutations therefore
always build on the result of the previous one.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from gomarketplace.domain.cart import CartState, add_product, decrement_item, increment_item
from gomarketplace.domain.entities import CartProduct
from gomarketplace.integrations.kv_store import KeyValueStore

from .cart_snapshot import decode_cart, encode_cart
from .constants import CART_STORAGE_KEY
from .exceptions import AccessError, HydrationDecodeError

logger = logging.getLogger(__name__)

# Listeners may be plain callables or coroutine functions
CartListener = Callable[[CartState], Awaitable[None] | None]
CartTransition = Callable[[CartState], CartState]


@dataclass
class _Operation:
    """Queued cart operation awaiting the worker."""

    name: str
    step: Callable[[], Awaitable[CartState]]
    future: asyncio.Future
    published: asyncio.Future


@dataclass
class _Notice:
    """Committed cart awaiting delivery to listeners."""

    items: CartState
    published: asyncio.Future


def _fail_pending(queue: asyncio.Queue, reason: str) -> None:
    """Resolve everything left in a queue whose consumer has stopped."""
    while not queue.empty():
        entry = queue.get_nowait()
        if isinstance(entry, _Operation):
            _fail_future(entry.future, RuntimeError(reason))
            entry.published.cancel()
        else:
            _fail_future(entry.published, RuntimeError(reason))
        queue.task_done()


def _fail_future(future: asyncio.Future, exc: BaseException) -> None:
    if future.done():
        return
    if isinstance(exc, asyncio.CancelledError):
        future.cancel()
    else:
        future.set_exception(exc)


class CartStore:
    """Owns the cart line items and keeps storage in lockstep with memory."""

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        storage_key: str = CART_STORAGE_KEY,
        strict_hydration: bool = False,
    ):
        self._storage = storage
        self._storage_key = storage_key
        self._strict_hydration = strict_hydration
        self._products: CartState = ()
        self._listeners: list[CartListener] = []
        self._queue: asyncio.Queue[_Operation] | None = None
        self._worker: asyncio.Task | None = None
        self._notices: asyncio.Queue[_Notice] | None = None
        self._notifier: asyncio.Task | None = None
        self._hydrated = False
        self._closed = False

    @property
    def products(self) -> CartState:
        """Current line items in insertion order."""
        return self._products

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    def current(self) -> CartState:
        return self._products

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener for published carts; returns an unsubscribe handle."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ============= Operations =============

    async def hydrate(self) -> CartState:
        """Load the persisted snapshot into memory."""
        return await self._submit("hydrate", self._hydrate_step)

    async def add_to_cart(self, product: CartProduct | Mapping[str, Any]) -> None:
        """Add one unit of a product, merging with an existing line."""
        if not isinstance(product, CartProduct):
            product = CartProduct.model_validate(product)
        await self._submit(
            "add_to_cart", lambda: self._mutate(lambda items: add_product(items, product))
        )

    async def increment(self, product_id: str) -> None:
        """Add one unit to the line with ``product_id``."""
        await self._submit(
            "increment", lambda: self._mutate(lambda items: increment_item(items, product_id))
        )

    async def decrement(self, product_id: str) -> None:
        """Remove one unit from the line with ``product_id``; empty lines leave the cart."""
        await self._submit(
            "decrement", lambda: self._mutate(lambda items: decrement_item(items, product_id))
        )

    async def close(self) -> None:
        """Finish queued operations and notifications, then stop both tasks."""
        if self._closed:
            return
        self._closed = True

        in_listener = asyncio.current_task() is self._notifier
        if self._worker is not None and not self._worker.done() and self._queue is not None:
            await self._queue.join()
        if (
            not in_listener
            and self._notifier is not None
            and not self._notifier.done()
            and self._notices is not None
        ):
            await self._notices.join()

        for task in (self._worker, self._notifier):
            if task is None or task.done() or task is asyncio.current_task():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._worker = None

    # ============= Worker =============

    def _ensure_tasks(self) -> asyncio.Queue[_Operation]:
        if self._notifier is None or self._notifier.done():
            self._notices = asyncio.Queue()
            self._notifier = asyncio.create_task(self._run_notifier(self._notices))
        if self._worker is None or self._worker.done():
            self._queue = asyncio.Queue()
            self._worker = asyncio.create_task(self._run_worker(self._queue))
        assert self._queue is not None
        return self._queue

    async def _submit(self, name: str, step: Callable[[], Awaitable[CartState]]) -> CartState:
        if self._closed:
            raise RuntimeError("CartStore is closed")

        queue = self._ensure_tasks()
        loop = asyncio.get_running_loop()
        operation = _Operation(
            name=name, step=step, future=loop.create_future(), published=loop.create_future()
        )
        queue.put_nowait(operation)
        result = await operation.future

        # a listener mutating the cart gets its turn once it returns
        if asyncio.current_task() is not self._notifier:
            await operation.published
        return result

    async def _run_worker(self, queue: asyncio.Queue[_Operation]) -> None:
        while True:
            operation = await queue.get()
            try:
                if operation.future.cancelled():
                    continue
                result = await operation.step()
            except Exception as exc:
                logger.debug("Cart %s failed: %s", operation.name, exc)
                _fail_future(operation.future, exc)
            except BaseException as exc:
                logger.warning("Cart worker stopped during %s: %r", operation.name, exc)
                _fail_future(operation.future, exc)
                _fail_pending(queue, "cart worker stopped")
                raise
            else:
                logger.debug("Cart %s done, %d line(s)", operation.name, len(result))
                assert self._notices is not None
                self._notices.put_nowait(_Notice(items=result, published=operation.published))
                if not operation.future.done():
                    operation.future.set_result(result)
            finally:
                queue.task_done()

    async def _run_notifier(self, notices: asyncio.Queue[_Notice]) -> None:
        while True:
            notice = await notices.get()
            try:
                await self._publish(notice.items)
            except BaseException as exc:
                _fail_future(notice.published, exc)
                _fail_pending(notices, "cart notifier stopped")
                raise
            else:
                if not notice.published.done():
                    notice.published.set_result(None)
            finally:
                notices.task_done()

    # ============= Steps =============

    async def _hydrate_step(self) -> CartState:
        self._products = await self._load()
        self._hydrated = True
        return self._products

    async def _mutate(self, transition: CartTransition) -> CartState:
        # first mutation of a session builds on the stored snapshot
        if not self._hydrated:
            await self._hydrate_step()
        return await self._commit(transition(self._products))

    async def _load(self) -> CartState:
        raw = await self._read()
        if raw is None:
            return ()
        try:
            return decode_cart(raw, self._storage_key)
        except HydrationDecodeError as exc:
            if self._strict_hydration:
                raise
            logger.warning("Ignoring malformed cart snapshot: %s", exc.message)
            return ()

    async def _commit(self, items: CartState) -> CartState:
        # memory only moves after the write is acknowledged
        await self._write(encode_cart(items))
        self._products = items
        return items

    async def _read(self) -> str | None:
        try:
            return await self._storage.get(self._storage_key)
        except AccessError:
            raise
        except Exception as exc:
            raise AccessError("read", self._storage_key, exc) from exc

    async def _write(self, payload: str) -> None:
        try:
            await self._storage.set(self._storage_key, payload)
        except AccessError:
            raise
        except Exception as exc:
            raise AccessError("write", self._storage_key, exc) from exc

    async def _publish(self, items: CartState) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(items)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Cart listener error: {e}")
