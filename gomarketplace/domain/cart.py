"""Pure cart state transitions.

Each function takes the current cart and returns a new one; the input
tuple is never mutated.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from gomarketplace.core.constants import MIN_QUANTITY, NEW_ITEM_QUANTITY

from .entities import CartProduct, LineItem

CartState = tuple[LineItem, ...]


def _bump(items: CartState, product_id: str, delta: int) -> CartState:
    return tuple(
        item.with_quantity(item.quantity + delta) if item.id == product_id else item
        for item in items
    )


def add_product(items: CartState, product: CartProduct | Mapping[str, Any]) -> CartState:
    """Add one unit of ``product``, merging into an existing line by id."""
    if not isinstance(product, CartProduct):
        product = CartProduct.model_validate(product)

    if any(item.id == product.id for item in items):
        # stored fields win over the incoming record
        return _bump(items, product.id, 1)

    return (*items, product.to_line_item(NEW_ITEM_QUANTITY))


def increment_item(items: CartState, product_id: str) -> CartState:
    """Add one unit to the matching line; unknown ids leave the cart as-is."""
    return _bump(items, product_id, 1)


def decrement_item(items: CartState, product_id: str) -> CartState:
    """Remove one unit from the matching line and drop emptied lines."""
    return tuple(
        item for item in _bump(items, product_id, -1) if item.quantity >= MIN_QUANTITY
    )
