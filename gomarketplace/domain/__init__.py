"""Domain package."""

from .cart import CartState, add_product, decrement_item, increment_item
from .entities import CartProduct, LineItem

__all__ = [
    # Entities
    "CartProduct",
    "LineItem",
    # State transitions
    "CartState",
    "add_product",
    "increment_item",
    "decrement_item",
]
