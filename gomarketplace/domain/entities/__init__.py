"""Domain entities package."""

from .line_item import CartProduct, LineItem

__all__ = [
    "CartProduct",
    "LineItem",
]
