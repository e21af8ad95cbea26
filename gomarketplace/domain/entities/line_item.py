"""Cart line item entity models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CartProduct(BaseModel):
    """Product record handed to the cart by the catalog."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., description="Product ID")
    title: str = Field(..., description="Product title")
    image_url: str = Field(..., description="Product image URL")
    price: float = Field(..., description="Unit price")

    def to_line_item(self, quantity: int) -> LineItem:
        """Build a cart line item holding ``quantity`` units."""
        return LineItem(**self.model_dump(exclude={"quantity"}), quantity=quantity)


class LineItem(CartProduct):
    """A product plus the number of units held in the cart."""

    quantity: int = Field(..., ge=0, description="Units held")

    def with_quantity(self, quantity: int) -> LineItem:
        """Return a copy with a different quantity, other fields untouched."""
        return self.model_copy(update={"quantity": quantity})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the persisted snapshot."""
        return {
            "id": self.id,
            "title": self.title,
            "image_url": self.image_url,
            "price": self.price,
            "quantity": self.quantity,
        }
