"""Encoding and defensive decoding of the persisted cart snapshot."""
from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from gomarketplace.domain.cart import CartState
from gomarketplace.domain.entities import LineItem

from .constants import MIN_QUANTITY
from .exceptions import HydrationDecodeError


def encode_cart(items: CartState) -> str:
    """Serialize the cart as a JSON array in insertion order."""
    return json.dumps([item.to_dict() for item in items], ensure_ascii=False)


def decode_cart(raw: str, key: str) -> CartState:
    """Parse a stored snapshot into line items.

    The blob is treated as untrusted input: it must be a JSON array of
    objects matching ``LineItem`` with ``quantity >= 1`` and unique ids.

    Raises:
        HydrationDecodeError: on any structural mismatch
    """
    try:
        data: Any = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as exc:
        raise HydrationDecodeError(key, f"invalid JSON ({exc})") from exc

    if not isinstance(data, list):
        raise HydrationDecodeError(key, f"expected a list, got {type(data).__name__}")

    items: list[LineItem] = []
    seen: set[str] = set()
    for index, entry in enumerate(data):
        try:
            item = LineItem.model_validate(entry)
        except ValidationError as exc:
            raise HydrationDecodeError(key, f"entry {index}: {exc}") from exc
        if item.quantity < MIN_QUANTITY:
            raise HydrationDecodeError(key, f"entry {index}: quantity {item.quantity} < {MIN_QUANTITY}")
        if item.id in seen:
            raise HydrationDecodeError(key, f"entry {index}: duplicate id {item.id!r}")
        seen.add(item.id)
        items.append(item)

    return tuple(items)
