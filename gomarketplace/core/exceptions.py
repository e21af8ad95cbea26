"""Custom exceptions for the GoMarketplace cart."""
from __future__ import annotations


class MarketplaceException(Exception):
    """Base exception for all GoMarketplace errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class AccessError(MarketplaceException):
    """Key-value store read or write failed."""

    def __init__(self, operation: str, key: str, reason: object = None) -> None:
        detail = f": {reason}" if reason is not None else ""
        super().__init__(f"Storage {operation} failed for key {key!r}{detail}")
        self.operation = operation
        self.key = key
        self.reason = reason


class HydrationDecodeError(MarketplaceException):
    """Stored cart snapshot does not decode into line items."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Cart snapshot under {key!r} is malformed: {reason}")
        self.key = key
        self.reason = reason


class ConfigurationException(MarketplaceException):
    """Configuration errors."""

    pass
