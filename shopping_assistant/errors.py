from __future__ import annotations


class NotFoundError(Exception):
    """Base error for unresolved session, product, or cart line lookups."""

    label = "Resource"

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"{self.label} not found")


class SessionNotFoundError(NotFoundError):
    label = "Session"


class ProductNotFoundError(NotFoundError):
    label = "Product"


class CartItemNotFoundError(NotFoundError):
    label = "Cart item"
