from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .catalog import Catalog
from .errors import CartItemNotFoundError, ProductNotFoundError
from .models import CartItem, CartView, Session

logger = logging.getLogger("shopassist.cart")


def total_price(cart: Sequence[CartItem]) -> float:
    """Sum of price times quantity over the cart; no tax or shipping."""
    return sum(item.product.price * item.quantity for item in cart)


def item_count(cart: Sequence[CartItem]) -> int:
    """Sum of quantities, not the number of distinct lines."""
    return sum(item.quantity for item in cart)


def cart_view(cart: Sequence[CartItem]) -> CartView:
    return CartView(items=list(cart), item_count=item_count(cart), total_price=total_price(cart))


def _find_index(cart: Sequence[CartItem], product_id: str) -> Optional[int]:
    for index, item in enumerate(cart):
        if item.product.id == product_id:
            return index
    return None


class CartManager:
    """Mutates a session's cart against the catalog."""

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog

    def add(self, session: Session, product_id: str, quantity: int = 1) -> List[CartItem]:
        """Purpose: Add a product to the cart, merging with an existing line.
        Inputs/Outputs: Inputs are the session, product id, and quantity; returns the cart.
        Side Effects / State: Replaces or appends a CartItem and touches the session.
        Dependencies: Resolves the product through the Catalog.
        Failure Modes: Raises ProductNotFoundError before any mutation when the id is unknown.
        If Removed: Users cannot put products into their cart.
        Testing Notes: Adding twice must equal adding once with the summed quantity.
        """
        # Resolve first so an unknown product leaves the session untouched.
        product = self._catalog.find_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        index = _find_index(session.cart, product_id)
        if index is None:
            session.cart.append(CartItem(product=product, quantity=quantity))
        else:
            current = session.cart[index]
            session.cart[index] = CartItem(product=current.product, quantity=current.quantity + quantity)
        session.touch()
        logger.info("session=%s cart add product=%s qty=%d", session.id, product_id, quantity)
        return session.cart

    def update(self, session: Session, product_id: str, quantity: int) -> List[CartItem]:
        """Purpose: Replace the quantity of an existing cart line.
        Inputs/Outputs: Inputs are the session, product id, and new quantity; returns the cart.
        Side Effects / State: Replaces the CartItem (or drops it when quantity <= 0) and
            touches the session.
        Failure Modes: Raises CartItemNotFoundError when the product is not in the cart.
        Testing Notes: Updating to zero removes the line.
        """
        index = _find_index(session.cart, product_id)
        if index is None:
            raise CartItemNotFoundError(product_id)

        if quantity <= 0:
            del session.cart[index]
        else:
            session.cart[index] = CartItem(product=session.cart[index].product, quantity=quantity)
        session.touch()
        logger.info("session=%s cart update product=%s qty=%d", session.id, product_id, quantity)
        return session.cart

    def remove(self, session: Session, product_id: str) -> bool:
        """Remove a cart line and return True if one was removed; an absent product is a no-op."""
        index = _find_index(session.cart, product_id)
        if index is None:
            return False
        del session.cart[index]
        session.touch()
        logger.info("session=%s cart remove product=%s", session.id, product_id)
        return True
