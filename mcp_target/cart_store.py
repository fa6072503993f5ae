"""Demo shopping cart storage.

There is a single cart for the whole process, stored under ``DEMO_CART_KEY``
and shared by every client. That mirrors the demo this server imitates: one
user's cart is visible to, and overwritten by, any other user.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, List, Optional

DEMO_CART_KEY = "demo-cart"


@dataclass
class CartItem:
    """A product placed in the cart."""

    title: str
    price: float
    quantity: int = 1
    product_id: Optional[str] = None
    image: Optional[str] = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productId': self.product_id,
            'title': self.title,
            'price': self.price,
            'image': self.image,
            'quantity': self.quantity,
            'lineTotal': self.line_total,
        }


class CartStore:
    """In-memory cart storage guarded by a single lock."""

    def __init__(self, single_item: bool = True):
        """Initialize cart store.

        Args:
            single_item: When True, adding an item replaces the cart content
                so the cart never holds more than one item
        """
        self.single_item = single_item
        self.carts: Dict[str, List[CartItem]] = {}
        self.lock = Lock()
        self.logger = logging.getLogger(__name__)

    def add(self, item: CartItem, key: str = DEMO_CART_KEY) -> List[CartItem]:
        """Add an item to the cart, creating the cart on first use.

        Returns:
            A copy of the cart content after the addition
        """
        if item.quantity < 1:
            raise ValueError("quantity must be at least 1")

        with self.lock:
            items = self.carts.setdefault(key, [])
            if self.single_item:
                items[:] = [item]
            else:
                existing = next(
                    (i for i in items if item.product_id and i.product_id == item.product_id),
                    None,
                )
                if existing is not None:
                    existing.quantity += item.quantity
                else:
                    items.append(item)
            self.logger.info(f"Cart {key} now holds {len(items)} item(s)")
            return list(items)

    def get(self, key: str = DEMO_CART_KEY) -> List[CartItem]:
        """Get a copy of the cart content (empty if the cart does not exist)."""
        with self.lock:
            return list(self.carts.get(key, []))

    def subtotal(self, key: str = DEMO_CART_KEY) -> float:
        with self.lock:
            return round(sum(i.line_total for i in self.carts.get(key, [])), 2)

    def clear(self, key: str = DEMO_CART_KEY) -> int:
        """Empty the cart.

        Returns:
            Number of items removed
        """
        with self.lock:
            removed = len(self.carts.pop(key, []))
        self.logger.info(f"Cleared cart {key} ({removed} item(s))")
        return removed
