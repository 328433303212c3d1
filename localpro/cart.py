"""
Partner supply-marketplace cart.

Unlike the job actions, cart operations raise :class:`CartServiceError`
with a short user-facing message; the HTTP layer turns that into a 500
response envelope.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from localpro.config import MarketplaceConfig
from localpro.models import CartItem, Product, utc_now
from localpro.storage.base import CartStorage

logger = logging.getLogger(__name__)


class CartServiceError(Exception):
    """Cart operation failed."""


@dataclass
class Cart:
    items: List[CartItem] = field(default_factory=list)
    total_items: int = 0
    total_price: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [i.to_dict() for i in self.items],
            "totalItems": self.total_items,
            "totalPrice": self.total_price,
        }


@dataclass
class CartTotals:
    subtotal: float = 0.0
    discount: float = 0.0
    total: float = 0.0
    item_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": self.subtotal,
            "discount": self.discount,
            "total": self.total,
            "itemCount": self.item_count,
        }


@dataclass
class CartValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    updated_items: List[CartItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "updatedItems": [i.to_dict() for i in self.updated_items],
        }


class CartService:
    """Per-user shopping cart priced with partner and bulk pricing."""

    def __init__(self, storage: CartStorage, config: Optional[MarketplaceConfig] = None):
        self.storage = storage
        self.config = config or MarketplaceConfig()

    @contextmanager
    def _failures(self, message: str) -> Iterator[None]:
        try:
            yield
        except CartServiceError:
            raise
        except Exception as e:
            logger.error(f"{message}: {e}")
            raise CartServiceError(message) from e

    def _unit_price(self, product: Product, quantity: int) -> float:
        return product.unit_price(quantity, self.config.bulk_quantity_threshold)

    def get_cart(self, user_id: str) -> Cart:
        """Items newest first, with totals over items whose product still exists."""
        with self._failures("Failed to fetch cart"):
            items = self.storage.list_cart_items(user_id)
            cart = Cart(items=items)
            for item in items:
                product = self.storage.get_product(item.product_id)
                if product:
                    cart.total_price += self._unit_price(product, item.quantity) * item.quantity
                    cart.total_items += item.quantity
            return cart

    def add_to_cart(self, user_id: str, product_id: str, quantity: int = 1) -> None:
        """Add ``quantity`` units, merging into an existing line for the product."""
        with self._failures("Failed to add item to cart"):
            existing = self.storage.get_cart_item(user_id, product_id)
            if existing:
                self.update_cart_item_quantity(user_id, existing.id, existing.quantity + quantity)
                return
            self.storage.save_cart_item(
                CartItem(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    product_id=product_id,
                    quantity=quantity,
                    added_at=utc_now(),
                )
            )
            logger.info(f"Cart item added | user={user_id} | product={product_id} | qty={quantity}")

    def remove_from_cart(self, user_id: str, cart_item_id: str) -> None:
        with self._failures("Failed to remove item from cart"):
            self.storage.delete_cart_item(user_id, cart_item_id)

    def update_cart_item_quantity(self, user_id: str, cart_item_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        with self._failures("Failed to update cart item quantity"):
            if quantity <= 0:
                self.remove_from_cart(user_id, cart_item_id)
                return
            self.storage.update_cart_item_quantity(user_id, cart_item_id, quantity)

    def clear_cart(self, user_id: str) -> None:
        with self._failures("Failed to clear cart"):
            self.storage.clear_cart(user_id)

    def get_cart_item(self, user_id: str, product_id: str) -> Optional[CartItem]:
        with self._failures("Failed to fetch cart item"):
            return self.storage.get_cart_item(user_id, product_id)

    def get_cart_item_count(self, user_id: str) -> int:
        """Badge count; 0 when the cart cannot be read."""
        try:
            return self.get_cart(user_id).total_items
        except CartServiceError:
            return 0

    def validate_cart(self, user_id: str) -> CartValidation:
        """Check every line against current stock.

        Lines over the available stock are returned clamped to it in
        ``updated_items``; the stored cart is left unchanged.
        """
        with self._failures("Failed to validate cart"):
            cart = self.get_cart(user_id)
            result = CartValidation(is_valid=True)
            for item in cart.items:
                product = self.storage.get_product(item.product_id)
                if product is None:
                    result.errors.append(f"Product {item.product_id} no longer exists")
                    continue
                if not product.in_stock:
                    result.errors.append(f"{product.name} is out of stock")
                    continue
                if item.quantity > product.stock:
                    result.errors.append(f"Only {product.stock} units of {product.name} available")
                    item.quantity = product.stock
                result.updated_items.append(item)
            result.is_valid = not result.errors
            return result

    def calculate_cart_totals(self, user_id: str) -> CartTotals:
        """Subtotal at current prices; discount is the saving against market price."""
        with self._failures("Failed to calculate cart totals"):
            totals = CartTotals()
            market_total = 0.0
            for item in self.storage.list_cart_items(user_id):
                product = self.storage.get_product(item.product_id)
                if product is None:
                    continue
                totals.subtotal += self._unit_price(product, item.quantity) * item.quantity
                totals.item_count += item.quantity
                market_total += product.pricing.market_price * item.quantity
            totals.discount = market_total - totals.subtotal
            totals.total = totals.subtotal
            return totals
