"""Tests for the partner supply cart."""

from unittest.mock import MagicMock

import pytest

from localpro.cart import CartService, CartServiceError
from localpro.config import MarketplaceConfig


@pytest.fixture
def service(storage, config):
    return CartService(storage, config)


@pytest.fixture
def products(seed):
    return [
        seed.product("pipe", name="PVC Pipe", market=120.0, partner=100.0, bulk=80.0, stock=50),
        seed.product("tape", name="Teflon Tape", market=30.0, partner=25.0, bulk=None, stock=5),
    ]


class TestCartContents:
    def test_add_merges_existing_line(self, service, storage, products):
        service.add_to_cart("user-1", "pipe", 2)
        service.add_to_cart("user-1", "pipe", 3)

        items = storage.list_cart_items("user-1")
        assert len(items) == 1
        assert items[0].quantity == 5

    def test_totals_use_partner_price_below_bulk_threshold(self, service, products):
        service.add_to_cart("user-1", "pipe", 2)
        service.add_to_cart("user-1", "tape", 1)

        cart = service.get_cart("user-1")

        assert cart.total_items == 3
        assert cart.total_price == 225.0
        assert set(cart.to_dict()) == {"items", "totalItems", "totalPrice"}

    def test_bulk_price_applies_at_threshold(self, service, products):
        service.add_to_cart("user-1", "pipe", 10)

        assert service.get_cart("user-1").total_price == 800.0

    def test_custom_bulk_threshold(self, storage, products):
        service = CartService(storage, MarketplaceConfig(bulk_quantity_threshold=3))
        service.add_to_cart("user-1", "pipe", 3)

        assert service.get_cart("user-1").total_price == 240.0

    def test_missing_product_skipped_in_totals(self, service, products):
        service.add_to_cart("user-1", "pipe", 1)
        service.add_to_cart("user-1", "discontinued", 4)

        cart = service.get_cart("user-1")

        assert len(cart.items) == 2
        assert cart.total_items == 1

    def test_zero_quantity_removes_line(self, service, storage, products):
        service.add_to_cart("user-1", "pipe", 2)
        item = service.get_cart_item("user-1", "pipe")

        service.update_cart_item_quantity("user-1", item.id, 0)

        assert storage.list_cart_items("user-1") == []

    def test_clear_cart_only_for_user(self, service, products):
        service.add_to_cart("user-1", "pipe")
        service.add_to_cart("user-2", "pipe")

        service.clear_cart("user-1")

        assert service.get_cart_item_count("user-1") == 0
        assert service.get_cart_item_count("user-2") == 1


class TestCartChecks:
    def test_validate_reports_stock_problems(self, service, seed, products):
        seed.product("glue", name="Pipe Glue", stock=0)
        service.add_to_cart("user-1", "tape", 8)
        service.add_to_cart("user-1", "glue", 1)
        service.add_to_cart("user-1", "gone", 1)

        validation = service.validate_cart("user-1")

        assert validation.is_valid is False
        assert "Only 5 units of Teflon Tape available" in validation.errors
        assert "Pipe Glue is out of stock" in validation.errors
        assert "Product gone no longer exists" in validation.errors
        [clamped] = validation.updated_items
        assert clamped.quantity == 5
        assert validation.to_dict()["isValid"] is False

    def test_totals_discount_against_market(self, service, products):
        service.add_to_cart("user-1", "pipe", 2)
        service.add_to_cart("user-1", "tape", 2)

        totals = service.calculate_cart_totals("user-1").to_dict()

        assert totals == {"subtotal": 250.0, "discount": 50.0, "total": 250.0, "itemCount": 4}


class TestCartFailures:
    def test_store_error_wrapped(self, storage):
        storage.get_cart_item = MagicMock(side_effect=RuntimeError("timeout"))
        service = CartService(storage)

        with pytest.raises(CartServiceError, match="Failed to add item to cart"):
            service.add_to_cart("user-1", "pipe")

    def test_item_count_zero_on_failure(self, storage):
        storage.list_cart_items = MagicMock(side_effect=RuntimeError("timeout"))
        assert CartService(storage).get_cart_item_count("user-1") == 0
