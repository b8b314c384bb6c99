"""Тесты CartService: один ресторан на корзину, слияние позиций, изменение позиций и итоги"""

from decimal import Decimal

import pytest

from conftest import PIZZA_PLACE, SUSHI_BAR
from food_order_service.exceptions import CrossRestaurantConflictError, NotFoundError, ValidationError
from food_order_service.models.cart import Cart


def _snapshot(cart):
    return cart.restaurant_id, [(line.menu_item_id, line.quantity) for line in cart.lines]


class TestGetOrCreateCart:
    def test_creates_empty_cart_on_first_read(self, cart_service, customer):
        cart = cart_service.get_or_create_cart(customer.user_id)

        assert cart.id is not None
        assert cart.customer_id == customer.user_id
        assert cart.restaurant_id is None
        assert cart.lines == []

    def test_returns_same_cart_on_subsequent_reads(self, cart_service, db, customer):
        first = cart_service.get_or_create_cart(customer.user_id)
        second = cart_service.get_or_create_cart(customer.user_id)

        assert first.id == second.id
        assert db.query(Cart).filter(Cart.customer_id == customer.user_id).count() == 1


class TestAddItem:
    def test_binds_restaurant_and_appends_line(self, cart_service, customer):
        cart = cart_service.add_item(customer.user_id, "margherita", 2)

        assert cart.restaurant_id == PIZZA_PLACE
        assert _snapshot(cart)[1] == [("margherita", 2)]

    def test_same_item_merges_quantity(self, cart_service, customer):
        cart_service.add_item(customer.user_id, "margherita", 1)
        cart = cart_service.add_item(customer.user_id, "margherita", 3)

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 4

    def test_line_count_equals_distinct_items(self, cart_service, customer):
        for item_id in ["margherita", "garlic-bread", "margherita", "tiramisu", "garlic-bread", "margherita"]:
            cart = cart_service.add_item(customer.user_id, item_id, 1)

        assert len(cart.lines) == 3
        assert {line.menu_item_id: line.quantity for line in cart.lines} == {
            "margherita": 3,
            "garlic-bread": 2,
            "tiramisu": 1,
        }

    def test_lines_keep_insertion_order(self, cart_service, customer):
        cart_service.add_item(customer.user_id, "tiramisu", 1)
        cart_service.add_item(customer.user_id, "margherita", 1)
        cart = cart_service.add_item(customer.user_id, "garlic-bread", 1)

        assert [line.menu_item_id for line in cart.lines] == ["tiramisu", "margherita", "garlic-bread"]

    def test_item_from_other_restaurant_is_rejected(self, cart_service, customer):
        cart = cart_service.add_item(customer.user_id, "margherita", 2)
        before = _snapshot(cart)

        with pytest.raises(CrossRestaurantConflictError, match="different restaurants"):
            cart_service.add_item(customer.user_id, "salmon-roll", 1)

        assert _snapshot(cart_service.get_or_create_cart(customer.user_id)) == before

    def test_other_restaurant_allowed_after_clear(self, cart_service, customer):
        cart_service.add_item(customer.user_id, "margherita", 1)
        cart_service.clear_cart(customer.user_id)

        cart = cart_service.add_item(customer.user_id, "salmon-roll", 1)

        assert cart.restaurant_id == SUSHI_BAR

    def test_unknown_item_is_not_found(self, cart_service, customer):
        with pytest.raises(NotFoundError):
            cart_service.add_item(customer.user_id, "no-such-dish", 1)

    def test_unavailable_item_is_not_found(self, cart_service, customer):
        with pytest.raises(NotFoundError, match="not available"):
            cart_service.add_item(customer.user_id, "calzone", 1)

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity_is_rejected(self, cart_service, catalog, customer, quantity):
        with pytest.raises(ValidationError):
            cart_service.add_item(customer.user_id, "margherita", quantity)

        assert catalog.lookups == 0


class TestUpdateItemQuantity:
    def test_replaces_quantity_in_place(self, cart_service, customer):
        cart = cart_service.add_item(customer.user_id, "margherita", 2)
        line_id = cart.lines[0].id

        cart = cart_service.update_item_quantity(customer.user_id, line_id, 5)

        assert len(cart.lines) == 1
        assert cart.lines[0].id == line_id
        assert cart.lines[0].quantity == 5

    def test_missing_line_is_not_found(self, cart_service, customer):
        cart_service.add_item(customer.user_id, "margherita", 2)

        with pytest.raises(NotFoundError, match="Item not found"):
            cart_service.update_item_quantity(customer.user_id, 9999, 1)

    def test_missing_cart_is_not_found(self, cart_service, db, customer):
        with pytest.raises(NotFoundError, match="Cart not found"):
            cart_service.update_item_quantity(customer.user_id, 1, 1)

        assert db.query(Cart).count() == 0

    def test_zero_quantity_is_rejected(self, cart_service, customer):
        cart = cart_service.add_item(customer.user_id, "margherita", 2)

        with pytest.raises(ValidationError):
            cart_service.update_item_quantity(customer.user_id, cart.lines[0].id, 0)

        assert cart_service.get_or_create_cart(customer.user_id).lines[0].quantity == 2

    def test_cannot_touch_another_customers_line(self, cart_service, customer, other_customer):
        cart = cart_service.add_item(customer.user_id, "margherita", 2)
        cart_service.get_or_create_cart(other_customer.user_id)

        with pytest.raises(NotFoundError):
            cart_service.update_item_quantity(other_customer.user_id, cart.lines[0].id, 7)


class TestRemoveItem:
    def test_removes_line_and_keeps_restaurant(self, cart_service, customer):
        cart_service.add_item(customer.user_id, "margherita", 1)
        cart = cart_service.add_item(customer.user_id, "garlic-bread", 1)

        cart = cart_service.remove_item(customer.user_id, cart.lines[0].id)

        assert [line.menu_item_id for line in cart.lines] == ["garlic-bread"]
        assert cart.restaurant_id == PIZZA_PLACE

    def test_removing_last_line_unbinds_restaurant(self, cart_service, customer):
        cart = cart_service.add_item(customer.user_id, "margherita", 1)

        cart = cart_service.remove_item(customer.user_id, cart.lines[0].id)

        assert cart.lines == []
        assert cart.restaurant_id is None

    def test_missing_line_is_not_found(self, cart_service, customer):
        cart_service.add_item(customer.user_id, "margherita", 1)

        with pytest.raises(NotFoundError):
            cart_service.remove_item(customer.user_id, 424242)

    def test_missing_cart_is_not_found(self, cart_service, customer):
        with pytest.raises(NotFoundError, match="Cart not found"):
            cart_service.remove_item(customer.user_id, 1)


class TestClearCart:
    def test_clear_empties_lines_and_restaurant(self, cart_service, customer):
        cart_service.add_item(customer.user_id, "margherita", 2)
        cart_service.add_item(customer.user_id, "tiramisu", 1)

        cart = cart_service.clear_cart(customer.user_id)

        assert cart.lines == []
        assert cart.restaurant_id is None

    def test_clear_is_idempotent(self, cart_service, customer):
        cart_service.add_item(customer.user_id, "margherita", 2)

        first = cart_service.clear_cart(customer.user_id)
        first_state = (first.id, _snapshot(first))
        second = cart_service.clear_cart(customer.user_id)

        assert (second.id, _snapshot(second)) == first_state == (first.id, (None, []))

    def test_clear_without_existing_cart_is_not_found(self, cart_service, db, customer):
        with pytest.raises(NotFoundError, match="Cart not found"):
            cart_service.clear_cart(customer.user_id)

        assert db.query(Cart).count() == 0

    def test_clear_of_empty_existing_cart_succeeds(self, cart_service, customer):
        created = cart_service.get_or_create_cart(customer.user_id)

        cart = cart_service.clear_cart(customer.user_id)

        assert (cart.id, _snapshot(cart)) == (created.id, (None, []))


class TestTotals:
    def test_compute_total_uses_live_prices(self, cart_service, catalog, customer):
        cart_service.add_item(customer.user_id, "margherita", 2)
        cart = cart_service.add_item(customer.user_id, "garlic-bread", 1)

        assert cart_service.compute_total(cart) == Decimal("13.50")

        catalog.set_price("margherita", "6.00")

        assert cart_service.compute_total(cart) == Decimal("15.50")

    def test_empty_cart_total_is_zero(self, cart_service, customer):
        cart = cart_service.get_or_create_cart(customer.user_id)

        assert cart_service.compute_total(cart) == Decimal("0")

    def test_summary_flags_items_missing_from_catalog(self, cart_service, catalog, customer):
        cart_service.add_item(customer.user_id, "margherita", 2)
        cart = cart_service.add_item(customer.user_id, "tiramisu", 1)
        catalog.remove("tiramisu")

        summary = cart_service.summarize(cart)

        assert summary.total_items == 3
        assert summary.total_amount == Decimal("10.00")
        missing = next(item for item in summary.items if item.menu_item_id == "tiramisu")
        assert missing.available is False
        assert missing.unit_price is None
