"""Application tests for cart item commands against the store."""

from decimal import Decimal

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.cart.cart import Cart, CartItem
from storefront.cart.items import add_item, list_items, remove_item, summarize, update_quantity
from storefront.cart.management import get_or_create_cart
from storefront.exceptions import NotAuthorizedError
from storefront.identity.auth import AuthContext
from storefront.identity.owner import CART_SESSION_KEY, MemoryTokenStore, OwnerKey, resolve_owner


@pytest.fixture()
def guest():
    store = MemoryTokenStore({CART_SESSION_KEY: "tok-1"})
    return resolve_owner(AuthContext.anonymous(), store)


@pytest.fixture()
def cart_id(guest):
    return get_or_create_cart(guest)


def _rows(cart_id):
    return current_domain.repository_for(CartItem)._dao.query.filter(cart_id=cart_id).all().total


class TestAddItem:
    def test_adding_twice_merges_into_one_line(self, guest, cart_id, make_product):
        product = make_product(name="A", price="10.00", stock=10)

        add_item(guest, cart_id, product.id, 1)
        summary = add_item(guest, cart_id, product.id, 2)

        assert len(summary.lines) == 1
        assert summary.lines[0].quantity == 3
        assert _rows(cart_id) == 1

    def test_listing_prices_lines_live(self, guest, cart_id, make_product):
        a = make_product(name="A", price="10.00")
        b = make_product(name="B", price="5.50")
        add_item(guest, cart_id, a.id, 2)
        add_item(guest, cart_id, b.id, 1)

        summary = list_items(guest, cart_id)

        assert [(line.name, line.price, line.quantity, line.line_total) for line in summary.lines] == [
            ("A", Decimal("10.00"), 2, Decimal("20.00")),
            ("B", Decimal("5.50"), 1, Decimal("5.50")),
        ]
        assert summary.total == Decimal("25.50")
        assert summary.item_count == 3

    def test_summary_follows_price_changes(self, guest, cart_id, make_product):
        product = make_product(price="10.00")
        add_item(guest, cart_id, product.id, 2)

        repo = current_domain.repository_for(type(product))
        product.update_details(price="12.00")
        repo.add(product)

        assert list_items(guest, cart_id).total == Decimal("24.00")

    def test_rejected_add_changes_nothing(self, guest, cart_id, make_product):
        product = make_product(stock=2)
        add_item(guest, cart_id, product.id, 2)
        with pytest.raises(ValidationError):
            add_item(guest, cart_id, product.id, 1)
        assert list_items(guest, cart_id).lines[0].quantity == 2

    def test_unknown_product(self, guest, cart_id):
        with pytest.raises(ObjectNotFoundError):
            add_item(guest, cart_id, "missing", 1)

    def test_other_owner_cannot_add(self, cart_id, make_product):
        product = make_product()
        with pytest.raises(NotAuthorizedError):
            add_item(OwnerKey.for_session("tok-2"), cart_id, product.id, 1)
        assert _rows(cart_id) == 0


class TestUpdateQuantity:
    def test_sets_exact_quantity_and_reads_back(self, guest, cart_id, make_product):
        product = make_product(stock=10)
        item_id = add_item(guest, cart_id, product.id, 1).lines[0].item_id

        summary = update_quantity(guest, cart_id, item_id, 7)

        assert summary.lines[0].quantity == 7
        cart = current_domain.repository_for(Cart).get(cart_id)
        assert cart.find_item(item_id).quantity == 7

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_zero_or_less_is_the_same_as_remove(self, guest, cart_id, make_product, quantity):
        product = make_product()
        item_id = add_item(guest, cart_id, product.id, 2).lines[0].item_id

        summary = update_quantity(guest, cart_id, item_id, quantity)

        assert summary.is_empty
        assert _rows(cart_id) == 0

    def test_above_stock_rejected(self, guest, cart_id, make_product):
        product = make_product(stock=3)
        item_id = add_item(guest, cart_id, product.id, 1).lines[0].item_id
        with pytest.raises(ValidationError):
            update_quantity(guest, cart_id, item_id, 4)
        assert list_items(guest, cart_id).lines[0].quantity == 1

    def test_unknown_item(self, guest, cart_id):
        with pytest.raises(ObjectNotFoundError):
            update_quantity(guest, cart_id, "missing", 1)


class TestRemoveItem:
    def test_remove(self, guest, cart_id, make_product):
        a = make_product(name="A")
        b = make_product(name="B")
        add_item(guest, cart_id, a.id, 1)
        item_id = add_item(guest, cart_id, b.id, 1).lines[1].item_id

        summary = remove_item(guest, cart_id, item_id)

        assert [line.name for line in summary.lines] == ["A"]
        assert _rows(cart_id) == 1

    def test_remove_unknown_item(self, guest, cart_id):
        with pytest.raises(ObjectNotFoundError):
            remove_item(guest, cart_id, "missing")


class TestSummarize:
    def test_lines_for_missing_products_are_skipped(self, guest, cart_id, make_product):
        a = make_product(name="A")
        b = make_product(name="B")
        add_item(guest, cart_id, a.id, 1)
        add_item(guest, cart_id, b.id, 1)

        repo = current_domain.repository_for(type(b))
        repo._dao.delete(b)

        summary = summarize(current_domain.repository_for(Cart).get(cart_id))
        assert [line.name for line in summary.lines] == ["A"]
