"""Application tests for locating, creating and merging carts."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.cart import management
from storefront.cart.cart import Cart, CartItem
from storefront.cart.items import add_item, list_items
from storefront.domain import storefront
from storefront.exceptions import NotAuthenticatedError, NotAuthorizedError, PersistenceError
from storefront.identity.auth import AuthContext
from storefront.identity.owner import OwnerKey


def _cart_count():
    return current_domain.repository_for(Cart).query.all().total


class TestGetOrCreateCart:
    def test_creates_cart_on_first_use(self):
        cart_id = management.get_or_create_cart(OwnerKey.for_session("tok-1"))
        cart = current_domain.repository_for(Cart).get(cart_id)
        assert cart.session_id == "tok-1"
        assert cart.user_id is None

    def test_same_owner_same_cart(self):
        owner = OwnerKey.for_user("user-001")
        first = management.get_or_create_cart(owner)
        second = management.get_or_create_cart(owner)
        assert first == second
        assert _cart_count() == 1

    def test_distinct_owners_distinct_carts(self):
        guest = management.get_or_create_cart(OwnerKey.for_session("tok-1"))
        user = management.get_or_create_cart(OwnerKey.for_user("user-001"))
        assert guest != user
        assert _cart_count() == 2

    def test_concurrent_creation_returns_existing_cart(self, monkeypatch):
        owner = OwnerKey.for_session("tok-race")
        winner = Cart.create(owner)
        current_domain.repository_for(Cart).add(winner)

        real_find = management.find_cart
        calls = []

        def not_yet_visible(lookup_owner):
            calls.append(lookup_owner)
            if len(calls) == 1:
                return None
            return real_find(lookup_owner)

        monkeypatch.setattr(management, "find_cart", not_yet_visible)

        assert management.get_or_create_cart(owner) == winner.id
        assert len(calls) == 2
        assert _cart_count() == 1

    def test_rejected_insert_without_existing_cart_is_a_store_error(self, monkeypatch):
        monkeypatch.setattr(management, "find_cart", lambda owner: None)

        def reject(*args, **kwargs):
            raise ValidationError({"session_id": ["Cart with session_id 'tok-1' is already present."]})

        monkeypatch.setattr(storefront, "process", reject)

        with pytest.raises(PersistenceError):
            management.get_or_create_cart(OwnerKey.for_session("tok-1"))

    def test_cart_of_another_owner_is_refused(self):
        cart_id = management.get_or_create_cart(OwnerKey.for_session("tok-1"))
        with pytest.raises(NotAuthorizedError):
            list_items(OwnerKey.for_session("tok-2"), cart_id)

    def test_guest_token_does_not_reach_user_cart(self):
        user_cart = management.get_or_create_cart(OwnerKey.for_user("tok-1"))
        with pytest.raises(NotAuthorizedError):
            management.load_cart(OwnerKey.for_session("tok-1"), user_cart)


class TestMergeGuestCart:
    def test_guest_lines_move_to_user_cart(self, make_product):
        a = make_product(name="A", stock=10)
        b = make_product(name="B", stock=10)
        guest = OwnerKey.for_session("tok-1")
        guest_cart = management.get_or_create_cart(guest)
        add_item(guest, guest_cart, a.id, 2)
        user = OwnerKey.for_user("user-001")
        user_cart = management.get_or_create_cart(user)
        add_item(user, user_cart, a.id, 1)
        add_item(user, user_cart, b.id, 1)

        merged_id = management.merge_guest_cart(AuthContext(user_id="user-001"), "tok-1")

        assert merged_id == user_cart
        lines = {line.name: line.quantity for line in list_items(user, user_cart).lines}
        assert lines == {"A": 3, "B": 1}
        assert list_items(guest, guest_cart).is_empty

    def test_merge_clamps_to_stock(self, make_product):
        product = make_product(stock=4)
        guest = OwnerKey.for_session("tok-1")
        add_item(guest, management.get_or_create_cart(guest), product.id, 3)
        user = OwnerKey.for_user("user-001")
        user_cart = management.get_or_create_cart(user)
        add_item(user, user_cart, product.id, 3)

        management.merge_guest_cart(AuthContext(user_id="user-001"), "tok-1")

        assert list_items(user, user_cart).lines[0].quantity == 4

    def test_merge_without_guest_cart_creates_user_cart(self):
        cart_id = management.merge_guest_cart(AuthContext(user_id="user-001"), "tok-unknown")
        assert current_domain.repository_for(Cart).get(cart_id).user_id == "user-001"
        assert current_domain.repository_for(CartItem)._dao.query.all().total == 0

    @pytest.mark.parametrize("token", [None, "", "  "])
    def test_merge_without_token(self, token):
        cart_id = management.merge_guest_cart(AuthContext(user_id="user-001"), token)
        assert current_domain.repository_for(Cart).get(cart_id).user_id == "user-001"

    def test_merge_requires_sign_in(self):
        with pytest.raises(NotAuthenticatedError):
            management.merge_guest_cart(AuthContext.anonymous(), "tok-1")
