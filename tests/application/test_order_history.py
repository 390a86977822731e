"""Application tests for order history views."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

from storefront.exceptions import NotAuthenticatedError, NotAuthorizedError
from storefront.identity.auth import AuthContext
from storefront.order import history
from storefront.order.order import Order


@pytest.fixture()
def orders(make_product):
    product = make_product(name="A", price="10.00", stock=10)
    base = datetime(2026, 3, 1, tzinfo=UTC)
    repo = current_domain.repository_for(Order)
    placed = {}
    for offset, (key, user_id) in enumerate([("old", "user-001"), ("new", "user-001"), ("other", "user-002")]):
        order = Order.place(
            user_id=user_id,
            lines=[(product, offset + 1)],
            full_name="Cliente",
            address="Calle 1",
            city="Salto",
            payment_method="card",
        )
        order.created_at = base + timedelta(days=offset)
        repo.add(order)
        placed[key] = order.id
    return placed


class TestCustomerHistory:
    def test_own_orders_newest_first(self, customer_auth, orders):
        assert [o.id for o in history.list_orders(customer_auth)] == [orders["new"], orders["old"]]

    def test_items_included(self, customer_auth, orders):
        newest = history.list_orders(customer_auth)[0]
        assert newest.lines[0].quantity == 2
        assert newest.payment_label == "Tarjeta de crédito/débito"

    def test_no_orders_yet(self):
        assert history.list_orders(AuthContext(user_id="user-009")) == []

    def test_requires_sign_in(self, orders):
        with pytest.raises(NotAuthenticatedError):
            history.list_orders(AuthContext.anonymous())

    def test_get_own_order(self, customer_auth, orders):
        assert history.get_order(customer_auth, orders["old"]).id == orders["old"]

    def test_cannot_read_someone_elses_order(self, customer_auth, orders):
        with pytest.raises(NotAuthorizedError):
            history.get_order(customer_auth, orders["other"])

    def test_unknown_order(self, customer_auth):
        with pytest.raises(ObjectNotFoundError):
            history.get_order(customer_auth, "missing")


class TestAdminHistory:
    def test_admin_sees_all_orders(self, admin_auth, orders):
        assert [o.id for o in history.list_all_orders(admin_auth)] == [
            orders["other"],
            orders["new"],
            orders["old"],
        ]

    def test_admin_listing_is_limited(self, admin_auth, orders):
        assert [o.id for o in history.list_all_orders(admin_auth, limit=2)] == [orders["other"], orders["new"]]

    def test_admin_can_read_any_order(self, admin_auth, orders):
        assert history.get_order(admin_auth, orders["other"]).user_id == "user-002"

    def test_customer_cannot_list_all(self, customer_auth, orders):
        with pytest.raises(NotAuthorizedError):
            history.list_all_orders(customer_auth)
