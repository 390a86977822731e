"""Application tests for admin catalogue management."""

from decimal import Decimal

import pytest
from protean import UnitOfWork, current_domain
from protean.exceptions import ObjectNotFoundError, TransactionError, ValidationError
from sqlalchemy.exc import IntegrityError

from storefront.cart.cart import CartItem
from storefront.cart.items import add_item
from storefront.cart.management import get_or_create_cart
from storefront.catalogue import management
from storefront.catalogue.category import Category
from storefront.catalogue.product import Product
from storefront.exceptions import NotAuthenticatedError, NotAuthorizedError, ReferentialIntegrityError
from storefront.identity.auth import AuthContext
from storefront.identity.owner import OwnerKey
from storefront.order.order import Order


def _category(category_id):
    return current_domain.repository_for(Category).get_or_none(category_id)


def _product(product_id):
    return current_domain.repository_for(Product).get_or_none(product_id)


class TestCategoryManagement:
    def test_create_category(self, admin_auth):
        category_id = management.create_category(admin_auth, name="Hogar", description="Artículos")
        category = _category(category_id)
        assert category.name == "Hogar"
        assert category.description == "Artículos"

    def test_update_category(self, admin_auth, make_category):
        category = make_category(name="Ropa", description="Moda y accesorios")
        updated = management.update_category(admin_auth, category.id, name="Moda")
        assert updated.name == "Moda"
        assert _category(category.id).description == "Moda y accesorios"

    def test_delete_category_leaves_products_uncategorised(self, admin_auth, make_category, make_product):
        category_id = make_category(name="Deportes").id
        first = make_product(name="Bicicleta", category_id=category_id).id
        second = make_product(name="Mancuernas", category_id=category_id).id
        other = make_product(name="Novela").id

        detached = management.delete_category(admin_auth, category_id)

        assert detached == 2
        assert _category(category_id) is None
        assert _product(first).category_id is None
        assert _product(second).category_id is None
        assert _product(other) is not None

    def test_delete_missing_category(self, admin_auth):
        with pytest.raises(ObjectNotFoundError):
            management.delete_category(admin_auth, "missing")

    def test_blank_name_rejected(self, admin_auth):
        with pytest.raises(ValidationError):
            management.create_category(admin_auth, name="")
        assert current_domain.repository_for(Category).query.all().total == 0


class TestProductManagement:
    def test_create_product(self, admin_auth, make_category):
        category = make_category()
        product_id = management.create_product(
            admin_auth, name="Tablet Pro 12", price="799.99", stock=40, category_id=category.id
        )
        product = _product(product_id)
        assert product.price == Decimal("799.99")
        assert product.stock == 40
        assert product.category_id == category.id

    def test_create_with_unknown_category(self, admin_auth):
        with pytest.raises(ValidationError) as exc:
            management.create_product(admin_auth, name="X", price="1.00", category_id="missing")
        assert "category_id" in exc.value.messages
        assert current_domain.repository_for(Product).query.all().total == 0

    def test_partial_update(self, admin_auth, make_product):
        product = make_product(name="Lámpara", price="89.99", stock=45)
        updated = management.update_product(admin_auth, product.id, stock=44)
        assert updated.stock == 44
        assert updated.price == Decimal("89.99")
        assert updated.name == "Lámpara"

    def test_update_price_from_decimal(self, admin_auth, make_product):
        product = make_product(price="10.00")
        assert management.update_product(admin_auth, product.id, price=Decimal("12.5")).price == Decimal("12.50")

    def test_invalid_update_changes_nothing(self, admin_auth, make_product):
        product = make_product(stock=5)
        with pytest.raises(ValidationError):
            management.update_product(admin_auth, product.id, stock=-2)
        assert _product(product.id).stock == 5

    def test_update_missing_product(self, admin_auth):
        with pytest.raises(ObjectNotFoundError):
            management.update_product(admin_auth, "missing", stock=1)

    def test_delete_product_removes_cart_lines_and_keeps_order_snapshot(self, admin_auth, make_product):
        product = make_product(name="Sofá Confort", price="699.99", stock=15)
        product_id = product.id
        owner = OwnerKey.for_session("tok-1")
        add_item(owner, get_or_create_cart(owner), product_id, 1)
        order = Order.place(
            user_id="user-001",
            lines=[(product, 1)],
            full_name="Ana",
            address="Calle 1",
            city="Salto",
            payment_method="cash",
        )
        current_domain.repository_for(Order).add(order)

        management.delete_product(admin_auth, product_id)

        assert _product(product_id) is None
        assert current_domain.repository_for(CartItem)._dao.query.all().total == 0
        [item] = current_domain.repository_for(Order).get(order.id).items
        assert item.product_id is None
        assert item.product_name == "Sofá Confort"
        assert item.product_price == Decimal("699.99")

    def test_admin_listing_newest_first(self, admin_auth, make_product):
        make_product(name="Primero")
        make_product(name="Segundo")
        assert [p.name for p in management.list_admin_products(admin_auth)] == ["Segundo", "Primero"]

    def test_delete_refused_by_foreign_key(self, admin_auth, make_product, monkeypatch):
        product = make_product()

        def refused(self):
            try:
                raise IntegrityError("DELETE", {}, Exception("FOREIGN KEY constraint failed"))
            except IntegrityError as exc:
                raise TransactionError("commit failed") from exc

        monkeypatch.setattr(UnitOfWork, "commit", refused)
        with pytest.raises(ReferentialIntegrityError):
            management.delete_product(admin_auth, product.id)
        monkeypatch.undo()

        assert _product(product.id) is not None

    def test_other_commit_failures_pass_through(self, admin_auth, make_category, monkeypatch):
        category = make_category()

        def lost_connection(self):
            raise TransactionError("connection lost")

        monkeypatch.setattr(UnitOfWork, "commit", lost_connection)
        with pytest.raises(TransactionError):
            management.delete_category(admin_auth, category.id)
        monkeypatch.undo()

        assert _category(category.id) is not None


class TestAuthorization:
    def test_customer_cannot_manage_catalogue(self, customer_auth):
        with pytest.raises(NotAuthorizedError):
            management.create_product(customer_auth, name="X", price="1.00")
        with pytest.raises(NotAuthorizedError):
            management.create_category(customer_auth, name="X")

    def test_anonymous_cannot_manage_catalogue(self, make_product):
        product = make_product()
        with pytest.raises(NotAuthenticatedError):
            management.delete_product(AuthContext.anonymous(), product.id)
        assert _product(product.id) is not None
