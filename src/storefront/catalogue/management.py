"""Catalogue management — admin commands and handlers for products and categories."""

import json
from contextlib import contextmanager

import structlog
from protean import handle
from protean.exceptions import TransactionError, ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from storefront.cart.cart import Cart, CartItem
from storefront.catalogue.browsing import get_category, get_product
from storefront.catalogue.category import Category
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.exceptions import ReferentialIntegrityError
from storefront.identity.auth import AuthContext, require_admin
from storefront.order.order import Order, OrderItem

logger = structlog.get_logger(__name__)


# -------------------------------------------------------------------
# Categories
# -------------------------------------------------------------------
@storefront.command(part_of="Category")
class CreateCategory:
    name: String(max_length=255)
    description: Text()
    image_url: String(max_length=500, sanitize=False)


@storefront.command(part_of="Category")
class UpdateCategory:
    category_id: Identifier(required=True)
    name: String(max_length=255)
    description: Text()
    image_url: String(max_length=500, sanitize=False)


@storefront.command(part_of="Category")
class DeleteCategory:
    category_id: Identifier(required=True)


@storefront.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        category = Category.create(
            name=command.name,
            description=command.description,
            image_url=command.image_url,
        )
        current_domain.repository_for(Category).add(category)
        logger.info("Category created", category_id=category.id, name=category.name)
        return str(category.id)

    @handle(UpdateCategory)
    def update_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)
        category.update_details(
            name=command.name,
            description=command.description,
            image_url=command.image_url,
        )
        repo.add(category)

    @handle(DeleteCategory)
    def delete_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)

        # Products stay in the catalogue, uncategorised
        product_repo = current_domain.repository_for(Product)
        products = product_repo.in_category(command.category_id)
        for product in products:
            product.detach_from_category()
            product_repo.add(product)

        repo._dao.delete(category)
        logger.info("Category deleted", category_id=command.category_id, uncategorised_products=len(products))
        return len(products)


def create_category(auth: AuthContext, name, description=None, image_url=None) -> str:
    require_admin(auth)
    return current_domain.process(
        CreateCategory(name=name, description=description, image_url=image_url or None),
        asynchronous=False,
    )


def update_category(auth: AuthContext, category_id: str, name=None, description=None, image_url=None) -> Category:
    require_admin(auth)
    get_category(category_id)
    current_domain.process(
        UpdateCategory(category_id=category_id, name=name, description=description, image_url=image_url),
        asynchronous=False,
    )
    return get_category(category_id)


def delete_category(auth: AuthContext, category_id: str) -> int:
    """Delete a category. Returns how many products were left uncategorised."""
    require_admin(auth)
    get_category(category_id)
    with _rejected_deletes("category", category_id):
        return current_domain.process(DeleteCategory(category_id=category_id), asynchronous=False)


# -------------------------------------------------------------------
# Products
# -------------------------------------------------------------------
@storefront.command(part_of="Product")
class CreateProduct:
    name: String(max_length=255)
    description: Text()
    price: String(max_length=50)
    stock: String(max_length=50)
    image_url: String(max_length=500, sanitize=False)
    category_id: Identifier()
    featured: Boolean(default=False)


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id: Identifier(required=True)
    changes: Text(required=True, sanitize=False)  # JSON object of edited fields


@storefront.command(part_of="Product")
class DeleteProduct:
    product_id: Identifier(required=True)


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        _ensure_category_exists(command.category_id)
        product = Product.create(
            name=command.name,
            price=command.price,
            description=command.description,
            stock=command.stock,
            image_url=command.image_url,
            category_id=command.category_id,
            featured=command.featured,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product created", product_id=product.id, name=product.name, price=str(product.price))
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        changes = json.loads(command.changes)
        if "category_id" in changes:
            _ensure_category_exists(changes["category_id"])

        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update_details(**changes)
        repo.add(product)
        logger.info("Product updated", product_id=command.product_id, fields=sorted(changes))

    @handle(DeleteProduct)
    def delete_product(self, command):
        product_id = command.product_id
        repo = current_domain.repository_for(Product)
        product = repo.get(product_id)

        # Cart lines go with the product
        cart_repo = current_domain.repository_for(Cart)
        cart_items = current_domain.repository_for(CartItem)._dao.query.filter(product_id=product_id).all().items
        for cart_id in {item.cart_id for item in cart_items}:
            cart = cart_repo.get(cart_id)
            cart.drop_product(product_id)
            cart_repo.add(cart)

        # Order lines keep their snapshot
        order_repo = current_domain.repository_for(Order)
        order_items = current_domain.repository_for(OrderItem)._dao.query.filter(product_id=product_id).all().items
        for order_id in {item.order_id for item in order_items}:
            order = order_repo.get(order_id)
            order.forget_product(product_id)
            order_repo.add(order)

        repo._dao.delete(product)
        logger.info("Product deleted", product_id=product_id, carts_affected=len(cart_items))


def create_product(
    auth: AuthContext,
    name,
    price,
    description=None,
    stock=0,
    image_url=None,
    category_id=None,
    featured=False,
) -> str:
    require_admin(auth)
    return current_domain.process(
        CreateProduct(
            name=name,
            description=description,
            price=None if price is None else str(price),
            stock=None if stock is None else str(stock),
            image_url=image_url or None,
            category_id=category_id or None,
            featured=bool(featured),
        ),
        asynchronous=False,
    )


def update_product(auth: AuthContext, product_id: str, **changes) -> Product:
    """Partial update: only the keys present in ``changes`` are touched."""
    require_admin(auth)
    get_product(product_id)
    current_domain.process(
        UpdateProduct(product_id=product_id, changes=json.dumps(changes, default=str)),
        asynchronous=False,
    )
    return get_product(product_id)


def delete_product(auth: AuthContext, product_id: str) -> None:
    require_admin(auth)
    get_product(product_id)
    with _rejected_deletes("product", product_id):
        current_domain.process(DeleteProduct(product_id=product_id), asynchronous=False)


def list_admin_products(auth: AuthContext) -> list[Product]:
    require_admin(auth)
    return current_domain.repository_for(Product).newest_first()


def _ensure_category_exists(category_id) -> None:
    if category_id and current_domain.repository_for(Category).get_or_none(category_id) is None:
        raise ValidationError({"category_id": [f"Unknown category: {category_id}"]})


@contextmanager
def _rejected_deletes(kind: str, record_id: str):
    """Report a delete the store refuses on a foreign key as ``ReferentialIntegrityError``."""
    try:
        yield
    except TransactionError as exc:
        if not isinstance(exc.__cause__, IntegrityError):
            raise
        logger.warning("Delete rejected by the store", kind=kind, record_id=record_id)
        raise ReferentialIntegrityError() from exc
