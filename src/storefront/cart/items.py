"""Cart item management — commands, handler and the priced cart view.

Every mutation commits before anything is returned, and the returned view
is read back from the store.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.cart.management import load_cart
from storefront.catalogue.browsing import get_product
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.identity.owner import OwnerKey
from storefront.shared.money import line_total, sum_money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartLine:
    item_id: str
    product_id: str
    name: str
    price: Decimal
    stock: int
    image_url: str | None
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return line_total(self.price, self.quantity)


@dataclass(frozen=True)
class CartSummary:
    cart_id: str
    lines: tuple[CartLine, ...]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total(self) -> Decimal:
        return sum_money(line.line_total for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


@storefront.command(part_of="Cart")
class AddToCart:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.command(part_of="Cart")
class UpdateCartQuantity:
    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        product = get_product(command.product_id)
        item = cart.add_item(product, command.quantity)
        repo.add(cart)
        logger.info("Cart item added", cart_id=command.cart_id, product_id=command.product_id, quantity=item.quantity)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        item = cart.find_item(command.item_id)
        product = current_domain.repository_for(Product).get_or_none(item.product_id)
        cart.update_item_quantity(command.item_id, command.new_quantity, product=product)
        repo.add(cart)
        logger.info(
            "Cart quantity updated",
            cart_id=command.cart_id,
            item_id=command.item_id,
            quantity=max(command.new_quantity, 0),
        )

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.remove_item(command.item_id)
        repo.add(cart)
        logger.info("Cart item removed", cart_id=command.cart_id, item_id=command.item_id)


def summarize(cart: Cart) -> CartSummary:
    """Cart lines joined with live product name, price, stock and image."""
    product_repo = current_domain.repository_for(Product)
    lines = []
    for item in cart.lines:
        product = product_repo.get_or_none(item.product_id)
        if product is None:
            continue
        lines.append(
            CartLine(
                item_id=str(item.id),
                product_id=str(product.id),
                name=product.name,
                price=product.price,
                stock=product.stock,
                image_url=product.image_url,
                quantity=item.quantity,
            )
        )
    return CartSummary(cart_id=str(cart.id), lines=tuple(lines))


def list_items(owner: OwnerKey, cart_id: str) -> CartSummary:
    return summarize(load_cart(owner, cart_id))


def add_item(owner: OwnerKey, cart_id: str, product_id: str, quantity: int = 1) -> CartSummary:
    load_cart(owner, cart_id)
    get_product(product_id)
    current_domain.process(
        AddToCart(cart_id=cart_id, product_id=product_id, quantity=quantity),
        asynchronous=False,
    )
    return list_items(owner, cart_id)


def update_quantity(owner: OwnerKey, cart_id: str, item_id: str, new_quantity: int) -> CartSummary:
    load_cart(owner, cart_id).find_item(item_id)
    current_domain.process(
        UpdateCartQuantity(cart_id=cart_id, item_id=item_id, new_quantity=new_quantity),
        asynchronous=False,
    )
    return list_items(owner, cart_id)


def remove_item(owner: OwnerKey, cart_id: str, item_id: str) -> CartSummary:
    load_cart(owner, cart_id).find_item(item_id)
    current_domain.process(RemoveFromCart(cart_id=cart_id, item_id=item_id), asynchronous=False)
    return list_items(owner, cart_id)
