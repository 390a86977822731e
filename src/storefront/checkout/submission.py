"""Order submission — turning a confirmed checkout into an order.

The order, its item snapshots, emptying the cart and the move to the success
step are one unit of work. Any store failure rolls all of it back and
surfaces as ``CheckoutFailedError``; the cart and the checkout stay at
confirmation so the customer can retry.
"""

import structlog
from protean import handle
from protean.exceptions import DatabaseError, ExpectedVersionError, InvalidStateError, TransactionError
from protean.fields import Identifier
from protean.utils.globals import current_domain
from sqlalchemy.exc import SQLAlchemyError

from storefront.cart.cart import Cart
from storefront.catalogue.product import Product
from storefront.checkout.checkout import CheckoutSession, CheckoutStep
from storefront.checkout.steps import load_checkout
from storefront.domain import storefront
from storefront.exceptions import CheckoutFailedError
from storefront.identity.auth import AuthContext
from storefront.order.order import Order

logger = structlog.get_logger(__name__)

_STORE_FAILURES = (TransactionError, ExpectedVersionError, DatabaseError, SQLAlchemyError)


@storefront.command(part_of="CheckoutSession")
class PlaceOrder:
    checkout_id = Identifier(required=True)


@storefront.command_handler(part_of=CheckoutSession)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        checkout_repo = current_domain.repository_for(CheckoutSession)
        checkout = checkout_repo.get(command.checkout_id)
        checkout.require_step(CheckoutStep.CONFIRMATION, "place the order")

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.get(checkout.cart_id)

        product_repo = current_domain.repository_for(Product)
        lines = []
        for item in cart.lines:
            product = product_repo.get_or_none(item.product_id)
            if product is None:
                logger.error("Cart line points at a missing product", checkout_id=command.checkout_id)
                raise CheckoutFailedError()
            lines.append((product, item.quantity))

        order = Order.place(
            user_id=checkout.user_id,
            lines=lines,
            full_name=checkout.full_name,
            address=checkout.address,
            city=checkout.city,
            phone=checkout.phone,
            payment_method=checkout.payment_method,
            notes=checkout.notes,
        )
        current_domain.repository_for(Order).add(order)

        cart.clear()
        cart_repo.add(cart)

        checkout.mark_succeeded(order.id)
        checkout_repo.add(checkout)
        return str(order.id)


def submit_order(auth: AuthContext, checkout_id: str) -> Order:
    checkout = load_checkout(auth, checkout_id).checkout
    if checkout.current_step != CheckoutStep.CONFIRMATION:
        raise InvalidStateError(f"Cannot place the order while at the {checkout.step} step")

    try:
        order_id = current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)
    except _STORE_FAILURES as exc:
        logger.error("Checkout failed", checkout_id=checkout_id, error=str(exc))
        raise CheckoutFailedError() from exc

    order = current_domain.repository_for(Order).get(order_id)
    logger.info(
        "Order placed",
        order_id=order.id,
        user_id=order.user_id,
        total=str(order.total),
        items=len(order.items),
        payment_method=order.payment_method,
    )
    return order
