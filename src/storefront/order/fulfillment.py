"""Admin fulfillment — completing orders and moving them through their states.

Completing an order walks its items and lowers each product's stock by the
ordered quantity, never below zero. Every item is processed as its own
command and the status is set last, so a failure partway leaves the earlier
decrements in place and the order still open. Concurrent writes to the same
product are caught by its version and retried.
"""

import structlog
from protean import handle
from protean.exceptions import InvalidStateError, ObjectNotFoundError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.identity.auth import AuthContext, require_admin
from storefront.order.order import Order, OrderStatus, parse_status

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class DecrementStock:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class MarkOrderDelivered:
    order_id = Identifier(required=True)
    completed_by = String(required=True, max_length=255)


@storefront.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20, choices=OrderStatus)
    changed_by = String(required=True, max_length=255)


@storefront.command_handler(part_of=Product)
class StockHandler:
    @handle(DecrementStock)
    def decrement_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get_or_none(command.product_id)
        if product is None:
            logger.warning("Skipping stock update for deleted product", order_id=command.order_id)
            return None

        previous = product.stock
        remaining = product.decrement_stock(command.quantity)
        repo.add(product)
        logger.info(
            "Stock decremented",
            order_id=command.order_id,
            product_id=command.product_id,
            previous_stock=previous,
            new_stock=remaining,
        )
        return remaining


@storefront.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(MarkOrderDelivered)
    def mark_order_delivered(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_delivered()
        repo.add(order)
        logger.info("Order completed", order_id=command.order_id, completed_by=command.completed_by)

    @handle(ChangeOrderStatus)
    def change_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        order.transition_to(command.status)
        repo.add(order)
        logger.info(
            "Order status changed",
            order_id=command.order_id,
            previous=previous,
            status=order.status,
            changed_by=command.changed_by,
        )


def _get_order(order_id: str) -> Order:
    order = current_domain.repository_for(Order).get_or_none(order_id)
    if order is None:
        raise ObjectNotFoundError(f"Order {order_id} not found")
    return order


def complete_order(auth: AuthContext, order_id: str) -> Order:
    admin_id = require_admin(auth)
    order = _get_order(order_id)
    if order.is_terminal:
        raise InvalidStateError(f"Order is already {order.status}")

    for item in order.lines:
        if item.product_id is None:
            logger.warning("Skipping stock update for deleted product", order_id=order_id, product=item.product_name)
            continue
        current_domain.process(
            DecrementStock(product_id=item.product_id, quantity=item.quantity, order_id=order_id),
            asynchronous=False,
        )

    current_domain.process(MarkOrderDelivered(order_id=order_id, completed_by=admin_id), asynchronous=False)
    return _get_order(order_id)


def change_order_status(auth: AuthContext, order_id: str, status) -> Order:
    admin_id = require_admin(auth)
    _get_order(order_id)
    current_domain.process(
        ChangeOrderStatus(order_id=order_id, status=parse_status(status).value, changed_by=admin_id),
        asynchronous=False,
    )
    return _get_order(order_id)
