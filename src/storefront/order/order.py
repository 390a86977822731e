"""Order aggregate — an immutable record of a checkout.

An order and its items are written once, in a single unit of work, from the
cart's live prices. Afterwards only ``status`` changes (and a line's
``product_id`` is cleared when its product is deleted).

State machine:
    PENDING → PROCESSING → SHIPPED
    PENDING | PROCESSING → CANCELLED
    PENDING | PROCESSING | SHIPPED → DELIVERED (fulfillment only)
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import DateTime, Decimal, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.shared.money import ZERO, line_total, sum_money, to_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    CARD = "card"
    CASH = "cash"

    @property
    def label(self) -> str:
        return _PAYMENT_LABELS[self]

    @classmethod
    def parse(cls, value) -> "PaymentMethod":
        if isinstance(value, cls):
            return value
        normalized = _PAYMENT_ALIASES.get(str(value or "").strip().lower(), str(value or "").strip().lower())
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError({"payment_method": [f"Unknown payment method: {value!r}"]})


_PAYMENT_LABELS = {
    PaymentMethod.CARD: "Tarjeta de crédito/débito",
    PaymentMethod.CASH: "Pago contra entrega",
}

_PAYMENT_ALIASES = {"cash_on_delivery": "cash"}

# Admin transitions; DELIVERED is set only by fulfillment
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: set(),
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order", limit=-1)
class OrderItem:
    line_number = Integer(required=True, min_value=1)
    # Kept after the product is deleted; the snapshot fields carry the details
    product_id = Identifier()
    product_name = String(required=True, max_length=255)
    product_price = Decimal(required=True, min_value=0, precision=10, scale=2)
    quantity = Integer(required=True, min_value=1)
    subtotal = Decimal(required=True, min_value=0, precision=10, scale=2)

    @invariant.post
    def subtotal_matches_price_and_quantity(self):
        self.check_subtotal()

    @classmethod
    def snapshot(cls, product, quantity: int, line_number: int = 1):
        """Copy the product's current name and price onto a new line."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        price = to_money(product.price)
        return cls(
            line_number=line_number,
            product_id=product.id,
            product_name=product.name,
            product_price=price,
            quantity=quantity,
            subtotal=line_total(price, quantity),
        )

    def check_subtotal(self) -> None:
        if to_money(self.subtotal, "subtotal") != line_total(self.product_price, self.quantity):
            raise ValidationError({"subtotal": ["Subtotal must equal price times quantity"]})


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@storefront.aggregate(limit=-1)
class Order:
    user_id = Identifier(required=True)
    status = String(max_length=20, choices=OrderStatus, default=OrderStatus.PENDING.value)
    total = Decimal(required=True, min_value=0, precision=10, scale=2)
    full_name = String(required=True, max_length=255)
    shipping_address = Text(required=True)
    shipping_city = String(required=True, max_length=100)
    phone = String(max_length=50)
    payment_method = String(required=True, max_length=20, choices=PaymentMethod)
    notes = Text()
    items = HasMany(OrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_is_sum_of_subtotals(self):
        if to_money(self.total, "total") != sum_money(item.subtotal for item in self.items):
            raise ValidationError({"total": ["Order total must equal the sum of its item subtotals"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, lines, full_name, address, city, payment_method, phone=None, notes=None):
        """Build a pending order from ``(product, quantity)`` pairs.

        The total is the sum of the line subtotals, each taken from the
        product's price at this moment.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        items = [
            OrderItem.snapshot(product, quantity, line_number=position)
            for position, (product, quantity) in enumerate(lines, start=1)
        ]

        now = datetime.now(UTC)
        order = cls(
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            total=ZERO,
            full_name=full_name,
            shipping_address=address,
            shipping_city=city,
            phone=phone or None,
            payment_method=PaymentMethod.parse(payment_method).value,
            notes=notes or None,
            created_at=now,
            updated_at=now,
        )
        with atomic_change(order):
            order.add_items(items)
            order.total = sum_money(item.subtotal for item in items)
        return order

    @property
    def lines(self) -> list[OrderItem]:
        return sorted(self.items, key=lambda item: item.line_number)

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in _TERMINAL_STATES

    @property
    def payment_label(self) -> str:
        return PaymentMethod(self.payment_method).label

    def transition_to(self, new_status) -> None:
        current = OrderStatus(self.status)
        target = parse_status(new_status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidStateError(f"Cannot move order from {current.value} to {target.value}")
        self.status = target.value
        self.updated_at = datetime.now(UTC)

    def mark_delivered(self) -> None:
        if self.is_terminal:
            raise InvalidStateError(f"Order is already {self.status}")
        self.status = OrderStatus.DELIVERED.value
        self.updated_at = datetime.now(UTC)

    def forget_product(self, product_id) -> None:
        """Unlink lines from a deleted product; the snapshot stays."""
        for item in self.items:
            if item.product_id is not None and str(item.product_id) == str(product_id):
                item.product_id = None


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status: {value!r}"]})
