"""Checkout session aggregate — the persisted state of one pass through checkout.

Steps run shipping → payment → confirmation → success. ``go_back`` moves one
step back from payment or confirmation; no other jumps are possible. Input
is validated in full before any field is assigned, so a rejected submission
leaves the session exactly as it was.

Card details are checked for presence only; the session keeps the holder
name and the last four digits, never the full number or the CVV.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import DateTime, Identifier, String, Text

from storefront.domain import storefront
from storefront.order.order import PaymentMethod


class CheckoutStep(Enum):
    SHIPPING = "shipping"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"
    SUCCESS = "success"


_PREVIOUS_STEP = {
    CheckoutStep.PAYMENT: CheckoutStep.SHIPPING,
    CheckoutStep.CONFIRMATION: CheckoutStep.PAYMENT,
}

_REQUIRED = ["This field is required"]


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def _clean(value) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def check_payment(method=None, card_number=None, card_expiry=None, card_cvv=None, card_holder=None):
    """Validate payment input and reduce it to what may be stored.

    Returns ``(method, card_holder, card_last4)``; the card fields are
    ``None`` for cash on delivery.
    """
    payment = PaymentMethod.parse(method)
    if payment != PaymentMethod.CARD:
        return payment, None, None

    errors = {
        field: list(_REQUIRED)
        for field, value in (
            ("card_number", card_number),
            ("card_expiry", card_expiry),
            ("card_cvv", card_cvv),
            ("card_holder", card_holder),
        )
        if _blank(value)
    }
    if errors:
        raise ValidationError(errors)

    digits = "".join(ch for ch in str(card_number) if ch.isdigit())
    if len(digits) < 4:
        raise ValidationError({"card_number": ["Card number is too short"]})
    return payment, _clean(card_holder), digits[-4:]


@storefront.aggregate(limit=-1)
class CheckoutSession:
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    step = String(max_length=20, choices=CheckoutStep, default=CheckoutStep.SHIPPING.value)

    full_name = String(max_length=255)
    address = Text()
    city = String(max_length=100)
    phone = String(max_length=50)
    notes = Text()

    payment_method = String(max_length=20)
    card_holder = String(max_length=255)
    card_last4 = String(max_length=4)

    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def start(cls, user_id, cart_id, profile=None):
        """Open a session at the shipping step, prefilled from ``profile`` when given."""
        now = datetime.now(UTC)
        checkout = cls(
            user_id=user_id,
            cart_id=cart_id,
            step=CheckoutStep.SHIPPING.value,
            created_at=now,
            updated_at=now,
        )
        if profile is not None:
            checkout.full_name = profile.full_name
            checkout.address = profile.address
            checkout.city = profile.city
            checkout.phone = profile.phone
        return checkout

    @property
    def current_step(self) -> CheckoutStep:
        return CheckoutStep(self.step)

    @property
    def is_complete(self) -> bool:
        return self.current_step == CheckoutStep.SUCCESS

    def require_step(self, expected: CheckoutStep, action: str) -> None:
        if self.current_step != expected:
            raise InvalidStateError(f"Cannot {action} while at the {self.step} step")

    def _move_to(self, step: CheckoutStep) -> None:
        self.step = step.value
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def submit_shipping(self, full_name=None, address=None, city=None, phone=None, notes=None):
        self.require_step(CheckoutStep.SHIPPING, "submit shipping details")

        errors = {
            field: list(_REQUIRED)
            for field, value in (("full_name", full_name), ("address", address), ("city", city))
            if _blank(value)
        }
        if errors:
            raise ValidationError(errors)

        self.full_name = _clean(full_name)
        self.address = _clean(address)
        self.city = _clean(city)
        self.phone = _clean(phone)
        self.notes = _clean(notes)
        self._move_to(CheckoutStep.PAYMENT)

    def submit_payment(self, method=None, card_number=None, card_expiry=None, card_cvv=None, card_holder=None):
        self.require_step(CheckoutStep.PAYMENT, "submit payment details")
        payment, holder, last4 = check_payment(method, card_number, card_expiry, card_cvv, card_holder)
        self.record_payment(payment, holder, last4)

    def record_payment(self, method, card_holder=None, card_last4=None):
        """Store already-checked payment details and move on to confirmation."""
        self.require_step(CheckoutStep.PAYMENT, "submit payment details")
        self.payment_method = PaymentMethod.parse(method).value
        self.card_holder = card_holder
        self.card_last4 = card_last4
        self._move_to(CheckoutStep.CONFIRMATION)

    def go_back(self) -> CheckoutStep:
        previous = _PREVIOUS_STEP.get(self.current_step)
        if previous is None:
            raise InvalidStateError(f"Cannot go back from the {self.step} step")
        self._move_to(previous)
        return previous

    def mark_succeeded(self, order_id) -> None:
        self.require_step(CheckoutStep.CONFIRMATION, "place the order")
        self.order_id = order_id
        self._move_to(CheckoutStep.SUCCESS)

    @property
    def shipping_details(self) -> dict:
        return {
            "full_name": self.full_name,
            "address": self.address,
            "city": self.city,
            "phone": self.phone,
            "notes": self.notes,
        }
