"""Checkout flow — starting a checkout and moving between its steps.

Every action requires a signed-in user who owns the session, and, until the
order has been placed, a cart with at least one item. Each action returns
the session together with the priced cart it will turn into an order.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.cart.items import CartSummary, summarize
from storefront.cart.management import find_cart
from storefront.checkout.checkout import CheckoutSession, CheckoutStep, check_payment
from storefront.domain import storefront
from storefront.exceptions import EmptyCartError, NotAuthorizedError
from storefront.identity.auth import AuthContext, require_authenticated
from storefront.identity.owner import OwnerKey
from storefront.identity.profile import Profile

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutView:
    checkout: CheckoutSession
    cart: CartSummary | None  # None once the order has been placed


@storefront.command(part_of="CheckoutSession")
class StartCheckout:
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)


@storefront.command(part_of="CheckoutSession")
class SubmitShipping:
    checkout_id = Identifier(required=True)
    full_name = String(max_length=255)
    address = Text()
    city = String(max_length=100)
    phone = String(max_length=50)
    notes = Text()


@storefront.command(part_of="CheckoutSession")
class SubmitPayment:
    checkout_id = Identifier(required=True)
    method = String(required=True, max_length=20)
    card_holder = String(max_length=255)
    card_last4 = String(max_length=4)


@storefront.command(part_of="CheckoutSession")
class GoBack:
    checkout_id = Identifier(required=True)


@storefront.command_handler(part_of=CheckoutSession)
class CheckoutStepsHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        profile = current_domain.repository_for(Profile).get_or_none(command.user_id)
        checkout = CheckoutSession.start(user_id=command.user_id, cart_id=command.cart_id, profile=profile)
        current_domain.repository_for(CheckoutSession).add(checkout)
        logger.info("Checkout started", checkout_id=checkout.id, cart_id=command.cart_id, prefilled=profile is not None)
        return str(checkout.id)

    @handle(SubmitShipping)
    def submit_shipping(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        checkout = repo.get(command.checkout_id)
        checkout.submit_shipping(
            full_name=command.full_name,
            address=command.address,
            city=command.city,
            phone=command.phone,
            notes=command.notes,
        )
        repo.add(checkout)
        logger.info("Checkout shipping submitted", checkout_id=command.checkout_id)

    @handle(SubmitPayment)
    def submit_payment(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        checkout = repo.get(command.checkout_id)
        checkout.record_payment(command.method, card_holder=command.card_holder, card_last4=command.card_last4)
        repo.add(checkout)
        logger.info("Checkout payment submitted", checkout_id=command.checkout_id, method=checkout.payment_method)

    @handle(GoBack)
    def go_back(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        checkout = repo.get(command.checkout_id)
        checkout.go_back()
        repo.add(checkout)


def start_checkout(auth: AuthContext) -> CheckoutView:
    user_id = require_authenticated(auth)
    cart = find_cart(OwnerKey.for_user(user_id))
    if cart is None or cart.is_empty:
        raise EmptyCartError()

    checkout_id = current_domain.process(StartCheckout(user_id=user_id, cart_id=str(cart.id)), asynchronous=False)
    return load_checkout(auth, checkout_id)


def load_checkout(auth: AuthContext, checkout_id: str) -> CheckoutView:
    """Fetch the caller's checkout and its priced cart, applying the empty-cart guard."""
    user_id = require_authenticated(auth)
    checkout = current_domain.repository_for(CheckoutSession).get_or_none(checkout_id)
    if checkout is None:
        raise ObjectNotFoundError(f"Checkout {checkout_id} not found")
    if checkout.user_id != user_id:
        raise NotAuthorizedError("This checkout belongs to someone else")

    if checkout.is_complete:
        return CheckoutView(checkout=checkout, cart=None)

    cart = current_domain.repository_for(Cart).get_or_none(checkout.cart_id)
    summary = summarize(cart) if cart is not None else None
    if summary is None or summary.is_empty:
        raise EmptyCartError()
    return CheckoutView(checkout=checkout, cart=summary)


def submit_shipping(auth: AuthContext, checkout_id: str, **details) -> CheckoutView:
    load_checkout(auth, checkout_id)
    current_domain.process(SubmitShipping(checkout_id=checkout_id, **details), asynchronous=False)
    return load_checkout(auth, checkout_id)


def submit_payment(auth: AuthContext, checkout_id: str, **details) -> CheckoutView:
    """Check the payment input here; only the method, holder and last four digits reach the session."""
    view = load_checkout(auth, checkout_id)
    view.checkout.require_step(CheckoutStep.PAYMENT, "submit payment details")
    method, card_holder, card_last4 = check_payment(**details)

    current_domain.process(
        SubmitPayment(checkout_id=checkout_id, method=method.value, card_holder=card_holder, card_last4=card_last4),
        asynchronous=False,
    )
    return load_checkout(auth, checkout_id)


def go_back(auth: AuthContext, checkout_id: str) -> CheckoutView:
    load_checkout(auth, checkout_id)
    current_domain.process(GoBack(checkout_id=checkout_id), asynchronous=False)
    return load_checkout(auth, checkout_id)
