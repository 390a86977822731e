"""Cart management — locating, lazily creating and merging carts."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, TransactionError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.exceptions import NotAuthorizedError, PersistenceError
from storefront.identity.auth import AuthContext, require_authenticated
from storefront.identity.owner import OwnerKey

logger = structlog.get_logger(__name__)


@storefront.repository(part_of=Cart)
class CartRepository:
    def find_for(self, owner: OwnerKey) -> Cart | None:
        if owner.user_id is not None:
            return self.query.filter(user_id=owner.user_id).all().first
        return self.query.filter(session_id=owner.session_id, user_id__isnull=True).all().first


@storefront.command(part_of="Cart")
class CreateCart:
    user_id = String(max_length=255)
    session_id = String(max_length=255)


@storefront.command(part_of="Cart")
class MergeGuestCart:
    cart_id = Identifier(required=True)
    guest_cart_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = Cart.create(OwnerKey(user_id=command.user_id, session_id=command.session_id))
        current_domain.repository_for(Cart).add(cart)
        logger.info("Cart created", cart_id=cart.id, anonymous=cart.user_id is None)
        return str(cart.id)

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        guest_cart = repo.get(command.guest_cart_id)

        product_repo = current_domain.repository_for(Product)
        guest_lines = []
        for item in guest_cart.lines:
            product = product_repo.get_or_none(item.product_id)
            if product is not None:
                guest_lines.append((product, item.quantity))

        merged = cart.merge_items(guest_lines)
        guest_cart.clear()
        repo.add(cart)
        repo.add(guest_cart)

        logger.info("Guest cart merged", cart_id=command.cart_id, guest_cart_id=command.guest_cart_id, lines_merged=merged)
        return merged


def find_cart(owner: OwnerKey) -> Cart | None:
    return current_domain.repository_for(Cart).find_for(owner)


def get_or_create_cart(owner: OwnerKey) -> str:
    """Return the owner's cart id, creating the cart on first use.

    Safe under concurrent first calls: when another request wins the insert,
    the unique owner column rejects ours and the winner's cart is returned.
    """
    cart = find_cart(owner)
    if cart is not None:
        return str(cart.id)

    try:
        return current_domain.process(
            CreateCart(user_id=owner.user_id, session_id=owner.session_id),
            asynchronous=False,
        )
    except (ValidationError, TransactionError) as exc:
        existing = find_cart(owner)
        if existing is None:
            logger.error("Cart insert rejected but no existing cart found", anonymous=owner.is_anonymous, error=str(exc))
            raise PersistenceError("Could not open your cart. Please try again.") from exc
        logger.info("Concurrent cart creation resolved to existing cart", cart_id=existing.id)
        return str(existing.id)


def load_cart(owner: OwnerKey, cart_id: str) -> Cart:
    """Fetch ``cart_id`` and check that ``owner`` owns it."""
    cart = current_domain.repository_for(Cart).get_or_none(cart_id)
    if cart is None:
        raise ObjectNotFoundError(f"Cart {cart_id} not found")
    if not cart.is_owned_by(owner):
        raise NotAuthorizedError("This cart belongs to someone else")
    return cart


def merge_guest_cart(auth: AuthContext, session_token: str | None) -> str:
    """Move the anonymous cart's lines into the signed-in user's cart.

    Quantities add up and are clamped to live stock. The guest cart is left
    empty. Returns the user's cart id.
    """
    user_id = require_authenticated(auth)
    user_cart_id = get_or_create_cart(OwnerKey.for_user(user_id))
    if not session_token or not session_token.strip():
        return user_cart_id

    guest_cart = find_cart(OwnerKey.for_session(session_token))
    if guest_cart is None or guest_cart.is_empty:
        return user_cart_id

    current_domain.process(
        MergeGuestCart(cart_id=user_cart_id, guest_cart_id=str(guest_cart.id)),
        asynchronous=False,
    )
    return user_cart_id
