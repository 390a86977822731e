"""Storefront errors that have no counterpart in ``protean.exceptions``.

Validation, not-found and state errors come straight from protean
(``ValidationError``, ``ObjectNotFoundError``, ``InvalidStateError``).
Every class here carries a user-facing default message.
"""

from protean.exceptions import InvalidStateError, ProteanException


class StorefrontError(ProteanException):
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message or self.default_message, **kwargs)

    @property
    def message(self) -> str:
        return self.args[0]


class EmptyCartError(InvalidStateError):
    """Checkout guard: there is nothing in the cart to check out."""

    def __init__(self, message: str = "Your cart is empty", **kwargs):
        super().__init__(message, **kwargs)


class ReferentialIntegrityError(StorefrontError):
    default_message = "This record is still referenced by other records"


class NotAuthenticatedError(StorefrontError):
    default_message = "You must sign in to continue"


class NotAuthorizedError(StorefrontError):
    default_message = "You do not have permission to do that"


class CheckoutFailedError(StorefrontError):
    default_message = "Error processing the order. Please try again."


class PersistenceError(StorefrontError):
    default_message = "The store is unavailable. Please try again."
