"""Storefront API package."""

from storefront.api.routes import (
    admin_router,
    cart_router,
    catalogue_router,
    checkout_router,
    order_router,
    profile_router,
)

__all__ = [
    "catalogue_router",
    "cart_router",
    "checkout_router",
    "order_router",
    "profile_router",
    "admin_router",
]
