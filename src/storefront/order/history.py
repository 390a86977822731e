"""Order history — read-only views for customers and administrators."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.domain import setting, storefront
from storefront.identity.auth import AuthContext, require_admin, require_authenticated, require_owner_or_admin
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    def placed_by(self, user_id: str) -> list[Order]:
        return self.query.filter(user_id=user_id).order_by("-created_at").all().items

    def most_recent(self, limit: int) -> list[Order]:
        return self.query.order_by("-created_at").limit(limit).all().items


def list_orders(auth: AuthContext) -> list[Order]:
    """The caller's own orders, newest first."""
    user_id = require_authenticated(auth)
    return current_domain.repository_for(Order).placed_by(user_id)


def get_order(auth: AuthContext, order_id: str) -> Order:
    require_authenticated(auth)
    order = current_domain.repository_for(Order).get_or_none(order_id)
    if order is None:
        raise ObjectNotFoundError(f"Order {order_id} not found")
    require_owner_or_admin(auth, order.user_id)
    return order


def list_all_orders(auth: AuthContext, limit: int | None = None) -> list[Order]:
    require_admin(auth)
    return current_domain.repository_for(Order).most_recent(limit or setting("admin_order_page_size"))
