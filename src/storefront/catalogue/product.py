"""Product aggregate root — a sellable item with a live price and stock level.

Price and stock are read live by carts; orders copy them into snapshots at
checkout. Stock only goes down through fulfillment and never below zero.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Decimal, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.shared.money import to_money

_EDITABLE_FIELDS = ("name", "description", "price", "stock", "image_url", "category_id", "featured")


@storefront.aggregate(limit=-1)
class Product:
    name: String(required=True, max_length=255)
    description: Text()
    price: Decimal(required=True, min_value=0, precision=10, scale=2)
    stock: Integer(default=0, min_value=0)
    image_url: String(max_length=500, sanitize=False)
    category_id: Identifier()
    featured: Boolean(default=False)
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name,
        price,
        description=None,
        stock=0,
        image_url=None,
        category_id=None,
        featured=False,
    ):
        errors = {}
        if not name or not str(name).strip():
            errors["name"] = ["Product name is required"]
        if price is None or price == "":
            errors["price"] = ["Price is required"]
        if errors:
            raise ValidationError(errors)

        now = datetime.now(UTC)
        return cls(
            name=str(name).strip(),
            description=description or None,
            price=to_money(price),
            stock=_clean_stock(stock),
            image_url=image_url or None,
            category_id=category_id or None,
            featured=bool(featured),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Admin edits
    # -------------------------------------------------------------------
    def update_details(self, **changes):
        """Apply a partial update; unknown fields are rejected."""
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({field: ["Unknown field"] for field in sorted(unknown)})

        if "name" in changes:
            if not changes["name"] or not str(changes["name"]).strip():
                raise ValidationError({"name": ["Product name is required"]})
            changes["name"] = str(changes["name"]).strip()
        if "price" in changes:
            if changes["price"] is None or changes["price"] == "":
                raise ValidationError({"price": ["Price is required"]})
            changes["price"] = to_money(changes["price"])
        if "stock" in changes:
            changes["stock"] = _clean_stock(changes["stock"])
        for optional in ("description", "image_url", "category_id"):
            if optional in changes:
                changes[optional] = changes[optional] or None
        if "featured" in changes:
            changes["featured"] = bool(changes["featured"])

        for field, value in changes.items():
            setattr(self, field, value)
        self.updated_at = datetime.now(UTC)

    def detach_from_category(self):
        self.category_id = None
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------
    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def decrement_stock(self, quantity: int) -> int:
        """Remove ``quantity`` units, flooring at zero. Returns the new level."""
        self.stock = max(0, self.stock - quantity)
        self.updated_at = datetime.now(UTC)
        return self.stock


def _clean_stock(stock) -> int:
    if stock is None or stock == "":
        return 0
    try:
        value = int(stock)
    except (TypeError, ValueError):
        raise ValidationError({"stock": [f"Invalid stock level: {stock!r}"]})
    if value < 0:
        raise ValidationError({"stock": ["Stock cannot be negative"]})
    return value
