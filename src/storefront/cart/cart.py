"""Shopping cart aggregate — one cart per owner, line items priced live.

A cart is owned either by a user or by an anonymous session token, never
both. Each product appears at most once; adding it again raises the
quantity. Quantities never exceed the product's current stock at the time
they are set.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.identity.owner import OwnerKey


@storefront.entity(part_of="Cart", limit=-1)
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    position = Integer(required=True, min_value=1)
    added_at = DateTime()


@storefront.aggregate(limit=-1)
class Cart:
    user_id = String(max_length=255, unique=True)
    session_id = String(max_length=255, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_has_exactly_one_owner(self):
        if (self.user_id is None) == (self.session_id is None):
            raise ValidationError({"owner": ["A cart belongs to either a user or a session, not both"]})

    @invariant.post
    def each_product_appears_once(self):
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can only appear once in a cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner: OwnerKey):
        now = datetime.now(UTC)
        return cls(user_id=owner.user_id, session_id=owner.session_id, created_at=now, updated_at=now)

    @property
    def owner(self) -> OwnerKey:
        return OwnerKey(user_id=self.user_id, session_id=self.session_id)

    def is_owned_by(self, owner: OwnerKey) -> bool:
        if owner.user_id is not None:
            return self.user_id == owner.user_id
        return self.user_id is None and self.session_id == owner.session_id

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[CartItem]:
        """Items in the order they were first added."""
        return sorted(self.items, key=lambda item: item.position)

    def find_item(self, item_id) -> CartItem:
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ObjectNotFoundError(f"Item {item_id} is not in this cart")
        return item

    def item_for_product(self, product_id) -> CartItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def add_item(self, product: Product, quantity: int = 1) -> CartItem:
        """Add ``quantity`` units of ``product``, merging into an existing line."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = self.item_for_product(product.id)
        new_quantity = (existing.quantity if existing else 0) + quantity
        _ensure_within_stock(product, new_quantity)

        if existing:
            existing.quantity = new_quantity
            item = existing
        else:
            item = self._append(product.id, quantity)

        self.updated_at = datetime.now(UTC)
        return item

    def update_item_quantity(self, item_id, new_quantity: int, product: Product | None = None) -> CartItem | None:
        """Set a line's quantity exactly. Zero or less removes the line.

        ``product`` is the line's current product, needed to check stock.
        """
        item = self.find_item(item_id)
        if new_quantity <= 0:
            self.remove_item(item_id)
            return None

        if product is None:
            raise ObjectNotFoundError(f"Product {item.product_id} not found")
        _ensure_within_stock(product, new_quantity)
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        return item

    def remove_item(self, item_id) -> None:
        item = self.find_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

    def drop_product(self, product_id) -> None:
        """Remove the line for ``product_id``, if any. Used when a product is deleted."""
        item = self.item_for_product(product_id)
        if item is not None:
            self.remove_item(item.id)

    def clear(self) -> None:
        if self.items:
            self.remove_items(list(self.items))
        self.updated_at = datetime.now(UTC)

    def _append(self, product_id, quantity: int) -> CartItem:
        position = max((i.position for i in self.items), default=0) + 1
        item = CartItem(product_id=product_id, quantity=quantity, position=position, added_at=datetime.now(UTC))
        self.add_items(item)
        return item

    # -------------------------------------------------------------------
    # Guest cart merging
    # -------------------------------------------------------------------
    def merge_items(self, guest_lines) -> int:
        """Copy guest ``(product, quantity)`` lines into this cart.

        Each merged quantity is clamped to the product's live stock. Returns
        the number of guest lines that contributed.
        """
        merged = 0
        for product, quantity in guest_lines:
            existing = self.item_for_product(product.id)
            current = existing.quantity if existing else 0
            target = min(current + quantity, product.stock)
            if target <= current:
                continue

            if existing:
                existing.quantity = target
            else:
                self._append(product.id, target)
            merged += 1

        if merged:
            self.updated_at = datetime.now(UTC)
        return merged

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


def _ensure_within_stock(product: Product, quantity: int) -> None:
    if product.stock <= 0:
        raise ValidationError({"quantity": [f"{product.name} is out of stock"]})
    if quantity > product.stock:
        raise ValidationError({"quantity": [f"Only {product.stock} units of {product.name} are available"]})
