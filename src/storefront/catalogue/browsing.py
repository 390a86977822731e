"""Storefront catalogue queries — what shoppers see."""

from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.category import Category
from storefront.catalogue.product import Product
from storefront.domain import storefront


class ProductSort(Enum):
    FEATURED = "featured"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NAME = "name"


_ORDERING = {
    ProductSort.FEATURED: ["-featured", "-created_at"],
    ProductSort.PRICE_ASC: ["price", "name"],
    ProductSort.PRICE_DESC: ["-price", "name"],
    ProductSort.NAME: ["name"],
}


@storefront.repository(part_of=Product)
class ProductRepository:
    def browse(self, category_id=None, search=None, sort=ProductSort.FEATURED) -> list[Product]:
        query = self.query
        if category_id:
            query = query.filter(category_id=category_id)
        if search:
            query = query.filter(name__icontains=search)
        products = query.order_by(_ORDERING[sort]).all().items
        if search:
            # LIKE reads % and _ as wildcards; keep only literal matches
            needle = search.lower()
            products = [product for product in products if needle in product.name.lower()]
        return products

    def in_category(self, category_id) -> list[Product]:
        return self.query.filter(category_id=category_id).all().items

    def newest_first(self) -> list[Product]:
        return self.query.order_by("-created_at").all().items


@storefront.repository(part_of=Category)
class CategoryRepository:
    def by_name(self) -> list[Category]:
        return self.query.order_by("name").all().items


def parse_sort(value) -> ProductSort:
    if isinstance(value, ProductSort):
        return value
    try:
        return ProductSort(value or ProductSort.FEATURED.value)
    except ValueError:
        raise ValidationError({"sort": [f"Unknown sort key: {value!r}"]})


def list_products(category_id: str | None = None, search: str | None = None, sort=ProductSort.FEATURED) -> list[Product]:
    """Filter by category and case-insensitive name substring, then sort."""
    search = search.strip() if search else None
    return current_domain.repository_for(Product).browse(
        category_id=category_id or None,
        search=search or None,
        sort=parse_sort(sort),
    )


def get_product(product_id: str) -> Product:
    product = current_domain.repository_for(Product).get_or_none(product_id)
    if product is None:
        raise ObjectNotFoundError(f"Product {product_id} not found")
    return product


def list_categories() -> list[Category]:
    return current_domain.repository_for(Category).by_name()


def get_category(category_id: str) -> Category:
    category = current_domain.repository_for(Category).get_or_none(category_id)
    if category is None:
        raise ObjectNotFoundError(f"Category {category_id} not found")
    return category
