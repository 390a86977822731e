"""Category aggregate root — a flat grouping of products for storefront navigation."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from storefront.domain import storefront


@storefront.aggregate(limit=-1)
class Category:
    name: String(required=True, max_length=100)
    description: Text()
    image_url: String(max_length=500, sanitize=False)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(cls, name, description=None, image_url=None):
        now = datetime.now(UTC)
        return cls(
            name=_clean_name(name),
            description=description or None,
            image_url=image_url or None,
            created_at=now,
            updated_at=now,
        )

    def update_details(self, name=None, description=None, image_url=None):
        if name is not None:
            self.name = _clean_name(name)
        if description is not None:
            self.description = description or None
        if image_url is not None:
            self.image_url = image_url or None
        self.updated_at = datetime.now(UTC)


def _clean_name(name) -> str:
    if not name or not str(name).strip():
        raise ValidationError({"name": ["Category name is required"]})
    name = str(name).strip()
    if len(name) > 100:
        raise ValidationError({"name": ["Category name cannot exceed 100 characters"]})
    return name
