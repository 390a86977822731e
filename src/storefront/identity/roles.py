"""User roles — the source of truth for administrator access."""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront


class Role(Enum):
    USER = "user"
    ADMIN = "admin"


@storefront.aggregate(limit=-1)
class UserRole:
    user_id = Identifier(required=True)
    role = String(max_length=20, choices=Role, default=Role.USER.value)
    created_at = DateTime()

    @classmethod
    def create(cls, user_id, role: Role):
        return cls(user_id=user_id, role=role.value, created_at=datetime.now(UTC))


@storefront.repository(part_of=UserRole)
class UserRoleRepository:
    def find_role(self, user_id: str, role: Role) -> UserRole | None:
        return self.query.filter(user_id=user_id, role=role.value).all().first

    def roles_of(self, user_id: str) -> list[UserRole]:
        return self.query.filter(user_id=user_id).all().items


def parse_role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError({"role": [f"Unknown role: {value!r}"]})


def has_role(user_id: str, role: Role) -> bool:
    return current_domain.repository_for(UserRole).find_role(user_id, role) is not None


def is_admin(user_id: str) -> bool:
    return has_role(user_id, Role.ADMIN)


def add_role(user_id: str, role: Role) -> bool:
    """Persist ``role`` for ``user_id`` unless already held.

    Joins the surrounding unit of work when called from a handler.
    """
    repo = current_domain.repository_for(UserRole)
    if repo.find_role(user_id, role) is not None:
        return False
    repo.add(UserRole.create(user_id, role))
    return True
