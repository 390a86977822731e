"""Role management — commands and handler for granting and revoking access."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.identity.auth import AuthContext, require_admin
from storefront.identity.roles import Role, UserRole, add_role, parse_role

logger = structlog.get_logger(__name__)


@storefront.command(part_of="UserRole")
class GrantRole:
    user_id = Identifier(required=True)
    role = String(required=True, max_length=20, choices=Role)
    granted_by = String(required=True, max_length=255)


@storefront.command(part_of="UserRole")
class RevokeRole:
    user_id = Identifier(required=True)
    role = String(required=True, max_length=20, choices=Role)
    revoked_by = String(required=True, max_length=255)


@storefront.command_handler(part_of=UserRole)
class ManageRolesHandler:
    @handle(GrantRole)
    def grant_role(self, command):
        added = add_role(command.user_id, Role(command.role))
        if added:
            logger.info("Role granted", user_id=command.user_id, role=command.role, granted_by=command.granted_by)
        return added

    @handle(RevokeRole)
    def revoke_role(self, command):
        repo = current_domain.repository_for(UserRole)
        record = repo.find_role(command.user_id, Role(command.role))
        if record is None:
            return False

        repo._dao.delete(record)
        logger.info("Role revoked", user_id=command.user_id, role=command.role, revoked_by=command.revoked_by)
        return True


def grant_role(auth: AuthContext, user_id: str, role) -> bool:
    """Give ``role`` to ``user_id``. Returns False when it was already held."""
    actor = require_admin(auth)
    return _grant(user_id, parse_role(role), granted_by=actor)


def revoke_role(auth: AuthContext, user_id: str, role) -> bool:
    actor = require_admin(auth)
    role = parse_role(role)
    if role == Role.ADMIN and user_id == actor:
        raise ValidationError({"role": ["Administrators cannot revoke their own admin role"]})

    return current_domain.process(
        RevokeRole(user_id=user_id, role=role.value, revoked_by=actor),
        asynchronous=False,
    )


def bootstrap_admin(user_id: str) -> bool:
    """Grant admin without an acting administrator. Used by the management CLI."""
    return _grant(user_id, Role.ADMIN, granted_by="cli")


def _grant(user_id: str, role: Role, granted_by: str) -> bool:
    if not user_id or not user_id.strip():
        raise ValidationError({"user_id": ["User id is required"]})

    return current_domain.process(
        GrantRole(user_id=user_id.strip(), role=role.value, granted_by=granted_by),
        asynchronous=False,
    )
