"""Authorization guards.

Every mutating operation receives an explicit ``AuthContext`` and calls one
of these guards before dispatching a command. The admin flag is always
derived from the ``UserRole`` records, never taken from the caller.
"""

from dataclasses import dataclass

from storefront.exceptions import NotAuthenticatedError, NotAuthorizedError
from storefront.identity.roles import is_admin


@dataclass(frozen=True)
class AuthContext:
    user_id: str | None = None
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()


def load_auth_context(user_id: str | None) -> AuthContext:
    """Build the context for ``user_id`` (``None`` or blank means anonymous)."""
    if not user_id or not user_id.strip():
        return AuthContext.anonymous()
    user_id = user_id.strip()
    return AuthContext(user_id=user_id, is_admin=is_admin(user_id))


def require_authenticated(auth: AuthContext) -> str:
    if not auth.is_authenticated:
        raise NotAuthenticatedError()
    return auth.user_id


def require_admin(auth: AuthContext) -> str:
    user_id = require_authenticated(auth)
    if not auth.is_admin:
        raise NotAuthorizedError("Administrator access required")
    return user_id


def require_owner_or_admin(auth: AuthContext, owner_user_id: str) -> str:
    user_id = require_authenticated(auth)
    if user_id != owner_user_id and not auth.is_admin:
        raise NotAuthorizedError()
    return user_id
