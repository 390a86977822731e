"""Cart owner resolution.

A cart belongs either to a signed-in user or to an anonymous visitor
identified by a random token kept client-side. ``resolve_owner`` turns the
current auth context plus a token store into an ``OwnerKey``.
"""

import uuid
from dataclasses import dataclass
from typing import Protocol

import structlog
from protean.exceptions import ValidationError

from storefront.identity.auth import AuthContext

CART_SESSION_KEY = "cart_session_id"

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OwnerKey:
    """Exactly one of ``user_id`` or ``session_id`` is set."""

    user_id: str | None = None
    session_id: str | None = None

    def __post_init__(self):
        # Blank strings count as absent.
        for name in ("user_id", "session_id"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, value.strip() or None)

        if (self.user_id is None) == (self.session_id is None):
            raise ValidationError({"owner": ["A cart owner needs exactly one of user_id or session_id"]})

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    @property
    def value(self) -> str:
        return self.user_id or self.session_id

    @classmethod
    def for_user(cls, user_id: str) -> "OwnerKey":
        return cls(user_id=user_id)

    @classmethod
    def for_session(cls, session_id: str) -> "OwnerKey":
        return cls(session_id=session_id)


class TokenStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryTokenStore:
    """Token store backed by a dict, for scripts and tests."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()


def resolve_owner(auth: AuthContext, store: TokenStore, key: str = CART_SESSION_KEY) -> OwnerKey:
    if auth.is_authenticated:
        return OwnerKey.for_user(auth.user_id)

    token = store.get(key)
    if not token:
        token = str(uuid.uuid4())
        store.set(key, token)
        logger.debug("Issued anonymous cart token", key=key)
    return OwnerKey.for_session(token)
