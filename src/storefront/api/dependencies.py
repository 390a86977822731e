"""Request-scoped dependencies: caller identity and cart owner."""

from fastapi import Depends, Header, Request, Response

from storefront.domain import setting
from storefront.identity.auth import AuthContext, load_auth_context
from storefront.identity.owner import OwnerKey, resolve_owner
from storefront.utils.logging import add_context


async def get_auth(x_user_id: str | None = Header(default=None)) -> AuthContext:
    """Build the caller's context from the ``X-User-Id`` header.

    The header is trusted as-is. The API must sit behind a gateway that
    authenticates the caller, sets ``X-User-Id`` itself and strips any value
    the client sent; exposed directly, anyone could claim any user id.
    """
    auth = load_auth_context(x_user_id)
    if auth.is_authenticated:
        add_context(user_id=auth.user_id)
    return auth


class CookieTokenStore:
    """Anonymous cart token kept in a long-lived HTTP cookie."""

    def __init__(self, request: Request, response: Response):
        self._request = request
        self._response = response
        self._issued: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._issued.get(key) or self._request.cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self._issued[key] = value
        self._response.set_cookie(
            key,
            value,
            max_age=setting("cart_session_max_age"),
            httponly=True,
            samesite="lax",
        )


def get_token_store(request: Request, response: Response) -> CookieTokenStore:
    return CookieTokenStore(request, response)


async def get_owner(
    auth: AuthContext = Depends(get_auth),
    store: CookieTokenStore = Depends(get_token_store),
) -> OwnerKey:
    return resolve_owner(auth, store, key=setting("cart_session_cookie"))
