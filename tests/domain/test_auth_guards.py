"""Tests for the authorization guards."""

import pytest

from storefront.exceptions import NotAuthenticatedError, NotAuthorizedError
from storefront.identity.auth import AuthContext, require_admin, require_authenticated, require_owner_or_admin


class TestGuards:
    def test_anonymous_rejected(self):
        with pytest.raises(NotAuthenticatedError):
            require_authenticated(AuthContext.anonymous())

    def test_authenticated_returns_user_id(self):
        assert require_authenticated(AuthContext(user_id="user-001")) == "user-001"

    def test_admin_required(self):
        with pytest.raises(NotAuthorizedError):
            require_admin(AuthContext(user_id="user-001"))
        with pytest.raises(NotAuthenticatedError):
            require_admin(AuthContext.anonymous())
        assert require_admin(AuthContext(user_id="admin-001", is_admin=True)) == "admin-001"

    def test_owner_or_admin(self):
        assert require_owner_or_admin(AuthContext(user_id="user-001"), "user-001") == "user-001"
        assert require_owner_or_admin(AuthContext(user_id="admin-001", is_admin=True), "user-001") == "admin-001"
        with pytest.raises(NotAuthorizedError):
            require_owner_or_admin(AuthContext(user_id="user-002"), "user-001")
