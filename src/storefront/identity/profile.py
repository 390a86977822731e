"""Customer profile — contact and default shipping details.

A profile is created on first save, and at the same time the user is given
the default ``user`` role. Checkout prefills its shipping step from here.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.identity.auth import AuthContext, require_authenticated
from storefront.identity.roles import Role, add_role

logger = structlog.get_logger(__name__)

_PROFILE_FIELDS = ("full_name", "email", "phone", "address", "city")


@storefront.aggregate
class Profile:
    user_id = Identifier(identifier=True)
    full_name = String(max_length=255)
    email = String(max_length=255)
    phone = String(max_length=50)
    address = Text()
    city = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=user_id, created_at=now, updated_at=now)

    def update_details(self, **fields):
        """Apply the given fields. ``None`` leaves a field alone; blank clears it."""
        for name in _PROFILE_FIELDS:
            if name in fields and fields[name] is not None:
                value = str(fields[name]).strip()
                setattr(self, name, value or None)
        self.updated_at = datetime.now(UTC)


@storefront.command(part_of="Profile")
class SaveProfile:
    user_id = Identifier(required=True)
    full_name = String(max_length=255)
    email = String(max_length=255)
    phone = String(max_length=50)
    address = Text()
    city = String(max_length=100)


@storefront.command_handler(part_of=Profile)
class ManageProfileHandler:
    @handle(SaveProfile)
    def save_profile(self, command):
        repo = current_domain.repository_for(Profile)
        profile = repo.get_or_none(command.user_id)
        if profile is None:
            profile = Profile.create(command.user_id)
            add_role(command.user_id, Role.USER)
            logger.info("Profile created", user_id=command.user_id)

        profile.update_details(**{name: getattr(command, name) for name in _PROFILE_FIELDS})
        repo.add(profile)
        return command.user_id


def get_profile(auth: AuthContext) -> Profile | None:
    user_id = require_authenticated(auth)
    return current_domain.repository_for(Profile).get_or_none(user_id)


def save_profile(auth: AuthContext, **fields) -> Profile:
    user_id = require_authenticated(auth)
    current_domain.process(
        SaveProfile(user_id=user_id, **{name: fields.get(name) for name in _PROFILE_FIELDS}),
        asynchronous=False,
    )
    return current_domain.repository_for(Profile).get(user_id)
