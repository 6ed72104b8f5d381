"""
Role / permission evaluation and identity resolution.

Raw role and permission strings from storage are parsed in exactly one
place, ``Identity.from_user``. Everything past that boundary works with the
closed ``Role`` / ``Permission`` enums.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from creatorhub.core.exceptions import (
    AccountDisabled,
    AuthFailure,
    Forbidden,
    IdentityNotFound,
    PermissionDenied,
    Unauthenticated,
)
from creatorhub.core.security import ACCESS_TOKEN, TokenCodec

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"
    OWNER = "owner"

    def __str__(self) -> str:
        return self.value


class Permission(str, enum.Enum):
    PLATFORM_ADMIN = "platform_admin"
    USER_MANAGEMENT = "user_management"
    CONTENT_MODERATION = "content_moderation"
    ANALYTICS_ACCESS = "analytics_access"
    BILLING_MANAGEMENT = "billing_management"
    SYSTEM_SETTINGS = "system_settings"
    FULL_ACCESS = "full_access"

    def __str__(self) -> str:
        return self.value


ADMIN_TIER: frozenset[Role] = frozenset({Role.ADMIN, Role.MODERATOR, Role.OWNER})
OWNER_ONLY: frozenset[Role] = frozenset({Role.OWNER})


@dataclass(frozen=True)
class Identity:
    """Authenticated principal: a user record minus its secrets."""

    id: int
    email: str
    role: Role
    permissions: frozenset[Permission]
    is_active: bool = True

    @property
    def is_owner(self) -> bool:
        return self.role is Role.OWNER

    @property
    def is_admin_tier(self) -> bool:
        return self.role in ADMIN_TIER

    @classmethod
    def from_user(cls, user: Any) -> Identity:
        """Build an Identity from a persisted user record.

        An unknown role is a hard error. Unknown permission strings are
        dropped so a stale catalog entry cannot grant anything.
        """
        role = Role(user.role)
        permissions: set[Permission] = set()
        for raw in user.permissions or ():
            try:
                permissions.add(Permission(raw))
            except ValueError:
                logger.warning("Ignoring unknown permission %r on user %s", raw, user.id)
        return cls(
            id=user.id,
            email=user.email,
            role=role,
            permissions=frozenset(permissions),
            is_active=bool(user.is_active),
        )


IdentityLoader = Callable[[int], Awaitable["Identity | None"]]


def require_role(identity: Identity, allowed_roles: Iterable[Role | str]) -> Identity:
    allowed = frozenset(Role(r) for r in allowed_roles)
    if identity.role not in allowed:
        raise Forbidden(allowed, identity.role)
    return identity


def require_permission(identity: Identity, permission: Permission | str) -> Identity:
    permission = Permission(permission)
    if identity.role is Role.OWNER:
        return identity
    if permission not in identity.permissions:
        raise PermissionDenied(permission, identity.permissions)
    return identity


class AccessControl:
    """Resolves bearer credentials into identities.

    Holds nothing but the token verifier, so one instance can be shared by
    any number of concurrent requests.
    """

    def __init__(self, tokens: TokenCodec) -> None:
        self._tokens = tokens

    async def resolve_identity(
        self,
        credential: str | None,
        find_identity: IdentityLoader,
    ) -> Identity:
        if not credential:
            raise Unauthenticated("No credential supplied")

        payload = self._tokens.verify(credential, ACCESS_TOKEN)
        try:
            identity_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise Unauthenticated("Malformed token subject") from e

        identity = await find_identity(identity_id)
        if identity is None:
            raise IdentityNotFound(identity_id)
        if not identity.is_active:
            raise AccountDisabled(identity_id)
        return identity

    async def optional_identity(
        self,
        credential: str | None,
        find_identity: IdentityLoader,
    ) -> Identity | None:
        try:
            return await self.resolve_identity(credential, find_identity)
        except AuthFailure:
            return None
