"""
FastAPI dependencies: database session, identity resolution and guards.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Cookie, Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from creatorhub.core.access import (
    ADMIN_TIER,
    OWNER_ONLY,
    AccessControl,
    Identity,
    IdentityLoader,
    Permission,
    Role,
    require_permission as check_permission,
    require_role,
)
from creatorhub.core.config import settings
from creatorhub.core.exceptions import IdentityNotFound
from creatorhub.core.security import TokenCodec
from creatorhub.db.session import async_session_factory
from creatorhub.models.user import User

# auto_error=False so the cookie can be checked when the header is missing
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Tokens / access control ─────────────────────────────────────────
@lru_cache(maxsize=1)
def get_token_codec() -> TokenCodec:
    return TokenCodec(
        secret=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        reset_ttl=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
    )


def get_access_control(tokens: TokenCodec = Depends(get_token_codec)) -> AccessControl:
    return AccessControl(tokens)


def identity_loader(db: AsyncSession) -> IdentityLoader:
    async def _load(identity_id: int) -> Identity | None:
        user = await db.get(User, identity_id)
        return Identity.from_user(user) if user is not None else None

    return _load


def extract_credential(
    header_token: Optional[str],
    cookie_token: Optional[str],
) -> Optional[str]:
    """Header wins; the cookie may hold ``Bearer <token>`` or the bare token."""
    if header_token:
        return header_token
    if cookie_token:
        if cookie_token.startswith("Bearer "):
            return cookie_token.split(" ", 1)[1]
        return cookie_token
    return None


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_identity(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),  # HttpOnly cookie
    db: AsyncSession = Depends(get_db),
    access: AccessControl = Depends(get_access_control),
) -> Identity:
    """Resolve header / cookie credential to an active Identity or raise."""
    credential = extract_credential(token, access_token)
    return await access.resolve_identity(credential, identity_loader(db))


async def get_optional_identity(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
    access: AccessControl = Depends(get_access_control),
) -> Identity | None:
    credential = extract_credential(token, access_token)
    return await access.optional_identity(credential, identity_loader(db))


async def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Full user row for handlers that read or mutate profile fields."""
    user = await db.get(User, identity.id)
    if user is None:
        raise IdentityNotFound(identity.id)
    return user


def require_roles(*roles: Role):
    allowed = frozenset(roles)

    async def _dep(identity: Identity = Depends(get_current_identity)) -> Identity:
        return require_role(identity, allowed)

    return _dep


def require_permission(permission: Permission):
    async def _dep(identity: Identity = Depends(get_current_identity)) -> Identity:
        return check_permission(identity, permission)

    return _dep


require_admin_tier = require_roles(*ADMIN_TIER)
require_owner = require_roles(*OWNER_ONLY)
