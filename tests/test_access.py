"""Tests for role / permission evaluation and identity resolution."""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from creatorhub.api.v1.deps import extract_credential
from creatorhub.core.access import (
    ADMIN_TIER,
    OWNER_ONLY,
    AccessControl,
    Identity,
    Permission,
    Role,
    require_permission,
    require_role,
)
from creatorhub.core.exceptions import (
    AccountDisabled,
    AuthFailure,
    Forbidden,
    IdentityNotFound,
    PermissionDenied,
    TokenExpired,
    Unauthenticated,
)
from creatorhub.core.security import PASSWORD_RESET_TOKEN, TokenCodec

CODEC = TokenCodec(secret="unit-test-secret")


def _identity(role: Role, permissions=(), *, id: int = 1, is_active: bool = True) -> Identity:
    return Identity(
        id=id,
        email=f"{role.value}@test.com",
        role=role,
        permissions=frozenset(permissions),
        is_active=is_active,
    )


def _loader(*identities: Identity):
    by_id = {i.id: i for i in identities}

    async def _load(identity_id: int):
        return by_id.get(identity_id)

    return _load


# ── Role checks ─────────────────────────────────────────────────────
def test_owner_satisfies_every_permission():
    """The owner passes every permission check even with an empty set."""
    owner = _identity(Role.OWNER)
    for permission in Permission:
        assert require_permission(owner, permission) is owner


@pytest.mark.parametrize("role", [Role.ADMIN, Role.MODERATOR, Role.OWNER])
def test_admin_tier_accepts_staff(role):
    identity = _identity(role)
    assert require_role(identity, ADMIN_TIER) is identity


def test_admin_tier_rejects_regular_user():
    with pytest.raises(Forbidden) as exc_info:
        require_role(_identity(Role.USER), ADMIN_TIER)
    assert exc_info.value.actual_role is Role.USER
    assert exc_info.value.required_roles == ADMIN_TIER


@pytest.mark.parametrize("role", [Role.USER, Role.ADMIN, Role.MODERATOR])
def test_owner_only_rejects_everyone_else(role):
    with pytest.raises(Forbidden):
        require_role(_identity(role, Permission), OWNER_ONLY)


def test_require_role_accepts_raw_strings():
    identity = _identity(Role.MODERATOR)
    assert require_role(identity, ["admin", "moderator"]) is identity


# ── Permission checks ───────────────────────────────────────────────
def test_moderator_without_permissions_is_admin_tier_but_lacks_billing():
    moderator = _identity(Role.MODERATOR)
    require_role(moderator, ADMIN_TIER)
    with pytest.raises(PermissionDenied) as exc_info:
        require_permission(moderator, Permission.BILLING_MANAGEMENT)
    assert exc_info.value.permission is Permission.BILLING_MANAGEMENT
    assert exc_info.value.actual_permissions == frozenset()


def test_granted_permission_passes_for_any_role():
    user = _identity(Role.USER, [Permission.ANALYTICS_ACCESS])
    assert require_permission(user, "analytics_access") is user


def test_admin_role_does_not_imply_permissions():
    with pytest.raises(PermissionDenied):
        require_permission(_identity(Role.ADMIN), Permission.USER_MANAGEMENT)


def test_unknown_permission_name_is_rejected():
    with pytest.raises(ValueError):
        require_permission(_identity(Role.OWNER), "do_anything")


# ── Identity.from_user ──────────────────────────────────────────────
def test_from_user_parses_role_and_permissions():
    user = SimpleNamespace(
        id=7,
        email="a@b.com",
        role="admin",
        permissions=["user_management", "content_moderation"],
        is_active=True,
    )
    identity = Identity.from_user(user)
    assert identity.role is Role.ADMIN
    assert identity.permissions == {Permission.USER_MANAGEMENT, Permission.CONTENT_MODERATION}
    assert identity.is_admin_tier
    assert not identity.is_owner


def test_from_user_drops_unknown_permissions():
    user = SimpleNamespace(
        id=7, email="a@b.com", role="user", permissions=["billing_management", "legacy_flag"],
        is_active=True,
    )
    assert Identity.from_user(user).permissions == {Permission.BILLING_MANAGEMENT}


def test_from_user_rejects_unknown_role():
    user = SimpleNamespace(id=7, email="a@b.com", role="superuser", permissions=[], is_active=True)
    with pytest.raises(ValueError):
        Identity.from_user(user)


# ── Identity resolution ─────────────────────────────────────────────
@pytest.mark.asyncio
async def test_resolve_identity_returns_active_identity():
    alice = _identity(Role.USER, id=42)
    access = AccessControl(CODEC)
    resolved = await access.resolve_identity(CODEC.issue(42), _loader(alice))
    assert resolved == alice


@pytest.mark.asyncio
async def test_missing_credential_is_unauthenticated():
    with pytest.raises(Unauthenticated):
        await AccessControl(CODEC).resolve_identity(None, _loader())


@pytest.mark.asyncio
async def test_expired_token_is_token_expired():
    """A correctly signed token past its expiry fails even though the user exists."""
    alice = _identity(Role.USER, id=42)
    token = CODEC.issue(42, expires_delta=timedelta(seconds=-5))
    with pytest.raises(TokenExpired):
        await AccessControl(CODEC).resolve_identity(token, _loader(alice))


@pytest.mark.asyncio
async def test_token_signed_with_other_key_is_rejected():
    token = TokenCodec(secret="someone-else").issue(42)
    with pytest.raises(Unauthenticated):
        await AccessControl(CODEC).resolve_identity(token, _loader(_identity(Role.USER, id=42)))


@pytest.mark.asyncio
async def test_reset_token_is_not_a_session_token():
    token = CODEC.issue(42, token_type=PASSWORD_RESET_TOKEN)
    with pytest.raises(Unauthenticated):
        await AccessControl(CODEC).resolve_identity(token, _loader(_identity(Role.USER, id=42)))


@pytest.mark.asyncio
async def test_non_numeric_subject_is_unauthenticated():
    with pytest.raises(Unauthenticated):
        await AccessControl(CODEC).resolve_identity(CODEC.issue("abc"), _loader())


@pytest.mark.asyncio
async def test_deleted_user_is_identity_not_found():
    with pytest.raises(IdentityNotFound) as exc_info:
        await AccessControl(CODEC).resolve_identity(CODEC.issue(99), _loader())
    assert exc_info.value.identity_id == 99


@pytest.mark.asyncio
async def test_deactivated_user_fails_with_valid_token():
    """Deactivation takes effect immediately, whatever the token's expiry."""
    bob = _identity(Role.ADMIN, [Permission.USER_MANAGEMENT], id=5, is_active=False)
    with pytest.raises(AccountDisabled):
        await AccessControl(CODEC).resolve_identity(CODEC.issue(5), _loader(bob))


@pytest.mark.asyncio
async def test_optional_identity_swallows_auth_failures():
    access = AccessControl(CODEC)
    assert await access.optional_identity(None, _loader()) is None
    assert await access.optional_identity("garbage", _loader()) is None
    assert await access.optional_identity(CODEC.issue(3), _loader()) is None


def test_every_auth_error_is_an_auth_failure():
    for exc_type in (Unauthenticated, TokenExpired, IdentityNotFound, AccountDisabled,
                     Forbidden, PermissionDenied):
        assert issubclass(exc_type, AuthFailure)


# ── Credential extraction ───────────────────────────────────────────
def test_header_takes_precedence_over_cookie():
    assert extract_credential("header-token", "Bearer cookie-token") == "header-token"


def test_cookie_bearer_prefix_is_stripped():
    assert extract_credential(None, "Bearer cookie-token") == "cookie-token"


def test_bare_cookie_token_is_accepted():
    assert extract_credential(None, "cookie-token") == "cookie-token"


def test_no_credential():
    assert extract_credential(None, None) is None
