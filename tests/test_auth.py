"""Tests for registration, login, cookies, refresh and password reset."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorhub.core.security import PASSWORD_RESET_TOKEN, verify_password
from creatorhub.models.user import User


PASSWORD = "password123"

REGISTER = {
    "email": "New.Creator@Example.com",
    "password": "password123",
    "first_name": "New",
    "last_name": "Creator",
}


@pytest.mark.asyncio
async def test_register_creates_regular_user(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/register", json=REGISTER)
    assert resp.status_code == 201
    data = resp.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "new.creator@example.com"
    assert data["user"]["role"] == "user"
    assert data["user"]["permissions"] == []
    assert data["user"]["full_name"] == "New Creator"
    assert "HttpOnly" in resp.headers.get("set-cookie")


@pytest.mark.asyncio
async def test_register_duplicate_email_rejected(async_client: AsyncClient):
    await async_client.post("/api/v1/auth/register", json=REGISTER)
    resp = await async_client.post("/api/v1/auth/register", json=REGISTER)
    assert resp.status_code == 400
    assert "already exists" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_register_validates_payload(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/auth/register", json={**REGISTER, "password": "123", "email": "nope"}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_sets_httponly_cookie(async_client: AsyncClient, customer: User):
    resp = await async_client.post(
        "/api/v1/auth/login", data={"username": customer.email, "password": PASSWORD}
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == customer.id
    assert "access_token" in resp.cookies
    assert resp.cookies["access_token"].strip('"').startswith("Bearer ")
    set_cookie = resp.headers.get("set-cookie")
    assert "HttpOnly" in set_cookie
    assert "samesite=lax" in set_cookie.lower()


@pytest.mark.asyncio
async def test_login_records_last_login(
    async_client: AsyncClient, customer: User, db_session: AsyncSession
):
    await async_client.post(
        "/api/v1/auth/login", data={"username": customer.email, "password": PASSWORD}
    )
    result = await db_session.execute(
        select(User).where(User.id == customer.id).execution_options(populate_existing=True)
    )
    user = result.scalar_one()
    assert user.login_count == 1
    assert user.last_login is not None


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient, customer: User):
    resp = await async_client.post(
        "/api/v1/auth/login", data={"username": customer.email, "password": "wrong-password"}
    )
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_login_unknown_user(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/auth/login", data={"username": "ghost@test.com", "password": PASSWORD}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_inactive_user(async_client: AsyncClient, make_user):
    user = await make_user("sleepy@test.com", is_active=False)
    resp = await async_client.post(
        "/api/v1/auth/login", data={"username": user.email, "password": PASSWORD}
    )
    assert resp.status_code == 403


# ── Session resolution ──────────────────────────────────────────────
@pytest.mark.asyncio
async def test_me_with_bearer_header(async_client: AsyncClient, customer: User, auth_headers):
    resp = await async_client.get("/api/v1/auth/me", headers=auth_headers(customer))
    assert resp.status_code == 200
    assert resp.json()["email"] == customer.email


@pytest.mark.asyncio
async def test_me_with_cookie_only(async_client: AsyncClient, customer: User, tokens):
    async_client.cookies.set("access_token", f"Bearer {tokens.issue(customer.id)}")
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["id"] == customer.id


@pytest.mark.asyncio
async def test_header_wins_over_cookie(
    async_client: AsyncClient, customer: User, vendor: User, tokens
):
    async_client.cookies.set("access_token", f"Bearer {tokens.issue(vendor.id)}")
    resp = await async_client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens.issue(customer.id)}"}
    )
    assert resp.json()["id"] == customer.id


@pytest.mark.asyncio
async def test_me_without_credentials(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"
    assert resp.json()["detail"] == "Could not validate credentials"


@pytest.mark.asyncio
async def test_auth_failures_share_one_response(
    async_client: AsyncClient, make_user, tokens
):
    """Expired, unknown-user and disabled-account failures look identical to clients."""
    disabled = await make_user("off@test.com", is_active=False)
    alive = await make_user("alive@test.com")
    credentials = [
        tokens.issue(alive.id, expires_delta=timedelta(seconds=-10)),
        tokens.issue(9999),
        tokens.issue(disabled.id),
        "garbage",
    ]
    bodies = []
    for token in credentials:
        resp = await async_client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401
        bodies.append(resp.json())
    assert all(body == bodies[0] for body in bodies)


@pytest.mark.asyncio
async def test_refresh_issues_new_token(async_client: AsyncClient, customer: User, auth_headers, tokens):
    resp = await async_client.post("/api/v1/auth/refresh", headers=auth_headers(customer))
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    assert tokens.verify(token)["sub"] == str(customer.id)


@pytest.mark.asyncio
async def test_logout_clears_cookie(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/logout")
    assert resp.status_code == 200
    assert 'access_token=""' in resp.headers.get("set-cookie")


# ── Password reset ──────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_accounts(async_client: AsyncClient, customer: User):
    known = await async_client.post("/api/v1/auth/forgot-password", json={"email": customer.email})
    unknown = await async_client.post("/api/v1/auth/forgot-password", json={"email": "nobody@test.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


@pytest.mark.asyncio
async def test_password_reset_flow(
    async_client: AsyncClient, customer: User, db_session: AsyncSession
):
    await async_client.post("/api/v1/auth/forgot-password", json={"email": customer.email})
    result = await db_session.execute(
        select(User).where(User.id == customer.id).execution_options(populate_existing=True)
    )
    reset_token = result.scalar_one().password_reset_token
    assert reset_token

    resp = await async_client.post(
        "/api/v1/auth/reset-password", json={"token": reset_token, "password": "brand-new-pw"}
    )
    assert resp.status_code == 200

    result = await db_session.execute(
        select(User).where(User.id == customer.id).execution_options(populate_existing=True)
    )
    user = result.scalar_one()
    assert verify_password("brand-new-pw", user.hashed_password)
    assert user.password_reset_token is None

    # Single use
    again = await async_client.post(
        "/api/v1/auth/reset-password", json={"token": reset_token, "password": "another-pw"}
    )
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_reset_rejects_session_token(async_client: AsyncClient, customer: User, tokens):
    resp = await async_client.post(
        "/api/v1/auth/reset-password",
        json={"token": tokens.issue(customer.id), "password": "brand-new-pw"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_reset_token_cannot_open_a_session(async_client: AsyncClient, customer: User, tokens):
    token = tokens.issue(customer.id, token_type=PASSWORD_RESET_TOKEN)
    resp = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_reset_token_with_non_numeric_subject(async_client: AsyncClient, tokens):
    token = tokens.issue("not-a-user-id", token_type=PASSWORD_RESET_TOKEN)
    resp = await async_client.post(
        "/api/v1/auth/reset-password", json={"token": token, "password": "brand-new-pw"}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired token"
