"""
Auth endpoints: register, login (OAuth2 password flow), refresh,
logout and password reset.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorhub.api.v1.deps import get_current_user, get_db, get_token_codec
from creatorhub.core.config import settings
from creatorhub.core.exceptions import Unauthenticated
from creatorhub.core.security import (
    PASSWORD_RESET_TOKEN,
    TokenCodec,
    get_password_hash,
    verify_password,
)
from creatorhub.models.user import User
from creatorhub.schemas.common import MessageResponse
from creatorhub.schemas.token import Token
from creatorhub.schemas.user import (
    AuthResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UserCreate,
    UserRead,
)

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key="access_token",
        value=f"Bearer {token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,  # Set to True in HTTPS production
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


async def _unique_username(db: AsyncSession, email: str) -> str:
    base = email.split("@")[0].lower()
    candidate = base
    while (await db.execute(select(User.id).where(User.username == candidate))).first():
        candidate = f"{base}-{secrets.token_hex(2)}"
    return candidate


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit("10/minute")
async def register(
    request: Request,
    response: Response,
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    tokens: TokenCodec = Depends(get_token_codec),
) -> AuthResponse:
    """Create a regular user account and log it in."""
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="User already exists with this email")

    user = User(
        email=body.email,
        hashed_password=get_password_hash(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        username=await _unique_username(db, body.email),
        role="user",
        permissions=[],
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s (id %d)", user.email, user.id)

    token = tokens.issue(user.id)
    _set_auth_cookie(response, token)
    return AuthResponse(access_token=token, user=UserRead.model_validate(user))


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    tokens: TokenCodec = Depends(get_token_codec),
) -> AuthResponse:
    """Authenticate with email/password. Returns the token and sets an HttpOnly cookie."""
    result = await db.execute(
        select(User).where(User.email == form_data.username.lower().strip())
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    user.last_login = datetime.now(timezone.utc)
    user.login_count = (user.login_count or 0) + 1
    await db.commit()
    await db.refresh(user)

    token = tokens.issue(user.id)
    _set_auth_cookie(response, token)
    return AuthResponse(access_token=token, user=UserRead.model_validate(user))


@router.post("/refresh", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token(
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    tokens: TokenCodec = Depends(get_token_codec),
) -> Token:
    """Issue a fresh session token for a still-valid session."""
    token = tokens.issue(current_user.id)
    _set_auth_cookie(response, token)
    return Token(access_token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the auth cookie and end the session."""
    response.delete_cookie("access_token")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserRead)
async def read_current_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Return profile of the currently authenticated user."""
    return current_user


# ── Password reset ──────────────────────────────────────────────────
@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("5/minute")
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    tokens: TokenCodec = Depends(get_token_codec),
) -> MessageResponse:
    """Always succeeds so the response does not reveal which emails have accounts."""
    result = await db.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if user is not None and user.is_active:
        reset_token = tokens.issue(user.id, token_type=PASSWORD_RESET_TOKEN)
        user.password_reset_token = reset_token
        user.password_reset_expires = datetime.now(timezone.utc) + tokens.reset_ttl
        await db.commit()
        # TODO: deliver the reset link by email once a mail provider is configured.
        logger.info("Password reset token issued for user %d", user.id)

    return MessageResponse(
        message="If an account with that email exists, we've sent password reset instructions"
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    tokens: TokenCodec = Depends(get_token_codec),
) -> MessageResponse:
    invalid = HTTPException(status_code=400, detail="Invalid or expired token")
    try:
        payload = tokens.verify(body.token, PASSWORD_RESET_TOKEN)
        user_id = int(payload["sub"])
    except (Unauthenticated, ValueError) as e:
        raise invalid from e

    user = await db.get(User, user_id)
    if user is None or user.password_reset_token != body.token:
        raise invalid

    user.hashed_password = get_password_hash(body.password)
    user.password_reset_token = None
    user.password_reset_expires = None
    await db.commit()
    logger.info("Password reset completed for user %d", user.id)
    return MessageResponse(message="Password reset successful")
