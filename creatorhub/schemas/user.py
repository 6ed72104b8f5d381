"""Pydantic schemas for User CRUD and auth flows."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, HttpUrl, field_validator

from creatorhub.core.access import Permission, Role


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("Invalid email address")
    return v


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=6, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be empty")
        return v


class UserRead(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    username: str | None
    role: Role
    permissions: list[str]
    is_active: bool
    subscription_plan: str
    is_vendor: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(min_length=6, max_length=128)


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserRoleUpdate(BaseModel):
    role: Role
    permissions: list[Permission] | None = None


class OwnerStatusResponse(BaseModel):
    is_owner: bool
    is_admin: bool
    role: Role
    permissions: list[Permission]
    email: str


# ── Profile / preferences (self-service) ────────────────────────────
Industry = Literal[
    "Technology",
    "Marketing",
    "Design",
    "Education",
    "Healthcare",
    "Finance",
    "Real Estate",
    "E-commerce",
    "Consulting",
    "Other",
]
SocialNetwork = Literal["linkedin", "twitter", "instagram", "facebook", "youtube"]


class UserProfile(UserRead):
    bio: str | None
    phone: str | None
    city: str | None
    country: str | None
    industry: str | None
    skills: list[str]
    website: str | None
    social_links: dict[str, str]
    preferences: dict
    store_name: str | None
    brand_guidelines: str | None
    last_login: datetime | None
    login_count: int


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, pattern=r"^\+?[0-9 ()\-]{7,20}$")
    city: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    industry: Industry | None = None
    skills: list[str] | None = Field(default=None, max_length=30)
    website: HttpUrl | None = None
    social_links: dict[SocialNetwork, str] | None = None

    @field_validator("first_name", "last_name", "skills", "social_links")
    @classmethod
    def _not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Name must not be empty")
        return v


class NotificationPreferences(BaseModel):
    email: bool | None = None
    push: bool | None = None
    marketing: bool | None = None


class PreferencesUpdate(BaseModel):
    notifications: NotificationPreferences | None = None
    theme: Literal["light", "dark", "system"] | None = None
    language: str | None = Field(default=None, pattern=r"^[a-z]{2}(-[A-Z]{2})?$")


class PreferencesResponse(BaseModel):
    preferences: dict


class DeleteAccountRequest(BaseModel):
    password: str


# ── Personal dashboard ──────────────────────────────────────────────
class DashboardUser(BaseModel):
    name: str
    subscription_plan: str
    is_vendor: bool


class DashboardStats(BaseModel):
    websites_generated: int
    content_generated: int
    logos_generated: int
    products_listed: int
    total_sales: Decimal


class QuickAction(BaseModel):
    title: str
    description: str
    action: str
    available: bool


class UserDashboardResponse(BaseModel):
    user: DashboardUser
    stats: DashboardStats
    quick_actions: list[QuickAction]
