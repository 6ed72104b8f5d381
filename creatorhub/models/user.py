"""
User model: accounts, role-based access control, subscription and AI usage.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from creatorhub.db.base import Base

DEFAULT_PREFERENCES = {
    "notifications": {"email": True, "push": True, "marketing": False},
    "theme": "light",
    "language": "en",
}


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    first_name: str = Column(String(100), nullable=False, default="")  # type: ignore[assignment]
    last_name: str = Column(String(100), nullable=False, default="")  # type: ignore[assignment]
    username: str | None = Column(String(100), unique=True, nullable=True)  # type: ignore[assignment]
    bio: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]

    # Profile
    phone: str | None = Column(String(40), nullable=True)  # type: ignore[assignment]
    city: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    country: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    industry: str | None = Column(String(40), nullable=True)  # type: ignore[assignment]
    skills: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    website: str | None = Column(String(300), nullable=True)  # type: ignore[assignment]
    social_links: dict = Column(JSON, nullable=False, default=dict)  # type: ignore[assignment]
    preferences: dict = Column(  # type: ignore[assignment]
        JSON,
        nullable=False,
        default=lambda: copy.deepcopy(DEFAULT_PREFERENCES),
    )

    # Access control
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="user",
        server_default="user",
    )  # user | admin | moderator | owner
    permissions: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    is_email_verified: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]

    # Subscription
    subscription_plan: str = Column(String(20), nullable=False, default="free")  # type: ignore[assignment]
    # free | pro | enterprise
    subscription_status: str = Column(String(20), nullable=False, default="active")  # type: ignore[assignment]

    # AI usage (reset monthly)
    websites_generated: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    content_generated: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    logos_generated: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    ai_usage_reset_at: datetime | None = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    # Marketplace
    is_vendor: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    store_name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]

    # Brand kit (latest generated guidelines)
    brand_guidelines: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    brand_kit_updated_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    # Password reset
    password_reset_token: str | None = Column(String(512), nullable=True)  # type: ignore[assignment]
    password_reset_expires: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    last_login: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    login_count: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
