"""
Product model: marketplace listings owned by a vendor.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, Integer,
                        Numeric, String, Text)
from sqlalchemy.orm import relationship

from creatorhub.db.base import Base

PRODUCT_CATEGORIES = [
    "digital-products",
    "courses",
    "templates",
    "ebooks",
    "software",
    "consulting",
    "design-services",
    "marketing-services",
    "physical-products",
    "other",
]

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    return _SLUG_RE.sub("-", title.lower()).strip("-")


class Product(Base):
    __tablename__ = "products"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    title: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    description: str = Column(Text, nullable=False)  # type: ignore[assignment]
    short_description: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    slug: str = Column(String(240), unique=True, nullable=False, index=True)  # type: ignore[assignment]

    vendor_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    vendor_name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]

    category: str = Column(String(40), nullable=False, index=True)  # type: ignore[assignment]
    tags: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    type: str = Column(String(20), nullable=False, default="digital")  # type: ignore[assignment]
    # digital | physical | service
    license: str = Column(String(20), nullable=False, default="personal")  # type: ignore[assignment]

    # Pricing (base currency)
    price: Decimal = Column(Numeric(12, 2), nullable=False)  # type: ignore[assignment]
    currency: str = Column(String(3), nullable=False, default="USD")  # type: ignore[assignment]
    sale_price: Decimal | None = Column(Numeric(12, 2), nullable=True)  # type: ignore[assignment]
    is_on_sale: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    sale_start_date: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    sale_end_date: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    # Moderation
    status: str = Column(String(20), nullable=False, default="draft", index=True)  # type: ignore[assignment]
    # draft | active | inactive | suspended
    is_approved: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    rejection_reason: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]

    # Analytics
    views: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    purchases: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    revenue: Decimal = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]

    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    vendor = relationship("User")
