"""
Order & OrderItem models.

Pricing columns are written once, from a ``PricedOrder``, when the order is
created. Nothing recomputes them on later saves.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, Integer,
                        Numeric, String, Text)
from sqlalchemy.orm import relationship

from creatorhub.core.pricing import PricedOrder
from creatorhub.db.base import Base

ORDER_STATUSES = ["pending", "confirmed", "processing", "shipped", "delivered", "cancelled", "refunded"]
PAYMENT_STATUSES = ["pending", "completed", "failed", "refunded", "cancelled"]


class Order(Base):
    __tablename__ = "orders"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    order_number: str = Column(String(40), unique=True, nullable=False, index=True)  # type: ignore[assignment]

    customer_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    customer_email: str | None = Column(String(320), nullable=True)  # type: ignore[assignment]

    # Pricing (set once at checkout)
    subtotal: Decimal = Column(Numeric(12, 2), nullable=False)  # type: ignore[assignment]
    tax: Decimal = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]
    shipping: Decimal = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))  # type: ignore[assignment]
    total: Decimal = Column(Numeric(12, 2), nullable=False)  # type: ignore[assignment]
    platform_fee_rate: Decimal = Column(Numeric(5, 4), nullable=False)  # type: ignore[assignment]
    platform_fee: Decimal = Column(Numeric(12, 2), nullable=False)  # type: ignore[assignment]
    vendor_earnings: Decimal = Column(Numeric(12, 2), nullable=False)  # type: ignore[assignment]

    # Payment / fulfilment
    payment_status: str = Column(String(20), nullable=False, default="pending")  # type: ignore[assignment]
    payment_method: str | None = Column(String(40), nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="pending", index=True)  # type: ignore[assignment]
    is_digital: bool = Column(Boolean, default=True)  # type: ignore[assignment]
    shipping_address: dict | None = Column(JSON, nullable=True)  # type: ignore[assignment]
    tracking_number: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]

    customer_notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    admin_notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]

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

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @classmethod
    def from_priced(
        cls,
        priced: PricedOrder,
        *,
        customer_id: int,
        customer_email: str | None,
        **fields,
    ) -> Order:
        return cls(
            order_number=priced.order_number,
            customer_id=customer_id,
            customer_email=customer_email,
            subtotal=priced.subtotal,
            tax=priced.tax,
            shipping=priced.shipping,
            total=priced.total,
            platform_fee_rate=priced.platform_fee_rate,
            platform_fee=priced.platform_fee,
            vendor_earnings=priced.vendor_earnings,
            items=[
                OrderItem(
                    product_id=item.product_id,
                    product_title=item.title,
                    vendor_id=item.vendor_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in priced.items
            ],
            **fields,
        )


class OrderItem(Base):
    __tablename__ = "order_items"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    order_id: int = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)  # type: ignore[assignment]
    product_id: int = Column(Integer, ForeignKey("products.id"), nullable=False)  # type: ignore[assignment]
    product_title: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    vendor_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    quantity: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    unit_price: Decimal = Column(Numeric(12, 2), nullable=False)  # type: ignore[assignment]
    # price snapshot at checkout

    order = relationship("Order", back_populates="items")
