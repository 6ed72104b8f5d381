"""Pydantic schemas for orders, checkout and vendor sales."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from creatorhub.schemas.common import Pagination


class ShippingAddress(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None


class OrderItemCreate(BaseModel):
    product_id: int
    # Range is enforced by the pricing core (InvalidLineItem -> 400).
    quantity: int = 1


class OrderCreate(BaseModel):
    items: list[OrderItemCreate] = Field(min_length=1, max_length=100)
    shipping_address: ShippingAddress | None = None
    customer_notes: str | None = Field(default=None, max_length=2000)


class OrderUpdate(BaseModel):
    """Fields a customer may edit after checkout. Pricing is not among them."""

    shipping_address: ShippingAddress | None = None
    customer_notes: str | None = Field(default=None, max_length=2000)


class OrderItemRead(BaseModel):
    product_id: int
    product_title: str | None
    vendor_id: int
    quantity: int
    unit_price: Decimal

    model_config = {"from_attributes": True}


class OrderRead(BaseModel):
    id: int
    order_number: str
    customer_id: int
    customer_email: str | None
    items: list[OrderItemRead]
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    platform_fee_rate: Decimal
    platform_fee: Decimal
    vendor_earnings: Decimal
    payment_status: str
    status: str
    is_digital: bool
    shipping_address: dict | None
    customer_notes: str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class OrderCreatedResponse(BaseModel):
    message: str
    order: OrderRead
    payment_required: bool = True


class OrderListResponse(BaseModel):
    orders: list[OrderRead]
    pagination: Pagination


class VendorSale(BaseModel):
    order_id: int
    order_number: str
    status: str
    created_at: datetime | None
    items: list[OrderItemRead]
    gross: Decimal


class VendorSalesResponse(BaseModel):
    sales: list[VendorSale]
    pagination: Pagination


class VendorRecentOrder(BaseModel):
    id: int
    order_number: str
    total: Decimal
    status: str
    created_at: datetime | None


class VendorDashboardStats(BaseModel):
    total_products: int
    active_products: int
    total_sales: Decimal
    total_orders: int


class VendorDashboardResponse(BaseModel):
    stats: VendorDashboardStats
    recent_orders: list[VendorRecentOrder]
