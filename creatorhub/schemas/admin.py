"""Pydantic schemas for the admin dashboard."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from creatorhub.core.access import Permission, Role
from creatorhub.schemas.common import Pagination
from creatorhub.schemas.order import OrderRead
from creatorhub.schemas.product import ProductRead
from creatorhub.schemas.user import UserRead


class PlatformStats(BaseModel):
    total_users: int
    active_users: int
    premium_users: int
    admin_users: int
    new_users_today: int


class StatsResponse(BaseModel):
    stats: PlatformStats
    user_role: Role
    permissions: list[Permission]


class UserListResponse(BaseModel):
    users: list[UserRead]
    pagination: Pagination


class UserDetailResponse(BaseModel):
    user: UserRead
    products: list[ProductRead]
    orders: list[OrderRead]


class RevenueResponse(BaseModel):
    total_orders: int
    total_revenue: Decimal
    platform_revenue: Decimal
    vendor_payouts: Decimal


# ── Dashboard / analytics ───────────────────────────────────────────
class UserTotals(BaseModel):
    total: int
    active: int
    new_this_month: int
    subscriptions: dict[str, int]


class ProductTotals(BaseModel):
    total: int
    pending: int


class AIUsageTotals(BaseModel):
    total_websites: int
    total_content: int
    total_logos: int


class AdminDashboardResponse(BaseModel):
    users: UserTotals
    products: ProductTotals
    revenue: RevenueResponse
    ai_usage: AIUsageTotals


class DailyCount(BaseModel):
    date: str
    count: int


class DailyRevenue(BaseModel):
    date: str
    revenue: Decimal
    platform_fee: Decimal
    orders: int


class TopProduct(BaseModel):
    id: int
    title: str
    vendor_name: str | None
    purchases: int
    revenue: Decimal

    model_config = {"from_attributes": True}


class AnalyticsResponse(BaseModel):
    period: str
    since: datetime
    user_registrations: list[DailyCount]
    revenue: list[DailyRevenue]
    ai_usage: AIUsageTotals
    top_products: list[TopProduct]
