"""
Admin dashboard endpoints.

Every route needs an admin-tier role (admin, moderator or owner). Routes that
change users or listings, or that report money and analytics, also need the
matching permission; the owner passes every permission check.
``/admin/owner-status`` is the exception: any signed-in user may ask what
they are.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorhub.api.v1.deps import (
    get_current_identity,
    get_db,
    require_admin_tier,
    require_owner,
    require_permission,
)
from creatorhub.core.access import ADMIN_TIER, Identity, Permission, Role
from creatorhub.core.pricing import CENT
from creatorhub.models.order import Order
from creatorhub.models.product import Product
from creatorhub.models.user import User
from creatorhub.schemas.admin import (
    AdminDashboardResponse,
    AIUsageTotals,
    AnalyticsResponse,
    DailyCount,
    DailyRevenue,
    PlatformStats,
    ProductTotals,
    RevenueResponse,
    StatsResponse,
    TopProduct,
    UserDetailResponse,
    UserListResponse,
    UserTotals,
)
from creatorhub.schemas.common import Pagination
from creatorhub.schemas.order import OrderRead
from creatorhub.schemas.product import ProductApproval, ProductListResponse, ProductRead
from creatorhub.schemas.user import (
    OwnerStatusResponse,
    UserRead,
    UserRoleUpdate,
    UserStatusUpdate,
)

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)

_PREMIUM_PLANS = ("pro", "enterprise")
_PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
_PENDING_REVIEW = (Product.is_approved.is_(False), Product.rejection_reason.is_(None))


async def _count(db: AsyncSession, *filters) -> int:
    result = await db.execute(select(func.count(User.id)).where(*filters))
    return result.scalar() or 0


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ── Stats ───────────────────────────────────────────────────────────
@router.get("/stats", response_model=StatsResponse)
async def platform_stats(
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin_tier),
) -> StatsResponse:
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    stats = PlatformStats(
        total_users=await _count(db),
        active_users=await _count(db, User.is_active.is_(True)),
        premium_users=await _count(db, User.subscription_plan.in_(_PREMIUM_PLANS)),
        admin_users=await _count(db, User.role.in_([r.value for r in ADMIN_TIER])),
        new_users_today=await _count(db, User.created_at >= today),
    )
    return StatsResponse(
        stats=stats,
        user_role=admin.role,
        permissions=sorted(admin.permissions, key=str),
    )


# ── Users ───────────────────────────────────────────────────────────
@router.get("/users", response_model=UserListResponse)
async def list_users(
    search: str | None = Query(default=None, max_length=100),
    role: Role | None = None,
    status: Literal["all", "active", "inactive"] = "all",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _admin: Identity = Depends(require_admin_tier),
) -> UserListResponse:
    filters = []
    if search:
        safe = search.replace("%", r"\%").replace("_", r"\_")
        pattern = f"%{safe}%"
        filters.append(
            or_(
                User.email.ilike(pattern, escape="\\"),
                User.first_name.ilike(pattern, escape="\\"),
                User.last_name.ilike(pattern, escape="\\"),
            )
        )
    if role is not None:
        filters.append(User.role == role.value)
    if status != "all":
        filters.append(User.is_active.is_(status == "active"))

    total = await _count(db, *filters)
    result = await db.execute(
        select(User)
        .where(*filters)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return UserListResponse(
        users=[UserRead.model_validate(u) for u in result.scalars().all()],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/users/{user_id}", response_model=UserDetailResponse)
async def user_detail(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: Identity = Depends(require_admin_tier),
) -> UserDetailResponse:
    """A user with their listings and their ten most recent orders."""
    user = await _get_user_or_404(db, user_id)
    products = await db.execute(
        select(Product).where(Product.vendor_id == user_id).order_by(Product.id)
    )
    orders = await db.execute(
        select(Order)
        .where(Order.customer_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(10)
    )
    return UserDetailResponse(
        user=UserRead.model_validate(user),
        products=[ProductRead.from_product(p) for p in products.scalars().all()],
        orders=[OrderRead.model_validate(o) for o in orders.scalars().all()],
    )


@router.put("/users/{user_id}/status", response_model=UserRead)
async def update_user_status(
    user_id: int,
    body: UserStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin_tier),
    _perm: Identity = Depends(require_permission(Permission.USER_MANAGEMENT)),
) -> User:
    """Activate or deactivate an account. A deactivated user fails auth at once."""
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot change your own status")

    user = await _get_user_or_404(db, user_id)
    if user.role == Role.OWNER.value and not admin.is_owner:
        raise HTTPException(status_code=403, detail="Cannot modify the owner account")

    user.is_active = body.is_active
    await db.commit()
    await db.refresh(user)
    logger.info(
        "User %d %s by admin %d",
        user_id,
        "activated" if body.is_active else "deactivated",
        admin.id,
    )
    return user


@router.put("/users/{user_id}/role", response_model=UserRead)
async def update_user_role(
    user_id: int,
    body: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    owner: Identity = Depends(require_owner),
) -> User:
    """Owner-only: set a user's role and, optionally, replace their permissions."""
    if user_id == owner.id:
        raise HTTPException(status_code=400, detail="Cannot change your own role")

    user = await _get_user_or_404(db, user_id)
    user.role = body.role.value
    if body.permissions is not None:
        user.permissions = sorted({p.value for p in body.permissions})

    await db.commit()
    await db.refresh(user)
    logger.info(
        "User %d role set to %s (permissions=%s) by owner %d",
        user_id,
        user.role,
        user.permissions,
        owner.id,
    )
    return user


# ── Product moderation ──────────────────────────────────────────────
@router.get("/products/pending", response_model=ProductListResponse)
async def pending_products(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _admin: Identity = Depends(require_admin_tier),
) -> ProductListResponse:
    total = (
        await db.execute(select(func.count(Product.id)).where(*_PENDING_REVIEW))
    ).scalar() or 0
    result = await db.execute(
        select(Product)
        .where(*_PENDING_REVIEW)
        .order_by(Product.created_at, Product.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return ProductListResponse(
        products=[ProductRead.from_product(p) for p in result.scalars().all()],
        pagination=Pagination.build(page, limit, total),
    )


@router.put("/products/{product_id}/approval", response_model=ProductRead)
async def review_product(
    product_id: int,
    body: ProductApproval,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin_tier),
    _perm: Identity = Depends(require_permission(Permission.CONTENT_MODERATION)),
) -> ProductRead:
    """Approve (and list) or reject a product."""
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    if body.is_approved:
        product.is_approved = True
        product.status = "active"
        product.rejection_reason = None
    else:
        product.is_approved = False
        product.status = "inactive"
        product.rejection_reason = body.rejection_reason or "Rejected by moderator"

    await db.commit()
    await db.refresh(product)
    logger.info(
        "Product %d %s by admin %d",
        product_id,
        "approved" if body.is_approved else "rejected",
        admin.id,
    )
    return ProductRead.from_product(product)


# ── Revenue ─────────────────────────────────────────────────────────
def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


async def _paid_totals(db: AsyncSession) -> RevenueResponse:
    """Totals over paid orders, read from the amounts stored at checkout."""
    result = await db.execute(
        select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total), 0),
            func.coalesce(func.sum(Order.platform_fee), 0),
            func.coalesce(func.sum(Order.vendor_earnings), 0),
        ).where(Order.payment_status == "completed")
    )
    count, total, fees, payouts = result.one()
    return RevenueResponse(
        total_orders=count or 0,
        total_revenue=_money(total),
        platform_revenue=_money(fees),
        vendor_payouts=_money(payouts),
    )


async def _ai_usage_totals(db: AsyncSession) -> AIUsageTotals:
    result = await db.execute(
        select(
            func.coalesce(func.sum(User.websites_generated), 0),
            func.coalesce(func.sum(User.content_generated), 0),
            func.coalesce(func.sum(User.logos_generated), 0),
        )
    )
    websites, content, logos = result.one()
    return AIUsageTotals(total_websites=websites, total_content=content, total_logos=logos)


@router.get("/revenue", response_model=RevenueResponse)
async def revenue(
    db: AsyncSession = Depends(get_db),
    _admin: Identity = Depends(require_admin_tier),
    _perm: Identity = Depends(require_permission(Permission.BILLING_MANAGEMENT)),
) -> RevenueResponse:
    return await _paid_totals(db)


# ── Dashboard / analytics ───────────────────────────────────────────
@router.get("/dashboard", response_model=AdminDashboardResponse)
async def admin_dashboard(
    db: AsyncSession = Depends(get_db),
    _admin: Identity = Depends(require_admin_tier),
    _perm: Identity = Depends(require_permission(Permission.ANALYTICS_ACCESS)),
) -> AdminDashboardResponse:
    month_start = datetime.now(timezone.utc).replace(
        day=1, hour=0, minute=0, second=0, microsecond=0
    )
    plans = await db.execute(
        select(User.subscription_plan, func.count(User.id)).group_by(User.subscription_plan)
    )
    total_products = (await db.execute(select(func.count(Product.id)))).scalar() or 0
    pending = (
        await db.execute(select(func.count(Product.id)).where(*_PENDING_REVIEW))
    ).scalar() or 0

    return AdminDashboardResponse(
        users=UserTotals(
            total=await _count(db),
            active=await _count(db, User.is_active.is_(True)),
            new_this_month=await _count(db, User.created_at >= month_start),
            subscriptions={plan: n for plan, n in plans.all()},
        ),
        products=ProductTotals(total=total_products, pending=pending),
        revenue=await _paid_totals(db),
        ai_usage=await _ai_usage_totals(db),
    )


@router.get("/analytics", response_model=AnalyticsResponse)
async def analytics(
    period: Literal["7d", "30d", "90d"] = "30d",
    db: AsyncSession = Depends(get_db),
    _admin: Identity = Depends(require_admin_tier),
    _perm: Identity = Depends(require_permission(Permission.ANALYTICS_ACCESS)),
) -> AnalyticsResponse:
    """Daily registrations and paid revenue over the period, plus top sellers."""
    since = datetime.now(timezone.utc) - timedelta(days=_PERIOD_DAYS[period])

    joined = await db.execute(select(User.created_at).where(User.created_at >= since))
    registrations = Counter(ts.date().isoformat() for ts in joined.scalars() if ts is not None)

    paid = await db.execute(
        select(Order.created_at, Order.total, Order.platform_fee).where(
            Order.created_at >= since, Order.payment_status == "completed"
        )
    )
    days: dict[str, DailyRevenue] = {}
    for created_at, total, fee in paid.all():
        key = created_at.date().isoformat()
        day = days.setdefault(
            key, DailyRevenue(date=key, revenue=Decimal("0"), platform_fee=Decimal("0"), orders=0)
        )
        day.revenue += total
        day.platform_fee += fee
        day.orders += 1

    top = await db.execute(
        select(Product)
        .where(Product.status == "active")
        .order_by(Product.purchases.desc(), Product.id)
        .limit(10)
    )

    return AnalyticsResponse(
        period=period,
        since=since,
        user_registrations=[
            DailyCount(date=day, count=n) for day, n in sorted(registrations.items())
        ],
        revenue=[days[key] for key in sorted(days)],
        ai_usage=await _ai_usage_totals(db),
        top_products=[TopProduct.model_validate(p) for p in top.scalars().all()],
    )


# ── Owner status ────────────────────────────────────────────────────
@router.get("/owner-status", response_model=OwnerStatusResponse)
async def owner_status(
    identity: Identity = Depends(get_current_identity),
) -> OwnerStatusResponse:
    return OwnerStatusResponse(
        is_owner=identity.is_owner,
        is_admin=identity.is_admin_tier,
        role=identity.role,
        permissions=sorted(identity.permissions, key=str),
        email=identity.email,
    )
