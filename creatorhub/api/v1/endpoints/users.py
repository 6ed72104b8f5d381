"""
Self-service account endpoints: profile, preferences, personal dashboard
and account deletion.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from creatorhub.api.v1.deps import get_current_user, get_db
from creatorhub.core.access import Role
from creatorhub.core.ai_usage import Feature, can_use_feature, reset_if_needed
from creatorhub.core.security import verify_password
from creatorhub.models.order import Order, OrderItem
from creatorhub.models.product import Product
from creatorhub.models.user import DEFAULT_PREFERENCES, User
from creatorhub.schemas.common import MessageResponse
from creatorhub.schemas.user import (
    DashboardStats,
    DashboardUser,
    DeleteAccountRequest,
    PreferencesResponse,
    PreferencesUpdate,
    ProfileUpdate,
    QuickAction,
    UserDashboardResponse,
    UserProfile,
)

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/profile", response_model=UserProfile)
async def read_profile(user: User = Depends(get_current_user)) -> User:
    return user


@router.put("/profile", response_model=UserProfile)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    changes = body.model_dump(exclude_unset=True, mode="json")
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    logger.info("User %d updated profile fields %s", user.id, sorted(changes))
    return user


@router.put("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    body: PreferencesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PreferencesResponse:
    """Merge the given values into the stored preferences; omitted keys are kept."""
    prefs = copy.deepcopy(user.preferences or DEFAULT_PREFERENCES)
    changes = body.model_dump(exclude_none=True)
    notifications = changes.pop("notifications", None)
    if notifications:
        prefs.setdefault("notifications", {}).update(notifications)
    prefs.update(changes)

    # New object so the JSON column is flagged dirty.
    user.preferences = prefs
    await db.commit()
    return PreferencesResponse(preferences=prefs)


@router.get("/dashboard", response_model=UserDashboardResponse)
async def personal_dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserDashboardResponse:
    if reset_if_needed(user):
        await db.commit()
        logger.info("AI usage counters reset for user %d", user.id)
    available = {feature: can_use_feature(user, feature) for feature in Feature}

    products_listed = (
        await db.execute(select(func.count(Product.id)).where(Product.vendor_id == user.id))
    ).scalar() or 0
    paid_items = await db.execute(
        select(OrderItem.unit_price, OrderItem.quantity)
        .join(Order, Order.id == OrderItem.order_id)
        .where(OrderItem.vendor_id == user.id, Order.payment_status == "completed")
    )
    total_sales = sum(
        (unit_price * quantity for unit_price, quantity in paid_items.all()),
        Decimal("0"),
    )

    return UserDashboardResponse(
        user=DashboardUser(
            name=user.full_name,
            subscription_plan=user.subscription_plan,
            is_vendor=bool(user.is_vendor),
        ),
        stats=DashboardStats(
            websites_generated=user.websites_generated or 0,
            content_generated=user.content_generated or 0,
            logos_generated=user.logos_generated or 0,
            products_listed=products_listed,
            total_sales=total_sales,
        ),
        quick_actions=[
            QuickAction(
                title="Generate Website",
                description="Create a professional website with AI",
                action="generate-website",
                available=available[Feature.WEBSITE],
            ),
            QuickAction(
                title="Create Content",
                description="Generate blog posts and social media content",
                action="generate-content",
                available=available[Feature.CONTENT],
            ),
            QuickAction(
                title="Build Brand Kit",
                description="Create logo concepts, colours and brand guidelines",
                action="generate-brand",
                available=available[Feature.LOGO],
            ),
            QuickAction(
                title="Sell on the Marketplace",
                description="List a digital product or service",
                action="create-product",
                available=True,
            ),
        ],
    )


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    body: DeleteAccountRequest,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Soft delete: deactivate the account, free its email and unlist its products.

    Orders keep pointing at the row, so it is never removed.
    """
    if not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid password")
    if user.role == Role.OWNER.value:
        raise HTTPException(status_code=400, detail="The owner account cannot be deleted")

    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    user.email = f"deleted_{millis}_{user.email}"[:320]
    user.is_active = False
    user.password_reset_token = None
    user.password_reset_expires = None
    await db.execute(
        update(Product)
        .where(Product.vendor_id == user.id, Product.status == "active")
        .values(status="inactive")
    )
    await db.commit()
    response.delete_cookie("access_token")
    logger.info("User %d deleted their account", user.id)
    return MessageResponse(message="Account deleted successfully")
