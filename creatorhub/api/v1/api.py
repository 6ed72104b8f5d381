"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from creatorhub.api.v1.endpoints import (
    admin,
    ai,
    auth,
    health,
    localization,
    marketplace,
    users,
)

api_router = APIRouter()

# Auth (register, login, refresh, password reset)
api_router.include_router(auth.router)

# Profile, preferences, personal dashboard, account deletion
api_router.include_router(users.router)

# Products, orders, vendor dashboard
api_router.include_router(marketplace.router)

# Admin dashboard, moderation, revenue
api_router.include_router(admin.router)

# Currency / location display helpers
api_router.include_router(localization.router)

# AI generation and quota
api_router.include_router(ai.router)

# Health
api_router.include_router(health.router)
