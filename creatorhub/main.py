"""
CreatorHub: Application entry point.

This is the **only** file that assembles the app. All business logic
lives in the `api/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select

from creatorhub.api.v1.api import api_router
from creatorhub.api.v1.endpoints.auth import limiter
from creatorhub.core.access import Permission, Role
from creatorhub.core.config import settings
from creatorhub.core.exceptions import register_exception_handlers
from creatorhub.core.security import get_password_hash
from creatorhub.db.base import Base
from creatorhub.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from creatorhub.models.order import Order, OrderItem  # noqa: F401
from creatorhub.models.product import Product  # noqa: F401
from creatorhub.models.user import User

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_owner() -> None:
    """Create the platform owner on first run, holding the full permission catalog."""
    async with async_session_factory() as session:
        result = await session.execute(
            select(User).where(User.email == settings.FIRST_OWNER_EMAIL)
        )
        if result.scalar_one_or_none() is not None:
            return
        owner = User(
            email=settings.FIRST_OWNER_EMAIL,
            hashed_password=get_password_hash(settings.FIRST_OWNER_PASSWORD),
            first_name="Platform",
            last_name="Owner",
            username="owner",
            role=Role.OWNER.value,
            permissions=[p.value for p in Permission],
        )
        session.add(owner)
        await session.commit()
        logger.info(
            "Default owner created: %s (password: <redacted>)",
            settings.FIRST_OWNER_EMAIL,
        )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    await seed_owner()

    logger.info("🚀 %s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Creator platform: marketplace, admin dashboard and localized pricing",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Rate limiting (slowapi reads the limiter from app.state)
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
