"""
AI tools: website, brand kit and content generation, the assistant chat,
and how much of the monthly quota the caller has left.

Generation routes check the quota first and only count a use once the model
has answered, so a failed call never costs the user anything.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends, HTTPException
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from creatorhub.api.v1.deps import get_current_user, get_db
from creatorhub.core.ai_generation import ContentGenerator
from creatorhub.core.ai_usage import (
    Feature,
    can_use_feature,
    quota_limit,
    record_use,
    remaining_quota,
    reset_if_needed,
    used_count,
)
from creatorhub.core.config import settings
from creatorhub.core.exceptions import GenerationUnavailable
from creatorhub.models.user import User
from creatorhub.schemas.ai import (
    AIUsageResponse,
    BrandRequest,
    ChatRequest,
    ChatResponse,
    ContentRequest,
    ContentResponse,
    FeatureUsage,
    GenerationResponse,
    WebsiteRequest,
)

router = APIRouter(prefix="/ai", tags=["ai"])
logger = logging.getLogger(__name__)


async def get_content_generator() -> AsyncGenerator[ContentGenerator, None]:
    if not settings.OPENAI_API_KEY:
        raise GenerationUnavailable("OPENAI_API_KEY is not configured")
    async with httpx.AsyncClient(timeout=settings.OPENAI_TIMEOUT_SECONDS) as http:
        client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            max_retries=settings.OPENAI_MAX_RETRIES,
            http_client=http,
        )
        yield ContentGenerator(
            client,
            model=settings.OPENAI_MODEL,
            chat_model=settings.OPENAI_CHAT_MODEL,
        )


def _usage(user: User, feature: Feature) -> FeatureUsage:
    remaining = remaining_quota(user, feature)
    return FeatureUsage(
        used=used_count(user, feature),
        limit=quota_limit(user, feature),
        remaining=remaining,
        available=remaining is None or remaining > 0,
    )


def _require_quota(user: User, feature: Feature, what: str) -> None:
    if not can_use_feature(user, feature):
        raise HTTPException(
            status_code=403,
            detail=f"AI usage limit exceeded. Upgrade your plan to generate more {what}",
        )


async def _record(db: AsyncSession, user: User, feature: Feature) -> None:
    count = record_use(user, feature)
    await db.commit()
    logger.info("User %d generated %s (%d this month)", user.id, feature.value, count)


@router.post("/generate-website", response_model=GenerationResponse)
async def generate_website(
    body: WebsiteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    generator: ContentGenerator = Depends(get_content_generator),
) -> GenerationResponse:
    _require_quota(user, Feature.WEBSITE, "websites")
    content = await generator.website(**body.model_dump())
    await _record(db, user, Feature.WEBSITE)
    return GenerationResponse(content=content, usage=_usage(user, Feature.WEBSITE))


@router.post("/generate-brand", response_model=GenerationResponse)
async def generate_brand(
    body: BrandRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    generator: ContentGenerator = Depends(get_content_generator),
) -> GenerationResponse:
    """Generate brand guidelines and keep them as the user's current brand kit."""
    _require_quota(user, Feature.LOGO, "branding assets")
    guidelines = await generator.brand_kit(**body.model_dump())
    user.brand_guidelines = guidelines
    user.brand_kit_updated_at = datetime.now(timezone.utc)
    await _record(db, user, Feature.LOGO)
    return GenerationResponse(content=guidelines, usage=_usage(user, Feature.LOGO))


@router.post("/generate-content", response_model=ContentResponse)
async def generate_content(
    body: ContentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    generator: ContentGenerator = Depends(get_content_generator),
) -> ContentResponse:
    _require_quota(user, Feature.CONTENT, "content")
    fields = body.model_dump(exclude={"content_type"})
    content = await generator.content(body.content_type, **fields)
    await _record(db, user, Feature.CONTENT)
    return ContentResponse(
        content=content,
        content_type=body.content_type,
        usage=_usage(user, Feature.CONTENT),
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    user: User = Depends(get_current_user),
    generator: ContentGenerator = Depends(get_content_generator),
) -> ChatResponse:
    """Assistant chat. Not metered."""
    reply = await generator.chat(
        user,
        body.message,
        [m.model_dump() for m in body.context],
    )
    return ChatResponse(response=reply, timestamp=datetime.now(timezone.utc))


@router.get("/usage", response_model=AIUsageResponse)
async def ai_usage(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AIUsageResponse:
    if reset_if_needed(user):
        await db.commit()
        logger.info("AI usage counters reset for user %d", user.id)

    return AIUsageResponse(
        plan=user.subscription_plan,
        websites=_usage(user, Feature.WEBSITE),
        content=_usage(user, Feature.CONTENT),
        logos=_usage(user, Feature.LOGO),
    )
