"""Pydantic schemas for the AI tools and their usage quotas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class FeatureUsage(BaseModel):
    used: int
    limit: int | None
    remaining: int | None
    available: bool


class AIUsageResponse(BaseModel):
    plan: str
    websites: FeatureUsage
    content: FeatureUsage
    logos: FeatureUsage


# ── Generation requests ─────────────────────────────────────────────
class WebsiteRequest(BaseModel):
    business_type: str = Field(min_length=1, max_length=100)
    business_name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=2000)
    industry: str = Field(default="general", max_length=100)
    target_audience: str = Field(default="general audience", max_length=200)
    style: str = Field(default="modern", max_length=100)
    pages: list[str] = Field(
        default_factory=lambda: ["home", "about", "services", "contact"],
        min_length=1,
        max_length=12,
    )


class BrandRequest(BaseModel):
    business_name: str = Field(min_length=1, max_length=200)
    industry: str = Field(min_length=1, max_length=100)
    target_audience: str = Field(default="general audience", max_length=200)
    brand_personality: str = Field(default="professional", max_length=200)
    values: list[str] = Field(default_factory=list, max_length=10)


class ContentRequest(BaseModel):
    content_type: str = Field(min_length=1, max_length=50)
    # blog-post | social-media | product-description | email-campaign | anything else
    topic: str = Field(min_length=1, max_length=500)
    tone: str = Field(default="professional", max_length=50)
    length: str = Field(default="medium", max_length=50)
    target_audience: str = Field(default="general audience", max_length=200)
    keywords: list[str] = Field(default_factory=list, max_length=20)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(max_length=4000)


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)
    context: list[ChatMessage] = Field(default_factory=list, max_length=20)


# ── Generation responses ────────────────────────────────────────────
class GenerationResponse(BaseModel):
    content: str
    usage: FeatureUsage


class ContentResponse(GenerationResponse):
    content_type: str


class ChatResponse(BaseModel):
    response: str
    timestamp: datetime
