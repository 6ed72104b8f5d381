"""Pydantic schemas for currency localization."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from creatorhub.core.currency import CURRENCY_RATES


class LocationRead(BaseModel):
    country: str
    country_name: str
    city: str
    timezone: str
    currency: str


class PlanPrice(BaseModel):
    amount: Decimal
    formatted: str


class PlanPricing(BaseModel):
    monthly: PlanPrice
    yearly: PlanPrice
    features: list[str]
    savings: int


class LocalizedPricingResponse(BaseModel):
    pricing: dict[str, PlanPricing]
    currency: str
    symbol: str
    country_code: str
    detected_location: LocationRead


class ConvertRequest(BaseModel):
    amount: Decimal = Field(ge=0)
    from_currency: str
    to_currency: str

    @field_validator("from_currency", "to_currency")
    @classmethod
    def _known(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in CURRENCY_RATES:
            raise ValueError(f"Currency must be one of: {sorted(CURRENCY_RATES)}")
        return v


class ConvertResponse(BaseModel):
    original_amount: Decimal
    from_currency: str
    to_currency: str
    converted_amount: Decimal
    formatted_amount: str
