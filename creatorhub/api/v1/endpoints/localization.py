"""
Localization endpoints: visitor location and display-currency pricing.

Public routes. Geolocation failures fall back to the default location.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request

from creatorhub.core.config import settings
from creatorhub.core.currency import (
    CURRENCY_RATES,
    CURRENCY_SYMBOLS,
    convert_price,
    detect_currency_from_country,
    format_price,
    localized_plan_pricing,
)
from creatorhub.core.geolocation import GeolocationService, Location, client_ip
from creatorhub.schemas.localization import (
    ConvertRequest,
    ConvertResponse,
    LocalizedPricingResponse,
    LocationRead,
)

router = APIRouter(prefix="/localization", tags=["localization"])
logger = logging.getLogger(__name__)


async def get_geolocation_service() -> AsyncGenerator[GeolocationService, None]:
    async with httpx.AsyncClient(timeout=settings.GEOLOCATION_TIMEOUT_SECONDS) as http:
        yield GeolocationService(http, base_url=settings.GEOLOCATION_API_URL)


async def _locate(request: Request, geo: GeolocationService) -> Location:
    peer = request.client.host if request.client else None
    return await geo.location_for_ip(client_ip(request.headers, peer))


@router.get("/location", response_model=LocationRead)
async def get_location(
    request: Request,
    geo: GeolocationService = Depends(get_geolocation_service),
) -> LocationRead:
    location = await _locate(request, geo)
    return LocationRead(**location.as_dict())


@router.get("/pricing", response_model=LocalizedPricingResponse)
async def get_localized_pricing(
    request: Request,
    currency: str | None = None,
    geo: GeolocationService = Depends(get_geolocation_service),
) -> LocalizedPricingResponse:
    """Subscription plan prices in the visitor's currency (or ``?currency=``)."""
    location = await _locate(request, geo)

    if currency:
        currency = currency.strip().upper()
        if currency not in CURRENCY_RATES:
            raise HTTPException(status_code=400, detail=f"Unsupported currency: {currency}")
    elif location.currency in CURRENCY_RATES:
        currency = location.currency
    else:
        currency = detect_currency_from_country(location.country)

    logger.debug("Pricing for %s shown in %s", location.country, currency)
    return LocalizedPricingResponse(
        pricing=localized_plan_pricing(currency),
        currency=currency,
        symbol=CURRENCY_SYMBOLS[currency],
        country_code=location.country,
        detected_location=LocationRead(**location.as_dict()),
    )


@router.post("/convert", response_model=ConvertResponse)
async def convert(body: ConvertRequest) -> ConvertResponse:
    converted = convert_price(body.amount, body.from_currency, body.to_currency)
    return ConvertResponse(
        original_amount=body.amount,
        from_currency=body.from_currency,
        to_currency=body.to_currency,
        converted_amount=converted,
        formatted_amount=format_price(converted, body.to_currency),
    )
