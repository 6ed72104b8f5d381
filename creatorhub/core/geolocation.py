"""
IP → country / location lookup against ipapi.co, with a fixed fallback.

Lookup failures are never fatal: pricing display just falls back to the
default location.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import asdict, dataclass

import httpx

from creatorhub.core.currency import detect_currency_from_country

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    country: str
    country_name: str
    city: str
    timezone: str
    currency: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


DEFAULT_LOCATION = Location(
    country="ZA",
    country_name="South Africa",
    city="Cape Town",
    timezone="Africa/Johannesburg",
    currency="ZAR",
)


def client_ip(headers: dict[str, str] | object, peer: str | None) -> str:
    """Pick the client IP: first X-Forwarded-For hop, X-Real-IP, then the socket peer."""
    forwarded = headers.get("x-forwarded-for")  # type: ignore[attr-defined]
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = headers.get("x-real-ip")  # type: ignore[attr-defined]
    if real_ip:
        return real_ip.strip()
    return peer or "127.0.0.1"


def _is_local(ip: str) -> bool:
    ip = ip.removeprefix("::ffff:")
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return True
    return addr.is_loopback or addr.is_private


class GeolocationService:
    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str = "https://ipapi.co",
        default: Location = DEFAULT_LOCATION,
    ) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._default = default

    async def location_for_ip(self, ip: str) -> Location:
        if _is_local(ip):
            return self._default
        ip = ip.removeprefix("::ffff:")
        try:
            resp = await self._http.get(
                f"{self._base_url}/{ip}/json/",
                headers={"User-Agent": "CreatorHub/1.0"},
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geolocation lookup failed for %s: %s", ip, e)
            return self._default

        if not isinstance(data, dict) or data.get("error"):
            logger.warning("Geolocation lookup returned no data for %s", ip)
            return self._default

        country = data.get("country_code") or self._default.country
        return Location(
            country=country,
            country_name=data.get("country_name") or self._default.country_name,
            city=data.get("city") or "Unknown",
            timezone=data.get("timezone") or self._default.timezone,
            currency=data.get("currency") or detect_currency_from_country(country),
        )
