"""
AI feature quotas per subscription plan.

Counters reset once a month; a limit of ``None`` means unlimited.
"""

from __future__ import annotations

import calendar
import enum
from datetime import datetime, timezone
from typing import Any


class Feature(str, enum.Enum):
    WEBSITE = "website"
    CONTENT = "content"
    LOGO = "logo"


AI_LIMITS: dict[str, dict[Feature, int | None]] = {
    "free": {Feature.WEBSITE: 2, Feature.CONTENT: 20, Feature.LOGO: 3},
    "pro": {Feature.WEBSITE: 10, Feature.CONTENT: 100, Feature.LOGO: 15},
    "enterprise": {Feature.WEBSITE: None, Feature.CONTENT: None, Feature.LOGO: None},
}

_COUNTER = {
    Feature.WEBSITE: "websites_generated",
    Feature.CONTENT: "content_generated",
    Feature.LOGO: "logos_generated",
}


def _one_month_before(now: datetime) -> datetime:
    year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
    # Clamp e.g. March 31 -> February 28/29.
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def reset_if_needed(user: Any, now: datetime | None = None) -> bool:
    """Zero the usage counters when the last reset is over a month old."""
    now = now or datetime.now(timezone.utc)
    last_reset = user.ai_usage_reset_at
    if last_reset is not None and last_reset.tzinfo is None:
        last_reset = last_reset.replace(tzinfo=timezone.utc)
    if last_reset is not None and last_reset >= _one_month_before(now):
        return False
    for attr in _COUNTER.values():
        setattr(user, attr, 0)
    user.ai_usage_reset_at = now
    return True


def used_count(user: Any, feature: Feature | str) -> int:
    return getattr(user, _COUNTER[Feature(feature)]) or 0


def quota_limit(user: Any, feature: Feature | str) -> int | None:
    return AI_LIMITS.get(user.subscription_plan, AI_LIMITS["free"])[Feature(feature)]


def remaining_quota(user: Any, feature: Feature | str) -> int | None:
    limit = quota_limit(user, feature)
    if limit is None:
        return None
    return max(0, limit - used_count(user, feature))


def can_use_feature(user: Any, feature: Feature | str, now: datetime | None = None) -> bool:
    reset_if_needed(user, now)
    remaining = remaining_quota(user, feature)
    return remaining is None or remaining > 0


def record_use(user: Any, feature: Feature | str) -> int:
    """Count one successful generation against the monthly quota."""
    attr = _COUNTER[Feature(feature)]
    count = (getattr(user, attr) or 0) + 1
    setattr(user, attr, count)
    return count
