"""
Display-currency conversion against a static USD rate table.

Only used for showing prices; stored orders are always in the base currency.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from creatorhub.core.pricing import CENT, to_money

CURRENCY_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "ZAR": Decimal("18.50"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.73"),
    "AUD": Decimal("1.35"),
    "CAD": Decimal("1.25"),
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "ZAR": "R",
    "EUR": "€",
    "GBP": "£",
    "AUD": "A$",
    "CAD": "C$",
}

COUNTRY_TO_CURRENCY: dict[str, str] = {
    "ZA": "ZAR",
    "US": "USD",
    "GB": "GBP",
    "AU": "AUD",
    "CA": "CAD",
    "DE": "EUR",
    "FR": "EUR",
    "NL": "EUR",
    "IT": "EUR",
    "ES": "EUR",
}

# Subscription plans, priced in USD.
BASE_PLAN_PRICING: dict[str, dict] = {
    "starter": {
        "monthly": Decimal("29"),
        "yearly": Decimal("290"),
        "features": [
            "5 AI Website Generations",
            "Basic Branding Tools",
            "Community Access",
            "Email Support",
        ],
    },
    "professional": {
        "monthly": Decimal("79"),
        "yearly": Decimal("790"),
        "features": [
            "Unlimited AI Generations",
            "Advanced Branding Suite",
            "Marketplace Access",
            "Priority Support",
            "Custom Domains",
            "Analytics Dashboard",
        ],
    },
    "enterprise": {
        "monthly": Decimal("199"),
        "yearly": Decimal("1990"),
        "features": [
            "Everything in Professional",
            "White-label Solutions",
            "API Access",
            "Dedicated Support",
            "Custom Integrations",
            "Advanced Analytics",
        ],
    },
}


class UnsupportedCurrency(ValueError):
    pass


def detect_currency_from_country(country_code: str | None) -> str:
    return COUNTRY_TO_CURRENCY.get((country_code or "").upper(), "USD")


def _rate(currency: str) -> Decimal:
    try:
        return CURRENCY_RATES[currency.upper()]
    except KeyError:
        raise UnsupportedCurrency(f"Unsupported currency: {currency}") from None


def convert_price(
    amount: Decimal | int | float | str,
    from_currency: str = "USD",
    to_currency: str = "USD",
) -> Decimal:
    """Convert via USD and round half-up to cents."""
    amount = to_money(amount)
    if from_currency.upper() == to_currency.upper():
        return amount
    usd_amount = amount / _rate(from_currency)
    return (usd_amount * _rate(to_currency)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_price(amount: Decimal | int | float | str, currency: str = "USD") -> str:
    """``R1,234.5`` style: thousands separators, at most two decimals."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), "$")
    value = to_money(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"{symbol}{text}"


def localized_plan_pricing(currency: str) -> dict[str, dict]:
    pricing: dict[str, dict] = {}
    for plan, base in BASE_PLAN_PRICING.items():
        monthly = convert_price(base["monthly"], "USD", currency)
        yearly = convert_price(base["yearly"], "USD", currency)
        twelve_months = base["monthly"] * 12
        savings = ((twelve_months - base["yearly"]) / twelve_months * 100).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        pricing[plan] = {
            "monthly": {"amount": monthly, "formatted": format_price(monthly, currency)},
            "yearly": {"amount": yearly, "formatted": format_price(yearly, currency)},
            "features": list(base["features"]),
            "savings": int(savings),
        }
    return pricing
