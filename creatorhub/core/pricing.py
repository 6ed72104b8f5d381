"""
Order pricing: line items in, priced and numbered order out.

All money is ``Decimal``. The platform fee is rounded half-up to cents and
vendor earnings take whatever is left of the subtotal, so the two always add
back up to the subtotal exactly.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from creatorhub.core.exceptions import InvalidLineItem

PLATFORM_FEE_RATE = Decimal("0.10")
CENT = Decimal("0.01")
ZERO = Decimal("0")

_BASE36 = string.digits + string.ascii_uppercase


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Coerce ``value`` to Decimal without going through binary float digits."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary amount")
    return Decimal(str(value))


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_order_number(now: datetime | None = None, prefix: str = "M7R") -> str:
    """``<PREFIX>-<base36 epoch millis>-<5 random base36 chars>``."""
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    random_part = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"{prefix}-{_base36(millis)}-{random_part}".upper()


@dataclass(frozen=True)
class LineItem:
    product_id: int
    quantity: int
    unit_price: Decimal
    vendor_id: int
    title: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PricedOrder:
    order_number: str
    items: tuple[LineItem, ...]
    subtotal: Decimal
    platform_fee_rate: Decimal
    platform_fee: Decimal
    vendor_earnings: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def _validate(item: LineItem) -> LineItem:
    if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
        raise InvalidLineItem(f"Quantity for product {item.product_id} must be an integer")
    if item.quantity < 1:
        raise InvalidLineItem(f"Quantity for product {item.product_id} must be at least 1")
    price = to_money(item.unit_price)
    if not price.is_finite() or price < ZERO:
        raise InvalidLineItem(f"Price for product {item.product_id} must not be negative")
    if price is not item.unit_price:
        item = LineItem(item.product_id, item.quantity, price, item.vendor_id, item.title)
    return item


def price_order(
    items: Iterable[LineItem],
    tax: Decimal | int | float | str = ZERO,
    shipping: Decimal | int | float | str = ZERO,
    *,
    order_number: str | None = None,
    order_prefix: str = "M7R",
) -> PricedOrder:
    """Compute subtotal, fee split and total once, at order creation."""
    validated = tuple(_validate(item) for item in items)
    if not validated:
        raise InvalidLineItem("An order needs at least one line item")

    tax = to_money(tax)
    shipping = to_money(shipping)
    if not (tax.is_finite() and shipping.is_finite()) or tax < ZERO or shipping < ZERO:
        raise ValueError("Tax and shipping must be finite and not negative")

    subtotal = sum((item.line_total for item in validated), ZERO)
    platform_fee = (subtotal * PLATFORM_FEE_RATE).quantize(CENT, rounding=ROUND_HALF_UP)

    return PricedOrder(
        order_number=order_number or generate_order_number(prefix=order_prefix),
        items=validated,
        subtotal=subtotal,
        platform_fee_rate=PLATFORM_FEE_RATE,
        platform_fee=platform_fee,
        vendor_earnings=subtotal - platform_fee,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping,
    )


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def current_unit_price(product: Any, as_of: datetime | None = None) -> Decimal:
    """Sale price while a sale window is active (inclusive), list price otherwise."""
    price = to_money(product.price)
    if not product.is_on_sale or product.sale_price is None:
        return price
    if product.sale_start_date is None or product.sale_end_date is None:
        return price

    as_of = _ensure_utc(as_of or datetime.now(timezone.utc))
    if _ensure_utc(product.sale_start_date) <= as_of <= _ensure_utc(product.sale_end_date):
        return to_money(product.sale_price)
    return price
