"""
Per-product pricing.

Rounding rule: each discounted unit price is rounded half-up to a whole peso
(``floor(x + 0.5)``) and line totals are ``unit_price * quantity``. Summing
rounded lines can differ by a few pesos from discounting the subtotal once;
that difference is kept as is.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from bakery.catalog.models import Product
from bakery.core.config import BakeryConfig, get_config


@dataclass(frozen=True)
class PricingResult:
    original_unit_price: int
    unit_price: int
    discount_percent: float
    discount_per_unit: int
    original_total: int
    discount_total: int
    total: int


def as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def coerce_amount(value: Any) -> int:
    """Monetary input as a non-negative whole amount; negative/NaN/garbage -> 0."""
    number = as_number(value)
    if number is None or number <= 0:
        return 0
    return round_half_up(number)


def coerce_quantity(value: Any, default: int = 1) -> int:
    """Quantity as an integer >= 1; non-numeric or non-finite input -> default."""
    number = as_number(value)
    if number is None:
        return default
    return max(1, int(math.floor(number)))


def coerce_percent(value: Any) -> float:
    number = as_number(value)
    if number is None:
        return 0.0
    return min(1.0, max(0.0, number))


def is_birthday_cake(product: Product, config: Optional[BakeryConfig] = None) -> bool:
    config = config or get_config()
    return product.id == config.birthday_cake_id


def price_product(
    product: Product,
    quantity: Any = 1,
    discount_percent: Any = 0.0,
    birthday_reward_available: bool = False,
    config: Optional[BakeryConfig] = None,
) -> PricingResult:
    """
    Price ``quantity`` units of ``product`` for a customer.

    Args:
        product: Catalog product; its undiscounted price is the original unit price.
        quantity: Requested units, coerced to an int >= 1.
        discount_percent: Customer discount as a fraction (0.5 = 50%).
        birthday_reward_available: The customer can claim the birthday cake today.

    Returns:
        PricingResult where unit_price + discount_per_unit == original_unit_price.
    """
    qty = coerce_quantity(quantity)
    original_unit_price = coerce_amount(product.undiscounted_price)

    if birthday_reward_available and is_birthday_cake(product, config):
        return PricingResult(
            original_unit_price=original_unit_price,
            unit_price=0,
            discount_percent=1.0,
            discount_per_unit=original_unit_price,
            original_total=original_unit_price * qty,
            discount_total=original_unit_price * qty,
            total=0,
        )

    percent = coerce_percent(discount_percent)
    if percent > 0:
        unit_price = max(0, round_half_up(original_unit_price * (1 - percent)))
    else:
        unit_price = original_unit_price
    discount_per_unit = max(0, original_unit_price - unit_price)

    return PricingResult(
        original_unit_price=original_unit_price,
        unit_price=unit_price,
        discount_percent=percent,
        discount_per_unit=discount_per_unit,
        original_total=original_unit_price * qty,
        discount_total=discount_per_unit * qty,
        total=unit_price * qty,
    )
