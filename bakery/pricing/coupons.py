"""
Coupon code validation.

Coupon kinds (catalog is supplied by the backend, keyed by uppercase code):
  amount: flat amount off the post-benefits subtotal, never below zero
  ship:   free shipping (overrides the shipping selector)

The reserved registration promo code is a profile benefit, never a coupon.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from bakery.catalog.models import COUPON_AMOUNT, COUPON_SHIP, CouponDefinition
from bakery.core.config import BakeryConfig, get_config
from bakery.pricing.calculator import coerce_amount
from bakery.utils.logger import get_logger

logger = get_logger("pricing.coupons")


@dataclass(frozen=True)
class CouponEvaluation:
    valid: bool
    discount: int             # amount off the subtotal (0 for ship coupons)
    ship_after: int           # shipping cost once the coupon is applied
    code: str = ""
    label: str = ""
    kind: str = ""
    error: Optional[str] = None


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def normalize_coupon_catalog(definitions: Iterable[CouponDefinition]) -> dict[str, CouponDefinition]:
    """Key coupon definitions by uppercase code; unknown kinds become flat amounts."""
    catalog: dict[str, CouponDefinition] = {}
    for definition in definitions:
        code = normalize_code(definition.code)
        if not code:
            continue
        kind = definition.kind if definition.kind in (COUPON_AMOUNT, COUPON_SHIP) else COUPON_AMOUNT
        catalog[code] = CouponDefinition(
            code=code,
            kind=kind,
            value=coerce_amount(definition.value),
            label=definition.label,
        )
    return catalog


def _invalid(code: str, shipping: int, error: str) -> CouponEvaluation:
    return CouponEvaluation(valid=False, discount=0, ship_after=shipping, code=code, error=error)


def evaluate_coupon(
    code: Optional[str],
    subtotal: int,
    shipping_cost: int,
    coupon_catalog: Mapping[str, CouponDefinition],
    config: Optional[BakeryConfig] = None,
) -> CouponEvaluation:
    """
    Validate a coupon code and compute its effect.

    Args:
        code: The code entered by the customer (case-insensitive, trimmed).
        subtotal: Subtotal after profile benefits.
        shipping_cost: Shipping cost after profile benefits (may already be 0).
        coupon_catalog: Uppercase code -> CouponDefinition.

    Returns:
        CouponEvaluation; invalid codes leave subtotal and shipping untouched.
    """
    config = config or get_config()
    normalized = normalize_code(code)
    subtotal = coerce_amount(subtotal)
    shipping = coerce_amount(shipping_cost)

    if not normalized:
        return _invalid(normalized, shipping, "Ingresa un código de cupón.")
    if normalized == config.promo_code.upper():
        return _invalid(
            normalized, shipping,
            f"{normalized} es un beneficio de registro, no un cupón.",
        )

    definition = coupon_catalog.get(normalized)
    if definition is None:
        logger.debug("Unknown coupon code %s", normalized)
        return _invalid(normalized, shipping, "Cupón inválido. Revisa el código e inténtalo de nuevo.")

    if definition.kind == COUPON_AMOUNT:
        discount = max(0, min(subtotal, coerce_amount(definition.value)))
        return CouponEvaluation(
            valid=True,
            discount=discount,
            ship_after=shipping,
            code=normalized,
            label=definition.label,
            kind=definition.kind,
        )
    if definition.kind == COUPON_SHIP:
        return CouponEvaluation(
            valid=True,
            discount=0,
            ship_after=0,
            code=normalized,
            label=definition.label,
            kind=definition.kind,
        )

    logger.warning("Coupon %s has unsupported kind %r", normalized, definition.kind)
    return _invalid(normalized, shipping, "Cupón inválido. Revisa el código e inténtalo de nuevo.")
