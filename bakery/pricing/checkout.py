"""
Checkout totalizer: cart totals + benefits + coupon -> final total.

The composition order is fixed:
  1. base = max(0, subtotal - birthday discount - user discount)
  2. shipping before coupon = 0 if birthday free shipping else selected cost
  3. coupon evaluated against (base, shipping before coupon)
  4. effective shipping = 0 if birthday free shipping, else the coupon's
     shipping when valid, else shipping before coupon
  5. total = max(0, base - coupon discount + effective shipping)
Reordering these steps changes results once clamping kicks in.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List

from bakery.pricing.benefits import BenefitsResult
from bakery.pricing.calculator import coerce_amount
from bakery.pricing.cart import CartTotals
from bakery.pricing.coupons import CouponEvaluation
from bakery.utils.format import BenefitDescription, describe_benefit_label, format_money
from bakery.utils.logger import get_logger

logger = get_logger("pricing.checkout")

CouponEvaluator = Callable[[int, int], CouponEvaluation]


@dataclass(frozen=True)
class CheckoutTotal:
    subtotal: int
    effective_subtotal: int
    base_after_benefits: int
    shipping_before_coupon: int
    shipping_cost: int
    coupon: CouponEvaluation
    coupon_discount: int
    shipping_discount: int
    discount_total: int
    total: int
    benefit_labels: List[str] = field(default_factory=list)


def _dedupe(labels: List[str]) -> List[str]:
    return list(dict.fromkeys(label for label in labels if label))


def totalize(
    cart_totals: CartTotals,
    benefits: BenefitsResult,
    coupon_evaluator: CouponEvaluator,
    selected_shipping_cost: int,
) -> CheckoutTotal:
    """
    Compose the final checkout total.

    Args:
        cart_totals: Output of ``aggregate_cart``.
        benefits: Output of ``evaluate_benefits`` for the same cart.
        coupon_evaluator: ``(subtotal_after_benefits, shipping) -> CouponEvaluation``,
            usually ``evaluate_coupon`` bound to the entered code and catalog.
        selected_shipping_cost: Shipping option picked by the customer.
    """
    subtotal = cart_totals.sub_total
    base_after_benefits = max(0, subtotal - benefits.birthday_discount - benefits.user_discount)
    ship_before_coupon = 0 if benefits.free_shipping else coerce_amount(selected_shipping_cost)

    coupon = coupon_evaluator(base_after_benefits, ship_before_coupon)

    if benefits.free_shipping:
        effective_ship = 0
    elif coupon.valid:
        effective_ship = coupon.ship_after
    else:
        effective_ship = ship_before_coupon

    coupon_discount = coupon.discount if coupon.valid else 0
    total = max(0, max(0, base_after_benefits - coupon_discount) + effective_ship)

    per_item_discount = sum(
        max(0, entry.subtotal - entry.pricing.total) for entry in cart_totals.items
    )
    shipping_discount = max(0, ship_before_coupon - effective_ship)

    labels = benefits.labels()
    if coupon.valid:
        labels.append(coupon.label or f"Cupón {coupon.code}")

    result = CheckoutTotal(
        subtotal=subtotal,
        effective_subtotal=cart_totals.effective_subtotal,
        base_after_benefits=base_after_benefits,
        shipping_before_coupon=ship_before_coupon,
        shipping_cost=effective_ship,
        coupon=coupon,
        coupon_discount=coupon_discount,
        shipping_discount=shipping_discount,
        discount_total=per_item_discount + shipping_discount + coupon_discount,
        total=total,
        benefit_labels=_dedupe(labels),
    )
    logger.debug(
        "Checkout total: base=%d coupon=%d shipping=%d total=%d",
        base_after_benefits, coupon_discount, effective_ship, total,
    )
    return result


@dataclass(frozen=True)
class SummaryRow:
    label: str
    amount: str


@dataclass(frozen=True)
class CheckoutSummary:
    """What the order summary box shows: money rows, then applied benefits."""

    rows: List[SummaryRow]
    benefits: List[BenefitDescription]


def summarize_checkout(checkout: CheckoutTotal) -> CheckoutSummary:
    rows = [SummaryRow("Subtotal", format_money(checkout.subtotal))]
    if checkout.discount_total > 0:
        rows.append(SummaryRow("Descuentos", format_money(-checkout.discount_total)))
    rows.append(SummaryRow("Envío", format_money(checkout.shipping_cost)))
    rows.append(SummaryRow("Total", format_money(checkout.total)))
    return CheckoutSummary(
        rows=rows,
        benefits=[describe_benefit_label(label) for label in checkout.benefit_labels],
    )
