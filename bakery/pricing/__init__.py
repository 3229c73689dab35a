"""
Pricing engine for the bakery storefront.

Pipeline: price_product -> aggregate_cart -> evaluate_benefits ->
evaluate_coupon -> totalize.
"""
from bakery.pricing.calculator import PricingResult, price_product
from bakery.pricing.cart import CartEntry, CartTotals, aggregate_cart
from bakery.pricing.benefits import (
    BenefitContext,
    BenefitsResult,
    evaluate_benefits,
    resolve_benefit_context,
    resolve_discount_percent,
)
from bakery.pricing.coupons import CouponEvaluation, evaluate_coupon, normalize_coupon_catalog
from bakery.pricing.checkout import CheckoutSummary, CheckoutTotal, SummaryRow, summarize_checkout, totalize

__all__ = [
    "PricingResult",
    "price_product",
    "CartEntry",
    "CartTotals",
    "aggregate_cart",
    "BenefitContext",
    "BenefitsResult",
    "evaluate_benefits",
    "resolve_benefit_context",
    "resolve_discount_percent",
    "CouponEvaluation",
    "evaluate_coupon",
    "normalize_coupon_catalog",
    "CheckoutTotal",
    "totalize",
    "CheckoutSummary",
    "SummaryRow",
    "summarize_checkout",
]
