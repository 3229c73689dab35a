"""
Cart aggregation: raw cart lines + catalog -> priced cart totals.

Lines pointing at products that left the catalog are dropped without error,
and quantities are clamped to what the catalog can serve. Callers compare the
result with what the customer asked for to decide what to tell them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from bakery.catalog.models import CartLine, Catalog, Product
from bakery.core.config import BakeryConfig, get_config
from bakery.pricing.calculator import PricingResult, as_number, is_birthday_cake
from bakery.utils.logger import get_logger

logger = get_logger("pricing.cart")

PricingFn = Callable[[Product, int], PricingResult]


@dataclass(frozen=True)
class CartEntry:
    product: Product
    qty: int
    message: Optional[str]
    subtotal: int             # original (undiscounted) line total
    pricing: PricingResult


@dataclass(frozen=True)
class CartTotals:
    items: List[CartEntry] = field(default_factory=list)
    sub_total: int = 0
    effective_subtotal: int = 0
    discount_total: int = 0
    total_qty: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.items


def available_quantity(product: Product, config: Optional[BakeryConfig] = None) -> int:
    """Units a single cart line may hold (at most one birthday cake per cart)."""
    stock = max(0, product.stock)
    if is_birthday_cake(product, config):
        return min(1, stock)
    return stock


def clamp_line_quantity(requested, product: Product, config: Optional[BakeryConfig] = None) -> int:
    """
    Effective quantity for a cart line, or 0 when the line must be dropped.

    Non-numeric quantities default to 1; explicit quantities <= 0 drop the line.
    Otherwise the quantity is capped at availability, never below 1.
    """
    number = as_number(requested)
    if number is None:
        qty = 1
    else:
        qty = int(number // 1)
        if qty <= 0:
            return 0
    ceiling = max(1, available_quantity(product, config))
    return min(ceiling, qty)


def aggregate_cart(
    lines: Iterable[CartLine],
    catalog,
    pricing_fn: PricingFn,
    config: Optional[BakeryConfig] = None,
) -> CartTotals:
    """
    Price every cart line and sum the cart.

    Args:
        lines: Raw cart lines (product id, quantity, message).
        catalog: ``Catalog`` or iterable of ``Product``.
        pricing_fn: ``(product, qty) -> PricingResult``, usually a bound
            ``price_product`` carrying the customer's discount.

    Returns:
        CartTotals with per-line pricing, subtotal (original), effective
        subtotal (discounted), discount total and total quantity.
    """
    config = config or get_config()
    products = Catalog.of(catalog)

    items: List[CartEntry] = []
    for line in lines:
        product = products.get(line.product_id)
        if product is None:
            logger.debug("Dropping cart line for missing product %s", line.product_id)
            continue
        qty = clamp_line_quantity(line.quantity, product, config)
        if qty <= 0:
            logger.debug("Dropping cart line %s with quantity %r", line.product_id, line.quantity)
            continue
        pricing = pricing_fn(product, qty)
        items.append(CartEntry(
            product=product,
            qty=qty,
            message=line.message,
            subtotal=pricing.original_total,
            pricing=pricing,
        ))

    return CartTotals(
        items=items,
        sub_total=sum(entry.subtotal for entry in items),
        effective_subtotal=sum(entry.pricing.total for entry in items),
        discount_total=sum(entry.pricing.discount_total for entry in items),
        total_qty=sum(entry.qty for entry in items),
    )
