"""
Order draft: the priced payload sent to the backend on checkout.

Mirrors the backend ``CreateOrderRequest``: field names are snake_case in
Python and camelCase on the wire (``model_dump(by_alias=True)``).
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bakery.core.config import BakeryConfig, get_config
from bakery.pricing.benefits import BenefitsResult
from bakery.pricing.calculator import is_birthday_cake
from bakery.pricing.cart import CartTotals
from bakery.pricing.checkout import CheckoutTotal


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderDraftItem(_WireModel):
    """One priced line of the order."""
    product_id: str
    quantity: int = Field(ge=1)
    unit_price: int = Field(ge=0, description="Discounted unit price")
    original_unit_price: int = Field(ge=0)
    discount_per_unit: int = Field(ge=0)
    subtotal: int = Field(ge=0, description="unit_price * quantity")
    original_subtotal: int = Field(ge=0)
    benefit_labels: Optional[List[str]] = None
    note: Optional[str] = Field(default=None, description="Gift message for the line")


class OrderDraft(_WireModel):
    """Order-level totals plus priced lines."""
    items: List[OrderDraftItem]
    subtotal: int = Field(ge=0)
    discount_total: int = Field(ge=0)
    shipping_cost: int = Field(ge=0)
    total: int = Field(ge=0)
    benefits_applied: Optional[List[str]] = None
    coupon_code: Optional[str] = None
    coupon_label: Optional[str] = None
    notes: Optional[str] = None
    shipping_address_id: Optional[str] = None
    customer_email: Optional[str] = None

    def to_request(self) -> dict:
        """JSON body for ``POST /api/v1/orders``."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def build_order_draft(
    cart_totals: CartTotals,
    benefits: BenefitsResult,
    checkout: CheckoutTotal,
    notes: Optional[str] = None,
    shipping_address_id: Optional[str] = None,
    customer_email: Optional[str] = None,
    config: Optional[BakeryConfig] = None,
) -> OrderDraft:
    """Turn a priced checkout into the order draft persisted by the backend."""
    config = config or get_config()
    items: List[OrderDraftItem] = []
    for entry in cart_totals.items:
        labels: List[str] = []
        birthday_line = is_birthday_cake(entry.product, config) and benefits.birthday_reward_applied
        if birthday_line:
            if benefits.birthday_label:
                labels.append(benefits.birthday_label)
        elif entry.pricing.discount_per_unit > 0 and benefits.user_label:
            labels.append(benefits.user_label)
        items.append(OrderDraftItem(
            product_id=entry.product.id,
            quantity=entry.qty,
            unit_price=entry.pricing.unit_price,
            original_unit_price=entry.pricing.original_unit_price,
            discount_per_unit=entry.pricing.discount_per_unit,
            subtotal=entry.pricing.total,
            original_subtotal=entry.subtotal,
            benefit_labels=list(dict.fromkeys(labels)) or None,
            note=entry.message or None,
        ))

    coupon = checkout.coupon
    return OrderDraft(
        items=items,
        subtotal=checkout.subtotal,
        discount_total=checkout.discount_total,
        shipping_cost=checkout.shipping_cost,
        total=checkout.total,
        benefits_applied=checkout.benefit_labels or None,
        coupon_code=coupon.code if coupon.valid else None,
        coupon_label=(coupon.label or None) if coupon.valid else None,
        notes=notes,
        shipping_address_id=shipping_address_id,
        customer_email=customer_email,
    )
