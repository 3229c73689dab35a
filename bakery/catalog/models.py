"""
Domain entities consumed by the pricing core.

These are the strongly-typed shapes produced at the backend boundary
(see ``bakery.api.schemas``). The pricing functions only read them.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional


# Coupon kinds
COUPON_AMOUNT = "amount"      # flat amount off the subtotal
COUPON_SHIP = "ship"          # free shipping

ACCOUNT_ACTIVE = "active"
ACCOUNT_INACTIVE = "inactive"


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    base_price: int           # displayed price, whole pesos
    stock: int
    category: str
    critical_stock: int = 0
    # Economic value recorded before a display override (birthday cake shows 0)
    list_price: Optional[int] = None
    attributes: str = ""
    image_url: str = ""
    description: Optional[str] = None

    @property
    def undiscounted_price(self) -> int:
        """Price used as the original unit price when computing discounts."""
        if self.list_price is not None:
            return self.list_price
        return self.base_price

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.critical_stock


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int = 1
    message: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        """Cart identity: the same product with different gift messages is two lines."""
        return (self.product_id, self.message or "")


@dataclass(frozen=True)
class CustomerProfile:
    """Discount-relevant view of the authenticated customer."""

    email: str
    birth_date: Optional[date] = None
    promo_code: Optional[str] = None
    permanent_discount: bool = False
    birthday_redemption_year: Optional[int] = None
    name: Optional[str] = None
    status: str = ACCOUNT_ACTIVE
    default_shipping_cost: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status != ACCOUNT_INACTIVE

    def with_promo_code(self, promo_code: Optional[str], reserved_code: str) -> "CustomerProfile":
        """
        Edit the promo code field.

        Entering the reserved code grants the permanent discount; clearing or
        changing the code later never revokes it.
        """
        code = (promo_code or "").strip().upper() or None
        granted = self.permanent_discount or code == reserved_code.upper()
        return replace(self, promo_code=code, permanent_discount=granted)

    def with_birthday_redeemed(self, year: int) -> "CustomerProfile":
        return replace(self, birthday_redemption_year=year)


@dataclass(frozen=True)
class CouponDefinition:
    code: str
    kind: str                 # "amount" | "ship"
    value: int = 0            # meaningful for "amount" only
    label: str = ""


@dataclass
class Catalog:
    """Read-only product lookup keyed by id."""

    products: dict[str, Product] = field(default_factory=dict)

    @classmethod
    def of(cls, products) -> "Catalog":
        if isinstance(products, Catalog):
            return products
        return cls({p.id: p for p in products})

    def get(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self.products

    def __iter__(self):
        return iter(self.products.values())

    def __len__(self) -> int:
        return len(self.products)
