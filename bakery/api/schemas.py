"""
Pydantic models for backend REST responses.

Backend payloads are validated here and converted into the domain entities
in ``bakery.catalog.models`` before they reach the pricing core.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from bakery.catalog.models import (
    ACCOUNT_ACTIVE,
    ACCOUNT_INACTIVE,
    COUPON_AMOUNT,
    COUPON_SHIP,
    CouponDefinition,
    CustomerProfile,
    Product,
)
from bakery.utils.dates import parse_birth_date


class _BackendModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ProductResponse(_BackendModel):
    """Product as returned by ``GET /api/v1/products``."""
    id: str
    name: str
    price: int = Field(default=0, description="List price in whole pesos")
    category: str = ""
    attributes: Optional[str] = None
    image_url: Optional[str] = None
    stock: int = 0
    critical_stock: int = 0
    description: Optional[str] = None
    active: bool = True

    @field_validator("price", "stock", "critical_stock", mode="before")
    @classmethod
    def _non_negative(cls, value):
        if value is None:
            return 0
        return max(0, int(float(value)))

    def to_product(self, birthday_cake_id: str) -> Product:
        """Domain product; the birthday cake displays 0 but keeps its list price."""
        image = self.image_url or ""
        if not image:
            image = "/img/placeholder.png"
        elif not image.startswith("/") and "://" not in image:
            image = f"/{image}"
        is_cake = self.id == birthday_cake_id
        return Product(
            id=self.id,
            name=self.name,
            base_price=0 if is_cake else self.price,
            list_price=self.price if is_cake else None,
            stock=self.stock,
            category=self.category,
            critical_stock=self.critical_stock,
            attributes=self.attributes or "",
            image_url=image,
            description=self.description,
        )


class CustomerProfileResponse(_BackendModel):
    """Customer as returned by ``GET /api/v1/customers/me`` (pricing-relevant fields)."""
    id: Optional[str] = None
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: Optional[str] = None
    birth_date: Optional[date] = None
    promo_code: Optional[str] = None
    felices50: bool = False
    birthday_redeemed_year: Optional[int] = None
    default_shipping_cost: Optional[int] = None

    @field_validator("birth_date", mode="before")
    @classmethod
    def _lenient_date(cls, value):
        return parse_birth_date(value)

    def to_profile(self) -> CustomerProfile:
        name = " ".join(part for part in (self.first_name, self.last_name) if part) or None
        status = ACCOUNT_INACTIVE if (self.status or "").lower() == ACCOUNT_INACTIVE else ACCOUNT_ACTIVE
        return CustomerProfile(
            email=self.email,
            birth_date=self.birth_date,
            promo_code=(self.promo_code or "").strip().upper() or None,
            permanent_discount=self.felices50,
            birthday_redemption_year=self.birthday_redeemed_year,
            name=name,
            status=status,
            default_shipping_cost=self.default_shipping_cost,
        )


class CouponResponse(_BackendModel):
    """Coupon as returned by ``GET /api/v1/coupons``."""
    code: str
    type: str = COUPON_AMOUNT
    value: int = 0
    label: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _whole_amount(cls, value):
        if value is None:
            return 0
        return max(0, int(float(value)))

    def to_definition(self) -> CouponDefinition:
        kind = self.type if self.type in (COUPON_AMOUNT, COUPON_SHIP) else COUPON_AMOUNT
        return CouponDefinition(
            code=self.code.strip().upper(),
            kind=kind,
            value=max(0, self.value),
            label=self.label,
        )


class OrderItemResponse(_BackendModel):
    codigo: str
    nombre: str = ""
    quantity: int
    unit_price: int
    original_unit_price: int
    discount_per_unit: int
    subtotal: int
    original_subtotal: int
    benefit_labels: Optional[List[str]] = None


class OrderConfirmation(_BackendModel):
    """Order as returned by ``POST /api/v1/orders``."""
    id: str
    order_code: Optional[str] = None
    status: str = "PENDIENTE"
    customer_email: Optional[str] = None
    subtotal: int
    discount_total: int
    shipping_cost: int
    total: int
    benefits_applied: Optional[List[str]] = None
    coupon_code: Optional[str] = None
    coupon_label: Optional[str] = None
    created_at: Optional[int] = None
    items: List[OrderItemResponse] = Field(default_factory=list)
