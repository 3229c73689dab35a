"""
Backend boundary for the storefront.

Validates REST payloads and converts them into pricing-core entities.
"""
from bakery.api.schemas import (
    CouponResponse,
    CustomerProfileResponse,
    OrderConfirmation,
    ProductResponse,
)
from bakery.api.client import (
    StorefrontAPIError,
    StorefrontClient,
    refresh_catalog,
    refresh_coupons,
    refresh_profile,
    complete_checkout,
)

__all__ = [
    "CouponResponse",
    "CustomerProfileResponse",
    "OrderConfirmation",
    "ProductResponse",
    "StorefrontAPIError",
    "StorefrontClient",
    "refresh_catalog",
    "refresh_coupons",
    "refresh_profile",
    "complete_checkout",
]
