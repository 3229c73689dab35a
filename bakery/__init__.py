"""
Bakery storefront pricing core.

Prices the cart for the current customer:
- Senior / promo percentage discounts
- Yearly birthday cake reward with free shipping
- One coupon per order (flat amount or free shipping)
"""

from bakery.core.config import BakeryConfig, get_config, set_config
from bakery.core.state import CheckoutQuote, StorefrontState

__all__ = [
    'BakeryConfig',
    'get_config',
    'set_config',
    'CheckoutQuote',
    'StorefrontState',
]

__version__ = '0.1.0'
