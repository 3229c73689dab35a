"""
Storefront application state.

One explicit state object owned by the application: catalog, customer profile,
coupon catalog, cart, shipping selection and coupon input. Pricing is always
recomputed from it on demand; nothing is cached between quotes.

Backend refreshes follow "last request wins": ``begin_request`` hands out a
ticket, and results carrying an older ticket are discarded.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from functools import partial
from typing import Dict, Iterable, List, Mapping, Optional

from bakery.cart.state import Cart, CartOutcome
from bakery.catalog.models import Catalog, CouponDefinition, CustomerProfile, Product
from bakery.core.config import BakeryConfig, get_config
from bakery.orders.draft import OrderDraft, build_order_draft
from bakery.pricing.benefits import (
    BenefitContext,
    BenefitsResult,
    evaluate_benefits,
    resolve_benefit_context,
)
from bakery.pricing.calculator import is_birthday_cake, price_product
from bakery.pricing.cart import CartTotals, aggregate_cart
from bakery.pricing.checkout import CheckoutSummary, CheckoutTotal, summarize_checkout, totalize
from bakery.pricing.coupons import evaluate_coupon, normalize_code, normalize_coupon_catalog
from bakery.utils.logger import get_logger

logger = get_logger("core.state")

CATALOG = "catalog"
PROFILE = "profile"
COUPONS = "coupons"


@dataclass(frozen=True)
class CheckoutQuote:
    """Everything the checkout screen shows, computed for one day."""

    context: BenefitContext
    cart: CartTotals
    benefits: BenefitsResult
    checkout: CheckoutTotal

    @property
    def total(self) -> int:
        return self.checkout.total

    def summary(self) -> CheckoutSummary:
        return summarize_checkout(self.checkout)


@dataclass(frozen=True)
class RequestTicket:
    kind: str
    generation: int


@dataclass
class StorefrontState:
    catalog: Catalog = field(default_factory=Catalog)
    profile: Optional[CustomerProfile] = None
    coupon_catalog: Dict[str, CouponDefinition] = field(default_factory=dict)
    cart: Optional[Cart] = None
    shipping_cost: Optional[int] = None
    coupon_code: str = ""
    config: Optional[BakeryConfig] = None
    _generations: Dict[str, int] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.config = self.config or get_config()
        self.catalog = Catalog.of(self.catalog)
        if self.cart is None:
            self.cart = Cart(config=self.config)
        if self.shipping_cost is None:
            self.shipping_cost = self.config.default_shipping_cost

    # ── Backend refreshes ────────────────────────────────────────────────

    def begin_request(self, kind: str) -> RequestTicket:
        generation = self._generations.get(kind, 0) + 1
        self._generations[kind] = generation
        return RequestTicket(kind, generation)

    def _is_current(self, ticket: Optional[RequestTicket], kind: str) -> bool:
        if ticket is None:
            return True
        if ticket.kind != kind or ticket.generation != self._generations.get(kind, 0):
            logger.debug("Discarding stale %s result (ticket %d)", kind, ticket.generation)
            return False
        return True

    def apply_catalog(self, products: Iterable[Product], ticket: Optional[RequestTicket] = None) -> bool:
        """Replace the catalog and prune cart lines whose product disappeared."""
        if not self._is_current(ticket, CATALOG):
            return False
        self.catalog = Catalog.of(products)
        self.cart.prune(self.catalog)
        return True

    def apply_profile(self, profile: Optional[CustomerProfile], ticket: Optional[RequestTicket] = None) -> bool:
        """Load (or with None, sign out) the customer; restores their default shipping."""
        if not self._is_current(ticket, PROFILE):
            return False
        self.profile = profile
        if profile is not None and profile.default_shipping_cost:
            self.shipping_cost = self.config.normalize_shipping_cost(profile.default_shipping_cost)
        return True

    def apply_coupons(
        self,
        definitions: Iterable[CouponDefinition] | Mapping[str, CouponDefinition],
        ticket: Optional[RequestTicket] = None,
    ) -> bool:
        if not self._is_current(ticket, COUPONS):
            return False
        if isinstance(definitions, Mapping):
            definitions = definitions.values()
        self.coupon_catalog = normalize_coupon_catalog(definitions)
        return True

    # ── Inputs ───────────────────────────────────────────────────────────

    def set_coupon(self, code: Optional[str]) -> None:
        self.coupon_code = normalize_code(code)

    def set_shipping_cost(self, value, today: Optional[date] = None) -> bool:
        """
        Pick a shipping option. Ignored (returns False) while the birthday
        benefit already grants free shipping.
        """
        if self.quote(today).benefits.free_shipping:
            return False
        self.shipping_cost = self.config.normalize_shipping_cost(value)
        return True

    def benefit_context(self, today: Optional[date] = None) -> BenefitContext:
        return resolve_benefit_context(self.profile, today or date.today(), self.config)

    def add_to_cart(self, product_id: str, quantity=1, message: str = "", today: Optional[date] = None) -> CartOutcome:
        context = self.benefit_context(today)
        return self.cart.add(
            self.catalog, product_id, quantity, message,
            profile=self.profile, birthday_available=context.birthday_available,
        )

    def set_cart_quantity(self, product_id: str, quantity, message: str = "", today: Optional[date] = None) -> CartOutcome:
        context = self.benefit_context(today)
        return self.cart.set_quantity(
            self.catalog, product_id, quantity, message,
            profile=self.profile, birthday_available=context.birthday_available,
        )

    def remove_from_cart(self, product_id: str, message: str = "") -> CartOutcome:
        return self.cart.remove(product_id, message)

    def clear_cart(self) -> None:
        self.cart.clear()

    # ── Derived views ────────────────────────────────────────────────────

    def storefront_products(self, today: Optional[date] = None) -> List[Product]:
        """Products shown in the shop; the birthday cake only to eligible customers."""
        context = self.benefit_context(today)
        if context.birthday_eligible:
            return list(self.catalog)
        return [p for p in self.catalog if not is_birthday_cake(p, self.config)]

    def quote(self, today: Optional[date] = None) -> CheckoutQuote:
        """Price the current cart end to end."""
        today = today or date.today()
        context = self.benefit_context(today)
        pricing_fn = partial(
            _price_for_context, context=context, config=self.config,
        )
        cart_totals = aggregate_cart(self.cart.lines, self.catalog, pricing_fn, self.config)
        benefits = evaluate_benefits(
            cart_totals.items, cart_totals.sub_total, self.profile,
            today=today, config=self.config, context=context,
        )
        coupon_evaluator = partial(
            _evaluate_entered_coupon,
            code=self.coupon_code,
            coupon_catalog=self.coupon_catalog,
            config=self.config,
        )
        checkout = totalize(cart_totals, benefits, coupon_evaluator, self.shipping_cost)
        return CheckoutQuote(context=context, cart=cart_totals, benefits=benefits, checkout=checkout)

    def build_order(
        self,
        today: Optional[date] = None,
        notes: Optional[str] = None,
        shipping_address_id: Optional[str] = None,
        contact_email: Optional[str] = None,
    ) -> Optional[OrderDraft]:
        """Order draft for the current cart; None when the cart is empty or the account is inactive."""
        if self.profile is not None and not self.profile.is_active:
            logger.info("Checkout blocked for inactive account %s", self.profile.email)
            return None
        quote = self.quote(today)
        if quote.cart.is_empty:
            return None
        email = self.profile.email if self.profile is not None else contact_email
        return build_order_draft(
            quote.cart, quote.benefits, quote.checkout,
            notes=notes, shipping_address_id=shipping_address_id,
            customer_email=email, config=self.config,
        )

    def complete_checkout(self, quote: CheckoutQuote, today: Optional[date] = None) -> None:
        """After a successful order: mark the birthday reward used and empty the cart."""
        today = today or date.today()
        if quote.benefits.birthday_reward_applied and self.profile is not None:
            self.profile = self.profile.with_birthday_redeemed(today.year)
            logger.info("Birthday reward redeemed for %s in %d", self.profile.email, today.year)
        self.cart.clear()


def _price_for_context(product: Product, qty: int, context: BenefitContext, config: BakeryConfig):
    return price_product(
        product, qty, context.discount_percent,
        birthday_reward_available=context.birthday_available, config=config,
    )


def _evaluate_entered_coupon(subtotal: int, shipping: int, code: str, coupon_catalog, config: BakeryConfig):
    return evaluate_coupon(code, subtotal, shipping, coupon_catalog, config)
