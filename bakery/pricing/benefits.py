"""
Profile-driven benefits: senior / promo percentage discount, the yearly
birthday cake reward and birthday free shipping.

Benefit rules in priority order:
  1. Age over the senior threshold -> senior discount (50%)
  2. Reserved promo code or permanent flag -> promo discount (10%)
  3. Otherwise no percentage discount
The two percentages never stack. The birthday cake reward is independent and
is subtracted from the subtotal alongside the percentage discount.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from bakery.catalog.models import CustomerProfile
from bakery.core.config import BakeryConfig, get_config
from bakery.pricing.calculator import is_birthday_cake
from bakery.pricing.cart import CartEntry
from bakery.utils.dates import compute_age, is_birthday_today
from bakery.utils.logger import get_logger

logger = get_logger("pricing.benefits")

BIRTHDAY_LABEL = "Beneficio DUOC: Torta de Cumpleaños gratis"
BIRTHDAY_SHIPPING_LABEL = "Envío gratis por tu cumpleaños DUOC"


@dataclass(frozen=True)
class BenefitContext:
    """Snapshot of a customer's benefit standing on a given day."""

    authenticated: bool = False
    age: Optional[int] = None
    discount_percent: float = 0.0
    birthday_eligible: bool = False
    birthday_available: bool = False
    permanent_discount: bool = False


@dataclass(frozen=True)
class BenefitsResult:
    user_discount: int = 0
    user_label: str = ""
    birthday_discount: int = 0
    birthday_label: str = ""
    birthday_eligible_today: bool = False
    birthday_reward_applied: bool = False
    free_shipping: bool = False
    shipping_label: str = ""
    discount_percent: float = 0.0

    def labels(self) -> List[str]:
        """Labels of the benefits that actually changed the price."""
        labels = []
        if self.user_discount > 0 and self.user_label:
            labels.append(self.user_label)
        if self.birthday_discount > 0 and self.birthday_label:
            labels.append(self.birthday_label)
        if self.free_shipping and self.shipping_label:
            labels.append(self.shipping_label)
        return labels


def resolve_discount_percent(
    profile: Optional[CustomerProfile],
    today: Optional[date] = None,
    config: Optional[BakeryConfig] = None,
) -> float:
    """Percentage discount (as a fraction) the customer gets on every product."""
    if profile is None:
        return 0.0
    config = config or get_config()
    age = compute_age(profile.birth_date, today)
    if age is not None and age > config.senior_age_threshold:
        return config.senior_discount
    code = (profile.promo_code or "").strip().upper()
    if code == config.promo_code.upper() or profile.permanent_discount:
        return config.promo_discount
    return 0.0


def is_birthday_reward_eligible(
    profile: Optional[CustomerProfile],
    today: Optional[date] = None,
    config: Optional[BakeryConfig] = None,
) -> bool:
    """Academic email and today is the customer's birthday."""
    if profile is None:
        return False
    config = config or get_config()
    if not re.search(config.academic_email_pattern, profile.email or "", re.IGNORECASE):
        return False
    return is_birthday_today(profile.birth_date, today)


def is_birthday_reward_available(
    profile: Optional[CustomerProfile],
    today: Optional[date] = None,
    config: Optional[BakeryConfig] = None,
) -> bool:
    """Eligible today and not yet claimed this calendar year."""
    if not is_birthday_reward_eligible(profile, today, config):
        return False
    today = today or date.today()
    return profile.birthday_redemption_year != today.year


def resolve_benefit_context(
    profile: Optional[CustomerProfile],
    today: Optional[date] = None,
    config: Optional[BakeryConfig] = None,
) -> BenefitContext:
    if profile is None:
        return BenefitContext()
    config = config or get_config()
    today = today or date.today()
    return BenefitContext(
        authenticated=True,
        age=compute_age(profile.birth_date, today),
        discount_percent=resolve_discount_percent(profile, today, config),
        birthday_eligible=is_birthday_reward_eligible(profile, today, config),
        birthday_available=is_birthday_reward_available(profile, today, config),
        permanent_discount=profile.permanent_discount,
    )


def discount_label(context: BenefitContext, config: Optional[BakeryConfig] = None) -> str:
    """Label for the percentage benefit, e.g. ``Beneficio Adulto Mayor (50% OFF)``."""
    if context.discount_percent <= 0:
        return ""
    config = config or get_config()
    rounded = round(context.discount_percent * 100)
    percent_label = f"{rounded}% OFF"
    senior_rounded = round(config.senior_discount * 100)
    if context.age is not None and context.age >= config.senior_age_threshold and rounded >= senior_rounded:
        return f"Beneficio Adulto Mayor ({percent_label})"
    if context.permanent_discount:
        return f"Beneficio {config.promo_code.upper()} ({percent_label})"
    return f"Beneficio de usuario ({percent_label})"


def evaluate_benefits(
    items: Sequence[CartEntry],
    subtotal: int,
    profile: Optional[CustomerProfile],
    today: Optional[date] = None,
    config: Optional[BakeryConfig] = None,
    context: Optional[BenefitContext] = None,
) -> BenefitsResult:
    """
    Work out which non-coupon benefits apply to a priced cart.

    Args:
        items: Priced cart entries from ``aggregate_cart``.
        subtotal: Original (undiscounted) cart subtotal.
        profile: Authenticated customer, or None for guest checkout.
        context: Precomputed ``BenefitContext``; resolved from ``profile`` when omitted.

    Returns:
        BenefitsResult; all zero/false for guests.
    """
    if profile is None:
        return BenefitsResult()
    config = config or get_config()
    context = context or resolve_benefit_context(profile, today, config)

    cake = next((entry for entry in items if is_birthday_cake(entry.product, config)), None)

    birthday_discount = 0
    birthday_label = ""
    birthday_applied = False
    free_shipping = False
    shipping_label = ""
    if context.birthday_available and cake is not None and cake.qty > 0:
        birthday_discount = cake.pricing.discount_total
        birthday_label = BIRTHDAY_LABEL
        birthday_applied = birthday_discount > 0
        if birthday_applied and len(items) == 1:
            free_shipping = True
            shipping_label = BIRTHDAY_SHIPPING_LABEL

    user_discount = 0
    percent = context.discount_percent
    if percent > 0:
        base = max(0, subtotal - birthday_discount)
        from_items = sum(
            entry.pricing.discount_total
            for entry in items
            if not (birthday_applied and entry is cake)
        )
        user_discount = min(base, from_items)

    result = BenefitsResult(
        user_discount=user_discount,
        user_label=discount_label(context, config),
        birthday_discount=birthday_discount,
        birthday_label=birthday_label,
        birthday_eligible_today=context.birthday_eligible,
        birthday_reward_applied=birthday_applied,
        free_shipping=free_shipping,
        shipping_label=shipping_label,
        discount_percent=percent,
    )
    logger.debug(
        "Benefits for %s: user=%d birthday=%d free_shipping=%s",
        profile.email, result.user_discount, result.birthday_discount, result.free_shipping,
    )
    return result
