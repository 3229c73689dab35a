"""
Cart mutations: add, set quantity, remove, clear, prune.

The cart stores raw lines only; pricing happens in ``aggregate_cart``.
Mutations report what happened through a ``CartOutcome`` so the caller can
decide which message to show ("only 2 units added", "no stock"...).
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional

from bakery.catalog.models import CartLine, Catalog, CustomerProfile
from bakery.core.config import BakeryConfig, get_config
from bakery.pricing.calculator import as_number, is_birthday_cake
from bakery.pricing.cart import available_quantity
from bakery.utils.logger import get_logger

logger = get_logger("cart.state")

# Outcome statuses
ADDED = "added"
PARTIAL = "partial"
NO_STOCK = "no_stock"
UNAVAILABLE = "unavailable"
REWARD_CLAIMED = "reward_claimed"
ACCOUNT_INACTIVE = "account_inactive"
UPDATED = "updated"
REMOVED = "removed"
NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CartOutcome:
    status: str
    quantity: int = 0         # units added, or resulting line quantity
    available: int = 0        # availability ceiling for the line

    @property
    def ok(self) -> bool:
        return self.status in (ADDED, PARTIAL, UPDATED, REMOVED)


def _key(product_id: str, message: Optional[str]) -> tuple[str, str]:
    return (product_id, message or "")


class Cart:
    """In-memory cart keyed by (product id, message)."""

    def __init__(self, lines: Optional[List[CartLine]] = None, config: Optional[BakeryConfig] = None):
        self.config = config or get_config()
        self._lines: List[CartLine] = list(lines or [])

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def _index(self, product_id: str, message: Optional[str]) -> int:
        key = _key(product_id, message)
        for idx, line in enumerate(self._lines):
            if line.key == key:
                return idx
        return -1

    def add(
        self,
        catalog,
        product_id: str,
        quantity=1,
        message: str = "",
        profile: Optional[CustomerProfile] = None,
        birthday_available: bool = False,
    ) -> CartOutcome:
        """
        Add units of a product, capped at what is still available for the line.

        Returns a ``partial`` outcome when fewer units than requested fit.
        """
        product = Catalog.of(catalog).get(product_id)
        if product is None:
            return CartOutcome(UNAVAILABLE)
        if profile is not None and not profile.is_active:
            return CartOutcome(ACCOUNT_INACTIVE)
        if product.stock <= 0:
            return CartOutcome(NO_STOCK)
        cake = is_birthday_cake(product, self.config)
        if cake and not birthday_available:
            return CartOutcome(REWARD_CLAIMED)

        number = as_number(quantity)
        desired = max(1, int(number // 1)) if number is not None else 1
        limit = available_quantity(product, self.config)
        idx = self._index(product_id, message)
        current = self._lines[idx].quantity if idx >= 0 else 0
        remaining = max(0, limit - current)
        if remaining <= 0:
            return CartOutcome(NO_STOCK, available=limit)

        to_add = min(desired, remaining)
        if idx >= 0:
            self._lines[idx] = replace(self._lines[idx], quantity=current + to_add)
        else:
            self._lines.append(CartLine(product_id=product_id, quantity=to_add, message=message or None))
        status = PARTIAL if to_add < desired else ADDED
        logger.debug("Cart add %s x%d (%s)", product_id, to_add, status)
        return CartOutcome(status, quantity=to_add, available=limit)

    def set_quantity(
        self,
        catalog,
        product_id: str,
        quantity,
        message: str = "",
        profile: Optional[CustomerProfile] = None,
        birthday_available: bool = False,
    ) -> CartOutcome:
        """
        Set a line's quantity, clamped to stock.

        The line is removed when the product is out of stock, or when it is the
        birthday cake and the reward is no longer available.
        """
        product = Catalog.of(catalog).get(product_id)
        if product is None:
            return CartOutcome(UNAVAILABLE)
        if profile is not None and not profile.is_active:
            return CartOutcome(ACCOUNT_INACTIVE)
        idx = self._index(product_id, message)
        if idx == -1:
            return CartOutcome(NOT_FOUND)

        number = as_number(quantity)
        raw = int(number // 1) if number is not None else 0
        desired = max(1, raw) if product.stock > 0 else 0
        limit = available_quantity(product, self.config)
        next_qty = min(desired, limit)
        cake = is_birthday_cake(product, self.config)

        if next_qty == 0 or (cake and not birthday_available):
            del self._lines[idx]
            return CartOutcome(REMOVED, available=limit)
        self._lines[idx] = replace(self._lines[idx], quantity=next_qty)
        status = PARTIAL if desired > limit else UPDATED
        return CartOutcome(status, quantity=next_qty, available=limit)

    def remove(self, product_id: str, message: str = "") -> CartOutcome:
        idx = self._index(product_id, message)
        if idx == -1:
            return CartOutcome(NOT_FOUND)
        del self._lines[idx]
        return CartOutcome(REMOVED)

    def clear(self) -> None:
        self._lines.clear()

    def prune(self, catalog) -> List[CartLine]:
        """Drop lines whose product left the catalog; returns the dropped lines."""
        products = Catalog.of(catalog)
        kept, dropped = [], []
        for line in self._lines:
            (kept if line.product_id in products else dropped).append(line)
        self._lines = kept
        if dropped:
            logger.info("Pruned %d cart line(s) for products no longer in the catalog", len(dropped))
        return dropped
