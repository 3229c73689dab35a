"""
Money and benefit-label formatting for order summaries.
"""
import re
from dataclasses import dataclass
from typing import Optional


def format_money(value: Optional[int]) -> str:
    """Format whole pesos the way the storefront shows them: ``$12.500``."""
    amount = int(value or 0)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,}".replace(",", ".")


@dataclass
class BenefitDescription:
    title: str
    detail: Optional[str] = None


_TRAILING_PARENS = re.compile(r"\s*\([^)]*\)\s*$")
_PERCENT = re.compile(r"(\d{1,3})\s*%")
_FREE_SHIPPING = re.compile(r"env[ií]o gratis", re.IGNORECASE)
_COUPON = re.compile(r"cup[oó]n", re.IGNORECASE)
_AMOUNT = re.compile(r"\$\s*(\d{1,3}(?:[.,]\d{3})*)")


def describe_benefit_label(label: str) -> BenefitDescription:
    """
    Split a stored benefit label into a title and a short detail line.

    Examples:
        "Beneficio Adulto Mayor (50% OFF)" -> title "Beneficio Adulto Mayor", detail "50% de descuento"
        "Envío gratis por tu cumpleaños DUOC" -> detail "Envío sin costo"
    """
    text = (label or "").strip()
    if not text:
        return BenefitDescription(title="")
    title = _TRAILING_PARENS.sub("", text) or text
    if _FREE_SHIPPING.search(text):
        return BenefitDescription(title=title, detail="Envío sin costo")
    percent = _PERCENT.search(text)
    if percent:
        return BenefitDescription(title=title, detail=f"{percent.group(1)}% de descuento")
    if _COUPON.search(text):
        return BenefitDescription(title=title, detail="Cupón aplicado")
    amount = _AMOUNT.search(text)
    if amount:
        return BenefitDescription(title=title, detail=f"{amount.group(0)} de descuento")
    return BenefitDescription(title=title)
