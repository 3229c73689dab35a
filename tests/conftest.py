"""Pytest configuration for the bakery pricing tests."""

from datetime import date

import pytest

from bakery.catalog.models import COUPON_AMOUNT, COUPON_SHIP, CouponDefinition, CustomerProfile, Product
from bakery.core.config import BakeryConfig, set_config


# ---------------------------------------------------------------------------
# Config isolation. get_config() caches a module-level instance. Pin the
# defaults before every test and drop the cache afterwards so a .env or YAML
# file on the developer machine never changes the business rules under test.
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function", autouse=True)
def config():
    """Default business rules, installed as the global config."""
    cfg = BakeryConfig()
    set_config(cfg)
    yield cfg
    set_config(None)


TODAY = date(2026, 10, 17)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def cake():
    # Displayed at 0, economic value kept as list price
    return Product(id="BDAY001", name="Torta de Cumpleaños", base_price=0, list_price=15000,
                   stock=5, category="Tortas")


@pytest.fixture
def chocolate():
    return Product(id="TC001", name="Torta Cuadrada de Chocolate", base_price=25000,
                   stock=10, category="Tortas Cuadradas", critical_stock=3)


@pytest.fixture
def brownie():
    return Product(id="PSA001", name="Brownie Sin Gluten", base_price=4000,
                   stock=3, category="Sin Azúcar")


@pytest.fixture
def catalog(cake, chocolate, brownie):
    return [cake, chocolate, brownie]


@pytest.fixture
def coupons():
    return {
        "5000OFF": CouponDefinition(code="5000OFF", kind=COUPON_AMOUNT, value=5000, label="Cupón $5.000 OFF"),
        "ENVIOGRATIS": CouponDefinition(code="ENVIOGRATIS", kind=COUPON_SHIP, value=0, label="Envío gratis"),
    }


@pytest.fixture
def plain_customer():
    return CustomerProfile(email="ana@gmail.com", birth_date=date(1995, 3, 2))


@pytest.fixture
def senior_customer():
    # 55 years old on TODAY
    return CustomerProfile(email="rosa@gmail.com", birth_date=date(1971, 1, 10))


@pytest.fixture
def promo_customer():
    return CustomerProfile(email="luis@gmail.com", birth_date=date(1990, 6, 1),
                           promo_code="FELICES50", permanent_discount=True)


@pytest.fixture
def birthday_student():
    # Academic email, birthday is TODAY, reward not claimed this year
    return CustomerProfile(email="camila@duoc.cl", birth_date=date(2003, 10, 17),
                           birthday_redemption_year=2025)
