"""
Tests for the storefront backend client, using httpx.MockTransport in place
of the REST backend.
"""

import asyncio
import json

import httpx
import pytest

from bakery.api.client import (
    StorefrontAPIError,
    StorefrontClient,
    complete_checkout,
    refresh_catalog,
    refresh_coupons,
    refresh_profile,
)
from bakery.cart.state import REWARD_CLAIMED, Cart
from bakery.catalog.models import COUPON_AMOUNT, COUPON_SHIP, CartLine
from bakery.core.state import CATALOG, StorefrontState

PRODUCTS = [
    {"id": "BDAY001", "name": "Torta de Cumpleaños", "price": 15000, "category": "Tortas",
     "stock": 5, "criticalStock": 1, "imageUrl": "img/bday.png", "active": True},
    {"id": "TC001", "name": "Torta Cuadrada de Chocolate", "price": 25000.0, "category": "Tortas Cuadradas",
     "stock": 10, "criticalStock": 3, "imageUrl": "/img/tc001.png", "active": True, "extraField": "x"},
    {"id": "OLD01", "name": "Kuchen Descontinuado", "price": 9000, "category": "Kuchen",
     "stock": 2, "active": False},
]

CUSTOMER = {
    "id": "c-1", "email": "camila@duoc.cl", "firstName": "Camila", "lastName": "Rojas",
    "status": "active", "birthDate": "2003-10-17", "promoCode": "felices50", "felices50": True,
    "birthdayRedeemedYear": 2025, "defaultShippingCost": 6000,
}

COUPONS = [
    {"code": "5000off", "type": "amount", "value": 5000, "label": "Cupón $5.000 OFF"},
    {"code": "ENVIOGRATIS", "type": "ship", "value": 0, "label": "Envío gratis"},
    {"code": "RARO", "type": "percent", "value": 10, "label": "Raro"},
]


def _client(handler):
    return StorefrontClient(base_url="http://backend.test/", transport=httpx.MockTransport(handler))


def _routes(routes):
    def handler(request):
        key = (request.method, request.url.path)
        if key not in routes:
            return httpx.Response(404, json={"message": "Not found"})
        result = routes[key]
        return result(request) if callable(result) else result
    return handler


class TestCatalog:
    def test_maps_products(self):
        client = _client(_routes({("GET", "/api/v1/products"): httpx.Response(200, json=PRODUCTS)}))
        products = asyncio.run(client.get_catalog())
        assert [p.id for p in products] == ["BDAY001", "TC001"]

        cake, chocolate = products
        assert cake.base_price == 0
        assert cake.list_price == 15000
        assert cake.undiscounted_price == 15000
        assert cake.image_url == "/img/bday.png"
        assert chocolate.base_price == 25000
        assert chocolate.list_price is None
        assert chocolate.is_low_stock is False

    def test_invalid_payload(self):
        bad = [{"price": 1000}]
        client = _client(_routes({("GET", "/api/v1/products"): httpx.Response(200, json=bad)}))
        with pytest.raises(StorefrontAPIError):
            asyncio.run(client.get_catalog())

    def test_server_error(self):
        error = httpx.Response(500, json={"message": "Error interno"})
        client = _client(_routes({("GET", "/api/v1/products"): error}))
        with pytest.raises(StorefrontAPIError) as exc_info:
            asyncio.run(client.get_catalog())
        assert exc_info.value.status_code == 500
        assert exc_info.value.backend_message == "Error interno"

    def test_backend_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(StorefrontAPIError) as exc_info:
            asyncio.run(_client(handler).get_catalog())
        assert exc_info.value.status_code is None


class TestCustomerProfile:
    def test_sends_bearer_token(self):
        seen = {}

        def me(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=CUSTOMER)

        client = _client(_routes({("GET", "/api/v1/customers/me"): me}))
        profile = asyncio.run(client.get_customer_profile("tok"))
        assert seen["auth"] == "Bearer tok"
        assert profile.email == "camila@duoc.cl"
        assert profile.name == "Camila Rojas"
        assert profile.promo_code == "FELICES50"
        assert profile.permanent_discount
        assert profile.birth_date.isoformat() == "2003-10-17"
        assert profile.birthday_redemption_year == 2025
        assert profile.is_active

    def test_guest_without_token(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert asyncio.run(_client(handler).get_customer_profile(None)) is None

    @pytest.mark.parametrize("status", [401, 403, 404])
    def test_expired_session_is_guest(self, status):
        client = _client(_routes({("GET", "/api/v1/customers/me"): httpx.Response(status)}))
        assert asyncio.run(client.get_customer_profile("tok")) is None

    def test_unparseable_birth_date_is_unknown(self):
        payload = dict(CUSTOMER, birthDate="no-date")
        client = _client(_routes({("GET", "/api/v1/customers/me"): httpx.Response(200, json=payload)}))
        assert asyncio.run(client.get_customer_profile("tok")).birth_date is None


class TestCoupons:
    def test_catalog_is_normalized(self):
        client = _client(_routes({("GET", "/api/v1/coupons"): httpx.Response(200, json=COUPONS)}))
        catalog = asyncio.run(client.get_coupon_catalog())
        assert set(catalog) == {"5000OFF", "ENVIOGRATIS", "RARO"}
        assert catalog["5000OFF"].kind == COUPON_AMOUNT
        assert catalog["ENVIOGRATIS"].kind == COUPON_SHIP
        assert catalog["RARO"].kind == COUPON_AMOUNT

    def test_fractional_value_is_truncated(self):
        payload = [{"code": "MEDIO", "type": "amount", "value": 5000.5, "label": "Medio"},
                   {"code": "NEG", "type": "amount", "value": -10}]
        client = _client(_routes({("GET", "/api/v1/coupons"): httpx.Response(200, json=payload)}))
        catalog = asyncio.run(client.get_coupon_catalog())
        assert catalog["MEDIO"].value == 5000
        assert catalog["NEG"].value == 0


class TestSubmitOrder:
    def test_posts_camel_case_draft(self, birthday_student, today):
        state = StorefrontState(catalog=[], profile=birthday_student)
        asyncio.run(refresh_catalog(state, _client(_routes({
            ("GET", "/api/v1/products"): httpx.Response(200, json=PRODUCTS),
        }))))
        state.add_to_cart("BDAY001", 1, today=today)
        draft = state.build_order(today)

        captured = {}

        def create(request):
            captured["body"] = json.loads(request.content)
            return httpx.Response(201, json={
                "id": "ord-1", "orderCode": "ORD-0001", "customerEmail": "camila@duoc.cl",
                "subtotal": 15000, "discountTotal": 15000, "shippingCost": 0, "total": 0,
                "benefitsApplied": captured["body"]["benefitsApplied"],
                "items": [{"codigo": "BDAY001", "quantity": 1, "unitPrice": 0, "originalUnitPrice": 15000,
                           "discountPerUnit": 15000, "subtotal": 0, "originalSubtotal": 15000}],
            })

        client = _client(_routes({("POST", "/api/v1/orders"): create}))
        confirmation = asyncio.run(client.submit_order(draft, token="tok"))

        body = captured["body"]
        assert body["customerEmail"] == "camila@duoc.cl"
        assert body["discountTotal"] == 15000
        assert body["items"][0]["originalUnitPrice"] == 15000
        assert confirmation.order_code == "ORD-0001"
        assert confirmation.total == 0
        assert confirmation.items[0].discount_per_unit == 15000


class TestRefresh:
    def test_refresh_all(self, today):
        client = _client(_routes({
            ("GET", "/api/v1/products"): httpx.Response(200, json=PRODUCTS),
            ("GET", "/api/v1/customers/me"): httpx.Response(200, json=CUSTOMER),
            ("GET", "/api/v1/coupons"): httpx.Response(200, json=COUPONS),
        }))
        state = StorefrontState()

        async def refresh():
            return await asyncio.gather(
                refresh_catalog(state, client),
                refresh_profile(state, client, "tok"),
                refresh_coupons(state, client),
            )

        assert asyncio.run(refresh()) == [True, True, True]
        assert len(state.catalog) == 2
        assert state.profile.email == "camila@duoc.cl"
        assert state.shipping_cost == 6000
        assert "5000OFF" in state.coupon_catalog

    def test_newer_refresh_wins(self):
        state = StorefrontState()

        def products(request):
            # Another refresh starts while this one is in flight
            state.begin_request(CATALOG)
            return httpx.Response(200, json=PRODUCTS)

        client = _client(_routes({("GET", "/api/v1/products"): products}))
        assert asyncio.run(refresh_catalog(state, client)) is False
        assert len(state.catalog) == 0

    def test_signed_out_profile(self):
        state = StorefrontState()
        assert asyncio.run(refresh_profile(state, _client(_routes({})), None))
        assert state.profile is None


ORDER = {"id": "ord-1", "orderCode": "ORD-0001", "subtotal": 15000, "discountTotal": 15000,
         "shippingCost": 0, "total": 0}


def _account_backend(customer, calls, fail_update=False):
    """Backend that keeps one customer account and records every request."""
    account = dict(customer)

    def handler(request):
        body = json.loads(request.content) if request.content else None
        calls.append((request.method, request.url.path, body))
        path = request.url.path
        if path == "/api/v1/products":
            return httpx.Response(200, json=PRODUCTS)
        if path == "/api/v1/customers/me" and request.method == "GET":
            return httpx.Response(200, json=account)
        if path == "/api/v1/customers/me" and request.method == "PUT":
            if fail_update:
                return httpx.Response(500, json={"message": "Error interno"})
            account.update(body)
            return httpx.Response(200, json=account)
        if path == "/api/v1/orders":
            return httpx.Response(201, json=ORDER)
        return httpx.Response(404)

    return handler


def _signed_in_state(client):
    state = StorefrontState()
    asyncio.run(refresh_catalog(state, client))
    asyncio.run(refresh_profile(state, client, "tok"))
    return state


class TestCompleteCheckout:
    def test_birthday_redemption_is_saved_on_the_account(self, today):
        calls = []
        client = _client(_account_backend(CUSTOMER, calls))
        state = _signed_in_state(client)
        assert state.add_to_cart("BDAY001", 1, today=today).ok

        confirmation = asyncio.run(complete_checkout(state, client, "tok", today))

        assert confirmation.order_code == "ORD-0001"
        assert ("PUT", "/api/v1/customers/me", {"birthdayRedeemedYear": 2026}) in calls
        assert state.profile.birthday_redemption_year == 2026
        assert len(state.cart) == 0

        # A fresh profile from the backend keeps the reward used up
        asyncio.run(refresh_profile(state, client, "tok"))
        assert state.profile.birthday_redemption_year == 2026
        assert state.add_to_cart("BDAY001", 1, today=today).status == REWARD_CLAIMED
        state.cart = Cart([CartLine("BDAY001", 1)])
        quote = state.quote(today)
        assert not quote.benefits.birthday_reward_applied
        assert quote.benefits.birthday_discount == 0

    def test_regular_order_does_not_touch_the_account(self, today):
        calls = []
        client = _client(_account_backend(CUSTOMER, calls))
        state = _signed_in_state(client)
        state.add_to_cart("TC001", 1, today=today)

        assert asyncio.run(complete_checkout(state, client, "tok", today)) is not None
        assert [c[0] for c in calls if c[1] == "/api/v1/customers/me"] == ["GET"]
        assert state.profile.birthday_redemption_year == 2025

    def test_failed_redemption_update_keeps_the_order(self, today):
        calls = []
        client = _client(_account_backend(CUSTOMER, calls, fail_update=True))
        state = _signed_in_state(client)
        state.add_to_cart("BDAY001", 1, today=today)

        confirmation = asyncio.run(complete_checkout(state, client, "tok", today))
        assert confirmation.id == "ord-1"
        assert state.profile.birthday_redemption_year == 2026

    def test_inactive_account_sends_nothing(self, today):
        calls = []
        client = _client(_account_backend(dict(CUSTOMER, status="inactive"), calls))
        state = _signed_in_state(client)
        state.cart = Cart([CartLine("TC001", 1)])
        calls.clear()

        assert asyncio.run(complete_checkout(state, client, "tok", today)) is None
        assert calls == []
        assert len(state.cart) == 1
