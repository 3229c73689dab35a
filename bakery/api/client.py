"""
Storefront backend HTTP client.

Implements the collaborators the pricing core consumes: product catalog,
customer profile, coupon catalog, order submission and the birthday reward
redemption. Every response is validated with the models in
``bakery.api.schemas`` and converted to domain entities before it is handed
to the core.

BAKERY_API_BASE_URL points to the REST backend (default http://localhost:8080).
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from bakery.api.schemas import (
    CouponResponse,
    CustomerProfileResponse,
    OrderConfirmation,
    ProductResponse,
)
from bakery.catalog.models import CouponDefinition, CustomerProfile, Product
from bakery.core.config import BakeryConfig, get_config
from bakery.core.state import CATALOG, COUPONS, PROFILE, StorefrontState
from bakery.orders.draft import OrderDraft
from bakery.pricing.coupons import normalize_coupon_catalog

logger = logging.getLogger("bakery.api.client")


class StorefrontAPIError(Exception):
    """Backend request failed (transport error, non-2xx status or bad payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def backend_message(self) -> Optional[str]:
        """The ``message`` field of a JSON error body, when the backend sent one."""
        if isinstance(self.payload, dict):
            message = self.payload.get("message")
            if isinstance(message, str) and message.strip():
                return message
        return None


class StorefrontClient:
    """Async client for the storefront REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[BakeryConfig] = None,
    ) -> None:
        self.config = config or get_config()
        self.base_url = (base_url or self.config.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else self.config.request_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            async with self._client() as client:
                resp = await client.request(method, path, json=body, headers=headers)
        except httpx.RequestError as e:
            logger.error("storefront: %s %s request failed: %s", method, path, e)
            raise StorefrontAPIError(f"Backend unreachable: {e}") from e

        if resp.is_error:
            payload = None
            if "application/json" in resp.headers.get("content-type", ""):
                try:
                    payload = resp.json()
                except ValueError:
                    payload = None
            logger.warning("storefront: %s %s HTTP %s body=%s", method, path, resp.status_code, resp.text[:500])
            raise StorefrontAPIError("Backend request failed", status_code=resp.status_code, payload=payload)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StorefrontAPIError("Backend returned invalid JSON", status_code=resp.status_code) from e

    @staticmethod
    def _parse(model: type[BaseModel], data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning("storefront: invalid %s payload: %s", model.__name__, e)
            raise StorefrontAPIError(f"Invalid {model.__name__} payload", payload=data) from e

    async def get_catalog(self) -> List[Product]:
        """Active products; the birthday cake is mapped with a displayed price of 0."""
        data = await self._request("GET", "/api/v1/products") or []
        products = [self._parse(ProductResponse, item) for item in data]
        return [
            p.to_product(self.config.birthday_cake_id)
            for p in products
            if p.active
        ]

    async def get_customer_profile(self, token: Optional[str]) -> Optional[CustomerProfile]:
        """Authenticated customer's profile, or None for guests / expired sessions."""
        if not token:
            return None
        try:
            data = await self._request("GET", "/api/v1/customers/me", token=token)
        except StorefrontAPIError as e:
            if e.status_code in (401, 403, 404):
                logger.info("storefront: no customer profile (HTTP %s), continuing as guest", e.status_code)
                return None
            raise
        if data is None:
            return None
        return self._parse(CustomerProfileResponse, data).to_profile()

    async def get_coupon_catalog(self) -> Dict[str, CouponDefinition]:
        data = await self._request("GET", "/api/v1/coupons") or []
        definitions = [self._parse(CouponResponse, item).to_definition() for item in data]
        return normalize_coupon_catalog(definitions)

    async def submit_order(self, draft: OrderDraft, token: Optional[str] = None) -> OrderConfirmation:
        data = await self._request("POST", "/api/v1/orders", token=token, body=draft.to_request())
        return self._parse(OrderConfirmation, data)

    async def mark_birthday_redeemed(self, token: Optional[str], year: int) -> Optional[CustomerProfile]:
        """Save the birthday reward redemption year on the customer's account."""
        data = await self._request(
            "PUT", "/api/v1/customers/me", token=token, body={"birthdayRedeemedYear": year},
        )
        if data is None:
            return None
        return self._parse(CustomerProfileResponse, data).to_profile()


async def refresh_catalog(state: StorefrontState, client: StorefrontClient) -> bool:
    """Fetch the catalog into ``state``; a newer refresh started meanwhile wins."""
    ticket = state.begin_request(CATALOG)
    products = await client.get_catalog()
    return state.apply_catalog(products, ticket)


async def refresh_profile(state: StorefrontState, client: StorefrontClient, token: Optional[str]) -> bool:
    ticket = state.begin_request(PROFILE)
    profile = await client.get_customer_profile(token)
    return state.apply_profile(profile, ticket)


async def refresh_coupons(state: StorefrontState, client: StorefrontClient) -> bool:
    ticket = state.begin_request(COUPONS)
    coupons = await client.get_coupon_catalog()
    return state.apply_coupons(coupons, ticket)


async def complete_checkout(
    state: StorefrontState,
    client: StorefrontClient,
    token: Optional[str],
    today: Optional[date] = None,
    notes: Optional[str] = None,
    shipping_address_id: Optional[str] = None,
    contact_email: Optional[str] = None,
) -> Optional[OrderConfirmation]:
    """
    Submit the current cart as an order and settle the storefront state.

    Returns None without calling the backend when there is nothing to order
    (empty cart or inactive account). When the order used the birthday reward
    the redemption year is saved on the account, so a later profile refresh
    cannot bring the reward back within the same year.
    """
    today = today or date.today()
    quote = state.quote(today)
    draft = state.build_order(
        today, notes=notes, shipping_address_id=shipping_address_id, contact_email=contact_email,
    )
    if draft is None:
        return None

    confirmation = await client.submit_order(draft, token=token)
    state.complete_checkout(quote, today)

    if quote.benefits.birthday_reward_applied and token:
        # Profile refreshes still in flight carry the old redemption year
        state.begin_request(PROFILE)
        try:
            await client.mark_birthday_redeemed(token, today.year)
        except StorefrontAPIError as e:
            logger.warning(
                "storefront: order %s placed but birthday redemption was not saved: %s",
                confirmation.id, e.message,
            )
    return confirmation
