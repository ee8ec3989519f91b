"""
Shopify Admin API client.

Covers the handful of upstream calls the app makes: OAuth code exchange,
shop metadata, webhook creation, and read-only product/order listings.
Expected failures (network, non-2xx, malformed body) come back as
Result.failure; nothing here raises for them.
"""

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from app.config import Settings
from app.core.results import Result
from app.models.shopify import (
    CreatedWebhook,
    OAuthToken,
    OrderWebhook,
    ProductWebhook,
    ShopDetails,
)

import structlog

logger = structlog.get_logger()

SHOP_DOMAIN_SUFFIX = ".myshopify.com"


def normalize_shop_domain(shop: str) -> str:
    """'acme' -> 'acme.myshopify.com'; full domains pass through lowercased."""
    shop = shop.strip().lower()
    if SHOP_DOMAIN_SUFFIX in shop:
        return shop
    return f"{shop}{SHOP_DOMAIN_SUFFIX}"


def has_required_scopes(current: list[str] | set[str], required: list[str]) -> bool:
    granted = {s.lower() for s in current}
    return all(r.lower() in granted for r in required)


def missing_scopes(current: list[str] | set[str], required: list[str]) -> list[str]:
    granted = {s.lower() for s in current}
    return [r for r in required if r.lower() not in granted]


class ShopifyClient:
    def __init__(
        self,
        settings: Settings,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.timeout = timeout if timeout is not None else settings.shopify_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _admin_url(self, shop_domain: str, endpoint: str) -> str:
        return f"https://{shop_domain}/admin/api/{self.settings.shopify_api_version}/{endpoint}"

    # --- OAuth ---

    def authorization_url(self, shop_domain: str, state: str = "") -> str:
        """Build the install URL the merchant is redirected to.

        `state` is forwarded verbatim; checking it on the way back is up to
        whoever generated it.
        """
        s = self.settings
        return (
            f"https://{shop_domain}/admin/oauth/authorize"
            f"?client_id={s.shopify_client_id}"
            f"&scope={quote(s.shopify_scopes, safe='')}"
            f"&redirect_uri={quote(s.shopify_redirect_url, safe='')}"
            f"&state={state}"
            f"&grant_options[]="
        )

    async def exchange_code(self, shop_domain: str, code: str) -> Result[OAuthToken]:
        payload = {
            "client_id": self.settings.shopify_client_id,
            "client_secret": self.settings.shopify_client_secret,
            "code": code,
        }
        result = await self._request(
            "POST",
            f"https://{shop_domain}/admin/oauth/access_token",
            shop_domain,
            json=payload,
        )
        if not result.ok:
            logger.error("shopify_token_exchange_failed", shop_domain=shop_domain, error=result.error)
            return Result.failure(result.error, result.status_code)
        try:
            return Result.success(OAuthToken.model_validate(result.value))
        except ValidationError as e:
            logger.error("shopify_token_exchange_malformed", shop_domain=shop_domain, error=str(e))
            return Result.failure("malformed token response")

    # --- Admin API ---

    async def get_shop_info(self, shop_domain: str, access_token: str) -> Result[ShopDetails]:
        result = await self._request(
            "GET", self._admin_url(shop_domain, "shop.json"), shop_domain, access_token=access_token
        )
        if not result.ok:
            return Result.failure(result.error, result.status_code)
        try:
            return Result.success(ShopDetails.model_validate(result.value["shop"]))
        except (KeyError, TypeError, ValidationError) as e:
            logger.error("shopify_shop_info_malformed", shop_domain=shop_domain, error=str(e))
            return Result.failure("malformed shop response")

    async def create_webhook(
        self, shop_domain: str, access_token: str, topic: str, address: str
    ) -> Result[int]:
        """Subscribe `address` to `topic`. Success carries Shopify's webhook id."""
        body = {"webhook": {"topic": topic, "address": address, "format": "json"}}
        result = await self._request(
            "POST",
            self._admin_url(shop_domain, "webhooks.json"),
            shop_domain,
            access_token=access_token,
            json=body,
        )
        if not result.ok:
            return Result.failure(result.error, result.status_code)
        try:
            created = CreatedWebhook.model_validate(result.value["webhook"])
        except (KeyError, TypeError, ValidationError) as e:
            logger.error("shopify_webhook_response_malformed", topic=topic, error=str(e))
            return Result.failure("malformed webhook response")
        return Result.success(created.id)

    async def list_products(
        self, shop_domain: str, access_token: str, limit: int = 50
    ) -> Result[list[ProductWebhook]]:
        result = await self._request(
            "GET",
            self._admin_url(shop_domain, "products.json"),
            shop_domain,
            access_token=access_token,
            params={"limit": limit},
        )
        if not result.ok:
            return Result.failure(result.error, result.status_code)
        try:
            return Result.success(
                [ProductWebhook.model_validate(p) for p in result.value.get("products", [])]
            )
        except (AttributeError, ValidationError) as e:
            logger.error("shopify_products_malformed", shop_domain=shop_domain, error=str(e))
            return Result.failure("malformed products response")

    async def list_orders(
        self, shop_domain: str, access_token: str, limit: int = 50
    ) -> Result[list[OrderWebhook]]:
        result = await self._request(
            "GET",
            self._admin_url(shop_domain, "orders.json"),
            shop_domain,
            access_token=access_token,
            params={"limit": limit},
        )
        if not result.ok:
            return Result.failure(result.error, result.status_code)
        try:
            return Result.success(
                [OrderWebhook.model_validate(o) for o in result.value.get("orders", [])]
            )
        except (AttributeError, ValidationError) as e:
            logger.error("shopify_orders_malformed", shop_domain=shop_domain, error=str(e))
            return Result.failure("malformed orders response")

    # --- Transport ---

    async def _request(
        self,
        method: str,
        url: str,
        shop_domain: str,
        access_token: str | None = None,
        **kwargs: Any,
    ) -> Result[Any]:
        headers = {"Content-Type": "application/json"}
        if access_token:
            headers["X-Shopify-Access-Token"] = access_token

        async with self._client() as client:
            try:
                resp = await client.request(method, url, headers=headers, **kwargs)
            except httpx.HTTPError as e:
                logger.warning(
                    "shopify_request_error",
                    shop_domain=shop_domain,
                    method=method,
                    url=url,
                    error=str(e),
                )
                return Result.failure(f"cannot reach shopify: {e}")

        if resp.status_code not in (200, 201):
            logger.warning(
                "shopify_request_failed",
                shop_domain=shop_domain,
                method=method,
                url=url,
                status=resp.status_code,
                body=resp.text[:500],
            )
            return Result.failure(f"shopify returned {resp.status_code}", resp.status_code)

        try:
            return Result.success(resp.json())
        except ValueError:
            return Result.failure("shopify returned a non-JSON body", resp.status_code)
