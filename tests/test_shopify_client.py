"""Tests for the Shopify Admin API client (HTTP faked with httpx.MockTransport)."""

import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from app.integrations.shopify import (
    ShopifyClient,
    has_required_scopes,
    missing_scopes,
    normalize_shop_domain,
)

DOMAIN = "acme.myshopify.com"


def _client(settings, handler):
    return ShopifyClient(settings, transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

class TestNormalizeShopDomain:
    def test_bare_handle_gets_suffix(self):
        assert normalize_shop_domain("acme") == "acme.myshopify.com"

    def test_full_domain_unchanged(self):
        assert normalize_shop_domain("acme.myshopify.com") == "acme.myshopify.com"

    def test_trims_and_lowercases(self):
        assert normalize_shop_domain("  Acme ") == "acme.myshopify.com"


class TestScopes:
    def test_has_required_case_insensitive(self):
        assert has_required_scopes(["READ_PRODUCTS", "read_orders"], ["read_products", "read_orders"])

    def test_missing_scope(self):
        assert not has_required_scopes(["read_products"], ["read_products", "read_orders"])
        assert missing_scopes(["read_products"], ["read_products", "read_orders"]) == ["read_orders"]

    def test_nothing_required(self):
        assert has_required_scopes([], [])


def test_authorization_url(settings):
    url = ShopifyClient(settings).authorization_url(DOMAIN, "nonce-123")

    parts = urlsplit(url)
    assert parts.netloc == DOMAIN
    assert parts.path == "/admin/oauth/authorize"
    query = parse_qs(parts.query, keep_blank_values=True)
    assert query["client_id"] == ["client-123"]
    assert query["scope"] == ["read_products,write_products,read_orders"]
    assert query["redirect_uri"] == ["https://app.example.com/api/shopify/auth/callback"]
    assert query["state"] == ["nonce-123"]
    assert "grant_options[]" in query
    assert "%2C" in url  # scope list is url-encoded


def test_timeout_defaults_to_settings(settings):
    assert ShopifyClient(settings).timeout == settings.shopify_timeout_seconds
    assert ShopifyClient(settings, timeout=2.5).timeout == 2.5


# ---------------------------------------------------------------------------
# OAuth exchange
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_exchange_code_success(settings):
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"access_token": "shpat_new", "scope": "read_products"})

    result = await _client(settings, handler).exchange_code(DOMAIN, "auth-code")

    assert result.ok
    assert result.value.access_token == "shpat_new"
    assert result.value.scope == "read_products"
    assert seen["url"] == f"https://{DOMAIN}/admin/oauth/access_token"
    assert seen["body"] == {"client_id": "client-123", "client_secret": "client-secret", "code": "auth-code"}


@pytest.mark.asyncio
async def test_exchange_code_rejected(settings):
    result = await _client(settings, lambda r: httpx.Response(400, json={"error": "invalid_request"})).exchange_code(
        DOMAIN, "bad"
    )
    assert not result.ok
    assert result.status_code == 400


@pytest.mark.asyncio
async def test_exchange_code_network_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await _client(settings, handler).exchange_code(DOMAIN, "code")
    assert not result.ok
    assert "cannot reach shopify" in result.error


@pytest.mark.asyncio
async def test_exchange_code_malformed_body(settings):
    result = await _client(settings, lambda r: httpx.Response(200, json={"scope": "x"})).exchange_code(DOMAIN, "c")
    assert not result.ok


# ---------------------------------------------------------------------------
# Admin API
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_shop_info(settings):
    def handler(request: httpx.Request):
        assert request.headers["X-Shopify-Access-Token"] == "shpat_test"
        assert request.url.path == "/admin/api/2024-10/shop.json"
        return httpx.Response(200, json={"shop": {"id": 1, "name": "Acme", "currency": "EUR", "extra": True}})

    result = await _client(settings, handler).get_shop_info(DOMAIN, "shpat_test")

    assert result.ok
    assert result.value.name == "Acme"
    assert result.value.currency == "EUR"


@pytest.mark.asyncio
async def test_get_shop_info_unauthorized(settings):
    result = await _client(settings, lambda r: httpx.Response(401, text="Unauthorized")).get_shop_info(DOMAIN, "t")
    assert not result.ok
    assert result.status_code == 401


@pytest.mark.asyncio
async def test_get_shop_info_timeout(settings):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = await _client(settings, handler).get_shop_info(DOMAIN, "t")
    assert not result.ok


@pytest.mark.asyncio
async def test_create_webhook_returns_upstream_id(settings):
    seen = {}

    def handler(request: httpx.Request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            201,
            json={"webhook": {"id": 1234567890, "topic": "orders/create", "address": "https://x/orders-create"}},
        )

    result = await _client(settings, handler).create_webhook(
        DOMAIN, "shpat_test", "orders/create", "https://x/orders-create"
    )

    assert result.ok
    assert result.value == 1234567890
    assert seen["body"] == {
        "webhook": {"topic": "orders/create", "address": "https://x/orders-create", "format": "json"}
    }


@pytest.mark.asyncio
async def test_create_webhook_unprocessable(settings):
    handler = lambda r: httpx.Response(422, json={"errors": {"address": ["for this topic has already been taken"]}})
    result = await _client(settings, handler).create_webhook(DOMAIN, "t", "orders/create", "https://x")
    assert not result.ok
    assert result.status_code == 422


@pytest.mark.asyncio
async def test_create_webhook_malformed_response(settings):
    result = await _client(settings, lambda r: httpx.Response(201, json={"nope": {}})).create_webhook(
        DOMAIN, "t", "orders/create", "https://x"
    )
    assert not result.ok


@pytest.mark.asyncio
async def test_list_products_passes_limit(settings):
    def handler(request: httpx.Request):
        assert request.url.params["limit"] == "5"
        return httpx.Response(200, json={"products": [{"id": 1, "title": "Socks"}, {"id": 2, "title": "Hat"}]})

    result = await _client(settings, handler).list_products(DOMAIN, "t", limit=5)
    assert result.ok
    assert [p.title for p in result.value] == ["Socks", "Hat"]


@pytest.mark.asyncio
async def test_list_orders(settings):
    handler = lambda r: httpx.Response(200, json={"orders": [{"id": 9, "total_price": "10.00", "currency": "USD"}]})
    result = await _client(settings, handler).list_orders(DOMAIN, "t")
    assert result.ok
    assert result.value[0].id == 9


@pytest.mark.asyncio
async def test_non_json_body_is_failure(settings):
    result = await _client(settings, lambda r: httpx.Response(200, text="<html>")).list_orders(DOMAIN, "t")
    assert not result.ok
