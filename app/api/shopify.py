"""
Shopify integration — OAuth install, webhook receiver, shop read models.

Webhook deliveries authenticate with Shopify's HMAC-SHA256 header, checked
here before the dispatcher sees the body. The OAuth callback passes `state`
straight through: nothing on this side generated it, so nothing here can
check it.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.api.deps import (
    get_dispatcher,
    get_installer,
    get_notifier,
    get_registrar,
    get_shopify_client,
    get_store,
)
from app.config import Settings, get_settings
from app.core.dispatcher import WebhookDispatcher
from app.core.installer import ShopInstaller
from app.core.registrar import WebhookRegistrar
from app.core.signature import verify_signature
from app.core.topics import path_to_topic
from app.integrations.discord import DiscordNotifier, NotificationKind
from app.integrations.shopify import (
    ShopifyClient,
    has_required_scopes,
    missing_scopes,
    normalize_shop_domain,
)
from app.models.shop_store import ShopStore
from app.models.tables import Shop

import structlog

logger = structlog.get_logger()
router = APIRouter(prefix="/api/shopify", tags=["shopify"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _shop_summary(shop: Shop) -> dict:
    return {
        "id": shop.id,
        "domain": shop.shop_domain,
        "name": shop.shop_name,
        "email": shop.shop_email,
        "owner": shop.shop_owner,
        "plan": shop.plan_name,
        "country": shop.country_code,
        "currency": shop.currency,
        "scopes": shop.scope_list,
        "webhooks_configured": shop.webhooks_configured,
        "installed_at": _iso(shop.installed_at),
        "last_activity": _iso(shop.last_activity),
    }


async def _get_active_shop(store: ShopStore, shop_domain: str) -> Shop:
    shop = await store.find_by_domain(shop_domain)
    if shop is None or not shop.is_active:
        raise HTTPException(status_code=404, detail="Shop not found or inactive.")
    return shop


# ---------------------------------------------------------------------------
# OAuth
# ---------------------------------------------------------------------------

@router.get("/auth")
async def initiate_auth(
    shop: str = Query(""),
    state: str = Query(""),
    shopify: ShopifyClient = Depends(get_shopify_client),
):
    if not shop.strip():
        raise HTTPException(status_code=400, detail="Shop parameter is required.")

    shop_domain = normalize_shop_domain(shop)
    return {
        "auth_url": shopify.authorization_url(shop_domain, state),
        "shop_domain": shop_domain,
        "message": "Redirect user to this URL to begin OAuth flow",
    }


@router.get("/auth/callback")
async def auth_callback(
    shop: str = Query(""),
    code: str = Query(""),
    state: str | None = Query(None),
    shopify: ShopifyClient = Depends(get_shopify_client),
    installer: ShopInstaller = Depends(get_installer),
    registrar: WebhookRegistrar = Depends(get_registrar),
    notifier: DiscordNotifier = Depends(get_notifier),
):
    if not shop.strip() or not code.strip():
        raise HTTPException(status_code=400, detail="Shop and code parameters are required.")

    shop_domain = normalize_shop_domain(shop)

    # --- Exchange code for token ---
    token = await shopify.exchange_code(shop_domain, code)
    if not token.ok:
        raise HTTPException(status_code=400, detail="Failed to exchange code for access token.")

    # --- Install + register webhooks ---
    installed = await installer.install(shop_domain, token.value.access_token, token.value.scope)
    webhooks_configured = await registrar.register_required(shop_domain, token.value.access_token)

    logger.info(
        "shopify_oauth_completed",
        shop_domain=shop_domain,
        webhooks_configured=webhooks_configured,
        state_present=state is not None,
    )
    await notifier.notify(
        NotificationKind.SUCCESS,
        "Shopify App Installed",
        f"Shop {shop_domain} installed the app",
        {
            "Shop": installed.shop_name or shop_domain,
            "Plan": installed.plan_name or "Unknown",
            "Webhooks": "configured" if webhooks_configured else "incomplete",
        },
    )
    return {
        "success": True,
        "shop": {
            "domain": installed.shop_domain,
            "name": installed.shop_name,
            "email": installed.shop_email,
            "scopes": installed.scope_list,
            "webhooks_configured": webhooks_configured,
        },
        "message": "Shop installed successfully",
    }


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------

@router.post("/webhooks/{topic}", status_code=200)
async def receive_webhook(
    topic: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
):
    body = await request.body()
    shop_domain = request.headers.get("X-Shopify-Shop-Domain", "")
    signature = request.headers.get("X-Shopify-Hmac-Sha256", "")

    if not body:
        raise HTTPException(status_code=400, detail="Empty payload.")

    # --- Verify HMAC ---
    if not verify_signature(body, signature, settings.shopify_webhook_secret):
        logger.warning("shopify_webhook_bad_signature", topic=topic, shop_domain=shop_domain)
        raise HTTPException(status_code=401, detail="Invalid HMAC signature.")

    webhook_topic = path_to_topic(topic)
    try:
        await dispatcher.dispatch(webhook_topic, shop_domain, body, signature)
    except Exception:
        # Already logged and reported by the dispatcher; a 5xx makes Shopify retry
        raise HTTPException(status_code=500, detail="Error processing webhook.")

    return {"success": True, "message": "Webhook processed successfully"}


# ---------------------------------------------------------------------------
# Shops
# ---------------------------------------------------------------------------

@router.get("/shops")
async def list_shops(store: ShopStore = Depends(get_store)):
    shops = await store.list_active()
    data = [_shop_summary(s) for s in shops]
    return {"shops": data, "count": len(data)}


@router.get("/shops/{shop_domain}/products")
async def list_shop_products(
    shop_domain: str,
    limit: int = Query(50, ge=1, le=250),
    store: ShopStore = Depends(get_store),
    shopify: ShopifyClient = Depends(get_shopify_client),
):
    shop = await _get_active_shop(store, shop_domain)
    result = await shopify.list_products(shop_domain, shop.access_token, limit)
    if not result.ok:
        raise HTTPException(status_code=502, detail=f"Shopify request failed: {result.error}")
    return {"products": [p.model_dump(mode="json") for p in result.value], "count": len(result.value)}


@router.get("/shops/{shop_domain}/orders")
async def list_shop_orders(
    shop_domain: str,
    limit: int = Query(50, ge=1, le=250),
    store: ShopStore = Depends(get_store),
    shopify: ShopifyClient = Depends(get_shopify_client),
):
    shop = await _get_active_shop(store, shop_domain)
    result = await shopify.list_orders(shop_domain, shop.access_token, limit)
    if not result.ok:
        raise HTTPException(status_code=502, detail=f"Shopify request failed: {result.error}")
    return {"orders": [o.model_dump(mode="json") for o in result.value], "count": len(result.value)}


@router.post("/shops/{shop_domain}/webhooks/setup")
async def setup_shop_webhooks(
    shop_domain: str,
    store: ShopStore = Depends(get_store),
    registrar: WebhookRegistrar = Depends(get_registrar),
):
    shop = await _get_active_shop(store, shop_domain)
    success = await registrar.register_required(shop_domain, shop.access_token)
    return {
        "success": success,
        "message": "Webhooks configured successfully" if success else "Some webhooks failed to configure",
    }


# ---------------------------------------------------------------------------
# Analytics / utilities
# ---------------------------------------------------------------------------

@router.get("/analytics/overview")
async def analytics_overview(
    days: int = Query(30, ge=1, le=365),
    store: ShopStore = Depends(get_store),
):
    active = await store.count_active()
    recent = await store.recent_installations(days)
    missing = await store.without_webhooks()
    return {
        "active_shops": active,
        "recent_installs": len(recent),
        "shops_without_webhooks": len(missing),
        "recent_installations": [
            {"domain": s.shop_domain, "name": s.shop_name, "installed_at": _iso(s.installed_at)}
            for s in recent[:10]
        ],
    }


@router.get("/scopes/check/{shop_domain}")
async def check_scopes(
    shop_domain: str,
    settings: Settings = Depends(get_settings),
    store: ShopStore = Depends(get_store),
):
    shop = await store.find_by_domain(shop_domain)
    if shop is None:
        raise HTTPException(status_code=404, detail="Shop not found.")

    current = shop.scope_list
    required = list(settings.shopify_required_scopes)
    return {
        "shop_domain": shop.shop_domain,
        "current_scopes": current,
        "required_scopes": required,
        "has_required_scopes": has_required_scopes(current, required),
        "missing_scopes": missing_scopes(current, required),
    }
