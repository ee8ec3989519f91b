"""
FastAPI dependency wiring.

The only place that reads the process-wide Settings; everything below the
router gets its configuration handed in. Tests swap any of these out via
app.dependency_overrides.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.dispatcher import WebhookDispatcher
from app.core.installer import ShopInstaller
from app.core.registrar import WebhookRegistrar
from app.integrations.discord import DiscordNotifier
from app.integrations.shopify import ShopifyClient
from app.models.database import get_db
from app.models.shop_store import ShopStore


def get_store(db: AsyncSession = Depends(get_db)) -> ShopStore:
    return ShopStore(db)


def get_shopify_client(settings: Settings = Depends(get_settings)) -> ShopifyClient:
    return ShopifyClient(settings)


def get_notifier(settings: Settings = Depends(get_settings)) -> DiscordNotifier:
    return DiscordNotifier(settings)


def get_installer(
    store: ShopStore = Depends(get_store),
    shopify: ShopifyClient = Depends(get_shopify_client),
) -> ShopInstaller:
    return ShopInstaller(store, shopify)


def get_registrar(
    settings: Settings = Depends(get_settings),
    store: ShopStore = Depends(get_store),
    shopify: ShopifyClient = Depends(get_shopify_client),
) -> WebhookRegistrar:
    return WebhookRegistrar(settings, store, shopify)


def get_dispatcher(
    store: ShopStore = Depends(get_store),
    notifier: DiscordNotifier = Depends(get_notifier),
) -> WebhookDispatcher:
    return WebhookDispatcher(store, notifier)
