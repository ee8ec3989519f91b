"""
Shop install / reinstall / uninstall.

A domain maps to exactly one shopify_shops row for its whole life. Installing
again rewrites credentials and reactivates the row; uninstalling only flips
flags so a later reinstall picks the same row back up.
"""

from app.integrations.shopify import ShopifyClient
from app.models.shop_store import ShopStore
from app.models.shopify import ShopDetails
from app.models.tables import Shop, utcnow

import structlog

logger = structlog.get_logger()


def _apply_profile(shop: Shop, details: ShopDetails) -> None:
    shop.shop_name = details.name
    shop.shop_email = details.email
    shop.shop_owner = details.shop_owner
    shop.plan_name = details.plan_name
    shop.country_code = details.country_code
    shop.currency = details.currency


def deactivate(shop: Shop) -> None:
    now = utcnow()
    shop.is_active = False
    shop.uninstalled_at = now
    shop.updated_at = now


class ShopInstaller:
    def __init__(self, store: ShopStore, shopify: ShopifyClient):
        self.store = store
        self.shopify = shopify

    async def install(self, shop_domain: str, access_token: str, scopes: str) -> Shop:
        info = await self.shopify.get_shop_info(shop_domain, access_token)
        if not info.ok:
            # Install without profile data rather than fail the whole OAuth flow
            logger.warning("shop_info_unavailable", shop_domain=shop_domain, error=info.error)

        now = utcnow()
        shop = await self.store.find_by_domain(shop_domain)

        if shop is not None:
            shop.access_token = access_token
            shop.scopes = scopes
            shop.is_active = True
            shop.uninstalled_at = None
            shop.updated_at = now
            shop.last_activity = now
            reinstall = True
        else:
            shop = Shop(
                shop_domain=shop_domain,
                access_token=access_token,
                scopes=scopes,
                is_active=True,
                webhooks_configured=False,
                installed_at=now,
                last_activity=now,
            )
            reinstall = False

        if info.ok:
            _apply_profile(shop, info.value)

        shop = await self.store.upsert(shop)
        logger.info(
            "shop_installed",
            shop_domain=shop_domain,
            shop_id=shop.id,
            reinstall=reinstall,
            has_profile=info.ok,
        )
        return shop

    async def uninstall(self, shop_domain: str) -> bool:
        shop = await self.store.find_by_domain(shop_domain)
        if shop is None:
            logger.info("shop_uninstall_unknown", shop_domain=shop_domain)
            return False
        deactivate(shop)
        await self.store.upsert(shop)
        logger.info("shop_uninstalled", shop_domain=shop_domain, shop_id=shop.id)
        return True
