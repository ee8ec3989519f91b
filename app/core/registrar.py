"""
Webhook registration with Shopify.

Every required topic is attempted even when an earlier one fails; the shop's
webhooks_configured flag records whether the whole set went through. Calling
register_required again after a partial pass is the retry.
"""

from app.config import Settings
from app.core.topics import topic_to_path
from app.integrations.shopify import ShopifyClient
from app.models.shop_store import ShopStore
from app.models.tables import WebhookRegistration

import structlog

logger = structlog.get_logger()


class WebhookRegistrar:
    def __init__(self, settings: Settings, store: ShopStore, shopify: ShopifyClient):
        self.settings = settings
        self.store = store
        self.shopify = shopify

    def address_for(self, topic: str) -> str:
        return f"{self.settings.webhook_base_url}/{topic_to_path(topic)}"

    async def register_required(self, shop_domain: str, access_token: str) -> bool:
        topics = list(self.settings.shopify_required_webhooks)

        if not self.settings.shopify_enable_webhooks or not topics:
            logger.info(
                "webhook_registration_skipped",
                shop_domain=shop_domain,
                enabled=self.settings.shopify_enable_webhooks,
                topics=len(topics),
            )
            return True

        success_count = 0
        for topic in topics:
            if await self.register_one(shop_domain, access_token, topic, self.address_for(topic)):
                success_count += 1

        all_success = success_count == len(topics)
        await self._set_configured(shop_domain, all_success)

        log = logger.info if all_success else logger.warning
        log(
            "webhooks_registered",
            shop_domain=shop_domain,
            succeeded=success_count,
            total=len(topics),
        )
        return all_success

    async def register_one(
        self, shop_domain: str, access_token: str, topic: str, address: str
    ) -> bool:
        result = await self.shopify.create_webhook(shop_domain, access_token, topic, address)
        if not result.ok:
            logger.error(
                "webhook_register_failed",
                shop_domain=shop_domain,
                topic=topic,
                error=result.error,
                status=result.status_code,
            )
            return False

        shop = await self.store.find_by_domain(shop_domain)
        if shop is None:
            # Shopify has the subscription but we have nowhere to record it
            logger.warning(
                "webhook_registered_for_missing_shop",
                shop_domain=shop_domain,
                topic=topic,
                webhook_id=result.value,
            )
            return True

        await self.store.add_webhook(
            WebhookRegistration(
                shop_id=shop.id,
                webhook_id=str(result.value),
                topic=topic,
                address=address,
                is_active=True,
            )
        )
        logger.info("webhook_registered", shop_domain=shop_domain, topic=topic, webhook_id=result.value)
        return True

    async def _set_configured(self, shop_domain: str, configured: bool) -> None:
        shop = await self.store.find_by_domain(shop_domain)
        if shop is None:
            return
        shop.webhooks_configured = configured
        await self.store.upsert(shop)
