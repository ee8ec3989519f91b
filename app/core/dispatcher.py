"""
Inbound webhook dispatch.

The HTTP boundary verifies the signature; by the time dispatch() runs the
payload is trusted. Dispatch then:

  1. bumps the shop's last_activity (unknown shops are fine, just not attributed)
  2. classifies the topic and parses the payload into its pydantic model
  3. hands it to the order / product / uninstall handler

Topics we don't know are dropped with a warning: Shopify adds topics over
time and a store may be subscribed to more than we handle. Any failure from
step 2 or 3 sends one error notification and is re-raised for the boundary
to turn into a 5xx, so Shopify retries the delivery.
"""

from app.core.installer import deactivate
from app.core.topics import TopicKind, classify_topic
from app.integrations.discord import DiscordNotifier, NotificationKind
from app.models.shop_store import ShopStore
from app.models.shopify import OrderWebhook, ProductWebhook

import structlog

logger = structlog.get_logger()

ORDER_MESSAGES = {
    "orders/create": "New order created in {shop}",
    "orders/updated": "Order updated in {shop}",
    "orders/paid": "Order payment received in {shop}",
    "orders/cancelled": "Order cancelled in {shop}",
}

PRODUCT_MESSAGES = {
    "products/create": "New product created in {shop}",
    "products/update": "Product updated in {shop}",
}


def order_fields(order: OrderWebhook) -> dict[str, str]:
    return {
        "Order ID": str(order.id),
        "Order Number": str(order.order_number) if order.order_number is not None else "-",
        "Total": f"{order.total_price} {order.currency}".strip(),
        "Status": order.financial_status or "Unknown",
        "Customer": (order.customer.email if order.customer else None) or "Guest",
    }


def product_fields(product: ProductWebhook) -> dict[str, str]:
    return {
        "Product ID": str(product.id),
        "Title": product.title,
        "Type": product.product_type,
        "Vendor": product.vendor,
        "Status": product.status,
        "Variants": str(len(product.variants)),
    }


class WebhookDispatcher:
    def __init__(self, store: ShopStore, notifier: DiscordNotifier):
        self.store = store
        self.notifier = notifier

    async def dispatch(
        self,
        topic: str,
        shop_domain: str,
        raw_payload: bytes,
        signature: str | None = None,
    ) -> None:
        topic = topic.strip().lower()
        log = logger.bind(topic=topic, shop_domain=shop_domain)
        log.info("webhook_processing", signed=bool(signature), size=len(raw_payload))

        if not await self.store.touch_activity(shop_domain):
            log.info("webhook_shop_unknown")

        kind = classify_topic(topic)
        if kind is TopicKind.UNKNOWN:
            log.warning("webhook_topic_unhandled")
            return

        try:
            if kind is TopicKind.ORDER:
                await self.handle_order(topic, OrderWebhook.model_validate_json(raw_payload), shop_domain)
            elif kind is TopicKind.PRODUCT:
                await self.handle_product(topic, ProductWebhook.model_validate_json(raw_payload), shop_domain)
            else:
                await self.handle_uninstalled(shop_domain)
        except Exception as e:
            log.error("webhook_processing_error", error=str(e), exc_info=True)
            await self._notify(
                NotificationKind.ERROR,
                f"Webhook Processing Error - {topic}",
                f"Failed to process webhook for shop {shop_domain}: {e}",
            )
            raise

        log.info("webhook_processed", kind=kind.value)

    async def handle_order(self, topic: str, order: OrderWebhook, shop_domain: str) -> None:
        message = ORDER_MESSAGES.get(topic, "Order event ({topic}) in {shop}")
        await self._notify(
            NotificationKind.INFO,
            f"Shopify Order Event - {topic}",
            message.format(shop=shop_domain, topic=topic),
            order_fields(order),
        )
        logger.info("order_webhook_handled", topic=topic, order_id=order.id, shop_domain=shop_domain)

    async def handle_product(self, topic: str, product: ProductWebhook, shop_domain: str) -> None:
        message = PRODUCT_MESSAGES.get(topic, "Product event ({topic}) in {shop}")
        await self._notify(
            NotificationKind.INFO,
            f"Shopify Product Event - {topic}",
            message.format(shop=shop_domain, topic=topic),
            product_fields(product),
        )
        logger.info("product_webhook_handled", topic=topic, product_id=product.id, shop_domain=shop_domain)

    async def handle_uninstalled(self, shop_domain: str) -> None:
        shop = await self.store.find_by_domain(shop_domain)
        if shop is not None:
            deactivate(shop)
            await self.store.upsert(shop)
            logger.info("app_uninstalled", shop_domain=shop_domain, shop_id=shop.id)
            body = f"Shop {shop_domain} has uninstalled the app"
        else:
            logger.info("app_uninstalled_unknown_shop", shop_domain=shop_domain)
            body = f"Unknown shop {shop_domain} sent app/uninstalled"

        await self._notify(NotificationKind.ERROR, "Shopify App Uninstalled", body)

    async def _notify(
        self,
        kind: NotificationKind,
        title: str,
        body: str,
        fields: dict[str, str] | None = None,
    ) -> bool:
        try:
            return await self.notifier.notify(kind, title, body, fields)
        except Exception as e:
            logger.warning("notification_failed", title=title, error=str(e))
            return False
