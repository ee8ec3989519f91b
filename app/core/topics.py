"""
Webhook topic classification.

Topics arrive on the URL as path segments ("orders-create") and are
registered with Shopify in their native form ("orders/create").
"""

from enum import Enum


class TopicKind(str, Enum):
    ORDER = "order"
    PRODUCT = "product"
    UNINSTALL = "uninstall"
    UNKNOWN = "unknown"


ORDER_TOPICS = frozenset({
    "orders/create",
    "orders/updated",
    "orders/paid",
    "orders/cancelled",
})

PRODUCT_TOPICS = frozenset({
    "products/create",
    "products/update",
})

UNINSTALL_TOPIC = "app/uninstalled"


def classify_topic(topic: str) -> TopicKind:
    t = (topic or "").strip().lower()
    if t in ORDER_TOPICS:
        return TopicKind.ORDER
    if t in PRODUCT_TOPICS:
        return TopicKind.PRODUCT
    if t == UNINSTALL_TOPIC:
        return TopicKind.UNINSTALL
    return TopicKind.UNKNOWN


def topic_to_path(topic: str) -> str:
    """'orders/create' -> 'orders-create'"""
    return topic.replace("/", "-")


def path_to_topic(segment: str) -> str:
    """'orders-create' -> 'orders/create'"""
    return segment.replace("-", "/")
