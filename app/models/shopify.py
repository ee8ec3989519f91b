"""Shopify Admin API / webhook payload shapes. Unknown keys are ignored."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ShopifyModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Customer(ShopifyModel):
    id: int | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class LineItem(ShopifyModel):
    id: int | None = None
    product_id: int | None = None
    variant_id: int | None = None
    title: str = ""
    quantity: int = 0
    price: str = ""


class Variant(ShopifyModel):
    id: int | None = None
    title: str = ""
    price: str = ""
    sku: str | None = None
    inventory_quantity: int = 0


class OrderWebhook(ShopifyModel):
    id: int
    order_number: int | None = None
    email: str | None = None
    total_price: str = ""
    currency: str = ""
    financial_status: str | None = None
    fulfillment_status: str | None = None
    customer: Customer | None = None
    line_items: list[LineItem] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductWebhook(ShopifyModel):
    id: int
    title: str = ""
    handle: str = ""
    product_type: str = ""
    vendor: str = ""
    status: str = ""
    variants: list[Variant] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ShopDetails(ShopifyModel):
    """The `shop` object from GET /admin/api/{version}/shop.json."""
    id: int | None = None
    name: str | None = None
    email: str | None = None
    domain: str | None = None
    myshopify_domain: str | None = None
    shop_owner: str | None = None
    plan_name: str | None = None
    country_code: str | None = None
    currency: str | None = None


class OAuthToken(ShopifyModel):
    access_token: str
    scope: str = ""


class CreatedWebhook(ShopifyModel):
    id: int
    topic: str = ""
    address: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
