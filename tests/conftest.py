"""Pytest configuration."""

import os

# Ensure test environment
os.environ.setdefault("SB_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SB_DEBUG", "true")
os.environ.setdefault("SB_SHOPIFY_WEBHOOK_SECRET", "test-webhook-secret")

import base64
import hashlib
import hmac as hmac_mod
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.core.results import Result
from app.integrations.shopify import ShopifyClient
from app.models.shop_store import ShopStore
from app.models.shopify import ShopDetails
from app.models.tables import Base

WEBHOOK_SECRET = "test-webhook-secret"


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    digest = hmac_mod.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def make_shop_details(**overrides) -> ShopDetails:
    data = {
        "id": 1,
        "name": "Acme Outfitters",
        "email": "owner@acme.test",
        "domain": "acme.test",
        "myshopify_domain": "acme.myshopify.com",
        "shop_owner": "Ada Acme",
        "plan_name": "basic",
        "country_code": "US",
        "currency": "USD",
    }
    data.update(overrides)
    return ShopDetails(**data)


@pytest.fixture
def settings():
    return Settings(
        shopify_client_id="client-123",
        shopify_client_secret="client-secret",
        shopify_scopes="read_products,write_products,read_orders",
        shopify_webhook_secret=WEBHOOK_SECRET,
        shopify_app_url="https://app.example.com/",
        shopify_redirect_url="https://app.example.com/api/shopify/auth/callback",
        shopify_webhook_endpoint="/api/shopify/webhooks",
        shopify_required_webhooks=["orders/create", "app/uninstalled"],
        discord_enabled=True,
        discord_webhook_url="https://discord.example.com/api/webhooks/1/abc",
    )


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def store(db):
    return ShopStore(db)


@pytest.fixture
def shopify():
    """ShopifyClient double: shop info succeeds, every webhook gets a fresh id."""
    client = AsyncMock(spec=ShopifyClient)
    client.get_shop_info.return_value = Result.success(make_shop_details())

    counter = {"next": 1000}

    async def _create_webhook(shop_domain, access_token, topic, address):
        counter["next"] += 1
        return Result.success(counter["next"])

    client.create_webhook.side_effect = _create_webhook
    return client


@pytest.fixture
def notifier():
    n = AsyncMock()
    n.notify.return_value = True
    return n
