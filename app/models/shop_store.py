"""
Shop persistence.

Thin repository over an AsyncSession. Every write commits immediately;
there is no unit of work spanning several calls.
"""

import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tables import Shop, WebhookRegistration, utcnow

import structlog

logger = structlog.get_logger()


class ShopStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Shops ---

    async def find_by_domain(self, shop_domain: str) -> Shop | None:
        stmt = select(Shop).where(Shop.shop_domain == shop_domain)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_id(self, shop_id: int) -> Shop | None:
        stmt = select(Shop).where(Shop.id == shop_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, shop: Shop) -> Shop:
        """Insert a new shop or write back changes to a loaded one."""
        shop.updated_at = utcnow()
        self.db.add(shop)
        await self.db.commit()
        return shop

    async def touch_activity(self, shop_domain: str) -> bool:
        """Bump last_activity in one UPDATE. Returns False for unknown domains.

        Concurrent webhooks for the same shop race here; last writer wins.
        """
        now = utcnow()
        stmt = (
            update(Shop)
            .where(Shop.shop_domain == shop_domain)
            .values(last_activity=now, updated_at=now)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    async def delete(self, shop_id: int) -> bool:
        """Delete a shop together with its webhook registrations."""
        shop = await self.find_by_id(shop_id)
        if shop is None:
            return False
        # Explicit so backends without FK enforcement (sqlite) behave the same
        await self.db.execute(
            delete(WebhookRegistration).where(WebhookRegistration.shop_id == shop_id)
        )
        await self.db.delete(shop)
        await self.db.commit()
        logger.info("shop_deleted", shop_id=shop_id, shop_domain=shop.shop_domain)
        return True

    async def list_active(self) -> list[Shop]:
        stmt = select(Shop).where(Shop.is_active == True).order_by(Shop.shop_domain)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_active(self) -> int:
        stmt = select(func.count()).select_from(Shop).where(Shop.is_active == True)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def recent_installations(self, days: int = 30) -> list[Shop]:
        cutoff = utcnow() - datetime.timedelta(days=days)
        stmt = (
            select(Shop)
            .where(Shop.installed_at >= cutoff)
            .order_by(Shop.installed_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def without_webhooks(self) -> list[Shop]:
        """Active shops whose last registration pass was incomplete."""
        stmt = (
            select(Shop)
            .where(Shop.is_active == True, Shop.webhooks_configured == False)
            .order_by(Shop.shop_domain)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # --- Webhook registrations ---

    async def add_webhook(self, registration: WebhookRegistration) -> WebhookRegistration:
        self.db.add(registration)
        await self.db.commit()
        return registration

    async def list_webhooks(self, shop_id: int) -> list[WebhookRegistration]:
        stmt = (
            select(WebhookRegistration)
            .where(WebhookRegistration.shop_id == shop_id)
            .order_by(WebhookRegistration.topic, WebhookRegistration.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
