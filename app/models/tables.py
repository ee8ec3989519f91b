"""
Database models for installed shops.

Design principles:
  - One shopify_shops row per domain, for the lifetime of the tenant
  - Uninstall flips flags; it never deletes rows
  - shopify_webhooks rows belong to their shop and go when the shop goes
"""

import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def split_scopes(scopes: str | None) -> list[str]:
    """Parse Shopify's comma-delimited scope string, dropping blanks."""
    if not scopes:
        return []
    return [s.strip() for s in scopes.split(",") if s.strip()]


class Base(DeclarativeBase):
    pass


class Shop(Base):
    __tablename__ = "shopify_shops"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_domain = Column(String(255), nullable=False, unique=True, index=True)
    access_token = Column(String(255), nullable=False)
    scopes = Column(String(1000), nullable=False, default="")

    # Profile, refreshed from /shop.json on (re)install
    shop_name = Column(String(255), nullable=True)
    shop_email = Column(String(255), nullable=True)
    shop_owner = Column(String(255), nullable=True)
    plan_name = Column(String(100), nullable=True)
    country_code = Column(String(3), nullable=True)
    currency = Column(String(3), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    webhooks_configured = Column(Boolean, nullable=False, default=False)

    installed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_activity = Column(DateTime(timezone=True), nullable=True)
    uninstalled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    webhooks = relationship(
        "WebhookRegistration",
        back_populates="shop",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    @property
    def scope_list(self) -> list[str]:
        return split_scopes(self.scopes)

    @property
    def scope_set(self) -> set[str]:
        return set(self.scope_list)

    def __repr__(self) -> str:
        # access_token deliberately left out
        return f"<Shop id={self.id} domain={self.shop_domain!r} active={self.is_active}>"


class WebhookRegistration(Base):
    """A topic subscription Shopify confirmed for a shop."""
    __tablename__ = "shopify_webhooks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_id = Column(
        Integer,
        ForeignKey("shopify_shops.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    webhook_id = Column(String(50), nullable=False)  # Shopify's id
    topic = Column(String(100), nullable=False)
    address = Column(String(500), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    shop = relationship("Shop", back_populates="webhooks", lazy="raise")
