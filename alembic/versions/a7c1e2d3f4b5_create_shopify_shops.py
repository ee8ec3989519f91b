"""create shopify_shops and shopify_webhooks

Revision ID: a7c1e2d3f4b5
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a7c1e2d3f4b5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'shopify_shops',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('shop_domain', sa.String(255), nullable=False),
        sa.Column('access_token', sa.String(255), nullable=False),
        sa.Column('scopes', sa.String(1000), nullable=False, server_default=''),
        sa.Column('shop_name', sa.String(255), nullable=True),
        sa.Column('shop_email', sa.String(255), nullable=True),
        sa.Column('shop_owner', sa.String(255), nullable=True),
        sa.Column('plan_name', sa.String(100), nullable=True),
        sa.Column('country_code', sa.String(3), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('webhooks_configured', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('installed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_activity', sa.DateTime(timezone=True), nullable=True),
        sa.Column('uninstalled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_shopify_shops_shop_domain', 'shopify_shops', ['shop_domain'], unique=True)

    op.create_table(
        'shopify_webhooks',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'shop_id',
            sa.Integer(),
            sa.ForeignKey('shopify_shops.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('webhook_id', sa.String(50), nullable=False),
        sa.Column('topic', sa.String(100), nullable=False),
        sa.Column('address', sa.String(500), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_shopify_webhooks_shop_id', 'shopify_webhooks', ['shop_id'])


def downgrade() -> None:
    op.drop_index('ix_shopify_webhooks_shop_id', table_name='shopify_webhooks')
    op.drop_table('shopify_webhooks')
    op.drop_index('ix_shopify_shops_shop_domain', table_name='shopify_shops')
    op.drop_table('shopify_shops')
