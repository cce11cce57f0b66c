"""add_carts_and_orders_tables

Revision ID: 3b1f7c2a9d40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b1f7c2a9d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'carts',
        sa.Column('id', sa.String(length=64), nullable=False, comment='Cart ID (Autopay OrderID)'),
        sa.Column('total', sa.Numeric(precision=15, scale=2), nullable=False, comment='Cart total'),
        sa.Column('currency_code', sa.String(length=3), nullable=False, comment='ISO-4217 currency'),
        sa.Column('gateway_id', sa.Integer(), nullable=True, comment='Chosen Autopay gateway'),
        sa.Column('payment_session', sa.JSON(), nullable=True, comment='Payment session data'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('cart_id', sa.String(length=64), nullable=False, comment='Source cart'),
        sa.Column('total', sa.Numeric(precision=15, scale=2), nullable=False, comment='Order total'),
        sa.Column('currency_code', sa.String(length=3), nullable=False),
        sa.Column('gateway_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending', comment='pending/completed/canceled'),
        sa.Column('payment_status', sa.String(length=20), nullable=False, server_default='not_paid', comment='not_paid/captured/canceled'),
        sa.Column('captured_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_cart_id', 'orders', ['cart_id'], unique=True)
    op.create_index('ix_orders_status_payment', 'orders', ['status', 'payment_status'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_orders_status_payment', table_name='orders')
    op.drop_index('ix_orders_cart_id', table_name='orders')
    op.drop_table('orders')
    op.drop_table('carts')
