"""create cart_lines and inventory_items tables

Revision ID: create_cart_inventory
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = 'create_cart_inventory'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'cart_lines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('item_id', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('added_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_cart_lines'),
        sa.UniqueConstraint('user_id', 'item_id', name='uq_cart_lines_user_item'),
        sa.CheckConstraint('quantity > 0', name='ck_cart_lines_quantity_positive'),
    )
    op.create_index('ix_cart_lines_user_updated', 'cart_lines', ['user_id', 'updated_at'])

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('price', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), server_default='0', nullable=False),
        sa.Column('category', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_inventory_items'),
        sa.CheckConstraint('stock >= 0', name='ck_inventory_items_stock_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_inventory_items_price_non_negative'),
    )
    op.create_index('ix_inventory_items_name', 'inventory_items', ['name'])
    op.create_index('ix_inventory_items_stock', 'inventory_items', ['stock'])
    op.create_index('ix_inventory_items_created_at', 'inventory_items', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_inventory_items_created_at', table_name='inventory_items')
    op.drop_index('ix_inventory_items_stock', table_name='inventory_items')
    op.drop_index('ix_inventory_items_name', table_name='inventory_items')
    op.drop_table('inventory_items')
    op.drop_index('ix_cart_lines_user_updated', table_name='cart_lines')
    op.drop_table('cart_lines')
