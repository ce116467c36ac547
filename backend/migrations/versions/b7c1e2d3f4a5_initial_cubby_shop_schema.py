"""initial cubby shop schema

Revision ID: b7c1e2d3f4a5
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates:
- users: shop staff and sellers (profile only)
- cubbies / cubby_rentals: rented display slots, end dates counted in open days
- inventory_items: consigned and shop stock
- sales / sale_items: completed POS sales
- seller_payouts / seller_earnings: per-line seller split and payout bundling
- system_settings: JSON key/value shop configuration
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1e2d3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(*, updated: bool = True):
    cols = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False)]
    if updated:
        cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False))
    return cols


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('listing_preference', sa.String(length=16), nullable=True),
        sa.Column('commission_rate_bps', sa.Integer(), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'cubbies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cubby_number', sa.String(length=32), nullable=False),
        sa.Column('location', sa.String(length=128), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cubby_number'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_cubbies_status', 'cubbies', ['status'])

    op.create_table(
        'cubby_rentals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cubby_id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('open_days', sa.Integer(), nullable=False),
        sa.Column('listing_type', sa.String(length=16), nullable=False),
        sa.Column('commission_rate_bps', sa.Integer(), nullable=False),
        sa.Column('rental_fee_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cubby_id'], ['cubbies.id']),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_cubby_rentals_cubby_id', 'cubby_rentals', ['cubby_id'])
    op.create_index('ix_cubby_rentals_seller_id', 'cubby_rentals', ['seller_id'])
    op.create_index('ix_cubby_rentals_status', 'cubby_rentals', ['status'])
    op.create_index('ix_cubby_rentals_cubby_status', 'cubby_rentals', ['cubby_id', 'status'])

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('condition', sa.String(length=32), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=True),
        sa.Column('cubby_id', sa.Integer(), nullable=True),
        sa.Column('commission_rate_bps', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('date_added', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_updated', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_items_quantity_nonneg'),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id']),
        sa.ForeignKeyConstraint(['cubby_id'], ['cubbies.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_inventory_items_barcode', 'inventory_items', ['barcode'])
    op.create_index('ix_inventory_items_cubby_id', 'inventory_items', ['cubby_id'])
    op.create_index('ix_inventory_items_seller_active', 'inventory_items', ['seller_id', 'is_active'])

    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_date', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sales_sale_date', 'sales', ['sale_date'])

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('inventory_item_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_sold_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.ForeignKeyConstraint(['inventory_item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_inventory_item_id', 'sale_items', ['inventory_item_id'])

    op.create_table(
        'seller_payouts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payout_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_seller_payouts_seller_id', 'seller_payouts', ['seller_id'])
    op.create_index('ix_seller_payouts_status', 'seller_payouts', ['status'])

    op.create_table(
        'seller_earnings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('sale_item_id', sa.Integer(), nullable=False),
        sa.Column('gross_cents', sa.Integer(), nullable=False),
        sa.Column('commission_cents', sa.Integer(), nullable=False),
        sa.Column('net_cents', sa.Integer(), nullable=False),
        sa.Column('payout_id', sa.Integer(), nullable=True),
        *_timestamps(updated=False),
        sa.CheckConstraint('gross_cents = commission_cents + net_cents', name='ck_seller_earnings_split'),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id']),
        sa.ForeignKeyConstraint(['sale_item_id'], ['sale_items.id']),
        sa.ForeignKeyConstraint(['payout_id'], ['seller_payouts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sale_item_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_seller_earnings_seller_payout', 'seller_earnings', ['seller_id', 'payout_id'])

    op.create_table(
        'system_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('setting_key', sa.String(length=128), nullable=False),
        sa.Column('setting_value', sa.JSON(), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('setting_key'),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table('system_settings')
    op.drop_index('ix_seller_earnings_seller_payout', table_name='seller_earnings')
    op.drop_table('seller_earnings')
    op.drop_index('ix_seller_payouts_status', table_name='seller_payouts')
    op.drop_index('ix_seller_payouts_seller_id', table_name='seller_payouts')
    op.drop_table('seller_payouts')
    op.drop_index('ix_sale_items_inventory_item_id', table_name='sale_items')
    op.drop_index('ix_sale_items_sale_id', table_name='sale_items')
    op.drop_table('sale_items')
    op.drop_index('ix_sales_sale_date', table_name='sales')
    op.drop_table('sales')
    op.drop_index('ix_inventory_items_seller_active', table_name='inventory_items')
    op.drop_index('ix_inventory_items_cubby_id', table_name='inventory_items')
    op.drop_index('ix_inventory_items_barcode', table_name='inventory_items')
    op.drop_table('inventory_items')
    op.drop_index('ix_cubby_rentals_cubby_status', table_name='cubby_rentals')
    op.drop_index('ix_cubby_rentals_status', table_name='cubby_rentals')
    op.drop_index('ix_cubby_rentals_seller_id', table_name='cubby_rentals')
    op.drop_index('ix_cubby_rentals_cubby_id', table_name='cubby_rentals')
    op.drop_table('cubby_rentals')
    op.drop_index('ix_cubbies_status', table_name='cubbies')
    op.drop_table('cubbies')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_table('users')
