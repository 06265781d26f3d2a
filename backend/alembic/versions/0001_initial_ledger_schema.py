"""initial ledger schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'app_config',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_app_config_name', 'app_config', ['name'], unique=True)

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
    )

    op.create_table(
        'accounting_heads',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'expense_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('accounting_head_id', sa.Integer(), sa.ForeignKey('accounting_heads.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('accounting_head_id', 'name', name='_expense_category_head_name_uc'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'batch_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('code', sa.String(length=20), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'batches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('batch_number', sa.String(), nullable=False),
        sa.Column('batch_name', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('production_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('batch_category_id', sa.Integer(), sa.ForeignKey('batch_categories.id'), nullable=True),
        sa.Column('total_quantity', sa.Numeric(12, 3), nullable=True),
        sa.Column('unit', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_batches_batch_number', 'batches', ['batch_number'], unique=True)

    op.create_table(
        'batch_products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_cost', sa.Numeric(12, 4), nullable=False, server_default='0'),
        sa.Column('total_cost', sa.Numeric(18, 7), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_batch_products_batch_id', 'batch_products', ['batch_id'])

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('sku', sa.String(), nullable=True, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('unit_cost', sa.Numeric(12, 4), nullable=False, server_default='0'),
        sa.Column('current_stock', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('invoiced_quantity', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('minimum_stock', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('maximum_stock', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('supplier_name', sa.String(), nullable=True),
        sa.Column('storage_location', sa.String(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('current_stock >= 0', name='ck_inventory_items_stock_non_negative'),
        sa.CheckConstraint('invoiced_quantity >= 0', name='ck_inventory_items_invoiced_non_negative'),
        sa.CheckConstraint('invoiced_quantity <= current_stock', name='ck_inventory_items_invoiced_within_stock'),
    )

    op.create_table(
        'inventory_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('inventory_item_id', sa.Integer(), sa.ForeignKey('inventory_items.id'), nullable=False),
        sa.Column('transaction_type', sa.String(), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_cost', sa.Numeric(12, 4), nullable=True),
        sa.Column('total_cost', sa.Numeric(18, 7), nullable=True),
        sa.Column('old_quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('new_quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('reference_type', sa.String(), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id', ondelete='SET NULL'), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=True),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_inventory_transactions_inventory_item_id', 'inventory_transactions', ['inventory_item_id'])
    op.create_index('ix_inventory_transactions_transaction_date', 'inventory_transactions', ['transaction_date'])

    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('expense_number', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=True),
        sa.Column('unit', sa.String(), nullable=True),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('vendor_name', sa.String(), nullable=True),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('reference_number', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('accounting_head_id', sa.Integer(), sa.ForeignKey('accounting_heads.id'), nullable=True),
        sa.Column('expense_category_id', sa.Integer(), sa.ForeignKey('expense_categories.id'), nullable=True),
        sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id'), nullable=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=True),
        sa.Column('inventory_item_id', sa.Integer(), sa.ForeignKey('inventory_items.id'), nullable=True),
        sa.Column('invoiced_quantity', sa.Numeric(12, 3), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_expenses_expense_number', 'expenses', ['expense_number'], unique=True)
    op.create_index('ix_expenses_expense_date', 'expenses', ['expense_date'])
    for column in ('accounting_head_id', 'batch_id', 'product_id', 'inventory_item_id'):
        op.create_index(f'ix_expenses_{column}', 'expenses', [column])

    op.create_table(
        'income',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('income_number', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=True),
        sa.Column('unit', sa.String(), nullable=True),
        sa.Column('income_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('customer_name', sa.String(), nullable=True),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('reference_number', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('accounting_head_id', sa.Integer(), sa.ForeignKey('accounting_heads.id'), nullable=True),
        sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id'), nullable=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_income_income_number', 'income', ['income_number'], unique=True)
    op.create_index('ix_income_income_date', 'income', ['income_date'])
    for column in ('accounting_head_id', 'batch_id', 'product_id'):
        op.create_index(f'ix_income_{column}', 'income', [column])

    op.create_table(
        'batch_inventory_consumption',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id'), nullable=False),
        sa.Column('inventory_item_id', sa.Integer(), sa.ForeignKey('inventory_items.id'), nullable=False),
        sa.Column('quantity_consumed', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_cost', sa.Numeric(12, 4), nullable=False),
        sa.Column('total_cost', sa.Numeric(18, 7), nullable=False),
        sa.Column('consumption_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity_consumed > 0', name='ck_consumption_quantity_positive'),
    )
    op.create_index('ix_batch_inventory_consumption_batch_id', 'batch_inventory_consumption', ['batch_id'])
    op.create_index('ix_batch_inventory_consumption_inventory_item_id', 'batch_inventory_consumption', ['inventory_item_id'])
    op.create_index('ix_batch_inventory_consumption_consumption_date', 'batch_inventory_consumption', ['consumption_date'])


def downgrade() -> None:
    op.drop_table('batch_inventory_consumption')
    op.drop_table('income')
    op.drop_table('expenses')
    op.drop_table('inventory_transactions')
    op.drop_table('inventory_items')
    op.drop_table('batch_products')
    op.drop_table('batches')
    op.drop_table('batch_categories')
    op.drop_table('products')
    op.drop_table('expense_categories')
    op.drop_table('accounting_heads')
    op.drop_table('audit_log')
    op.drop_table('app_config')
