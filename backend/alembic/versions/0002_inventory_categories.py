"""inventory categories and unbacked reservations

Revision ID: 0002_inventory_categories
Revises: 0001_initial
Create Date: 2026-10-19 16:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002_inventory_categories'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'inventory_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    )

    with op.batch_alter_table('inventory_items') as batch_op:
        batch_op.add_column(sa.Column('category_id', sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column('unbacked_invoiced_quantity', sa.Numeric(12, 3), nullable=False, server_default='0'))
        batch_op.create_foreign_key('fk_inventory_items_category_id', 'inventory_categories', ['category_id'], ['id'])
        batch_op.create_index('ix_inventory_items_category_id', ['category_id'])
        batch_op.create_check_constraint('ck_inventory_items_unbacked_non_negative', 'unbacked_invoiced_quantity >= 0')

    # Free-text categories become rows
    op.execute(
        "INSERT INTO inventory_categories (name) "
        "SELECT DISTINCT category FROM inventory_items WHERE category IS NOT NULL AND category <> ''"
    )
    op.execute(
        "UPDATE inventory_items SET category_id = "
        "(SELECT c.id FROM inventory_categories c WHERE c.name = inventory_items.category)"
    )

    with op.batch_alter_table('inventory_items') as batch_op:
        batch_op.drop_column('category')


def downgrade() -> None:
    with op.batch_alter_table('inventory_items') as batch_op:
        batch_op.add_column(sa.Column('category', sa.String(), nullable=True))

    op.execute(
        "UPDATE inventory_items SET category = "
        "(SELECT c.name FROM inventory_categories c WHERE c.id = inventory_items.category_id)"
    )

    with op.batch_alter_table('inventory_items') as batch_op:
        batch_op.drop_constraint('ck_inventory_items_unbacked_non_negative', type_='check')
        batch_op.drop_index('ix_inventory_items_category_id')
        batch_op.drop_constraint('fk_inventory_items_category_id', type_='foreignkey')
        batch_op.drop_column('unbacked_invoiced_quantity')
        batch_op.drop_column('category_id')

    op.drop_table('inventory_categories')
