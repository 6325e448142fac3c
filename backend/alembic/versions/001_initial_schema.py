"""Initial database schema

Revision ID: 001_initial
Revises:
Create Date: 2025-01-06

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # === STORES TABLE ===
    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('brand', sa.Enum('kilwins', 'renoja', name='brand'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_stores_id', 'stores', ['id'])
    op.create_index('ix_stores_code', 'stores', ['code'], unique=True)

    # === WEEKLY ENTRIES TABLE ===
    op.create_table(
        'weekly_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_code', sa.String(50), nullable=False),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('week_iso', sa.String(7), nullable=False),
        sa.Column('week_ending', sa.Date(), nullable=False),
        # raw inputs
        sa.Column('total_sales', sa.Float(), nullable=False),
        sa.Column('num_transactions', sa.Integer(), nullable=False),
        sa.Column('variable_hours', sa.Float(), nullable=False),
        sa.Column('average_wage', sa.Float(), nullable=False),
        sa.Column('total_fixed_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        # derived
        sa.Column('variable_labor_cost', sa.Float(), nullable=False),
        sa.Column('total_labor_cost', sa.Float(), nullable=False),
        sa.Column('total_labor_percent', sa.Float(), nullable=False),
        sa.Column('variable_labor_percent', sa.Float(), nullable=False),
        sa.Column('fixed_labor_percent', sa.Float(), nullable=False),
        sa.Column('avg_transaction_value', sa.Float(), nullable=False),
        sa.Column('sales_per_labor_hour', sa.Float(), nullable=False),
        sa.Column('transactions_per_labor_hour', sa.Float(), nullable=False),
        # prior year
        sa.Column('total_sales_py', sa.Float(), nullable=True),
        sa.Column('num_transactions_py', sa.Integer(), nullable=True),
        sa.Column('variable_hours_py', sa.Float(), nullable=True),
        sa.Column('total_labor_cost_py', sa.Float(), nullable=True),
        sa.Column('total_labor_percent_py', sa.Float(), nullable=True),
        sa.Column('delta_sales_percent', sa.Float(), nullable=True),
        sa.Column('delta_hours_percent', sa.Float(), nullable=True),
        sa.Column('delta_total_labor_percent', sa.Float(), nullable=True),
        # audit
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['store_code'], ['stores.code']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_code', 'fiscal_year', 'week_number', name='uq_weekly_entries_store_year_week')
    )
    op.create_index('ix_weekly_entries_id', 'weekly_entries', ['id'])
    op.create_index('ix_weekly_entries_week_iso', 'weekly_entries', ['week_iso'])
    op.create_index('ix_weekly_entries_store_week_iso', 'weekly_entries', ['store_code', 'week_iso'])


def downgrade() -> None:
    op.drop_index('ix_weekly_entries_store_week_iso', 'weekly_entries')
    op.drop_index('ix_weekly_entries_week_iso', 'weekly_entries')
    op.drop_index('ix_weekly_entries_id', 'weekly_entries')
    op.drop_table('weekly_entries')

    op.drop_index('ix_stores_code', 'stores')
    op.drop_index('ix_stores_id', 'stores')
    op.drop_table('stores')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS brand')
