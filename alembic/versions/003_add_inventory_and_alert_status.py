"""Add inventory tracking and maintenance alert status

Revision ID: 003_add_inventory_and_alert_status
Revises: 002_create_tracking_tables
Create Date: 2026-10-19

Stocked items and their transaction log, plus the read and acknowledge
flags on maintenance alerts.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import text

# revision identifiers, used by Alembic.
revision = '003_add_inventory_and_alert_status'
down_revision = '002_create_tracking_tables'
branch_labels = None
depends_on = None

ALERT_COLUMNS = [
    ('schedule_id', lambda: sa.Column(
        'schedule_id', sa.String(36),
        sa.ForeignKey('equipment_maintenance_schedules.id', ondelete='SET NULL'),
    )),
    ('is_read', lambda: sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false())),
    ('is_acknowledged', lambda: sa.Column(
        'is_acknowledged', sa.Boolean(), nullable=False, server_default=sa.false(),
    )),
    ('acknowledged_by', lambda: sa.Column('acknowledged_by', sa.String(36))),
    ('acknowledged_at', lambda: sa.Column('acknowledged_at', sa.DateTime(timezone=True))),
    ('resolved_at', lambda: sa.Column('resolved_at', sa.DateTime(timezone=True))),
]


def _table_exists(conn, table: str) -> bool:
    result = conn.execute(text(
        "SELECT EXISTS (SELECT FROM information_schema.tables WHERE table_name = :table)"
    ), {"table": table})
    return bool(result.scalar())


def _column_exists(conn, table: str, column: str) -> bool:
    result = conn.execute(text(
        "SELECT EXISTS (SELECT 1 FROM information_schema.columns "
        "WHERE table_name = :table AND column_name = :column)"
    ), {"table": table, "column": column})
    return bool(result.scalar())


def _profile_fk():
    return sa.ForeignKey('profiles.id', ondelete='SET NULL')


def upgrade():
    conn = op.get_bind()

    if not _table_exists(conn, 'inventory'):
        op.create_table(
            'inventory',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('name', sa.String(255), nullable=False),
            sa.Column('category', sa.String(100), index=True),
            sa.Column('manufacturer', sa.String(100)),
            sa.Column('model_number', sa.String(100)),
            sa.Column('size', sa.String(50)),
            sa.Column('equipment_for', sa.String(100)),
            sa.Column('quantity_in_stock', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('quantity_assigned', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('reorder_level', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('unit_price', sa.Float()),
            sa.Column('location', sa.String(100)),
            sa.Column('notes', sa.Text()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
            sa.CheckConstraint('quantity_in_stock >= 0', name='ck_inventory_stock_non_negative'),
        )

    if not _table_exists(conn, 'inventory_transactions'):
        op.create_table(
            'inventory_transactions',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column(
                'inventory_id', sa.String(36),
                sa.ForeignKey('inventory.id', ondelete='CASCADE'), nullable=False, index=True,
            ),
            sa.Column('transaction_type', sa.String(30), nullable=False, index=True),
            sa.Column('quantity_change', sa.Integer(), nullable=False),
            sa.Column('quantity_before', sa.Integer(), nullable=False),
            sa.Column('quantity_after', sa.Integer(), nullable=False),
            sa.Column('operator_id', sa.String(36), _profile_fk()),
            sa.Column('performed_by', sa.String(36), _profile_fk()),
            sa.Column('serial_number', sa.String(100)),
            sa.Column('equipment_id', sa.String(36), sa.ForeignKey('equipment.id', ondelete='SET NULL')),
            sa.Column('notes', sa.Text()),
            sa.Column('transaction_date', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        )

    if _table_exists(conn, 'equipment_maintenance_alerts'):
        for name, column in ALERT_COLUMNS:
            if not _column_exists(conn, 'equipment_maintenance_alerts', name):
                op.add_column('equipment_maintenance_alerts', column())


def downgrade():
    conn = op.get_bind()
    for name, _ in reversed(ALERT_COLUMNS):
        if _column_exists(conn, 'equipment_maintenance_alerts', name):
            op.drop_column('equipment_maintenance_alerts', name)
    for table in ('inventory_transactions', 'inventory'):
        if _table_exists(conn, table):
            op.drop_table(table)
