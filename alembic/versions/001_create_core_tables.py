"""Create core tables (profiles, job_orders, access_requests, equipment)

Revision ID: 001_create_core_tables
Revises:
Create Date: 2026-10-19

Note: Every other table references profiles, job_orders or equipment.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import text

# revision identifiers, used by Alembic.
revision = '001_create_core_tables'
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(conn, table: str) -> bool:
    result = conn.execute(text(
        "SELECT EXISTS (SELECT FROM information_schema.tables WHERE table_name = :table)"
    ), {"table": table})
    return bool(result.scalar())


def upgrade():
    """Create core tables."""
    conn = op.get_bind()

    if not _table_exists(conn, 'profiles'):
        op.create_table(
            'profiles',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
            sa.Column('full_name', sa.String(200)),
            sa.Column('role', sa.String(20), nullable=False, server_default='operator', index=True),
            sa.Column('hashed_password', sa.String(255)),
            sa.Column('phone', sa.String(30)),
            sa.Column('position', sa.String(100)),
            sa.Column('date_of_birth', sa.Date()),
            sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
            # Customer rating aggregates
            sa.Column('cleanliness_rating_avg', sa.Float(), server_default='0'),
            sa.Column('cleanliness_rating_count', sa.Integer(), server_default='0'),
            sa.Column('communication_rating_avg', sa.Float(), server_default='0'),
            sa.Column('communication_rating_count', sa.Integer(), server_default='0'),
            sa.Column('overall_rating_avg', sa.Float(), server_default='0'),
            sa.Column('overall_rating_count', sa.Integer(), server_default='0'),
            sa.Column('total_ratings_received', sa.Integer(), server_default='0'),
            sa.Column('last_rating_received_at', sa.DateTime(timezone=True)),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )

    if not _table_exists(conn, 'job_orders'):
        op.create_table(
            'job_orders',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('job_number', sa.String(50), nullable=False, index=True),
            sa.Column('title', sa.String(255), nullable=False),
            # Customer
            sa.Column('customer_name', sa.String(255), nullable=False),
            sa.Column('customer_contact', sa.String(100)),
            sa.Column('customer_email', sa.String(255)),
            # Job
            sa.Column('job_type', sa.String(100), nullable=False),
            sa.Column('location', sa.String(255), nullable=False),
            sa.Column('address', sa.String(500), nullable=False),
            sa.Column('description', sa.Text()),
            sa.Column('additional_info', sa.Text()),
            sa.Column('po_number', sa.String(100)),
            sa.Column('job_site_number', sa.String(100)),
            sa.Column('customer_job_number', sa.String(100)),
            sa.Column('job_quote', sa.Float()),
            sa.Column('equipment_needed', sa.JSON()),
            sa.Column('special_equipment', sa.JSON()),
            sa.Column('required_documents', sa.JSON()),
            # Assignment
            sa.Column('assigned_to', sa.String(36), sa.ForeignKey('profiles.id', ondelete='SET NULL'), index=True),
            sa.Column('assigned_at', sa.DateTime(timezone=True)),
            sa.Column('operator_name', sa.String(200)),
            sa.Column('foreman_name', sa.String(200)),
            sa.Column('foreman_phone', sa.String(30)),
            sa.Column('salesman_name', sa.String(200)),
            sa.Column('salesperson_email', sa.String(255)),
            sa.Column('status', sa.String(20), nullable=False, server_default='scheduled', index=True),
            sa.Column('priority', sa.String(20), nullable=False, server_default='medium'),
            # Schedule
            sa.Column('scheduled_date', sa.Date(), index=True),
            sa.Column('end_date', sa.Date()),
            sa.Column('arrival_time', sa.String(20)),
            sa.Column('shop_arrival_time', sa.String(20)),
            sa.Column('drive_time_hours', sa.Float()),
            sa.Column('estimated_hours', sa.Float()),
            sa.Column('is_multi_day', sa.Boolean(), server_default=sa.false()),
            # Field timestamps
            sa.Column('route_started_at', sa.DateTime(timezone=True)),
            sa.Column('route_start_latitude', sa.Float()),
            sa.Column('route_start_longitude', sa.Float()),
            sa.Column('departure_time', sa.String(50)),
            sa.Column('work_started_at', sa.DateTime(timezone=True)),
            sa.Column('work_start_latitude', sa.Float()),
            sa.Column('work_start_longitude', sa.Float()),
            sa.Column('work_completed_at', sa.DateTime(timezone=True)),
            sa.Column('work_end_latitude', sa.Float()),
            sa.Column('work_end_longitude', sa.Float()),
            # Completion
            sa.Column('work_performed', sa.Text()),
            sa.Column('materials_used', sa.Text()),
            sa.Column('equipment_used', sa.Text()),
            sa.Column('operator_notes', sa.Text()),
            sa.Column('issues_encountered', sa.Text()),
            sa.Column('photo_urls', sa.JSON()),
            sa.Column('customer_signature', sa.Text()),
            sa.Column('customer_signed_at', sa.DateTime(timezone=True)),
            sa.Column('customer_satisfied', sa.Boolean()),
            sa.Column('completion_signature', sa.Text()),
            sa.Column('completion_signer_name', sa.String(200)),
            sa.Column('completion_signed_at', sa.DateTime(timezone=True)),
            sa.Column('completion_notes', sa.Text()),
            sa.Column('contact_not_on_site', sa.Boolean()),
            # Work order agreement
            sa.Column('work_order_signed', sa.Boolean()),
            sa.Column('work_order_signature', sa.Text()),
            sa.Column('work_order_signer_name', sa.String(200)),
            sa.Column('work_order_signer_title', sa.String(200)),
            sa.Column('work_order_signed_at', sa.DateTime(timezone=True)),
            sa.Column('cut_through_authorized', sa.Boolean()),
            sa.Column('cut_through_signature', sa.Text()),
            # Liability release
            sa.Column('liability_release_signed_by', sa.String(200)),
            sa.Column('liability_release_signature', sa.Text()),
            sa.Column('liability_release_signed_at', sa.DateTime(timezone=True)),
            sa.Column('liability_release_customer_name', sa.String(200)),
            sa.Column('liability_release_customer_email', sa.String(255)),
            # Customer and operator feedback
            sa.Column('customer_overall_rating', sa.Integer()),
            sa.Column('customer_cleanliness_rating', sa.Integer()),
            sa.Column('customer_communication_rating', sa.Integer()),
            sa.Column('customer_feedback_comments', sa.Text()),
            sa.Column('job_difficulty_rating', sa.Integer()),
            sa.Column('job_access_rating', sa.Integer()),
            sa.Column('job_difficulty_notes', sa.Text()),
            sa.Column('job_access_notes', sa.Text()),
            sa.Column('feedback_submitted_at', sa.DateTime(timezone=True)),
            sa.Column('feedback_submitted_by', sa.String(36)),
            sa.Column('created_by', sa.String(36)),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )

    if not _table_exists(conn, 'access_requests'):
        op.create_table(
            'access_requests',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('full_name', sa.String(200), nullable=False),
            sa.Column('email', sa.String(255), nullable=False, index=True),
            sa.Column('password_hash', sa.String(255), nullable=False),
            sa.Column('date_of_birth', sa.Date(), nullable=False),
            sa.Column('position', sa.String(100), server_default='Not specified'),
            sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
            sa.Column('assigned_role', sa.String(20)),
            sa.Column('reviewed_by', sa.String(36)),
            sa.Column('reviewed_at', sa.DateTime(timezone=True)),
            sa.Column('denial_reason', sa.Text()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )

    if not _table_exists(conn, 'equipment'):
        op.create_table(
            'equipment',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('name', sa.String(200), nullable=False),
            sa.Column('equipment_type', sa.String(100), index=True),
            sa.Column('brand', sa.String(100)),
            sa.Column('model', sa.String(100)),
            sa.Column('serial_number', sa.String(100), index=True),
            sa.Column('status', sa.String(20), nullable=False, server_default='available', index=True),
            sa.Column('assigned_to', sa.String(36), sa.ForeignKey('profiles.id', ondelete='SET NULL')),
            sa.Column('total_usage', sa.Float(), nullable=False, server_default='0'),
            sa.Column('notes', sa.Text()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )

    # Audit trail outlives deleted jobs, so no foreign key
    if not _table_exists(conn, 'job_orders_history'):
        op.create_table(
            'job_orders_history',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('job_order_id', sa.String(36), nullable=False, index=True),
            sa.Column('job_number', sa.String(50)),
            sa.Column('changed_by', sa.String(36)),
            sa.Column('changed_by_name', sa.String(200)),
            sa.Column('changed_by_role', sa.String(20)),
            sa.Column('change_type', sa.String(30), nullable=False, index=True),
            sa.Column('changes', sa.JSON()),
            sa.Column('snapshot', sa.JSON()),
            sa.Column('notes', sa.Text()),
            sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), index=True),
        )


def downgrade():
    """Drop core tables."""
    conn = op.get_bind()
    tables = ['job_orders_history', 'equipment', 'access_requests', 'job_orders', 'profiles']
    for table in tables:
        if _table_exists(conn, table):
            op.drop_table(table)
