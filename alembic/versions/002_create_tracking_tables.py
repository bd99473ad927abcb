"""Create field tracking tables

Revision ID: 002_create_tracking_tables
Revises: 001_create_core_tables
Create Date: 2026-10-19

Workflow steps, operator status history, daily logs, timecards, standby
logs and the equipment trackers. The API keeps working without the optional
ones (workflow_steps, operator_status_history, daily_job_logs, timecards)
and reports them as unavailable instead.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import text

# revision identifiers, used by Alembic.
revision = '002_create_tracking_tables'
down_revision = '001_create_core_tables'
branch_labels = None
depends_on = None


def _table_exists(conn, table: str) -> bool:
    result = conn.execute(text(
        "SELECT EXISTS (SELECT FROM information_schema.tables WHERE table_name = :table)"
    ), {"table": table})
    return bool(result.scalar())


def _job_fk():
    return sa.ForeignKey('job_orders.id', ondelete='CASCADE')


def _profile_fk():
    return sa.ForeignKey('profiles.id', ondelete='CASCADE')


def _equipment_fk():
    return sa.ForeignKey('equipment.id', ondelete='CASCADE')


def upgrade():
    """Create tracking tables."""
    conn = op.get_bind()

    if not _table_exists(conn, 'workflow_steps'):
        op.create_table(
            'workflow_steps',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('job_order_id', sa.String(36), _job_fk(), nullable=False, index=True),
            sa.Column('operator_id', sa.String(36), _profile_fk(), nullable=False, index=True),
            sa.Column('equipment_checklist_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('sms_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('liability_release_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('silica_form_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('work_performed_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('pictures_submitted', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('customer_signature_received', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('job_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('current_step', sa.String(50), nullable=False, server_default='equipment_checklist'),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
            sa.UniqueConstraint('job_order_id', 'operator_id', name='uq_workflow_steps_job_operator'),
        )

    if not _table_exists(conn, 'operator_status_history'):
        op.create_table(
            'operator_status_history',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('operator_id', sa.String(36), _profile_fk(), nullable=False, index=True),
            sa.Column('job_order_id', sa.String(36), _job_fk(), nullable=False, index=True),
            sa.Column('status', sa.String(20), nullable=False),
            sa.Column('route_started_at', sa.DateTime(timezone=True)),
            sa.Column('work_started_at', sa.DateTime(timezone=True)),
            sa.Column('work_completed_at', sa.DateTime(timezone=True)),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
            sa.UniqueConstraint('operator_id', 'job_order_id', name='uq_operator_status_history_pair'),
        )

    if not _table_exists(conn, 'daily_job_logs'):
        op.create_table(
            'daily_job_logs',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('job_order_id', sa.String(36), _job_fk(), nullable=False, index=True),
            sa.Column('operator_id', sa.String(36), _profile_fk(), nullable=False, index=True),
            sa.Column('log_date', sa.Date(), nullable=False, index=True),
            sa.Column('day_number', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('route_started_at', sa.DateTime(timezone=True)),
            sa.Column('work_started_at', sa.DateTime(timezone=True)),
            sa.Column('done_for_day_at', sa.DateTime(timezone=True)),
            sa.Column('hours_worked', sa.Float()),
            sa.Column('work_performed', sa.Text()),
            sa.Column('notes', sa.Text()),
            sa.Column('signer_name', sa.String(200)),
            sa.Column('signature_data', sa.Text()),
            sa.Column('continues_next_day', sa.Boolean(), server_default=sa.false()),
            sa.Column('latitude', sa.Float()),
            sa.Column('longitude', sa.Float()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )

    if not _table_exists(conn, 'timecards'):
        op.create_table(
            'timecards',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('user_id', sa.String(36), _profile_fk(), nullable=False, index=True),
            sa.Column('date', sa.Date(), nullable=False, index=True),
            sa.Column('clock_in_time', sa.DateTime(timezone=True), nullable=False),
            sa.Column('clock_in_latitude', sa.Float()),
            sa.Column('clock_in_longitude', sa.Float()),
            sa.Column('clock_in_accuracy', sa.Float()),
            sa.Column('clock_out_time', sa.DateTime(timezone=True)),
            sa.Column('clock_out_latitude', sa.Float()),
            sa.Column('clock_out_longitude', sa.Float()),
            sa.Column('clock_out_accuracy', sa.Float()),
            sa.Column('total_hours', sa.Float()),
            sa.Column('notes', sa.Text()),
            sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('approved_by', sa.String(36)),
            sa.Column('approved_at', sa.DateTime(timezone=True)),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )
        # At most one open timecard per user
        op.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_timecards_open_per_user "
            "ON timecards(user_id) WHERE clock_out_time IS NULL"
        )

    if not _table_exists(conn, 'standby_logs'):
        op.create_table(
            'standby_logs',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('job_order_id', sa.String(36), _job_fk(), nullable=False, index=True),
            sa.Column('operator_id', sa.String(36), _profile_fk(), nullable=False, index=True),
            sa.Column('reason', sa.Text(), nullable=False),
            sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('ended_at', sa.DateTime(timezone=True)),
            sa.Column('duration_hours', sa.Float()),
            sa.Column('hourly_rate', sa.Float()),
            sa.Column('billable_hours', sa.Float()),
            sa.Column('billable_amount', sa.Float()),
            sa.Column('policy_version', sa.String(20)),
            sa.Column('status', sa.String(20), nullable=False, server_default='active', index=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )

    # Equipment trackers
    if not _table_exists(conn, 'equipment_usage'):
        op.create_table(
            'equipment_usage',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('job_order_id', sa.String(36), nullable=False, index=True),
            sa.Column('operator_id', sa.String(36), _profile_fk(), nullable=False, index=True),
            sa.Column('equipment_id', sa.String(36), sa.ForeignKey('equipment.id', ondelete='SET NULL'), index=True),
            sa.Column('equipment_type', sa.String(100), nullable=False, index=True),
            sa.Column('task_type', sa.String(100), nullable=False),
            sa.Column('linear_feet_cut', sa.Float(), server_default='0'),
            sa.Column('difficulty_level', sa.String(20), server_default='medium'),
            sa.Column('difficulty_notes', sa.Text()),
            sa.Column('blade_type', sa.String(100)),
            sa.Column('blades_used', sa.Integer(), server_default='0'),
            sa.Column('blade_wear_notes', sa.Text()),
            sa.Column('hydraulic_hose_used_ft', sa.Float(), server_default='0'),
            sa.Column('water_hose_used_ft', sa.Float(), server_default='0'),
            sa.Column('power_hours', sa.Float(), server_default='0'),
            sa.Column('location_changes', sa.Integer(), server_default='0'),
            sa.Column('setup_time_minutes', sa.Integer(), server_default='0'),
            sa.Column('notes', sa.Text()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        )

    if not _table_exists(conn, 'equipment_damage_reports'):
        op.create_table(
            'equipment_damage_reports',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('equipment_id', sa.String(36), _equipment_fk(), nullable=False, index=True),
            sa.Column('job_order_id', sa.String(36)),
            sa.Column('reported_by', sa.String(36), nullable=False),
            sa.Column('reported_by_name', sa.String(200)),
            sa.Column('damage_title', sa.String(255), nullable=False),
            sa.Column('damage_description', sa.Text(), nullable=False),
            sa.Column('severity', sa.String(20), nullable=False, server_default='moderate'),
            sa.Column('incident_type', sa.String(100)),
            sa.Column('incident_description', sa.Text()),
            sa.Column('location_of_incident', sa.String(255)),
            sa.Column('date_of_incident', sa.Date()),
            sa.Column('photo_urls', sa.JSON()),
            sa.Column('video_urls', sa.JSON()),
            sa.Column('equipment_operable', sa.Boolean(), server_default=sa.false()),
            sa.Column('safety_concern', sa.Boolean(), server_default=sa.false()),
            sa.Column('last_used_by', sa.String(36)),
            sa.Column('last_used_by_name', sa.String(200)),
            sa.Column('last_job_id', sa.String(36)),
            sa.Column('status', sa.String(30), nullable=False, server_default='reported', index=True),
            sa.Column('reviewed_by', sa.String(36)),
            sa.Column('reviewed_by_name', sa.String(200)),
            sa.Column('reviewed_at', sa.DateTime(timezone=True)),
            sa.Column('assessment_notes', sa.Text()),
            sa.Column('estimated_repair_cost', sa.Float()),
            sa.Column('estimated_downtime_days', sa.Integer()),
            sa.Column('parts_needed', sa.JSON()),
            sa.Column('admin_notes', sa.Text()),
            sa.Column('resolution_notes', sa.Text()),
            sa.Column('resolved_at', sa.DateTime(timezone=True)),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )

    if not _table_exists(conn, 'equipment_repair_tracking'):
        op.create_table(
            'equipment_repair_tracking',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('equipment_id', sa.String(36), _equipment_fk(), nullable=False, index=True),
            sa.Column(
                'damage_report_id', sa.String(36),
                sa.ForeignKey('equipment_damage_reports.id', ondelete='SET NULL'),
            ),
            sa.Column('repair_title', sa.String(255), nullable=False),
            sa.Column('repair_description', sa.Text(), nullable=False),
            sa.Column('repair_type', sa.String(50), nullable=False),
            sa.Column('repair_priority', sa.String(20), server_default='normal'),
            sa.Column('scheduled_start_date', sa.Date()),
            sa.Column('scheduled_completion_date', sa.Date()),
            sa.Column('assigned_to', sa.String(200)),
            sa.Column('vendor_name', sa.String(200)),
            sa.Column('vendor_contact', sa.String(200)),
            sa.Column('vendor_invoice_number', sa.String(100)),
            sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
            sa.Column('actual_start_date', sa.Date()),
            sa.Column('actual_completion_date', sa.Date()),
            sa.Column('work_performed', sa.Text()),
            sa.Column('parts_replaced', sa.JSON()),
            sa.Column('labor_hours', sa.Float()),
            sa.Column('labor_cost', sa.Float()),
            sa.Column('parts_cost', sa.Float()),
            sa.Column('vendor_cost', sa.Float()),
            sa.Column('other_costs', sa.Float()),
            sa.Column('warranty_info', sa.Text()),
            sa.Column('quality_check_passed', sa.Boolean()),
            sa.Column('quality_check_by', sa.String(36)),
            sa.Column('quality_check_by_name', sa.String(200)),
            sa.Column('quality_check_date', sa.DateTime(timezone=True)),
            sa.Column('quality_check_notes', sa.Text()),
            sa.Column('returned_to_service_date', sa.Date()),
            sa.Column('returned_to_operator', sa.String(36)),
            sa.Column('returned_to_operator_name', sa.String(200)),
            sa.Column('created_by', sa.String(36)),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )

    if not _table_exists(conn, 'equipment_maintenance_schedules'):
        op.create_table(
            'equipment_maintenance_schedules',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('equipment_id', sa.String(36), _equipment_fk(), nullable=False, index=True),
            sa.Column('maintenance_type', sa.String(100), nullable=False),
            sa.Column('description', sa.Text()),
            sa.Column('interval_hours', sa.Float()),
            sa.Column('interval_days', sa.Integer()),
            sa.Column('interval_linear_feet', sa.Float()),
            sa.Column('alert_hours_before', sa.Float(), server_default='5'),
            sa.Column('alert_days_before', sa.Integer(), server_default='7'),
            sa.Column('alert_feet_before', sa.Float(), server_default='500'),
            sa.Column('last_maintenance_date', sa.DateTime(timezone=True)),
            sa.Column('last_maintenance_hours', sa.Float(), server_default='0'),
            sa.Column('last_maintenance_feet', sa.Float(), server_default='0'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_by', sa.String(36)),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )

    if not _table_exists(conn, 'equipment_turn_in_requests'):
        op.create_table(
            'equipment_turn_in_requests',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('equipment_id', sa.String(36), _equipment_fk(), nullable=False, index=True),
            sa.Column('requested_by', sa.String(36), nullable=False, index=True),
            sa.Column('requested_by_name', sa.String(200)),
            sa.Column('reason', sa.String(50), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('urgency', sa.String(20), nullable=False, server_default='normal'),
            sa.Column('photo_urls', sa.JSON()),
            sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
            sa.Column('reviewed_by', sa.String(36)),
            sa.Column('reviewed_by_name', sa.String(200)),
            sa.Column('reviewed_at', sa.DateTime(timezone=True)),
            sa.Column('admin_notes', sa.Text()),
            sa.Column('service_started_at', sa.DateTime(timezone=True)),
            sa.Column('service_completed_at', sa.DateTime(timezone=True)),
            sa.Column('service_performed_by', sa.String(200)),
            sa.Column('service_cost', sa.Float()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
            sa.Column('updated_at', sa.DateTime(timezone=True)),
        )

    if not _table_exists(conn, 'equipment_maintenance_alerts'):
        op.create_table(
            'equipment_maintenance_alerts',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('equipment_id', sa.String(36), _equipment_fk(), nullable=False, index=True),
            sa.Column('operator_id', sa.String(36)),
            sa.Column('alert_type', sa.String(50), nullable=False),
            sa.Column('severity', sa.String(20), nullable=False, server_default='warning'),
            sa.Column('title', sa.String(255), nullable=False),
            sa.Column('message', sa.Text()),
            sa.Column('is_resolved', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )


def downgrade():
    """Drop tracking tables."""
    conn = op.get_bind()
    tables = [
        'equipment_maintenance_alerts',
        'equipment_turn_in_requests',
        'equipment_maintenance_schedules',
        'equipment_repair_tracking',
        'equipment_damage_reports',
        'equipment_usage',
        'standby_logs',
        'timecards',
        'daily_job_logs',
        'operator_status_history',
        'workflow_steps',
    ]
    for table in tables:
        if _table_exists(conn, table):
            op.drop_table(table)
