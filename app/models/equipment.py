"""Cutting equipment and the trackers hanging off it.

Equipment status moves between available, in_use, maintenance and retired.
The trackers (usage, damage reports, repairs, maintenance schedules, turn-in
requests, alerts) are independent tables linked by equipment_id.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Date, Text, Float, Integer, ForeignKey, JSON
from sqlalchemy.sql import func
import uuid

from app.database import Base
from app.utils.serialization import utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


class Equipment(Base):
    """A saw, drill or other tracked tool."""

    __tablename__ = "equipment"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    equipment_type = Column(String(100), index=True)
    brand = Column(String(100))
    model = Column(String(100))
    serial_number = Column(String(100), index=True)

    status = Column(String(20), nullable=False, default="available", index=True)
    assigned_to = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"))

    # Lifetime linear feet cut
    total_usage = Column(Float, nullable=False, default=0)

    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Equipment {self.name} ({self.status})>"


class EquipmentUsage(Base):
    __tablename__ = "equipment_usage"

    id = Column(String(36), primary_key=True, default=_uuid)
    job_order_id = Column(String(36), nullable=False, index=True)
    operator_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    equipment_id = Column(String(36), ForeignKey("equipment.id", ondelete="SET NULL"), index=True)
    equipment_type = Column(String(100), nullable=False, index=True)
    task_type = Column(String(100), nullable=False)

    linear_feet_cut = Column(Float, default=0)
    difficulty_level = Column(String(20), default="medium")
    difficulty_notes = Column(Text)
    blade_type = Column(String(100))
    blades_used = Column(Integer, default=0)
    blade_wear_notes = Column(Text)
    hydraulic_hose_used_ft = Column(Float, default=0)
    water_hose_used_ft = Column(Float, default=0)
    power_hours = Column(Float, default=0)
    location_changes = Column(Integer, default=0)
    setup_time_minutes = Column(Integer, default=0)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class EquipmentDamageReport(Base):
    __tablename__ = "equipment_damage_reports"

    id = Column(String(36), primary_key=True, default=_uuid)
    equipment_id = Column(String(36), ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    job_order_id = Column(String(36))

    reported_by = Column(String(36), nullable=False)
    reported_by_name = Column(String(200))
    damage_title = Column(String(255), nullable=False)
    damage_description = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False, default="moderate")
    incident_type = Column(String(100))
    incident_description = Column(Text)
    location_of_incident = Column(String(255))
    date_of_incident = Column(Date)
    photo_urls = Column(JSON)
    video_urls = Column(JSON)
    equipment_operable = Column(Boolean, default=False)
    safety_concern = Column(Boolean, default=False)

    # Most recent user of the equipment at report time
    last_used_by = Column(String(36))
    last_used_by_name = Column(String(200))
    last_job_id = Column(String(36))

    # reported, under_review, repair_in_progress, repair_completed, equipment_retired, no_action_needed
    status = Column(String(30), nullable=False, default="reported", index=True)
    reviewed_by = Column(String(36))
    reviewed_by_name = Column(String(200))
    reviewed_at = Column(DateTime(timezone=True))
    assessment_notes = Column(Text)
    estimated_repair_cost = Column(Float)
    estimated_downtime_days = Column(Integer)
    parts_needed = Column(JSON)
    admin_notes = Column(Text)
    resolution_notes = Column(Text)
    resolved_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class EquipmentRepair(Base):
    __tablename__ = "equipment_repair_tracking"

    id = Column(String(36), primary_key=True, default=_uuid)
    equipment_id = Column(String(36), ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    damage_report_id = Column(String(36), ForeignKey("equipment_damage_reports.id", ondelete="SET NULL"))

    repair_title = Column(String(255), nullable=False)
    repair_description = Column(Text, nullable=False)
    repair_type = Column(String(50), nullable=False)
    repair_priority = Column(String(20), default="normal")
    scheduled_start_date = Column(Date)
    scheduled_completion_date = Column(Date)
    assigned_to = Column(String(200))
    vendor_name = Column(String(200))
    vendor_contact = Column(String(200))
    vendor_invoice_number = Column(String(100))

    # pending, in_progress, completed, cancelled
    status = Column(String(20), nullable=False, default="pending", index=True)
    actual_start_date = Column(Date)
    actual_completion_date = Column(Date)
    work_performed = Column(Text)
    parts_replaced = Column(JSON)
    labor_hours = Column(Float)
    labor_cost = Column(Float)
    parts_cost = Column(Float)
    vendor_cost = Column(Float)
    other_costs = Column(Float)
    warranty_info = Column(Text)

    quality_check_passed = Column(Boolean)
    quality_check_by = Column(String(36))
    quality_check_by_name = Column(String(200))
    quality_check_date = Column(DateTime(timezone=True))
    quality_check_notes = Column(Text)

    returned_to_service_date = Column(Date)
    returned_to_operator = Column(String(36))
    returned_to_operator_name = Column(String(200))

    created_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class EquipmentMaintenanceSchedule(Base):
    __tablename__ = "equipment_maintenance_schedules"

    id = Column(String(36), primary_key=True, default=_uuid)
    equipment_id = Column(String(36), ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    maintenance_type = Column(String(100), nullable=False)
    description = Column(Text)

    # Any of the three intervals may trigger maintenance
    interval_hours = Column(Float)
    interval_days = Column(Integer)
    interval_linear_feet = Column(Float)

    alert_hours_before = Column(Float, default=5)
    alert_days_before = Column(Integer, default=7)
    alert_feet_before = Column(Float, default=500)

    last_maintenance_date = Column(DateTime(timezone=True))
    last_maintenance_hours = Column(Float, default=0)
    last_maintenance_feet = Column(Float, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class EquipmentTurnInRequest(Base):
    __tablename__ = "equipment_turn_in_requests"

    id = Column(String(36), primary_key=True, default=_uuid)
    equipment_id = Column(String(36), ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    requested_by = Column(String(36), nullable=False, index=True)
    requested_by_name = Column(String(200))

    reason = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    urgency = Column(String(20), nullable=False, default="normal")
    photo_urls = Column(JSON)

    # pending, approved, rejected, in_service, completed
    status = Column(String(20), nullable=False, default="pending", index=True)
    reviewed_by = Column(String(36))
    reviewed_by_name = Column(String(200))
    reviewed_at = Column(DateTime(timezone=True))
    admin_notes = Column(Text)
    service_started_at = Column(DateTime(timezone=True))
    service_completed_at = Column(DateTime(timezone=True))
    service_performed_by = Column(String(200))
    service_cost = Column(Float)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class EquipmentMaintenanceAlert(Base):
    __tablename__ = "equipment_maintenance_alerts"

    id = Column(String(36), primary_key=True, default=_uuid)
    equipment_id = Column(String(36), ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    schedule_id = Column(String(36), ForeignKey("equipment_maintenance_schedules.id", ondelete="SET NULL"))
    operator_id = Column(String(36))
    alert_type = Column(String(50), nullable=False)
    severity = Column(String(20), nullable=False, default="warning")
    title = Column(String(255), nullable=False)
    message = Column(Text)

    # Lifecycle flags, each set independently
    is_read = Column(Boolean, nullable=False, default=False)
    is_acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_by = Column(String(36))
    acknowledged_at = Column(DateTime(timezone=True))
    is_resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
