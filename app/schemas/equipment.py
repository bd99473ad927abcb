"""Equipment tracker schemas for request validation."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.types import CamelModel, OptionalStr


DamageSeverity = Literal["minor", "moderate", "major", "critical"]
DamageStatus = Literal[
    "reported",
    "under_review",
    "repair_in_progress",
    "repair_completed",
    "equipment_retired",
    "no_action_needed",
]
RepairStatus = Literal["pending", "in_progress", "completed", "cancelled"]
EquipmentStatus = Literal["available", "in_use", "maintenance", "retired"]
TurnInStatus = Literal["pending", "approved", "rejected", "in_service", "completed"]
ALERT_ACTIONS = ("mark_read", "acknowledge", "resolve")

# Damage report statuses that close the report
RESOLVED_DAMAGE_STATUSES = frozenset({"repair_completed", "equipment_retired", "no_action_needed"})


class EquipmentCreate(BaseModel):
    """Schema for adding equipment to the fleet."""

    name: str = Field(..., min_length=1, max_length=200)
    equipment_type: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    serial_number: Optional[str] = Field(None, max_length=100)
    status: EquipmentStatus = "available"
    assigned_to: OptionalStr = None
    notes: Optional[str] = None


class EquipmentUpdate(BaseModel):
    """Partial fleet edit; setting status to retired takes the unit out of service."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    equipment_type: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    serial_number: Optional[str] = Field(None, max_length=100)
    status: Optional[EquipmentStatus] = None
    assigned_to: OptionalStr = None
    notes: Optional[str] = None


class EquipmentCheckout(BaseModel):
    equipment_id: OptionalStr = None
    operator_id: OptionalStr = None
    notes: Optional[str] = None


class EquipmentUsageCreate(BaseModel):
    """Usage entry; the job, type and task are checked by the route (400)."""

    job_order_id: OptionalStr = None
    equipment_id: OptionalStr = None
    equipment_type: OptionalStr = None
    task_type: OptionalStr = None
    linear_feet_cut: Optional[float] = Field(None, ge=0)
    difficulty_level: OptionalStr = None
    difficulty_notes: Optional[str] = None
    blade_type: Optional[str] = None
    blades_used: Optional[int] = Field(None, ge=0)
    blade_wear_notes: Optional[str] = None
    hydraulic_hose_used_ft: Optional[float] = None
    water_hose_used_ft: Optional[float] = None
    power_hours: Optional[float] = None
    location_changes: Optional[int] = None
    setup_time_minutes: Optional[int] = None
    notes: Optional[str] = None


class DamageReportCreate(CamelModel):
    equipment_id: OptionalStr = None
    damage_title: OptionalStr = None
    damage_description: OptionalStr = None
    severity: DamageSeverity = "moderate"
    incident_type: Optional[str] = None
    incident_description: Optional[str] = None
    job_order_id: OptionalStr = None
    location_of_incident: Optional[str] = None
    date_of_incident: Optional[date] = None
    photo_urls: list[str] = Field(default_factory=list)
    video_urls: list[str] = Field(default_factory=list)
    equipment_operable: bool = False
    safety_concern: bool = False


class DamageReportUpdate(CamelModel):
    report_id: OptionalStr = None
    status: Optional[DamageStatus] = None
    assessment_notes: Optional[str] = None
    estimated_repair_cost: Optional[float] = None
    estimated_downtime_days: Optional[int] = None
    parts_needed: Optional[list[str]] = None
    admin_notes: Optional[str] = None
    resolution_notes: Optional[str] = None


class RepairCreate(CamelModel):
    equipment_id: OptionalStr = None
    damage_report_id: OptionalStr = None
    repair_title: OptionalStr = None
    repair_description: OptionalStr = None
    repair_type: OptionalStr = None
    repair_priority: str = "normal"
    scheduled_start_date: Optional[date] = None
    scheduled_completion_date: Optional[date] = None
    assigned_to: Optional[str] = None
    vendor_name: Optional[str] = None
    vendor_contact: Optional[str] = None
    vendor_invoice_number: Optional[str] = None


class RepairUpdate(CamelModel):
    repair_id: OptionalStr = None
    status: Optional[RepairStatus] = None
    actual_start_date: Optional[date] = None
    actual_completion_date: Optional[date] = None
    work_performed: Optional[str] = None
    parts_replaced: Optional[list[str]] = None
    labor_hours: Optional[float] = None
    labor_cost: Optional[float] = None
    parts_cost: Optional[float] = None
    vendor_cost: Optional[float] = None
    other_costs: Optional[float] = None
    warranty_info: Optional[str] = None
    quality_check_passed: Optional[bool] = None
    quality_check_notes: Optional[str] = None
    returned_to_service_date: Optional[date] = None
    returned_to_operator: OptionalStr = None


class MaintenanceScheduleCreate(CamelModel):
    equipment_id: OptionalStr = None
    maintenance_type: OptionalStr = None
    description: Optional[str] = None
    interval_hours: Optional[float] = None
    interval_days: Optional[int] = None
    interval_linear_feet: Optional[float] = None
    alert_hours_before: float = 5
    alert_days_before: int = 7
    alert_feet_before: float = 500
    last_maintenance_date: Optional[datetime] = None
    last_maintenance_hours: float = 0
    last_maintenance_feet: float = 0


class MaintenanceScheduleUpdate(CamelModel):
    schedule_id: OptionalStr = None
    maintenance_type: OptionalStr = None
    description: Optional[str] = None
    interval_hours: Optional[float] = None
    interval_days: Optional[int] = None
    interval_linear_feet: Optional[float] = None
    alert_hours_before: Optional[float] = None
    alert_days_before: Optional[int] = None
    alert_feet_before: Optional[float] = None
    last_maintenance_date: Optional[datetime] = None
    last_maintenance_hours: Optional[float] = None
    last_maintenance_feet: Optional[float] = None
    is_active: Optional[bool] = None


class TurnInRequestCreate(CamelModel):
    equipment_id: OptionalStr = None
    reason: OptionalStr = None
    description: OptionalStr = None
    urgency: str = "normal"
    photo_urls: list[str] = Field(default_factory=list)


class TurnInRequestUpdate(CamelModel):
    request_id: OptionalStr = None
    status: Optional[TurnInStatus] = None
    admin_notes: Optional[str] = None
    service_started_at: Optional[datetime] = None
    service_completed_at: Optional[datetime] = None
    service_performed_by: Optional[str] = None
    service_cost: Optional[float] = None


class MaintenanceAlertUpdate(CamelModel):
    alert_id: OptionalStr = None
    action: OptionalStr = None
