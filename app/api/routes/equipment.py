"""
Equipment API

The fleet itself plus the trackers hanging off it: damage reports, repair
tracking, maintenance schedules, turn-in requests and maintenance alerts.
Review and repair endpoints are admin-only; operators file reports and
requests.

Side effects on other tables (equipment status, linked report status,
maintenance alerts) commit in the same transaction as the primary write.
"""
from typing import Annotated, Any, Optional
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select, update

from app.api.deps import DbSession, CurrentUser
from app.exceptions import BadRequestError, ErrorCode, NotFoundError
from app.models.equipment import (
    Equipment,
    EquipmentDamageReport,
    EquipmentMaintenanceAlert,
    EquipmentMaintenanceSchedule,
    EquipmentRepair,
    EquipmentTurnInRequest,
    EquipmentUsage,
)
from app.models.profile import Profile
from app.schemas.equipment import (
    ALERT_ACTIONS,
    RESOLVED_DAMAGE_STATUSES,
    DamageReportCreate,
    DamageReportUpdate,
    EquipmentCheckout,
    EquipmentCreate,
    EquipmentUpdate,
    MaintenanceAlertUpdate,
    MaintenanceScheduleCreate,
    MaintenanceScheduleUpdate,
    RepairCreate,
    RepairUpdate,
    TurnInRequestCreate,
    TurnInRequestUpdate,
)
from app.security.rbac import Permission, is_admin, require_permission
from app.utils.serialization import row_to_dict, utcnow

logger = logging.getLogger(__name__)
router = APIRouter()

Manager = Annotated[Profile, Depends(require_permission(Permission.MANAGE_EQUIPMENT))]


def _display_name(user: Profile) -> str:
    return user.full_name or user.email


def _changes(body: BaseModel, *skip: str) -> dict[str, Any]:
    """Fields the caller actually sent, minus identifiers."""
    values = body.model_dump(exclude_unset=True, exclude_none=True)
    for key in skip:
        values.pop(key, None)
    return values


async def _get_for_update(db, model, row_id: Optional[str], id_field: str, resource: str):
    if not row_id:
        raise BadRequestError(f"Missing {id_field}", code=ErrorCode.MISSING_FIELD)
    result = await db.execute(select(model).where(model.id == row_id).with_for_update())
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError(resource)
    return row


async def _set_equipment_status(db, equipment_id: str, status: str) -> None:
    await db.execute(
        update(Equipment)
        .where(Equipment.id == equipment_id)
        .values(status=status, updated_at=utcnow())
    )


# ============================================================================
# Fleet
# ============================================================================

@router.get("")
async def list_equipment(
    db: DbSession,
    current_user: CurrentUser,
    status: Optional[str] = None,
    equipment_type: Optional[str] = Query(None, alias="type"),
):
    query = select(Equipment)
    if status:
        query = query.where(Equipment.status == status)
    if equipment_type:
        query = query.where(Equipment.equipment_type == equipment_type)

    result = await db.execute(query.order_by(Equipment.name))
    return {"success": True, "data": [row_to_dict(e) for e in result.scalars().all()]}


@router.post("", status_code=201)
async def create_equipment(
    body: EquipmentCreate,
    db: DbSession,
    admin: Manager,
):
    equipment = Equipment(**body.model_dump())
    db.add(equipment)
    await db.commit()

    logger.info(f"Equipment {equipment.id} ({equipment.name}) added by {admin.id}")
    return {"success": True, "data": row_to_dict(equipment)}


async def _get_operator(db, operator_id: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == operator_id))
    operator = result.scalar_one_or_none()
    if operator is None:
        raise NotFoundError("Operator")
    return operator


@router.post("/checkout")
async def checkout_equipment(
    body: EquipmentCheckout,
    db: DbSession,
    admin: Manager,
):
    """Hand a unit to an operator. It stays ``in_use`` until checked back in."""
    if not (body.equipment_id and body.operator_id):
        raise BadRequestError("Equipment ID and Operator ID are required", code=ErrorCode.MISSING_FIELD)

    equipment = await _get_for_update(db, Equipment, body.equipment_id, "equipment_id", "Equipment")
    if equipment.status == "in_use":
        raise BadRequestError("Equipment is already checked out", code=ErrorCode.CONFLICT)
    if equipment.status == "retired":
        raise BadRequestError("Retired equipment cannot be checked out")
    operator = await _get_operator(db, body.operator_id)

    equipment.status = "in_use"
    equipment.assigned_to = operator.id
    if body.notes:
        equipment.notes = body.notes
    equipment.updated_at = utcnow()
    await db.commit()

    logger.info(f"Equipment {equipment.id} checked out to {operator.id} by {admin.id}")
    return {
        "success": True,
        "message": "Equipment checked out successfully",
        "data": row_to_dict(equipment),
    }


# ============================================================================
# Damage reports
# ============================================================================

@router.get("/damage-report")
async def list_damage_reports(
    db: DbSession,
    current_user: CurrentUser,
    equipment_id: Optional[str] = Query(None, alias="equipmentId"),
    status: Optional[str] = None,
):
    query = select(EquipmentDamageReport)
    if equipment_id:
        query = query.where(EquipmentDamageReport.equipment_id == equipment_id)
    if status:
        query = query.where(EquipmentDamageReport.status == status)

    result = await db.execute(query.order_by(EquipmentDamageReport.created_at.desc()))
    return {"success": True, "reports": [row_to_dict(r) for r in result.scalars().all()]}


@router.post("/damage-report")
async def create_damage_report(
    body: DamageReportCreate,
    db: DbSession,
    current_user: CurrentUser,
):
    """File a damage report; the equipment's most recent user is recorded with it."""
    if not (body.equipment_id and body.damage_title and body.damage_description):
        raise BadRequestError(
            "Missing required fields: equipmentId, damageTitle, damageDescription",
            code=ErrorCode.MISSING_FIELD,
        )

    result = await db.execute(
        select(EquipmentUsage, Profile.full_name)
        .outerjoin(Profile, Profile.id == EquipmentUsage.operator_id)
        .where(EquipmentUsage.equipment_id == body.equipment_id)
        .order_by(EquipmentUsage.created_at.desc())
        .limit(1)
    )
    last_use = result.first()

    report = EquipmentDamageReport(
        **body.model_dump(),
        reported_by=current_user.id,
        reported_by_name=_display_name(current_user),
        status="reported",
    )
    if last_use is not None:
        usage, operator_name = last_use
        report.last_used_by = usage.operator_id
        report.last_used_by_name = operator_name
        report.last_job_id = usage.job_order_id

    db.add(report)
    await db.commit()

    logger.info(
        f"Damage report {report.id} filed for equipment {report.equipment_id} "
        f"({report.severity}) by {current_user.id}"
    )
    return {"success": True, "report": row_to_dict(report), "message": "Damage report submitted successfully"}


@router.patch("/damage-report")
async def update_damage_report(
    body: DamageReportUpdate,
    db: DbSession,
    admin: Manager,
):
    """Admin review, assessment and resolution."""
    report = await _get_for_update(db, EquipmentDamageReport, body.report_id, "reportId", "Damage report")

    now = utcnow()
    for field, value in _changes(body, "report_id").items():
        setattr(report, field, value)
    report.reviewed_by = admin.id
    report.reviewed_by_name = _display_name(admin)
    report.reviewed_at = now
    if body.status in RESOLVED_DAMAGE_STATUSES:
        report.resolved_at = now
    report.updated_at = now

    await db.commit()
    return {"success": True, "report": row_to_dict(report), "message": "Damage report updated successfully"}


# ============================================================================
# Repair tracking
# ============================================================================

@router.get("/repair-tracking")
async def list_repairs(
    db: DbSession,
    current_user: CurrentUser,
    equipment_id: Optional[str] = Query(None, alias="equipmentId"),
    damage_report_id: Optional[str] = Query(None, alias="damageReportId"),
    status: Optional[str] = None,
):
    query = select(EquipmentRepair)
    if equipment_id:
        query = query.where(EquipmentRepair.equipment_id == equipment_id)
    if damage_report_id:
        query = query.where(EquipmentRepair.damage_report_id == damage_report_id)
    if status:
        query = query.where(EquipmentRepair.status == status)

    result = await db.execute(query.order_by(EquipmentRepair.created_at.desc()))
    return {"success": True, "repairs": [row_to_dict(r) for r in result.scalars().all()]}


@router.post("/repair-tracking")
async def create_repair(
    body: RepairCreate,
    db: DbSession,
    admin: Manager,
):
    if not (body.equipment_id and body.repair_title and body.repair_description and body.repair_type):
        raise BadRequestError(
            "Missing required fields: equipmentId, repairTitle, repairDescription, repairType",
            code=ErrorCode.MISSING_FIELD,
        )

    repair = EquipmentRepair(**body.model_dump(), status="pending", created_by=admin.id)
    db.add(repair)

    if body.damage_report_id:
        await db.execute(
            update(EquipmentDamageReport)
            .where(EquipmentDamageReport.id == body.damage_report_id)
            .values(status="repair_in_progress", updated_at=utcnow())
        )

    await db.commit()
    logger.info(f"Repair {repair.id} opened for equipment {repair.equipment_id}")
    return {"success": True, "repair": row_to_dict(repair), "message": "Repair tracking created successfully"}


@router.patch("/repair-tracking")
async def update_repair(
    body: RepairUpdate,
    db: DbSession,
    admin: Manager,
):
    """
    Progress a repair.

    Completing it puts the equipment back in service and closes the linked
    damage report as repaired. A quality-check verdict stamps the checker.
    """
    repair = await _get_for_update(db, EquipmentRepair, body.repair_id, "repairId", "Repair")

    now = utcnow()
    changes = _changes(body, "repair_id", "quality_check_passed", "quality_check_notes")
    for field, value in changes.items():
        setattr(repair, field, value)

    if body.quality_check_passed is not None:
        repair.quality_check_passed = body.quality_check_passed
        repair.quality_check_by = admin.id
        repair.quality_check_by_name = _display_name(admin)
        repair.quality_check_date = now
        if body.quality_check_notes:
            repair.quality_check_notes = body.quality_check_notes

    if body.returned_to_operator:
        result = await db.execute(
            select(Profile.full_name).where(Profile.id == body.returned_to_operator)
        )
        repair.returned_to_operator_name = result.scalar_one_or_none()

    repair.updated_at = now

    if body.status == "completed":
        await _set_equipment_status(db, repair.equipment_id, "available")
        if repair.damage_report_id:
            await db.execute(
                update(EquipmentDamageReport)
                .where(EquipmentDamageReport.id == repair.damage_report_id)
                .values(status="repair_completed", resolved_at=now, updated_at=now)
            )

    await db.commit()
    return {"success": True, "repair": row_to_dict(repair), "message": "Repair tracking updated successfully"}


# ============================================================================
# Maintenance schedules
# ============================================================================

@router.get("/maintenance-schedule")
async def list_maintenance_schedules(
    db: DbSession,
    current_user: CurrentUser,
    equipment_id: Optional[str] = Query(None, alias="equipmentId"),
    active_only: bool = Query(False, alias="activeOnly"),
):
    query = select(EquipmentMaintenanceSchedule)
    if equipment_id:
        query = query.where(EquipmentMaintenanceSchedule.equipment_id == equipment_id)
    if active_only:
        query = query.where(EquipmentMaintenanceSchedule.is_active.is_(True))

    result = await db.execute(query.order_by(EquipmentMaintenanceSchedule.created_at.desc()))
    return {"success": True, "schedules": [row_to_dict(s) for s in result.scalars().all()]}


@router.post("/maintenance-schedule")
async def create_maintenance_schedule(
    body: MaintenanceScheduleCreate,
    db: DbSession,
    admin: Manager,
):
    if not (body.equipment_id and body.maintenance_type):
        raise BadRequestError(
            "Missing required fields: equipmentId, maintenanceType",
            code=ErrorCode.MISSING_FIELD,
        )

    schedule = EquipmentMaintenanceSchedule(**body.model_dump(), is_active=True, created_by=admin.id)
    db.add(schedule)
    await db.commit()
    return {"success": True, "schedule": row_to_dict(schedule), "message": "Maintenance schedule created successfully"}


@router.patch("/maintenance-schedule")
async def update_maintenance_schedule(
    body: MaintenanceScheduleUpdate,
    db: DbSession,
    admin: Manager,
):
    schedule = await _get_for_update(
        db, EquipmentMaintenanceSchedule, body.schedule_id, "scheduleId", "Maintenance schedule"
    )
    for field, value in _changes(body, "schedule_id").items():
        setattr(schedule, field, value)
    schedule.updated_at = utcnow()

    await db.commit()
    return {"success": True, "schedule": row_to_dict(schedule), "message": "Maintenance schedule updated successfully"}


@router.delete("/maintenance-schedule")
async def delete_maintenance_schedule(
    db: DbSession,
    admin: Manager,
    schedule_id: Optional[str] = Query(None, alias="scheduleId"),
):
    schedule = await _get_for_update(
        db, EquipmentMaintenanceSchedule, schedule_id, "scheduleId", "Maintenance schedule"
    )
    await db.delete(schedule)
    await db.commit()

    logger.info(f"Maintenance schedule {schedule_id} deleted by {admin.id}")
    return {"success": True, "message": "Maintenance schedule deleted successfully"}


# ============================================================================
# Turn-in requests
# ============================================================================

@router.get("/turn-in-request")
async def list_turn_in_requests(
    db: DbSession,
    current_user: CurrentUser,
    equipment_id: Optional[str] = Query(None, alias="equipmentId"),
    status: Optional[str] = None,
):
    query = select(EquipmentTurnInRequest)
    if status:
        query = query.where(EquipmentTurnInRequest.status == status)
    if equipment_id:
        query = query.where(EquipmentTurnInRequest.equipment_id == equipment_id)

    result = await db.execute(query.order_by(EquipmentTurnInRequest.created_at.desc()))
    return {"success": True, "requests": [row_to_dict(r) for r in result.scalars().all()]}


@router.post("/turn-in-request")
async def create_turn_in_request(
    body: TurnInRequestCreate,
    db: DbSession,
    current_user: CurrentUser,
):
    """Ask to hand equipment back; maintenance turn-ins also raise an alert."""
    if not (body.equipment_id and body.reason and body.description):
        raise BadRequestError(
            "Missing required fields: equipmentId, reason, description",
            code=ErrorCode.MISSING_FIELD,
        )

    turn_in = EquipmentTurnInRequest(
        **body.model_dump(),
        requested_by=current_user.id,
        requested_by_name=_display_name(current_user),
        status="pending",
    )
    db.add(turn_in)

    if body.reason == "scheduled_maintenance":
        db.add(EquipmentMaintenanceAlert(
            equipment_id=body.equipment_id,
            operator_id=current_user.id,
            alert_type="turn_in_requested",
            severity="critical" if body.urgency == "critical" else "warning",
            title="Equipment Turn-In Requested",
            message=f"Turn-in requested for maintenance: {body.description}",
        ))

    await db.commit()
    logger.info(f"Turn-in request {turn_in.id} for equipment {turn_in.equipment_id} ({turn_in.reason})")
    return {"success": True, "request": row_to_dict(turn_in), "message": "Turn-in request submitted successfully"}


@router.patch("/turn-in-request")
async def update_turn_in_request(
    body: TurnInRequestUpdate,
    db: DbSession,
    admin: Manager,
):
    """Review a turn-in; approval pulls the equipment into maintenance, completion releases it."""
    turn_in = await _get_for_update(db, EquipmentTurnInRequest, body.request_id, "requestId", "Turn-in request")

    now = utcnow()
    for field, value in _changes(body, "request_id").items():
        setattr(turn_in, field, value)
    turn_in.reviewed_by = admin.id
    turn_in.reviewed_by_name = _display_name(admin)
    turn_in.reviewed_at = now
    turn_in.updated_at = now

    if body.status == "approved":
        await _set_equipment_status(db, turn_in.equipment_id, "maintenance")
    elif body.status == "completed":
        await _set_equipment_status(db, turn_in.equipment_id, "available")

    await db.commit()
    return {"success": True, "request": row_to_dict(turn_in), "message": "Turn-in request updated successfully"}


# ============================================================================
# Maintenance alerts
# ============================================================================

@router.get("/maintenance-alerts")
async def list_maintenance_alerts(
    db: DbSession,
    current_user: CurrentUser,
    status: str = "all",
    equipment_id: Optional[str] = Query(None, alias="equipmentId"),
):
    """Alerts newest first. ``status`` is unread, unresolved or all; operators see their own."""
    query = select(EquipmentMaintenanceAlert)
    if status == "unread":
        query = query.where(EquipmentMaintenanceAlert.is_read.is_(False))
    elif status == "unresolved":
        query = query.where(EquipmentMaintenanceAlert.is_resolved.is_(False))
    if equipment_id:
        query = query.where(EquipmentMaintenanceAlert.equipment_id == equipment_id)
    if not is_admin(current_user):
        query = query.where(EquipmentMaintenanceAlert.operator_id == current_user.id)

    result = await db.execute(query.order_by(EquipmentMaintenanceAlert.created_at.desc()))
    return {"success": True, "alerts": [row_to_dict(a) for a in result.scalars().all()]}


@router.patch("/maintenance-alerts")
async def update_maintenance_alert(
    body: MaintenanceAlertUpdate,
    db: DbSession,
    admin: Manager,
):
    if not (body.alert_id and body.action):
        raise BadRequestError("Missing alertId or action", code=ErrorCode.MISSING_FIELD)
    if body.action not in ALERT_ACTIONS:
        raise BadRequestError(f"Invalid action. Must be one of: {', '.join(ALERT_ACTIONS)}")

    alert = await _get_for_update(db, EquipmentMaintenanceAlert, body.alert_id, "alertId", "Maintenance alert")
    now = utcnow()
    if body.action == "mark_read":
        alert.is_read = True
    elif body.action == "acknowledge":
        alert.is_acknowledged = True
        alert.acknowledged_by = admin.id
        alert.acknowledged_at = now
    else:
        alert.is_resolved = True
        alert.resolved_at = now

    await db.commit()
    logger.info(f"Maintenance alert {alert.id}: {body.action} by {admin.id}")
    return {"success": True, "alert": row_to_dict(alert), "message": "Alert updated successfully"}


# Declared last so the fixed tracker paths above take precedence
@router.get("/{equipment_id}")
async def get_equipment(
    equipment_id: str,
    db: DbSession,
    current_user: CurrentUser,
):
    result = await db.execute(select(Equipment).where(Equipment.id == equipment_id))
    equipment = result.scalar_one_or_none()
    if equipment is None:
        raise NotFoundError("Equipment")
    return {"success": True, "data": row_to_dict(equipment)}


@router.patch("/{equipment_id}")
async def update_equipment(
    equipment_id: str,
    body: EquipmentUpdate,
    db: DbSession,
    admin: Manager,
):
    """
    Edit a unit's details or status.

    Moving it back to available or retiring it releases the operator holding
    it. A new ``assigned_to`` must name an existing profile.
    """
    equipment = await _get_for_update(db, Equipment, equipment_id, "equipment_id", "Equipment")

    changes = _changes(body)
    if "assigned_to" in changes:
        await _get_operator(db, changes["assigned_to"])
    for field, value in changes.items():
        setattr(equipment, field, value)
    if body.status in ("available", "retired"):
        equipment.assigned_to = None
    equipment.updated_at = utcnow()
    await db.commit()

    logger.info(f"Equipment {equipment.id} updated by {admin.id}: {sorted(changes)}")
    return {"success": True, "data": row_to_dict(equipment)}
