"""Equipment Usage API - per-job usage entries and lifetime feet cut."""
from typing import Optional
import logging

from fastapi import APIRouter, Query
from sqlalchemy import func, select, update

from app.api.deps import DbSession, CurrentUser
from app.exceptions import BadRequestError, ErrorCode
from app.models.equipment import Equipment, EquipmentUsage
from app.schemas.equipment import EquipmentUsageCreate
from app.security.rbac import is_admin
from app.utils.serialization import row_to_dict

logger = logging.getLogger(__name__)
router = APIRouter()

_COUNTERS = (
    "linear_feet_cut",
    "blades_used",
    "hydraulic_hose_used_ft",
    "water_hose_used_ft",
    "power_hours",
    "location_changes",
    "setup_time_minutes",
)


@router.post("", status_code=201)
async def record_usage(
    body: EquipmentUsageCreate,
    db: DbSession,
    current_user: CurrentUser,
):
    """
    Record equipment usage for the caller.

    Feet cut with a specific piece of equipment are added to its lifetime
    total with a single UPDATE ... SET total_usage = total_usage + n.
    """
    if not (body.job_order_id and body.equipment_type and body.task_type):
        raise BadRequestError(
            "Missing required fields: job_order_id, equipment_type, task_type",
            code=ErrorCode.MISSING_FIELD,
        )

    values = body.model_dump()
    for counter in _COUNTERS:
        values[counter] = values[counter] or 0
    values["difficulty_level"] = values["difficulty_level"] or "medium"

    usage = EquipmentUsage(**values, operator_id=current_user.id)
    db.add(usage)

    feet = usage.linear_feet_cut
    if body.equipment_id and feet > 0:
        await db.execute(
            update(Equipment)
            .where(Equipment.id == body.equipment_id)
            .values(total_usage=func.coalesce(Equipment.total_usage, 0) + feet)
            .execution_options(synchronize_session=False)
        )

    await db.commit()
    logger.info(
        f"Usage {usage.id} recorded on job {usage.job_order_id}: "
        f"{usage.equipment_type} {feet} ft by {current_user.id}"
    )
    return {"success": True, "data": row_to_dict(usage)}


@router.get("")
async def list_usage(
    db: DbSession,
    current_user: CurrentUser,
    job_order_id: Optional[str] = None,
    operator_id: Optional[str] = None,
    equipment_type: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
):
    """Usage entries, newest first. Operators only see their own."""
    query = select(EquipmentUsage)
    if not is_admin(current_user):
        query = query.where(EquipmentUsage.operator_id == current_user.id)
    elif operator_id:
        query = query.where(EquipmentUsage.operator_id == operator_id)
    if job_order_id:
        query = query.where(EquipmentUsage.job_order_id == job_order_id)
    if equipment_type:
        query = query.where(EquipmentUsage.equipment_type == equipment_type)

    result = await db.execute(query.order_by(EquipmentUsage.created_at.desc()).limit(limit))
    return {"success": True, "data": [row_to_dict(u) for u in result.scalars().all()]}
