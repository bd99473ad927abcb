"""Standby API - billable waiting time on site."""
from typing import Optional
import logging

from fastapi import APIRouter, Query
from sqlalchemy import select

from app.api.deps import DbSession, CurrentUser
from app.exceptions import BadRequestError, ErrorCode, NotFoundError
from app.models.standby_log import StandbyLog
from app.schemas.standby import StandbyEndRequest, StandbyStartRequest
from app.services.standby import calculate_charge
from app.utils.serialization import row_to_dict, utcnow

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", status_code=201)
async def start_standby(
    body: StandbyStartRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Open an active standby log for the caller."""
    if not body.job_id or not body.reason:
        raise BadRequestError("Missing required fields: jobId and reason", code=ErrorCode.MISSING_FIELD)

    log = StandbyLog(
        job_order_id=body.job_id,
        operator_id=current_user.id,
        reason=body.reason,
        started_at=body.started_at or utcnow(),
        status="active",
    )
    db.add(log)
    await db.commit()

    logger.info(f"Standby started on job {body.job_id} by {current_user.id}")
    return {"success": True, "data": row_to_dict(log)}


@router.put("")
async def end_standby(
    body: StandbyEndRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Close the caller's standby log and fix its billing."""
    if not body.standby_log_id:
        raise BadRequestError("Missing required field: standbyLogId", code=ErrorCode.MISSING_FIELD)

    result = await db.execute(
        select(StandbyLog)
        .where(StandbyLog.id == body.standby_log_id, StandbyLog.operator_id == current_user.id)
        .with_for_update()
    )
    log = result.scalar_one_or_none()
    if log is None:
        raise NotFoundError("Standby log")
    if log.status == "completed":
        raise BadRequestError("Standby log is already closed", code=ErrorCode.OPERATION_NOT_ALLOWED)

    ended_at = body.ended_at or utcnow()
    charge = calculate_charge(log.started_at, ended_at)
    log.ended_at = ended_at
    log.duration_hours = charge.duration_hours
    log.billable_hours = charge.billable_hours
    log.hourly_rate = charge.hourly_rate
    log.billable_amount = charge.amount
    log.policy_version = charge.policy_version
    log.status = "completed"
    await db.commit()

    logger.info(f"Standby {log.id} closed: {charge.duration_hours}h, ${charge.amount}")
    return {"success": True, "data": row_to_dict(log)}


@router.get("")
async def list_standby_logs(
    db: DbSession,
    current_user: CurrentUser,
    job_id: Optional[str] = Query(None, alias="jobId"),
    operator_id: Optional[str] = Query(None, alias="operatorId"),
):
    query = select(StandbyLog)
    if job_id:
        query = query.where(StandbyLog.job_order_id == job_id)
    if operator_id:
        query = query.where(StandbyLog.operator_id == operator_id)

    result = await db.execute(query.order_by(StandbyLog.started_at.desc()))
    return {"success": True, "data": [row_to_dict(log) for log in result.scalars().all()]}
