"""
Admin Job Orders API

Create, edit and delete job orders. Every edit is diffed against the row as
it was before this request under a row lock and written to the audit
history in the same transaction.
"""
from collections import Counter
from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select

from app.api.deps import DbSession, CurrentUser
from app.config import settings
from app.exceptions import BadRequestError, ErrorCode, NotFoundError
from app.models.job_order import JobOrder
from app.schemas.job_order import JobOrderCreate, JobOrderUpdate
from app.security.rbac import ensure_admin
from app.services.audit import AuditService, TRACKED_FIELDS, compute_changes
from app.services.drive_time import calculate_shop_arrival, format_clock
from app.services.job_status import JobStatusService, VALID_STATUSES
from app.utils.serialization import row_to_dict, utcnow

logger = logging.getLogger(__name__)
router = APIRouter()


def _admin_only(detail: str):
    def checker(current_user: CurrentUser):
        ensure_admin(current_user, detail)
        return current_user

    return checker


def _required_column(name: str) -> bool:
    column = JobOrder.__table__.columns.get(name)
    return column is not None and not column.nullable


@router.get("")
async def list_all_job_orders(
    db: DbSession,
    current_user=Depends(_admin_only("Only administrators can view all job orders")),
    status: Optional[str] = None,
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
):
    """All job orders with a status summary."""
    query = select(JobOrder)
    if status:
        query = query.where(JobOrder.status == status)
    if assigned_to:
        query = query.where(JobOrder.assigned_to == assigned_to)
    if start_date:
        query = query.where(JobOrder.scheduled_date >= start_date)
    if end_date:
        query = query.where(JobOrder.scheduled_date <= end_date)

    result = await db.execute(query.order_by(JobOrder.created_at.desc()))
    jobs = result.scalars().all()

    return {
        "success": True,
        "data": {
            "jobOrders": [row_to_dict(j) for j in jobs],
            "summary": {
                "totalJobs": len(jobs),
                "statusCounts": dict(Counter(j.status for j in jobs)),
            },
        },
    }


@router.post("", status_code=201)
async def create_job_order(
    body: JobOrderCreate,
    db: DbSession,
    current_user=Depends(_admin_only("Only administrators can create job orders")),
):
    """Create a job order; assigning an operator makes it ``assigned``."""
    missing = body.missing_fields()
    if missing:
        raise BadRequestError(
            f"Missing required fields: {', '.join(missing)}",
            code=ErrorCode.MISSING_FIELD,
        )

    data = body.model_dump()
    shop_arrival = data.get("shop_arrival_time")
    if not shop_arrival and data.get("arrival_time") and data.get("drive_time_hours") is not None:
        try:
            shop_arrival = format_clock(
                calculate_shop_arrival(
                    data["arrival_time"],
                    data["drive_time_hours"],
                    settings.DRIVE_TIME_BUFFER_HOURS,
                )
            )
        except ValueError as e:
            raise BadRequestError(str(e), code=ErrorCode.INVALID_FORMAT)
        data["shop_arrival_time"] = shop_arrival

    job = JobOrder(**data)
    job.priority = body.priority or "medium"
    job.status = "assigned" if body.assigned_to else "scheduled"
    job.assigned_at = utcnow() if body.assigned_to else None
    job.created_by = current_user.id
    db.add(job)
    await db.flush()

    await AuditService(db).record(job, current_user, "created")
    await db.commit()

    logger.info(f"Job order {job.job_number} created by {current_user.id}")
    return {
        "success": True,
        "message": "Job order created successfully",
        "data": row_to_dict(job),
    }


@router.patch("/{job_id}")
async def update_job_order(
    job_id: str,
    body: JobOrderUpdate,
    db: DbSession,
    current_user=Depends(_admin_only("Only administrators can update job orders")),
):
    """Apply the supplied fields and record one ``updated`` history entry."""
    updates = body.model_dump(exclude_unset=True)
    if "status" in updates and updates["status"] not in VALID_STATUSES:
        raise BadRequestError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
    cleared = [name for name, value in updates.items() if value is None and _required_column(name)]
    if cleared:
        raise BadRequestError(
            f"Cannot clear required fields: {', '.join(cleared)}",
            code=ErrorCode.MISSING_FIELD,
        )

    job = await JobStatusService(db).get_job(job_id, lock=True)
    if job is None:
        raise NotFoundError("Job order")

    before = row_to_dict(job)
    for field, value in updates.items():
        setattr(job, field, value)
    if updates.get("assigned_to") and updates["assigned_to"] != before["assigned_to"]:
        job.assigned_at = utcnow()
    job.updated_at = utcnow()
    await db.flush()

    after = row_to_dict(job)
    changes = compute_changes(before, after, TRACKED_FIELDS)
    if changes:
        await AuditService(db).record(job, current_user, "updated", changes=changes, snapshot=after)
    await db.commit()

    logger.info(f"Job order {job.job_number} updated by {current_user.id}: {sorted(changes)}")
    return {
        "success": True,
        "message": "Job order updated successfully",
        "data": after,
    }


@router.delete("/{job_id}")
async def delete_job_order(
    job_id: str,
    db: DbSession,
    current_user=Depends(_admin_only("Only administrators can delete job orders")),
):
    """Delete a job order after writing a ``deleted`` history entry."""
    job = await JobStatusService(db).get_job(job_id, lock=True)
    if job is None:
        raise NotFoundError("Job order")

    snapshot = row_to_dict(job)
    await AuditService(db).record(
        job,
        current_user,
        "deleted",
        changes={"deleted": {"old": snapshot, "new": None}},
        snapshot=snapshot,
    )
    job_number = job.job_number
    await db.delete(job)
    await db.commit()

    logger.info(f"Job order {job_number} deleted by {current_user.id}")
    return {"success": True, "message": "Job order deleted successfully"}
