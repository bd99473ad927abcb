"""Job Orders API - operator-facing job reads, status updates and logs."""
from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Query
from sqlalchemy import select

from app.api.deps import DbSession, CurrentUser
from app.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.models.job_order import JobOrder
from app.schemas.job_order import (
    DailyLogRequest,
    HistoryNoteRequest,
    JobSubmission,
    StatusUpdateRequest,
)
from app.security.rbac import can_access_job, ensure_job_access, is_admin
from app.services.audit import AuditService, history_entry_to_response
from app.services.daily_log import DailyLogService
from app.services.job_status import InvalidStatusError, JobStatusService, validate_status
from app.utils.serialization import row_to_dict

logger = logging.getLogger(__name__)
router = APIRouter()


def job_order_to_response(job: JobOrder) -> dict:
    """Convert JobOrder model to response dict."""
    return row_to_dict(job)


async def _get_job_or_404(db, job_id: str, lock: bool = False) -> JobOrder:
    job = await JobStatusService(db).get_job(job_id, lock=lock)
    if job is None:
        raise NotFoundError("Job order")
    return job


@router.get("")
async def list_job_orders(
    db: DbSession,
    current_user: CurrentUser,
    id: Optional[str] = None,
    status: Optional[str] = None,
    include_completed: bool = Query(False, alias="includeCompleted"),
    scheduled_date: Optional[date] = None,
):
    """List jobs: admins see all, operators only their assigned jobs."""
    if id:
        job = await _get_job_or_404(db, id)
        if not can_access_job(current_user, job):
            raise ForbiddenError("Unauthorized to view this job")
        return {"success": True, "data": [job_order_to_response(job)]}

    query = select(JobOrder)
    if not is_admin(current_user):
        query = query.where(JobOrder.assigned_to == current_user.id)
    if scheduled_date:
        query = query.where(JobOrder.scheduled_date == scheduled_date)
    if status:
        query = query.where(JobOrder.status == status)
    if not include_completed:
        query = query.where(JobOrder.status != "completed")

    result = await db.execute(query.order_by(JobOrder.scheduled_date.asc(), JobOrder.created_at.asc()))
    jobs = result.scalars().all()
    return {"success": True, "data": [job_order_to_response(j) for j in jobs]}


@router.post("/{job_id}/status")
@router.put("/{job_id}/status")
async def update_job_status(
    job_id: str,
    body: StatusUpdateRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Move a job to a new status, stamping its progress timestamps once."""
    try:
        new_status = validate_status(body.status)
    except InvalidStatusError as e:
        raise BadRequestError(str(e))

    job = await _get_job_or_404(db, job_id, lock=True)
    ensure_job_access(current_user, job)

    job = await JobStatusService(db).update_status(
        job,
        current_user,
        new_status,
        latitude=body.latitude,
        longitude=body.longitude,
        departure_time=body.departure_time,
        extras=body.extra_fields(),
    )
    return {
        "success": True,
        "message": f"Job status updated to: {new_status}",
        "data": job_order_to_response(job),
    }


@router.post("/{job_id}/submit")
@router.put("/{job_id}/submit")
async def submit_job_completion(
    job_id: str,
    body: JobSubmission,
    db: DbSession,
    current_user: CurrentUser,
):
    """Operator completion submission for a job assigned to them."""
    job = await _get_job_or_404(db, job_id, lock=True)
    if job.assigned_to != current_user.id:
        raise ForbiddenError("You can only submit data for jobs assigned to you")

    submission = body.model_dump(exclude_unset=True, exclude={"latitude", "longitude", "accuracy"})
    job = await JobStatusService(db).submit_completion(
        job,
        current_user,
        submission,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    return {
        "success": True,
        "message": "Job completion data submitted successfully",
        "data": job_order_to_response(job),
    }


@router.get("/{job_id}/history")
async def get_job_history(
    job_id: str,
    db: DbSession,
    current_user: CurrentUser,
):
    """Audit history, newest first. Admins also see history of deleted jobs."""
    if not is_admin(current_user):
        job = await JobStatusService(db).get_job(job_id)
        if job is None or not can_access_job(current_user, job):
            raise ForbiddenError("You do not have access to view this job history")

    entries = await AuditService(db).list_for_job(job_id)
    history = [history_entry_to_response(e) for e in entries]
    return {
        "success": True,
        "jobOrderId": job_id,
        "historyCount": len(history),
        "history": history,
    }


@router.post("/{job_id}/history", status_code=201)
async def add_job_history_note(
    job_id: str,
    body: HistoryNoteRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Append a free-form note to the job's history."""
    if not body.notes and not body.changes:
        raise BadRequestError("notes or changes is required")

    job = await _get_job_or_404(db, job_id)
    ensure_job_access(current_user, job, "You do not have access to this job")

    entry = await AuditService(db).record(job, current_user, "note", changes=body.changes, notes=body.notes)
    await db.commit()
    return {
        "success": True,
        "data": history_entry_to_response(entry) if entry is not None else None,
    }


@router.get("/{job_id}/daily-log")
async def list_daily_logs(
    job_id: str,
    db: DbSession,
    current_user: CurrentUser,
):
    job = await _get_job_or_404(db, job_id)
    ensure_job_access(current_user, job, "You do not have access to this job")
    logs = await DailyLogService(db).list_for_job(job_id)
    return {"success": True, "logs": [row_to_dict(log) for log in logs]}


@router.post("/{job_id}/daily-log")
async def submit_daily_log(
    job_id: str,
    body: DailyLogRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Close out a working day; optionally roll the job over to tomorrow."""
    job = await _get_job_or_404(db, job_id, lock=True)
    if job.assigned_to != current_user.id:
        raise ForbiddenError("You are not assigned to this job")

    log = await DailyLogService(db).submit(
        job,
        current_user,
        work_performed=body.work_performed,
        notes=body.notes,
        signer_name=body.signer_name,
        signature_data=body.signature_data,
        continue_next_day=body.continue_next_day,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    message = (
        "Daily log saved. Job will continue tomorrow."
        if body.continue_next_day
        else "Daily log saved. Ready for final completion."
    )
    return {
        "success": True,
        "message": message,
        "dailyLog": row_to_dict(log) if log is not None else None,
        "continueNextDay": body.continue_next_day,
    }
