"""Workflow API - per-operator checklist progress on a job."""
from typing import Annotated, Optional
import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession, CurrentUser
from app.config import settings
from app.exceptions import BadRequestError, ConflictError, ErrorCode, NotFoundError
from app.models.profile import Profile
from app.schemas.workflow import WorkflowUpdateRequest
from app.security.rbac import require_admin
from app.services.job_status import JobStatusService
from app.services.workflow import (
    UnknownStepError,
    WorkflowOrderError,
    WorkflowService,
    parse_step,
    to_response,
)

logger = logging.getLogger(__name__)
router = APIRouter()
admin_router = APIRouter()


def _parse(name: Optional[str]):
    if not name:
        return None
    try:
        return parse_step(name)
    except UnknownStepError as e:
        raise BadRequestError(str(e))


@router.get("")
async def get_workflow(
    db: DbSession,
    current_user: CurrentUser,
    job_id: Optional[str] = Query(None, alias="jobId"),
):
    """The caller's workflow for a job, created on first read."""
    if not job_id:
        raise BadRequestError("Job ID is required", code=ErrorCode.MISSING_FIELD)

    record = await WorkflowService(db).get_or_create(job_id, current_user.id)
    return {"success": True, "data": to_response(record) if record is not None else None}


@router.post("")
async def update_workflow(
    body: WorkflowUpdateRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Complete a step and/or move the current step pointer."""
    if not body.job_id:
        raise BadRequestError("Job ID is required", code=ErrorCode.MISSING_FIELD)

    completed = _parse(body.completed_step)
    current = _parse(body.current_step)

    try:
        record = await WorkflowService(db).record_progress(
            body.job_id,
            current_user.id,
            completed,
            current,
            enforce_order=settings.WORKFLOW_ENFORCE_ORDER,
        )
    except WorkflowOrderError as e:
        raise ConflictError(
            str(e),
            code=ErrorCode.WORKFLOW_ORDER_VIOLATION,
            extra={"step": e.step.value, "requires": e.required},
        )

    if record is None:
        return {"success": True, "data": None}
    logger.info(
        f"Workflow for job {body.job_id} by {current_user.id}: "
        f"completed={body.completed_step} current={record.current_step}"
    )
    return {"success": True, "data": to_response(record)}


@admin_router.get("")
async def get_job_workflows(
    db: DbSession,
    admin: Annotated[Profile, Depends(require_admin)],
    job_id: Optional[str] = Query(None, alias="jobId"),
):
    """Every operator's workflow row for one job."""
    if not job_id:
        raise BadRequestError("Job ID is required", code=ErrorCode.MISSING_FIELD)
    if await JobStatusService(db).get_job(job_id) is None:
        raise NotFoundError("Job order")

    records = await WorkflowService(db).list_for_job(job_id)
    return {
        "success": True,
        "data": [to_response(r) for r in records] if records is not None else None,
    }
