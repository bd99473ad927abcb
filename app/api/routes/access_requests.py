"""
Access Requests API

Submission is public; review endpoints require an admin.
"""
from typing import Annotated, Optional
import logging

from fastapi import APIRouter, Depends

from app.api.deps import DbSession, get_password_hash
from app.config import settings
from app.exceptions import BadRequestError, ErrorCode
from app.models.profile import Profile
from app.schemas.access_request import (
    AccessRequestApprove,
    AccessRequestCreate,
    AccessRequestDeny,
)
from app.security.password_policy import is_valid_email, validate_password
from app.security.rbac import Permission, require_permission
from app.services.access_requests import AccessRequestService, access_request_to_response
from app.services.eligibility import is_of_age

logger = logging.getLogger(__name__)
router = APIRouter()

Reviewer = Annotated[Profile, Depends(require_permission(Permission.REVIEW_ACCESS_REQUESTS))]


@router.post("", status_code=201)
async def submit_access_request(
    body: AccessRequestCreate,
    db: DbSession,
):
    """Public: apply for an account."""
    if not (body.full_name and body.email and body.password and body.date_of_birth):
        raise BadRequestError("Missing required fields", code=ErrorCode.MISSING_FIELD)
    if not is_valid_email(body.email):
        raise BadRequestError("Invalid email format", code=ErrorCode.INVALID_FORMAT)

    problems = validate_password(body.password)
    if problems:
        raise BadRequestError(problems[0], code=ErrorCode.CONSTRAINT_VIOLATION)

    if not is_of_age(body.date_of_birth):
        raise BadRequestError(
            f"You must be at least {settings.MINIMUM_APPLICANT_AGE} years old",
            code=ErrorCode.BUSINESS_RULE_VIOLATION,
        )

    req = await AccessRequestService(db).submit(
        full_name=body.full_name,
        email=body.email,
        password_hash=get_password_hash(body.password),
        date_of_birth=body.date_of_birth,
        position=body.position,
    )
    return {
        "success": True,
        "message": "Access request submitted successfully",
        "data": {"id": req.id, "email": req.email, "status": req.status},
    }


@router.get("")
async def list_access_requests(
    db: DbSession,
    admin: Reviewer,
    status: Optional[str] = None,
):
    requests = await AccessRequestService(db).list_requests(status)
    return {"success": True, "data": [access_request_to_response(r) for r in requests]}


@router.post("/{request_id}/approve")
async def approve_access_request(
    request_id: str,
    body: AccessRequestApprove,
    db: DbSession,
    admin: Reviewer,
):
    """Create the applicant's profile with the requested role."""
    profile = await AccessRequestService(db).approve(request_id, body.role, admin)
    return {
        "success": True,
        "message": f"Access approved! User {profile.full_name} has been created as {profile.role}.",
        "data": {"userId": profile.id, "email": profile.email, "role": profile.role},
    }


@router.post("/{request_id}/deny")
async def deny_access_request(
    request_id: str,
    db: DbSession,
    admin: Reviewer,
    body: Optional[AccessRequestDeny] = None,
):
    req = await AccessRequestService(db).deny(request_id, admin, body.reason if body else None)
    return {
        "success": True,
        "message": "Access request denied",
        "data": access_request_to_response(req),
    }
