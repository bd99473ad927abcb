"""
Access Request Review

Applicants submit a request with a bcrypt-hashed password. An admin approval
turns the request into a profile carrying that hash; the request row is
locked while it is reviewed so two approvals cannot both create a user.
"""

from datetime import date
from typing import Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import BadRequestError, ConflictError, ErrorCode, NotFoundError
from app.models.access_request import AccessRequest
from app.models.profile import Profile
from app.security.rbac import Role
from app.utils.serialization import json_safe, utcnow

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = (Role.ADMIN.value, Role.OPERATOR.value)


def access_request_to_response(req: AccessRequest) -> dict:
    """Never includes the password hash."""
    return {
        "id": req.id,
        "fullName": req.full_name,
        "email": req.email,
        "dateOfBirth": json_safe(req.date_of_birth),
        "position": req.position,
        "status": req.status,
        "assignedRole": req.assigned_role,
        "reviewedBy": req.reviewed_by,
        "reviewedAt": json_safe(req.reviewed_at),
        "denialReason": req.denial_reason,
        "createdAt": json_safe(req.created_at),
    }


class AccessRequestService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def ensure_email_free(self, email: str) -> None:
        """409 when the email is pending, approved or already has a profile."""
        result = await self.db.execute(
            select(AccessRequest.status).where(
                AccessRequest.email == email,
                AccessRequest.status.in_(("pending", "approved")),
            )
        )
        statuses = set(result.scalars().all())
        if "pending" in statuses:
            raise ConflictError(
                "An access request with this email is already pending review",
                code=ErrorCode.ALREADY_EXISTS,
            )
        if "approved" in statuses:
            raise ConflictError(
                "This email has already been approved. Please try logging in.",
                code=ErrorCode.ALREADY_EXISTS,
            )

        existing = await self.db.scalar(
            select(Profile.id).where(func.lower(Profile.email) == email)
        )
        if existing is not None:
            raise ConflictError(
                "An account with this email already exists. Please try logging in.",
                code=ErrorCode.ALREADY_EXISTS,
            )

    async def submit(
        self,
        full_name: str,
        email: str,
        password_hash: str,
        date_of_birth: date,
        position: Optional[str] = None,
    ) -> AccessRequest:
        email = email.lower()
        await self.ensure_email_free(email)
        req = AccessRequest(
            full_name=full_name,
            email=email,
            password_hash=password_hash,
            date_of_birth=date_of_birth,
            position=position or "Not specified",
            status="pending",
        )
        self.db.add(req)
        await self.db.commit()
        logger.info(f"Access request {req.id} submitted")
        return req

    async def list_requests(self, status: Optional[str] = None) -> list[AccessRequest]:
        query = select(AccessRequest)
        if status:
            query = query.where(AccessRequest.status == status)
        result = await self.db.execute(query.order_by(AccessRequest.created_at.desc()))
        return list(result.scalars().all())

    async def _get_pending(self, request_id: str) -> AccessRequest:
        result = await self.db.execute(
            select(AccessRequest).where(AccessRequest.id == request_id).with_for_update()
        )
        req = result.scalar_one_or_none()
        if req is None:
            raise NotFoundError("Access request", request_id)
        if req.status != "pending":
            raise BadRequestError(
                f"This request has already been {req.status}",
                code=ErrorCode.OPERATION_NOT_ALLOWED,
            )
        return req

    async def approve(self, request_id: str, role: Optional[str], reviewer: Profile) -> Profile:
        if role not in ASSIGNABLE_ROLES:
            raise BadRequestError('Invalid role. Must be "admin" or "operator"')

        req = await self._get_pending(request_id)

        existing = await self.db.scalar(select(Profile.id).where(Profile.email == req.email))
        if existing is not None:
            raise ConflictError(
                "An account with this email already exists",
                code=ErrorCode.ALREADY_EXISTS,
            )

        profile = Profile(
            email=req.email,
            full_name=req.full_name,
            role=role,
            hashed_password=req.password_hash,
            position=req.position,
            date_of_birth=req.date_of_birth,
            active=True,
        )
        self.db.add(profile)

        req.status = "approved"
        req.assigned_role = role
        req.reviewed_by = reviewer.id
        req.reviewed_at = utcnow()
        await self.db.commit()

        logger.info(f"Access request {request_id} approved as {role} by {reviewer.id}")
        return profile

    async def deny(self, request_id: str, reviewer: Profile, reason: Optional[str] = None) -> AccessRequest:
        req = await self._get_pending(request_id)
        req.status = "denied"
        req.denial_reason = reason
        req.reviewed_by = reviewer.id
        req.reviewed_at = utcnow()
        await self.db.commit()

        logger.info(f"Access request {request_id} denied by {reviewer.id}")
        return req
