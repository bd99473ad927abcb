"""
Role-Based Access Control (RBAC) Module

Two roles exist: operators work the jobs assigned to them, admins manage
everything. Job-scoped checks (``can_access_job``) let an operator through
only for jobs where ``assigned_to`` is their profile id.
"""

from enum import Enum
from typing import Set
import logging

from app.api.deps import CurrentUser
from app.exceptions import ForbiddenError
from app.models.profile import Profile

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Profile roles."""
    OPERATOR = "operator"
    ADMIN = "admin"


class Permission(str, Enum):
    """Fine-grained permissions."""
    WORK_ASSIGNED_JOBS = "work_assigned_jobs"
    VIEW_ALL_JOBS = "view_all_jobs"
    MANAGE_JOB_ORDERS = "manage_job_orders"
    APPROVE_TIMECARDS = "approve_timecards"
    MANAGE_EQUIPMENT = "manage_equipment"
    MANAGE_INVENTORY = "manage_inventory"
    REVIEW_ACCESS_REQUESTS = "review_access_requests"


ROLE_PERMISSIONS: dict[Role, Set[Permission]] = {
    Role.OPERATOR: {
        Permission.WORK_ASSIGNED_JOBS,
    },
    Role.ADMIN: set(Permission),
}


def get_user_role(user: Profile) -> Role:
    """Role from the profile row; anything unrecognised is an operator."""
    try:
        return Role(user.role)
    except ValueError:
        return Role.OPERATOR


def is_admin(user: Profile) -> bool:
    return get_user_role(user) == Role.ADMIN


def get_user_permissions(user: Profile) -> Set[Permission]:
    return ROLE_PERMISSIONS.get(get_user_role(user), set())


def has_permission(user: Profile, permission: Permission) -> bool:
    return permission in get_user_permissions(user)


def ensure_admin(user: Profile, detail: str = "Admin access required") -> None:
    """Raise 403 unless the profile is an admin."""
    if not is_admin(user):
        logger.warning(
            f"Admin access denied for user {user.id}",
            extra={"user_id": user.id, "role": user.role}
        )
        raise ForbiddenError(detail)


def require_admin(current_user: CurrentUser) -> Profile:
    """
    Dependency for admin-only endpoints.

    Usage:
        @router.post("/admin/thing")
        async def admin_thing(admin: Annotated[Profile, Depends(require_admin)]):
            ...
    """
    ensure_admin(current_user)
    return current_user


def require_permission(permission: Permission):
    """Dependency factory for requiring a specific permission."""

    def checker(current_user: CurrentUser) -> Profile:
        if not has_permission(current_user, permission):
            logger.warning(
                f"Permission denied: user {current_user.id} lacks {permission.value}",
                extra={"user_id": current_user.id, "permission": permission.value}
            )
            raise ForbiddenError(f"Permission denied: requires {permission.value}")
        return current_user

    return checker


def can_access_job(user: Profile, job) -> bool:
    """Admins reach every job, operators only their assigned ones."""
    return is_admin(user) or (job.assigned_to is not None and job.assigned_to == user.id)


def ensure_job_access(user: Profile, job, detail: str = "You can only update jobs assigned to you") -> None:
    if not can_access_job(user, job):
        logger.warning(
            f"Job access denied for user {user.id} on job {job.id}",
            extra={"user_id": user.id, "job_order_id": job.id}
        )
        raise ForbiddenError(detail)
