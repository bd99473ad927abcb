# Security module
from app.security.password_policy import is_valid_email, validate_password
from app.security.rbac import (
    Role,
    Permission,
    require_admin,
    require_permission,
    ensure_admin,
    ensure_job_access,
    can_access_job,
)

__all__ = [
    "is_valid_email",
    "validate_password",
    "Role",
    "Permission",
    "require_admin",
    "require_permission",
    "ensure_admin",
    "ensure_job_access",
    "can_access_job",
]
