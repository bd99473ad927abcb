"""Access request schemas."""

from datetime import date
from typing import Optional

from app.schemas.types import CamelModel, OptionalStr


class AccessRequestCreate(CamelModel):
    """Public application form. Presence is checked by the route (400)."""

    full_name: OptionalStr = None
    email: OptionalStr = None
    password: OptionalStr = None
    date_of_birth: Optional[date] = None
    position: OptionalStr = None


class AccessRequestApprove(CamelModel):
    role: OptionalStr = None


class AccessRequestDeny(CamelModel):
    reason: OptionalStr = None
