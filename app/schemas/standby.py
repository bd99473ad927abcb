"""Standby log schemas."""

from datetime import datetime
from typing import Optional

from app.schemas.types import CamelModel, OptionalStr


class StandbyStartRequest(CamelModel):
    job_id: OptionalStr = None
    reason: OptionalStr = None
    started_at: Optional[datetime] = None


class StandbyEndRequest(CamelModel):
    standby_log_id: OptionalStr = None
    ended_at: Optional[datetime] = None
