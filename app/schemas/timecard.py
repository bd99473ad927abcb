"""Time clock schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ClockRequest(BaseModel):
    """Device position at clock-in or clock-out."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None


class TimecardApproveRequest(BaseModel):
    notes: Optional[str] = None


class TimecardUpdateRequest(BaseModel):
    """Admin correction of a timecard; omitted fields keep their stored value."""

    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    notes: Optional[str] = None
