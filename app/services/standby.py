"""Standby billing policy.

Standby is billed per hour at the configured rate with a minimum charge,
rounded to cents. The policy version is stored on each closed log.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.config import settings
from app.utils.serialization import as_utc


@dataclass(frozen=True)
class StandbyCharge:
    duration_hours: float
    billable_hours: float
    hourly_rate: float
    amount: float
    policy_version: str


def duration_hours(started_at: datetime, ended_at: datetime) -> float:
    seconds = (as_utc(ended_at) - as_utc(started_at)).total_seconds()
    return round(max(seconds, 0) / 3600, 2)


def calculate_charge(
    started_at: datetime,
    ended_at: datetime,
    hourly_rate: Optional[float] = None,
    minimum_hours: Optional[float] = None,
) -> StandbyCharge:
    rate = settings.STANDBY_HOURLY_RATE if hourly_rate is None else hourly_rate
    minimum = settings.STANDBY_MINIMUM_HOURS if minimum_hours is None else minimum_hours
    hours = duration_hours(started_at, ended_at)
    billable = max(hours, minimum)
    return StandbyCharge(
        duration_hours=hours,
        billable_hours=billable,
        hourly_rate=rate,
        amount=round(billable * rate, 2),
        policy_version=settings.STANDBY_POLICY_VERSION,
    )
