"""
Time Clock Service

Clock-in and clock-out both require the caller to stand inside the shop
geofence. A user has at most one open timecard, enforced by a partial
unique index as well as the pre-check here.
"""

from datetime import date, datetime
from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schema import schema_registry, OptionalTable
from app.exceptions import (
    BadRequestError,
    ErrorCode,
    ForbiddenError,
    NotFoundError,
    ServiceUnavailableError,
)
from app.models.profile import Profile
from app.models.timecard import Timecard
from app.services.geofence import GeofenceCheck, check_shop_geofence
from app.utils.serialization import as_utc, json_safe, utcnow

logger = logging.getLogger(__name__)

TIMECARDS_UNAVAILABLE = "Timecard system is not available yet. Please contact your administrator."


def hours_between(start: datetime, end: datetime) -> float:
    return round((as_utc(end) - as_utc(start)).total_seconds() / 3600, 2)


def _location(latitude, longitude, accuracy) -> dict:
    return {"latitude": latitude, "longitude": longitude, "accuracy": accuracy}


def timecard_to_response(card: Timecard) -> dict:
    return {
        "id": card.id,
        "userId": card.user_id,
        "date": json_safe(card.date),
        "clockInTime": json_safe(card.clock_in_time),
        "clockOutTime": json_safe(card.clock_out_time),
        "clockInLocation": _location(card.clock_in_latitude, card.clock_in_longitude, card.clock_in_accuracy),
        "clockOutLocation": _location(card.clock_out_latitude, card.clock_out_longitude, card.clock_out_accuracy),
        "totalHours": card.total_hours,
        "isApproved": card.is_approved,
        "approvedBy": card.approved_by,
        "approvedAt": json_safe(card.approved_at),
        "notes": card.notes,
    }


def _outside_geofence(check: GeofenceCheck, action: str) -> ForbiddenError:
    return ForbiddenError(
        f"You must be at {check.location_name} to {action}.",
        code=ErrorCode.OUTSIDE_GEOFENCE,
        extra={
            "details": (
                f"You are {check.distance_formatted} away. "
                f"Maximum allowed distance is {check.allowed_radius:g}m."
            ),
            "distance": check.distance,
            "allowedRadius": check.allowed_radius,
        },
    )


class TimecardService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def available(self) -> bool:
        return await schema_registry.has_table(self.db, OptionalTable.TIMECARDS)

    async def open_timecard(self, user_id: str) -> Optional[Timecard]:
        result = await self.db.execute(
            select(Timecard)
            .where(Timecard.user_id == user_id, Timecard.clock_out_time.is_(None))
            .order_by(Timecard.clock_in_time.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def clock_in(
        self,
        user: Profile,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
    ) -> tuple[Timecard, GeofenceCheck]:
        check = check_shop_geofence(latitude, longitude)
        if not check.within_range:
            raise _outside_geofence(check, "clock in")

        if not await self.available():
            raise ServiceUnavailableError(TIMECARDS_UNAVAILABLE)

        active = await self.open_timecard(user.id)
        if active is not None:
            raise BadRequestError(
                "You are already clocked in",
                code=ErrorCode.CONFLICT,
                extra={
                    "details": "Please clock out first.",
                    "activeTimecard": {"id": active.id, "clockInTime": json_safe(active.clock_in_time)},
                },
            )

        now = utcnow()
        card = Timecard(
            user_id=user.id,
            date=now.date(),
            clock_in_time=now,
            clock_in_latitude=latitude,
            clock_in_longitude=longitude,
            clock_in_accuracy=accuracy,
            is_approved=False,
        )
        user_id = user.id
        self.db.add(card)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(f"Concurrent clock-in rejected for user {user_id}")
            raise BadRequestError("You are already clocked in", code=ErrorCode.CONFLICT)

        logger.info(f"User {user.id} clocked in ({check.distance_formatted} from shop)")
        return card, check

    async def clock_out(
        self,
        user: Profile,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
    ) -> tuple[Timecard, GeofenceCheck]:
        check = check_shop_geofence(latitude, longitude)
        if not check.within_range:
            raise _outside_geofence(check, "clock out")

        if not await self.available():
            raise ServiceUnavailableError(TIMECARDS_UNAVAILABLE)

        card = await self.open_timecard(user.id)
        if card is None:
            raise BadRequestError(
                "No active clock-in found",
                extra={"details": "You must clock in before you can clock out."},
            )

        now = utcnow()
        card.clock_out_time = now
        card.clock_out_latitude = latitude
        card.clock_out_longitude = longitude
        card.clock_out_accuracy = accuracy
        card.total_hours = hours_between(card.clock_in_time, now)
        await self.db.commit()

        logger.info(f"User {user.id} clocked out after {card.total_hours}h")
        return card, check

    async def history(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 50,
    ) -> list[Timecard]:
        query = select(Timecard).where(Timecard.user_id == user_id)
        if start_date:
            query = query.where(Timecard.date >= start_date)
        if end_date:
            query = query.where(Timecard.date <= end_date)
        result = await self.db.execute(query.order_by(Timecard.clock_in_time.desc()).limit(limit))
        return list(result.scalars().all())

    async def list_all(
        self,
        user_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        approved: Optional[bool] = None,
    ) -> list[Timecard]:
        query = select(Timecard)
        if user_id:
            query = query.where(Timecard.user_id == user_id)
        if start_date:
            query = query.where(Timecard.date >= start_date)
        if end_date:
            query = query.where(Timecard.date <= end_date)
        if approved is not None:
            query = query.where(Timecard.is_approved == approved)
        result = await self.db.execute(query.order_by(Timecard.clock_in_time.desc()))
        return list(result.scalars().all())

    async def approve(self, timecard_id: str, admin: Profile, notes: Optional[str] = None) -> Timecard:
        result = await self.db.execute(
            select(Timecard).where(Timecard.id == timecard_id).with_for_update()
        )
        card = result.scalar_one_or_none()
        if card is None:
            raise NotFoundError("Timecard", timecard_id)
        if card.is_approved:
            raise BadRequestError("Timecard is already approved")

        card.is_approved = True
        card.approved_by = admin.id
        card.approved_at = utcnow()
        if notes:
            card.notes = notes
        await self.db.commit()
        return card

    async def update(
        self,
        timecard_id: str,
        admin: Profile,
        clock_in_time: Optional[datetime] = None,
        clock_out_time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Timecard:
        """Correct clock times or notes and recompute total hours."""
        result = await self.db.execute(
            select(Timecard).where(Timecard.id == timecard_id).with_for_update()
        )
        card = result.scalar_one_or_none()
        if card is None:
            raise NotFoundError("Timecard", timecard_id)

        start = clock_in_time or card.clock_in_time
        end = clock_out_time or card.clock_out_time
        if end is not None and as_utc(end) < as_utc(start):
            raise BadRequestError("Clock-out time cannot be before clock-in time", code=ErrorCode.INVALID_FORMAT)

        if clock_in_time is not None:
            card.clock_in_time = clock_in_time
            card.date = as_utc(clock_in_time).date()
        if clock_out_time is not None:
            card.clock_out_time = clock_out_time
        if notes is not None:
            card.notes = notes
        if end is not None:
            card.total_hours = hours_between(start, end)
        card.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Timecard {timecard_id} corrected by {admin.id}: {card.total_hours}h")
        return card


def summarize(cards: list[Timecard]) -> dict:
    completed = [c for c in cards if c.clock_out_time is not None]
    active = next((c for c in cards if c.clock_out_time is None), None)
    return {
        "totalEntries": len(cards),
        "completedEntries": len(completed),
        "activeEntry": timecard_to_response(active) if active else None,
        "totalHours": round(sum(c.total_hours or 0 for c in completed), 2),
    }
