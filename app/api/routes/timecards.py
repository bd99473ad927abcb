"""Time Clock API - geofenced clock-in/out and the caller's timecards."""
from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Query

from app.api.deps import DbSession, CurrentUser
from app.exceptions import BadRequestError, ErrorCode
from app.schemas.timecard import ClockRequest
from app.services.timecards import (
    TimecardService,
    hours_between,
    summarize,
    timecard_to_response,
)
from app.utils.serialization import json_safe, utcnow

logger = logging.getLogger(__name__)
router = APIRouter()


def _require_coordinates(body: ClockRequest) -> None:
    if body.latitude is None or body.longitude is None:
        raise BadRequestError(
            "Location is required. Please enable location services.",
            code=ErrorCode.MISSING_FIELD,
        )


@router.post("/clock-in", status_code=201)
async def clock_in(
    body: ClockRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Open a timecard; the caller must be at the shop."""
    _require_coordinates(body)
    card, check = await TimecardService(db).clock_in(
        current_user, body.latitude, body.longitude, body.accuracy
    )
    return {
        "success": True,
        "message": "Clocked in successfully",
        "data": {
            **timecard_to_response(card),
            "distanceFromShop": round(check.distance),
            "distanceFormatted": check.distance_formatted,
        },
    }


@router.post("/clock-out")
async def clock_out(
    body: ClockRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """Close the caller's open timecard; the caller must be at the shop."""
    _require_coordinates(body)
    card, check = await TimecardService(db).clock_out(
        current_user, body.latitude, body.longitude, body.accuracy
    )
    return {
        "success": True,
        "message": f"Clocked out successfully. Total hours: {card.total_hours}",
        "data": {
            **timecard_to_response(card),
            "distanceFromShop": round(check.distance),
            "distanceFormatted": check.distance_formatted,
        },
    }


@router.get("/current")
async def current_timecard(
    db: DbSession,
    current_user: CurrentUser,
):
    service = TimecardService(db)
    if not await service.available():
        return {"success": True, "isClockedIn": False, "data": None}

    card = await service.open_timecard(current_user.id)
    if card is None:
        return {"success": True, "isClockedIn": False, "data": None}

    return {
        "success": True,
        "isClockedIn": True,
        "data": {
            "id": card.id,
            "clockInTime": json_safe(card.clock_in_time),
            "clockInLocation": timecard_to_response(card)["clockInLocation"],
            "currentHours": hours_between(card.clock_in_time, utcnow()),
            "date": json_safe(card.date),
        },
    }


@router.get("/history")
async def timecard_history(
    db: DbSession,
    current_user: CurrentUser,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    limit: int = Query(50, ge=1, le=500),
):
    """The caller's timecards, newest first, with totals."""
    service = TimecardService(db)
    cards = await service.history(current_user.id, start_date, end_date, limit) if await service.available() else []
    return {
        "success": True,
        "data": {
            "timecards": [timecard_to_response(c) for c in cards],
            "summary": summarize(cards),
        },
    }
