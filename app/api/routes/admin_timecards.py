"""Admin Timecards API - review and approve operator hours."""
from collections import defaultdict
from datetime import date
from typing import Annotated, Optional
import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession
from app.exceptions import ServiceUnavailableError
from app.models.profile import Profile
from app.schemas.timecard import TimecardApproveRequest, TimecardUpdateRequest
from app.security.rbac import Permission, require_permission
from app.services.timecards import TIMECARDS_UNAVAILABLE, TimecardService, timecard_to_response

logger = logging.getLogger(__name__)
router = APIRouter()

Approver = Annotated[Profile, Depends(require_permission(Permission.APPROVE_TIMECARDS))]


@router.get("")
async def list_timecards(
    db: DbSession,
    admin: Approver,
    user_id: Optional[str] = Query(None, alias="userId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    pending: bool = False,
):
    """All timecards with overall and per-user totals."""
    service = TimecardService(db)
    if not await service.available():
        raise ServiceUnavailableError(TIMECARDS_UNAVAILABLE)

    cards = await service.list_all(user_id, start_date, end_date, approved=False if pending else None)

    per_user = defaultdict(lambda: {"totalHours": 0.0, "entries": 0})
    for card in cards:
        entry = per_user[card.user_id]
        entry["totalHours"] = round(entry["totalHours"] + (card.total_hours or 0), 2)
        entry["entries"] += 1

    return {
        "success": True,
        "data": {
            "timecards": [timecard_to_response(c) for c in cards],
            "summary": {
                "totalEntries": len(cards),
                "totalHours": round(sum(c.total_hours or 0 for c in cards), 2),
                "pendingApproval": sum(1 for c in cards if not c.is_approved),
                "activeEntries": sum(1 for c in cards if c.clock_out_time is None),
            },
            "userSummary": [{"userId": uid, **totals} for uid, totals in per_user.items()],
        },
    }


@router.post("/{timecard_id}/approve")
async def approve_timecard(
    timecard_id: str,
    db: DbSession,
    admin: Approver,
    body: Optional[TimecardApproveRequest] = None,
):
    service = TimecardService(db)
    if not await service.available():
        raise ServiceUnavailableError(TIMECARDS_UNAVAILABLE)

    card = await service.approve(timecard_id, admin, body.notes if body else None)
    logger.info(f"Timecard {timecard_id} approved by {admin.id}")
    return {
        "success": True,
        "message": "Timecard approved successfully",
        "data": timecard_to_response(card),
    }


@router.put("/{timecard_id}/update")
async def update_timecard(
    timecard_id: str,
    body: TimecardUpdateRequest,
    db: DbSession,
    admin: Approver,
):
    """Correct a missed or wrong punch. Total hours follow the new times."""
    service = TimecardService(db)
    if not await service.available():
        raise ServiceUnavailableError(TIMECARDS_UNAVAILABLE)

    card = await service.update(
        timecard_id,
        admin,
        clock_in_time=body.clock_in_time,
        clock_out_time=body.clock_out_time,
        notes=body.notes,
    )
    return {
        "success": True,
        "message": "Timecard updated successfully",
        "data": timecard_to_response(card),
    }
