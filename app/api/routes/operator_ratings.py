"""Operator Ratings API - customer ratings folded into running averages."""
import logging

from fastapi import APIRouter

from app.api.deps import DbSession, CurrentUser
from app.exceptions import BadRequestError, ErrorCode, NotFoundError
from app.schemas.rating import OperatorRatingRequest
from app.services.ratings import RATING_CATEGORIES, RatingService, is_valid_rating

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/update")
async def update_operator_ratings(
    body: OperatorRatingRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    if not body.operator_id:
        raise BadRequestError("Operator ID is required", code=ErrorCode.MISSING_FIELD)

    ratings = body.ratings()
    if any(value is not None and not is_valid_rating(value) for value in ratings.values()):
        raise BadRequestError("Ratings must be between 1 and 10", code=ErrorCode.CONSTRAINT_VIOLATION)

    profile = await RatingService(db).apply(body.operator_id, ratings)
    if profile is None:
        raise NotFoundError("Operator")

    updates = {"total_ratings_received": profile.total_ratings_received}
    for category, (avg_column, count_column) in RATING_CATEGORIES.items():
        if ratings.get(category) is not None:
            updates[avg_column] = getattr(profile, avg_column)
            updates[count_column] = getattr(profile, count_column)

    return {
        "success": True,
        "message": "Operator ratings updated successfully",
        "updates": updates,
    }
