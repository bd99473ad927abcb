"""Operator rating aggregates.

Each category keeps a running average and a count on the profile row. The
row is read with FOR UPDATE so concurrent ratings cannot lose an update.
"""

from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.utils.serialization import utcnow

logger = logging.getLogger(__name__)

RATING_MIN = 1
RATING_MAX = 10

# Category -> (average column, count column)
RATING_CATEGORIES: dict[str, tuple[str, str]] = {
    "cleanliness": ("cleanliness_rating_avg", "cleanliness_rating_count"),
    "communication": ("communication_rating_avg", "communication_rating_count"),
    "overall": ("overall_rating_avg", "overall_rating_count"),
}


def incremental_average(old_avg: Optional[float], old_count: Optional[int], value: float) -> tuple[float, int]:
    """Fold one value into a running average, rounded to two decimals."""
    old_avg = old_avg or 0
    old_count = old_count or 0
    new_count = old_count + 1
    new_avg = (old_avg * old_count + value) / new_count
    return round(new_avg, 2), new_count


def is_valid_rating(value: float) -> bool:
    return RATING_MIN <= value <= RATING_MAX


class RatingService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply(self, operator_id: str, ratings: dict[str, Optional[float]]) -> Optional[Profile]:
        """Apply the supplied category ratings; returns None if no such operator."""
        result = await self.db.execute(
            select(Profile).where(Profile.id == operator_id).with_for_update()
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            return None

        for category, value in ratings.items():
            if value is None:
                continue
            avg_column, count_column = RATING_CATEGORIES[category]
            new_avg, new_count = incremental_average(
                getattr(profile, avg_column), getattr(profile, count_column), value
            )
            setattr(profile, avg_column, new_avg)
            setattr(profile, count_column, new_count)

        profile.total_ratings_received = (profile.total_ratings_received or 0) + 1
        profile.last_rating_received_at = utcnow()
        await self.db.commit()
        await self.db.refresh(profile)
        logger.info(f"Recorded rating for operator {operator_id}")
        return profile
