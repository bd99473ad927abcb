"""Operator rating schemas."""

from typing import Optional

from app.schemas.types import CamelModel, OptionalStr


class OperatorRatingRequest(CamelModel):
    operator_id: OptionalStr = None
    cleanliness_rating: Optional[float] = None
    communication_rating: Optional[float] = None
    overall_rating: Optional[float] = None

    def ratings(self) -> dict[str, Optional[float]]:
        """Supplied ratings keyed by category."""
        return {
            "cleanliness": self.cleanliness_rating,
            "communication": self.communication_rating,
            "overall": self.overall_rating,
        }
