from sqlalchemy import Column, String, Boolean, DateTime, Date, Text, Float, ForeignKey, Index, text
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class Timecard(Base):
    """Shop clock-in/clock-out entry. Open while clock_out_time is null."""

    __tablename__ = "timecards"
    __table_args__ = (
        # At most one open timecard per user
        Index(
            "uq_timecards_open_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("clock_out_time IS NULL"),
            sqlite_where=text("clock_out_time IS NULL"),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    clock_in_time = Column(DateTime(timezone=True), nullable=False)
    clock_in_latitude = Column(Float)
    clock_in_longitude = Column(Float)
    clock_in_accuracy = Column(Float)

    clock_out_time = Column(DateTime(timezone=True))
    clock_out_latitude = Column(Float)
    clock_out_longitude = Column(Float)
    clock_out_accuracy = Column(Float)

    total_hours = Column(Float)
    notes = Column(Text)

    # Approval
    is_approved = Column(Boolean, nullable=False, default=False)
    approved_by = Column(String(36))
    approved_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
