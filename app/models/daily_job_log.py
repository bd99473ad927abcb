from sqlalchemy import Column, String, Boolean, DateTime, Date, Text, Float, Integer, ForeignKey
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class DailyJobLog(Base):
    """One working day on a (possibly multi-day) job."""

    __tablename__ = "daily_job_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_order_id = Column(String(36), ForeignKey("job_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    operator_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    log_date = Column(Date, nullable=False, index=True)
    day_number = Column(Integer, nullable=False, default=1)
    route_started_at = Column(DateTime(timezone=True))
    work_started_at = Column(DateTime(timezone=True))
    done_for_day_at = Column(DateTime(timezone=True))
    hours_worked = Column(Float)

    work_performed = Column(Text)
    notes = Column(Text)
    signer_name = Column(String(200))
    signature_data = Column(Text)
    continues_next_day = Column(Boolean, default=False)

    latitude = Column(Float)
    longitude = Column(Float)

    created_at = Column(DateTime(timezone=True), default=utcnow)
