from sqlalchemy import Column, String, DateTime, Text, Float, ForeignKey
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class StandbyLog(Base):
    """Billable time an operator spends waiting on site."""

    __tablename__ = "standby_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_order_id = Column(String(36), ForeignKey("job_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    operator_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    reason = Column(Text, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=False)
    ended_at = Column(DateTime(timezone=True))
    duration_hours = Column(Float)

    # Billing, fixed when the log is closed
    hourly_rate = Column(Float)
    billable_hours = Column(Float)
    billable_amount = Column(Float)
    policy_version = Column(String(20))

    status = Column(String(20), nullable=False, default="active", index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
