from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class OperatorStatusHistory(Base):
    """Latest status of an operator on a job, one row per pair."""

    __tablename__ = "operator_status_history"
    __table_args__ = (
        UniqueConstraint("operator_id", "job_order_id", name="uq_operator_status_history_pair"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    operator_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    job_order_id = Column(String(36), ForeignKey("job_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)

    route_started_at = Column(DateTime(timezone=True))
    work_started_at = Column(DateTime(timezone=True))
    work_completed_at = Column(DateTime(timezone=True))

    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
