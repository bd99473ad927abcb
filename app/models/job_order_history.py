"""
Job order history: an append-only audit log of job changes.

``changes`` holds ``{"field": {"old": x, "new": y}}`` for tracked fields
only. ``job_order_id`` deliberately has no foreign key, the log outlives
deleted jobs.
"""
from sqlalchemy import Column, String, DateTime, Text, JSON
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class JobOrderHistory(Base):
    __tablename__ = "job_orders_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_order_id = Column(String(36), nullable=False, index=True)
    job_number = Column(String(50))

    # Who
    changed_by = Column(String(36))
    changed_by_name = Column(String(200))
    changed_by_role = Column(String(20))

    # What: created, updated, status_changed, deleted, note
    change_type = Column(String(30), nullable=False, index=True)
    changes = Column(JSON)
    snapshot = Column(JSON)
    notes = Column(Text)

    changed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<JobOrderHistory {self.change_type} on {self.job_order_id}>"
