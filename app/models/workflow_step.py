from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class WorkflowStepRecord(Base):
    """Per-operator checklist progress on a job."""

    __tablename__ = "workflow_steps"
    __table_args__ = (
        UniqueConstraint("job_order_id", "operator_id", name="uq_workflow_steps_job_operator"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_order_id = Column(String(36), ForeignKey("job_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    operator_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # One flag per step
    equipment_checklist_completed = Column(Boolean, nullable=False, default=False)
    sms_sent = Column(Boolean, nullable=False, default=False)
    liability_release_completed = Column(Boolean, nullable=False, default=False)
    silica_form_completed = Column(Boolean, nullable=False, default=False)
    work_performed_completed = Column(Boolean, nullable=False, default=False)
    pictures_submitted = Column(Boolean, nullable=False, default=False)
    customer_signature_received = Column(Boolean, nullable=False, default=False)
    job_completed = Column(Boolean, nullable=False, default=False)

    current_step = Column(String(50), nullable=False, default="equipment_checklist")

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
