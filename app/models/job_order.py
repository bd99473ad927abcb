from sqlalchemy import Column, String, Boolean, DateTime, Date, Text, Float, Integer, ForeignKey, JSON
from sqlalchemy.sql import func
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class JobOrder(Base):
    """A dispatched job: scheduling, assignment and on-site progress."""

    __tablename__ = "job_orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_number = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)

    # Customer
    customer_name = Column(String(255), nullable=False)
    customer_contact = Column(String(100))
    customer_email = Column(String(255))

    # Job details
    job_type = Column(String(100), nullable=False)
    location = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    description = Column(Text)
    additional_info = Column(Text)
    po_number = Column(String(100))
    job_site_number = Column(String(100))
    customer_job_number = Column(String(100))
    job_quote = Column(Float)
    equipment_needed = Column(JSON)
    special_equipment = Column(JSON)
    required_documents = Column(JSON)

    # Assignment
    assigned_to = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), index=True)
    assigned_at = Column(DateTime(timezone=True))
    operator_name = Column(String(200))
    foreman_name = Column(String(200))
    foreman_phone = Column(String(30))
    salesman_name = Column(String(200))
    salesperson_email = Column(String(255))

    # Status (scheduled, assigned, in_route, in_progress, completed, cancelled)
    status = Column(String(20), nullable=False, default="scheduled", index=True)
    priority = Column(String(20), nullable=False, default="medium")

    # Scheduling ("HH:MM" or "h:MM AM/PM" clock strings)
    scheduled_date = Column(Date, index=True)
    end_date = Column(Date)
    arrival_time = Column(String(20))
    shop_arrival_time = Column(String(20))
    drive_time_hours = Column(Float)
    estimated_hours = Column(Float)
    is_multi_day = Column(Boolean, default=False)

    # Progress timestamps, written once per transition
    route_started_at = Column(DateTime(timezone=True))
    route_start_latitude = Column(Float)
    route_start_longitude = Column(Float)
    departure_time = Column(String(50))
    work_started_at = Column(DateTime(timezone=True))
    work_start_latitude = Column(Float)
    work_start_longitude = Column(Float)
    work_completed_at = Column(DateTime(timezone=True))
    work_end_latitude = Column(Float)
    work_end_longitude = Column(Float)

    # Work performed
    work_performed = Column(Text)
    materials_used = Column(Text)
    equipment_used = Column(Text)
    operator_notes = Column(Text)
    issues_encountered = Column(Text)
    photo_urls = Column(JSON)

    # Customer sign-off
    customer_signature = Column(Text)
    customer_signed_at = Column(DateTime(timezone=True))
    customer_satisfied = Column(Boolean)
    completion_signature = Column(Text)
    completion_signer_name = Column(String(200))
    completion_signed_at = Column(DateTime(timezone=True))
    completion_notes = Column(Text)
    contact_not_on_site = Column(Boolean)

    # Work order agreement
    work_order_signed = Column(Boolean)
    work_order_signature = Column(Text)
    work_order_signer_name = Column(String(200))
    work_order_signer_title = Column(String(200))
    work_order_signed_at = Column(DateTime(timezone=True))
    cut_through_authorized = Column(Boolean)
    cut_through_signature = Column(Text)

    # Liability release
    liability_release_signed_by = Column(String(200))
    liability_release_signature = Column(Text)
    liability_release_signed_at = Column(DateTime(timezone=True))
    liability_release_customer_name = Column(String(200))
    liability_release_customer_email = Column(String(255))

    # Customer ratings of the crew
    customer_overall_rating = Column(Integer)
    customer_cleanliness_rating = Column(Integer)
    customer_communication_rating = Column(Integer)
    customer_feedback_comments = Column(Text)

    # Operator feedback on the site
    job_difficulty_rating = Column(Integer)
    job_access_rating = Column(Integer)
    job_difficulty_notes = Column(Text)
    job_access_notes = Column(Text)
    feedback_submitted_at = Column(DateTime(timezone=True))
    feedback_submitted_by = Column(String(36))

    # Metadata
    created_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<JobOrder {self.job_number} ({self.status})>"
