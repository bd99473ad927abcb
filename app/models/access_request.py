from sqlalchemy import Column, String, DateTime, Date, Text
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class AccessRequest(Base):
    """A self-service application for an account, reviewed by an admin."""

    __tablename__ = "access_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    position = Column(String(100), default="Not specified")

    # pending, approved, denied
    status = Column(String(20), nullable=False, default="pending", index=True)
    assigned_role = Column(String(20))
    reviewed_by = Column(String(36))
    reviewed_at = Column(DateTime(timezone=True))
    denial_reason = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow)
