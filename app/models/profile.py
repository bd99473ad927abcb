from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Float
from sqlalchemy.sql import func
from app.database import Base
from app.utils.serialization import utcnow
import uuid


class Profile(Base):
    """Application user (operator or admin)."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(200))
    role = Column(String(20), nullable=False, default="operator", index=True)
    hashed_password = Column(String(255))
    phone = Column(String(30))
    position = Column(String(100))
    date_of_birth = Column(Date)
    active = Column(Boolean, nullable=False, default=True)

    # Ratings received from customers (running averages)
    cleanliness_rating_avg = Column(Float, default=0)
    cleanliness_rating_count = Column(Integer, default=0)
    communication_rating_avg = Column(Float, default=0)
    communication_rating_count = Column(Integer, default=0)
    overall_rating_avg = Column(Float, default=0)
    overall_rating_count = Column(Integer, default=0)
    total_ratings_received = Column(Integer, default=0)
    last_rating_received_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self):
        return f"<Profile {self.email} ({self.role})>"
