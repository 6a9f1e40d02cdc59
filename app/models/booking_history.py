# app/models/booking_history.py
"""
Archived bookings. Holds only non-sensitive fields: contact info, pricing,
personal message, tech spec and hospitality rider have no columns here.
"""
import uuid
from sqlalchemy import Column, String, Text, Integer, Date, DateTime
from sqlalchemy.sql import func
from app.db.base_class import Base


class BookingHistory(Base):
    __tablename__ = "booking_history"

    id = Column(
        String, primary_key=True, default=lambda: f"bhi_{uuid.uuid4().hex[:12]}"
    )
    booking_id = Column(String, nullable=False, unique=True, index=True)
    sender_id = Column(String, nullable=False, index=True)
    receiver_id = Column(String, nullable=False, index=True)

    status = Column(String, nullable=False)  # cancelled | deleted
    previous_status = Column(String, nullable=False)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    venue = Column(String, nullable=True)
    address = Column(String, nullable=True)
    audience_estimate = Column(Integer, nullable=True)
    selected_concept_id = Column(String, nullable=True)

    archived_by = Column(String, nullable=False)
    deletion_reason = Column(Text, nullable=True)
    deleted_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    booking_created_at = Column(DateTime(timezone=True), nullable=True)
