# app/models/booking_change.py
"""
Field-level change log for bookings under negotiation.
One row per changed field per accepted edit.
"""
import uuid
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base_class import Base


class BookingChange(Base):
    __tablename__ = "booking_changes"

    id = Column(
        String, primary_key=True, default=lambda: f"bch_{uuid.uuid4().hex[:12]}"
    )
    booking_id = Column(
        String, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    changed_by = Column(String, nullable=False)
    field_name = Column(String(50), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)

    acknowledged_by_sender = Column(Boolean, nullable=False, default=False)
    acknowledged_by_receiver = Column(Boolean, nullable=False, default=False)

    change_timestamp = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    booking = relationship("Booking", back_populates="changes")
