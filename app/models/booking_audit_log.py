# app/models/booking_audit_log.py
"""
Audit trail for booking state changes.
Tracks create, allow, confirm, approvals reset, publish, complete, cancel.
"""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base_class import Base
from app.db.types import JSONType


class BookingAuditLog(Base):
    __tablename__ = "booking_audit_log"

    id = Column(
        String, primary_key=True, default=lambda: f"bal_{uuid.uuid4().hex[:12]}"
    )
    booking_id = Column(
        String, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String, nullable=False, index=True)

    # Action details
    action = Column(String(50), nullable=False, index=True)
    old_state = Column(String(50), nullable=True)
    new_state = Column(String(50), nullable=True)
    action_metadata = Column(JSONType, nullable=True)  # 'metadata' is reserved by SQLAlchemy

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    booking = relationship("Booking", back_populates="audit_logs")

    __table_args__ = (
        Index("idx_booking_audit_created_desc", "booking_id", text("created_at DESC")),
    )
