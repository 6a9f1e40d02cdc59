# app/models/booking.py
import uuid
from sqlalchemy import (
    Column, String, Text, Boolean, Integer, Date, DateTime, Numeric,
    CheckConstraint, Index, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base_class import Base
from app.db.types import JSONType


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(
        String, primary_key=True, default=lambda: f"bkg_{uuid.uuid4().hex[:12]}"
    )
    # Parties (immutable after creation)
    sender_id = Column(String, nullable=False, index=True)  # organizer
    receiver_id = Column(String, nullable=False, index=True)  # artist

    status = Column(String, nullable=False, server_default=text("'pending'"))

    # Negotiable fields
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)
    venue = Column(String, nullable=True)
    address = Column(String, nullable=True)
    audience_estimate = Column(Integer, nullable=True)
    ticket_price = Column(Numeric(10, 2), nullable=True)
    pricing_mode = Column(String, nullable=False, server_default=text("'by_agreement'"))
    artist_fee = Column(Numeric(12, 2), nullable=True)  # fixed_fee only
    door_percentage = Column(Integer, nullable=True)  # door_deal only
    tech_spec = Column(Text, nullable=True)
    hospitality_rider = Column(Text, nullable=True)
    personal_message = Column(Text, nullable=True)
    selected_concept_id = Column(String, nullable=True)
    concept_ids = Column(JSONType, nullable=False, default=list)

    # Confirmation flags
    sender_confirmed = Column(Boolean, nullable=False, default=False)
    receiver_confirmed = Column(Boolean, nullable=False, default=False)
    sender_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    receiver_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    sender_read_agreement = Column(Boolean, nullable=False, default=False)
    receiver_read_agreement = Column(Boolean, nullable=False, default=False)

    # Disclosure artifacts
    public_visibility_settings = Column(JSONType, nullable=False, default=dict)
    is_public_after_approval = Column(Boolean, nullable=False, default=False)
    agreement_summary = Column(JSONType, nullable=True)
    sender_contact_info = Column(JSONType, nullable=True)  # snapshot at request time
    receiver_contact_info = Column(JSONType, nullable=True)

    # Lifecycle timestamps
    allowed_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    last_modified_by = Column(String, nullable=True)

    # Optimistic concurrency: every UPDATE compares and bumps this
    version = Column(Integer, nullable=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    changes = relationship(
        "BookingChange", back_populates="booking", cascade="all, delete-orphan",
        passive_deletes=True,
    )
    audit_logs = relationship(
        "BookingAuditLog", back_populates="booking", cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("sender_id <> receiver_id", name="ck_bookings_distinct_parties"),
        CheckConstraint(
            "status IN ('pending', 'allowed', 'approved_by_sender', "
            "'approved_by_receiver', 'approved_by_both', 'upcoming', "
            "'completed', 'cancelled', 'deleted')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "pricing_mode IN ('fixed_fee', 'door_deal', 'by_agreement')",
            name="ck_bookings_pricing_mode",
        ),
        CheckConstraint(
            "audience_estimate IS NULL OR audience_estimate >= 0",
            name="ck_bookings_audience_non_negative",
        ),
        Index("ix_bookings_sender_status", "sender_id", "status"),
        Index("ix_bookings_receiver_status", "receiver_id", "status"),
    )
