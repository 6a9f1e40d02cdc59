# app/models/public_event.py
import uuid
from sqlalchemy import (
    Column, String, Text, Boolean, Integer, Date, DateTime, Numeric,
    UniqueConstraint, Index
)
from sqlalchemy.sql import func
from app.db.base_class import Base


class PublicEvent(Base):
    """Public listing derived from an approved booking. Never written back."""
    __tablename__ = "public_events"

    id = Column(
        String, primary_key=True, default=lambda: f"pev_{uuid.uuid4().hex[:12]}"
    )
    # Idempotency key: one listing per booking
    source_booking_id = Column(String, nullable=False)
    artist_id = Column(String, nullable=False, index=True)  # receiver, portfolio owner
    organizer_id = Column(String, nullable=False, index=True)
    # Selected concept, shown on the artist portfolio
    portfolio_id = Column(String, nullable=True)

    # Copied only when marked public
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    event_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    venue = Column(String, nullable=True)
    address = Column(String, nullable=True)
    ticket_price = Column(Numeric(10, 2), nullable=True)
    audience_estimate = Column(Integer, nullable=True)
    show_portfolio = Column(Boolean, nullable=False, default=False)
    show_artist_bio = Column(Boolean, nullable=False, default=False)

    published_by = Column(String, nullable=False)
    published_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("source_booking_id", name="uq_public_events_source_booking"),
        Index("ix_public_events_event_date", "event_date"),
    )

    @property
    def portfolio_owner_id(self):
        """Receiving party whose portfolio the listing links to."""
        return self.artist_id
