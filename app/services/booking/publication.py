# app/services/booking/publication.py
"""
Publication pipeline: turn a booking both parties approved into an
independent public listing. One listing per booking, enforced by the
unique ``source_booking_id`` column.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.crud import crud_booking_audit_log, crud_public_event
from app.models.booking import Booking
from app.models.public_event import PublicEvent
from app.schemas.booking import BookingStatus, ShareableField
from app.services.booking import records
from app.services.booking.errors import (
    AlreadyPublished,
    ConcurrentModification,
    InvalidStatus,
)
from app.services.booking.status import PUBLISHED_STATUSES, parse_status, transition
from app.services.booking.visibility import SHAREABLE_COLUMNS, public_fields
from app.utils.kafka_helpers import BookingNotification, notifier as default_notifier

logger = logging.getLogger(__name__)


def build_public_event_fields(booking: Booking, published_by: str) -> dict:
    """Copy only the columns behind fields marked public."""
    shared = public_fields(booking.public_visibility_settings)
    fields = {
        "source_booking_id": booking.id,
        "artist_id": booking.receiver_id,
        "organizer_id": booking.sender_id,
        "portfolio_id": booking.selected_concept_id,
        "published_by": published_by,
        "show_portfolio": ShareableField.PORTFOLIO in shared,
        "show_artist_bio": ShareableField.ARTIST_BIO in shared,
    }
    for field in shared:
        for column in SHAREABLE_COLUMNS[field]:
            fields[column] = getattr(booking, column)
    return fields


def publish(
    db: Session,
    *,
    booking_id: str,
    actor_id: str,
    notifier=default_notifier,
) -> PublicEvent:
    booking = records.load_for_update(db, booking_id, "publish")
    records.require_party(booking, actor_id, "publish")

    existing = crud_public_event.get_by_source_booking(db, booking.id)
    status = parse_status(booking.status)
    if existing is not None or status in PUBLISHED_STATUSES:
        raise AlreadyPublished(booking.id, existing.id if existing else None)
    if status != BookingStatus.APPROVED_BY_BOTH:
        raise InvalidStatus(booking.id, status.value, "publish")

    transition(booking, BookingStatus.UPCOMING, "publish")
    booking.published_at = records.utcnow()
    event = crud_public_event.create(db, **build_public_event_fields(booking, actor_id))

    try:
        db.flush()
        crud_booking_audit_log.create_audit_entry(
            db,
            booking_id=booking.id,
            user_id=actor_id,
            action="publish",
            old_state=status.value,
            new_state=BookingStatus.UPCOMING.value,
            metadata={"public_event_id": event.id},
        )
        db.commit()
    except (IntegrityError, StaleDataError):
        # The other party published first
        db.rollback()
        winner = crud_public_event.get_by_source_booking(db, booking_id)
        if winner is not None:
            raise AlreadyPublished(booking_id, winner.id)
        raise ConcurrentModification(booking_id)

    db.refresh(event)
    logger.info(f"Booking {booking_id} published by {actor_id} as {event.id}")

    for party_id in (booking.sender_id, booking.receiver_id):
        records.notify_safely(
            notifier,
            party_id,
            BookingNotification.PUBLISHED,
            booking_id,
            {"public_event_id": event.id},
        )
    return event
