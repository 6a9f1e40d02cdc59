# app/services/booking/records.py
"""Loading, authorization and commit helpers shared by the booking operations."""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.crud import crud_booking, crud_booking_history
from app.models.booking import Booking
from app.schemas.booking import PartyRole
from app.services.booking.errors import (
    BookingNotFound,
    ConcurrentModification,
    InvalidStatus,
    Unauthorized,
)
from app.services.booking.status import role_of

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def load_for_update(db: Session, booking_id: str, operation: str) -> Booking:
    """
    Lock a live booking for a read-modify-write. An id that has already been
    archived reports its terminal status instead of NotFound, so a write
    that loses a race against cancel observes the cancellation.
    """
    booking = crud_booking.get_for_update(db, booking_id)
    if booking is not None:
        return booking

    archived = crud_booking_history.get_by_booking_id(db, booking_id)
    if archived is not None:
        raise InvalidStatus(booking_id, archived.status, operation)
    raise BookingNotFound(booking_id)


def require_party(booking, actor_id: str, operation: str) -> PartyRole:
    role = role_of(booking, actor_id)
    if role is None:
        logger.warning(f"Actor {actor_id} is not a party to booking {booking.id} ({operation})")
        # History entries keep the original id in booking_id
        raise Unauthorized(getattr(booking, "booking_id", booking.id), actor_id, operation)
    return role


def require_role(booking, actor_id: str, role: PartyRole, operation: str) -> None:
    """Owner-only actions: the actor must hold a specific role on the booking."""
    if require_party(booking, actor_id, operation) != role:
        raise Unauthorized(booking.id, actor_id, operation)


def check_version(booking: Booking, expected_version: Optional[int]) -> None:
    if expected_version is not None and expected_version != booking.version:
        raise ConcurrentModification(booking.id, expected_version, booking.version)


def counterpart_of(booking, actor_id: str) -> str:
    return booking.receiver_id if actor_id == booking.sender_id else booking.sender_id


def notify_safely(notifier, party_id: str, event_type, booking_id: str, metadata=None) -> None:
    """Dispatch a notification after commit; never let it undo the transition."""
    try:
        notifier.notify(party_id, event_type, booking_id, metadata)
    except Exception as e:
        logger.error(f"Notification {event_type} for booking {booking_id} failed: {e}")
