# app/crud/crud_booking_history.py
import math
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.booking_history import BookingHistory

# The only columns that survive archiving
HISTORY_COLUMNS = (
    "title",
    "description",
    "event_date",
    "end_date",
    "start_time",
    "end_time",
    "venue",
    "address",
    "audience_estimate",
    "selected_concept_id",
)


def archive(
    db: Session,
    *,
    booking: Booking,
    status: str,
    previous_status: str,
    archived_by: str,
    reason: Optional[str] = None,
) -> BookingHistory:
    """Build the scrubbed history variant of a booking and add it to the session."""
    entry = BookingHistory(
        booking_id=booking.id,
        sender_id=booking.sender_id,
        receiver_id=booking.receiver_id,
        status=status,
        previous_status=previous_status,
        archived_by=archived_by,
        deletion_reason=reason,
        booking_created_at=booking.created_at,
        **{column: getattr(booking, column) for column in HISTORY_COLUMNS},
    )
    db.add(entry)
    return entry


def get_by_booking_id(db: Session, booking_id: str) -> Optional[BookingHistory]:
    return (
        db.query(BookingHistory)
        .filter(BookingHistory.booking_id == booking_id)
        .first()
    )


def list_for_party(
    db: Session, user_id: str, page: int = 1, page_size: int = 10
) -> dict:
    page_size = min(page_size, 50)
    query = db.query(BookingHistory).filter(
        or_(BookingHistory.sender_id == user_id, BookingHistory.receiver_id == user_id)
    )
    total_count = query.count()
    total_pages = math.ceil(total_count / page_size) if page_size > 0 else 0
    entries = (
        query.order_by(BookingHistory.deleted_at.desc(), BookingHistory.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "entries": entries,
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total_count": total_count,
            "total_pages": total_pages,
        },
    }


def delete(db: Session, *, entry: BookingHistory) -> None:
    db.delete(entry)
