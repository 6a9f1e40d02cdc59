# app/crud/crud_booking_change.py
"""
Field-level change log. Entries are added to the caller's transaction;
the caller commits.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.booking_change import BookingChange
from app.schemas.booking import PartyRole


def _stringify(value) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "value"):  # enums
        return str(value.value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def record_change(
    db: Session,
    *,
    booking_id: str,
    changed_by: str,
    role: PartyRole,
    field_name: str,
    old_value,
    new_value,
) -> BookingChange:
    entry = BookingChange(
        booking_id=booking_id,
        changed_by=changed_by,
        field_name=field_name,
        old_value=_stringify(old_value),
        new_value=_stringify(new_value),
        # The editing party has seen its own change
        acknowledged_by_sender=role == PartyRole.SENDER,
        acknowledged_by_receiver=role == PartyRole.RECEIVER,
    )
    db.add(entry)
    return entry


def get_changes_for_booking(
    db: Session, booking_id: str, limit: int = 100
) -> List[BookingChange]:
    return (
        db.query(BookingChange)
        .filter(BookingChange.booking_id == booking_id)
        .order_by(BookingChange.change_timestamp.desc(), BookingChange.id)
        .limit(limit)
        .all()
    )


def acknowledge_all(db: Session, *, booking_id: str, role: PartyRole) -> int:
    """Mark every change on a booking as seen by one party. Returns rows touched."""
    column = (
        BookingChange.acknowledged_by_sender
        if role == PartyRole.SENDER
        else BookingChange.acknowledged_by_receiver
    )
    return (
        db.query(BookingChange)
        .filter(BookingChange.booking_id == booking_id, column.is_(False))
        .update({column: True}, synchronize_session=False)
    )
