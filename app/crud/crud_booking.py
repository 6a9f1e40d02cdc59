# app/crud/crud_booking.py
"""Booking record store."""
import math
import logging
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.models.booking import Booking
from app.schemas.booking import PartyRole
from app.services.booking.errors import ConcurrentModification

logger = logging.getLogger(__name__)


def create(db: Session, *, sender_id: str, receiver_id: str, fields: dict) -> Booking:
    db_obj = Booking(
        **fields,
        sender_id=sender_id,
        receiver_id=receiver_id,
        status="pending",
        sender_confirmed=False,
        receiver_confirmed=False,
    )
    db.add(db_obj)
    db.flush()
    return db_obj


def get(db: Session, booking_id: str) -> Optional[Booking]:
    return db.query(Booking).filter(Booking.id == booking_id).first()


def get_for_update(db: Session, booking_id: str) -> Optional[Booking]:
    """Load a booking with a row lock for a read-modify-write."""
    return (
        db.query(Booking)
        .filter(Booking.id == booking_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def commit(db: Session, booking: Booking) -> Booking:
    """
    Commit pending changes on a booking. The UPDATE is guarded by the
    version column; a lost race surfaces as ConcurrentModification.
    """
    booking_id = booking.id
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(f"Stale write rejected for booking {booking_id}")
        raise ConcurrentModification(booking_id)
    db.refresh(booking)
    return booking


def list_for_party(
    db: Session,
    user_id: str,
    role: Optional[PartyRole] = None,
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> dict:
    page_size = min(page_size, 50)
    query = db.query(Booking)

    if role == PartyRole.SENDER:
        query = query.filter(Booking.sender_id == user_id)
    elif role == PartyRole.RECEIVER:
        query = query.filter(Booking.receiver_id == user_id)
    else:
        query = query.filter(
            or_(Booking.sender_id == user_id, Booking.receiver_id == user_id)
        )

    if status:
        query = query.filter(Booking.status == status)

    total_count = query.count()
    total_pages = math.ceil(total_count / page_size) if page_size > 0 else 0
    offset = (page - 1) * page_size

    bookings = (
        query.order_by(Booking.created_at.desc(), Booking.id)
        .offset(offset)
        .limit(page_size)
        .all()
    )

    items = []
    for b in bookings:
        is_sender = b.sender_id == user_id
        items.append({
            "id": b.id,
            "title": b.title,
            "status": b.status,
            "role": PartyRole.SENDER if is_sender else PartyRole.RECEIVER,
            "event_date": b.event_date,
            "venue": b.venue,
            "counterpart_id": b.receiver_id if is_sender else b.sender_id,
            "created_at": b.created_at,
            "updated_at": b.updated_at,
        })

    return {
        "bookings": items,
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total_count": total_count,
            "total_pages": total_pages,
        },
    }


def list_upcoming_before(db: Session, cutoff) -> list:
    """Published bookings whose last event day is before the cutoff date."""
    return (
        db.query(Booking)
        .filter(
            Booking.status == "upcoming",
            Booking.event_date.isnot(None),
            or_(
                Booking.end_date < cutoff,
                and_(Booking.end_date.is_(None), Booking.event_date < cutoff),
            ),
        )
        .with_for_update()
        .all()
    )


def delete(db: Session, *, booking: Booking) -> None:
    """Remove the live row; change log and audit trail cascade with it."""
    db.delete(booking)
