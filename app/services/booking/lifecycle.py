# app/services/booking/lifecycle.py
"""
Booking lifecycle outside negotiation and approval: request, allow,
reject, cancel, complete, soft delete (archive) and hard delete.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.crud import crud_booking, crud_booking_audit_log, crud_booking_history
from app.models.booking import Booking
from app.models.booking_history import BookingHistory
from app.schemas.booking import BookingCreate, BookingStatus, PartyRole
from app.services.booking import records
from app.services.booking.errors import (
    BookingNotFound,
    BookingValidationError,
    ConcurrentModification,
    InvalidStatus,
)
from app.services.booking.negotiation import (
    NEGOTIABLE_COLUMNS,
    resolve_pricing,
    validate_fields,
)
from app.services.booking.status import (
    NON_TERMINAL_STATUSES,
    parse_status,
    transition,
)
from app.utils.kafka_helpers import BookingNotification, notifier as default_notifier

logger = logging.getLogger(__name__)

PRICING_KEYS = ("pricing_mode", "artist_fee", "door_percentage")


def _seed_from_concept(data: dict, concepts, concept_id: str) -> dict:
    """Fill fields the request left empty from the selected concept, by value."""
    concept = concepts.get_concept(concept_id)
    if concept is None:
        raise BookingNotFound(concept_id, resource="concept")

    seeded = dict(data)
    defaults = {
        "title": concept.title,
        "description": concept.description,
        "audience_estimate": concept.expected_audience,
        "tech_spec": concept.tech_spec_ref,
        "hospitality_rider": concept.hospitality_rider_ref,
    }
    for column, value in defaults.items():
        if seeded.get(column) is None and value is not None:
            seeded[column] = value

    if concept.price is not None and all(seeded.get(k) is None for k in PRICING_KEYS):
        seeded["artist_fee"] = concept.price
    return seeded


def create_booking(
    db: Session,
    *,
    sender_id: str,
    data: BookingCreate,
    profiles,
    concepts=None,
    notifier=default_notifier,
) -> Booking:
    """Open a new booking request from ``sender_id`` to ``data.receiver_id``."""
    if sender_id == data.receiver_id:
        raise BookingValidationError("receiver_id", "same_as_sender")

    values = data.model_dump(exclude={"receiver_id"})
    if data.selected_concept_id:
        if concepts is None:
            raise BookingNotFound(data.selected_concept_id, resource="concept")
        values = _seed_from_concept(values, concepts, data.selected_concept_id)
        if data.selected_concept_id not in values["concept_ids"]:
            values["concept_ids"] = values["concept_ids"] + [data.selected_concept_id]

    if not values.get("title"):
        raise BookingValidationError("title", "required")
    validate_fields(values)

    fields = {column: values.get(column) for column in NEGOTIABLE_COLUMNS}
    fields.update(resolve_pricing(None, values))
    fields["concept_ids"] = values["concept_ids"]

    # Contact info is captured now and never re-read
    fields["sender_contact_info"] = profiles.get_contact_info(sender_id).model_dump(
        exclude_none=True
    )
    fields["receiver_contact_info"] = profiles.get_contact_info(
        data.receiver_id
    ).model_dump(exclude_none=True)
    fields["last_modified_by"] = sender_id

    booking = crud_booking.create(
        db, sender_id=sender_id, receiver_id=data.receiver_id, fields=fields
    )
    crud_booking_audit_log.create_audit_entry(
        db,
        booking_id=booking.id,
        user_id=sender_id,
        action="create",
        new_state=BookingStatus.PENDING.value,
        metadata={"selected_concept_id": data.selected_concept_id},
    )
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.id} requested by {sender_id} for {booking.receiver_id}")

    records.notify_safely(
        notifier, booking.receiver_id, BookingNotification.REQUESTED, booking.id
    )
    return booking


def allow(
    db: Session, *, booking_id: str, actor_id: str, notifier=default_notifier
) -> Booking:
    """Receiver opens negotiation without editing anything."""
    booking = records.load_for_update(db, booking_id, "allow")
    records.require_role(booking, actor_id, PartyRole.RECEIVER, "allow")

    status = parse_status(booking.status)
    if status != BookingStatus.PENDING:
        raise InvalidStatus(booking.id, status.value, "allow")
    old_status = transition(booking, BookingStatus.ALLOWED, "allow")
    booking.allowed_at = records.utcnow()
    booking.last_modified_by = actor_id

    crud_booking_audit_log.create_audit_entry(
        db,
        booking_id=booking.id,
        user_id=actor_id,
        action="allow",
        old_state=old_status.value,
        new_state=BookingStatus.ALLOWED.value,
    )
    booking = crud_booking.commit(db, booking)
    logger.info(f"Booking {booking.id} allowed by {actor_id}")

    records.notify_safely(
        notifier, booking.sender_id, BookingNotification.ALLOWED, booking.id
    )
    return booking


def _archive(
    db: Session,
    *,
    booking: Booking,
    new_status: BookingStatus,
    actor_id: str,
    operation: str,
    reason: Optional[str],
) -> BookingHistory:
    """
    Move a booking into history. Only non-sensitive columns are copied;
    the live row, with its change log and audit trail, is removed.
    """
    old_status = transition(booking, new_status, operation)
    booking_id = booking.id
    entry = crud_booking_history.archive(
        db,
        booking=booking,
        status=new_status.value,
        previous_status=old_status.value,
        archived_by=actor_id,
        reason=reason,
    )
    crud_booking.delete(db, booking=booking)
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(f"Stale archive rejected for booking {booking_id}")
        raise ConcurrentModification(booking_id)
    db.refresh(entry)
    logger.info(
        f"Booking {booking_id} archived by {actor_id} ({operation}): "
        f"{old_status.value} -> {new_status.value}"
    )
    return entry


def reject(
    db: Session,
    *,
    booking_id: str,
    actor_id: str,
    reason: str,
    notifier=default_notifier,
) -> BookingHistory:
    booking = records.load_for_update(db, booking_id, "reject")
    records.require_role(booking, actor_id, PartyRole.RECEIVER, "reject")

    status = parse_status(booking.status)
    if status != BookingStatus.PENDING:
        raise InvalidStatus(booking.id, status.value, "reject")
    if not (reason or "").strip():
        raise BookingValidationError("reason", "required")

    sender_id = booking.sender_id
    entry = _archive(
        db,
        booking=booking,
        new_status=BookingStatus.CANCELLED,
        actor_id=actor_id,
        operation="reject",
        reason=reason.strip(),
    )
    records.notify_safely(
        notifier, sender_id, BookingNotification.REJECTED, booking_id, {"reason": entry.deletion_reason}
    )
    return entry


def cancel(
    db: Session,
    *,
    booking_id: str,
    actor_id: str,
    reason: Optional[str] = None,
    notifier=default_notifier,
) -> BookingHistory:
    booking = records.load_for_update(db, booking_id, "cancel")
    records.require_party(booking, actor_id, "cancel")

    status = parse_status(booking.status)
    if status not in NON_TERMINAL_STATUSES:
        raise InvalidStatus(booking.id, status.value, "cancel")

    counterpart = records.counterpart_of(booking, actor_id)
    entry = _archive(
        db,
        booking=booking,
        new_status=BookingStatus.CANCELLED,
        actor_id=actor_id,
        operation="cancel",
        reason=reason,
    )
    records.notify_safely(
        notifier, counterpart, BookingNotification.CANCELLED, booking_id, {"reason": reason}
    )
    return entry


def soft_delete(
    db: Session,
    *,
    booking_id: str,
    actor_id: str,
    reason: Optional[str] = None,
    notifier=default_notifier,
) -> BookingHistory:
    """Archive a booking from any live status, keeping a scrubbed history entry."""
    booking = records.load_for_update(db, booking_id, "soft_delete")
    records.require_party(booking, actor_id, "soft_delete")

    counterpart = records.counterpart_of(booking, actor_id)
    entry = _archive(
        db,
        booking=booking,
        new_status=BookingStatus.DELETED,
        actor_id=actor_id,
        operation="soft_delete",
        reason=reason,
    )
    records.notify_safely(
        notifier, counterpart, BookingNotification.DELETED, booking_id, {"reason": reason}
    )
    return entry


def _mark_completed(db: Session, booking: Booking, actor_id: str) -> BookingStatus:
    old_status = transition(booking, BookingStatus.COMPLETED, "complete")
    booking.completed_at = records.utcnow()
    booking.last_modified_by = actor_id
    crud_booking_audit_log.create_audit_entry(
        db,
        booking_id=booking.id,
        user_id=actor_id,
        action="complete",
        old_state=old_status.value,
        new_state=BookingStatus.COMPLETED.value,
    )
    return old_status


def complete(
    db: Session, *, booking_id: str, actor_id: str, notifier=default_notifier
) -> Booking:
    booking = records.load_for_update(db, booking_id, "complete")
    records.require_party(booking, actor_id, "complete")

    _mark_completed(db, booking, actor_id)
    booking = crud_booking.commit(db, booking)
    logger.info(f"Booking {booking.id} marked completed by {actor_id}")

    records.notify_safely(
        notifier,
        records.counterpart_of(booking, actor_id),
        BookingNotification.COMPLETED,
        booking.id,
    )
    return booking


def complete_past_events(
    db: Session, *, today: Optional[date] = None, notifier=default_notifier
) -> List[str]:
    """Mark every published booking whose event is over as completed."""
    today = today or date.today()
    bookings = crud_booking.list_upcoming_before(db, today)
    if not bookings:
        return []

    completed = []
    for booking in bookings:
        _mark_completed(db, booking, records.SYSTEM_ACTOR)
        completed.append((booking.id, booking.sender_id, booking.receiver_id))

    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning("Completion sweep lost a race; will retry on the next run")
        raise ConcurrentModification(completed[0][0])
    logger.info(f"Completion sweep marked {len(completed)} bookings completed")

    for booking_id, sender_id, receiver_id in completed:
        for party_id in (sender_id, receiver_id):
            records.notify_safely(
                notifier, party_id, BookingNotification.COMPLETED, booking_id
            )
    return [booking_id for booking_id, _, _ in completed]


def hard_delete(
    db: Session, *, booking_id: str, actor_id: str, notifier=default_notifier
) -> None:
    """
    Permanently erase a booking, live or archived. A published listing is
    an independent record and is left in place.
    """
    booking = crud_booking.get_for_update(db, booking_id)
    if booking is not None:
        records.require_party(booking, actor_id, "hard_delete")
        counterpart = records.counterpart_of(booking, actor_id)
        crud_booking.delete(db, booking=booking)
    else:
        entry = crud_booking_history.get_by_booking_id(db, booking_id)
        if entry is None:
            raise BookingNotFound(booking_id)
        records.require_party(entry, actor_id, "hard_delete")
        counterpart = records.counterpart_of(entry, actor_id)
        crud_booking_history.delete(db, entry=entry)

    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConcurrentModification(booking_id)
    logger.info(f"Booking {booking_id} permanently deleted by {actor_id}")

    records.notify_safely(
        notifier, counterpart, BookingNotification.DELETED, booking_id, {"permanent": True}
    )


def list_history(
    db: Session, *, user_id: str, page: int = 1, page_size: int = 10
) -> dict:
    return crud_booking_history.list_for_party(
        db, user_id, page=page, page_size=page_size
    )


def get_booking(db: Session, *, booking_id: str, actor_id: str) -> Booking:
    """Full record for one of the parties."""
    booking = crud_booking.get(db, booking_id)
    if booking is None:
        raise BookingNotFound(booking_id)
    records.require_party(booking, actor_id, "get")
    return booking
