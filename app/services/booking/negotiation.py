# app/services/booking/negotiation.py
"""
Negotiation editor: who may change which booking fields, and when.

An accepted edit that changes any value while approvals are in place
voids both confirmations and returns the booking to ``allowed``. An
approval only ever covers the exact values it was given for.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.crud import crud_booking, crud_booking_audit_log, crud_booking_change
from app.models.booking import Booking
from app.schemas.booking import (
    BookingStatus,
    BookingUpdate,
    PartyRole,
    PricingMode,
)
from app.services.booking import records
from app.services.booking.errors import (
    BookingNotFound,
    BookingValidationError,
    InvalidStatus,
)
from app.services.booking.status import (
    APPROVAL_STATUSES,
    EDITABLE_STATUSES,
    parse_status,
    transition,
)
from app.utils.kafka_helpers import BookingNotification, notifier as default_notifier

logger = logging.getLogger(__name__)

# Columns either party may edit; pricing columns go through resolve_pricing
NEGOTIABLE_COLUMNS = (
    "title",
    "description",
    "event_date",
    "end_date",
    "start_time",
    "end_time",
    "venue",
    "address",
    "audience_estimate",
    "ticket_price",
    "tech_spec",
    "hospitality_rider",
    "personal_message",
    "selected_concept_id",
)


def resolve_pricing(current: Optional[Booking], data: dict) -> Dict[str, object]:
    """
    Work out the pricing columns after applying ``data``. Exactly one
    pricing mode is active; choosing one clears the figures of the others.
    Returns an empty dict when ``data`` does not touch pricing.
    """
    mode = data.get("pricing_mode")
    fee = data.get("artist_fee")
    door = data.get("door_percentage")

    if fee is not None and door is not None:
        raise BookingValidationError("pricing_mode", "multiple_pricing_modes")

    if mode is None:
        if fee is not None:
            mode = PricingMode.FIXED_FEE
        elif door is not None:
            mode = PricingMode.DOOR_DEAL
        elif current is None:
            mode = PricingMode.BY_AGREEMENT
        else:
            return {}
    mode = PricingMode(mode)
    current_mode = PricingMode(current.pricing_mode) if current is not None else None

    if mode == PricingMode.FIXED_FEE:
        if door is not None:
            raise BookingValidationError("door_percentage", "conflicts_with_fixed_fee")
        if fee is None and current_mode == PricingMode.FIXED_FEE:
            fee = current.artist_fee
        if fee is None:
            raise BookingValidationError("artist_fee", "required_for_fixed_fee")
        if Decimal(fee) < 0:
            raise BookingValidationError("artist_fee", "must_be_non_negative")
        return {"pricing_mode": mode.value, "artist_fee": fee, "door_percentage": None}

    if mode == PricingMode.DOOR_DEAL:
        if fee is not None:
            raise BookingValidationError("artist_fee", "conflicts_with_door_deal")
        if door is None and current_mode == PricingMode.DOOR_DEAL:
            door = current.door_percentage
        if door is None:
            raise BookingValidationError("door_percentage", "required_for_door_deal")
        if not 0 <= door <= 100:
            raise BookingValidationError("door_percentage", "out_of_range")
        return {"pricing_mode": mode.value, "artist_fee": None, "door_percentage": door}

    if fee is not None or door is not None:
        raise BookingValidationError("pricing_mode", "by_agreement_takes_no_figures")
    return {"pricing_mode": mode.value, "artist_fee": None, "door_percentage": None}


def validate_fields(values: dict) -> None:
    """Field-level rules that hold for every stored booking."""
    if "title" in values and not (values["title"] or "").strip():
        raise BookingValidationError("title", "required")

    audience = values.get("audience_estimate")
    if audience is not None and audience < 0:
        raise BookingValidationError("audience_estimate", "must_be_non_negative")

    ticket_price = values.get("ticket_price")
    if ticket_price is not None and Decimal(ticket_price) < 0:
        raise BookingValidationError("ticket_price", "must_be_non_negative")

    start, end = values.get("event_date"), values.get("end_date")
    if start is not None and end is not None and end < start:
        raise BookingValidationError("end_date", "before_event_date")


def reset_approvals(booking: Booking) -> None:
    booking.sender_confirmed = False
    booking.receiver_confirmed = False
    booking.sender_confirmed_at = None
    booking.receiver_confirmed_at = None
    booking.sender_read_agreement = False
    booking.receiver_read_agreement = False
    booking.public_visibility_settings = {}
    booking.is_public_after_approval = False
    booking.agreement_summary = None
    booking.approved_at = None


def _pending_changes(booking: Booking, data: dict) -> Dict[str, tuple]:
    changed = {}
    for column, new_value in data.items():
        old_value = getattr(booking, column)
        if old_value != new_value:
            changed[column] = (old_value, new_value)
    return changed


def update_booking(
    db: Session,
    *,
    booking_id: str,
    actor_id: str,
    changes: BookingUpdate,
    notifier=default_notifier,
) -> Booking:
    """Apply a partial edit from one of the parties."""
    booking = records.load_for_update(db, booking_id, "update")
    role = records.require_party(booking, actor_id, "update")

    status = parse_status(booking.status)
    if status not in EDITABLE_STATUSES:
        raise InvalidStatus(booking.id, status.value, "update")
    records.check_version(booking, changes.expected_version)

    submitted = changes.model_dump(exclude_unset=True, exclude={"expected_version"})
    data = {k: v for k, v in submitted.items() if k in NEGOTIABLE_COLUMNS}
    data.update(resolve_pricing(booking, submitted))

    merged = {column: getattr(booking, column) for column in NEGOTIABLE_COLUMNS}
    merged.update(data)
    validate_fields(merged)

    changed = _pending_changes(booking, data)
    if not changed:
        # Release the row lock
        db.rollback()
        return booking

    for column, (old_value, new_value) in changed.items():
        setattr(booking, column, new_value)
        crud_booking_change.record_change(
            db,
            booking_id=booking.id,
            changed_by=actor_id,
            role=role,
            field_name=column,
            old_value=old_value,
            new_value=new_value,
        )
    booking.last_modified_by = actor_id

    approvals_reset = False
    advanced_to_allowed = False
    if status in APPROVAL_STATUSES:
        reset_approvals(booking)
        transition(booking, BookingStatus.ALLOWED, "update")
        approvals_reset = True
        crud_booking_audit_log.create_audit_entry(
            db,
            booking_id=booking.id,
            user_id=actor_id,
            action="approvals_reset",
            old_state=status.value,
            new_state=BookingStatus.ALLOWED.value,
            metadata={"fields": sorted(changed)},
        )
    elif status == BookingStatus.PENDING and role == PartyRole.RECEIVER:
        transition(booking, BookingStatus.ALLOWED, "update")
        booking.allowed_at = records.utcnow()
        advanced_to_allowed = True
        crud_booking_audit_log.create_audit_entry(
            db,
            booking_id=booking.id,
            user_id=actor_id,
            action="allow",
            old_state=status.value,
            new_state=BookingStatus.ALLOWED.value,
            metadata={"via": "edit"},
        )

    booking = crud_booking.commit(db, booking)
    logger.info(
        f"Booking {booking.id} edited by {actor_id}: {sorted(changed)} "
        f"(status {status.value} -> {booking.status})"
    )

    counterpart = records.counterpart_of(booking, actor_id)
    if approvals_reset:
        event = BookingNotification.APPROVALS_RESET
    elif advanced_to_allowed:
        event = BookingNotification.ALLOWED
    else:
        event = BookingNotification.CHANGED
    records.notify_safely(
        notifier, counterpart, event, booking.id, {"fields": sorted(changed)}
    )
    return booking


def list_changes(db: Session, *, booking_id: str, actor_id: str) -> List:
    booking = crud_booking.get(db, booking_id)
    if booking is None:
        raise BookingNotFound(booking_id)
    records.require_party(booking, actor_id, "list_changes")
    return crud_booking_change.get_changes_for_booking(db, booking_id)


def acknowledge_changes(db: Session, *, booking_id: str, actor_id: str) -> int:
    """Mark every logged change as seen by the acting party."""
    booking = crud_booking.get(db, booking_id)
    if booking is None:
        raise BookingNotFound(booking_id)
    role = records.require_party(booking, actor_id, "acknowledge_changes")
    count = crud_booking_change.acknowledge_all(db, booking_id=booking_id, role=role)
    db.commit()
    return count
