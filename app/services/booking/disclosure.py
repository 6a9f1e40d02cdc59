# app/services/booking/disclosure.py
"""
Disclosure gate: what a given viewer may see of a booking.

- Parties see every field. They see each other's contact info once the
  receiver has let the negotiation start (any status but ``pending``).
- Anyone else sees nothing until the booking is published, and then only
  the fields both parties marked public. Contact info is never shown.
"""
from dataclasses import dataclass
from typing import FrozenSet, Optional

from sqlalchemy.orm import Session

from app.crud import crud_booking
from app.schemas.booking import PrivateField, ShareableField
from app.services.booking.errors import BookingNotFound
from app.services.booking.status import (
    CONTACT_SHARING_STATUSES,
    PUBLISHED_STATUSES,
    parse_status,
    role_of,
)
from app.services.booking.visibility import (
    ALL_FIELD_NAMES,
    PRIVATE_COLUMNS,
    SHAREABLE_COLUMNS,
    parse_field,
    public_fields,
)


@dataclass(frozen=True)
class Disclosure:
    fields: FrozenSet[str]
    contact_info: Optional[dict] = None
    is_party: bool = False


def visible_fields(booking, viewer_id: Optional[str]) -> Disclosure:
    status = parse_status(booking.status)

    if viewer_id is not None and role_of(booking, viewer_id) is not None:
        contact_info = None
        if status in CONTACT_SHARING_STATUSES:
            contact_info = {
                "sender": booking.sender_contact_info or {},
                "receiver": booking.receiver_contact_info or {},
            }
        return Disclosure(
            fields=ALL_FIELD_NAMES, contact_info=contact_info, is_party=True
        )

    if status not in PUBLISHED_STATUSES:
        return Disclosure(fields=frozenset())
    return Disclosure(
        fields=frozenset(f.value for f in public_fields(booking.public_visibility_settings))
    )


def _field_values(booking, disclosure: Disclosure) -> dict:
    values = {}
    for name in sorted(disclosure.fields):
        field = parse_field(name)
        if field == PrivateField.CONTACT_INFO:
            continue  # carried separately, gated by status
        if isinstance(field, ShareableField):
            columns = SHAREABLE_COLUMNS[field]
        else:
            columns = PRIVATE_COLUMNS[field]
        for column in columns:
            values[column] = getattr(booking, column)
    return values


def view_booking(db: Session, *, booking_id: str, viewer_id: Optional[str]) -> dict:
    """Build the disclosure-filtered view of a live booking."""
    booking = crud_booking.get(db, booking_id)
    if booking is None:
        raise BookingNotFound(booking_id)

    disclosure = visible_fields(booking, viewer_id)
    values = _field_values(booking, disclosure)
    if disclosure.is_party:
        values.update(
            sender_id=booking.sender_id,
            receiver_id=booking.receiver_id,
            concept_ids=booking.concept_ids or [],
            sender_confirmed=booking.sender_confirmed,
            receiver_confirmed=booking.receiver_confirmed,
            public_visibility_settings=booking.public_visibility_settings or {},
            is_public_after_approval=booking.is_public_after_approval,
            version=booking.version,
        )
    return {
        "id": booking.id,
        "status": booking.status,
        "is_party": disclosure.is_party,
        "fields": values,
        "contact_info": disclosure.contact_info,
    }
