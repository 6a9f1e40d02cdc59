# app/services/booking/visibility.py
"""
Field visibility policy.

Public visibility is a map from ShareableField to bool, captured when the
parties confirm. PrivateField members may appear in the map but are
always stored as False.
"""
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from app.schemas.booking import ShareableField, PrivateField, PartyRole
from app.services.booking.errors import BookingValidationError

# Booking columns disclosed by each shareable field
SHAREABLE_COLUMNS: Dict[ShareableField, tuple] = {
    ShareableField.TITLE: ("title",),
    ShareableField.DESCRIPTION: ("description",),
    ShareableField.EVENT_DATE: ("event_date", "end_date"),
    ShareableField.TIME: ("start_time", "end_time"),
    ShareableField.VENUE: ("venue",),
    ShareableField.ADDRESS: ("address",),
    ShareableField.TICKET_PRICE: ("ticket_price",),
    ShareableField.AUDIENCE_ESTIMATE: ("audience_estimate",),
    ShareableField.PORTFOLIO: (),
    ShareableField.ARTIST_BIO: (),
}

PRIVATE_COLUMNS: Dict[PrivateField, tuple] = {
    PrivateField.PRICE: ("pricing_mode", "artist_fee", "door_percentage"),
    PrivateField.CONTACT_INFO: ("sender_contact_info", "receiver_contact_info"),
    PrivateField.PERSONAL_MESSAGE: ("personal_message",),
    PrivateField.TECH_SPEC: ("tech_spec",),
    PrivateField.HOSPITALITY_RIDER: ("hospitality_rider",),
}

# Every field identifier a party can see on a booking they belong to
ALL_FIELD_NAMES = frozenset(
    [f.value for f in ShareableField] + [f.value for f in PrivateField]
)

FIELD_LABELS = {
    ShareableField.TITLE: "Title",
    ShareableField.DESCRIPTION: "Description",
    ShareableField.EVENT_DATE: "Date",
    ShareableField.TIME: "Time",
    ShareableField.VENUE: "Venue",
    ShareableField.ADDRESS: "Address",
    ShareableField.TICKET_PRICE: "Ticket price",
    ShareableField.AUDIENCE_ESTIMATE: "Expected audience",
    ShareableField.PORTFOLIO: "Portfolio",
    ShareableField.ARTIST_BIO: "Artist bio",
    PrivateField.PRICE: "Artist fee",
    PrivateField.CONTACT_INFO: "Contact information",
    PrivateField.PERSONAL_MESSAGE: "Personal message",
    PrivateField.TECH_SPEC: "Technical specification",
    PrivateField.HOSPITALITY_RIDER: "Hospitality rider",
}


def parse_field(name: str):
    """Resolve a field identifier to its ShareableField or PrivateField member."""
    for enum_cls in (ShareableField, PrivateField):
        try:
            return enum_cls(name)
        except ValueError:
            continue
    raise BookingValidationError(name, "unknown_visibility_field")


def sanitize_settings(raw: Mapping[str, bool]) -> Dict[str, bool]:
    """Validate keys and force always-private fields to False."""
    cleaned: Dict[str, bool] = {}
    for name, value in (raw or {}).items():
        field = parse_field(name)
        if isinstance(field, PrivateField):
            cleaned[field.value] = False
        else:
            cleaned[field.value] = bool(value)
    return cleaned


def merge_settings(
    existing: Optional[Mapping[str, bool]], incoming: Mapping[str, bool]
) -> Dict[str, bool]:
    """
    Merge one party's settings into those of the party that confirmed
    before it. ``existing`` is None when nobody has confirmed yet.

    A key is public only if every confirming party marked it public; a key
    a party leaves out counts as not public for that party.
    """
    incoming = sanitize_settings(incoming)
    if existing is None:
        return incoming
    return {
        name: bool(existing.get(name)) and incoming.get(name, False)
        for name in sorted(set(existing) | set(incoming))
    }


def public_fields(settings: Optional[Mapping[str, bool]]) -> List[ShareableField]:
    """Shareable fields marked public, in declaration order."""
    settings = settings or {}
    return [f for f in ShareableField if settings.get(f.value) is True]


def is_public(settings: Optional[Mapping[str, bool]]) -> bool:
    return bool(public_fields(settings))


def build_agreement_summary(
    settings: Mapping[str, bool], confirmed_by: PartyRole, actor_id: str
) -> dict:
    """Snapshot of what will and will not be disclosed, kept for audit."""
    shared = public_fields(settings)
    withheld = [f for f in ShareableField if f not in shared]
    lines = ["Approved with the following public information:"]
    lines += [f"- {FIELD_LABELS[f]}" for f in shared] or ["- (none)"]
    lines.append("Private information (visible to the parties only):")
    lines += [f"- {FIELD_LABELS[f]}" for f in PrivateField]
    return {
        "public_fields": [f.value for f in shared],
        "private_fields": [f.value for f in withheld],
        "always_private_fields": [f.value for f in PrivateField],
        "confirmed_by": confirmed_by.value,
        "confirmed_by_user": actor_id,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "lines": lines,
    }
