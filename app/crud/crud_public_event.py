# app/crud/crud_public_event.py
import math
from typing import Optional
from sqlalchemy.orm import Session

from app.models.public_event import PublicEvent


def create(db: Session, **fields) -> PublicEvent:
    db_obj = PublicEvent(**fields)
    db.add(db_obj)
    return db_obj


def get(db: Session, event_id: str) -> Optional[PublicEvent]:
    return db.query(PublicEvent).filter(PublicEvent.id == event_id).first()


def get_by_source_booking(db: Session, booking_id: str) -> Optional[PublicEvent]:
    return (
        db.query(PublicEvent)
        .filter(PublicEvent.source_booking_id == booking_id)
        .first()
    )


def list_events(
    db: Session,
    artist_id: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    page_size = min(page_size, 50)
    query = db.query(PublicEvent)
    if artist_id:
        query = query.filter(PublicEvent.artist_id == artist_id)

    total_count = query.count()
    total_pages = math.ceil(total_count / page_size) if page_size > 0 else 0
    events = (
        query.order_by(PublicEvent.event_date.desc(), PublicEvent.published_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "events": events,
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total_count": total_count,
            "total_pages": total_pages,
        },
    }
