# app/api/v1/endpoints/public_events.py
"""Public event listings. No authentication required."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.crud import crud_public_event
from app.schemas.public_event import PublicEventListResult, PublicEventResponse

router = APIRouter(prefix="/public-events", tags=["Public Events"])


@router.get("", response_model=PublicEventListResult)
def list_public_events(
    artist_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return crud_public_event.list_events(
        db, artist_id=artist_id, page=page, page_size=page_size
    )


@router.get("/{eventId}", response_model=PublicEventResponse)
def get_public_event(eventId: str, db: Session = Depends(get_db)):
    event = crud_public_event.get(db, eventId)
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Public event not found"
        )
    return event
