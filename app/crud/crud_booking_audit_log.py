# app/crud/crud_booking_audit_log.py
"""
CRUD operations for the booking audit trail.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session

from app.models.booking_audit_log import BookingAuditLog


def create_audit_entry(
    db: Session,
    *,
    booking_id: str,
    user_id: str,
    action: str,
    old_state: Optional[str] = None,
    new_state: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> BookingAuditLog:
    """Add an audit log entry to the current transaction."""
    entry = BookingAuditLog(
        booking_id=booking_id,
        user_id=user_id,
        action=action,
        old_state=old_state,
        new_state=new_state,
        action_metadata=metadata,  # 'metadata' maps to column 'action_metadata'
    )
    db.add(entry)
    return entry


def get_audit_log_for_booking(
    db: Session,
    booking_id: str,
    limit: int = 100,
) -> List[BookingAuditLog]:
    return (
        db.query(BookingAuditLog)
        .filter(BookingAuditLog.booking_id == booking_id)
        .order_by(BookingAuditLog.created_at.desc())
        .limit(limit)
        .all()
    )
