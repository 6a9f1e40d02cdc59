# app/models/__init__.py
# Import all models so Base.metadata knows every table

from app.db.base_class import Base
from app.models.booking import Booking
from app.models.booking_change import BookingChange
from app.models.booking_audit_log import BookingAuditLog
from app.models.booking_history import BookingHistory
from app.models.public_event import PublicEvent
