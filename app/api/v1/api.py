# app/api/v1/api.py

from fastapi import APIRouter
from app.api.v1.endpoints import (
    bookings,
    health,
    internals,
    public_events,
)

# Main router for the v1 API
api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(bookings.router)
api_router.include_router(public_events.router)
api_router.include_router(internals.router)
