# app/main.py
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.api.v1.api import api_router
from app.core.config import settings
from app.services.booking.errors import (
    AlreadyConfirmed,
    AlreadyPublished,
    BookingError,
    BookingNotFound,
    BookingValidationError,
    ConcurrentModification,
    InvalidStatus,
    Unauthorized,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    BookingNotFound: 404,
    Unauthorized: 403,
    InvalidStatus: 409,
    AlreadyConfirmed: 409,
    AlreadyPublished: 409,
    ConcurrentModification: 409,
    BookingValidationError: 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Booking service starting up (env={settings.ENV})")
    yield
    logger.info("Booking service shutting down")


app = FastAPI(
    title="Booking Lifecycle Microservice",
    version="1.0.0",
    description="""
        Negotiation, dual approval and publication of bookings between
        event organizers (senders) and artists (receivers).

        ## Authentication

        Endpoints require JWT authentication via the `Authorization: Bearer <token>` header,
        except the public event listing and the disclosure-filtered booking view.
        """,
    lifespan=lifespan,
)

origins = [
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    status_code = ERROR_STATUS_CODES.get(type(exc), 400)
    logger.warning(
        f"{request.method} {request.url.path} rejected: {exc.code} {exc.context}"
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "context": exc.context},
    )


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    logger.error(f"Database unavailable on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "STORE_UNAVAILABLE", "context": {}},
    )


@app.exception_handler(httpx.HTTPError)
async def upstream_error_handler(request: Request, exc: httpx.HTTPError):
    logger.error(f"Upstream service error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content={"error": "UPSTREAM_UNAVAILABLE", "context": {}},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "Booking Service is running"}
