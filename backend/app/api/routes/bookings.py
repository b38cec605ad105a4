"""
Booking endpoints. Every booking is a single ticket.
"""

import time

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AppError,
    DuplicateBooking,
    Forbidden,
    InsufficientInventory,
    InventoryConflict,
    NotFound,
)
from app.core.logging import get_logger
from app.core.metrics import booking_latency, record_booking_attempt, record_cancellation
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.booking import BookingCancelResponse, BookingCreate, BookingResponse
from app.services.booking_service import book_ticket, cancel_booking, get_user_bookings
from app.services.cache_service import invalidate_event_cache

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])

_BOOKING_OUTCOMES = {
    NotFound: "not_found",
    InsufficientInventory: "sold_out",
    DuplicateBooking: "duplicate",
}

_CANCEL_OUTCOMES = {
    NotFound: "not_found",
    Forbidden: "forbidden",
    InventoryConflict: "conflict",
}


def _outcome(exc: Exception, table: dict) -> str:
    for exc_type, label in table.items():
        if isinstance(exc, exc_type):
            return label
    return "error"


@router.get("/my-bookings", response_model=list[BookingResponse])
async def list_my_bookings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's bookings with their events, newest first."""
    return await get_user_bookings(db, user.id)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Book one ticket for an event.

    400 if the event is sold out or the caller already holds a booking for it,
    404 if the event does not exist.
    """
    start = time.perf_counter()
    try:
        booking = await book_ticket(db, user.id, booking_data.event_id)
    except AppError as e:
        record_booking_attempt(_outcome(e, _BOOKING_OUTCOMES))
        raise
    finally:
        booking_latency.observe(time.perf_counter() - start)

    record_booking_attempt("success")
    # Listing pages show available_tickets
    await invalidate_event_cache()
    return booking


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel (delete) one of the caller's bookings and release its ticket."""
    try:
        removed_id = await cancel_booking(db, booking_id, user.id)
    except AppError as e:
        record_cancellation(_outcome(e, _CANCEL_OUTCOMES))
        raise

    record_cancellation("success")
    await invalidate_event_cache()
    return BookingCancelResponse(message="Booking cancelled successfully", booking_id=removed_id)
