"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.event import EventResponse


class BookingCreate(BaseModel):
    # Quantity is not accepted; every booking is exactly one ticket
    event_id: int = Field(..., alias="eventId")

    model_config = {"populate_by_name": True}


class BookingResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    tickets: int
    total_price: float
    status: str
    booking_date: datetime
    event: Optional[EventResponse] = None

    model_config = {"from_attributes": True}


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
