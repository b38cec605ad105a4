from app.schemas.user import UserCreate, UserResponse, UserLogin, Token
from app.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventListResponse,
    EventDeleteResponse,
)
from app.schemas.booking import BookingCreate, BookingResponse, BookingCancelResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventUpdate", "EventResponse", "EventListResponse", "EventDeleteResponse",
    "BookingCreate", "BookingResponse", "BookingCancelResponse",
]
