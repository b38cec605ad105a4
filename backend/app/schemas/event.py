"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.event import EventCategory


def _clean_tags(value):
    # Accept a list or the comma-separated string the admin form submits
    if value is None:
        return value
    if isinstance(value, str):
        value = value.split(",")
    cleaned = []
    for tag in value:
        tag = str(tag).strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: EventCategory
    date: datetime
    venue: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., ge=0)
    capacity: int = Field(..., ge=1, le=1_000_000)
    available_tickets: Optional[int] = Field(None, ge=0)
    image: Optional[str] = Field(None, max_length=500)
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return _clean_tags(value)

    @field_validator("name", "venue")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def check_inventory(self) -> "EventCreate":
        if self.available_tickets is not None and self.available_tickets > self.capacity:
            raise ValueError("available_tickets cannot exceed capacity")
        return self


class EventUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[EventCategory] = None
    date: Optional[datetime] = None
    venue: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[float] = Field(None, ge=0)
    capacity: Optional[int] = Field(None, ge=1, le=1_000_000)
    available_tickets: Optional[int] = Field(None, ge=0)
    image: Optional[str] = Field(None, max_length=500)
    tags: Optional[list[str]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return _clean_tags(value)


class EventCreator(BaseModel):
    id: int
    username: str

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    id: int
    name: str
    description: str
    category: str
    date: datetime
    venue: str
    price: float
    image: str
    capacity: int
    available_tickets: int
    tags: list[str]
    created_by: int
    creator: Optional[EventCreator] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class EventDeleteResponse(BaseModel):
    message: str
    event_id: int
    bookings_deleted: int
