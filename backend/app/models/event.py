"""
Event model with ticket inventory tracking.

Key design decisions:
- `available_tickets` is denormalized (avoids COUNT over bookings on every read)
  and only ever changed through conditional UPDATEs in the services
- CHECK constraints keep 0 <= available_tickets <= capacity at the DB level
- Index on `date` for the listing query, on `category` for filtering
"""

import enum

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class EventCategory(str, enum.Enum):
    MUSIC = "Music"
    SPORTS = "Sports"
    ARTS = "Arts"
    BUSINESS = "Business"
    TECHNOLOGY = "Technology"
    OTHER = "Other"


_CATEGORY_VALUES = ", ".join(f"'{c.value}'" for c in EventCategory)


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(20), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    venue = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    image = Column(String(500), nullable=False, default="default-event.jpg")
    capacity = Column(Integer, nullable=False)
    available_tickets = Column(Integer, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    creator = relationship("User", back_populates="events", lazy="joined")
    bookings = relationship(
        "Booking",
        back_populates="event",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("available_tickets >= 0", name="check_available_tickets_non_negative"),
        CheckConstraint("capacity > 0", name="check_capacity_positive"),
        CheckConstraint("available_tickets <= capacity", name="check_available_lte_capacity"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint(f"category IN ({_CATEGORY_VALUES})", name="check_event_category"),
        Index("ix_events_date", "date"),
        Index("ix_events_category_date", "category", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, available={self.available_tickets}/{self.capacity})>"
