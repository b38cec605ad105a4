"""
Booking model representing a user's claim on one ticket to an event.

Key design decisions:
- Unique constraint on (user_id, event_id) is the authority on duplicate bookings
- Cancellation deletes the row (after restoring inventory), so re-booking works
- total_price is frozen at creation time
- ON DELETE CASCADE from events: deleting an event removes its bookings
"""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def cancellable(self) -> bool:
        return self in (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tickets = Column(Integer, nullable=False, default=1)
    total_price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    booking_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="bookings")
    event = relationship("Event", back_populates="bookings", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_user_event_booking"),
        CheckConstraint("tickets > 0", name="check_booking_tickets_positive"),
        CheckConstraint("total_price >= 0", name="check_booking_total_price_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name="check_booking_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, event={self.event_id}, status={self.status})>"
