"""
View state for the booking screens.

Nothing here is optimistic: local state only changes after the server has
confirmed a call, so a failure never needs a rollback. The server stays the
source of truth; what a view holds can go stale (a cancellation does not
refresh any other view's ticket count until it is loaded again).
"""

from dataclasses import dataclass, field
from typing import Optional

from app.client.api import ApiError, EventTicketingClient
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"  # default, destructive


@dataclass
class Notifier:
    """Collects transient notifications for the UI to display."""

    notifications: list[Notification] = field(default_factory=list)

    def success(self, title: str, description: str) -> None:
        self.notifications.append(Notification(title, description))

    def error(self, title: str, description: str) -> None:
        self.notifications.append(Notification(title, description, variant="destructive"))

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None


class EventDetailView:
    def __init__(
        self,
        client: EventTicketingClient,
        event_id: int,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.client = client
        self.event_id = event_id
        self.notifier = notifier or Notifier()
        self.event: Optional[dict] = None
        self.is_booked = False
        self.loading = False
        self.booking_in_progress = False

    async def load(self) -> None:
        self.loading = True
        try:
            self.event = await self.client.get_event(self.event_id)
            if self.client.is_authenticated:
                await self._check_booked()
        except ApiError as e:
            self.notifier.error("Error", f"Failed to load event details: {e.message}")
        finally:
            self.loading = False

    async def _check_booked(self) -> None:
        # Advisory only; the unique (user, event) constraint is what actually decides
        try:
            bookings = await self.client.get_my_bookings()
        except ApiError as e:
            logger.warning("booking_status_check_failed", event_id=self.event_id, error=e.message)
            return
        self.is_booked = any(b["event_id"] == self.event_id for b in bookings)

    async def book(self) -> bool:
        if not self.client.is_authenticated:
            self.notifier.error("Authentication Required", "Please log in to book this event.")
            return False

        self.booking_in_progress = True
        try:
            await self.client.create_booking(self.event_id)
        except ApiError as e:
            self.notifier.error("Booking Failed", e.message)
            return False
        finally:
            self.booking_in_progress = False

        self.is_booked = True
        if self.event is not None:
            self.event = {**self.event, "available_tickets": self.event["available_tickets"] - 1}
        self.notifier.success("Booking Successful", "Your event has been booked successfully!")
        return True


class MyBookingsView:
    def __init__(self, client: EventTicketingClient, notifier: Optional[Notifier] = None) -> None:
        self.client = client
        self.notifier = notifier or Notifier()
        self.bookings: list[dict] = []
        self.loading = False
        self.cancelling_id: Optional[int] = None

    async def load(self) -> None:
        self.loading = True
        try:
            self.bookings = await self.client.get_my_bookings()
        except ApiError as e:
            self.notifier.error("Error", f"Failed to load your bookings: {e.message}")
        finally:
            self.loading = False

    async def cancel(self, booking_id: int) -> bool:
        self.cancelling_id = booking_id
        try:
            await self.client.cancel_booking(booking_id)
        except ApiError as e:
            self.notifier.error("Cancellation Failed", e.message)
            return False
        finally:
            self.cancelling_id = None

        self.bookings = [b for b in self.bookings if b["id"] != booking_id]
        self.notifier.success("Booking Cancelled", "Your booking has been cancelled successfully.")
        return True
