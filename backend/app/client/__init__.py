"""
Client-side booking flow: an HTTP client for the API and the view state of
the event detail and "my bookings" screens.
"""

from app.client.api import ApiError, EventTicketingClient
from app.client.views import EventDetailView, MyBookingsView, Notification, Notifier

__all__ = [
    "ApiError",
    "EventTicketingClient",
    "EventDetailView",
    "MyBookingsView",
    "Notification",
    "Notifier",
]
