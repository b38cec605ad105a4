"""
Application error taxonomy.

Services raise these; the handlers in app.main turn them into the
`{"message": ..., "error": ...}` envelope with the matching HTTP status.
"""

from typing import Any, Optional


class AppError(Exception):
    status_code: int = 500

    def __init__(self, message: str, error: Optional[Any] = None) -> None:
        self.message = message
        self.error = error
        super().__init__(message)


class ValidationFailed(AppError):
    status_code = 400


class InsufficientInventory(AppError):
    status_code = 400

    def __init__(self, message: str = "Not enough tickets available", error: Optional[Any] = None) -> None:
        super().__init__(message, error)


class DuplicateBooking(AppError):
    status_code = 400

    def __init__(self, message: str = "You have already booked this event", error: Optional[Any] = None) -> None:
        super().__init__(message, error)


class BookingStateError(AppError):
    status_code = 400


class Unauthenticated(AppError):
    status_code = 401

    def __init__(self, message: str = "Authentication required", error: Optional[Any] = None) -> None:
        super().__init__(message, error)


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409


class InventoryConflict(Conflict):
    pass
