"""
Async HTTP client for the Event Ticketing API.

Any non-2xx response raises ApiError with the server's envelope message, so
callers never have to look at status codes to show an error.
"""

from typing import Any, Optional

import httpx

from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "Something went wrong"


class ApiError(Exception):
    def __init__(self, message: str, status_code: int, error: Any = None) -> None:
        self.message = message
        self.status_code = status_code
        self.error = error
        super().__init__(message)


class EventTicketingClient:
    """
    Thin wrapper over httpx.AsyncClient.

    `base_url` points at the API prefix, e.g. "http://localhost:8000/api/v1".
    A `transport` can be passed to talk to an in-process ASGI app.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self.token = token
        self.user: Optional[dict] = None
        self._http = httpx.AsyncClient(base_url=base_url.rstrip("/"), transport=transport, timeout=timeout)

    async def __aenter__(self) -> "EventTicketingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and (self.user or {}).get("role") == "admin"

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = await self._http.request(method, path, headers=headers, **kwargs)

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.is_error:
            message = DEFAULT_ERROR_MESSAGE
            error = None
            if isinstance(data, dict):
                message = data.get("message") or message
                error = data.get("error")
            logger.debug("api_error", method=method, path=path, status_code=response.status_code)
            raise ApiError(message, response.status_code, error)
        return data

    # Auth

    async def register(self, username: str, email: str, password: str) -> dict:
        return await self._request(
            "POST",
            "/auth/register",
            json={"username": username, "email": email, "password": password},
        )

    async def login(self, email: str, password: str) -> dict:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        self.user = data.get("user")
        return data

    def logout(self) -> None:
        self.token = None
        self.user = None

    # Events

    async def list_events(self, **params) -> dict:
        return await self._request("GET", "/events", params=params)

    async def get_event(self, event_id: int) -> dict:
        return await self._request("GET", f"/events/{event_id}")

    async def create_event(self, event: dict) -> dict:
        return await self._request("POST", "/events", json=event)

    async def update_event(self, event_id: int, changes: dict) -> dict:
        return await self._request("PUT", f"/events/{event_id}", json=changes)

    async def delete_event(self, event_id: int) -> dict:
        return await self._request("DELETE", f"/events/{event_id}")

    # Bookings

    async def get_my_bookings(self) -> list[dict]:
        return await self._request("GET", "/bookings/my-bookings")

    async def create_booking(self, event_id: int) -> dict:
        return await self._request("POST", "/bookings", json={"eventId": event_id})

    async def cancel_booking(self, booking_id: int) -> dict:
        return await self._request("DELETE", f"/bookings/{booking_id}")
