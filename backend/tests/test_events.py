"""
Tests for event endpoints: public reads, admin writes, capacity changes and
the delete cascade.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from app.models.event import Event


def _event_payload(**overrides) -> dict:
    payload = {
        "name": "Python Conference 2026",
        "description": "Annual Python gathering",
        "category": "Technology",
        "date": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        "venue": "Convention Center",
        "price": 49.5,
        "capacity": 500,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, admin_headers):
    """Admin can create an event; inventory starts full."""
    response = await client.post("/api/v1/events", json=_event_payload(), headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Python Conference 2026"
    assert data["capacity"] == 500
    assert data["available_tickets"] == 500
    assert data["image"] == "default-event.jpg"
    assert data["creator"]["username"] == "adminuser"


@pytest.mark.asyncio
async def test_create_event_normalizes_tags(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/events",
        json=_event_payload(tags="python, conference,python, "),
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["tags"] == ["python", "conference"]


@pytest.mark.asyncio
async def test_create_event_as_regular_user_forbidden(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/events", json=_event_payload(), headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Admin privileges required"


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/events", json=_event_payload())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_event_in_the_past(client: AsyncClient, admin_headers):
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    response = await client.post("/api/v1/events", json=_event_payload(date=past), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Event date must be in the future"


@pytest.mark.asyncio
async def test_create_event_available_above_capacity(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/events",
        json=_event_payload(capacity=10, available_tickets=11),
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_event_unknown_category(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/events",
        json=_event_payload(category="Cooking"),
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


@pytest.mark.asyncio
async def test_list_events(client: AsyncClient, test_event):
    """Listing is public and includes live inventory."""
    response = await client.get("/api/v1/events")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["cached"] is False
    assert data["events"][0]["id"] == test_event.id
    assert data["events"][0]["available_tickets"] == 10


@pytest.mark.asyncio
async def test_list_events_hides_past_by_default(client: AsyncClient, db_session, test_event, admin_user):
    past = Event(
        name="Last Year",
        description="Already happened",
        category="Arts",
        date=datetime.now(timezone.utc) - timedelta(days=365),
        venue="Old Hall",
        price=10,
        capacity=5,
        available_tickets=5,
        tags=[],
        created_by=admin_user.id,
    )
    db_session.add(past)
    await db_session.commit()

    upcoming = (await client.get("/api/v1/events")).json()
    assert [e["name"] for e in upcoming["events"]] == ["Test Concert"]

    everything = (await client.get("/api/v1/events", params={"upcoming_only": False})).json()
    assert everything["total"] == 2
    # Soonest first
    assert everything["events"][0]["name"] == "Last Year"


@pytest.mark.asyncio
async def test_list_events_pagination_and_category(client: AsyncClient, admin_headers):
    for i, category in enumerate(["Music", "Sports", "Music"]):
        date = (datetime.now(timezone.utc) + timedelta(days=10 + i)).isoformat()
        response = await client.post(
            "/api/v1/events",
            json=_event_payload(name=f"Event {i}", category=category, date=date),
            headers=admin_headers,
        )
        assert response.status_code == 201

    page = (await client.get("/api/v1/events", params={"page": 2, "page_size": 2})).json()
    assert page["total"] == 3
    assert [e["name"] for e in page["events"]] == ["Event 2"]

    music = (await client.get("/api/v1/events", params={"category": "Music"})).json()
    assert music["total"] == 2
    assert {e["category"] for e in music["events"]} == {"Music"}


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Test Concert"
    assert data["price"] == 25.0


@pytest.mark.asyncio
async def test_get_nonexistent_event(client: AsyncClient):
    response = await client.get("/api/v1/events/99999")
    assert response.status_code == 404
    assert response.json() == {"message": "Event not found"}


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient):
    response = await client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert "message" in response.json()


@pytest.mark.asyncio
async def test_update_event_fields(client: AsyncClient, admin_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"name": "Renamed Concert", "price": 30},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Renamed Concert"
    assert data["price"] == 30.0
    assert data["available_tickets"] == 10


@pytest.mark.asyncio
async def test_update_event_as_regular_user_forbidden(client: AsyncClient, auth_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"name": "Hijacked"},
        headers=auth_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_nonexistent_event(client: AsyncClient, admin_headers):
    response = await client.put("/api/v1/events/99999", json={"name": "Ghost"}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_price_change_keeps_booked_price(
    client: AsyncClient, admin_headers, auth_headers, test_event
):
    event_id = test_event.id
    booked = await client.post("/api/v1/bookings", json={"eventId": event_id}, headers=auth_headers)
    assert booked.status_code == 201

    await client.put(f"/api/v1/events/{event_id}", json={"price": 99}, headers=admin_headers)

    bookings = (await client.get("/api/v1/bookings/my-bookings", headers=auth_headers)).json()
    assert bookings[0]["total_price"] == 25.0
    assert bookings[0]["event"]["price"] == 99.0


@pytest.mark.asyncio
async def test_capacity_change_preserves_booked_count(
    client: AsyncClient, admin_headers, auth_headers, other_headers, test_event
):
    event_id = test_event.id
    for headers in (auth_headers, other_headers):
        response = await client.post("/api/v1/bookings", json={"eventId": event_id}, headers=headers)
        assert response.status_code == 201

    grown = await client.put(f"/api/v1/events/{event_id}", json={"capacity": 15}, headers=admin_headers)
    assert grown.status_code == 200
    assert grown.json()["capacity"] == 15
    assert grown.json()["available_tickets"] == 13

    shrunk = await client.put(f"/api/v1/events/{event_id}", json={"capacity": 2}, headers=admin_headers)
    assert shrunk.status_code == 200
    assert shrunk.json()["available_tickets"] == 0


@pytest.mark.asyncio
async def test_capacity_below_booked_count_rejected(
    client: AsyncClient, admin_headers, auth_headers, other_headers, test_event
):
    event_id = test_event.id
    for headers in (auth_headers, other_headers):
        await client.post("/api/v1/bookings", json={"eventId": event_id}, headers=headers)

    response = await client.put(f"/api/v1/events/{event_id}", json={"capacity": 1}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Capacity cannot be lower than the number of tickets already booked"

    event = (await client.get(f"/api/v1/events/{event_id}")).json()
    assert event["capacity"] == 10
    assert event["available_tickets"] == 8


@pytest.mark.asyncio
async def test_explicit_available_above_capacity_rejected(client: AsyncClient, admin_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"available_tickets": 11},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_explicit_available_cannot_free_booked_tickets(
    client: AsyncClient, admin_headers, auth_headers, test_event
):
    """Free tickets may not be raised over the ones held by bookings; the owner can still cancel."""
    event_id = test_event.id
    booked = await client.post("/api/v1/bookings", json={"eventId": event_id}, headers=auth_headers)
    assert booked.status_code == 201

    response = await client.put(
        f"/api/v1/events/{event_id}",
        json={"available_tickets": 10},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["message"] == "available_tickets cannot exceed capacity minus tickets already booked"

    event = (await client.get(f"/api/v1/events/{event_id}")).json()
    assert event["capacity"] == 10
    assert event["available_tickets"] == 9

    cancel = await client.delete(f"/api/v1/bookings/{booked.json()['id']}", headers=auth_headers)
    assert cancel.status_code == 200
    event = (await client.get(f"/api/v1/events/{event_id}")).json()
    assert event["available_tickets"] == 10


@pytest.mark.asyncio
async def test_explicit_available_with_capacity_respects_bookings(
    client: AsyncClient, admin_headers, auth_headers, test_event
):
    event_id = test_event.id
    booked = await client.post("/api/v1/bookings", json={"eventId": event_id}, headers=auth_headers)

    too_many = await client.put(
        f"/api/v1/events/{event_id}",
        json={"capacity": 12, "available_tickets": 12},
        headers=admin_headers,
    )
    assert too_many.status_code == 409
    event = (await client.get(f"/api/v1/events/{event_id}")).json()
    assert (event["capacity"], event["available_tickets"]) == (10, 9)

    ok = await client.put(
        f"/api/v1/events/{event_id}",
        json={"capacity": 12, "available_tickets": 11},
        headers=admin_headers,
    )
    assert ok.status_code == 200
    assert (ok.json()["capacity"], ok.json()["available_tickets"]) == (12, 11)

    cancel = await client.delete(f"/api/v1/bookings/{booked.json()['id']}", headers=auth_headers)
    assert cancel.status_code == 200
    event = (await client.get(f"/api/v1/events/{event_id}")).json()
    assert event["available_tickets"] == 12


@pytest.mark.asyncio
async def test_explicit_available_may_withhold_tickets(
    client: AsyncClient, admin_headers, auth_headers, test_event
):
    event_id = test_event.id
    booked = await client.post("/api/v1/bookings", json={"eventId": event_id}, headers=auth_headers)

    response = await client.put(
        f"/api/v1/events/{event_id}",
        json={"available_tickets": 5},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["available_tickets"] == 5

    cancel = await client.delete(f"/api/v1/bookings/{booked.json()['id']}", headers=auth_headers)
    assert cancel.status_code == 200
    event = (await client.get(f"/api/v1/events/{event_id}")).json()
    assert event["available_tickets"] == 6


@pytest.mark.asyncio
async def test_update_event_into_the_past_rejected(client: AsyncClient, admin_headers, test_event):
    event_id = test_event.id
    before = (await client.get(f"/api/v1/events/{event_id}")).json()["date"]

    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    response = await client.put(f"/api/v1/events/{event_id}", json={"date": past}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Event date must be in the future"

    assert (await client.get(f"/api/v1/events/{event_id}")).json()["date"] == before


@pytest.mark.asyncio
async def test_update_event_to_future_date(client: AsyncClient, admin_headers, test_event):
    later = (datetime.now(timezone.utc) + timedelta(days=90)).isoformat()
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"date": later},
        headers=admin_headers,
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_rejects_null_name(client: AsyncClient, admin_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"name": None},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_event_cascades_bookings(
    client: AsyncClient, admin_headers, auth_headers, other_headers, test_event
):
    """Deleting an event removes it and every booking that referenced it."""
    event_id = test_event.id
    for headers in (auth_headers, other_headers):
        response = await client.post("/api/v1/bookings", json={"eventId": event_id}, headers=headers)
        assert response.status_code == 201

    response = await client.delete(f"/api/v1/events/{event_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {
        "message": "Event and related bookings deleted successfully",
        "event_id": event_id,
        "bookings_deleted": 2,
    }

    assert (await client.get(f"/api/v1/events/{event_id}")).status_code == 404
    for headers in (auth_headers, other_headers):
        bookings = await client.get("/api/v1/bookings/my-bookings", headers=headers)
        assert bookings.json() == []


@pytest.mark.asyncio
async def test_delete_event_without_bookings(client: AsyncClient, admin_headers, test_event):
    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["bookings_deleted"] == 0


@pytest.mark.asyncio
async def test_delete_event_as_regular_user_forbidden(client: AsyncClient, auth_headers, test_event):
    event_id = test_event.id
    response = await client.delete(f"/api/v1/events/{event_id}", headers=auth_headers)
    assert response.status_code == 403
    assert (await client.get(f"/api/v1/events/{event_id}")).status_code == 200


@pytest.mark.asyncio
async def test_delete_nonexistent_event(client: AsyncClient, admin_headers):
    response = await client.delete("/api/v1/events/99999", headers=admin_headers)
    assert response.status_code == 404
