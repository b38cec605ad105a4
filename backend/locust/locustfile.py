"""
Locust Load Test Suite

Event creation needs an admin account. Create one first:
  python scripts/create_admin.py --email admin@test.com --username loadadmin --password adminpass123
and export ADMIN_EMAIL / ADMIN_PASSWORD if they differ from those defaults.

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Oversell check on the last tickets
  locust -f locustfile.py --tags throughput   # Event listing cache
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
import string
from datetime import datetime, timedelta, timezone

from locust import HttpUser, between, events, tag, task

ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@test.com")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "adminpass123")
CONCURRENCY_CAPACITY = 10

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT_ID = None


def random_email():
    return f"load_{random.randint(10000, 99999)}_{random_suffix()}@test.com"


def random_username():
    return "u_" + random_suffix()


def random_suffix():
    return "".join(random.choices(string.ascii_lowercase, k=8))


def event_payload(name, capacity, days_ahead=30):
    return {
        "name": name,
        "description": "Load test event",
        "category": random.choice(["Music", "Sports", "Arts", "Business", "Technology", "Other"]),
        "date": (datetime.now(timezone.utc) + timedelta(days=days_ahead)).isoformat(),
        "venue": "Test Venue",
        "price": 20,
        "capacity": capacity,
    }


def sign_up(client):
    """Register a fresh user and return auth headers ({} on failure)."""
    email = random_email()
    client.post("/api/v1/auth/register", json={
        "email": email,
        "username": random_username(),
        "password": "loadtest123",
    })
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": "loadtest123"})
    if resp.status_code == 200:
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return {}


def admin_headers(client):
    resp = client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    if resp.status_code == 200:
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return {}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Admin account for event setup: {ADMIN_EMAIL}")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 tickets

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT capacity, available_tickets FROM events WHERE id = X;
      SELECT COUNT(*) FROM bookings WHERE event_id = X;
    available_tickets + bookings must equal capacity, bookings <= 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_EVENT_ID

        if CONCURRENCY_EVENT_ID is None:
            headers = admin_headers(self.client)
            if headers:
                resp = self.client.post(
                    "/api/v1/events",
                    json=event_payload("Concurrency Test Event", CONCURRENCY_CAPACITY),
                    headers=headers,
                )
                if resp.status_code == 201 and CONCURRENCY_EVENT_ID is None:
                    CONCURRENCY_EVENT_ID = resp.json()["id"]
                    print(f"\nCreated event {CONCURRENCY_EVENT_ID} with {CONCURRENCY_CAPACITY} tickets\n")

        self.headers = sign_up(self.client)

    @tag("concurrency")
    @task
    def book_last_tickets(self):
        """All users fight for the same 10 tickets."""
        if not CONCURRENCY_EVENT_ID or not self.headers:
            return

        with self.client.post(
            "/api/v1/bookings",
            json={"eventId": CONCURRENCY_EVENT_ID},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400:
                resp.success()  # Expected: sold out or already booked
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. With REDIS_ENABLED=false on the API, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(
            f"/api/v1/events?page={page}&page_size=20",
            name="/api/v1/events [cached]",
        )
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    The API must answer every request with a proper error code and envelope.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = sign_up(self.client)

    def _expect(self, resp, codes):
        if resp.status_code in codes and "message" in resp.json():
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_event_id(self):
        with self.client.post(
            "/api/v1/bookings",
            json={"eventId": 999999},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def missing_event_id(self):
        with self.client.post(
            "/api/v1/bookings",
            json={"tickets": 3},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/bookings",
            data="not json at all",
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/bookings", json={"eventId": 1}, catch_response=True) as resp:
            self._expect(resp, [401])

    @tag("edge")
    @task
    def non_admin_create_event(self):
        with self.client.post(
            "/api/v1/events",
            json=event_payload("Not allowed", 10),
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [403])

    @tag("edge")
    @task
    def cancel_unknown_booking(self):
        with self.client.delete(
            "/api/v1/bookings/999999",
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly browsing, some bookings, a few cancellations.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = sign_up(self.client)
        self.booking_ids = []

    @task(50)
    def browse_events(self):
        resp = self.client.get("/api/v1/events?page=1&page_size=20")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @task(10)
    def book_ticket(self):
        if not EVENT_IDS or not self.headers:
            return
        with self.client.post(
            "/api/v1/bookings",
            json={"eventId": random.choice(EVENT_IDS)},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                self.booking_ids.append(resp.json()["id"])
                resp.success()
            elif resp.status_code in (400, 404):
                resp.success()

    @task(5)
    def my_bookings(self):
        if self.headers:
            self.client.get("/api/v1/bookings/my-bookings", headers=self.headers)

    @task(3)
    def cancel_booking(self):
        if self.booking_ids:
            booking_id = self.booking_ids.pop(random.randrange(len(self.booking_ids)))
            self.client.delete(
                f"/api/v1/bookings/{booking_id}",
                headers=self.headers,
                name="/api/v1/bookings/{id}",
            )
