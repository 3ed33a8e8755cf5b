"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py --tags churn        # Book/cancel churn on one event
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

After a concurrency run, verify:
  SELECT COUNT(*) FROM bookings WHERE event_id = X;   -- must be <= max_seats
  SELECT booked FROM events WHERE id = X;             -- must equal the count
"""

import random
import string
from datetime import date, timedelta

from locust import HttpUser, task, between, tag, events

CONCURRENCY_SEATS = 10

# Shared state, filled in on test start
SHARED = {"instructor_id": None, "race_event_id": None, "churn_event_id": None}


def random_name():
    return "Attendee " + "".join(random.choices(string.ascii_uppercase, k=6))


def random_phone():
    return "".join(random.choices(string.digits, k=8))


def _create_event(client, title: str, max_seats: int):
    resp = client.post("/api/events", json={
        "title": title,
        "date": (date.today() + timedelta(days=7)).isoformat(),
        "time": "18:30",
        "duration": 60,
        "instructor": SHARED["instructor_id"],
        "maxSeats": max_seats,
    })
    return resp.json()["id"] if resp.status_code == 201 else None


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Setup: one instructor, one small event to race on, one to churn on."""
    from locust.clients import HttpSession

    client = HttpSession(base_url=environment.host, request_event=environment.events.request, user=None)
    resp = client.post("/api/instructors", json={"name": "Load Test Instructor"})
    if resp.status_code != 201:
        print(f"SETUP FAILED: could not create instructor ({resp.status_code})")
        return
    SHARED["instructor_id"] = resp.json()["id"]
    SHARED["race_event_id"] = _create_event(client, "Concurrency Test Event", CONCURRENCY_SEATS)
    SHARED["churn_event_id"] = _create_event(client, "Churn Test Event", 3)
    print(f"SETUP: race event {SHARED['race_event_id']} with {CONCURRENCY_SEATS} seats")


class ConcurrencyUser(HttpUser):
    """
    Concurrency: many users -> CONCURRENCY_SEATS seats.

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s
    Expect exactly CONCURRENCY_SEATS 201s; everything else 409 event_full.
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def book_limited_seats(self):
        event_id = SHARED["race_event_id"]
        if not event_id:
            return
        with self.client.post(
            "/api/bookings",
            json={"event": event_id, "name": random_name(), "countryCode": "+961", "phone": random_phone()},
            name="/api/bookings [race]",
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409 and resp.json().get("code") == "event_full":
                resp.success()  # Expected: event full
            else:
                resp.failure(f"Unexpected status {resp.status_code}")

    @tag("concurrency")
    @task(5)
    def list_events(self):
        self.client.get("/api/events")


class ChurnUser(HttpUser):
    """Book then cancel on a 3-seat event; `booked` must stay within [0, 3]."""
    wait_time = between(0, 0.2)

    @tag("churn")
    @task
    def book_and_cancel(self):
        event_id = SHARED["churn_event_id"]
        if not event_id:
            return
        with self.client.post(
            "/api/bookings",
            json={"event": event_id, "name": random_name(), "countryCode": "+1", "phone": random_phone()},
            name="/api/bookings [churn]",
            catch_response=True,
        ) as resp:
            if resp.status_code == 409:
                resp.success()
                return
            if resp.status_code != 201:
                resp.failure(f"Unexpected status {resp.status_code}")
                return
            booked = resp.json()["booked"]
            if not 0 <= booked <= 3:
                resp.failure(f"booked out of range: {booked}")

        bookings = self.client.get(f"/api/events/{event_id}/bookings", name="/api/events/[id]/bookings")
        if bookings.status_code == 200 and bookings.json():
            booking_id = random.choice(bookings.json())["id"]
            with self.client.delete(
                f"/api/bookings/{booking_id}", name="/api/bookings/[id]", catch_response=True
            ) as resp:
                # Another user may have cancelled it first
                if resp.status_code in (200, 404):
                    resp.success()


class EdgeCaseUser(HttpUser):
    """Malformed input must be rejected with 400/404, never 500."""
    wait_time = between(0.5, 1)

    def _expect(self, resp, allowed):
        if resp.status_code in allowed:
            resp.success()
        else:
            resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_phone(self):
        with self.client.post(
            "/api/bookings",
            json={"event": SHARED["race_event_id"] or 1, "name": "No Phone", "countryCode": "+1"},
            name="/api/bookings [edge]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post(
            "/api/bookings",
            json={"event": 999999, "name": random_name(), "countryCode": "+1", "phone": "123"},
            name="/api/bookings [edge]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def bad_duration(self):
        with self.client.post(
            "/api/events",
            json={
                "title": "Too Long",
                "date": date.today().isoformat(),
                "time": "10:00",
                "duration": 600,
                "instructor": SHARED["instructor_id"] or 1,
                "maxSeats": 5,
            },
            name="/api/events [edge]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def cancel_unknown_booking(self):
        with self.client.delete("/api/bookings/999999", name="/api/bookings/[id] [edge]", catch_response=True) as resp:
            self._expect(resp, (404,))
