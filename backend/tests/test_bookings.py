"""
Tests for booking endpoints including concurrency scenarios.
"""

import asyncio

import pytest
from httpx import AsyncClient


def booking_payload(event_id: int, name: str = "Attendee", **overrides) -> dict:
    payload = {"event": event_id, "name": name, "countryCode": "+961", "phone": "70123456"}
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_book_seat(client: AsyncClient, test_event):
    """Successful booking returns the event with its new booked count."""
    response = await client.post("/api/bookings", json=booking_payload(test_event.id, "Rana"))

    assert response.status_code == 201
    data = response.json()
    assert data["id"] == test_event.id
    assert data["booked"] == 1
    assert data["maxSeats"] == 2
    assert data["instructor"]["name"] == "Maya Haddad"

    event_response = await client.get(f"/api/events/{test_event.id}")
    assert event_response.json()["booked"] == 1


@pytest.mark.asyncio
async def test_book_seat_accepts_snake_case_and_numeric_phone(client: AsyncClient, test_event):
    response = await client.post(
        "/api/bookings",
        json={"event_id": test_event.id, "name": "Karim", "country_code": "+33", "phone": 612345678},
    )
    assert response.status_code == 201

    bookings = (await client.get(f"/api/events/{test_event.id}/bookings")).json()
    assert bookings[0]["phone"] == "612345678"
    assert bookings[0]["countryCode"] == "+33"


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["name", "countryCode", "phone"])
async def test_book_seat_missing_field(client: AsyncClient, test_event, missing):
    payload = booking_payload(test_event.id)
    payload.pop(missing)

    response = await client.post("/api/bookings", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_book_seat_blank_name(client: AsyncClient, test_event):
    response = await client.post("/api/bookings", json=booking_payload(test_event.id, name="   "))

    assert response.status_code == 400
    event_response = await client.get(f"/api/events/{test_event.id}")
    assert event_response.json()["booked"] == 0


@pytest.mark.asyncio
async def test_book_full_event(client: AsyncClient, make_event):
    """A full event answers 409 with a distinct code, not a server error."""
    event = await make_event(max_seats=1)
    first = await client.post("/api/bookings", json=booking_payload(event.id, "A"))
    assert first.status_code == 201

    response = await client.post("/api/bookings", json=booking_payload(event.id, "B"))

    assert response.status_code == 409
    assert response.json() == {"detail": "Event is full", "code": "event_full"}


@pytest.mark.asyncio
async def test_book_nonexistent_event(client: AsyncClient):
    response = await client.post("/api/bookings", json=booking_payload(99999))

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_concurrent_bookings_never_overbook(client: AsyncClient, make_event):
    """capacity + 1 simultaneous requests: exactly `capacity` succeed, one is told the event is full."""
    capacity = 5
    event = await make_event(max_seats=capacity)

    responses = await asyncio.gather(
        *(client.post("/api/bookings", json=booking_payload(event.id, f"racer-{i}")) for i in range(capacity + 1))
    )

    statuses = sorted(r.status_code for r in responses)
    assert statuses == [201] * capacity + [409]

    listing = (await client.get("/api/events")).json()
    listed = next(e for e in listing if e["id"] == event.id)
    assert listed["booked"] == capacity
    assert len(listed["attendees"]) == capacity

    stored = (await client.get(f"/api/events/{event.id}")).json()
    assert stored["booked"] == capacity


@pytest.mark.asyncio
async def test_cancel_booking(client: AsyncClient, test_event):
    """Cancellation deletes the booking and frees its seat."""
    await client.post("/api/bookings", json=booking_payload(test_event.id, "A"))
    bookings = (await client.get(f"/api/events/{test_event.id}/bookings")).json()
    booking_id = bookings[0]["id"]

    response = await client.delete(f"/api/bookings/{booking_id}")

    assert response.status_code == 200
    assert response.json() == {"message": "Booking deleted successfully", "bookingId": booking_id}
    assert (await client.get(f"/api/events/{test_event.id}")).json()["booked"] == 0
    assert (await client.get(f"/api/events/{test_event.id}/bookings")).json() == []


@pytest.mark.asyncio
async def test_cancel_twice_returns_404(client: AsyncClient, test_event):
    await client.post("/api/bookings", json=booking_payload(test_event.id))
    booking_id = (await client.get(f"/api/events/{test_event.id}/bookings")).json()[0]["id"]

    await client.delete(f"/api/bookings/{booking_id}")
    response = await client.delete(f"/api/bookings/{booking_id}")

    assert response.status_code == 404
    assert (await client.get(f"/api/events/{test_event.id}")).json()["booked"] == 0


@pytest.mark.asyncio
async def test_full_event_reopens_after_cancellation(client: AsyncClient, test_event):
    """Capacity 2: A ok, B ok, C full, cancel A, D ok."""
    for name in ("A", "B"):
        assert (await client.post("/api/bookings", json=booking_payload(test_event.id, name))).status_code == 201
    assert (await client.post("/api/bookings", json=booking_payload(test_event.id, "C"))).status_code == 409

    bookings = (await client.get(f"/api/events/{test_event.id}/bookings")).json()
    booking_a = next(b for b in bookings if b["name"] == "A")
    assert (await client.delete(f"/api/bookings/{booking_a['id']}")).status_code == 200
    assert (await client.get(f"/api/events/{test_event.id}")).json()["booked"] == 1

    response = await client.post("/api/bookings", json=booking_payload(test_event.id, "D"))
    assert response.status_code == 201
    assert response.json()["booked"] == 2


@pytest.mark.asyncio
async def test_list_event_bookings_newest_first(client: AsyncClient, make_event):
    event = await make_event(max_seats=5)
    for name in ("first", "second", "third"):
        await client.post("/api/bookings", json=booking_payload(event.id, name))

    response = await client.get(f"/api/events/{event.id}/bookings")

    assert response.status_code == 200
    data = response.json()
    assert [b["name"] for b in data] == ["third", "second", "first"]
    assert data[0]["event"] == {"id": event.id, "title": event.title, "duration": 60}


@pytest.mark.asyncio
async def test_list_bookings_unknown_event_is_empty(client: AsyncClient):
    response = await client.get("/api/events/99999/bookings")

    assert response.status_code == 200
    assert response.json() == []
