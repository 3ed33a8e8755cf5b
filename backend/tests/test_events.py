"""
Tests for event endpoints: creation rules, listing with attendees, reconciliation.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from studio_booking.models.event import Event


def event_payload(instructor_id: int, **overrides) -> dict:
    payload = {
        "title": "Sunset Yoga",
        "date": (date.today() + timedelta(days=14)).isoformat(),
        "time": "18:30",
        "duration": 75,
        "instructor": instructor_id,
        "maxSeats": 12,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, test_instructor):
    response = await client.post("/api/events", json=event_payload(test_instructor.id))

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Sunset Yoga"
    assert data["maxSeats"] == 12
    assert data["booked"] == 0
    assert data["time"] == "18:30"
    assert data["instructor"] == {"id": test_instructor.id, "name": "Maya Haddad"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"title": "  "},
        {"time": "6:30pm"},
        {"time": "24:00"},
        {"duration": 10},
        {"duration": 241},
        {"maxSeats": 0},
        {"date": "not-a-date"},
    ],
)
async def test_create_event_invalid(client: AsyncClient, test_instructor, overrides):
    response = await client.post("/api/events", json=event_payload(test_instructor.id, **overrides))

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_create_event_unknown_instructor(client: AsyncClient):
    response = await client.post("/api/events", json=event_payload(4242))

    assert response.status_code == 400
    assert "Instructor 4242" in response.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", [15, 240])
async def test_create_event_duration_bounds(client: AsyncClient, test_instructor, duration):
    response = await client.post("/api/events", json=event_payload(test_instructor.id, duration=duration))
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    response = await client.get(f"/api/events/{test_event.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_event.id
    assert data["title"] == "Morning Flow"
    assert data["instructor"]["name"] == "Maya Haddad"


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient):
    response = await client.get("/api/events/99999")

    assert response.status_code == 404
    assert response.json() == {"detail": "Event not found", "code": "not_found"}


@pytest.mark.asyncio
async def test_list_events_with_attendees(client: AsyncClient, test_event):
    await client.post(
        "/api/bookings",
        json={"event": test_event.id, "name": "Rana", "countryCode": "+961", "phone": "70123456"},
    )

    response = await client.get("/api/events")

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["booked"] == 1
    attendee = data[0]["attendees"][0]
    assert attendee["name"] == "Rana"
    assert attendee["countryCode"] == "+961"
    assert attendee["phone"] == "70123456"


@pytest.mark.asyncio
async def test_list_events_filtered_by_instructor(client: AsyncClient, test_event):
    other = (await client.post("/api/instructors", json={"name": "Omar"})).json()
    await client.post("/api/events", json=event_payload(other["id"], title="Omar's Class"))

    everything = (await client.get("/api/events")).json()
    only_omar = (await client.get("/api/events", params={"instructor": other["id"]})).json()

    assert len(everything) == 2
    assert [e["title"] for e in only_omar] == ["Omar's Class"]


@pytest.mark.asyncio
async def test_listing_counts_live_bookings_not_stored_counter(client: AsyncClient, db_session, make_event):
    """Listing stays accurate even if the stored counter was corrupted externally."""
    event = await make_event(max_seats=5)
    for name in ("A", "B"):
        await client.post(
            "/api/bookings",
            json={"event": event.id, "name": name, "countryCode": "+1", "phone": "555"},
        )

    await db_session.execute(update(Event).where(Event.id == event.id).values(booked=5))
    await db_session.commit()

    listed = next(e for e in (await client.get("/api/events")).json() if e["id"] == event.id)
    assert listed["booked"] == 2
    assert {a["name"] for a in listed["attendees"]} == {"A", "B"}


@pytest.mark.asyncio
async def test_reconcile_repairs_drifted_counter(client: AsyncClient, db_session, make_event):
    event = await make_event(max_seats=3)
    await client.post(
        "/api/bookings",
        json={"event": event.id, "name": "A", "countryCode": "+1", "phone": "555"},
    )
    # Simulate a failed compensation: seats held without booking rows
    await db_session.execute(update(Event).where(Event.id == event.id).values(booked=3))
    await db_session.commit()
    assert (await client.post("/api/bookings", json={
        "event": event.id, "name": "B", "countryCode": "+1", "phone": "555",
    })).status_code == 409

    response = await client.post("/api/events/reconcile")

    assert response.status_code == 200
    report = response.json()
    assert report["checked"] == 1
    assert report["corrections"] == [{"eventId": event.id, "stored": 3, "live": 1, "correctedTo": 1}]
    assert (await client.get(f"/api/events/{event.id}")).json()["booked"] == 1

    retry = await client.post("/api/bookings", json={
        "event": event.id, "name": "B", "countryCode": "+1", "phone": "555",
    })
    assert retry.status_code == 201


@pytest.mark.asyncio
async def test_reconcile_noop_when_consistent(client: AsyncClient, test_event):
    response = await client.post("/api/events/reconcile")

    assert response.status_code == 200
    assert response.json() == {"checked": 1, "corrections": []}


@pytest.mark.asyncio
async def test_create_event_requires_duration(client: AsyncClient, test_instructor):
    payload = event_payload(test_instructor.id)
    payload.pop("duration")

    response = await client.post("/api/events", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert "duration" in response.json()["detail"]


@pytest.mark.asyncio
async def test_event_responses_use_camel_case(client: AsyncClient, test_instructor):
    created = (await client.post("/api/events", json=event_payload(test_instructor.id))).json()
    await client.post(
        "/api/bookings",
        json={"event": created["id"], "name": "Rana", "countryCode": "+961", "phone": "70123456"},
    )

    fetched = (await client.get(f"/api/events/{created['id']}")).json()
    listed = (await client.get("/api/events")).json()[0]

    for body in (created, fetched, listed):
        assert {"maxSeats", "instructorId", "createdAt"} <= body.keys()
        assert not {"max_seats", "instructor_id", "created_at"} & body.keys()
    assert listed["attendees"][0].keys() == {"id", "name", "countryCode", "phone"}

    booking = (await client.get(f"/api/events/{created['id']}/bookings")).json()[0]
    assert {"eventId", "countryCode", "createdAt"} <= booking.keys()
    assert "country_code" not in booking
