"""
Unit tests for the async calendar client (no server, mocked transport).
"""

import asyncio
from datetime import date, datetime

import httpx
import pytest

from wellness_calendar.client import CalendarClient, classify
from wellness_calendar.errors import ApiError

MONDAY = date(2024, 1, 15)
NEXT_MONDAY = date(2024, 1, 22)
NOW = datetime(2024, 1, 1, 9, 0)

APPOINTMENT = {
    "id": 7,
    "date": "2024-01-16",
    "start_time": "10:00",
    "end_time": "11:00",
    "student_id": 20,
    "professional_id": 10,
    "title": "Entrenamiento",
    "status": "scheduled",
}


def make_client(routes):
    """routes maps (method, path) to a response factory or an exception."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        outcome = routes[(request.method, request.url.path)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome(request)

    client = CalendarClient("http://calendar.test", token="t", transport=httpx.MockTransport(handler))
    return client, calls


def ok(payload, status=200):
    return lambda request: httpx.Response(status, json=payload)


def failing(status):
    return lambda request: httpx.Response(status, json={"detail": "nope"})


def student_routes(overrides=None):
    routes = {
        ("GET", "/me"): ok({"id": 20, "role": "student"}),
        ("GET", "/appointments"): ok([APPOINTMENT]),
        ("GET", "/blocks"): ok([]),
        ("GET", "/plans/me"): ok({"total_classes": 8, "used_classes": 2, "remaining_classes": 6}),
    }
    routes.update(overrides or {})
    return routes


@pytest.mark.asyncio
async def test_load_week_builds_grid_for_student():
    client, calls = make_client(student_routes())
    async with client:
        view = await client.load_week(MONDAY, now=NOW)

    assert view.errors == {}
    assert not view.needs_login
    assert len(view.slots) == 7 * 26
    booked = [s for s in view.slots if s.has_class]
    assert [s.time for s in booked] == ["10:00", "10:30"]
    assert all(s.can_edit for s in booked)
    assert any(s.can_schedule for s in view.slots)
    # students do not list users
    assert ("GET", "/users") not in calls


@pytest.mark.asyncio
async def test_sources_fail_independently():
    routes = student_routes({
        ("GET", "/blocks"): failing(503),
        ("GET", "/plans/me"): failing(401),
    })
    client, _ = make_client(routes)
    async with client:
        view = await client.load_week(MONDAY, now=NOW)

    assert view.errors["blocks"].kind == "network"
    assert view.errors["plan"].kind == "auth"
    assert view.needs_login
    # appointments still render; without a plan nothing is schedulable
    assert any(s.has_class for s in view.slots)
    assert not any(s.can_schedule for s in view.slots)


@pytest.mark.asyncio
async def test_transport_error_is_a_network_error():
    routes = student_routes({
        ("GET", "/appointments"): httpx.ConnectError("refused"),
    })
    client, _ = make_client(routes)
    async with client:
        view = await client.load_week(MONDAY, now=NOW)

    assert view.errors["appointments"].kind == "network"
    assert not view.needs_login
    assert not any(s.has_class for s in view.slots)


@pytest.mark.asyncio
async def test_non_list_payload_degrades_to_empty():
    client, _ = make_client(student_routes({("GET", "/appointments"): ok({"items": "?"})}))
    async with client:
        view = await client.load_week(MONDAY, now=NOW)

    assert view.errors == {}
    assert not any(s.has_class for s in view.slots)


@pytest.mark.asyncio
async def test_staff_views_get_names():
    routes = {
        ("GET", "/me"): ok({"id": 1, "role": "admin"}),
        ("GET", "/appointments"): ok([APPOINTMENT]),
        ("GET", "/blocks"): ok([]),
        ("GET", "/users"): ok([
            {"id": 20, "first_name": "Sofia", "last_name": "Diaz", "email": "s@x.test"},
            {"id": 10, "first_name": None, "last_name": None, "email": "p@x.test"},
        ]),
    }
    client, calls = make_client(routes)
    async with client:
        view = await client.load_week(MONDAY, now=NOW)

    slot = next(s for s in view.slots if s.has_class)
    assert slot.appointment.student.name == "Sofia Diaz"
    assert slot.appointment.professional.name == "p@x.test"
    assert ("GET", "/plans/me") not in calls


@pytest.mark.asyncio
async def test_older_load_is_dropped():
    client, _ = make_client(student_routes())
    async with client:
        first, second = await asyncio.gather(
            client.load_week(MONDAY, now=NOW),
            client.load_week(NEXT_MONDAY, now=NOW),
        )

    assert first is None
    assert second is client.current
    assert second.anchor == NEXT_MONDAY


@pytest.mark.asyncio
async def test_booking_response_ignored_when_view_moved_on():
    created = {**APPOINTMENT, "id": 8, "date": "2024-01-17"}
    routes = student_routes({("POST", "/appointments"): ok(created, status=201)})
    client, _ = make_client(routes)
    async with client:
        view = await client.load_week(MONDAY, now=NOW)
        slot = next(s for s in view.slots if s.can_schedule)

        assert await client.book(slot, professional_id=10) == created

        await client.load_week(NEXT_MONDAY, now=NOW)
        assert await client.book(slot, professional_id=10) is None


@pytest.mark.asyncio
async def test_cancel_needs_an_appointment():
    client, _ = make_client(student_routes())
    async with client:
        view = await client.load_week(MONDAY, now=NOW)
        empty = next(s for s in view.slots if not s.has_class)
        with pytest.raises(ValueError):
            await client.cancel(empty)


@pytest.mark.asyncio
async def test_action_errors_are_classified():
    routes = student_routes({("POST", "/appointments"): failing(409)})
    client, _ = make_client(routes)
    async with client:
        view = await client.load_week(MONDAY, now=NOW)
        with pytest.raises(ApiError) as excinfo:
            await client.book(view.slots[0], professional_id=10)

    assert excinfo.value.kind == "rejected"
    assert excinfo.value.status_code == 409
    assert str(excinfo.value) == "nope"


def test_classify_payload_error():
    assert classify(ValueError("bad json")).kind == "payload"
    with pytest.raises(KeyError):
        classify(KeyError("boom"))
