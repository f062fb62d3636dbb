"""
API tests for blocking rules.
"""

from datetime import timedelta

import pytest


@pytest.fixture
def weekly_block(next_monday):
    """Every Wednesday 14:00-14:30 for four weeks."""
    return {
        "title": "Supervisión",
        "type": "professional",
        "start_date": next_monday.isoformat(),
        "end_date": (next_monday + timedelta(days=27)).isoformat(),
        "start_time": "14:00",
        "end_time": "14:30",
        "is_recurring": True,
        "recurrence": {"frequency": "weekly", "days_of_week": ["wednesday"]},
    }


def test_admin_creates_global_block(client, auth, admin, next_monday):
    response = client.post(
        "/blocks",
        json={"title": "Feriado", "date": next_monday.isoformat(), "all_day": True},
        headers=auth(admin),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["type"] == "global"
    assert data["created_by"] == admin.id
    assert data["active"] is True


def test_students_cannot_block(client, auth, student, next_monday):
    response = client.post(
        "/blocks", json={"title": "No", "date": next_monday.isoformat()}, headers=auth(student),
    )
    assert response.status_code == 403


def test_professional_blocks_own_agenda(client, auth, professional, weekly_block):
    response = client.post("/blocks", json=weekly_block, headers=auth(professional))

    assert response.status_code == 201
    data = response.json()
    assert data["professional_id"] == professional.id
    assert data["recurrence"]["frequency"] == "weekly"
    assert data["recurrence"]["interval"] == 1


def test_professional_limits(client, auth, professional, other_professional, weekly_block, next_monday):
    other = {**weekly_block, "professional_id": other_professional.id}
    assert client.post("/blocks", json=other, headers=auth(professional)).status_code == 403

    global_block = {"title": "Todo", "date": next_monday.isoformat()}
    assert client.post("/blocks", json=global_block, headers=auth(professional)).status_code == 403


@pytest.mark.parametrize("changes", [
    {"start_date": None, "end_date": None},
    {"end_date": None},
    {"end_date": "2000-01-01"},
    {"start_time": "14:00", "end_time": None},
    {"start_time": "15:00", "end_time": "14:00"},
    {"start_time": "2pm", "end_time": "14:30"},
    {"recurrence": None},
    {"recurrence": {"frequency": "weekly", "days_of_week": ["someday"]}},
    {"recurrence": {"frequency": "weekly", "interval": 0}},
    {"location": "Centro"},
])
def test_invalid_blocks(client, auth, admin, professional, weekly_block, changes):
    payload = {**weekly_block, "professional_id": professional.id, **changes}

    response = client.post("/blocks", json=payload, headers=auth(admin))
    assert response.status_code == 422


def test_scoped_block_needs_its_field(client, auth, admin, next_monday):
    for block_type in ("professional", "location", "room"):
        payload = {"title": "x", "type": block_type, "date": next_monday.isoformat()}
        assert client.post("/blocks", json=payload, headers=auth(admin)).status_code == 422

    room = {"title": "Pintura", "type": "room", "room": "Sala 2", "date": next_monday.isoformat()}
    assert client.post("/blocks", json=room, headers=auth(admin)).status_code == 201


def test_unknown_professional(client, auth, admin, weekly_block):
    payload = {**weekly_block, "professional_id": 999}
    assert client.post("/blocks", json=payload, headers=auth(admin)).status_code == 422


def test_toggle_and_list(client, auth, admin, professional, other_professional, weekly_block):
    block = client.post("/blocks", json=weekly_block, headers=auth(professional)).json()
    url = f"/blocks/{block['id']}/active"

    assert client.patch(url, json={"active": False}, headers=auth(other_professional)).status_code == 403

    response = client.patch(url, json={"active": False}, headers=auth(professional))
    assert response.status_code == 200
    assert response.json()["active"] is False

    assert client.get("/blocks", headers=auth(admin)).json() == []
    everything = client.get("/blocks", params={"active_only": False}, headers=auth(admin)).json()
    assert [b["id"] for b in everything] == [block["id"]]


def test_inactive_block_stops_blocking(client, auth, admin, student, professional, next_monday):
    block = client.post(
        "/blocks", json={"title": "Feriado", "date": next_monday.isoformat(), "all_day": True}, headers=auth(admin),
    ).json()
    client.patch(f"/blocks/{block['id']}/active", json={"active": False}, headers=auth(admin))

    response = client.post(
        "/appointments",
        json={"type": "training", "date": next_monday.isoformat(), "start_time": "09:00", "professional_id": professional.id},
        headers=auth(student),
    )
    assert response.status_code == 201


def test_delete(client, auth, admin, professional, other_professional, weekly_block):
    block = client.post("/blocks", json=weekly_block, headers=auth(professional)).json()
    url = f"/blocks/{block['id']}"

    assert client.delete(url, headers=auth(other_professional)).status_code == 403
    assert client.delete(url, headers=auth(professional)).status_code == 204
    assert client.delete(url, headers=auth(admin)).status_code == 404
