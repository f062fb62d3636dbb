"""
API tests for registration, login and plans.
"""

import pytest

from wellness_calendar.auth import create_access_token


def register(client, **fields):
    payload = {"email": "nueva@studio.test", "password": "secret-pass", **fields}
    return client.post("/users", json=payload)


def login(client, email, password="secret-pass"):
    return client.post("/auth/login", data={"username": email, "password": password})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_register_and_login(client):
    response = register(client, first_name="Nora")
    assert response.status_code == 201
    assert response.json()["role"] == "student"
    assert "password_hash" not in response.json()

    token = login(client, "nueva@studio.test")
    assert token.status_code == 200
    body = token.json()
    assert body["token_type"] == "bearer"
    assert body["role"] == "student"
    assert body["expires_in"] > 0

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    assert client.get("/me", headers=headers).json()["first_name"] == "Nora"

    # new students start on the trial plan
    plan = client.get("/plans/me", headers=headers).json()
    assert plan["plan_type"] == "trial"
    assert plan["total_classes"] == 1
    assert plan["remaining_classes"] == 1


def test_wrong_password(client):
    register(client)

    assert login(client, "nueva@studio.test", "not-the-pass").status_code == 401
    assert login(client, "nadie@studio.test").status_code == 401


def test_bad_token(client):
    response = client.get("/me", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


@pytest.mark.parametrize("fields,status", [
    ({"role": "admin"}, 403),
    ({"role": "professional"}, 422),
    ({"role": "student", "specialty": "teacher"}, 422),
    ({"password": "short"}, 422),
])
def test_registration_rules(client, fields, status):
    assert register(client, **fields).status_code == status


def test_professional_registration(client):
    response = register(client, role="professional", specialty="psychologist")

    assert response.status_code == 201
    assert response.json()["specialty"] == "psychologist"


def test_duplicate_email(client):
    register(client)
    assert register(client).status_code == 409


def test_listing_users(client, auth, admin, professional, student):
    assert client.get("/users", headers=auth(student)).status_code == 403

    everyone = client.get("/users", headers=auth(professional)).json()
    assert {u["email"] for u in everyone} == {admin.email, professional.email, student.email}

    students = client.get("/users", params={"role": "student"}, headers=auth(admin)).json()
    assert [u["id"] for u in students] == [student.id]


def test_plan_lookup(client, auth, admin, professional, student):
    assert client.get("/plans/me", headers=auth(professional)).status_code == 403

    plan = client.get(f"/plans/{student.id}", headers=auth(professional)).json()
    assert plan["plan_type"] == "basic"
    assert plan["classes_per_week"] == 2

    assert client.get(f"/plans/{admin.id}", headers=auth(admin)).status_code == 404


def test_plan_renewal(client, auth, admin, professional, student, next_monday):
    client.post(
        "/appointments",
        json={"type": "training", "date": next_monday.isoformat(), "start_time": "10:00", "professional_id": professional.id},
        headers=auth(student),
    )
    url = f"/plans/{student.id}/renew"

    assert client.post(url, json={"plan_type": "pro"}, headers=auth(student)).status_code == 403
    assert client.post(f"/plans/{professional.id}/renew", json={"plan_type": "pro"}, headers=auth(admin)).status_code == 404

    renewed = client.post(url, json={"plan_type": "pro"}, headers=auth(admin)).json()
    assert renewed["plan_type"] == "pro"
    assert renewed["total_classes"] == 12
    assert renewed["used_classes"] == 0
    assert renewed["remaining_classes"] == 12
    assert renewed["classes_per_week"] == 3


def test_token_for_old_role_is_rejected(client, auth, session, professional):
    headers = auth(professional)
    assert client.get("/me", headers=headers).status_code == 200

    professional.role = "student"
    session.add(professional)
    session.commit()

    assert client.get("/me", headers=headers).status_code == 401


def test_expired_token(client, student):
    token = create_access_token(student, expires_minutes=-1)
    assert client.get("/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401
