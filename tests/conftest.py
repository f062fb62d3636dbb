"""
Pytest configuration and shared fixtures.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from wellness_calendar import models
from wellness_calendar.auth import create_access_token
from wellness_calendar.core.timeutils import week_start
from wellness_calendar.db import get_session
from wellness_calendar.main import app
from wellness_calendar.plans import new_plan


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def override_session():
        yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    """Insert a user directly; password hashing is skipped for speed."""

    def _make(email, role, plan_type=None, **extra):
        user = models.User(email=email, password_hash="x", role=role, **extra)
        session.add(user)
        session.commit()
        session.refresh(user)
        if plan_type:
            session.add(new_plan(user.id, plan_type))
            session.commit()
        return user

    return _make


@pytest.fixture
def auth():
    """Bearer headers for a stored user."""

    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def admin(make_user):
    return make_user("admin@studio.test", "admin", first_name="Ana")


@pytest.fixture
def professional(make_user):
    return make_user("pro@studio.test", "professional", first_name="Pablo", specialty="teacher")


@pytest.fixture
def other_professional(make_user):
    return make_user("quique@studio.test", "professional", first_name="Quique", specialty="nutritionist")


@pytest.fixture
def student(make_user):
    return make_user("sofia@studio.test", "student", plan_type="basic", first_name="Sofia")


@pytest.fixture
def next_monday():
    return week_start(date.today()) + timedelta(days=7)
