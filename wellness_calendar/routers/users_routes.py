# wellness_calendar/routers/users_routes.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from wellness_calendar.db import get_session
from wellness_calendar.models import User
from wellness_calendar.schemas import UserCreate, UserPublic
from wellness_calendar.auth import get_current_user, hash_password
from wellness_calendar.deps import require_role
from wellness_calendar.core.types import Role
from wellness_calendar.plans import new_plan

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return session.get(User, current_user["id"])


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Admins are never self-registered
    if user.role == Role.admin:
        raise HTTPException(status_code=403, detail="Admin accounts cannot be self-registered")
    if user.role == Role.professional and user.specialty is None:
        raise HTTPException(status_code=422, detail="Professionals need a specialty")
    if user.role == Role.student and user.specialty is not None:
        raise HTTPException(status_code=422, detail="Students have no specialty")

    # 2) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 3) Create user in DB
    db_user = User(
        email=user.email,
        password_hash=hash_password(user.password),
        role=user.role.value,
        first_name=user.first_name,
        last_name=user.last_name,
        specialty=user.specialty.value if user.specialty else None,
    )
    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id

    # 4) Students start on a trial plan
    if db_user.role == Role.student.value:
        session.add(new_plan(db_user.id, "trial"))
        session.commit()

    logger.info("Registered %s %s", db_user.role, db_user.email)
    return db_user


@router.get("/users", response_model=List[UserPublic])
def list_users(
    role: Optional[Role] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, Role.admin.value, Role.professional.value)

    stmt = select(User)
    if role is not None:
        stmt = stmt.where(User.role == role.value)
    return session.exec(stmt.order_by(User.id)).all()
