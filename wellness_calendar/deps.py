# wellness_calendar/deps.py

from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlmodel import Session

from wellness_calendar.core.types import Role, ViewerContext
from wellness_calendar.plans import get_plan, remaining_classes


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def viewer_context(user: dict, session: Session, now: Optional[datetime] = None) -> ViewerContext:
    """Explicit viewer for the scheduling core, built once per request."""
    role = Role(user["role"])
    plan_remaining = 0
    if role == Role.student:
        plan = get_plan(session, user["id"])
        plan_remaining = remaining_classes(plan, now)
    return ViewerContext(
        role=role,
        user_id=user["id"],
        plan_remaining=plan_remaining,
        now=now or datetime.now(),
    )
