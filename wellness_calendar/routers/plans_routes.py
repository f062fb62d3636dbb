# wellness_calendar/routers/plans_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from wellness_calendar.db import get_session
from wellness_calendar.models import User
from wellness_calendar.schemas import PlanRenew, PlanUsagePublic
from wellness_calendar.auth import get_current_user
from wellness_calendar.deps import require_role
from wellness_calendar.core.types import Role
from wellness_calendar.plans import get_plan, renew_plan

router = APIRouter(
    prefix="/plans",
    tags=["plans"],
)


@router.get("/me", response_model=PlanUsagePublic)
def my_plan(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, Role.student.value)
    plan = get_plan(session, current_user["id"])
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan


@router.get("/{user_id}", response_model=PlanUsagePublic)
def student_plan(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, Role.admin.value, Role.professional.value)
    plan = get_plan(session, user_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan


@router.post("/{user_id}/renew", response_model=PlanUsagePublic)
def renew(
    user_id: int,
    body: PlanRenew,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, Role.admin.value)
    student = session.get(User, user_id)
    if student is None or student.role != Role.student.value:
        raise HTTPException(status_code=404, detail="Student not found")

    plan = renew_plan(session, user_id, body.plan_type.value)
    session.commit()
    session.refresh(plan)
    return plan
