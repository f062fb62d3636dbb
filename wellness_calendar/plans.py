# wellness_calendar/plans.py

import logging
import math
from datetime import date, datetime, timedelta
from typing import Optional

from sqlmodel import Session, select

from wellness_calendar.config import PLANS
from wellness_calendar.core.timeutils import week_start
from wellness_calendar.models import Appointment, PlanUsage

logger = logging.getLogger(__name__)


def _today(now: Optional[datetime] = None) -> date:
    return (now or datetime.now()).date()


def new_plan(user_id: int, plan_type: str = "trial", today: Optional[date] = None) -> PlanUsage:
    config = PLANS.get(plan_type, PLANS["trial"])
    today = today or date.today()
    return PlanUsage(
        user_id=user_id,
        plan_type=plan_type if plan_type in PLANS else "trial",
        total_classes=config["classes"],
        used_classes=0,
        remaining_classes=config["classes"],
        classes_per_week=math.ceil(config["classes"] / config["weeks"]),
        starts_on=today,
        expires_on=today + timedelta(weeks=config["weeks"]),
        active=True,
    )


def get_plan(session: Session, user_id: int) -> Optional[PlanUsage]:
    return session.get(PlanUsage, user_id)


def is_current(plan: Optional[PlanUsage], today: date) -> bool:
    return plan is not None and plan.active and today <= plan.expires_on


def remaining_classes(plan: Optional[PlanUsage], now: Optional[datetime] = None) -> int:
    """Bookable classes left; an expired or inactive plan has none."""
    if not is_current(plan, _today(now)):
        return 0
    return max(0, plan.remaining_classes)


def classes_booked_in_week(session: Session, student_id: int, day: date) -> int:
    monday = week_start(day)
    sunday = monday + timedelta(days=6)
    appts = session.exec(
        select(Appointment)
        .where(Appointment.student_id == student_id)
        .where(Appointment.date >= monday)
        .where(Appointment.date <= sunday)
        .where(Appointment.deduct_from_plan == True)  # noqa: E712
        .where(Appointment.status != "cancelled")
    ).all()
    return len(appts)


def can_book_in_week(session: Session, plan: Optional[PlanUsage], student_id: int, day: date,
                     now: Optional[datetime] = None) -> bool:
    if remaining_classes(plan, now) <= 0:
        return False
    return classes_booked_in_week(session, student_id, day) < plan.classes_per_week


def consume_class(plan: PlanUsage) -> PlanUsage:
    plan.used_classes += 1
    plan.remaining_classes = max(0, plan.total_classes - plan.used_classes)
    return plan


def renew_plan(session: Session, user_id: int, plan_type: str, today: Optional[date] = None) -> PlanUsage:
    fresh = new_plan(user_id, plan_type, today)
    plan = get_plan(session, user_id)
    if plan is None:
        plan = fresh
    else:
        for field in ("plan_type", "total_classes", "used_classes", "remaining_classes",
                      "classes_per_week", "starts_on", "expires_on", "active"):
            setattr(plan, field, getattr(fresh, field))
    session.add(plan)
    logger.info("Plan for user %s renewed as %s", user_id, plan.plan_type)
    return plan
