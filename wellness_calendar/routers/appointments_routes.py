# wellness_calendar/routers/appointments_routes.py

import logging
from datetime import datetime, date, timedelta
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from wellness_calendar.db import get_session
from wellness_calendar.models import Appointment, User, utc_now
from wellness_calendar.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStats,
    AutoCompleteResult,
    CancelRequest,
    EvaluationCreate,
    PlanUsagePublic,
    Reschedule,
    StatusUpdate,
)
from wellness_calendar.auth import get_current_user
from wellness_calendar.deps import require_role
from wellness_calendar.config import AUTO_COMPLETE_AFTER_MINUTES
from wellness_calendar.booking import ensure_no_overlap, ensure_not_blocked, resolve_interval
from wellness_calendar.core.permissions import slot_start
from wellness_calendar.core.timeutils import week_start
from wellness_calendar.core.types import AppointmentStatus, CellScope, Role
from wellness_calendar.plans import can_book_in_week, consume_class, get_plan

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["appointments"],
)

# scheduled is the only non-terminal status
TRANSITIONS = {
    AppointmentStatus.scheduled.value: {
        AppointmentStatus.completed.value,
        AppointmentStatus.cancelled.value,
        AppointmentStatus.no_show.value,
    },
}


def _get_appointment(session: Session, appt_id: int) -> Appointment:
    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return target


def _can_manage(current_user: dict, target: Appointment) -> bool:
    if current_user["role"] == Role.admin.value:
        return True
    return (
        current_user["role"] == Role.professional.value
        and target.professional_id == current_user["id"]
    )


def _visible(stmt, current_user: dict, professional_id: Optional[int] = None, student_id: Optional[int] = None):
    """Restrict stmt to what the caller may see; only admins choose whose rows."""
    role = current_user["role"]
    if role == Role.professional.value:
        professional_id = current_user["id"]
    elif role == Role.student.value:
        student_id = current_user["id"]

    if professional_id is not None:
        stmt = stmt.where(Appointment.professional_id == professional_id)
    if student_id is not None:
        stmt = stmt.where(Appointment.student_id == student_id)
    return stmt


def _commit_booking(session: Session):
    # the partial unique index catches bookings that raced past ensure_no_overlap
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Appointment already exists for that start time")


def _check_transition(target: Appointment, new_status: str):
    if new_status == target.status:
        raise HTTPException(status_code=409, detail=f"Appointment already {target.status}")
    if new_status not in TRANSITIONS.get(target.status, set()):
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change status from {target.status} to {new_status}",
        )


@router.get("/appointments", response_model=List[AppointmentPublic])
def list_appointments(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    professional_id: Optional[int] = None,
    student_id: Optional[int] = None,
    status: Optional[AppointmentStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    stmt = _visible(select(Appointment), current_user, professional_id, student_id)
    if date_from is not None:
        stmt = stmt.where(Appointment.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Appointment.date <= date_to)
    if status is not None:
        stmt = stmt.where(Appointment.status == status.value)

    stmt = stmt.order_by(Appointment.date, Appointment.start_time)
    return session.exec(stmt).all()


@router.get("/appointments/stats", response_model=AppointmentStats)
def appointment_stats(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    """Dashboard counts over the caller's visible classes, cancelled ones excluded."""
    today = date.today()
    monday = week_start(today)

    def count(*conditions) -> int:
        stmt = _visible(select(func.count(Appointment.id)), current_user)
        for condition in conditions:
            stmt = stmt.where(condition)
        return session.exec(stmt).one()

    live = Appointment.status != AppointmentStatus.cancelled.value
    total = count(live)
    completed = count(Appointment.status == AppointmentStatus.completed.value)

    plan = None
    if current_user["role"] == Role.student.value:
        stored = get_plan(session, current_user["id"])
        if stored is not None:
            plan = PlanUsagePublic.model_validate(stored, from_attributes=True)

    return AppointmentStats(
        today=count(live, Appointment.date == today),
        this_week=count(live, Appointment.date >= monday, Appointment.date <= monday + timedelta(days=6)),
        total=total,
        completed=completed,
        completion_rate=round(completed * 100 / total) if total else 0,
        plan=plan,
    )


@router.post("/appointments/auto-complete", response_model=AutoCompleteResult)
def auto_complete(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    """Close scheduled classes whose start is AUTO_COMPLETE_AFTER_MINUTES in the past."""
    require_role(current_user, Role.admin.value)
    cutoff = datetime.now() - timedelta(minutes=AUTO_COMPLETE_AFTER_MINUTES)

    candidates = session.exec(
        select(Appointment)
        .where(Appointment.status == AppointmentStatus.scheduled.value)
        .where(Appointment.date <= cutoff.date())
    ).all()

    completed = 0
    for target in candidates:
        if slot_start(target.date, target.start_time) > cutoff:
            continue
        target.status = AppointmentStatus.completed.value
        session.add(target)
        completed += 1

    session.commit()
    logger.info("Auto-completed %d appointments started before %s", completed, cutoff)
    return AutoCompleteResult(completed=completed)


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    role = current_user["role"]

    # 1) Who is booking for whom
    if role == Role.admin.value:
        professional_id, student_id = appt.professional_id, appt.student_id
    elif role == Role.professional.value:
        professional_id, student_id = current_user["id"], appt.student_id
    elif role == Role.student.value:
        professional_id, student_id = appt.professional_id, current_user["id"]
    else:
        raise HTTPException(status_code=403, detail="Forbidden")

    if professional_id is None or student_id is None:
        raise HTTPException(status_code=422, detail="professional_id and student_id are required")

    student = session.get(User, student_id)
    if student is None or student.role != Role.student.value:
        raise HTTPException(status_code=422, detail="Invalid student")
    professional = session.get(User, professional_id)
    if professional is None or professional.role != Role.professional.value:
        raise HTTPException(status_code=422, detail="Invalid professional")

    # 2) Build appointment interval
    start_time, end_time, duration = resolve_interval(appt.start_time, appt.end_time, appt.duration)

    # 3) Students book future cells against their plan
    plan = get_plan(session, student_id)
    if role == Role.student.value:
        if slot_start(appt.date, start_time) <= datetime.now():
            raise HTTPException(status_code=422, detail="Cannot book an appointment in the past")
        if not appt.deduct_from_plan:
            raise HTTPException(status_code=403, detail="Students can only book against their plan")
        if not can_book_in_week(session, plan, student_id, appt.date):
            raise HTTPException(
                status_code=409,
                detail="No classes left this week or the plan has expired",
            )

    # 4) Reject blocked cells and double booking
    scope = CellScope(professional_id=professional_id, location=appt.location, room=appt.room)
    ensure_not_blocked(session, appt.date, start_time, end_time, scope)
    ensure_no_overlap(session, appt.date, start_time, end_time, professional_id, student_id)

    db_appt = Appointment(
        student_id=student_id,
        professional_id=professional_id,
        type=appt.type.value,
        title=appt.title or appt.type.value,
        description=appt.description,
        date=appt.date,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        location=appt.location,
        room=appt.room,
        notes=appt.notes,
        deduct_from_plan=appt.deduct_from_plan,
        status=AppointmentStatus.scheduled.value,
        created_by=current_user["id"],
    )
    session.add(db_appt)

    if appt.deduct_from_plan and plan is not None and plan.remaining_classes > 0:
        session.add(consume_class(plan))

    _commit_booking(session)
    session.refresh(db_appt)  # fills db_appt.id
    logger.info(
        "Appointment %s booked for student %s with professional %s on %s %s",
        db_appt.id, student_id, professional_id, db_appt.date, db_appt.start_time,
    )
    return db_appt


@router.patch("/appointments/{appt_id}/status", response_model=AppointmentPublic)
def update_status(
    appt_id: int,
    update: StatusUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    target = _get_appointment(session, appt_id)
    new_status = update.status.value

    # Students may only cancel their own appointments
    is_own_student = (
        current_user["role"] == Role.student.value and target.student_id == current_user["id"]
    )
    if not _can_manage(current_user, target):
        if not (is_own_student and new_status == AppointmentStatus.cancelled.value):
            raise HTTPException(status_code=403, detail="Forbidden")

    _check_transition(target, new_status)

    target.status = new_status
    if new_status == AppointmentStatus.cancelled.value:
        target.cancel_reason = update.reason
    session.add(target)
    session.commit()
    session.refresh(target)
    logger.info("Appointment %s is now %s", target.id, target.status)
    return target


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    body: Optional[CancelRequest] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    update = StatusUpdate(
        status=AppointmentStatus.cancelled,
        reason=body.reason if body else None,
    )
    return update_status(appt_id, update, session, current_user)


@router.patch("/appointments/{appt_id}/reschedule", response_model=AppointmentPublic)
def reschedule_appointment(
    appt_id: int,
    body: Reschedule,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    target = _get_appointment(session, appt_id)
    if not _can_manage(current_user, target):
        raise HTTPException(status_code=403, detail="Forbidden")
    if target.status != AppointmentStatus.scheduled.value:
        raise HTTPException(status_code=409, detail="Only scheduled appointments can be rescheduled")

    duration = body.duration if body.duration or body.end_time else target.duration
    start_time, end_time, duration = resolve_interval(body.start_time, body.end_time, duration)

    scope = CellScope(professional_id=target.professional_id, location=target.location, room=target.room)
    ensure_not_blocked(session, body.date, start_time, end_time, scope)
    ensure_no_overlap(
        session, body.date, start_time, end_time,
        target.professional_id, target.student_id, exclude_id=target.id,
    )

    target.date = body.date
    target.start_time = start_time
    target.end_time = end_time
    target.duration = duration
    session.add(target)
    _commit_booking(session)
    session.refresh(target)
    logger.info("Appointment %s moved to %s %s", target.id, target.date, target.start_time)
    return target


@router.post("/appointments/{appt_id}/evaluation", response_model=AppointmentPublic)
def evaluate_appointment(
    appt_id: int,
    evaluation: EvaluationCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, Role.student.value)
    target = _get_appointment(session, appt_id)

    if target.student_id != current_user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    if target.status != AppointmentStatus.completed.value:
        raise HTTPException(status_code=409, detail="Only completed appointments can be evaluated")
    if target.evaluation:
        raise HTTPException(status_code=409, detail="Appointment already evaluated")

    target.evaluation = {
        **evaluation.model_dump(),
        "evaluated_at": utc_now().isoformat(),
    }
    session.add(target)
    session.commit()
    session.refresh(target)
    return target


@router.delete("/appointments/{appt_id}", status_code=204)
def delete_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, Role.admin.value)  # hard delete is admin only
    target = _get_appointment(session, appt_id)
    session.delete(target)
    session.commit()
    logger.info("Appointment %s deleted by admin %s", appt_id, current_user["id"])
    return Response(status_code=204)
