# wellness_calendar/booking.py
"""
Server-side booking rules.

The calendar only offers cells whose ``can_schedule`` is true, but that is a
client-side view. Every write goes through these checks again against the
stored blocks and appointments.
"""

from datetime import date
from typing import Dict, Iterable, Optional, Tuple

from fastapi import HTTPException
from sqlmodel import Session, select

from wellness_calendar.config import calendar_settings
from wellness_calendar.core.blocking import compile_blocks, resolve_block
from wellness_calendar.core.timeutils import (
    add_minutes,
    from_minutes,
    ranges_overlap,
    time_axis,
    to_minutes,
)
from wellness_calendar.core.types import (
    CalendarAppointment,
    CalendarBlock,
    CellScope,
    PersonRef,
)
from wellness_calendar.errors import ParseError
from wellness_calendar.models import Appointment, Block, User


def to_calendar_appointment(appt: Appointment, users: Optional[Dict[int, User]] = None) -> CalendarAppointment:
    users = users or {}

    def ref(user_id):
        user = users.get(user_id)
        return PersonRef(id=user_id, name=user.display_name if user else None)

    return CalendarAppointment(
        id=appt.id,
        date=appt.date,
        start_time=appt.start_time,
        end_time=appt.end_time,
        duration=appt.duration,
        student=ref(appt.student_id),
        professional=ref(appt.professional_id),
        type=appt.type,
        title=appt.title,
        status=appt.status,
        location=appt.location,
        room=appt.room,
    )


def to_calendar_block(block: Block) -> CalendarBlock:
    return CalendarBlock(
        id=block.id,
        type=block.type,
        title=block.title,
        date=block.date,
        start_date=block.start_date,
        end_date=block.end_date,
        start_time=block.start_time,
        end_time=block.end_time,
        all_day=block.all_day,
        is_recurring=block.is_recurring,
        recurrence=block.recurrence,
        professional_id=block.professional_id,
        location=block.location,
        room=block.room,
        active=block.active,
    )


def resolve_interval(start_time: str, end_time: Optional[str], duration: Optional[int]) -> Tuple[str, str, int]:
    """Normalize (start, end, duration); end wins over duration when both are given."""
    slot_minutes = calendar_settings["slot_minutes"]
    try:
        start = to_minutes(start_time)
        if start % slot_minutes != 0:
            raise HTTPException(
                status_code=422, detail=f"Start time must be in {slot_minutes}-minute increments"
            )
        if start_time not in time_axis(
            calendar_settings["day_start"], calendar_settings["day_end"], slot_minutes
        ):
            raise HTTPException(status_code=422, detail="Appointment must start within opening hours")

        if end_time:
            end = to_minutes(end_time)
        else:
            duration = duration or calendar_settings["default_duration"]
            end = to_minutes(add_minutes(start_time, duration))
    except ParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if end <= start:
        raise HTTPException(status_code=422, detail="end_time must be after start_time")

    return from_minutes(start), from_minutes(end), end - start


def _cells(start: str, end: str) -> Iterable[str]:
    step = calendar_settings["slot_minutes"]
    for minute in range(to_minutes(start), to_minutes(end), step):
        yield from_minutes(minute)


def ensure_not_blocked(session: Session, day: date, start: str, end: str, scope: CellScope):
    blocks = session.exec(select(Block).where(Block.active == True)).all()  # noqa: E712
    predicates = compile_blocks(to_calendar_block(b) for b in blocks)
    try:
        for cell in _cells(start, end):
            if resolve_block(predicates, day, cell, scope).is_blocked:
                raise HTTPException(status_code=409, detail="Appointment overlaps a block")
    except ParseError as exc:
        raise HTTPException(status_code=409, detail=f"Blocking rules could not be evaluated: {exc}")


def ensure_no_overlap(
    session: Session,
    day: date,
    start: str,
    end: str,
    professional_id: int,
    student_id: int,
    exclude_id: Optional[int] = None,
):
    db_appts = session.exec(
        select(Appointment)
        .where(Appointment.date == day)
        .where(Appointment.status == "scheduled")
        .where(
            (Appointment.professional_id == professional_id)
            | (Appointment.student_id == student_id)
        )
    ).all()

    for a in db_appts:
        if exclude_id is not None and a.id == exclude_id:
            continue
        if ranges_overlap(start, end, a.start_time, a.end_time):
            if a.professional_id == professional_id:
                raise HTTPException(status_code=409, detail="Appointment overlaps an existing appointment")
            raise HTTPException(status_code=409, detail="Student already has an appointment at that time")
