# wellness_calendar/routers/calendar_routes.py

from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from wellness_calendar.db import get_session
from wellness_calendar.models import Appointment, Block, User
from wellness_calendar.auth import get_current_user
from wellness_calendar.deps import viewer_context
from wellness_calendar.booking import to_calendar_appointment, to_calendar_block
from wellness_calendar.config import calendar_settings
from wellness_calendar.core.grid import build_schedule, default_axis, find_slot
from wellness_calendar.core.permissions import resolve_permissions
from wellness_calendar.core.timeutils import week_start
from wellness_calendar.core.types import CellScope, Permissions, Role, TimeSlot

router = APIRouter(
    prefix="/calendar",
    tags=["calendar"],
)


def _week_grid(
    session: Session,
    current_user: dict,
    anchor: date,
    professional_id: Optional[int],
    location: Optional[str],
    room: Optional[str],
    full_day: bool,
) -> List[TimeSlot]:
    viewer = viewer_context(current_user, session)

    # Professionals look at their own agenda
    if viewer.role == Role.professional:
        professional_id = current_user["id"]

    monday = week_start(anchor)
    stmt = (
        select(Appointment)
        .where(Appointment.date >= monday)
        .where(Appointment.date <= monday + timedelta(days=6))
    )
    if professional_id is not None:
        stmt = stmt.where(Appointment.professional_id == professional_id)
    if location is not None:
        stmt = stmt.where(Appointment.location == location)
    if room is not None:
        stmt = stmt.where(Appointment.room == room)
    appts = session.exec(stmt).all()

    user_ids = {a.student_id for a in appts} | {a.professional_id for a in appts}
    users = {}
    if user_ids:
        users = {u.id: u for u in session.exec(select(User).where(User.id.in_(user_ids))).all()}

    blocks = session.exec(select(Block).where(Block.active == True)).all()  # noqa: E712

    # students do not get names on other students' bookings
    def visible(a):
        if viewer.role == Role.student and a.student_id != current_user["id"]:
            return to_calendar_appointment(a)
        return to_calendar_appointment(a, users)

    return build_schedule(
        [visible(a) for a in appts],
        [to_calendar_block(b) for b in blocks],
        anchor,
        viewer,
        scope=CellScope(professional_id=professional_id, location=location, room=room),
        axis=default_axis(full_day, calendar_settings),
    )


@router.get("/week", response_model=List[TimeSlot])
def week(
    anchor: Optional[date] = None,
    professional_id: Optional[int] = None,
    location: Optional[str] = None,
    room: Optional[str] = None,
    full_day: bool = False,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _week_grid(
        session, current_user, anchor or date.today(), professional_id, location, room, full_day,
    )


@router.get("/slot", response_model=Permissions)
def slot_permissions(
    date: date,
    time: str,
    professional_id: Optional[int] = None,
    location: Optional[str] = None,
    room: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    grid = _week_grid(session, current_user, date, professional_id, location, room, full_day=True)
    slot = find_slot(grid, date, time)
    if slot is None:
        raise HTTPException(status_code=404, detail="No such cell on the calendar")
    return resolve_permissions(slot, viewer_context(current_user, session))
