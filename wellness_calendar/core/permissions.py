# wellness_calendar/core/permissions.py

from datetime import date, datetime, time as dt_time
from typing import Optional

from wellness_calendar.core.timeutils import to_minutes
from wellness_calendar.core.types import (
    CalendarAppointment,
    Permissions,
    Role,
    TimeSlot,
    ViewerContext,
)
from wellness_calendar.errors import ParseError


def slot_start(target: date, hhmm: str) -> datetime:
    minutes = to_minutes(hhmm)
    if minutes >= 24 * 60:
        raise ParseError("A cell cannot start at 24:00")
    return datetime.combine(target, dt_time(minutes // 60, minutes % 60))


def _owner_id(ref) -> Optional[str]:
    return ref.id if ref is not None else None


def derive_permissions(
    viewer: ViewerContext,
    appointment: Optional[CalendarAppointment],
    is_blocked: bool,
    starts_at: datetime,
) -> Permissions:
    """can_edit / can_schedule for one cell.

    Editing needs ownership (admins own everything). Scheduling needs an
    empty, unblocked cell; students additionally need a future cell and
    classes left on their plan.
    """
    role = viewer.role
    empty = appointment is None
    now = viewer.now
    if now.tzinfo is not None:
        starts_at = starts_at.replace(tzinfo=now.tzinfo)

    if role is None:
        return Permissions()

    if role == Role.admin:
        return Permissions(can_edit=True, can_schedule=not is_blocked)

    if role == Role.professional:
        owns = (
            not empty
            and viewer.user_id is not None
            and _owner_id(appointment.professional) == viewer.user_id
        )
        return Permissions(
            can_edit=empty or owns,
            can_schedule=not is_blocked and empty,
        )

    if role == Role.student:
        owns = (
            not empty
            and viewer.user_id is not None
            and _owner_id(appointment.student) == viewer.user_id
        )
        return Permissions(
            can_edit=owns,
            can_schedule=(
                not is_blocked
                and empty
                and starts_at > now
                and viewer.plan_remaining > 0
            ),
        )

    raise ValueError(f"Unhandled role: {role!r}")


def resolve_permissions(slot: TimeSlot, viewer: ViewerContext) -> Permissions:
    """Re-evaluate a single, already built cell for a viewer."""
    appointment = slot.appointment if slot.has_class else None
    return derive_permissions(
        viewer,
        appointment,
        slot.is_blocked,
        slot_start(slot.date, slot.time),
    )
