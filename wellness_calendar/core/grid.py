# wellness_calendar/core/grid.py

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from wellness_calendar.core.blocking import compile_blocks, resolve_block
from wellness_calendar.core.locator import locate_appointment
from wellness_calendar.core.normalize import (
    normalize_appointment,
    normalize_block,
    normalize_many,
)
from wellness_calendar.core.permissions import derive_permissions, slot_start
from wellness_calendar.core.timeutils import DEFAULT_DURATION, full_day_axis, time_axis, week_dates
from wellness_calendar.core.types import CellScope, TimeSlot, ViewerContext
from wellness_calendar.errors import ParseError

logger = logging.getLogger(__name__)

DAY_LABELS = ["Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom"]

# defaults for the service-wide calendar settings
grid_settings = {
    "day_start": "08:00",
    "day_end": "20:30",
    "slot_minutes": 30,
    "default_duration": DEFAULT_DURATION,
}


def default_axis(full_day: bool = False, settings: Optional[dict] = None) -> List[str]:
    settings = settings or grid_settings
    if full_day:
        return full_day_axis(settings["slot_minutes"])
    return time_axis(settings["day_start"], settings["day_end"], settings["slot_minutes"])


def _unavailable(label: str, day_index: int, time: str, day: date) -> TimeSlot:
    return TimeSlot(
        day=label,
        day_index=day_index,
        time=time,
        date=day,
        is_blocked=True,
    )


def build_schedule(
    appointments,
    blocks,
    week_anchor: date,
    viewer: ViewerContext,
    scope: Optional[CellScope] = None,
    full_day: bool = False,
    axis: Optional[Sequence[str]] = None,
) -> List[TimeSlot]:
    """Rebuild the whole weekly grid from what is in memory.

    Collections that are not lists are treated as empty (logged), bad
    records are dropped, and a cell whose rule cannot be parsed comes back
    unavailable. The call never raises for bad upstream data.
    """
    scope = scope or CellScope()
    appointments = normalize_many(appointments, normalize_appointment, "appointments")
    predicates = compile_blocks(normalize_many(blocks, normalize_block, "blocks"))
    axis = list(axis) if axis is not None else default_axis(full_day)

    grid = []
    for day_index, day in enumerate(week_dates(week_anchor)):
        label = DAY_LABELS[day_index]
        for time in axis:
            try:
                status = resolve_block(predicates, day, time, scope)
                appointment = locate_appointment(appointments, day, time, day_index)
                permissions = derive_permissions(
                    viewer,
                    appointment,
                    status.is_blocked,
                    slot_start(day, time),
                )
            except ParseError as exc:
                logger.warning("Cell %s %s unavailable: %s", day.isoformat(), time, exc)
                grid.append(_unavailable(label, day_index, time, day))
                continue

            grid.append(
                TimeSlot(
                    day=label,
                    day_index=day_index,
                    time=time,
                    date=day,
                    is_blocked=status.is_blocked,
                    is_global_block=status.is_global_block,
                    has_class=appointment is not None,
                    class_title=(appointment.title or appointment.type or "") if appointment else "",
                    appointment=appointment,
                    can_edit=permissions.can_edit,
                    can_schedule=permissions.can_schedule,
                )
            )

    logger.debug(
        "Built %d cells for week of %s (%d appointments, %d blocks)",
        len(grid), week_anchor.isoformat(), len(appointments), len(predicates),
    )
    return grid


def index_schedule(slots: List[TimeSlot]) -> Dict[Tuple[int, str], TimeSlot]:
    return {(slot.day_index, slot.time): slot for slot in slots}


def find_slot(slots: List[TimeSlot], day: date, time: str) -> Optional[TimeSlot]:
    for slot in slots:
        if slot.date == day and slot.time == time:
            return slot
    return None
