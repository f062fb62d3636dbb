# wellness_calendar/core/locator.py

import logging
from datetime import date
from typing import Iterable, List, Optional

from wellness_calendar.core.timeutils import cell_within_appointment
from wellness_calendar.core.types import AppointmentStatus, CalendarAppointment
from wellness_calendar.errors import ParseError

logger = logging.getLogger(__name__)


def occupies_cell(
    apt: CalendarAppointment,
    target: date,
    time: str,
    day_index: Optional[int] = None,
) -> bool:
    if apt.status == AppointmentStatus.cancelled:
        return False
    # weekday alone collides across weeks, the exact date is the key
    if apt.date != target:
        return False
    if day_index is not None and apt.date.weekday() != day_index:
        return False
    return cell_within_appointment(time, apt)


def appointments_in_cell(
    appointments: Iterable[CalendarAppointment],
    target: date,
    time: str,
    day_index: Optional[int] = None,
) -> List[CalendarAppointment]:
    matches = []
    for apt in appointments:
        try:
            if occupies_cell(apt, target, time, day_index):
                matches.append(apt)
        except ParseError as exc:
            logger.warning("Skipping appointment %s with bad times: %s", apt.id, exc)
    return matches


def locate_appointment(
    appointments: Iterable[CalendarAppointment],
    target: date,
    time: str,
    day_index: Optional[int] = None,
) -> Optional[CalendarAppointment]:
    """First appointment occupying the cell, or None.

    A cell hosts at most one appointment; double booking is refused
    upstream by the permission deriver and the booking endpoints.
    """
    for apt in appointments:
        try:
            if occupies_cell(apt, target, time, day_index):
                return apt
        except ParseError as exc:
            logger.warning("Skipping appointment %s with bad times: %s", apt.id, exc)
    return None
