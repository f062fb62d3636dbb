# wellness_calendar/core/timeutils.py

import re
from datetime import date, timedelta
from typing import List

from wellness_calendar.errors import ParseError

MINUTES_PER_DAY = 24 * 60
END_OF_DAY = "24:00"
DEFAULT_DURATION = 60

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def to_minutes(hhmm: str) -> int:
    """Parse "HH:MM" (24h) into minutes since midnight.

    "24:00" is accepted as the end-of-day sentinel.
    """
    if not isinstance(hhmm, str):
        raise ParseError(f"Invalid time value: {hhmm!r}")
    match = _HHMM.match(hhmm.strip())
    if match is None:
        raise ParseError(f"Invalid time string: {hhmm!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        raise ParseError(f"Time out of range: {hhmm!r}")
    return hours * 60 + minutes


def from_minutes(total: int) -> str:
    if total < 0 or total > MINUTES_PER_DAY:
        raise ParseError(f"Minutes out of range: {total}")
    return f"{total // 60:02d}:{total % 60:02d}"


def add_minutes(hhmm: str, duration: int) -> str:
    """End time for an appointment starting at hhmm.

    Appointments never cross midnight, so anything past 24:00 is capped there.
    """
    if duration is None or duration < 0:
        raise ParseError(f"Invalid duration: {duration!r}")
    end = to_minutes(hhmm) + int(duration)
    return from_minutes(min(end, MINUTES_PER_DAY))


def _comparable(value):
    if isinstance(value, str):
        return to_minutes(value)
    return value


def ranges_overlap(start_a, end_a, start_b, end_b) -> bool:
    # half-open: [start, end)
    start_a, end_a = _comparable(start_a), _comparable(end_a)
    start_b, end_b = _comparable(start_b), _comparable(end_b)
    return start_a < end_b and start_b < end_a


def appointment_end(apt) -> str:
    """end_time when present, otherwise start_time + duration (default 60)."""
    end_time = getattr(apt, "end_time", None)
    if end_time:
        return end_time
    duration = getattr(apt, "duration", None) or DEFAULT_DURATION
    return add_minutes(apt.start_time, duration)


def cell_within_appointment(cell_time: str, apt) -> bool:
    cell = to_minutes(cell_time)
    start = to_minutes(apt.start_time)
    end = to_minutes(appointment_end(apt))
    return start <= cell < end


def time_axis(day_start: str = "08:00", day_end: str = "20:30", slot_minutes: int = 30) -> List[str]:
    """Cell start times from day_start to day_end, both inclusive."""
    if slot_minutes <= 0:
        raise ParseError(f"Invalid slot size: {slot_minutes}")
    first, last = to_minutes(day_start), to_minutes(day_end)
    return [from_minutes(m) for m in range(first, last + 1, slot_minutes) if m < MINUTES_PER_DAY]


def full_day_axis(slot_minutes: int = 30) -> List[str]:
    return time_axis("00:00", from_minutes(MINUTES_PER_DAY - slot_minutes), slot_minutes)


def week_start(anchor: date) -> date:
    # Monday = 0
    return anchor - timedelta(days=anchor.weekday())


def week_dates(anchor: date) -> List[date]:
    monday = week_start(anchor)
    return [monday + timedelta(days=offset) for offset in range(7)]
