# wellness_calendar/core/normalize.py
"""
Boundary normalization for upstream payloads.

Different endpoints speak different dialects (``date/startTime/status`` in
one place, ``fecha/hora/estado`` in another, populated user objects or bare
ids). Everything is folded into the core types here, before the grid
builder sees it.
"""

import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from pydantic import ValidationError

from wellness_calendar.core.timeutils import add_minutes, to_minutes
from wellness_calendar.core.types import (
    AppointmentStatus,
    BlockType,
    CalendarAppointment,
    CalendarBlock,
    PersonRef,
    PlanSnapshot,
    Recurrence,
    Role,
)
from wellness_calendar.errors import ParseError, PayloadError

logger = logging.getLogger(__name__)

SINGLE_CELL_MINUTES = 30

STATUS_ALIASES = {
    "agendada": AppointmentStatus.scheduled,
    "completada": AppointmentStatus.completed,
    "cancelada": AppointmentStatus.cancelled,
    "canceled": AppointmentStatus.cancelled,
    "booked": AppointmentStatus.scheduled,
    "no_show": AppointmentStatus.no_show,
}

BLOCK_TYPE_ALIASES = {
    "profesional": BlockType.professional,
    "ubicacion": BlockType.location,
    "ubicación": BlockType.location,
    "sala": BlockType.room,
}

ROLE_ALIASES = {
    "admin": Role.admin,
    "professional": Role.professional,
    "teacher": Role.professional,
    "nutritionist": Role.professional,
    "psychologist": Role.professional,
    "student": Role.student,
}


def _pick(raw: dict, *keys, default=None):
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return default


def parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            # "2024-01-16" or "2024-01-16T00:00:00.000Z"
            return date.fromisoformat(value[:10])
        except ValueError as exc:
            raise ParseError(f"Invalid date: {value!r}") from exc
    raise ParseError(f"Invalid date: {value!r}")


def _optional_date(value) -> Optional[date]:
    return None if value is None else parse_date(value)


TRUE_STRINGS = {"true", "1", "yes", "si", "sí"}
FALSE_STRINGS = {"false", "0", "no"}


def _flag(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        key = value.strip().lower()
        if key in TRUE_STRINGS:
            return True
        if key in FALSE_STRINGS:
            return False
    raise ParseError(f"Invalid flag: {value!r}")


def parse_role(value) -> Optional[Role]:
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    return ROLE_ALIASES.get(value.strip().lower())


def person_ref(value) -> Optional[PersonRef]:
    if value is None:
        return None
    if isinstance(value, PersonRef):
        return value
    if isinstance(value, dict):
        name = value.get("name")
        if not name:
            parts = [value.get("firstName") or value.get("first_name"),
                     value.get("lastName") or value.get("last_name")]
            name = " ".join(p for p in parts if p) or None
        return PersonRef(id=_pick(value, "id", "_id"), name=name)
    return PersonRef(id=value)


def _status(value) -> AppointmentStatus:
    if value is None:
        return AppointmentStatus.scheduled
    if isinstance(value, AppointmentStatus):
        return value
    key = str(value).strip().lower()
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    try:
        return AppointmentStatus(key)
    except ValueError as exc:
        raise PayloadError(f"Unknown appointment status: {value!r}") from exc


def normalize_appointment(raw) -> CalendarAppointment:
    if isinstance(raw, CalendarAppointment):
        return raw
    if not isinstance(raw, dict):
        raise PayloadError(f"Appointment payload is not an object: {type(raw).__name__}")

    day = _pick(raw, "date", "fecha")
    start = _pick(raw, "startTime", "start_time", "hora")
    if day is None or start is None:
        raise PayloadError("Appointment payload is missing its date or start time")

    try:
        return CalendarAppointment(
            id=_pick(raw, "id", "_id"),
            date=parse_date(day),
            start_time=start,
            end_time=_pick(raw, "endTime", "end_time", "horaFin"),
            duration=_pick(raw, "duration", "duracion"),
            student=person_ref(_pick(raw, "student", "alumno", "alumnoId", "studentId", "student_id")),
            professional=person_ref(
                _pick(raw, "professional", "profesional", "profesionalId", "professionalId", "professional_id")
            ),
            type=_pick(raw, "type", "especialidad"),
            title=_pick(raw, "title", "titulo"),
            status=_status(_pick(raw, "status", "estado")),
            location=_pick(raw, "location", "ubicacion"),
            room=_pick(raw, "room", "sala"),
        )
    except (ParseError, ValidationError) as exc:
        raise PayloadError(f"Invalid appointment payload: {exc}") from exc


def _block_type(value) -> BlockType:
    if value is None:
        return BlockType.global_
    if isinstance(value, BlockType):
        return value
    key = str(value).strip().lower()
    if key in BLOCK_TYPE_ALIASES:
        return BLOCK_TYPE_ALIASES[key]
    try:
        return BlockType(key)
    except ValueError as exc:
        raise PayloadError(f"Unknown block type: {value!r}") from exc


def _recurrence(raw) -> Optional[Recurrence]:
    if not raw:
        return None
    if isinstance(raw, Recurrence):
        return raw
    if not isinstance(raw, dict):
        raise PayloadError(f"Recurrence pattern is not an object: {type(raw).__name__}")
    return Recurrence(
        frequency=_pick(raw, "frequency", "frecuencia"),
        interval=_pick(raw, "interval", "intervalo", default=1),
        days_of_week=_pick(raw, "daysOfWeek", "days_of_week", "dias", default=[]),
        day_of_month=_pick(raw, "dayOfMonth", "day_of_month"),
        end_date=_optional_date(_pick(raw, "endDate", "end_date")),
    )


def normalize_block(raw) -> CalendarBlock:
    if isinstance(raw, CalendarBlock):
        return raw
    if not isinstance(raw, dict):
        raise PayloadError(f"Block payload is not an object: {type(raw).__name__}")

    professional = _pick(raw, "professionalId", "professional_id", "profesionalId")
    if isinstance(professional, dict):
        professional = _pick(professional, "id", "_id")

    start_time = _pick(raw, "startTime", "start_time", "horaInicio", "hora")
    end_time = _pick(raw, "endTime", "end_time", "horaFin")

    try:
        all_day = _flag(_pick(raw, "allDay", "all_day", "todoElDia"), False)

        # legacy single-cell blocks only carry "hora"
        if start_time and not end_time and not all_day:
            end_time = add_minutes(start_time, SINGLE_CELL_MINUTES)
        elif start_time:
            to_minutes(start_time)

        recurrence = _recurrence(_pick(raw, "recurrencePattern", "recurrence"))
        return CalendarBlock(
            id=_pick(raw, "id", "_id"),
            type=_block_type(_pick(raw, "type", "tipo")),
            title=_pick(raw, "title", "titulo", "motivo"),
            date=_optional_date(_pick(raw, "date", "fecha")),
            start_date=_optional_date(_pick(raw, "startDate", "start_date", "fechaInicio")),
            end_date=_optional_date(_pick(raw, "endDate", "end_date", "fechaFin")),
            start_time=start_time,
            end_time=end_time,
            all_day=all_day,
            is_recurring=_flag(_pick(raw, "isRecurring", "is_recurring"), recurrence is not None),
            recurrence=recurrence,
            professional_id=professional,
            location=_pick(raw, "location", "ubicacion"),
            room=_pick(raw, "room", "sala"),
            active=_flag(_pick(raw, "active", "activo"), True),
        )
    except (ParseError, ValidationError) as exc:
        raise PayloadError(f"Invalid block payload: {exc}") from exc


def normalize_plan(raw) -> PlanSnapshot:
    if isinstance(raw, PlanSnapshot):
        return raw
    if not isinstance(raw, dict):
        raise PayloadError(f"Plan payload is not an object: {type(raw).__name__}")

    try:
        total = int(_pick(raw, "total_classes", "totalClasses", "clasesTotales", default=0))
        used = int(_pick(raw, "used_classes", "usedClasses", "clasesUsadas", default=0))
        remaining = _pick(raw, "remaining_classes", "remainingClasses", "clasesRestantes")
        remaining = max(0, total - used) if remaining is None else max(0, int(remaining))
        return PlanSnapshot(
            total_classes=total,
            used_classes=used,
            remaining_classes=remaining,
            classes_per_week=_pick(raw, "classes_per_week", "classesPerWeek", "clasesPorSemana"),
            expires_on=_optional_date(_pick(raw, "expires_on", "expiresOn", "fechaVencimiento")),
        )
    except (ValueError, TypeError) as exc:
        raise PayloadError(f"Invalid plan payload: {exc}") from exc


def coerce_list(value, what: str) -> list:
    """Non-array collections degrade to an empty list with a warning."""
    if isinstance(value, (list, tuple)):
        return list(value)
    logger.warning("Expected a list of %s, got %s; treating as empty", what, type(value).__name__)
    return []


def normalize_many(value, normalizer: Callable, what: str) -> List:
    items = []
    for raw in coerce_list(value, what):
        try:
            items.append(normalizer(raw))
        except PayloadError as exc:
            logger.warning("Dropping malformed %s record: %s", what, exc)
    return items
