# wellness_calendar/core/__init__.py

from wellness_calendar.core.blocking import (
    BlockPredicate,
    GlobalBlock,
    LocationBlock,
    ProfessionalBlock,
    RoomBlock,
    predicate_for,
    resolve_block,
)
from wellness_calendar.core.grid import build_schedule, find_slot, index_schedule
from wellness_calendar.core.locator import appointments_in_cell, locate_appointment
from wellness_calendar.core.permissions import derive_permissions, resolve_permissions
from wellness_calendar.core.timeutils import (
    add_minutes,
    cell_within_appointment,
    ranges_overlap,
    to_minutes,
)
from wellness_calendar.core.types import (
    AppointmentStatus,
    BlockType,
    CalendarAppointment,
    CalendarBlock,
    CellScope,
    Role,
    TimeSlot,
    ViewerContext,
)
