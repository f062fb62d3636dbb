"""
Unit tests for per-cell permission rules.
"""

from datetime import date, datetime

import pytest

from wellness_calendar.core.permissions import derive_permissions, resolve_permissions, slot_start
from wellness_calendar.core.types import (
    CalendarAppointment,
    PersonRef,
    Role,
    TimeSlot,
    ViewerContext,
)

NOW = datetime(2024, 1, 15, 12, 0)
FUTURE = datetime(2024, 1, 16, 10, 0)
PAST = datetime(2024, 1, 15, 9, 0)


@pytest.fixture
def appointment():
    return CalendarAppointment(
        id=1,
        date=date(2024, 1, 16),
        start_time="10:00",
        end_time="11:00",
        student=PersonRef(id=20),
        professional=PersonRef(id=10),
    )


def viewer(role, user_id=None, plan_remaining=0):
    return ViewerContext(role=role, user_id=user_id, plan_remaining=plan_remaining, now=NOW)


def test_admin_edits_everything_and_schedules_unblocked(appointment):
    admin = viewer(Role.admin, 1)

    assert derive_permissions(admin, appointment, False, FUTURE).can_edit
    assert derive_permissions(admin, None, False, PAST).can_schedule
    assert not derive_permissions(admin, None, True, FUTURE).can_schedule


def test_professional_edits_own_or_empty(appointment):
    owner = viewer(Role.professional, 10)
    other = viewer(Role.professional, 11)

    assert derive_permissions(owner, appointment, False, FUTURE).can_edit
    assert not derive_permissions(other, appointment, False, FUTURE).can_edit
    assert derive_permissions(other, None, False, FUTURE).can_edit


def test_professional_schedules_only_empty_unblocked(appointment):
    owner = viewer(Role.professional, 10)

    assert not derive_permissions(owner, appointment, False, FUTURE).can_schedule
    assert not derive_permissions(owner, None, True, FUTURE).can_schedule
    assert derive_permissions(owner, None, False, PAST).can_schedule


def test_student_edits_only_own(appointment):
    assert derive_permissions(viewer(Role.student, 20, 3), appointment, False, FUTURE).can_edit
    assert not derive_permissions(viewer(Role.student, 21, 3), appointment, False, FUTURE).can_edit
    assert not derive_permissions(viewer(Role.student, 20, 3), None, False, FUTURE).can_edit


def test_student_schedules_future_free_cells_with_plan():
    assert derive_permissions(viewer(Role.student, 20, 3), None, False, FUTURE).can_schedule
    assert not derive_permissions(viewer(Role.student, 20, 3), None, False, PAST).can_schedule
    assert not derive_permissions(viewer(Role.student, 20, 3), None, True, FUTURE).can_schedule


def test_student_without_classes_left_cannot_schedule():
    permissions = derive_permissions(viewer(Role.student, 20, 0), None, False, FUTURE)

    assert not permissions.can_schedule


@pytest.mark.parametrize("role,user_id", [(Role.professional, 10), (Role.student, 20)])
def test_occupied_cell_is_not_schedulable(appointment, role, user_id):
    permissions = derive_permissions(viewer(role, user_id, 5), appointment, False, FUTURE)

    assert not permissions.can_schedule


def test_unauthenticated_viewer_gets_nothing(appointment):
    anonymous = ViewerContext(now=NOW)

    assert derive_permissions(anonymous, None, False, FUTURE).model_dump() == {
        "can_edit": False,
        "can_schedule": False,
    }


def test_resolve_permissions_reevaluates_a_slot(appointment):
    slot = TimeSlot(
        day="Mar",
        day_index=1,
        time="10:00",
        date=date(2024, 1, 16),
        has_class=True,
        appointment=appointment,
    )

    assert resolve_permissions(slot, viewer(Role.student, 20, 1)).can_edit
    assert not resolve_permissions(slot, viewer(Role.student, 20, 1)).can_schedule
    assert not resolve_permissions(slot, viewer(Role.professional, 11)).can_edit


def test_slot_start_combines_date_and_time():
    assert slot_start(date(2024, 1, 16), "10:30") == datetime(2024, 1, 16, 10, 30)
