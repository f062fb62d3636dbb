"""
Unit tests for finding the appointment that occupies a cell.
"""

from datetime import date, timedelta

from wellness_calendar.core.locator import appointments_in_cell, locate_appointment
from wellness_calendar.core.types import CalendarAppointment, PersonRef

TUESDAY = date(2024, 1, 16)


def make_appointment(**overrides):
    data = {
        "id": 1,
        "date": TUESDAY,
        "start_time": "10:00",
        "end_time": "11:00",
        "student": PersonRef(id=20),
        "professional": PersonRef(id=10),
        "title": "Entrenamiento",
    }
    data.update(overrides)
    return CalendarAppointment(**data)


def test_cell_inside_appointment_is_found():
    apt = make_appointment()

    assert locate_appointment([apt], TUESDAY, "10:30") is apt
    assert locate_appointment([apt], TUESDAY, "10:00", day_index=1) is apt


def test_end_of_appointment_is_free():
    apt = make_appointment()

    assert locate_appointment([apt], TUESDAY, "11:00") is None


def test_same_weekday_in_another_week_does_not_collide():
    apt = make_appointment()
    next_tuesday = TUESDAY + timedelta(weeks=1)

    assert locate_appointment([apt], next_tuesday, "10:00", day_index=1) is None


def test_day_index_must_match_the_date():
    apt = make_appointment()

    assert locate_appointment([apt], TUESDAY, "10:00", day_index=2) is None


def test_cancelled_appointments_free_the_cell():
    apt = make_appointment(status="cancelled")

    assert locate_appointment([apt], TUESDAY, "10:00") is None


def test_missing_people_still_match():
    apt = make_appointment(student=None, professional=None)

    assert locate_appointment([apt], TUESDAY, "10:00") is apt


def test_malformed_appointment_is_skipped():
    broken = make_appointment(id=1, start_time="ten")
    good = make_appointment(id=2)

    assert locate_appointment([broken, good], TUESDAY, "10:00") is good


def test_first_match_wins_and_all_matches_are_listed():
    first = make_appointment(id=1)
    second = make_appointment(id=2, start_time="10:30", end_time="11:30")

    assert locate_appointment([first, second], TUESDAY, "10:30") is first
    assert appointments_in_cell([first, second], TUESDAY, "10:30") == [first, second]
