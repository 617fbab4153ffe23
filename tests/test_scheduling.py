"""
Tests del núcleo de agenda (funciones puras, sin DB).
"""

import datetime as dt
from dataclasses import dataclass, field
from uuid import UUID, uuid4

import pytest

from app.services.scheduling import (
    DOCTOR_NOT_ASSIGNED,
    DOCTOR_NOT_ASSIGNED_ON_DATE,
    SLOT_OCCUPIED,
    TIME_NOT_AVAILABLE,
    doctor_conflict_error,
    find_conflicts,
    generate_slots,
    normalize_week_days,
    office_conflict_error,
    times_overlap,
    validate_booking,
    weekday_of,
)

DOCTOR_ID = uuid4()


@dataclass
class FakeAssignment:
    week_days: list[int]
    start_time: str
    end_time: str
    month: int = 11
    year: int = 2025
    doctor_id: UUID = DOCTOR_ID
    office_name: str = "Consultorio A"
    doctor_name: str = "Dr. Ezequiel Mermet"
    id: UUID = field(default_factory=uuid4)


@dataclass
class FakeAppointment:
    date: dt.date
    time: str
    status: str = "pendiente"
    doctor_id: UUID = DOCTOR_ID
    id: UUID = field(default_factory=uuid4)


# ── Solapamiento ─────────────────────────────────────

class TestTimesOverlap:

    @pytest.mark.parametrize(
        "a, b",
        [
            (("08:00", "10:00"), ("09:00", "11:00")),
            (("08:00", "12:00"), ("09:00", "10:00")),
            (("08:00", "09:00"), ("09:00", "10:00")),
            (("14:00", "15:00"), ("08:00", "09:00")),
        ],
    )
    def test_symmetric(self, a, b):
        assert times_overlap(*a, *b) == times_overlap(*b, *a)

    def test_partial_overlap(self):
        assert times_overlap("08:00", "10:00", "09:30", "11:00")

    def test_containment(self):
        assert times_overlap("08:00", "12:00", "09:00", "10:00")

    def test_touching_ranges_do_not_overlap(self):
        assert not times_overlap("08:00", "09:00", "09:00", "10:00")
        assert not times_overlap("09:00", "10:00", "08:00", "09:00")

    def test_disjoint(self):
        assert not times_overlap("08:00", "09:00", "14:00", "15:00")


# ── Slots ────────────────────────────────────────────

class TestGenerateSlots:

    def test_one_hour_gives_two_slots(self):
        assert generate_slots("08:00", "09:00") == ["08:00", "08:30"]

    def test_range_shorter_than_a_slot_is_empty(self):
        assert generate_slots("08:00", "08:20") == []

    def test_partial_tail_is_dropped(self):
        assert generate_slots("08:00", "09:15") == ["08:00", "08:30"]

    def test_uneven_start(self):
        assert generate_slots("08:15", "09:15") == ["08:15", "08:45"]

    def test_every_slot_fits_in_range(self):
        slots = generate_slots("08:00", "18:00")
        assert len(slots) == 20
        assert slots[-1] == "17:30"


class TestWeekdays:

    def test_sunday_is_zero(self):
        assert weekday_of(dt.date(2025, 11, 16)) == 0

    def test_monday_is_one(self):
        assert weekday_of(dt.date(2025, 11, 17)) == 1

    def test_saturday_is_six(self):
        assert weekday_of(dt.date(2025, 11, 22)) == 6

    def test_normalize_dedupes_and_sorts(self):
        assert normalize_week_days([5, 1, 3, 1]) == [1, 3, 5]


# ── Conflictos ───────────────────────────────────────

class TestFindConflicts:

    def test_shared_day_and_overlap_is_conflict(self):
        existing = [FakeAssignment([1, 3, 5], "08:00", "10:00")]
        result = find_conflicts(existing, [1], "09:00", "11:00")
        assert not result.available
        assert result.conflicts == existing

    def test_disjoint_weekdays_are_accepted(self):
        existing = [FakeAssignment([1, 3, 5], "08:00", "10:00")]
        result = find_conflicts(existing, [2, 4], "08:00", "10:00")
        assert result.available
        assert result.conflicts == []

    def test_adjacent_block_is_accepted(self):
        existing = [FakeAssignment([1], "08:00", "10:00")]
        assert find_conflicts(existing, [1], "10:00", "12:00").available

    def test_excluded_assignment_is_ignored(self):
        current = FakeAssignment([1], "08:00", "10:00")
        result = find_conflicts([current], [1], "08:00", "10:00", current.id)
        assert result.available

    def test_only_conflicting_assignments_are_listed(self):
        clash = FakeAssignment([1], "08:00", "10:00")
        other_day = FakeAssignment([2], "08:00", "10:00")
        later = FakeAssignment([1], "14:00", "16:00")
        result = find_conflicts([clash, other_day, later], [1], "09:00", "09:30")
        assert result.conflicts == [clash]

    def test_office_conflict_message_lists_doctor_and_times(self):
        error = office_conflict_error([FakeAssignment([1], "08:00", "10:00")])
        assert error.code == "office_conflict"
        assert "Dr. Ezequiel Mermet (08:00 - 10:00)" in error.message

    def test_doctor_conflict_message_lists_office_and_times(self):
        error = doctor_conflict_error([FakeAssignment([1], "08:00", "10:00")])
        assert error.code == "doctor_conflict"
        assert "Consultorio A (08:00 - 10:00)" in error.message


# ── Validación de turnos ─────────────────────────────

MONDAY = dt.date(2025, 11, 17)
TUESDAY = dt.date(2025, 11, 18)


class TestValidateBooking:

    @pytest.fixture
    def assignments(self):
        return [FakeAssignment([1, 3, 5], "08:00", "10:00")]

    def test_valid_slot(self, assignments):
        assert validate_booking(assignments, [], DOCTOR_ID, MONDAY, "08:30") is None

    def test_last_slot_of_block_is_valid(self, assignments):
        assert validate_booking(assignments, [], DOCTOR_ID, MONDAY, "09:30") is None

    def test_no_assignment_in_month(self, assignments):
        error = validate_booking(
            assignments, [], DOCTOR_ID, dt.date(2025, 12, 1), "08:30"
        )
        assert error.code == "doctor_not_assigned"
        assert error.message == DOCTOR_NOT_ASSIGNED

    def test_other_doctor_assignments_do_not_count(self, assignments):
        error = validate_booking(assignments, [], uuid4(), MONDAY, "08:30")
        assert error.code == "doctor_not_assigned"

    def test_weekday_not_assigned(self, assignments):
        error = validate_booking(assignments, [], DOCTOR_ID, TUESDAY, "08:30")
        assert error.code == "doctor_not_assigned"
        assert error.message == DOCTOR_NOT_ASSIGNED_ON_DATE

    def test_slot_ending_after_block(self, assignments):
        error = validate_booking(assignments, [], DOCTOR_ID, MONDAY, "10:00")
        assert error.code == "time_not_available"
        assert error.message == TIME_NOT_AVAILABLE

    def test_slot_before_block(self, assignments):
        error = validate_booking(assignments, [], DOCTOR_ID, MONDAY, "07:30")
        assert error.code == "time_not_available"

    def test_occupied_slot(self, assignments):
        taken = [FakeAppointment(MONDAY, "08:30")]
        error = validate_booking(assignments, taken, DOCTOR_ID, MONDAY, "08:30")
        assert error.code == "slot_occupied"
        assert error.message == SLOT_OCCUPIED

    def test_cancelled_appointment_frees_slot(self, assignments):
        cancelled = [FakeAppointment(MONDAY, "08:30", status="cancelada")]
        assert validate_booking(assignments, cancelled, DOCTOR_ID, MONDAY, "08:30") is None

    def test_excluded_appointment_does_not_block_itself(self, assignments):
        own = FakeAppointment(MONDAY, "08:30")
        assert validate_booking(
            assignments, [own], DOCTOR_ID, MONDAY, "08:30",
            exclude_appointment_id=own.id,
        ) is None

    def test_any_covering_assignment_is_enough(self):
        assignments = [
            FakeAssignment([1], "08:00", "10:00"),
            FakeAssignment([1], "14:00", "16:00", office_name="Consultorio B"),
        ]
        assert validate_booking(assignments, [], DOCTOR_ID, MONDAY, "15:00") is None
