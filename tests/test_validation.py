"""
Unit tests for assignment validation.

The first failing rule decides the reason; each test sets up a snapshot in
which only the rule under test can fail.
"""

import unittest

from classplanner.model import (
    Career,
    Group,
    Room,
    ScheduleEntry,
    Shift,
    Snapshot,
    Teacher,
    TeacherAvailability,
    TimeBlock,
)
from classplanner.validation import (
    Proposal,
    ReasonCode,
    cycle_for_career,
    cycle_window,
    in_shift,
    validate_assignment,
)


def _avail(teacher: int, block: int, ok: bool = True, period: int = 1) -> TeacherAvailability:
    return TeacherAvailability(teacher_id=teacher, period_id=period, day_of_week=1, block_id=block, is_available=ok)


def _entry(entry_id: int, group: int, teacher: int, room: int, block: int = 1, period: int = 1) -> ScheduleEntry:
    return ScheduleEntry(
        id=entry_id, group_id=group, subject_id=10, teacher_id=teacher, room_id=room,
        period_id=period, day_of_week=1, block_id=block,
    )


def make_snapshot() -> Snapshot:
    # career with 4 curriculum hours -> cycle 2 -> 07:00-13:00 window
    return Snapshot(
        blocks=[
            TimeBlock(id=1, day_of_week=1, start_time="08:00", end_time="09:30"),
            TimeBlock(id=2, day_of_week=1, start_time="14:00", end_time="15:30"),
            TimeBlock(id=3, day_of_week=1, start_time="19:00", end_time="20:30"),
        ],
        teachers=[
            Teacher(id=1, names="Ana", last_names="Rojas"),
            Teacher(id=2, names="Luis", last_names="Paz"),
            Teacher(id=3, names="Rosa", last_names="Vega"),
        ],
        rooms=[
            Room(id=1, name="A-101", capacity=40, room_type_id=1),
            Room(id=2, name="A-102", capacity=40, room_type_id=1),
            Room(id=3, name="A-103", capacity=40, room_type_id=1),
        ],
        careers=[Career(id=1, code="SIS", name="Systems", total_curriculum_hours=4)],
        groups=[
            Group(id=1, code="G1", preferred_shift="morning", career_id=1),
            Group(id=2, code="G2", preferred_shift="Tarde", career_id=1),
            Group(id=3, code="G3", preferred_shift="", career_id=1),
        ],
        availabilities=[
            _avail(1, 1),
            _avail(2, 1),
            _avail(3, 1),
            _avail(1, 2),
            _avail(2, 2, ok=False),
            _avail(2, 3),
        ],
        schedules=[_entry(100, group=2, teacher=3, room=3)],
    )


def proposal(group=1, teacher=1, room=1, day=1, block=1, period=1) -> Proposal:
    return Proposal(group_id=group, teacher_id=teacher, room_id=room, day_of_week=day, block_id=block, period_id=period)


class TestValidateAssignment(unittest.TestCase):
    def setUp(self) -> None:
        self.snapshot = make_snapshot()

    def test_valid_assignment_is_accepted(self) -> None:
        result = validate_assignment(proposal(), self.snapshot)
        self.assertTrue(result.ok)
        self.assertIsNone(result.reason)

    def test_missing_fields(self) -> None:
        for p in (proposal(teacher=None), proposal(room=None), proposal(period=None), proposal(group=0)):
            result = validate_assignment(p, self.snapshot)
            self.assertFalse(result.ok)
            self.assertEqual(result.reason, ReasonCode.MISSING_FIELDS)

    def test_edit_mode_requires_day_and_block(self) -> None:
        result = validate_assignment(proposal(block=None), self.snapshot, mode="edit", entry_id=100)
        self.assertEqual(result.reason, ReasonCode.MISSING_FIELDS)
        self.assertIn("day", result.message)

    def test_duplicate_slot_for_group(self) -> None:
        result = validate_assignment(proposal(group=2, teacher=1, room=1), self.snapshot)
        self.assertEqual(result.reason, ReasonCode.DUPLICATE_SLOT)

    def test_teacher_declared_unavailable(self) -> None:
        result = validate_assignment(proposal(teacher=2, block=2), self.snapshot)
        self.assertEqual(result.reason, ReasonCode.TEACHER_UNAVAILABLE)

    def test_teacher_without_record_is_unavailable(self) -> None:
        result = validate_assignment(proposal(teacher=3, block=2), self.snapshot)
        self.assertEqual(result.reason, ReasonCode.TEACHER_UNAVAILABLE)

    def test_teacher_double_booking(self) -> None:
        # teacher 3 already teaches group 2 in this slot
        result = validate_assignment(proposal(teacher=3, room=1), self.snapshot)
        self.assertEqual(result.reason, ReasonCode.RESOURCE_CONFLICT)

    def test_room_double_booking(self) -> None:
        result = validate_assignment(proposal(teacher=1, room=3), self.snapshot)
        self.assertEqual(result.reason, ReasonCode.RESOURCE_CONFLICT)

    def test_room_used_in_other_period_conflicts(self) -> None:
        snapshot = self.snapshot.with_entry(_entry(101, group=9, teacher=9, room=1, period=2))
        result = validate_assignment(proposal(), snapshot)
        self.assertEqual(result.reason, ReasonCode.RESOURCE_CONFLICT)

    def test_teacher_used_in_other_period_does_not_conflict(self) -> None:
        snapshot = self.snapshot.with_entry(_entry(101, group=9, teacher=1, room=2, period=2))
        self.assertTrue(validate_assignment(proposal(), snapshot).ok)

    def test_edit_does_not_conflict_with_itself(self) -> None:
        snapshot = self.snapshot.with_entry(_entry(101, group=1, teacher=1, room=1))
        self.assertEqual(
            validate_assignment(proposal(), snapshot).reason,
            ReasonCode.DUPLICATE_SLOT,
        )
        result = validate_assignment(proposal(), snapshot, mode="edit", entry_id=101)
        self.assertTrue(result.ok)

    def test_entry_id_ignored_in_create_mode(self) -> None:
        snapshot = self.snapshot.with_entry(_entry(101, group=9, teacher=1, room=2))
        result = validate_assignment(proposal(), snapshot, mode="create", entry_id=101)
        self.assertEqual(result.reason, ReasonCode.RESOURCE_CONFLICT)

    def test_shift_mismatch(self) -> None:
        result = validate_assignment(proposal(block=2), self.snapshot)
        self.assertEqual(result.reason, ReasonCode.SHIFT_MISMATCH)
        self.assertIn("morning", result.message)

    def test_spanish_shift_label(self) -> None:
        # group 2 prefers "Tarde" (afternoon); block 2 starts at 14:00
        result = validate_assignment(proposal(group=2, block=2), self.snapshot)
        self.assertTrue(result.ok)

    def test_cycle_window_only_when_requested(self) -> None:
        p = proposal(group=3, teacher=2, block=3)
        self.assertTrue(validate_assignment(p, self.snapshot).ok)
        result = validate_assignment(p, self.snapshot, check_cycle_window=True)
        self.assertEqual(result.reason, ReasonCode.CYCLE_WINDOW)
        self.assertIn("7:00", result.message)

    def test_cycle_window_passes_in_the_morning(self) -> None:
        result = validate_assignment(proposal(group=3), self.snapshot, check_cycle_window=True)
        self.assertTrue(result.ok)

    def test_unknown_group_skips_time_rules(self) -> None:
        result = validate_assignment(proposal(group=42, block=2), self.snapshot, check_cycle_window=True)
        self.assertTrue(result.ok)

    def test_edit_mode_without_entry_id_is_an_error(self) -> None:
        with self.assertRaises(ValueError):
            validate_assignment(proposal(), self.snapshot, mode="edit")

    def test_unknown_mode_is_an_error(self) -> None:
        with self.assertRaises(ValueError):
            validate_assignment(proposal(), self.snapshot, mode="delete")

    def test_validation_does_not_mutate_snapshot(self) -> None:
        before = self.snapshot.to_dict()
        validate_assignment(proposal(), self.snapshot)
        self.assertEqual(self.snapshot.to_dict(), before)


class TestWindowEdges(unittest.TestCase):
    """
    The cycle window includes its upper hour; the morning shift does not.
    """

    def setUp(self) -> None:
        self.snapshot = make_snapshot()
        self.snapshot.blocks += [
            TimeBlock(id=4, day_of_week=1, start_time="13:00", end_time="14:30"),
            TimeBlock(id=5, day_of_week=1, start_time="22:00", end_time="22:45"),
            TimeBlock(id=6, day_of_week=1, start_time="23:00", end_time="23:45"),
        ]
        self.snapshot.groups.append(Group(id=4, code="G4", preferred_shift="evening"))
        self.snapshot.availabilities += [_avail(1, 4), _avail(1, 5), _avail(1, 6)]

    def test_cycle_window_accepts_its_last_hour(self) -> None:
        result = validate_assignment(proposal(group=3, block=4), self.snapshot, check_cycle_window=True)
        self.assertTrue(result.ok)

    def test_cycle_window_rejects_the_hour_after(self) -> None:
        result = validate_assignment(proposal(group=3, block=2), self.snapshot, check_cycle_window=True)
        self.assertEqual(result.reason, ReasonCode.CYCLE_WINDOW)

    def test_evening_shift_accepts_22(self) -> None:
        self.assertTrue(validate_assignment(proposal(group=4, block=5), self.snapshot).ok)

    def test_evening_shift_rejects_23(self) -> None:
        result = validate_assignment(proposal(group=4, block=6), self.snapshot)
        self.assertEqual(result.reason, ReasonCode.SHIFT_MISMATCH)


class TestTimeWindows(unittest.TestCase):
    def test_shift_bounds(self) -> None:
        self.assertTrue(in_shift(Shift.MORNING, 7))
        self.assertTrue(in_shift(Shift.MORNING, 12))
        self.assertFalse(in_shift(Shift.MORNING, 13))
        self.assertFalse(in_shift(Shift.MORNING, 6))
        self.assertTrue(in_shift(Shift.AFTERNOON, 13))
        self.assertFalse(in_shift(Shift.AFTERNOON, 18))
        self.assertTrue(in_shift(Shift.EVENING, 18))
        self.assertTrue(in_shift(Shift.EVENING, 22))
        self.assertFalse(in_shift(Shift.EVENING, 23))

    def test_cycle_for_career(self) -> None:
        self.assertEqual(cycle_for_career(Career(id=1, code="", name="", total_curriculum_hours=4)), 2)
        self.assertEqual(cycle_for_career(Career(id=1, code="", name="", total_curriculum_hours=5)), 3)
        self.assertEqual(cycle_for_career(Career(id=1, code="", name="", total_curriculum_hours=13)), 7)

    def test_cycle_window(self) -> None:
        self.assertEqual(cycle_window(0), (7, 13))
        self.assertEqual(cycle_window(3), (7, 13))
        self.assertEqual(cycle_window(4), (13, 18))
        self.assertEqual(cycle_window(6), (13, 18))
        self.assertEqual(cycle_window(7), (18, 22))


if __name__ == "__main__":
    unittest.main()
