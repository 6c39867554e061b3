"""
Conflict index.

Derived, read-only lookup sets built from the flat schedule and availability
lists of a Snapshot. Everything here is a pure function of its arguments and
is recomputed on every call.

Occupancy rules:
- a teacher is busy at (day, block, period) if any entry other than the one
  being edited uses that teacher there
- a room is busy at (day, block) if any entry other than the one being edited
  uses it there, regardless of the entry's period
- a teacher is available only with an explicit is_available=True record
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from classplanner.model import ScheduleEntry, Snapshot, TeacherAvailability


@dataclass(frozen=True)
class ConflictIndex:
    busy_teacher_ids: frozenset[int]
    busy_room_ids: frozenset[int]
    available_teacher_ids: frozenset[int]


def busy_teacher_ids(
    schedules: Iterable[ScheduleEntry],
    day_of_week: int,
    block_id: int,
    period_id: Optional[int],
    exclude_entry_id: Optional[int] = None,
) -> frozenset[int]:
    """
    Teachers already assigned at (day, block) within the period.
    """
    return frozenset(
        e.teacher_id
        for e in schedules
        if e.day_of_week == day_of_week
        and e.block_id == block_id
        and e.period_id == period_id
        and (exclude_entry_id is None or e.id != exclude_entry_id)
    )


def busy_room_ids(
    schedules: Iterable[ScheduleEntry],
    day_of_week: int,
    block_id: int,
    exclude_entry_id: Optional[int] = None,
) -> frozenset[int]:
    """
    Rooms already assigned at (day, block). The period is not part of the key.
    """
    return frozenset(
        e.room_id
        for e in schedules
        if e.day_of_week == day_of_week
        and e.block_id == block_id
        and (exclude_entry_id is None or e.id != exclude_entry_id)
    )


def available_teacher_ids(
    availabilities: Iterable[TeacherAvailability],
    day_of_week: int,
    block_id: int,
    period_id: Optional[int],
) -> frozenset[int]:
    return frozenset(
        a.teacher_id
        for a in availabilities
        if a.is_available and a.day_of_week == day_of_week and a.block_id == block_id and a.period_id == period_id
    )


def build_conflict_index(
    snapshot: Snapshot,
    day_of_week: int,
    block_id: int,
    period_id: Optional[int],
    exclude_entry_id: Optional[int] = None,
) -> ConflictIndex:
    return ConflictIndex(
        busy_teacher_ids=busy_teacher_ids(snapshot.schedules, day_of_week, block_id, period_id, exclude_entry_id),
        busy_room_ids=busy_room_ids(snapshot.schedules, day_of_week, block_id, exclude_entry_id),
        available_teacher_ids=available_teacher_ids(snapshot.availabilities, day_of_week, block_id, period_id),
    )


def find_double_bookings(schedules: Iterable[ScheduleEntry]) -> list[tuple[str, ScheduleEntry, ScheduleEntry]]:
    """
    Find pairs of existing entries that share a teacher or a room in the
    same period, day and block. Each pair is reported once per resource,
    as ("teacher" | "room", first, second) in input order.
    """
    by_teacher: dict[tuple[int, int, int, int], list[ScheduleEntry]] = defaultdict(list)
    by_room: dict[tuple[int, int, int, int], list[ScheduleEntry]] = defaultdict(list)
    for e in schedules:
        by_teacher[(e.period_id, e.day_of_week, e.block_id, e.teacher_id)].append(e)
        by_room[(e.period_id, e.day_of_week, e.block_id, e.room_id)].append(e)

    out: list[tuple[str, ScheduleEntry, ScheduleEntry]] = []
    for kind, buckets in (("teacher", by_teacher), ("room", by_room)):
        for entries in buckets.values():
            # O(k^2) per slot is fine, k is almost always 1
            for i in range(len(entries)):
                for j in range(i + 1, len(entries)):
                    out.append((kind, entries[i], entries[j]))
    return out
