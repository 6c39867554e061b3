"""
Weekly timetable grid.

Turns the flat schedule list into a Monday..Saturday table whose rows are
the distinct time ranges of the period's blocks. The schedule can be narrowed
to one group, one teacher and/or one room (filters combine).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from classplanner.model import DAY_NAMES, ScheduleEntry, Snapshot


logger = logging.getLogger(__name__)


@dataclass
class GridRow:
    start: str
    end: str
    cells: dict[int, list[str]] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"{self.start[:5]} - {self.end[:5]}"


@dataclass
class WeekGrid:
    days: list[int]
    rows: list[GridRow]

    @property
    def day_names(self) -> list[str]:
        return [DAY_NAMES[d] for d in self.days]

    def is_empty(self) -> bool:
        return not any(row.cells for row in self.rows)


def _cell_text(entry: ScheduleEntry, snapshot: Snapshot) -> str:
    subject = snapshot.subject(entry.subject_id)
    group = snapshot.group(entry.group_id)
    room = snapshot.room(entry.room_id)
    teacher = snapshot.teacher(entry.teacher_id)
    return "\n".join(
        [
            f"Subject: {subject.name if subject else entry.subject_id}",
            f"Group: {group.code if group else entry.group_id}",
            f"Room: {room.name if room else entry.room_id}",
            f"Teacher: {teacher.full_name if teacher else entry.teacher_id}",
        ]
    )


def select_entries(
    snapshot: Snapshot,
    group_id: Optional[int] = None,
    teacher_id: Optional[int] = None,
    room_id: Optional[int] = None,
) -> list[ScheduleEntry]:
    return [
        e
        for e in snapshot.schedules
        if (group_id is None or e.group_id == group_id)
        and (teacher_id is None or e.teacher_id == teacher_id)
        and (room_id is None or e.room_id == room_id)
    ]


def build_week_grid(
    snapshot: Snapshot,
    group_id: Optional[int] = None,
    teacher_id: Optional[int] = None,
    room_id: Optional[int] = None,
) -> WeekGrid:
    days = sorted(DAY_NAMES)

    rows_by_range: dict[tuple[str, str], GridRow] = {}
    order: dict[tuple[str, str], int] = {}
    for block in snapshot.blocks:
        key = (block.start_time[:5], block.end_time[:5])
        if key not in rows_by_range:
            rows_by_range[key] = GridRow(start=key[0], end=key[1])
            order[key] = block.order_index
        else:
            order[key] = min(order[key], block.order_index)

    for entry in select_entries(snapshot, group_id, teacher_id, room_id):
        block = snapshot.block(entry.block_id)
        if block is None:
            # entry points at a block we never loaded; nowhere to place it
            continue
        if entry.day_of_week not in DAY_NAMES:
            logger.debug("Skipping entry %s with day %s outside the week grid", entry.id, entry.day_of_week)
            continue
        row = rows_by_range[(block.start_time[:5], block.end_time[:5])]
        row.cells.setdefault(entry.day_of_week, []).append(_cell_text(entry, snapshot))

    keys = sorted(rows_by_range, key=lambda k: (k[0], order[k], k[1]))
    return WeekGrid(days=days, rows=[rows_by_range[k] for k in keys])
