"""
Candidate filters.

Given a subject dropped onto a (day, block) of a period, compute which
teachers and which rooms may legally take it.

Both filters fail closed: a missing subject, block or day yields an empty
list, the same value as "nobody qualifies". Results keep the input order
of the snapshot collections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from classplanner.conflicts import build_conflict_index
from classplanner.model import Room, Snapshot, Subject, Teacher


@dataclass(frozen=True)
class SlotContext:
    subject_id: Optional[int]
    block_id: Optional[int]
    day_of_week: Optional[int]
    period_id: Optional[int]
    exclude_entry_id: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        # ids are positive; 0 counts as "not selected"
        return bool(self.subject_id and self.block_id and self.day_of_week)

    @classmethod
    def for_block(
        cls,
        snapshot: Snapshot,
        subject_id: Optional[int],
        block_id: Optional[int],
        period_id: Optional[int],
        day_of_week: Optional[int] = None,
        exclude_entry_id: Optional[int] = None,
    ) -> "SlotContext":
        """
        Build a context when only the block is known (drag and drop onto a
        grid cell): the day is taken from the block unless given explicitly.
        """
        if not day_of_week:
            block = snapshot.block(block_id)
            day_of_week = block.day_of_week if block else None
        return cls(subject_id, block_id, day_of_week, period_id, exclude_entry_id)


def filter_candidate_teachers(context: SlotContext, snapshot: Snapshot) -> list[Teacher]:
    """
    Teachers that are explicitly available, not busy elsewhere in the slot,
    and share at least one specialty with the subject (when it requires any).
    """
    if not context.is_complete:
        return []
    subject = snapshot.subject(context.subject_id)
    if subject is None:
        return []

    required = subject.required_specialty_ids
    index = build_conflict_index(
        snapshot, context.day_of_week, context.block_id, context.period_id, context.exclude_entry_id
    )

    out: list[Teacher] = []
    for teacher in snapshot.teachers:
        if teacher.id not in index.available_teacher_ids:
            continue
        if teacher.id in index.busy_teacher_ids:
            continue
        if required and not (teacher.specialty_ids & required):
            continue
        out.append(teacher)
    return out


def filter_candidate_rooms(context: SlotContext, snapshot: Snapshot) -> list[Room]:
    """
    Rooms free at (day, block) whose type matches the subject's required
    room type. A subject without a required type accepts any room.
    """
    if not context.is_complete:
        return []
    subject = snapshot.subject(context.subject_id)
    if subject is None:
        return []

    required_type = subject.required_room_type_id
    index = build_conflict_index(
        snapshot, context.day_of_week, context.block_id, context.period_id, context.exclude_entry_id
    )

    return [
        room
        for room in snapshot.rooms
        if room.id not in index.busy_room_ids and (required_type is None or room.room_type_id == required_type)
    ]


def relevant_specialty(teacher: Teacher, subject: Subject) -> str:
    """
    Name of the first teacher specialty that satisfies the subject, or ''.
    """
    required = subject.required_specialty_ids
    for sid, name in teacher.specialty_names.items():
        if sid in required:
            return name or subject.specialty_names.get(sid, "")
    return ""


def shortage_warnings(
    context: SlotContext,
    snapshot: Snapshot,
    teachers: list[Teacher],
    rooms: list[Room],
) -> dict[str, str]:
    """
    Explain empty candidate lists caused by subject requirements.

    Returns messages keyed by "rooms" and/or "teachers". Only reported for a
    complete slot, and only when the subject actually requires a room type
    or specialties.
    """
    if not (context.block_id and context.day_of_week):
        return {}
    subject = snapshot.subject(context.subject_id)
    if subject is None:
        return {}

    warnings: dict[str, str] = {}
    if subject.required_room_type_id is not None and not rooms:
        type_name = subject.required_room_type_name or str(subject.required_room_type_id)
        warnings["rooms"] = f'Subject requires rooms of type "{type_name}" but none is free.'
    if subject.required_specialty_ids and not teachers:
        warnings["teachers"] = "Subject requires specific specialties but no available teacher has them."
    return warnings
