"""
Assignment validation.

The final client-side gate before a schedule entry is created or updated
through the API. Rules run in a fixed order and the first failing rule
decides the outcome:

1. missing fields
2. group already scheduled in that day/block
3. teacher not explicitly available
4. teacher or room double-booked
5. block outside the group's preferred shift
6. block outside the cycle time window (manual workspace only)

Rejections are returned as ValidationResult values, never raised.
The validator does not modify the snapshot.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Optional

from classplanner.conflicts import available_teacher_ids, build_conflict_index
from classplanner.model import Career, Shift, Snapshot


class ReasonCode(enum.Enum):
    MISSING_FIELDS = "MissingFieldsError"
    DUPLICATE_SLOT = "DuplicateSlotError"
    TEACHER_UNAVAILABLE = "TeacherUnavailableError"
    RESOURCE_CONFLICT = "ResourceConflictError"
    SHIFT_MISMATCH = "ShiftMismatchError"
    CYCLE_WINDOW = "CycleWindowError"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[ReasonCode] = None
    message: str = ""

    @classmethod
    def accept(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: ReasonCode, message: str) -> "ValidationResult":
        return cls(ok=False, reason=reason, message=message)


@dataclass(frozen=True)
class Proposal:
    group_id: Optional[int]
    teacher_id: Optional[int]
    room_id: Optional[int]
    day_of_week: Optional[int]
    block_id: Optional[int]
    period_id: Optional[int]


# (lowest start hour, highest start hour, upper bound inclusive)
_SHIFT_WINDOWS: dict[Shift, tuple[int, int, bool]] = {
    Shift.MORNING: (7, 13, False),
    Shift.AFTERNOON: (13, 18, False),
    Shift.EVENING: (18, 22, True),
}


def in_shift(shift: Shift, start_hour: int) -> bool:
    low, high, inclusive = _SHIFT_WINDOWS[shift]
    if start_hour < low:
        return False
    return start_hour <= high if inclusive else start_hour < high


def cycle_for_career(career: Career) -> int:
    """
    Coarse academic cycle used by the time-window rule.

    This is half the career's total curriculum hours, rounded up. It is a
    stand-in until the group's semester cycle is exposed by the API.
    """
    return math.ceil(career.total_curriculum_hours / 2)


def cycle_window(cycle: int) -> tuple[int, int]:
    """
    Inclusive start-hour window for a cycle: 1-3 morning, 4-6 afternoon, 7+ evening.
    """
    if cycle <= 3:
        return (7, 13)
    if cycle <= 6:
        return (13, 18)
    return (18, 22)


def _cycle_label(cycle: int) -> str:
    if cycle <= 3:
        return "Early cycles (1-3)"
    if cycle <= 6:
        return "Intermediate cycles (4-6)"
    return "Upper cycles (7+)"


def validate_assignment(
    proposal: Proposal,
    snapshot: Snapshot,
    mode: str = "create",
    entry_id: Optional[int] = None,
    check_cycle_window: bool = False,
) -> ValidationResult:
    """
    Validate a complete proposed assignment against the snapshot.

    mode is "create" or "edit"; in edit mode entry_id names the entry being
    changed so it never conflicts with itself.
    """
    if mode not in ("create", "edit"):
        raise ValueError(f"Unknown mode: {mode!r}")
    if mode == "edit" and entry_id is None:
        raise ValueError("entry_id is required in edit mode")
    exclude = entry_id if mode == "edit" else None

    p = proposal
    if not (p.group_id and p.teacher_id and p.room_id and p.day_of_week and p.block_id and p.period_id):
        if mode == "edit" and not (p.day_of_week and p.block_id):
            return ValidationResult.reject(
                ReasonCode.MISSING_FIELDS, "A day and a time block must be selected to edit an assignment."
            )
        return ValidationResult.reject(ReasonCode.MISSING_FIELDS, "All fields are required.")

    for e in snapshot.schedules:
        if (
            e.group_id == p.group_id
            and e.period_id == p.period_id
            and e.day_of_week == p.day_of_week
            and e.block_id == p.block_id
            and (exclude is None or e.id != exclude)
        ):
            return ValidationResult.reject(
                ReasonCode.DUPLICATE_SLOT, "This group already has an assignment on this day and block."
            )

    if p.teacher_id not in available_teacher_ids(snapshot.availabilities, p.day_of_week, p.block_id, p.period_id):
        return ValidationResult.reject(
            ReasonCode.TEACHER_UNAVAILABLE, "The teacher is not available at this time."
        )

    index = build_conflict_index(snapshot, p.day_of_week, p.block_id, p.period_id, exclude)
    if p.teacher_id in index.busy_teacher_ids or p.room_id in index.busy_room_ids:
        return ValidationResult.reject(
            ReasonCode.RESOURCE_CONFLICT, "The teacher or the room is already assigned at this time."
        )

    group = snapshot.group(p.group_id)
    block = snapshot.block(p.block_id)
    if group is None or block is None:
        # nothing left to check without the group's shift or the block's hour
        return ValidationResult.accept()

    start_hour = block.start_hour
    shift = group.shift
    if shift is not None and not in_shift(shift, start_hour):
        return ValidationResult.reject(
            ReasonCode.SHIFT_MISMATCH,
            f"Shift conflict: the block does not match the group's preferred shift ({group.preferred_shift}).",
        )

    if check_cycle_window:
        career = snapshot.career(group.career_id)
        if career is not None:
            cycle = cycle_for_career(career)
            low, high = cycle_window(cycle)
            if not (low <= start_hour <= high):
                return ValidationResult.reject(
                    ReasonCode.CYCLE_WINDOW,
                    f"{_cycle_label(cycle)} can only have classes between {low}:00 and {high}:00.",
                )

    return ValidationResult.accept()
