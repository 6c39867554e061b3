"""
CLI (Command Line Interface).

Terminal front end for manual timetable assignment, e.g.:

    classplanner fetch --period 3 --unit 1
    classplanner teachers --subject 12 --block 40
    classplanner rooms --subject 12 --block 40
    classplanner validate --group 5 --teacher 7 --room 2 --block 40
    classplanner assign --group 5 --subject 12 --teacher 7 --room 2 --block 40
    classplanner edit 88 --teacher 7 --room 2 --day 2 --block 41
    classplanner unassign 88
    classplanner grid --group 5
    classplanner audit
    classplanner generate --period 3

Commands other than fetch/generate work on the cached snapshot written by
fetch; writes go to the API first and are merged into the cache afterwards.

Exit codes: 0 ok, 1 rejected or bad input, 2 API failure.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from classplanner import storage
from classplanner.api import ApiClient, ApiError, load_snapshot
from classplanner.candidates import (
    SlotContext,
    filter_candidate_rooms,
    filter_candidate_teachers,
    relevant_specialty,
    shortage_warnings,
)
from classplanner.config import get_settings
from classplanner.conflicts import find_double_bookings
from classplanner.grid import build_week_grid
from classplanner.logs import setup_logging
from classplanner.model import DAY_NAMES, ScheduleEntry, Snapshot
from classplanner.validation import Proposal, validate_assignment


logger = logging.getLogger(__name__)

console = Console()


def _snapshot_path(args: argparse.Namespace) -> Optional[Path]:
    return Path(args.snapshot) if args.snapshot else None


def _period(args: argparse.Namespace) -> Optional[int]:
    """
    Explicit --period, otherwise the period the cache was fetched for.
    """
    if getattr(args, "period", None):
        return args.period
    return storage.cached_period_id(_snapshot_path(args))


def _day(snapshot: Snapshot, block_id: Optional[int], day: Optional[int]) -> Optional[int]:
    if day:
        return day
    block = snapshot.block(block_id)
    return block.day_of_week if block else None


def _print_result_error(message: str) -> None:
    console.print(f"[bold red]Rejected:[/] {message}")


def _slot_context(args: argparse.Namespace, snapshot: Snapshot) -> SlotContext:
    return SlotContext.for_block(
        snapshot,
        subject_id=args.subject,
        block_id=args.block,
        period_id=_period(args),
        day_of_week=args.day,
        exclude_entry_id=args.edit,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_fetch(args: argparse.Namespace) -> int:
    """
    Download a period snapshot from the API into the local cache.
    """
    client = ApiClient()
    if args.unit is not None and args.unit not in {u.get("unidad_id") for u in client.units()}:
        console.print(f"Unknown academic unit: {args.unit}")
        return 1
    snapshot = load_snapshot(client, args.period, unit_id=args.unit, career_id=args.career)
    path = storage.save_snapshot(snapshot, _snapshot_path(args), period_id=args.period)
    console.print(
        f"Fetched period {args.period}: {len(snapshot.schedules)} entries, "
        f"{len(snapshot.teachers)} teachers, {len(snapshot.rooms)} rooms -> {path}"
    )
    return 0


def _cmd_teachers(args: argparse.Namespace, snapshot: Snapshot) -> int:
    context = _slot_context(args, snapshot)
    if not context.is_complete:
        console.print("Please provide a known subject and block (and a day if the block is unknown).")
        return 1

    teachers = filter_candidate_teachers(context, snapshot)
    subject = snapshot.subject(context.subject_id)
    warnings = shortage_warnings(context, snapshot, teachers, filter_candidate_rooms(context, snapshot))
    if "teachers" in warnings:
        console.print(f"[yellow]Warning:[/] {warnings['teachers']}")

    if not teachers:
        console.print("No teacher available for this block.")
        return 0

    table = Table(title=f"Available teachers ({len(teachers)})", box=box.SIMPLE)
    table.add_column("ID", justify="right")
    table.add_column("Teacher")
    table.add_column("Specialty")
    for t in teachers:
        table.add_row(str(t.id), t.full_name, relevant_specialty(t, subject) if subject else "")
    console.print(table)
    return 0


def _cmd_rooms(args: argparse.Namespace, snapshot: Snapshot) -> int:
    context = _slot_context(args, snapshot)
    if not context.is_complete:
        console.print("Please provide a known subject and block (and a day if the block is unknown).")
        return 1

    rooms = filter_candidate_rooms(context, snapshot)
    warnings = shortage_warnings(context, snapshot, filter_candidate_teachers(context, snapshot), rooms)
    if "rooms" in warnings:
        console.print(f"[yellow]Warning:[/] {warnings['rooms']}")

    if not rooms:
        console.print("No room available for this block.")
        return 0

    table = Table(title=f"Available rooms ({len(rooms)})", box=box.SIMPLE)
    table.add_column("ID", justify="right")
    table.add_column("Room")
    table.add_column("Capacity", justify="right")
    for r in rooms:
        table.add_row(str(r.id), r.name, str(r.capacity))
    console.print(table)
    return 0


def _proposal(args: argparse.Namespace, snapshot: Snapshot, group_id: Optional[int]) -> Proposal:
    return Proposal(
        group_id=group_id,
        teacher_id=args.teacher,
        room_id=args.room,
        day_of_week=_day(snapshot, args.block, args.day),
        block_id=args.block,
        period_id=_period(args),
    )


def _candidate_error(context: SlotContext, snapshot: Snapshot, proposal: Proposal) -> Optional[str]:
    """
    Specialty and room-type checks the validator leaves to the candidate lists.
    """
    if proposal.teacher_id not in {t.id for t in filter_candidate_teachers(context, snapshot)}:
        return "The teacher is not a candidate for this subject and block."
    if proposal.room_id not in {r.id for r in filter_candidate_rooms(context, snapshot)}:
        return "The room is not a candidate for this subject and block."
    return None


def _cmd_validate(args: argparse.Namespace, snapshot: Snapshot) -> int:
    mode = "edit" if args.edit else "create"
    result = validate_assignment(
        _proposal(args, snapshot, args.group),
        snapshot,
        mode=mode,
        entry_id=args.edit,
        check_cycle_window=args.cycle_window,
    )
    if not result.ok:
        _print_result_error(result.message)
        return 1
    console.print("[green]OK[/] assignment is valid.")
    return 0


def _cmd_assign(args: argparse.Namespace, snapshot: Snapshot) -> int:
    """
    Validate a new assignment, create it through the API and cache the result.
    """
    proposal = _proposal(args, snapshot, args.group)
    result = validate_assignment(proposal, snapshot, check_cycle_window=args.cycle_window)
    if not result.ok:
        _print_result_error(result.message)
        return 1

    context = SlotContext(args.subject, proposal.block_id, proposal.day_of_week, proposal.period_id)
    error = _candidate_error(context, snapshot, proposal)
    if error:
        _print_result_error(error)
        return 1

    entry = ScheduleEntry(
        id=None,
        group_id=proposal.group_id,
        subject_id=args.subject,
        teacher_id=proposal.teacher_id,
        room_id=proposal.room_id,
        period_id=proposal.period_id,
        day_of_week=proposal.day_of_week,
        block_id=proposal.block_id,
    )
    created = ApiClient().create_entry(entry)
    storage.save_snapshot(snapshot.with_entry(created), _snapshot_path(args), period_id=proposal.period_id)
    console.print(f"[green]Assigned[/] entry {created.id}.")
    return 0


def _cmd_edit(args: argparse.Namespace, snapshot: Snapshot) -> int:
    """
    Change teacher, room, day or block of an existing entry.
    """
    current = next((e for e in snapshot.schedules if e.id == args.entry_id), None)
    if current is None:
        console.print(f"Unknown entry: {args.entry_id}")
        return 1

    proposal = Proposal(
        group_id=current.group_id,
        teacher_id=args.teacher or current.teacher_id,
        room_id=args.room or current.room_id,
        day_of_week=args.day,
        block_id=args.block,
        period_id=current.period_id,
    )
    result = validate_assignment(
        proposal, snapshot, mode="edit", entry_id=current.id, check_cycle_window=args.cycle_window
    )
    if not result.ok:
        _print_result_error(result.message)
        return 1

    context = SlotContext(
        current.subject_id, proposal.block_id, proposal.day_of_week, proposal.period_id, exclude_entry_id=current.id
    )
    error = _candidate_error(context, snapshot, proposal)
    if error:
        _print_result_error(error)
        return 1

    updated = ApiClient().update_entry(
        current.id, proposal.teacher_id, proposal.room_id, proposal.day_of_week, proposal.block_id
    )
    storage.save_snapshot(snapshot.replace_entry(updated), _snapshot_path(args), period_id=current.period_id)
    console.print(f"[green]Updated[/] entry {updated.id}.")
    return 0


def _cmd_unassign(args: argparse.Namespace, snapshot: Snapshot) -> int:
    ApiClient().delete_entry(args.entry_id)
    storage.save_snapshot(
        snapshot.without_entry(args.entry_id), _snapshot_path(args), period_id=_period(args)
    )
    console.print(f"Removed entry {args.entry_id}.")
    return 0


def _cmd_grid(args: argparse.Namespace, snapshot: Snapshot) -> int:
    grid = build_week_grid(snapshot, group_id=args.group, teacher_id=args.teacher, room_id=args.room)
    if grid.is_empty():
        console.print("No assignments to show.")
        return 0

    table = Table(title="Weekly timetable", box=box.SIMPLE, show_lines=True)
    table.add_column("Time")
    for name in grid.day_names:
        table.add_column(name)
    for row in grid.rows:
        table.add_row(row.label, *["\n\n".join(row.cells.get(d, [])) for d in grid.days])
    console.print(table)
    return 0


def _cmd_audit(args: argparse.Namespace, snapshot: Snapshot) -> int:
    """
    Print existing double bookings in the cached schedule.
    """
    pairs = find_double_bookings(snapshot.schedules)
    if not pairs:
        console.print("No double bookings found.")
        return 0

    console.print(f"Double bookings found: {len(pairs)}")
    for kind, a, b in pairs:
        day = DAY_NAMES.get(a.day_of_week, str(a.day_of_week))
        resource = a.teacher_id if kind == "teacher" else a.room_id
        console.print(f"- {kind} {resource}: {day} block {a.block_id}, entries {a.id} <-> {b.id}")
    return 1


def _cmd_generate(args: argparse.Namespace) -> int:
    summary = ApiClient().generate_schedule(args.period)
    console.print(f"Automatic generation requested for period {args.period}.")
    for key, value in summary.items():
        if isinstance(value, (str, int, float, bool)):
            console.print(f"  {key}: {value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="classplanner", description="Timetable assignment CLI")
    parser.add_argument("--snapshot", type=str, default=None, help="Snapshot cache file (default from settings)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_fetch = sub.add_parser("fetch", help="Download a period snapshot from the API")
    p_fetch.add_argument("--period", type=int, required=True, help="Period ID")
    p_fetch.add_argument("--unit", type=int, default=None, help="Academic unit ID (narrows teachers/rooms)")
    p_fetch.add_argument("--career", type=int, default=None, help="Career ID (narrows groups/subjects)")

    for name, help_text in (("teachers", "List candidate teachers"), ("rooms", "List candidate rooms")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--subject", type=int, required=True, help="Subject ID")
        p.add_argument("--block", type=int, required=True, help="Time block ID")
        p.add_argument("--day", type=int, default=None, help="Day of week 1-6 (default: the block's day)")
        p.add_argument("--period", type=int, default=None, help="Period ID (default: cached period)")
        p.add_argument("--edit", type=int, default=None, help="Entry ID being edited (ignored for conflicts)")

    p_validate = sub.add_parser("validate", help="Validate a proposed assignment")
    p_validate.add_argument("--group", type=int, default=None, help="Group ID")
    p_validate.add_argument("--teacher", type=int, default=None, help="Teacher ID")
    p_validate.add_argument("--room", type=int, default=None, help="Room ID")
    p_validate.add_argument("--block", type=int, default=None, help="Time block ID")
    p_validate.add_argument("--day", type=int, default=None, help="Day of week 1-6 (default: the block's day)")
    p_validate.add_argument("--period", type=int, default=None, help="Period ID (default: cached period)")
    p_validate.add_argument("--edit", type=int, default=None, help="Entry ID being edited")
    p_validate.add_argument("--cycle-window", action="store_true", help="Also enforce the cycle time window")

    p_assign = sub.add_parser("assign", help="Validate and create an assignment")
    p_assign.add_argument("--group", type=int, required=True, help="Group ID")
    p_assign.add_argument("--subject", type=int, required=True, help="Subject ID")
    p_assign.add_argument("--teacher", type=int, required=True, help="Teacher ID")
    p_assign.add_argument("--room", type=int, required=True, help="Room ID")
    p_assign.add_argument("--block", type=int, required=True, help="Time block ID")
    p_assign.add_argument("--day", type=int, default=None, help="Day of week 1-6 (default: the block's day)")
    p_assign.add_argument("--period", type=int, default=None, help="Period ID (default: cached period)")
    p_assign.add_argument("--cycle-window", action="store_true", help="Also enforce the cycle time window")

    p_edit = sub.add_parser("edit", help="Validate and update an existing assignment")
    p_edit.add_argument("entry_id", type=int, help="Schedule entry ID")
    p_edit.add_argument("--teacher", type=int, default=None, help="New teacher ID (default: unchanged)")
    p_edit.add_argument("--room", type=int, default=None, help="New room ID (default: unchanged)")
    p_edit.add_argument("--day", type=int, default=None, help="Day of week 1-6")
    p_edit.add_argument("--block", type=int, default=None, help="Time block ID")
    p_edit.add_argument("--cycle-window", action="store_true", help="Also enforce the cycle time window")

    p_unassign = sub.add_parser("unassign", help="Delete an assignment")
    p_unassign.add_argument("entry_id", type=int, help="Schedule entry ID")

    p_grid = sub.add_parser("grid", help="Show the weekly timetable")
    p_grid.add_argument("--group", type=int, default=None, help="Only this group")
    p_grid.add_argument("--teacher", type=int, default=None, help="Only this teacher")
    p_grid.add_argument("--room", type=int, default=None, help="Only this room")

    sub.add_parser("audit", help="List double bookings in the cached schedule")

    p_generate = sub.add_parser("generate", help="Run the server-side automatic scheduler")
    p_generate.add_argument("--period", type=int, required=True, help="Period ID")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else get_settings().log_level)

    try:
        if args.command == "fetch":
            raise SystemExit(_cmd_fetch(args))
        if args.command == "generate":
            raise SystemExit(_cmd_generate(args))

        snapshot = storage.load_snapshot(_snapshot_path(args))

        if args.command == "teachers":
            raise SystemExit(_cmd_teachers(args, snapshot))
        if args.command == "rooms":
            raise SystemExit(_cmd_rooms(args, snapshot))
        if args.command == "validate":
            raise SystemExit(_cmd_validate(args, snapshot))
        if args.command == "assign":
            raise SystemExit(_cmd_assign(args, snapshot))
        if args.command == "edit":
            raise SystemExit(_cmd_edit(args, snapshot))
        if args.command == "unassign":
            raise SystemExit(_cmd_unassign(args, snapshot))
        if args.command == "grid":
            raise SystemExit(_cmd_grid(args, snapshot))
        if args.command == "audit":
            raise SystemExit(_cmd_audit(args, snapshot))
    except ApiError as exc:
        logger.debug("API failure", exc_info=True)
        console.print(f"[bold red]API error:[/] {exc}")
        raise SystemExit(2)

    raise SystemExit(2)
