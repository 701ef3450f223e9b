"""Scheduling core: patterns, conflict detection, materialization, board."""

from .board import BoardState, MoveResult, ScheduleCommand, SchedulerBoard, plan_move, plan_unassign
from .conflicts import (
    build_conflict_alerts,
    detect_batch_conflicts,
    find_conflict,
    find_room_conflict,
    find_schedule_conflict,
    find_time_conflicts,
    time_ranges_overlap,
    validate_schedule_config,
)
from .legacy_parser import (
    ParsedTime,
    backfill_recurrence,
    classes_for_slot,
    day_matches,
    parse_schedule_time,
)
from .materializer import generate_events, schedule_config_for
from .patterns import patterns_overlap

__all__ = [
    "BoardState",
    "MoveResult",
    "ScheduleCommand",
    "SchedulerBoard",
    "plan_move",
    "plan_unassign",
    "build_conflict_alerts",
    "detect_batch_conflicts",
    "find_conflict",
    "find_room_conflict",
    "find_schedule_conflict",
    "find_time_conflicts",
    "time_ranges_overlap",
    "validate_schedule_config",
    "ParsedTime",
    "backfill_recurrence",
    "classes_for_slot",
    "day_matches",
    "parse_schedule_time",
    "generate_events",
    "schedule_config_for",
    "patterns_overlap",
]
