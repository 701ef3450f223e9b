"""Teacher and room conflict detection.

Two variants:

- Grid: same teacher, same time block and overlapping schedule pattern.
  Used to gate an interactive move on the scheduler board.
- Time range: start minute + duration as half-open intervals plus
  weekday-set intersection. Used by the batch scan over classes with
  structured recurrence fields.

All functions are pure and scan their input in the given order, so the
first conflict reported is deterministic.
"""

import logging
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel

from config.schema import ClassStatus, GridConfig, SchedulePattern, TimeBlock
from models.calendar_event import ScheduleConfig
from models.class_offering import ClassOffering
from models.conflict import ConflictAlert
from models.placement import GridScheduled, TimedScheduled
from scheduling.patterns import (
    PATTERN_LABELS,
    is_bookable,
    parse_block,
    parse_pattern,
    pattern_days,
    patterns_overlap,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 70


def _is_live(cls: ClassOffering, active_statuses: Optional[Iterable[ClassStatus]]) -> bool:
    if active_statuses is None:
        return cls.is_active
    return cls.status in set(active_statuses)


# ─── Grid variant ─────────────────────────────────────────────────────────────

def find_conflict(
    teacher_id: str,
    pattern: SchedulePattern,
    block: TimeBlock,
    exclude_class_id: Optional[str],
    classes: Sequence[ClassOffering],
) -> Optional[ClassOffering]:
    """First class of ``teacher_id`` that already occupies an overlapping cell.

    A class conflicts iff it is not cancelled, is not the class being moved,
    has the same teacher and block, and its pattern shares a weekday with
    ``pattern``. Classes without block/pattern never conflict, and neither
    does a class without a teacher.
    """
    if not teacher_id:
        return None
    for other in classes:
        if other.id == exclude_class_id or not other.is_active:
            continue
        if other.teacher_id != teacher_id or not other.is_grid_scheduled:
            continue
        if other.time_block != block:
            continue
        if patterns_overlap(other.schedule_pattern, pattern):
            logger.info(
                f"Conflict: teacher {teacher_id} already has '{other.name}' "
                f"in {block.value} ({other.schedule_pattern.value})"
            )
            return other
    return None


def find_schedule_conflict(
    config: ScheduleConfig,
    teacher_id: str,
    classes: Sequence[ClassOffering],
    exclude_class_id: Optional[str] = None,
) -> Optional[ClassOffering]:
    """find_conflict() for a calendar config ("Tuesday/Thursday", "Block 1")."""
    pattern = parse_pattern(config.day) if config.day else None
    block = parse_block(config.block) if config.block else None
    if pattern is None or block is None:
        return None
    return find_conflict(teacher_id, pattern, block, exclude_class_id, classes)


def find_room_conflict(
    config: ScheduleConfig,
    location: str,
    classes: Sequence[ClassOffering],
    exclude_class_id: Optional[str] = None,
) -> Optional[ClassOffering]:
    """First class using ``location`` in the same block on a shared weekday."""
    pattern = parse_pattern(config.day) if config.day else None
    block = parse_block(config.block) if config.block else None
    if pattern is None or block is None or not location:
        return None
    for other in classes:
        if other.id == exclude_class_id or not other.is_active:
            continue
        if other.location != location or not other.is_grid_scheduled:
            continue
        if other.time_block == block and patterns_overlap(other.schedule_pattern, pattern):
            return other
    return None


class ScheduleValidation(BaseModel):
    """Result of validate_schedule_config()."""

    valid: bool
    error: Optional[str] = None


def validate_schedule_config(config: ScheduleConfig) -> ScheduleValidation:
    """Checks that a calendar config names a grid pattern and a bookable block."""
    if not config.day or not config.block:
        return ScheduleValidation(valid=False, error="Day and Block are required.")
    if parse_pattern(config.day) is None:
        allowed = ", ".join(PATTERN_LABELS.values())
        return ScheduleValidation(
            valid=False, error=f"Invalid day '{config.day}'. Allowed: {allowed}")
    block = parse_block(config.block)
    if block is None or not is_bookable(block):
        allowed = ", ".join(b.value for b in TimeBlock if is_bookable(b))
        return ScheduleValidation(
            valid=False, error=f"Invalid block '{config.block}'. Allowed: {allowed}")
    return ScheduleValidation(valid=True)


# ─── Time-range variant ───────────────────────────────────────────────────────

def time_ranges_overlap(start1: int, duration1: int, start2: int, duration2: int) -> bool:
    """Half-open interval overlap on minute-of-day values.

    A class ending at 10:00 and one starting at 10:00 do not overlap.
    """
    end1 = start1 + duration1
    end2 = start2 + duration2
    return start1 < end2 and start2 < end1


def _to_minutes(hhmm: str) -> int:
    h, m = hhmm.split(":")[:2]
    return int(h) * 60 + int(m)


def _as_timed(
    cls: ClassOffering, default_duration: int, grid: Optional[GridConfig]
) -> Optional[tuple[frozenset[str], int, int]]:
    """(lowercase days, start minute, duration) or None if not comparable.

    Grid placements are converted through the block times when a grid is
    given; without one they are not comparable by time.
    """
    placement = cls.placement
    if isinstance(placement, TimedScheduled):
        duration = placement.duration or default_duration
        return placement.days, placement.start_minute, duration
    if isinstance(placement, GridScheduled) and grid is not None:
        block_def = grid.get_block(placement.block)
        if block_def is None:
            return None
        start = _to_minutes(block_def.start_time)
        duration = _to_minutes(block_def.end_time) - start
        days = frozenset(d.lower() for d in pattern_days(placement.pattern))
        return days, start, duration
    return None


def classes_collide(
    a: ClassOffering,
    b: ClassOffering,
    default_duration: int = DEFAULT_DURATION_MINUTES,
    grid: Optional[GridConfig] = None,
) -> bool:
    """True if the two classes occupy overlapping time on a shared weekday.

    Two grid placements compare by block identity and pattern overlap;
    anything else is compared as time ranges.
    """
    pa, pb = a.placement, b.placement
    if isinstance(pa, GridScheduled) and isinstance(pb, GridScheduled):
        return pa.block == pb.block and patterns_overlap(pa.pattern, pb.pattern)
    ta = _as_timed(a, default_duration, grid)
    tb = _as_timed(b, default_duration, grid)
    if ta is None or tb is None:
        return False
    days_a, start_a, dur_a = ta
    days_b, start_b, dur_b = tb
    if not time_ranges_overlap(start_a, dur_a, start_b, dur_b):
        return False
    return not days_a.isdisjoint(days_b)


def find_time_conflicts(
    classes: Sequence[ClassOffering],
    default_duration: int = DEFAULT_DURATION_MINUTES,
    active_statuses: Optional[Iterable[ClassStatus]] = None,
) -> list[tuple[ClassOffering, ClassOffering]]:
    """Batch scan: every pair of a teacher's classes whose recurrence overlaps.

    Every class with a recurrence time and at least one day takes part,
    whatever its grid placement. Classes are grouped by teacher; within a
    group every pair is compared (O(n²) per teacher). Pairs keep input
    order: (earlier, later).
    """
    by_teacher: dict[str, list[ClassOffering]] = defaultdict(list)
    for cls in classes:
        if not cls.teacher_id or not _is_live(cls, active_statuses):
            continue
        if cls.recurrence_time is not None and cls.recurrence_days:
            by_teacher[cls.teacher_id].append(cls)

    pairs: list[tuple[ClassOffering, ClassOffering]] = []
    for teacher_id, teacher_classes in by_teacher.items():
        for i, c1 in enumerate(teacher_classes):
            for c2 in teacher_classes[i + 1:]:
                if recurrences_overlap(c1, c2, default_duration):
                    logger.info(f"Time conflict for {teacher_id}: {c1.id} / {c2.id}")
                    pairs.append((c1, c2))
    return pairs


def recurrences_overlap(a: ClassOffering, b: ClassOffering, default_duration: int) -> bool:
    start_a = a.recurrence_time.hour * 60 + a.recurrence_time.minute
    start_b = b.recurrence_time.hour * 60 + b.recurrence_time.minute
    if not time_ranges_overlap(
        start_a, a.recurrence_duration or default_duration,
        start_b, b.recurrence_duration or default_duration,
    ):
        return False
    return not set(a.recurrence_days).isdisjoint(b.recurrence_days)


# ─── Batch alerts ─────────────────────────────────────────────────────────────

def build_conflict_alerts(
    classes: Sequence[ClassOffering],
    default_duration: int = DEFAULT_DURATION_MINUTES,
    grid: Optional[GridConfig] = None,
    active_statuses: Optional[Iterable[ClassStatus]] = None,
) -> list[ConflictAlert]:
    """Pairwise scan over all live classes.

    Same teacher + colliding placement → high severity.
    Same location + colliding placement → medium severity.
    """
    live = [c for c in classes if _is_live(c, active_statuses)]
    alerts: list[ConflictAlert] = []

    for i, c1 in enumerate(live):
        for c2 in live[i + 1:]:
            same_teacher = bool(c1.teacher_id) and c1.teacher_id == c2.teacher_id
            same_room = bool(c1.location) and c1.location == c2.location
            if not (same_teacher or same_room):
                continue
            if not classes_collide(c1, c2, default_duration, grid):
                continue
            if same_teacher:
                alerts.append(ConflictAlert(
                    id=f"{c1.id}-{c2.id}",
                    kind="teacher",
                    severity="high",
                    message=(
                        f"Teacher Conflict: {c1.name or c1.id} overlaps with "
                        f"{c2.name or c2.id} ({c1.teacher_name or c1.teacher_id})"
                    ),
                    class_ids=(c1.id, c2.id),
                ))
            if same_room:
                alerts.append(ConflictAlert(
                    id=f"room-{c1.id}-{c2.id}",
                    kind="room",
                    severity="medium",
                    message=(
                        f"Room Conflict: {c1.name or c1.id} and {c2.name or c2.id} "
                        f"in {c1.location}"
                    ),
                    class_ids=(c1.id, c2.id),
                ))
    return alerts


def detect_batch_conflicts(
    classes: Sequence[ClassOffering],
    default_duration: int = DEFAULT_DURATION_MINUTES,
    grid: Optional[GridConfig] = None,
) -> set[str]:
    """Ids of every class involved in at least one teacher or room conflict."""
    ids: set[str] = set()
    for alert in build_conflict_alerts(classes, default_duration, grid):
        ids.update(alert.class_ids)
    return ids
