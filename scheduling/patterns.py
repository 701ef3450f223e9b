"""Recurrence patterns and time blocks of the grid scheduler.

Two patterns overlap iff they share at least one weekday. The overlap is
computed from the weekday sets, so adding a pattern only means adding its
days here.
"""

from typing import Optional

from config.schema import WEEKDAY_NAMES, SchedulePattern, TimeBlock

# Concrete weekdays of each pattern (full English names)
PATTERN_DAYS: dict[SchedulePattern, frozenset[str]] = {
    SchedulePattern.TUE_THU: frozenset({"Tuesday", "Thursday"}),
    SchedulePattern.TUE:     frozenset({"Tuesday"}),
    SchedulePattern.THU:     frozenset({"Thursday"}),
    SchedulePattern.WED:     frozenset({"Wednesday"}),
}

# Long labels as used by calendar configs and the legacy class form
PATTERN_LABELS: dict[SchedulePattern, str] = {
    SchedulePattern.TUE_THU: "Tuesday/Thursday",
    SchedulePattern.TUE:     "Tuesday",
    SchedulePattern.THU:     "Thursday",
    SchedulePattern.WED:     "Wednesday",
}


def pattern_days(pattern: SchedulePattern) -> frozenset[str]:
    """Weekday names covered by a pattern."""
    return PATTERN_DAYS[SchedulePattern(pattern)]


def patterns_overlap(p1: SchedulePattern, p2: SchedulePattern) -> bool:
    """True if both patterns meet on at least one common weekday."""
    return not pattern_days(p1).isdisjoint(pattern_days(p2))


def overlapping_patterns(pattern: SchedulePattern) -> list[SchedulePattern]:
    """All patterns that overlap the given one, in enum order."""
    return [p for p in SchedulePattern if patterns_overlap(pattern, p)]


def pattern_label(pattern: SchedulePattern) -> str:
    return PATTERN_LABELS[SchedulePattern(pattern)]


def parse_pattern(raw: str) -> Optional[SchedulePattern]:
    """Accepts the short value ("Tu/Th"), the long label ("Tuesday/Thursday")
    or the spaced label the board uses ("Tuesday / Thursday")."""
    if raw is None:
        return None
    text = raw.strip()
    compact = text.replace(" ", "").lower()
    for p in SchedulePattern:
        if compact == p.value.replace(" ", "").lower():
            return p
        if compact == PATTERN_LABELS[p].lower():
            return p
    return None


def parse_block(raw: str) -> Optional[TimeBlock]:
    """Accepts "Block 2", "block2", "2" or "Lunch"."""
    if raw is None:
        return None
    text = raw.strip().lower().replace(" ", "")
    if text.isdigit():
        text = f"block{text}"
    for b in TimeBlock:
        if text == b.value.lower().replace(" ", ""):
            return b
    return None


def is_bookable(block: TimeBlock) -> bool:
    """Classes can be placed in every block except Lunch."""
    return TimeBlock(block) != TimeBlock.LUNCH
