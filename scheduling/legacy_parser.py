"""Best-effort reading of legacy free-text schedules ("Tue/Thu 3:30 PM").

The parser never raises: anything it cannot read is reported as no match,
and callers treat the time as unknown.

Without an am/pm marker, hours 1-6 are taken as afternoon (13-18). Class
schedules here are almost always in the afternoon; a genuine early-morning
entry is misread.
"""

import logging
import re
from datetime import time
from typing import NamedTuple, Optional, Sequence

from config.schema import RecurrencePattern
from models.class_offering import ClassOffering
from scheduling.patterns import WEEKDAY_NAMES

logger = logging.getLogger(__name__)

# hour, optional :minute, optional am/pm; first match wins
_TIME_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?", re.IGNORECASE)

_STRUCTURED = (RecurrencePattern.WEEKLY, RecurrencePattern.BIWEEKLY)


class ParsedTime(NamedTuple):
    hour: int       # 0-23
    minute: int


def parse_schedule_time(text: Optional[str]) -> Optional[ParsedTime]:
    """Start time of a legacy schedule string, or None."""
    if not text:
        return None
    match = _TIME_RE.search(text)
    if match is None:
        logger.debug(f"No time found in schedule '{text}'")
        return None

    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    ampm = (match.group(3) or "").lower()

    if ampm == "pm" and hour < 12:
        hour += 12
    elif ampm == "am" and hour == 12:
        hour = 0
    elif not ampm and 1 <= hour <= 6:
        hour += 12
    if hour > 23 or minute > 59:
        logger.debug(f"Out-of-range time in schedule '{text}'")
        return None
    return ParsedTime(hour, minute)


def day_matches(text: Optional[str], weekday: str) -> bool:
    """Case-insensitive test for the weekday's three-letter prefix."""
    if not text or not weekday:
        return False
    return weekday.strip().lower()[:3] in text.lower()


def matches_slot(text: Optional[str], weekday: str, hour: int) -> bool:
    """True if the string names ``weekday`` and its start hour is ``hour``."""
    if not day_matches(text, weekday):
        return False
    parsed = parse_schedule_time(text)
    return parsed is not None and parsed.hour == hour


def _meets(cls: ClassOffering, weekday: str, hour: int) -> bool:
    if cls.recurrence_pattern in _STRUCTURED:
        if weekday.lower() not in cls.recurrence_days:
            return False
        if cls.recurrence_time is not None:
            return cls.recurrence_time.hour == hour
    if cls.schedule and cls.recurrence_pattern == RecurrencePattern.NONE:
        return matches_slot(cls.schedule, weekday, hour)
    return False


def classes_for_slot(
    classes: Sequence[ClassOffering], day: str, hour: int
) -> list[ClassOffering]:
    """Classes meeting on ``day`` at ``hour``, in input order.

    ``day`` may be combined ("Tuesday/Thursday"); either part matches.
    Structured recurrence fields are used first; the legacy string only
    when the class has no recurrence pattern.
    """
    days = [d.strip() for d in day.split("/") if d.strip()]
    return [c for c in classes if any(_meets(c, d, hour) for d in days)]


def legacy_days(text: Optional[str]) -> list[str]:
    """Lowercase weekday names mentioned in a legacy string, Monday first."""
    return [name.lower() for name in WEEKDAY_NAMES if day_matches(text, name)]


def backfill_recurrence(cls: ClassOffering, default_duration: int = 60) -> ClassOffering:
    """Copy of ``cls`` with recurrence fields filled from its legacy string.

    Existing structured values are kept. An unreadable string leaves the
    time unset; it is never defaulted.
    """
    if not cls.schedule or cls.has_structured_time:
        return cls

    parsed = parse_schedule_time(cls.schedule)
    if parsed is None:
        return cls

    update: dict = {}
    if cls.recurrence_time is None:
        update["recurrence_time"] = time(parsed.hour, parsed.minute)
    if not cls.recurrence_days:
        days = legacy_days(cls.schedule)
        if days:
            update["recurrence_days"] = days
    if cls.recurrence_duration is None:
        update["recurrence_duration"] = default_duration
    if cls.recurrence_pattern == RecurrencePattern.NONE and (
        cls.recurrence_days or update.get("recurrence_days")
    ):
        update["recurrence_pattern"] = RecurrencePattern.WEEKLY

    logger.debug(f"Backfilled {cls.id} from '{cls.schedule}': {update}")
    return cls.model_copy(update=update)
