"""Expands a recurring schedule into dated calendar events."""

import logging
from datetime import timedelta
from typing import Optional

from models.calendar_event import CalendarEvent, ScheduleConfig
from models.class_offering import ClassOffering
from scheduling.patterns import WEEKDAY_NAMES, pattern_label

logger = logging.getLogger(__name__)


def generate_events(
    class_id: str,
    config: ScheduleConfig,
    location: Optional[str] = None,
    description: Optional[str] = None,
) -> list[CalendarEvent]:
    """All events of a class in ``[start_date, end_date]``, ascending by date.

    A date is included when its English weekday name is a substring of
    ``config.day``, so "Tuesday/Thursday" yields both days. Incomplete
    configs and reversed ranges produce an empty list. The result is the
    full target set; callers replace, never append.
    """
    if not (config.start_date and config.end_date and config.day and config.block):
        logger.debug(f"Class {class_id}: schedule incomplete, no events generated")
        return []
    if config.start_date > config.end_date:
        logger.debug(
            f"Class {class_id}: start {config.start_date} after end {config.end_date}"
        )
        return []

    events: list[CalendarEvent] = []
    current = config.start_date
    while current <= config.end_date:
        if WEEKDAY_NAMES[current.weekday()] in config.day:
            events.append(CalendarEvent(
                class_id=class_id,
                date=current,
                block=config.block,
                location=location or None,
                description=description or None,
            ))
        current += timedelta(days=1)
    return events


def schedule_config_for(cls: ClassOffering) -> ScheduleConfig:
    """Materializer input for a grid-scheduled class.

    Unscheduled classes get a config without day/block, which
    generate_events() turns into no events.
    """
    return ScheduleConfig(
        day=pattern_label(cls.schedule_pattern) if cls.schedule_pattern else None,
        block=cls.time_block.value if cls.time_block else None,
        recurring=True,
        start_date=cls.start_date,
        end_date=cls.end_date,
    )


def events_for_class(cls: ClassOffering) -> list[CalendarEvent]:
    """generate_events() for a class, inheriting its location and description."""
    return generate_events(
        cls.id,
        schedule_config_for(cls),
        location=cls.location,
        description=cls.description,
    )
