from models.placement import (
    GridScheduled,
    LegacyText,
    Placement,
    TimedScheduled,
    Unscheduled,
)
from models.class_offering import ClassOffering
from models.calendar_event import CalendarEvent, ScheduleConfig
from models.conflict import ConflictAlert
from models.schedule_data import ScheduleData

__all__ = [
    "GridScheduled",
    "LegacyText",
    "Placement",
    "TimedScheduled",
    "Unscheduled",
    "ClassOffering",
    "CalendarEvent",
    "ScheduleConfig",
    "ConflictAlert",
    "ScheduleData",
]
