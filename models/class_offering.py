"""Data model for a class offering (Pydantic v2)."""

import json
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, field_validator

from config.schema import (
    WEEKDAY_NAMES,
    ClassStatus,
    RecurrencePattern,
    SchedulePattern,
    TimeBlock,
)
from models.placement import (
    GridScheduled,
    LegacyText,
    Placement,
    TimedScheduled,
    Unscheduled,
)


class ClassOffering(BaseModel):
    """A course offering with both schedule representations.

    Grid fields (schedule_pattern + time_block) are written by the scheduler
    board; recurrence fields by the class forms; ``schedule`` is the legacy
    free-text string; parsing it may fail.
    """

    id: str
    name: str = ""
    teacher_id: Optional[str] = None
    teacher_name: Optional[str] = None           # display only
    status: ClassStatus = ClassStatus.DRAFT
    location: Optional[str] = None
    description: Optional[str] = None

    # Grid scheduler
    schedule_pattern: Optional[SchedulePattern] = None
    time_block: Optional[TimeBlock] = None

    # Structured recurrence
    recurrence_pattern: RecurrencePattern = RecurrencePattern.NONE
    recurrence_days: list[str] = []              # lowercase weekday names
    recurrence_time: Optional[time] = None
    recurrence_duration: Optional[int] = None    # minutes

    # Legacy free text ("Tue/Thu 3:30 PM - 5:00 PM")
    schedule: Optional[str] = None

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    current_enrollment: int = 0
    created_at: Optional[datetime] = None
    version: int = 0                             # optimistic concurrency token

    @field_validator("recurrence_days", mode="before")
    @classmethod
    def normalize_days(cls, v):
        # Stored rows sometimes carry the list as a JSON string
        if v is None:
            return []
        if isinstance(v, str):
            text = v.strip()
            if text.startswith("["):
                v = json.loads(text)
            else:
                v = [d for d in text.replace("/", ",").split(",")]
        days: list[str] = []
        for token in (str(d).strip().lower() for d in v):
            if not token:
                continue
            # "Tue", "tues" and "Tuesday" all name tuesday
            name = next(
                (w.lower() for w in WEEKDAY_NAMES
                 if len(token) >= 3 and w.lower()[:3] == token[:3]),
                None,
            )
            if name is None:
                raise ValueError(f"Unknown weekday '{token}'")
            if name not in days:
                days.append(name)
        return days

    @field_validator("schedule", "teacher_id", "location", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_active(self) -> bool:
        """False for cancelled classes, which never take part in scheduling."""
        return self.status != ClassStatus.CANCELLED

    @property
    def is_grid_scheduled(self) -> bool:
        return self.schedule_pattern is not None and self.time_block is not None

    @property
    def has_structured_time(self) -> bool:
        return (
            self.recurrence_pattern != RecurrencePattern.NONE
            and bool(self.recurrence_days)
            and self.recurrence_time is not None
        )

    @property
    def placement(self) -> Placement:
        """Grid fields win over structured recurrence, which wins over legacy text."""
        if self.is_grid_scheduled:
            return GridScheduled(block=self.time_block, pattern=self.schedule_pattern)
        if self.has_structured_time:
            return TimedScheduled(
                days=frozenset(self.recurrence_days),
                start_time=self.recurrence_time,
                duration=self.recurrence_duration,
            )
        if self.schedule:
            return LegacyText(raw=self.schedule)
        return Unscheduled()

    def label(self) -> str:
        """Short display label: name plus teacher."""
        teacher = self.teacher_name or self.teacher_id or "?"
        return f"{self.name or self.id} ({teacher})"
