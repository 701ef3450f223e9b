"""Data models for materialized calendar events (Pydantic v2)."""

from datetime import date
from typing import Optional

from pydantic import BaseModel


class ScheduleConfig(BaseModel):
    """Recurrence definition consumed by the materializer.

    ``day`` is either a weekday name ("Tuesday") or a combined label
    ("Tuesday/Thursday"); a date matches if its weekday name is a substring.
    """

    day: Optional[str] = None
    block: Optional[str] = None
    recurring: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class CalendarEvent(BaseModel):
    """One concrete dated occurrence of a class."""

    class_id: str
    date: date
    block: str                        # block label as-is ("Block 2")
    location: Optional[str] = None
    description: Optional[str] = None
