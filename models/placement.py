"""Where a class sits in the week, as a tagged variant (Pydantic v2).

Consumers match on ``kind`` instead of probing optional fields of
ClassOffering.
"""

from datetime import time
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from config.schema import SchedulePattern, TimeBlock


class Unscheduled(BaseModel):
    """No block/pattern, no structured recurrence, no legacy string."""

    kind: Literal["unscheduled"] = "unscheduled"


class GridScheduled(BaseModel):
    """Placed on the (block × pattern) grid of the scheduler board."""

    kind: Literal["grid"] = "grid"
    block: TimeBlock
    pattern: SchedulePattern


class TimedScheduled(BaseModel):
    """Structured recurrence: weekday set + start time + duration."""

    kind: Literal["timed"] = "timed"
    days: frozenset[str]       # lowercase weekday names ("tuesday")
    start_time: time
    duration: int | None = None  # minutes; None = use the configured default

    @property
    def start_minute(self) -> int:
        return self.start_time.hour * 60 + self.start_time.minute


class LegacyText(BaseModel):
    """Only a human-entered schedule string is known."""

    kind: Literal["legacy"] = "legacy"
    raw: str


Placement = Annotated[
    Union[Unscheduled, GridScheduled, TimedScheduled, LegacyText],
    Field(discriminator="kind"),
]
