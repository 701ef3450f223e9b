import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

# Full English weekday names, Monday first (date.weekday() order)
WEEKDAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]


class SchedulePattern(str, Enum):
    TUE_THU = "Tu/Th"
    TUE = "Tu"
    THU = "Th"
    WED = "Wed"


class TimeBlock(str, Enum):
    BLOCK_1 = "Block 1"
    BLOCK_2 = "Block 2"
    LUNCH = "Lunch"
    BLOCK_3 = "Block 3"
    BLOCK_4 = "Block 4"
    BLOCK_5 = "Block 5"


class ClassStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class RecurrencePattern(str, Enum):
    NONE = "none"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    CUSTOM = "custom"


# ─── BLOCK GRID ───

class TimeBlockDef(BaseModel):
    """A single named slot in the school-day timetable."""
    # Block identity (e.g. "Block 1", "Lunch")
    block: TimeBlock
    # Start time as "HH:MM"
    start_time: str
    # End time as "HH:MM"
    end_time: str
    # False for slots classes can never be placed in (Lunch)
    bookable: bool = True

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def normalize_hhmm(cls, v):
        """Normalize '9:30' to '09:30'; reject anything that is not a clock time."""
        match = _HHMM_RE.match(str(v).strip())
        if match is None:
            raise ValueError(f"Invalid time '{v}', expected HH:MM")
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise ValueError(f"Invalid time '{v}', expected HH:MM")
        return f"{hour:02d}:{minute:02d}"


class GridConfig(BaseModel):
    """The fixed weekly grid used by the scheduler board.

    Block order matters for display only; conflict checks compare
    block identity, never durations.
    """
    # All blocks of the day in display order
    blocks: list[TimeBlockDef] = Field(
        description="Blocks of the school day in display order")

    @model_validator(mode='after')
    def validate_blocks(self):
        """Every block appears exactly once and Lunch is never bookable."""
        seen: set[TimeBlock] = set()
        for b in self.blocks:
            if b.block in seen:
                raise ValueError(f"Block '{b.block.value}' is defined twice")
            seen.add(b.block)
            if b.block == TimeBlock.LUNCH and b.bookable:
                raise ValueError("Lunch cannot be a bookable block")
            # zero-padded HH:MM strings compare chronologically
            if b.start_time >= b.end_time:
                raise ValueError(
                    f"Block '{b.block.value}' ends before it starts "
                    f"({b.start_time}-{b.end_time})")
        return self

    @property
    def bookable_blocks(self) -> list[TimeBlock]:
        """Blocks a class may be placed in."""
        return [b.block for b in self.blocks if b.bookable]

    def get_block(self, block: TimeBlock) -> TimeBlockDef | None:
        for b in self.blocks:
            if b.block == block:
                return b
        return None


# ─── CONFLICT DETECTION ───

class ConflictConfig(BaseModel):
    """Settings for the batch conflict scan."""
    # Assumed duration when a class has a start time but no duration
    default_duration_minutes: int = Field(70, ge=1, le=600,
        description="Assumed class length when recurrence_duration is missing")
    # Statuses that take part in conflict checks
    active_statuses: list[ClassStatus] = Field(
        default=[s for s in ClassStatus if s != ClassStatus.CANCELLED],
        description="Statuses included in conflict checks")


# ─── LEGACY PARSER ───

class LegacyParserConfig(BaseModel):
    """Settings for backfilling structured fields from free-text schedules."""
    # Duration written by backfill when the class has none
    backfill_duration_minutes: int = Field(60, ge=1, le=600,
        description="Duration set by backfill when missing")


# ─── STORAGE ───

class StoreConfig(BaseModel):
    """Location of the JSON class store."""
    data_path: str = Field("output/classes.json",
        description="Path of the JSON data file")


# ─── LOGGING ───

class LoggingConfig(BaseModel):
    level: str = Field("WARNING", description="Log level (DEBUG, INFO, WARNING, ERROR)")

    @model_validator(mode='after')
    def validate_level(self):
        self.level = self.level.upper()
        if self.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {self.level}")
        return self


# ─── FULL CONFIG ───

class SchedulerConfig(BaseModel):
    """Complete scheduler configuration."""
    # Display name of the school / program
    school_name: str = Field("Enrichment Program",
        description="Name of the school or program")
    # Block grid
    grid: GridConfig
    # Conflict detection
    conflicts: ConflictConfig = Field(default_factory=ConflictConfig)
    # Legacy parser / backfill
    legacy: LegacyParserConfig = Field(default_factory=LegacyParserConfig)
    # Data file
    store: StoreConfig = Field(default_factory=StoreConfig)
    # Logging
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
