"""ScheduleData: the full class dataset plus generated calendar events (Pydantic v2)."""

from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from models.calendar_event import CalendarEvent
from models.class_offering import ClassOffering


class ScheduleData(BaseModel):
    """All class offerings and their materialized calendar events."""

    classes: list[ClassOffering] = []
    events: list[CalendarEvent] = []
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Overview ───

    def summary(self) -> str:
        """Short overview of the dataset."""
        status_counts = Counter(c.status.value for c in self.classes)
        kinds = Counter(c.placement.kind for c in self.classes if c.is_active)
        teachers = {c.teacher_id for c in self.classes if c.teacher_id}
        lines = [
            f"Classes: {len(self.classes)} "
            f"({', '.join(f'{k} {v}' for k, v in sorted(status_counts.items()))})"
            if self.classes else "Classes: 0",
            f"Teachers: {len(teachers)}",
            f"Placement (active): "
            f"grid {kinds.get('grid', 0)} | timed {kinds.get('timed', 0)} | "
            f"legacy {kinds.get('legacy', 0)} | unscheduled {kinds.get('unscheduled', 0)}",
            f"Calendar events: {len(self.events)}",
        ]
        return "\n".join(lines)

    def get_class(self, class_id: str) -> Optional[ClassOffering]:
        return next((c for c in self.classes if c.id == class_id), None)

    def active_classes(self) -> list[ClassOffering]:
        """All classes except cancelled ones, in stored order."""
        return [c for c in self.classes if c.is_active]

    def events_for(self, class_id: str) -> list[CalendarEvent]:
        return sorted(
            (e for e in self.events if e.class_id == class_id),
            key=lambda e: e.date,
        )

    # ─── Persistence ───

    def save_json(self, path: Path) -> None:
        """Write the complete dataset as a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        # Write a sibling file, then rename it over the target
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))
        tmp_path.replace(path)

    @classmethod
    def load_json(cls, path: Path) -> "ScheduleData":
        """Load a dataset from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
