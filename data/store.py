"""Class store: the persistence boundary of the scheduling core.

ClassStore is the narrow interface the board and the CLI talk to.
JsonClassStore keeps the whole dataset in one JSON file (ScheduleData) and
re-reads it on every call, so edits made by another process are seen and
stale writes are rejected through ClassOffering.version.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from config.schema import ClassStatus, SchedulePattern, TimeBlock
from models.calendar_event import CalendarEvent
from models.class_offering import ClassOffering
from models.schedule_data import ScheduleData

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A write to the class store failed."""


class StaleScheduleError(PersistenceError):
    """The class was changed by someone else since it was read."""

    def __init__(self, class_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Class {class_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )
        self.class_id = class_id
        self.expected = expected
        self.actual = actual


class ClassStore(ABC):
    """Read/write contract used by the scheduler."""

    @abstractmethod
    def list_classes(self) -> list[ClassOffering]:
        ...

    def list_active_classes(
        self, statuses: Optional[Iterable[ClassStatus]] = None
    ) -> list[ClassOffering]:
        """Classes that take part in scheduling (default: all but cancelled)."""
        if statuses is None:
            return [c for c in self.list_classes() if c.is_active]
        wanted = set(statuses)
        return [c for c in self.list_classes() if c.status in wanted]

    @abstractmethod
    def get_class(self, class_id: str) -> Optional[ClassOffering]:
        ...

    @abstractmethod
    def update_class_schedule(
        self,
        class_id: str,
        block: Optional[TimeBlock],
        pattern: Optional[SchedulePattern],
        expected_version: Optional[int] = None,
    ) -> ClassOffering:
        """Write block and pattern of one class atomically; returns the stored class."""

    @abstractmethod
    def upsert_class(self, cls: ClassOffering) -> ClassOffering:
        ...

    @abstractmethod
    def replace_events(self, class_id: str, events: list[CalendarEvent]) -> None:
        """Delete all events of the class, then insert ``events``, in one write."""

    @abstractmethod
    def events_for(self, class_id: str) -> list[CalendarEvent]:
        ...


class JsonClassStore(ClassStore):
    """ClassStore backed by a single ScheduleData JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    # ─── File access ───

    def load(self) -> ScheduleData:
        """Current dataset; an empty one if the file does not exist yet."""
        if not self.path.exists():
            return ScheduleData()
        try:
            return ScheduleData.load_json(self.path)
        except (OSError, ValidationError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

    def save(self, data: ScheduleData) -> None:
        try:
            data.save_json(self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e
        logger.debug(f"Saved {len(data.classes)} classes to {self.path}")

    # ─── Reads ───

    def list_classes(self) -> list[ClassOffering]:
        return list(self.load().classes)

    def get_class(self, class_id: str) -> Optional[ClassOffering]:
        return self.load().get_class(class_id)

    def events_for(self, class_id: str) -> list[CalendarEvent]:
        return self.load().events_for(class_id)

    # ─── Writes ───

    def update_class_schedule(
        self,
        class_id: str,
        block: Optional[TimeBlock],
        pattern: Optional[SchedulePattern],
        expected_version: Optional[int] = None,
    ) -> ClassOffering:
        data = self.load()
        index = self._index_of(data, class_id)
        current = data.classes[index]
        if expected_version is not None and current.version != expected_version:
            raise StaleScheduleError(class_id, expected_version, current.version)

        updated = current.model_copy(update={
            "time_block": block,
            "schedule_pattern": pattern,
            "version": current.version + 1,
        })
        data.classes[index] = updated
        self.save(data)
        return updated

    def upsert_class(self, cls: ClassOffering) -> ClassOffering:
        """Insert or replace by id. Replacing bumps the stored version."""
        data = self.load()
        existing = data.get_class(cls.id)
        if existing is None:
            stored = cls
            data.classes.append(stored)
        else:
            stored = cls.model_copy(update={"version": existing.version + 1})
            data.classes[self._index_of(data, cls.id)] = stored
        self.save(data)
        return stored

    def upsert_many(self, classes: Iterable[ClassOffering]) -> int:
        """Bulk upsert in one write; returns the number of classes written."""
        data = self.load()
        count = 0
        for cls in classes:
            existing = data.get_class(cls.id)
            if existing is None:
                data.classes.append(cls)
            else:
                data.classes[self._index_of(data, cls.id)] = cls.model_copy(
                    update={"version": existing.version + 1})
            count += 1
        self.save(data)
        return count

    def replace_events(self, class_id: str, events: list[CalendarEvent]) -> None:
        if any(e.class_id != class_id for e in events):
            raise ValueError(f"Events for another class passed to replace_events({class_id})")
        data = self.load()
        self._index_of(data, class_id)
        data.events = [e for e in data.events if e.class_id != class_id] + list(events)
        self.save(data)

    @staticmethod
    def _index_of(data: ScheduleData, class_id: str) -> int:
        for i, c in enumerate(data.classes):
            if c.id == class_id:
                return i
        raise PersistenceError(f"Class not found: {class_id}")
