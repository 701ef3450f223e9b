"""Greedy resolution plan for recurrence-time conflicts.

For each teacher, classes are ranked by enrollment (more first), then by
creation time (older first). Walking that order, a class is kept unless it
overlaps a class already kept. The plan is a proposal only; nothing is
deleted or cancelled here.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from config.schema import ClassStatus
from models.class_offering import ClassOffering
from scheduling.conflicts import DEFAULT_DURATION_MINUTES, recurrences_overlap

logger = logging.getLogger(__name__)

_NEVER = datetime.max.replace(tzinfo=timezone.utc)


@dataclass
class DropProposal:
    """A class proposed for removal and the kept class it collides with."""

    class_id: str
    name: str
    enrollment: int
    kept_class_id: str
    kept_enrollment: int


@dataclass
class ResolutionPlan:
    keep: list[str] = field(default_factory=list)
    drop: list[DropProposal] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True if nothing has to be dropped."""
        return not self.drop

    def to_dict(self) -> dict:
        return {
            "keep": self.keep,
            "drop": [
                {
                    "class_id": d.class_id,
                    "name": d.name,
                    "enrollment": d.enrollment,
                    "kept_class_id": d.kept_class_id,
                    "kept_enrollment": d.kept_enrollment,
                }
                for d in self.drop
            ],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def _created(cls: ClassOffering) -> datetime:
    if cls.created_at is None:
        return _NEVER
    if cls.created_at.tzinfo is None:
        return cls.created_at.replace(tzinfo=timezone.utc)
    return cls.created_at


def _priority(cls: ClassOffering) -> tuple:
    return (-cls.current_enrollment, _created(cls))


def plan_resolution(
    classes: Sequence[ClassOffering],
    default_duration: int = DEFAULT_DURATION_MINUTES,
    active_statuses: Optional[Iterable[ClassStatus]] = None,
) -> ResolutionPlan:
    """Keep/drop proposal per teacher. Classes without a recurrence time are kept."""
    wanted = set(active_statuses) if active_statuses is not None else None
    by_teacher: dict[str, list[ClassOffering]] = defaultdict(list)
    plan = ResolutionPlan()

    for cls in classes:
        live = cls.is_active if wanted is None else cls.status in wanted
        if not live:
            continue
        if cls.teacher_id and cls.recurrence_time is not None and cls.recurrence_days:
            by_teacher[cls.teacher_id].append(cls)
        else:
            plan.keep.append(cls.id)

    for teacher_id, teacher_classes in by_teacher.items():
        accepted: list[ClassOffering] = []
        for cls in sorted(teacher_classes, key=_priority):
            winner = next(
                (a for a in accepted if recurrences_overlap(cls, a, default_duration)),
                None,
            )
            if winner is None:
                accepted.append(cls)
                plan.keep.append(cls.id)
                continue
            logger.info(
                f"Teacher {teacher_id}: keep {winner.id} ({winner.current_enrollment}), "
                f"drop {cls.id} ({cls.current_enrollment})"
            )
            plan.drop.append(DropProposal(
                class_id=cls.id,
                name=cls.name,
                enrollment=cls.current_enrollment,
                kept_class_id=winner.id,
                kept_enrollment=winner.current_enrollment,
            ))
    return plan
