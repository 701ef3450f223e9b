"""Scheduler board: classes placed on the (block × pattern) grid.

Transitions are pure functions over an immutable BoardState. Each returns
the next state plus the ScheduleCommand that has to be persisted.
SchedulerBoard applies a transition optimistically, runs the command
through the persistence callback and restores the previous state as a
whole if the callback raises.

All transitions run on one thread of control; the board does no locking.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from config.schema import SchedulePattern, TimeBlock
from models.class_offering import ClassOffering
from scheduling.conflicts import find_conflict
from scheduling.patterns import is_bookable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleCommand:
    """Side effect of a transition: write block/pattern of one class."""

    class_id: str
    block: Optional[TimeBlock]
    pattern: Optional[SchedulePattern]
    expected_version: Optional[int] = None


@dataclass(frozen=True)
class MoveResult:
    ok: bool
    message: str
    conflicting_class: Optional[ClassOffering] = None
    rolled_back: bool = False
    changed: bool = False          # a command was committed
    error: Optional[str] = None


@dataclass(frozen=True)
class BoardState:
    """Immutable snapshot of every class on the board, in load order."""

    classes: tuple[ClassOffering, ...] = ()

    @classmethod
    def of(cls, classes: Iterable[ClassOffering]) -> "BoardState":
        return cls(tuple(classes))

    def get(self, class_id: str) -> ClassOffering:
        for c in self.classes:
            if c.id == class_id:
                return c
        raise KeyError(f"Unknown class: {class_id}")

    def replace(self, updated: ClassOffering) -> "BoardState":
        """New state with the class of the same id swapped for ``updated``."""
        self.get(updated.id)
        return BoardState(tuple(updated if c.id == updated.id else c for c in self.classes))

    def cell(self, block: TimeBlock, pattern: SchedulePattern) -> list[ClassOffering]:
        return [
            c for c in self.classes
            if c.is_active and c.time_block == block and c.schedule_pattern == pattern
        ]

    def unscheduled(self) -> list[ClassOffering]:
        return [c for c in self.classes if c.is_active and not c.is_grid_scheduled]


@dataclass(frozen=True)
class Transition:
    state: BoardState
    result: MoveResult
    command: Optional[ScheduleCommand] = field(default=None)


# ─── Pure transitions ─────────────────────────────────────────────────────────

def plan_move(
    state: BoardState,
    class_id: str,
    block: TimeBlock,
    pattern: SchedulePattern,
) -> Transition:
    """Place a class on a cell unless its teacher is already busy there.

    Raises KeyError for an unknown id and ValueError for an unknown
    block or pattern value.
    """
    cls = state.get(class_id)
    block = TimeBlock(block)
    pattern = SchedulePattern(pattern)

    if not is_bookable(block):
        return Transition(state, MoveResult(False, f"{block.value} is not bookable"))

    if cls.time_block == block and cls.schedule_pattern == pattern:
        return Transition(
            state, MoveResult(True, f"Class already in {block.value} ({pattern.value})"))

    conflict = find_conflict(cls.teacher_id, pattern, block, cls.id, state.classes)
    if conflict is not None:
        teacher = cls.teacher_name or cls.teacher_id
        message = (
            f"Teacher {teacher} is already busy in {block.value} "
            f"({conflict.schedule_pattern.value}): {conflict.name or conflict.id}"
        )
        return Transition(state, MoveResult(False, message, conflicting_class=conflict))

    moved = cls.model_copy(update={"time_block": block, "schedule_pattern": pattern})
    command = ScheduleCommand(cls.id, block, pattern, expected_version=cls.version)
    return Transition(
        state.replace(moved), MoveResult(True, "Class moved", changed=True), command)


def plan_unassign(state: BoardState, class_id: str) -> Transition:
    """Clear block and pattern. Vacating a cell never conflicts."""
    cls = state.get(class_id)
    if cls.time_block is None and cls.schedule_pattern is None:
        return Transition(state, MoveResult(True, "Class is already unscheduled"))

    cleared = cls.model_copy(update={"time_block": None, "schedule_pattern": None})
    command = ScheduleCommand(cls.id, None, None, expected_version=cls.version)
    return Transition(
        state.replace(cleared), MoveResult(True, "Class unassigned", changed=True), command)


# ─── Stateful board ───────────────────────────────────────────────────────────

PersistCallback = Callable[[ScheduleCommand], Optional[ClassOffering]]


class SchedulerBoard:
    """Holds the current BoardState and commits transitions through ``persist``.

    ``persist`` may return the stored class (e.g. with a bumped version);
    it then replaces the optimistic copy. Any exception from ``persist``
    restores the pre-transition snapshot.
    """

    def __init__(self, classes: Iterable[ClassOffering],
                 persist: Optional[PersistCallback] = None):
        self.state = BoardState.of(classes)
        self._persist = persist

    @property
    def classes(self) -> tuple[ClassOffering, ...]:
        return self.state.classes

    def move_class(self, class_id: str, block: TimeBlock,
                   pattern: SchedulePattern) -> MoveResult:
        transition = plan_move(self.state, class_id, block, pattern)
        return self._commit(transition, "Failed to save schedule change")

    def unassign_class(self, class_id: str) -> MoveResult:
        transition = plan_unassign(self.state, class_id)
        return self._commit(transition, "Failed to unassign class")

    def _commit(self, transition: Transition, failure_message: str) -> MoveResult:
        if transition.command is None:
            return transition.result

        snapshot = self.state
        self.state = transition.state
        if self._persist is None:
            return transition.result

        command = transition.command
        try:
            saved = self._persist(command)
        except Exception as e:
            self.state = snapshot
            logger.warning(f"Rolled back change of {command.class_id}: {e}")
            return MoveResult(False, failure_message, rolled_back=True, error=str(e))

        if saved is not None:
            self.state = self.state.replace(saved)
        logger.info(
            f"Saved {command.class_id}: "
            f"{command.block.value if command.block else '-'} / "
            f"{command.pattern.value if command.pattern else '-'}"
        )
        return transition.result
