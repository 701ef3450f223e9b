"""Tests for the scheduler board state machine."""

import pytest

from config.schema import ClassStatus, SchedulePattern, TimeBlock
from models.class_offering import ClassOffering
from scheduling.board import (
    BoardState,
    ScheduleCommand,
    SchedulerBoard,
    plan_move,
    plan_unassign,
)


def _classes() -> list[ClassOffering]:
    return [
        ClassOffering(id="art", name="Art", teacher_id="T", teacher_name="Smith",
                      status=ClassStatus.ACTIVE, time_block="Block 2", schedule_pattern="Tu/Th"),
        ClassOffering(id="band", name="Band", teacher_id="T", teacher_name="Smith",
                      status=ClassStatus.ACTIVE),
        ClassOffering(id="chess", name="Chess", teacher_id="U", status=ClassStatus.ACTIVE,
                      time_block="Block 1", schedule_pattern="Wed", version=3),
    ]


class _Recorder:
    """Persistence callback that records commands."""

    def __init__(self):
        self.commands: list[ScheduleCommand] = []

    def __call__(self, command: ScheduleCommand):
        self.commands.append(command)


def _failing(command: ScheduleCommand):
    raise RuntimeError("database unavailable")


# ─── PURE TRANSITIONS ─────────────────────────────────────────────────────────

class TestPlanMove:
    def test_move_returns_new_state_and_command(self):
        state = BoardState.of(_classes())
        t = plan_move(state, "band", TimeBlock.BLOCK_3, SchedulePattern.TUE)
        assert t.result.ok
        assert t.result.changed
        assert t.command == ScheduleCommand("band", TimeBlock.BLOCK_3, SchedulePattern.TUE, 0)
        assert t.state.get("band").time_block == TimeBlock.BLOCK_3
        # input state untouched
        assert state.get("band").time_block is None

    def test_conflict_rejected(self):
        state = BoardState.of(_classes())
        t = plan_move(state, "band", TimeBlock.BLOCK_2, SchedulePattern.TUE)
        assert not t.result.ok
        assert t.command is None
        assert t.state is state
        assert t.result.conflicting_class.id == "art"
        assert "Smith" in t.result.message
        assert "Block 2" in t.result.message

    def test_no_conflict_on_disjoint_pattern(self):
        t = plan_move(BoardState.of(_classes()), "band", "Block 2", "Wed")
        assert t.result.ok

    def test_lunch_rejected(self):
        state = BoardState.of(_classes())
        t = plan_move(state, "band", TimeBlock.LUNCH, SchedulePattern.WED)
        assert not t.result.ok
        assert t.command is None

    def test_same_cell_is_noop(self):
        state = BoardState.of(_classes())
        t = plan_move(state, "art", TimeBlock.BLOCK_2, SchedulePattern.TUE_THU)
        assert t.result.ok
        assert not t.result.changed
        assert t.command is None

    def test_moving_within_own_block_does_not_self_conflict(self):
        t = plan_move(BoardState.of(_classes()), "art", TimeBlock.BLOCK_2, SchedulePattern.TUE)
        assert t.result.ok

    def test_unknown_class(self):
        with pytest.raises(KeyError):
            plan_move(BoardState.of(_classes()), "nope", TimeBlock.BLOCK_1, SchedulePattern.WED)

    def test_unknown_block_value(self):
        with pytest.raises(ValueError):
            plan_move(BoardState.of(_classes()), "band", "Block 9", SchedulePattern.WED)


class TestPlanUnassign:
    def test_clears_cell(self):
        t = plan_unassign(BoardState.of(_classes()), "chess")
        assert t.result.ok
        assert t.command == ScheduleCommand("chess", None, None, 3)
        assert not t.state.get("chess").is_grid_scheduled

    def test_already_unscheduled(self):
        t = plan_unassign(BoardState.of(_classes()), "band")
        assert t.command is None


class TestBoardState:
    def test_cell_and_unscheduled(self):
        state = BoardState.of(_classes())
        assert [c.id for c in state.cell(TimeBlock.BLOCK_2, SchedulePattern.TUE_THU)] == ["art"]
        assert [c.id for c in state.unscheduled()] == ["band"]

    def test_replace_unknown_raises(self):
        with pytest.raises(KeyError):
            BoardState.of(_classes()).replace(ClassOffering(id="ghost"))


# ─── STATEFUL BOARD ───────────────────────────────────────────────────────────

class TestSchedulerBoard:
    def test_successful_move_persists(self):
        recorder = _Recorder()
        board = SchedulerBoard(_classes(), persist=recorder)
        result = board.move_class("band", TimeBlock.BLOCK_4, SchedulePattern.TUE_THU)
        assert result.ok
        assert len(recorder.commands) == 1
        assert board.state.get("band").time_block == TimeBlock.BLOCK_4

    def test_conflict_does_not_persist(self):
        recorder = _Recorder()
        board = SchedulerBoard(_classes(), persist=recorder)
        before = board.state
        result = board.move_class("band", TimeBlock.BLOCK_2, SchedulePattern.THU)
        assert not result.ok
        assert recorder.commands == []
        assert board.state == before

    def test_failed_persist_rolls_back(self):
        """After a failed save the board equals the pre-move snapshot."""
        board = SchedulerBoard(_classes(), persist=_failing)
        before = board.state
        result = board.move_class("band", TimeBlock.BLOCK_3, SchedulePattern.WED)
        assert not result.ok
        assert result.rolled_back
        assert result.message == "Failed to save schedule change"
        assert "database unavailable" in result.error
        assert board.state == before
        assert board.state is before

    def test_failed_unassign_rolls_back(self):
        board = SchedulerBoard(_classes(), persist=_failing)
        before = board.state
        result = board.unassign_class("art")
        assert result.rolled_back
        assert result.message == "Failed to unassign class"
        assert board.state == before

    def test_rollback_leaves_other_classes_alone(self):
        board = SchedulerBoard(_classes(), persist=_failing)
        board.move_class("band", TimeBlock.BLOCK_3, SchedulePattern.WED)
        assert board.state.get("art").time_block == TimeBlock.BLOCK_2
        assert board.state.get("chess").schedule_pattern == SchedulePattern.WED

    def test_saved_class_replaces_optimistic_copy(self):
        def persist(command):
            return ClassOffering(id=command.class_id, name="Band", teacher_id="T",
                                 status=ClassStatus.ACTIVE, time_block=command.block,
                                 schedule_pattern=command.pattern, version=7)

        board = SchedulerBoard(_classes(), persist=persist)
        board.move_class("band", TimeBlock.BLOCK_5, SchedulePattern.THU)
        assert board.state.get("band").version == 7

    def test_no_persist_callback(self):
        board = SchedulerBoard(_classes())
        assert board.move_class("band", TimeBlock.BLOCK_1, SchedulePattern.TUE).ok
        assert board.state.get("band").time_block == TimeBlock.BLOCK_1

    def test_sequential_moves_see_each_other(self):
        board = SchedulerBoard(_classes(), persist=_Recorder())
        assert board.move_class("band", TimeBlock.BLOCK_4, SchedulePattern.TUE).ok
        # art now collides with band in Block 4
        result = board.move_class("art", TimeBlock.BLOCK_4, SchedulePattern.TUE_THU)
        assert not result.ok
        assert result.conflicting_class.id == "band"
