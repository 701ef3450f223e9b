"""Tests for the configuration system, the data models and the CLI."""

import json
from datetime import date, time
from pathlib import Path

import pytest
from pydantic import ValidationError

from config.defaults import default_grid, default_scheduler_config
from config.manager import ConfigManager
from config.schema import (
    ClassStatus,
    GridConfig,
    LoggingConfig,
    RecurrencePattern,
    SchedulePattern,
    TimeBlock,
    TimeBlockDef,
)
from models.calendar_event import CalendarEvent
from models.class_offering import ClassOffering
from models.schedule_data import ScheduleData


# ─── DEFAULT CONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_grid(self):
        """Six rows, five of them bookable."""
        grid = default_grid()
        assert len(grid.blocks) == 6
        assert grid.bookable_blocks == [
            TimeBlock.BLOCK_1, TimeBlock.BLOCK_2, TimeBlock.BLOCK_3,
            TimeBlock.BLOCK_4, TimeBlock.BLOCK_5,
        ]

    def test_get_block(self):
        block = default_grid().get_block(TimeBlock.BLOCK_2)
        assert (block.start_time, block.end_time) == ("10:50", "12:00")

    def test_default_scheduler_config(self):
        config = default_scheduler_config()
        assert config.conflicts.default_duration_minutes == 70
        assert ClassStatus.CANCELLED not in config.conflicts.active_statuses
        assert ClassStatus.COMPLETED in config.conflicts.active_statuses
        assert config.legacy.backfill_duration_minutes == 60
        assert config.logging.level == "WARNING"


# ─── PYDANTIC VALIDATION ──────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_duplicate_block_raises(self):
        with pytest.raises(ValidationError):
            GridConfig(blocks=[
                TimeBlockDef(block=TimeBlock.BLOCK_1, start_time="09:00", end_time="10:00"),
                TimeBlockDef(block=TimeBlock.BLOCK_1, start_time="10:00", end_time="11:00"),
            ])

    def test_bookable_lunch_raises(self):
        with pytest.raises(ValidationError):
            GridConfig(blocks=[
                TimeBlockDef(block=TimeBlock.LUNCH, start_time="12:00", end_time="12:40"),
            ])

    def test_block_ending_before_start_raises(self):
        with pytest.raises(ValidationError):
            GridConfig(blocks=[
                TimeBlockDef(block=TimeBlock.BLOCK_1, start_time="10:00", end_time="09:00"),
            ])

    def test_unpadded_hour_normalized(self):
        block = TimeBlockDef(block=TimeBlock.BLOCK_1, start_time="9:30", end_time="10:40")
        assert block.start_time == "09:30"
        grid = GridConfig(blocks=[block])
        assert grid.get_block(TimeBlock.BLOCK_1).end_time == "10:40"

    @pytest.mark.parametrize("value", ["aa", "24:00", "10:75", "10"])
    def test_malformed_time_raises(self, value):
        with pytest.raises(ValidationError):
            TimeBlockDef(block=TimeBlock.BLOCK_1, start_time=value, end_time="23:00")

    def test_log_level_uppercased(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_log_level_raises(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")


# ─── YAML SAVE / LOAD ─────────────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        config = default_scheduler_config().model_copy(update={"school_name": "Test School"})
        mgr = ConfigManager()
        mgr.CONFIG_DIR = tmp_path
        mgr.DEFAULT_CONFIG = tmp_path / "scheduler_config.yaml"

        mgr.save(config)
        assert mgr.DEFAULT_CONFIG.exists()

        loaded = mgr.load(mgr.DEFAULT_CONFIG)
        assert loaded.school_name == "Test School"
        assert loaded.grid == config.grid
        assert loaded.conflicts.active_statuses == config.conflicts.active_statuses

    def test_saved_file_has_section_comments(self, tmp_path: Path):
        mgr = ConfigManager()
        target = tmp_path / "scheduler_config.yaml"
        mgr.save(default_scheduler_config(), target)
        text = target.read_text(encoding="utf-8")
        assert "Block grid" in text
        assert "Conflict detection" in text

    def test_first_run_check(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "scheduler_config.yaml"
        assert mgr.first_run_check() is True
        mgr.save(default_scheduler_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            ConfigManager().load(tmp_path / "not_there.yaml")

    def test_load_or_default_without_file(self, tmp_path: Path):
        config = ConfigManager().load_or_default(tmp_path / "not_there.yaml")
        assert config == default_scheduler_config()

    def test_invalid_content_raises_value_error(self, tmp_path: Path):
        target = tmp_path / "bad.yaml"
        target.write_text("school_name: X\ngrid:\n  blocks: 5\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid configuration"):
            ConfigManager().load(target)

    def test_empty_file_raises_value_error(self, tmp_path: Path):
        target = tmp_path / "empty.yaml"
        target.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid configuration") as exc:
            ConfigManager().load(target)
        assert "grid" in str(exc.value)


# ─── MODELS ───────────────────────────────────────────────────────────────────

class TestModels:
    def test_placement_priority(self):
        """Grid fields win over recurrence fields, which win over legacy text."""
        cls = ClassOffering(
            id="c", time_block="Block 1", schedule_pattern="Wed",
            recurrence_pattern=RecurrencePattern.WEEKLY, recurrence_days=["monday"],
            recurrence_time=time(9, 0), schedule="Fri 2pm",
        )
        assert cls.placement.kind == "grid"
        no_grid = cls.model_copy(update={"time_block": None})
        assert no_grid.placement.kind == "timed"
        assert no_grid.placement.start_minute == 540
        legacy = no_grid.model_copy(update={"recurrence_time": None})
        assert legacy.placement.kind == "legacy"
        assert ClassOffering(id="u").placement.kind == "unscheduled"

    def test_normalize_days(self):
        assert ClassOffering(id="c", recurrence_days="Tuesday, Thursday").recurrence_days == [
            "tuesday", "thursday"]
        assert ClassOffering(id="c", recurrence_days=None).recurrence_days == []

    def test_abbreviated_days_expanded(self):
        cls = ClassOffering(id="c", recurrence_days="Tue,Thu")
        assert cls.recurrence_days == ["tuesday", "thursday"]
        assert ClassOffering(id="c", recurrence_days=["WED", "wednesday"]).recurrence_days == [
            "wednesday"]

    @pytest.mark.parametrize("days", ["Funday", "Tu", '["tuesday", "xyz"]'])
    def test_unknown_day_raises(self, days):
        with pytest.raises(ValidationError, match="Unknown weekday"):
            ClassOffering(id="c", recurrence_days=days)

    def test_blank_strings_become_none(self):
        cls = ClassOffering(id="c", teacher_id="  ", location="", schedule="")
        assert cls.teacher_id is None
        assert cls.location is None
        assert cls.placement.kind == "unscheduled"

    def test_cancelled_is_inactive(self):
        assert not ClassOffering(id="c", status=ClassStatus.CANCELLED).is_active
        assert ClassOffering(id="c").is_active

    def test_label(self):
        assert ClassOffering(id="c", name="Art", teacher_id="t1").label() == "Art (t1)"
        assert ClassOffering(id="c").label() == "c (?)"


class TestScheduleData:
    def test_save_and_load_json(self, tmp_path: Path):
        data = ScheduleData(
            classes=[ClassOffering(id="a", name="Art", time_block="Block 1",
                                   schedule_pattern=SchedulePattern.TUE)],
            events=[CalendarEvent(class_id="a", date=date(2024, 1, 2), block="Block 1")],
        )
        path = tmp_path / "out" / "classes.json"
        data.save_json(path)
        loaded = ScheduleData.load_json(path)
        assert loaded.classes == data.classes
        assert loaded.events_for("a")[0].date == date(2024, 1, 2)
        assert loaded.created_at is not None
        assert not path.with_suffix(".json.tmp").exists()

    def test_load_json_nonexistent_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            ScheduleData.load_json(tmp_path / "missing.json")

    def test_summary_counts_placements(self):
        data = ScheduleData(classes=[
            ClassOffering(id="a", teacher_id="t1", time_block="Block 1", schedule_pattern="Tu"),
            ClassOffering(id="b", teacher_id="t1", schedule="Mon 10am"),
            ClassOffering(id="c", teacher_id="t2", status=ClassStatus.CANCELLED),
        ])
        summary = data.summary()
        assert "Classes: 3" in summary
        assert "Teachers: 2" in summary
        assert "grid 1" in summary
        assert "legacy 1" in summary
        assert [c.id for c in data.active_classes()] == ["a", "b"]


# ─── MAIN.PY CLI ──────────────────────────────────────────────────────────────

_CSV_HEADER = "id,name,teacher_id,status,pattern,block,days,time,duration,start_date,end_date,enrollment"


def _write_classes(*rows: str) -> Path:
    path = Path("classes.csv")
    path.write_text("\n".join([_CSV_HEADER, *rows]) + "\n", encoding="utf-8")
    return path


_ART = "a,Art,t1,active,Tu/Th,Block 2,,,,2024-01-01,2024-01-14,"
_BAND = "b,Band,t1,active,,,,,,2024-01-01,2024-01-14,"


class TestCli:
    def _run(self, runner, *args: str):
        from main import cli
        return runner.invoke(cli, ["--data", "classes.json", *args])

    def test_help(self):
        """main.py --help prints the usage."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    @pytest.mark.parametrize("command", [
        "config", "template", "import", "board", "move", "unassign",
        "conflicts", "resolve", "materialize", "backfill", "slot", "export",
    ])
    def test_command_registered(self, command):
        from click.testing import CliRunner
        from main import cli
        result = CliRunner().invoke(cli, [command, "--help"])
        assert result.exit_code == 0

    def test_config_init_writes_file(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["config", "init"])
            assert result.exit_code == 0
            assert Path("config/scheduler_config.yaml").exists()
            again = runner.invoke(cli, ["config", "init"])
            assert "already exists" in again.output

    def test_invalid_config_aborts(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("bad.yaml").write_text("grid: 5\n", encoding="utf-8")
            result = runner.invoke(cli, ["--config", "bad.yaml", "board"])
            assert result.exit_code == 1

    def test_import_and_board(self):
        from click.testing import CliRunner
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes(_ART, _BAND)
            result = self._run(runner, "import", "classes.csv")
            assert result.exit_code == 0, result.output
            assert "2 classes saved" in result.output

            board = self._run(runner, "board")
            assert board.exit_code == 0
            assert "Art" in board.output
            assert "Unscheduled (1)" in board.output

    def test_import_errors_exit_1(self):
        from click.testing import CliRunner
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes("a,Art,t1,active,Wed,Lunch,,,,,,")
            result = self._run(runner, "import", "classes.csv")
            assert result.exit_code == 1
            assert "not bookable" in result.output
            assert not Path("classes.json").exists()

    def test_move_conflict_and_success(self):
        from click.testing import CliRunner
        from data.store import JsonClassStore
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes(_ART, _BAND)
            self._run(runner, "import", "classes.csv")

            blocked = self._run(runner, "move", "b", "Block 2", "Tu")
            assert blocked.exit_code == 1
            assert "already busy" in blocked.output

            moved = self._run(runner, "move", "b", "Block 3", "Tu")
            assert moved.exit_code == 0, moved.output
            assert "2 calendar events regenerated" in moved.output

            store = JsonClassStore(Path("classes.json"))
            assert store.get_class("b").time_block == TimeBlock.BLOCK_3
            assert [e.date for e in store.events_for("b")] == [
                date(2024, 1, 2), date(2024, 1, 9)]

            unassigned = self._run(runner, "unassign", "b")
            assert unassigned.exit_code == 0
            assert store.events_for("b") == []

    def test_event_write_failure_exits_1(self, monkeypatch):
        from click.testing import CliRunner
        from data.store import JsonClassStore, PersistenceError

        def fail(self, class_id, events):
            raise PersistenceError(f"Could not write events for {class_id}")

        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes(_ART, _BAND)
            self._run(runner, "import", "classes.csv")
            monkeypatch.setattr(JsonClassStore, "replace_events", fail)

            moved = self._run(runner, "move", "b", "Block 3", "Tu")
            assert moved.exit_code == 1
            assert "Could not write events for b" in moved.output
            assert isinstance(moved.exception, SystemExit)

            unassigned = self._run(runner, "unassign", "b")
            assert unassigned.exit_code == 1
            assert isinstance(unassigned.exception, SystemExit)

    def test_move_bad_arguments(self):
        from click.testing import CliRunner
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes(_ART, _BAND)
            self._run(runner, "import", "classes.csv")
            assert self._run(runner, "move", "b", "Block 9", "Tu").exit_code == 2
            unknown = self._run(runner, "move", "zzz", "Block 1", "Tu")
            assert unknown.exit_code == 1
            assert "Unknown class" in unknown.output

    def test_conflicts_exit_code(self):
        from click.testing import CliRunner
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes(_ART, _BAND)
            self._run(runner, "import", "classes.csv")
            assert self._run(runner, "conflicts").exit_code == 0

            _write_classes("c,Chess,t1,active,Th,Block 2,,,,,,")
            self._run(runner, "import", "classes.csv")
            result = self._run(runner, "conflicts")
            assert result.exit_code == 1
            assert "CONFLICTS FOUND" in result.output

    def test_resolve_json(self):
        from click.testing import CliRunner
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes(
                "x,Chess,t1,active,,,tuesday,10:00,70,,,5",
                "y,Robotics,t1,active,,,tuesday,10:30,60,,,9",
            )
            self._run(runner, "import", "classes.csv")
            result = self._run(runner, "resolve", "--json")
            assert result.exit_code == 0
            plan = json.loads(result.output)
            assert plan["keep"] == ["y"]
            assert [d["class_id"] for d in plan["drop"]] == ["x"]

    def test_materialize_one_class(self):
        from click.testing import CliRunner
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes(_ART, _BAND)
            self._run(runner, "import", "classes.csv")
            result = self._run(runner, "materialize", "a")
            assert result.exit_code == 0
            assert "4 events" in result.output
            assert self._run(runner, "materialize", "zzz").exit_code == 1

    def test_backfill_and_slot(self):
        from click.testing import CliRunner
        from data.store import JsonClassStore
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("legacy.csv").write_text(
                'id,name,schedule\nl,Legacy Art,"Tue/Thu 3:30 PM"\n', encoding="utf-8")
            self._run(runner, "import", "legacy.csv")

            dry = self._run(runner, "backfill", "--dry-run")
            assert dry.exit_code == 0
            assert JsonClassStore(Path("classes.json")).get_class("l").recurrence_time is None

            self._run(runner, "backfill")
            assert JsonClassStore(Path("classes.json")).get_class("l").recurrence_time == time(15, 30)

            slot = self._run(runner, "slot", "Thursday", "15")
            assert "Legacy Art" in slot.output

    def test_export(self):
        from click.testing import CliRunner
        runner = CliRunner()
        with runner.isolated_filesystem():
            _write_classes(_ART, _BAND)
            self._run(runner, "import", "classes.csv")
            result = self._run(runner, "export", "-o", "out/board.xlsx")
            assert result.exit_code == 0
            assert Path("out/board.xlsx").exists()
