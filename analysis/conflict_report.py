"""Full conflict report over a class list.

Combines the grid/room alerts with the batch time-range scan, as a safety
net independent of the interactive board check.
"""

from typing import Sequence

from pydantic import BaseModel

from config.schema import SchedulerConfig
from models.class_offering import ClassOffering
from models.conflict import ConflictAlert
from scheduling.conflicts import build_conflict_alerts, find_time_conflicts


class TimeConflict(BaseModel):
    """Two classes of one teacher whose recurrence times overlap."""

    teacher_id: str
    teacher_name: str
    class_ids: tuple[str, str]
    description: str


class ConflictReport(BaseModel):
    alerts: list[ConflictAlert]
    time_conflicts: list[TimeConflict]

    @property
    def is_clean(self) -> bool:
        return not self.alerts and not self.time_conflicts

    @property
    def involved_class_ids(self) -> set[str]:
        ids: set[str] = set()
        for a in self.alerts:
            ids.update(a.class_ids)
        for t in self.time_conflicts:
            ids.update(t.class_ids)
        return ids

    def print_rich(self) -> None:
        """Prints the report with Rich."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        high = [a for a in self.alerts if a.severity == "high"]
        medium = [a for a in self.alerts if a.severity == "medium"]

        status = (
            "[bold green]✓ NO CONFLICTS[/bold green]"
            if self.is_clean
            else "[bold red]✗ CONFLICTS FOUND[/bold red]"
        )
        lines = [
            status,
            f"Teacher: {len(high)} | Room: {len(medium)} | "
            f"Time overlaps: {len(self.time_conflicts)}",
        ]
        console.print(Panel("\n".join(lines), title="Conflict check", border_style="cyan"))

        if self.is_clean:
            console.print("[dim]No conflicts found.[/dim]")
            return

        if self.alerts:
            table = Table(box=box.ROUNDED, show_lines=True)
            table.add_column("Severity", width=8)
            table.add_column("Kind", width=8)
            table.add_column("Classes", width=24)
            table.add_column("Description")
            for a in self.alerts:
                color = "red" if a.severity == "high" else "yellow"
                table.add_row(
                    f"[{color}]{a.severity.upper()}[/{color}]",
                    a.kind,
                    " / ".join(a.class_ids),
                    a.message,
                )
            console.print(table)

        if self.time_conflicts:
            table = Table(title="Recurrence time overlaps", box=box.ROUNDED)
            table.add_column("Teacher", width=18)
            table.add_column("Classes", width=24)
            table.add_column("Description")
            for t in self.time_conflicts:
                table.add_row(t.teacher_name, " / ".join(t.class_ids), t.description)
            console.print(table)


def _describe(cls: ClassOffering) -> str:
    days = ",".join(cls.recurrence_days)
    start = cls.recurrence_time.strftime("%H:%M") if cls.recurrence_time else "?"
    return f"{cls.name or cls.id} ({cls.id}) - {days} @ {start}"


class ConflictChecker:
    """Runs every conflict check over a class list."""

    def __init__(self, config: SchedulerConfig) -> None:
        self.config = config

    def check(self, classes: Sequence[ClassOffering]) -> ConflictReport:
        cc = self.config.conflicts
        alerts = build_conflict_alerts(
            classes,
            default_duration=cc.default_duration_minutes,
            grid=self.config.grid,
            active_statuses=cc.active_statuses,
        )
        time_conflicts = [
            TimeConflict(
                teacher_id=c1.teacher_id,
                teacher_name=c1.teacher_name or c1.teacher_id,
                class_ids=(c1.id, c2.id),
                description=f"{_describe(c1)} overlaps {_describe(c2)}",
            )
            for c1, c2 in find_time_conflicts(
                classes,
                default_duration=cc.default_duration_minutes,
                active_statuses=cc.active_statuses,
            )
        ]
        return ConflictReport(alerts=alerts, time_conflicts=time_conflicts)
