"""Configuration manager: load, save, validate and interactively edit.

Uses ruamel.yaml so the saved file keeps its section comments.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import (
    ConflictConfig,
    LoggingConfig,
    SchedulerConfig,
    StoreConfig,
)

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML COMMENTS ───

_YAML_HEADER = f"""\
# ============================================
# Class Scheduler configuration
# Created: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "grid": (
        "Block grid",
        "Blocks of the school day in display order.\n"
        "Lunch is never bookable.",
    ),
    "conflicts": (
        "Conflict detection",
        "default_duration_minutes is assumed when a class has no duration.",
    ),
    "legacy": (
        "Legacy schedule strings",
        None,
    ),
    "store": (
        "Data file",
        None,
    ),
    "logging": (
        "Logging",
        None,
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "scheduler_config.yaml"

    def first_run_check(self) -> bool:
        """True if no configuration file exists yet."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Load ───

    def load(self, path: Optional[Path] = None) -> SchedulerConfig:
        """Load config from YAML. Validated through pydantic."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {target}\n"
                f"Run 'python main.py config init' to create one."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            # an empty file loads as None
            return SchedulerConfig.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Invalid configuration file: {target}\n"
                f"Pydantic error: {e}"
            ) from e

    def load_or_default(self, path: Optional[Path] = None) -> SchedulerConfig:
        """Like load(), but falls back to the defaults when no file exists."""
        from config.defaults import default_scheduler_config
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            return default_scheduler_config()
        return self.load(target)

    # ─── Save ───

    def save(self, config: SchedulerConfig, path: Optional[Path] = None) -> None:
        """Save config as commented YAML."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Configuration saved: {target}")

    def _build_commented_yaml(self, config: SchedulerConfig) -> CommentedMap:
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )
        return cm

    # ─── Interactive edit ───

    def edit_interactive(self, config: SchedulerConfig) -> SchedulerConfig:
        """Interactive edit menu for the scalar settings."""
        while True:
            console.print()
            console.print(Panel("[bold]Edit configuration[/bold]", border_style="cyan"))
            console.print("  [bold]1.[/bold] School name")
            console.print("  [bold]2.[/bold] Default class duration")
            console.print("  [bold]3.[/bold] Data file")
            console.print("  [bold]4.[/bold] Log level")
            console.print("  [bold]0.[/bold] Save & exit")

            choice = Prompt.ask("\nChoice", default="0")

            if choice == "1":
                name = Prompt.ask("School name", default=config.school_name)
                config = config.model_copy(update={"school_name": name})
            elif choice == "2":
                minutes = IntPrompt.ask(
                    "Default duration (minutes)",
                    default=config.conflicts.default_duration_minutes,
                )
                conflicts = ConflictConfig(
                    default_duration_minutes=minutes,
                    active_statuses=config.conflicts.active_statuses,
                )
                config = config.model_copy(update={"conflicts": conflicts})
            elif choice == "3":
                data_path = Prompt.ask("Data file", default=config.store.data_path)
                config = config.model_copy(update={"store": StoreConfig(data_path=data_path)})
            elif choice == "4":
                level = Prompt.ask(
                    "Log level",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                    default=config.logging.level,
                )
                config = config.model_copy(update={"logging": LoggingConfig(level=level)})
            elif choice == "0":
                self.save(config)
                break
            else:
                console.print("[yellow]Invalid choice.[/yellow]")

        return config

    def show(self, config: SchedulerConfig) -> None:
        """Print the configuration as rich tables."""
        console.print(Panel(
            f"[bold]{config.school_name}[/bold]  |  data: {config.store.data_path}",
            title="Scheduler configuration",
            border_style="cyan",
        ))
        table = Table(title="Block grid", box=box.ROUNDED)
        table.add_column("Block")
        table.add_column("Start")
        table.add_column("End")
        table.add_column("Bookable")
        for b in config.grid.blocks:
            table.add_row(b.block.value, b.start_time, b.end_time,
                          "yes" if b.bookable else "[dim]no[/dim]")
        console.print(table)

        cc = config.conflicts
        console.print(
            f"[bold]Conflicts:[/bold] default duration {cc.default_duration_minutes} min | "
            f"statuses: {', '.join(s.value for s in cc.active_statuses)}"
        )
        console.print(f"[bold]Log level:[/bold] {config.logging.level}")
