"""Class scheduler: main CLI.

Usage:
  python main.py config init                Write the default configuration
  python main.py config show                Show the configuration
  python main.py config edit                Edit the configuration
  python main.py template                   Write an Excel import template
  python main.py import <file.xlsx|.csv>    Import class offerings
  python main.py board                      Show the block × pattern board
  python main.py move <id> <block> <pat>    Place a class on the board
  python main.py unassign <id>              Take a class off the board
  python main.py conflicts                  Full conflict check
  python main.py resolve                    Propose which conflicting classes to drop
  python main.py materialize [<id>]         Regenerate calendar events
  python main.py backfill                   Fill recurrence fields from legacy text
  python main.py slot <day> <hour>          Classes meeting at a given time
  python main.py export                     Excel export of board and events
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    from rich.logging import RichHandler
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config_or_abort(ctx: click.Context):
    """Loads the configuration (defaults if no file exists) or aborts on invalid content."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    path: Optional[Path] = ctx.obj.get("config_path")
    try:
        config = mgr.load_or_default(path)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    if not ctx.obj.get("verbose"):
        logging.getLogger().setLevel(config.logging.level)
    return mgr, config


def _store(ctx: click.Context):
    """JSON class store at --data or the configured data path."""
    from data.store import JsonClassStore
    _, config = _load_config_or_abort(ctx)
    data_path = ctx.obj.get("data_path") or Path(config.store.data_path)
    return JsonClassStore(data_path), config


def _parse_cell(block: str, pattern: str):
    from scheduling.patterns import parse_block, parse_pattern
    parsed_block = parse_block(block)
    if parsed_block is None:
        raise click.BadParameter(f"unknown block '{block}'", param_hint="BLOCK")
    parsed_pattern = parse_pattern(pattern)
    if parsed_pattern is None:
        raise click.BadParameter(f"unknown pattern '{pattern}'", param_hint="PATTERN")
    return parsed_block, parsed_pattern


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Show or edit the configuration."""


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file.")
@click.pass_context
def config_init(ctx: click.Context, force: bool):
    """Writes the default configuration."""
    from config.defaults import default_scheduler_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    target = ctx.obj.get("config_path") or mgr.DEFAULT_CONFIG
    if target.exists() and not force:
        console.print(
            f"[yellow]Configuration already exists: {target}[/yellow]\n"
            "Use [bold]--force[/bold] to overwrite it."
        )
        return
    mgr.save(default_scheduler_config(), target)


@cmd_config.command("show")
@click.pass_context
def config_show(ctx: click.Context):
    """Shows the current configuration."""
    mgr, config = _load_config_or_abort(ctx)
    mgr.show(config)


@cmd_config.command("edit")
@click.pass_context
def config_edit(ctx: click.Context):
    """Edits the configuration interactively."""
    mgr, config = _load_config_or_abort(ctx)
    mgr.edit_interactive(config)


# ─── TEMPLATE ─────────────────────────────────────────────────────────────────

@click.command("template")
@click.option("--output", "-o", default="output/import_template.xlsx",
              help="Path of the Excel template.")
@click.pass_context
def cmd_template(ctx: click.Context, output: str):
    """Writes an empty Excel import template."""
    _, config = _load_config_or_abort(ctx)
    from data.excel_import import generate_template

    out_path = Path(output)
    generate_template(config, out_path)
    console.print(f"[green]✓[/green] Template saved: {out_path}")
    console.print(
        "\nSheets:\n"
        "  [cyan]Classes[/cyan]   – one row per class offering\n"
        "  [cyan]Blocks[/cyan]    – block grid (reference)\n"
        "  [cyan]Patterns[/cyan]  – allowed schedule patterns (reference)"
    )


# ─── IMPORT ───────────────────────────────────────────────────────────────────

@click.command("import")
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def cmd_import(ctx: click.Context, source: Path):
    """Imports class offerings from an Excel or CSV file."""
    from data.excel_import import ExcelImportError, import_classes
    from data.store import PersistenceError

    store, config = _store(ctx)
    console.print(f"[bold]Importing:[/bold] {source}")
    try:
        classes = import_classes(source, config)
    except ExcelImportError as e:
        console.print(f"[red bold]Import failed:[/red bold] {e}")
        for err in e.errors:
            console.print(f"  [red]•[/red] {err}")
        sys.exit(1)

    try:
        count = store.upsert_many(classes)
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    console.print(f"[green]✓[/green] {count} classes saved to {store.path}")
    console.print(f"\n{store.load().summary()}")


# ─── BOARD ────────────────────────────────────────────────────────────────────

@click.command("board")
@click.pass_context
def cmd_board(ctx: click.Context):
    """Shows the block × pattern board."""
    from config.schema import SchedulePattern
    from scheduling.board import BoardState
    from scheduling.conflicts import detect_batch_conflicts
    from scheduling.patterns import pattern_label

    store, config = _store(ctx)
    classes = store.list_active_classes(config.conflicts.active_statuses)
    state = BoardState.of(classes)
    conflict_ids = detect_batch_conflicts(
        classes, config.conflicts.default_duration_minutes, config.grid)

    table = Table(title=config.school_name, box=box.ROUNDED, show_lines=True)
    table.add_column("Block", style="bold")
    for p in SchedulePattern:
        table.add_column(pattern_label(p))

    for block_def in config.grid.blocks:
        label = f"{block_def.block.value}\n[dim]{block_def.start_time}–{block_def.end_time}[/dim]"
        if not block_def.bookable:
            table.add_row(label, *["[dim]—[/dim]"] * len(SchedulePattern))
            continue
        cells = []
        for p in SchedulePattern:
            here = state.cell(block_def.block, p)
            cells.append("\n".join(
                f"[red]{c.label()}[/red]" if c.id in conflict_ids else c.label()
                for c in here
            ))
        table.add_row(label, *cells)
    console.print(table)

    unscheduled = state.unscheduled()
    if unscheduled:
        console.print(f"\n[bold]Unscheduled ({len(unscheduled)}):[/bold]")
        for c in unscheduled:
            console.print(f"  {c.id:12s} {c.label()}")


# ─── MOVE / UNASSIGN ──────────────────────────────────────────────────────────

def _board_for(store):
    from scheduling.board import SchedulerBoard

    def persist(command):
        return store.update_class_schedule(
            command.class_id, command.block, command.pattern,
            expected_version=command.expected_version,
        )

    return SchedulerBoard(store.list_active_classes(), persist=persist)


def _regenerate_events(store, class_id: str) -> int:
    from scheduling.materializer import events_for_class
    cls = store.get_class(class_id)
    events = events_for_class(cls)
    store.replace_events(class_id, events)
    logger.debug(f"Regenerated {len(events)} events for {class_id}")
    return len(events)


def _report_move(result) -> None:
    if result.ok:
        console.print(f"[green]✓[/green] {result.message}")
        return
    console.print(f"[red]✗ {result.message}[/red]")
    if result.error:
        console.print(f"[dim]{result.error}[/dim]")
    sys.exit(1)


@click.command("move")
@click.argument("class_id")
@click.argument("block")
@click.argument("pattern")
@click.pass_context
def cmd_move(ctx: click.Context, class_id: str, block: str, pattern: str):
    """Places a class on the board (e.g. move art-101 "Block 2" Tu/Th)."""
    from data.store import PersistenceError

    store, config = _store(ctx)
    parsed_block, parsed_pattern = _parse_cell(block, pattern)
    board = _board_for(store)
    try:
        result = board.move_class(class_id, parsed_block, parsed_pattern)
    except KeyError:
        console.print(f"[red]Unknown class: {class_id}[/red]")
        sys.exit(1)
    _report_move(result)
    if result.changed:
        try:
            count = _regenerate_events(store, class_id)
        except PersistenceError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)
        console.print(f"[dim]{count} calendar events regenerated[/dim]")


@click.command("unassign")
@click.argument("class_id")
@click.pass_context
def cmd_unassign(ctx: click.Context, class_id: str):
    """Takes a class off the board."""
    from data.store import PersistenceError

    store, config = _store(ctx)
    board = _board_for(store)
    try:
        result = board.unassign_class(class_id)
    except KeyError:
        console.print(f"[red]Unknown class: {class_id}[/red]")
        sys.exit(1)
    _report_move(result)
    if result.changed:
        try:
            _regenerate_events(store, class_id)
        except PersistenceError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)


# ─── CONFLICTS / RESOLVE ──────────────────────────────────────────────────────

@click.command("conflicts")
@click.pass_context
def cmd_conflicts(ctx: click.Context):
    """Runs the full conflict check (board, rooms, recurrence times)."""
    from analysis.conflict_report import ConflictChecker

    store, config = _store(ctx)
    report = ConflictChecker(config).check(store.list_classes())
    report.print_rich()
    sys.exit(0 if report.is_clean else 1)


@click.command("resolve")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the plan as JSON.")
@click.pass_context
def cmd_resolve(ctx: click.Context, as_json: bool):
    """Proposes which conflicting classes to drop. Changes nothing."""
    from analysis.resolver import plan_resolution

    store, config = _store(ctx)
    plan = plan_resolution(
        store.list_classes(),
        default_duration=config.conflicts.default_duration_minutes,
        active_statuses=config.conflicts.active_statuses,
    )
    if as_json:
        click.echo(plan.to_json())
        return
    if plan.is_empty():
        console.print("[green]✓[/green] No conflicts to resolve.")
        return

    table = Table(title="Resolution plan", box=box.ROUNDED)
    table.add_column("Drop", style="red")
    table.add_column("Enrolled", justify="right")
    table.add_column("Keep", style="green")
    table.add_column("Enrolled", justify="right")
    for d in plan.drop:
        table.add_row(f"{d.name} ({d.class_id})", str(d.enrollment),
                      d.kept_class_id, str(d.kept_enrollment))
    console.print(table)
    console.print("[dim]Proposal only; no class was changed.[/dim]")


# ─── MATERIALIZE / BACKFILL / SLOT ────────────────────────────────────────────

@click.command("materialize")
@click.argument("class_id", required=False)
@click.pass_context
def cmd_materialize(ctx: click.Context, class_id: Optional[str]):
    """Regenerates calendar events for one class, or all classes."""
    from data.store import PersistenceError

    store, _ = _store(ctx)
    if class_id:
        if store.get_class(class_id) is None:
            console.print(f"[red]Unknown class: {class_id}[/red]")
            sys.exit(1)
        targets = [class_id]
    else:
        targets = [c.id for c in store.list_active_classes()]

    total = 0
    try:
        for cid in targets:
            total += _regenerate_events(store, cid)
    except PersistenceError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    console.print(f"[green]✓[/green] {total} events for {len(targets)} class(es)")


@click.command("backfill")
@click.option("--dry-run", is_flag=True, default=False, help="Only show what would change.")
@click.pass_context
def cmd_backfill(ctx: click.Context, dry_run: bool):
    """Fills recurrence fields from legacy schedule strings."""
    from scheduling.legacy_parser import backfill_recurrence

    store, config = _store(ctx)
    changed = []
    for cls in store.list_classes():
        updated = backfill_recurrence(cls, config.legacy.backfill_duration_minutes)
        if updated is not cls:
            changed.append(updated)

    table = Table(title="Backfill", box=box.ROUNDED)
    table.add_column("Class")
    table.add_column("Schedule")
    table.add_column("Days")
    table.add_column("Time")
    for c in changed:
        table.add_row(c.id, c.schedule or "", ",".join(c.recurrence_days),
                      c.recurrence_time.strftime("%H:%M") if c.recurrence_time else "?")
    console.print(table)

    if dry_run or not changed:
        console.print(f"[dim]{len(changed)} class(es) would change.[/dim]")
        return
    store.upsert_many(changed)
    console.print(f"[green]✓[/green] {len(changed)} class(es) updated")


@click.command("slot")
@click.argument("day")
@click.argument("hour", type=click.IntRange(0, 23))
@click.pass_context
def cmd_slot(ctx: click.Context, day: str, hour: int):
    """Lists classes meeting on DAY at HOUR (e.g. slot Tuesday 15)."""
    from scheduling.legacy_parser import classes_for_slot

    store, _ = _store(ctx)
    found = classes_for_slot(store.list_active_classes(), day, hour)
    if not found:
        console.print(f"[dim]No classes on {day} at {hour}:00.[/dim]")
        return
    for c in found:
        console.print(f"  {c.id:12s} {c.label()}")


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.command("export")
@click.option("--output", "-o", default="output/board.xlsx", help="Path of the Excel file.")
@click.pass_context
def cmd_export(ctx: click.Context, output: str):
    """Exports board, unscheduled classes and calendar events to Excel."""
    from export.excel_export import ExcelExporter
    from scheduling.conflicts import detect_batch_conflicts

    store, config = _store(ctx)
    data = store.load()
    classes = [c for c in data.classes if c.status in config.conflicts.active_statuses]
    conflict_ids = detect_batch_conflicts(
        classes, config.conflicts.default_duration_minutes, config.grid)
    ExcelExporter(classes, config, data.events, conflict_ids).export(Path(output))
    console.print(f"[green]✓[/green] Exported: {output}")


# ─── MAIN CLI ─────────────────────────────────────────────────────────────────

@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Configuration file (default: config/scheduler_config.yaml).")
@click.option("--data", "data_path", type=click.Path(path_type=Path), default=None,
              help="JSON data file (overrides the configured path).")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], data_path: Optional[Path],
        verbose: bool):
    """Class scheduler: board placement, conflict checks and calendar events.

    Start with: python main.py config init
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["data_path"] = data_path
    ctx.obj["verbose"] = verbose
    _setup_logging("DEBUG" if verbose else "WARNING")


def main():
    """Entry point. Points to 'config init' on the very first run."""
    from config.manager import ConfigManager

    if len(sys.argv) == 1 and ConfigManager().first_run_check():
        console.print(Panel(
            "[bold]Welcome to the class scheduler![/bold]\n\n"
            "No configuration found.\n"
            "Run [bold]python main.py config init[/bold] to create one.",
            border_style="cyan",
        ))
    cli(obj={})


# Register commands
cli.add_command(cmd_config)
cli.add_command(cmd_template)
cli.add_command(cmd_import)
cli.add_command(cmd_board)
cli.add_command(cmd_move)
cli.add_command(cmd_unassign)
cli.add_command(cmd_conflicts)
cli.add_command(cmd_resolve)
cli.add_command(cmd_materialize)
cli.add_command(cmd_backfill)
cli.add_command(cmd_slot)
cli.add_command(cmd_export)


if __name__ == "__main__":
    main()
