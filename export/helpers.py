"""Shared helpers for the board exports."""

from datetime import date

from config.schema import GridConfig, TimeBlockDef
from models.class_offering import ClassOffering

# ─── Colour palette (RRGGBB, no #) ────────────────────────────────────────────

COLORS: dict[str, str] = {
    "scheduled": "B3D4FF",
    "conflict":  "FF9999",
    "free":      "F5F5F5",
    "lunch":     "DDDDDD",
    "header":    "4472C4",
    "alt":       "D6E4F0",
}


def today_str() -> str:
    """Today as YYYY-MM-DD."""
    return date.today().isoformat()


def block_rows(grid: GridConfig) -> list[TimeBlockDef]:
    """Board rows in display order, Lunch included."""
    return list(grid.blocks)


def format_cell(classes: list[ClassOffering]) -> str:
    """One line per class: name, teacher and room."""
    lines = []
    for c in classes:
        teacher = c.teacher_name or c.teacher_id or "?"
        room = f" [{c.location}]" if c.location else ""
        lines.append(f"{c.name or c.id} ({teacher}){room}")
    return "\n".join(lines)
