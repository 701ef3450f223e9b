"""Excel export of the scheduler board (openpyxl)."""

from pathlib import Path
from typing import Optional, Sequence

from config.schema import SchedulePattern, SchedulerConfig
from models.calendar_event import CalendarEvent
from models.class_offering import ClassOffering
from scheduling.board import BoardState
from scheduling.patterns import WEEKDAY_NAMES, pattern_label

from export.helpers import COLORS, block_rows, format_cell, today_str


class ExcelExporter:
    """Writes the board grid, unscheduled classes and calendar events."""

    # Column widths (Excel units)
    COL_BLOCK_W   = 12
    COL_TIME_W    = 14
    COL_PATTERN_W = 34

    # Row heights (points)
    ROW_HEADER_H = 22
    ROW_BLOCK_H  = 60
    ROW_LUNCH_H  = 14

    def __init__(
        self,
        classes: Sequence[ClassOffering],
        config: SchedulerConfig,
        events: Optional[Sequence[CalendarEvent]] = None,
        conflict_ids: Optional[set[str]] = None,
    ):
        self.state = BoardState.of(classes)
        self.config = config
        self.events = list(events or [])
        self.conflict_ids = conflict_ids or set()
        self.patterns = list(SchedulePattern)

    # ─── Public API ───────────────────────────────────────────────────────────

    def export(self, output_path: Path) -> None:
        """Creates the workbook with all sheets."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)

        self._sheet_board(wb)
        self._sheet_unscheduled(wb)
        self._sheet_events(wb)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)

    # ─── Style helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _write_header(self, ws, headers: list[str]) -> None:
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[1].height = self.ROW_HEADER_H

    def _cell_color(self, classes: list[ClassOffering]) -> str:
        if not classes:
            return COLORS["free"]
        if any(c.id in self.conflict_ids for c in classes):
            return COLORS["conflict"]
        return COLORS["scheduled"]

    # ─── Sheets ───────────────────────────────────────────────────────────────

    def _sheet_board(self, wb) -> None:
        """Block rows × pattern columns."""
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter

        ws = wb.create_sheet("Board")
        self._write_header(ws, ["Block", "Time"] + [pattern_label(p) for p in self.patterns])
        ws.column_dimensions["A"].width = self.COL_BLOCK_W
        ws.column_dimensions["B"].width = self.COL_TIME_W
        for col in range(3, 3 + len(self.patterns)):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_PATTERN_W

        border = self._thin_border()
        for row, block_def in enumerate(block_rows(self.config.grid), 2):
            c = ws.cell(row=row, column=1, value=block_def.block.value)
            c.font = Font(bold=True, size=9)
            c.alignment = self._center_align(wrap=False)
            c.border = border
            c = ws.cell(row=row, column=2, value=f"{block_def.start_time}–{block_def.end_time}")
            c.font = Font(size=8)
            c.alignment = self._center_align(wrap=False)
            c.border = border

            if not block_def.bookable:
                for col in range(3, 3 + len(self.patterns)):
                    c = ws.cell(row=row, column=col, value="")
                    c.fill = self._fill(COLORS["lunch"])
                    c.border = border
                ws.row_dimensions[row].height = self.ROW_LUNCH_H
                continue

            for col, pattern in enumerate(self.patterns, 3):
                here = self.state.cell(block_def.block, pattern)
                c = ws.cell(row=row, column=col, value=format_cell(here))
                c.fill = self._fill(self._cell_color(here))
                c.alignment = self._center_align()
                c.border = border
                c.font = Font(size=8)
            ws.row_dimensions[row].height = self.ROW_BLOCK_H

        footer = ws.cell(
            row=len(self.config.grid.blocks) + 3, column=1,
            value=f"{self.config.school_name} | exported {today_str()}",
        )
        footer.font = Font(italic=True, size=8, color="888888")

    def _sheet_unscheduled(self, wb) -> None:
        ws = wb.create_sheet("Unscheduled")
        self._write_header(ws, ["ID", "Name", "Teacher", "Status", "Schedule"])
        for col, width in zip("ABCDE", [14, 30, 20, 12, 30]):
            ws.column_dimensions[col].width = width
        for row, c in enumerate(self.state.unscheduled(), 2):
            ws.cell(row=row, column=1, value=c.id)
            ws.cell(row=row, column=2, value=c.name)
            ws.cell(row=row, column=3, value=c.teacher_name or c.teacher_id or "")
            ws.cell(row=row, column=4, value=c.status.value)
            ws.cell(row=row, column=5, value=c.schedule or "")

    def _sheet_events(self, wb) -> None:
        ws = wb.create_sheet("Events")
        self._write_header(ws, ["Date", "Weekday", "Block", "Class", "Location"])
        for col, width in zip("ABCDE", [12, 12, 10, 30, 16]):
            ws.column_dimensions[col].width = width
        names = {c.id: c.name or c.id for c in self.state.classes}
        alt = self._fill(COLORS["alt"])
        ordered = sorted(self.events, key=lambda e: (e.date, e.block, e.class_id))
        for row, e in enumerate(ordered, 2):
            values = [
                e.date.isoformat(), WEEKDAY_NAMES[e.date.weekday()], e.block,
                names.get(e.class_id, e.class_id), e.location or "",
            ]
            for col, val in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=val)
                if row % 2 == 0:
                    cell.fill = alt
