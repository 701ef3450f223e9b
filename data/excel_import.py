"""Excel/CSV import of class offerings and template generator.

Template generator: empty workbook with a "Classes" sheet, an example row
                    and reference sheets for blocks and patterns.
Import:             "Classes" sheet (or a CSV file) → list[ClassOffering],
                    all row errors collected into one ExcelImportError.
"""

import csv
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from config.schema import ClassStatus, RecurrencePattern, SchedulerConfig
from models.class_offering import ClassOffering
from scheduling.legacy_parser import parse_schedule_time
from scheduling.patterns import PATTERN_LABELS, is_bookable, parse_block, parse_pattern

logger = logging.getLogger(__name__)


class ExcelImportError(Exception):
    """Import failed; ``errors`` holds one message per bad row."""

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


CLASSES_SHEET = "Classes"

COLUMNS = [
    "id", "name", "teacher_id", "teacher_name", "status", "location",
    "pattern", "block", "recurrence", "days", "time", "duration",
    "schedule", "start_date", "end_date", "enrollment",
]

_EXAMPLE_ROW = [
    "art-101", "Creative Art", "t-smith", "Ms. Smith", "active", "Room 12",
    "Tu/Th", "Block 2", "", "", "", "",
    "", "2024-01-08", "2024-03-29", 8,
]


# ─── Cell parsers ─────────────────────────────────────────────────────────────

def _parse_date(raw: str) -> Optional[date]:
    """'2024-01-08' or an Excel datetime rendered as '2024-01-08 00:00:00'."""
    if not raw:
        return None
    return date.fromisoformat(raw.strip()[:10])


def _parse_time(raw: str) -> Optional[time]:
    """'14:00', '14:00:00' or a 12h string like '3:30 PM'."""
    if not raw:
        return None
    parts = raw.strip().split(":")
    if 2 <= len(parts) <= 3 and all(p.isdigit() for p in parts):
        return time(int(parts[0]), int(parts[1]))
    parsed = parse_schedule_time(raw)
    if parsed is None:
        raise ValueError(f"unreadable time '{raw}'")
    return time(parsed.hour, parsed.minute)


def _parse_int(raw: str) -> Optional[int]:
    if not raw:
        return None
    return int(float(raw))


# ─── Template ─────────────────────────────────────────────────────────────────

def generate_template(config: SchedulerConfig, path: Path) -> None:
    """Writes an empty import workbook.

    Sheets:
      - Classes:   one row per class offering, with an example row
      - Blocks:    the configured block grid (reference only)
      - Patterns:  allowed schedule patterns (reference only)
    """
    try:
        import openpyxl
        from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
        from openpyxl.utils import get_column_letter
        from openpyxl.worksheet.datavalidation import DataValidation
    except ImportError:
        raise ImportError("openpyxl is not installed. Run: pip install openpyxl")

    wb = openpyxl.Workbook()

    hdr_font = Font(bold=True, color="FFFFFF", size=11)
    hdr_fill = PatternFill("solid", fgColor="2E6DA4")
    ex_font = Font(italic=True, color="888888")
    ex_fill = PatternFill("solid", fgColor="F5F5F5")
    center = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="BBBBBB")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    def style_header(cell):
        cell.font = hdr_font
        cell.fill = hdr_fill
        cell.alignment = center
        cell.border = border

    def write_header(ws, headers: list[str], width: float = 14):
        for col, h in enumerate(headers, 1):
            style_header(ws.cell(row=1, column=col, value=h))
            ws.column_dimensions[get_column_letter(col)].width = width

    # ── Sheet 1: Classes ──────────────────────────────────────────────────────
    ws = wb.active
    ws.title = CLASSES_SHEET
    write_header(ws, COLUMNS)
    for col, val in enumerate(_EXAMPLE_ROW, 1):
        cell = ws.cell(row=2, column=col, value=val)
        cell.font = ex_font
        cell.fill = ex_fill
        cell.border = border
    ws.freeze_panes = "A2"

    pattern_col = get_column_letter(COLUMNS.index("pattern") + 1)
    block_col = get_column_letter(COLUMNS.index("block") + 1)
    status_col = get_column_letter(COLUMNS.index("status") + 1)
    for col, options in (
        (pattern_col, [p.value for p in PATTERN_LABELS]),
        (block_col, [b.value for b in config.grid.bookable_blocks]),
        (status_col, [s.value for s in ClassStatus]),
    ):
        dv = DataValidation(type="list", formula1=f'"{",".join(options)}"', allow_blank=True)
        ws.add_data_validation(dv)
        dv.add(f"{col}2:{col}500")

    # ── Sheet 2: Blocks ───────────────────────────────────────────────────────
    ws_blocks = wb.create_sheet("Blocks")
    write_header(ws_blocks, ["Block", "Start", "End", "Bookable"])
    for r, b in enumerate(config.grid.blocks, 2):
        for col, val in enumerate(
            [b.block.value, b.start_time, b.end_time, "yes" if b.bookable else "no"], 1
        ):
            ws_blocks.cell(row=r, column=col, value=val).border = border

    # ── Sheet 3: Patterns ─────────────────────────────────────────────────────
    ws_patterns = wb.create_sheet("Patterns")
    write_header(ws_patterns, ["Pattern", "Days"], width=20)
    for r, (pattern, label) in enumerate(PATTERN_LABELS.items(), 2):
        ws_patterns.cell(row=r, column=1, value=pattern.value).border = border
        ws_patterns.cell(row=r, column=2, value=label).border = border

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))
    logger.info(f"Template written: {path}")


# ─── Excel importer ───────────────────────────────────────────────────────────

class ExcelImporter:
    """Imports class offerings from the "Classes" sheet of a workbook."""

    def __init__(self, path: Path, config: SchedulerConfig) -> None:
        self.path = Path(path)
        self.config = config
        self._wb = None
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def _open(self):
        try:
            import openpyxl
            self._wb = openpyxl.load_workbook(
                str(self.path), read_only=True, data_only=True
            )
        except FileNotFoundError:
            raise ExcelImportError(f"File not found: {self.path}")
        except Exception as e:
            raise ExcelImportError(f"Cannot open workbook: {e}") from e

    def _get_sheet(self, name: str):
        if self._wb is None:
            self._open()
        for sn in self._wb.sheetnames:
            if sn.strip().lower() == name.strip().lower():
                return self._wb[sn]
        return None

    def _sheet_rows(self, sheet) -> list[dict]:
        """Sheet → list of dicts (first row = header)."""
        rows = list(sheet.iter_rows(values_only=True))
        if not rows:
            return []
        headers = [
            str(h).strip().lower() if h is not None else f"col_{i}"
            for i, h in enumerate(rows[0])
        ]
        result = []
        for row in rows[1:]:
            if all(v is None or v == "" for v in row):
                continue
            result.append({
                headers[i]: _cell_text(v)
                for i, v in enumerate(row)
                if i < len(headers)
            })
        return result

    def _parse_row(self, row: dict, row_id: str) -> Optional[ClassOffering]:
        """One sheet row → ClassOffering; problems go to self.errors."""
        class_id = row.get("id", "")
        if not class_id:
            self.errors.append(f"{row_id}: missing id")
            return None

        fields: dict = {
            "id": class_id,
            "name": row.get("name", ""),
            "teacher_id": row.get("teacher_id") or None,
            "teacher_name": row.get("teacher_name") or None,
            "location": row.get("location") or None,
            "schedule": row.get("schedule") or None,
            "recurrence_days": row.get("days", ""),
        }
        row_errors: list[str] = []

        status = row.get("status", "").lower()
        if status:
            try:
                fields["status"] = ClassStatus(status)
            except ValueError:
                row_errors.append(f"unknown status '{status}'")

        pattern_raw, block_raw = row.get("pattern", ""), row.get("block", "")
        if pattern_raw or block_raw:
            pattern = parse_pattern(pattern_raw) if pattern_raw else None
            block = parse_block(block_raw) if block_raw else None
            if pattern_raw and pattern is None:
                row_errors.append(f"unknown pattern '{pattern_raw}'")
            if block_raw and block is None:
                row_errors.append(f"unknown block '{block_raw}'")
            elif block is not None and not is_bookable(block):
                row_errors.append(f"{block.value} is not bookable")
            elif (pattern is None) != (block is None) and not row_errors:
                row_errors.append("pattern and block must be given together")
            fields["schedule_pattern"] = pattern
            fields["time_block"] = block

        try:
            fields["recurrence_time"] = _parse_time(row.get("time", ""))
            fields["recurrence_duration"] = _parse_int(row.get("duration", ""))
            fields["current_enrollment"] = _parse_int(row.get("enrollment", "")) or 0
            fields["start_date"] = _parse_date(row.get("start_date", ""))
            fields["end_date"] = _parse_date(row.get("end_date", ""))
        except ValueError as e:
            row_errors.append(str(e))

        recurrence = row.get("recurrence", "").lower()
        if recurrence:
            try:
                fields["recurrence_pattern"] = RecurrencePattern(recurrence)
            except ValueError:
                row_errors.append(f"unknown recurrence '{recurrence}'")
        elif fields.get("recurrence_time") and fields["recurrence_days"]:
            fields["recurrence_pattern"] = RecurrencePattern.WEEKLY

        if row_errors:
            self.errors.append(f"{row_id} ({class_id}): " + "; ".join(row_errors))
            return None

        try:
            cls = ClassOffering.model_validate(fields)
        except ValidationError as e:
            self.errors.append(f"{row_id} ({class_id}): {e.errors()[0]['msg']}")
            return None

        if cls.start_date and cls.end_date and cls.start_date > cls.end_date:
            self.warnings.append(
                f"{row_id} ({class_id}): start_date after end_date, no events will be generated")
        return cls

    def import_classes(self) -> list[ClassOffering]:
        """Reads every class row. Raises ExcelImportError if any row is bad."""
        sheet = self._get_sheet(CLASSES_SHEET)
        if sheet is None:
            raise ExcelImportError(f"Sheet '{CLASSES_SHEET}' not found in {self.path}")

        classes: list[ClassOffering] = []
        seen: set[str] = set()
        for i, row in enumerate(self._sheet_rows(sheet), 2):
            cls = self._parse_row(row, f"Row {i}")
            if cls is None:
                continue
            if cls.id in seen:
                self.errors.append(f"Row {i}: duplicate id '{cls.id}'")
                continue
            seen.add(cls.id)
            classes.append(cls)

        for w in self.warnings:
            logger.warning(w)
        if self.errors:
            raise ExcelImportError(
                f"{len(self.errors)} invalid row(s) in {self.path}", self.errors)
        logger.info(f"Imported {len(classes)} classes from {self.path}")
        return classes


def _cell_text(v) -> str:
    if v is None:
        return ""
    if isinstance(v, datetime):
        return v.date().isoformat() if v.time() == time(0, 0) else v.isoformat(sep=" ")
    if isinstance(v, time):
        return v.strftime("%H:%M")
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v).strip()


def import_from_excel(path: Path, config: SchedulerConfig) -> list[ClassOffering]:
    """Imports class offerings from an .xlsx file.

    Raises:
        ExcelImportError: on unreadable files or invalid rows.
    """
    return ExcelImporter(path, config).import_classes()


# ─── CSV importer ─────────────────────────────────────────────────────────────

class CsvImporter(ExcelImporter):
    """Imports class offerings from CSV.

    Accepts a single .csv file, or a directory containing classes.csv.
    """

    def __init__(self, path: Path, config: SchedulerConfig) -> None:
        super().__init__(path, config)
        self._csv_sheets: dict[str, list[dict]] = {}

    def _open(self) -> None:
        path = Path(self.path)
        if path.is_dir():
            candidates = [p for p in sorted(path.glob("*.csv"))
                          if p.stem.strip().lower() == CLASSES_SHEET.lower()]
            if not candidates:
                raise ExcelImportError(f"No classes.csv in directory {path}")
            csv_file = candidates[0]
        elif path.suffix.lower() == ".csv":
            csv_file = path
        else:
            raise ExcelImportError(
                f"Unknown file type: {path}. "
                "Expected .xlsx, .csv or a directory with classes.csv."
            )
        try:
            with open(csv_file, encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f)
                rows = [
                    {k.strip(): (v.strip() if v else "") for k, v in row.items() if k}
                    for row in reader
                ]
        except FileNotFoundError:
            raise ExcelImportError(f"File not found: {csv_file}")
        self._csv_sheets[CLASSES_SHEET] = rows

    def _get_sheet(self, name: str):
        if not self._csv_sheets:
            self._open()
        for sn, rows in self._csv_sheets.items():
            if sn.strip().lower() == name.strip().lower():
                return _CsvSheetProxy(rows)
        return None


class _CsvSheetProxy:
    """Presents a list of dicts like a worksheet for ExcelImporter._sheet_rows()."""

    def __init__(self, rows: list[dict]) -> None:
        self._rows = rows

    def iter_rows(self, values_only: bool = True):
        if not self._rows:
            return
        headers = list(self._rows[0].keys())
        yield tuple(headers)
        for row in self._rows:
            yield tuple(row.get(h, "") for h in headers)


def import_from_csv(path: Path, config: SchedulerConfig) -> list[ClassOffering]:
    """Imports class offerings from a .csv file or a directory with classes.csv."""
    return CsvImporter(path, config).import_classes()


def import_classes(path: Path, config: SchedulerConfig) -> list[ClassOffering]:
    """Dispatches on the file type: .xlsx via openpyxl, otherwise CSV."""
    path = Path(path)
    if path.suffix.lower() in (".xlsx", ".xlsm"):
        return import_from_excel(path, config)
    return import_from_csv(path, config)
