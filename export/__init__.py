"""Export module: Excel (openpyxl) for the scheduler board."""

from export.excel_export import ExcelExporter

__all__ = ["ExcelExporter"]
