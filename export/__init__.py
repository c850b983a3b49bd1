"""Export-Modul: Excel (openpyxl) und Terminal-Raster für Wochenpläne."""

from export.excel_export import ExcelExporter

__all__ = ["ExcelExporter"]
