"""
Excel workbook reader for sale imports (.xlsx and .xlsm).

openpyxl opens the workbook read-only with cached formula values.  Empty
cells come back as "", text is stripped, whole-number floats become int
(quantities typed as 10 arrive from Excel as 10.0) and date cells are
left as ``datetime`` for ``parse_date``.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

import openpyxl
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from sales_ingestion.adapters.base import SourceProbe, build_probe, is_blank_row


def _normalize(value: Any) -> Any:
    match value:
        case None:
            return ""
        case datetime() | bool() | int():
            return value
        case float():
            return int(value) if value.is_integer() else value
    return str(value).strip()


def _without_trailing_blanks(cells: list[Any]) -> list[Any]:
    while cells and cells[-1] == "":
        cells.pop()
    return cells


def _select_sheet(workbook: Workbook, sheet: int | str | None) -> Worksheet:
    if sheet is None:
        return workbook.worksheets[0]
    if isinstance(sheet, int):
        return workbook.worksheets[sheet]
    return workbook[sheet]


class XlsxSourceAdapter:
    """
    Options:
      sheet: worksheet index (0-based) or name; the first sheet if omitted.
      skip_rows: rows above the header to ignore.
    """

    def read_rows(self, source_path: Path, options: dict[str, Any]) -> Iterator[list[Any]]:
        workbook = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            worksheet = _select_sheet(workbook, options.get("sheet"))
            first_row = 1 + int(options.get("skip_rows", 0))
            for values in worksheet.iter_rows(min_row=first_row, values_only=True):
                cells = _without_trailing_blanks([_normalize(v) for v in values])
                if not is_blank_row(cells):
                    yield cells
        finally:
            workbook.close()

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        return build_probe(self.read_rows(source_path, options))
