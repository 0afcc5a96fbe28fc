"""Pick a source adapter by file extension and read a whole file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sales_ingestion.adapters.base import SourceAdapter
from sales_ingestion.adapters.csv_adapter import CsvSourceAdapter
from sales_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter
from sales_kernel.exceptions import UnsupportedFileFormatError
from sales_kernel.logging_config import get_logger

logger = get_logger("ingestion.adapters")

_ADAPTERS: dict[str, type] = {
    ".csv": CsvSourceAdapter,
    ".xlsx": XlsxSourceAdapter,
    ".xlsm": XlsxSourceAdapter,
}


def adapter_for(source_path: Path | str) -> SourceAdapter:
    """
    Adapter instance for the file's extension (case-insensitive).

    Raises:
        UnsupportedFileFormatError: for any other extension.
    """
    path = Path(source_path)
    adapter_cls = _ADAPTERS.get(path.suffix.lower())
    if adapter_cls is None:
        raise UnsupportedFileFormatError(path.name)
    return adapter_cls()


def read_tabular_file(
    source_path: Path | str,
    options: dict[str, Any] | None = None,
) -> list[list[Any]]:
    """All non-blank rows of a .csv or .xlsx file, header row first."""
    path = Path(source_path)
    adapter = adapter_for(path)
    rows = list(adapter.read_rows(path, options or {}))
    logger.info(
        "tabular_file_read",
        extra={"file_name": path.name, "row_count": len(rows)},
    )
    return rows
