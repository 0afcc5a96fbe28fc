"""Source adapters for tabular sale imports (file I/O only, no DB)."""

from sales_ingestion.adapters.base import SourceAdapter, SourceProbe
from sales_ingestion.adapters.csv_adapter import CsvSourceAdapter
from sales_ingestion.adapters.registry import adapter_for, read_tabular_file
from sales_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter

__all__ = [
    "SourceAdapter",
    "SourceProbe",
    "CsvSourceAdapter",
    "XlsxSourceAdapter",
    "adapter_for",
    "read_tabular_file",
]
