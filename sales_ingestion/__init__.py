"""
sales_ingestion -- tabular sale import.

Reads .csv/.xlsx files into raw rows, proposes and checks a column
mapping, and turns rows into computed sales using locale-tolerant money
and date heuristics.
"""

from sales_ingestion.adapters import read_tabular_file
from sales_ingestion.mapping import check_required_mapping, guess_mapping, map_rows
from sales_ingestion.parsing import normalize_margin, parse_date, parse_money
from sales_ingestion.template import build_import_template, write_import_template

__all__ = [
    "build_import_template",
    "check_required_mapping",
    "guess_mapping",
    "map_rows",
    "normalize_margin",
    "parse_date",
    "parse_money",
    "read_tabular_file",
    "write_import_template",
]
