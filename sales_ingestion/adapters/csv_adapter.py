"""
Delimited-text reader for sale imports.

The generated template uses ";" as delimiter, which is also what Brazilian
Excel writes for "CSV"; pass ``delimiter`` for comma files.  A UTF-8 byte
order mark is dropped.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator

from sales_ingestion.adapters.base import SourceProbe, build_probe, is_blank_row

DEFAULT_DELIMITER = ";"


def _open_encoding(options: dict[str, Any]) -> str:
    encoding = options.get("encoding", "utf-8")
    return "utf-8-sig" if encoding.lower() in ("utf-8", "utf8") else encoding


class CsvSourceAdapter:
    """Options: ``delimiter``, ``encoding`` and ``skip_rows`` (lines above the header)."""

    def read_rows(self, source_path: Path, options: dict[str, Any]) -> Iterator[list[Any]]:
        delimiter = options.get("delimiter", DEFAULT_DELIMITER)
        skip = int(options.get("skip_rows", 0))

        with source_path.open("r", encoding=_open_encoding(options), newline="") as handle:
            for line_no, row in enumerate(csv.reader(handle, delimiter=delimiter)):
                if line_no < skip:
                    continue
                cells = [cell.strip() for cell in row]
                if not is_blank_row(cells):
                    yield cells

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        return build_probe(
            self.read_rows(source_path, options),
            encoding=_open_encoding(options),
            delimiter=options.get("delimiter", DEFAULT_DELIMITER),
        )
