"""
Shared shape of the sale-import readers.

A reader turns a spreadsheet export into positional rows: the header row
first, then one list of cells per sale line.  The column mapping picks
cells by index, so header text is only used for guessing the mapping and
for showing the user what was found.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable

PROBE_SAMPLE_SIZE = 5


@runtime_checkable
class SourceAdapter(Protocol):
    def read_rows(self, source_path: Path, options: dict[str, Any]) -> Iterator[list[Any]]:
        ...

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        ...


@dataclass(frozen=True)
class SourceProbe:
    """What the import screen shows before the user confirms a mapping."""

    row_count: int  # data rows, header excluded
    columns: tuple[str, ...]
    sample_rows: tuple[tuple[Any, ...], ...]
    encoding: str | None = None
    detected_delimiter: str | None = None


def is_blank_row(cells: Iterable[Any]) -> bool:
    return all(cell in ("", None) for cell in cells)


def build_probe(
    rows: Iterator[list[Any]],
    encoding: str | None = None,
    delimiter: str | None = None,
    sample_size: int = PROBE_SAMPLE_SIZE,
) -> SourceProbe:
    """Consume ``rows`` (header first) into a probe."""
    header = next(rows, None)
    columns = () if header is None else tuple("" if c is None else str(c) for c in header)

    row_count = 0
    sample: list[tuple[Any, ...]] = []
    for row in rows:
        row_count += 1
        if row_count <= sample_size:
            sample.append(tuple(row))

    return SourceProbe(
        row_count=row_count,
        columns=columns,
        sample_rows=tuple(sample),
        encoding=encoding,
        detected_delimiter=delimiter,
    )
