"""Import mapping: column assignment checks, auto-mapping and row mapping."""

from sales_ingestion.mapping.engine import (
    REQUIRED_FIELDS,
    UNMAPPED,
    ImportMapping,
    check_required_mapping,
    guess_mapping,
    map_row,
    map_rows,
)

__all__ = [
    "REQUIRED_FIELDS",
    "UNMAPPED",
    "ImportMapping",
    "check_required_mapping",
    "guess_mapping",
    "map_row",
    "map_rows",
]
