"""
Mapping engine: pure transformation from raw tabular rows to computed sales.

A mapping assigns each logical import field a 0-based column index
(``-1`` or absent = not mapped).  The first row is the header and is
never imported.  ZERO I/O.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sales_config import ImportFieldDef, get_defaults
from sales_engines.commission import compute_sale
from sales_ingestion.parsing import normalize_margin, parse_date, parse_money
from sales_kernel.domain.types import (
    BoletoStatus,
    CommissionRule,
    ProductType,
    Sale,
    SaleInput,
)
from sales_kernel.domain.values import ZERO
from sales_kernel.exceptions import MissingMappingError
from sales_kernel.logging_config import get_logger

logger = get_logger("ingestion.mapping")

ImportMapping = Mapping[str, int]

UNMAPPED = -1

# Logical field keys, in template column order
FIELD_DATE = "date"
FIELD_COMPLETION_DATE = "completion_date"
FIELD_TYPE = "type"
FIELD_CLIENT = "client"
FIELD_QUOTE = "quote"
FIELD_QUANTITY = "quantity"
FIELD_VALUE_PROPOSED = "value_proposed"
FIELD_VALUE_SOLD = "value_sold"
FIELD_MARGIN = "margin"
FIELD_TRACKING = "tracking"
FIELD_BOLETO_STATUS = "boleto_status"
FIELD_OBS = "obs"

REQUIRED_FIELDS = (
    FIELD_TYPE,
    FIELD_CLIENT,
    FIELD_QUANTITY,
    FIELD_VALUE_PROPOSED,
    FIELD_VALUE_SOLD,
    FIELD_MARGIN,
)


# -----------------------------------------------------------------------------
# Mapping checks and auto-mapping
# -----------------------------------------------------------------------------


def check_required_mapping(
    mapping: ImportMapping,
    required: Sequence[str] = REQUIRED_FIELDS,
) -> None:
    """
    Reject a mapping that leaves a required field without a column.

    Raises:
        MissingMappingError: listing every unmapped required field.
    """
    missing = [key for key in required if mapping.get(key, UNMAPPED) < 0]
    if missing:
        raise MissingMappingError(missing)


def guess_mapping(
    header_row: Sequence[Any],
    fields: Sequence[ImportFieldDef] | None = None,
) -> dict[str, int]:
    """
    Propose a column for every field from the header cells.

    A header matches a field when, lower-cased, it equals the field key or
    contains one of the field's keywords.  Fields are resolved in order
    and a column is assigned to at most one field; unmatched fields map
    to ``-1``.
    """
    if fields is None:
        fields = get_defaults().import_template.fields
    headers = [str(h or "").strip().lower() for h in header_row]

    mapping: dict[str, int] = {}
    taken: set[int] = set()
    for field in fields:
        mapping[field.key] = UNMAPPED
        for idx, header in enumerate(headers):
            if idx in taken or not header:
                continue
            if header == field.key.lower() or any(kw in header for kw in field.keywords):
                mapping[field.key] = idx
                taken.add(idx)
                break
    return mapping


# -----------------------------------------------------------------------------
# Row mapping (pure)
# -----------------------------------------------------------------------------


def _cell(row: Sequence[Any], mapping: ImportMapping, key: str) -> Any:
    idx = mapping.get(key, UNMAPPED)
    if idx is None or idx < 0 or idx >= len(row):
        return ""
    value = row[idx]
    return "" if value is None else value


def _text(value: Any) -> str:
    return str(value).strip()


def map_row(
    row: Sequence[Any],
    mapping: ImportMapping,
    rules_by_type: Mapping[ProductType, Sequence[CommissionRule]],
    now: datetime,
) -> Sale | None:
    """One raw row to a computed sale, or None when the row is skipped."""
    if not row:
        return None

    client = _text(_cell(row, mapping, FIELD_CLIENT))
    quantity = parse_money(_cell(row, mapping, FIELD_QUANTITY))
    if not client or quantity <= ZERO:
        return None

    type_label = _text(_cell(row, mapping, FIELD_TYPE)).upper()
    product_type = ProductType.NATAL if "NATAL" in type_label else ProductType.BASICA

    value_proposed = parse_money(_cell(row, mapping, FIELD_VALUE_PROPOSED))
    value_sold = parse_money(_cell(row, mapping, FIELD_VALUE_SOLD))
    margin = normalize_margin(_cell(row, mapping, FIELD_MARGIN), value_proposed, value_sold)

    sale_input = SaleInput(
        client=client,
        quantity=quantity,
        product_type=product_type,
        value_proposed=value_proposed,
        value_sold=value_sold,
        margin_percent=margin,
        billing_date=parse_date(_cell(row, mapping, FIELD_DATE)),
        completion_date=parse_date(_cell(row, mapping, FIELD_COMPLETION_DATE)) or now,
        quote_number=_text(_cell(row, mapping, FIELD_QUOTE)),
        tracking_code=_text(_cell(row, mapping, FIELD_TRACKING)),
        boleto_status=BoletoStatus.from_label(_cell(row, mapping, FIELD_BOLETO_STATUS)),
        observations=_text(_cell(row, mapping, FIELD_OBS)),
    )
    return compute_sale(sale_input, rules_by_type[product_type])


def map_rows(
    rows: Sequence[Sequence[Any]],
    mapping: ImportMapping,
    rules_by_type: Mapping[ProductType, Sequence[CommissionRule]],
    now: datetime,
) -> list[Sale]:
    """
    Map every data row (header skipped) to a computed sale.

    Rows without a client or with a non-positive quantity are skipped
    silently.  A missing billing date leaves the sale pending; a missing
    completion date defaults to ``now`` (the import time).
    """
    sales: list[Sale] = []
    skipped = 0
    for row in rows[1:]:
        sale = map_row(row, mapping, rules_by_type, now)
        if sale is None:
            skipped += 1
            continue
        sales.append(sale)

    logger.info(
        "import_rows_mapped",
        extra={
            "row_count": max(len(rows) - 1, 0),
            "imported": len(sales),
            "skipped": skipped,
        },
    )
    return sales
