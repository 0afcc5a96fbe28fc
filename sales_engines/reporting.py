"""
Period selection for dashboards and reports.

BASICA sales are reported per billing month.  NATAL (seasonal) sales are
reported per Christmas season, April through December of the selected
year.  A CUSTOM window is an inclusive date range with an optional product
type.  Pending sales never appear in a period.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from enum import Enum

from sales_kernel.domain.types import ProductType, Sale

NATAL_SEASON_FIRST_MONTH = 4


class ReportMode(str, Enum):
    BASICA = "BASICA"
    NATAL = "NATAL"
    CUSTOM = "CUSTOM"


def _billed(sales: Iterable[Sale], product_type: ProductType | None = None) -> list[Sale]:
    return [
        s for s in sales
        if s.billing_date is not None
        and (product_type is None or s.product_type == product_type)
    ]


def available_basic_periods(sales: Iterable[Sale]) -> list[str]:
    """``YYYY-MM`` keys that have billed BASICA sales, newest first."""
    keys = {s.billing_date.strftime("%Y-%m") for s in _billed(sales, ProductType.BASICA)}
    return sorted(keys, reverse=True)


def available_natal_years(sales: Iterable[Sale]) -> list[int]:
    """Years that have billed NATAL sales, newest first."""
    years = {s.billing_date.year for s in _billed(sales, ProductType.NATAL)}
    return sorted(years, reverse=True)


def _as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def filter_sales_by_mode(
    sales: Iterable[Sale],
    mode: ReportMode,
    selection: str | int | None = None,
    start: date | datetime | None = None,
    end: date | datetime | None = None,
    product_type: ProductType | None = None,
) -> list[Sale]:
    """
    Sales that fall in the selected reporting period.

    Args:
        mode: BASICA, NATAL or CUSTOM.
        selection: ``YYYY-MM`` for BASICA, a season year for NATAL; unused
            for CUSTOM.
        start, end: Inclusive bounds for CUSTOM (either may be open).
        product_type: Optional type restriction for CUSTOM.

    Raises:
        ValueError: if BASICA/NATAL is requested without a selection.
    """
    if mode == ReportMode.BASICA:
        if not selection:
            raise ValueError("BASICA report needs a YYYY-MM selection")
        return [
            s for s in _billed(sales, ProductType.BASICA)
            if s.billing_date.strftime("%Y-%m") == str(selection)
        ]

    if mode == ReportMode.NATAL:
        if not selection:
            raise ValueError("NATAL report needs a year selection")
        year = int(selection)
        return [
            s for s in _billed(sales, ProductType.NATAL)
            if s.billing_date.year == year
            and NATAL_SEASON_FIRST_MONTH <= s.billing_date.month <= 12
        ]

    start_day, end_day = _as_date(start), _as_date(end)
    result = []
    for s in _billed(sales, product_type):
        day = s.billing_date.date()
        if start_day is not None and day < start_day:
            continue
        if end_day is not None and day > end_day:
            continue
        result.append(s)
    return result
