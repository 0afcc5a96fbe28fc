"""
Parsing heuristics for spreadsheet cells.

Spreadsheets exported from different tools disagree on decimal marks,
thousands separators and date encodings.  These pure functions turn a
raw cell into a ``Decimal`` or a UTC ``datetime`` and never raise: an
unparseable money cell is ``0`` and an unparseable date is ``None``
(which for a billing date means "pending").
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from sales_kernel.domain.values import ZERO, margin_from_values, to_decimal

# Spreadsheet serial day 25569 is 1970-01-01 (day 0 is 1899-12-30)
_EXCEL_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)
_SERIAL_STRING_THRESHOLD = 20000

_NON_NUMERIC = re.compile(r"[^\d.\-]")
_NUMERIC_PREFIX = re.compile(r"^-?\d*\.?\d*")

_FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


def parse_money(value: Any) -> Decimal:
    """
    Locale-tolerant amount parser.

    ``"1.234,56"`` and ``"1,234.56"`` both give ``Decimal("1234.56")``:
    when the last comma follows the last dot the comma is the decimal
    mark; when both appear and the dot is last, commas are thousands
    separators.  Currency symbols and spaces are dropped and the longest
    numeric prefix is used.
    """
    if isinstance(value, bool) or value is None:
        return ZERO
    if isinstance(value, (int, float, Decimal)):
        try:
            return to_decimal(value)
        except ValueError:
            return ZERO

    clean = str(value).strip()
    if not clean:
        return ZERO

    last_comma = clean.rfind(",")
    last_dot = clean.rfind(".")
    if last_comma > last_dot:
        clean = clean.replace(".", "").replace(",", ".")
    elif last_comma != -1 and last_dot != -1:
        clean = clean.replace(",", "")

    clean = _NON_NUMERIC.sub("", clean)
    prefix = _NUMERIC_PREFIX.match(clean).group(0)
    try:
        return Decimal(prefix) if prefix.strip("-.") else ZERO
    except InvalidOperation:
        return ZERO


def _from_serial(serial: float) -> datetime | None:
    try:
        return _EXCEL_EPOCH + timedelta(milliseconds=round(serial * 86400 * 1000))
    except (OverflowError, ValueError):
        return None


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_day_first(text: str) -> datetime | None:
    parts = text.split("/")
    if len(parts) != 3:
        return None
    day, month, year = (p.strip() for p in parts)
    if len(year) == 2:
        year = f"20{year}"
    try:
        return datetime(int(year), int(month), int(day), tzinfo=timezone.utc)
    except ValueError:
        return None


def parse_date(value: Any) -> datetime | None:
    """
    Best-effort date parser; returns a UTC datetime or None.

    - ``datetime``/``date`` objects pass through (naive taken as UTC).
    - Numbers, and numeric strings above 20000 without ``/`` or ``-``,
      are spreadsheet serial days.
    - ``DD/MM/YYYY`` (``YY`` means ``20YY``).
    - ISO-8601, then a few common calendar layouts.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float, Decimal)):
        return _from_serial(float(value))

    text = str(value).strip()
    if not text:
        return None

    if "/" not in text and "-" not in text:
        try:
            numeric = float(text)
        except ValueError:
            numeric = None
        if numeric is not None and numeric > _SERIAL_STRING_THRESHOLD:
            return _from_serial(numeric)

    if "/" in text:
        parsed = _parse_day_first(text)
        if parsed is not None:
            return parsed

    try:
        return _to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return _to_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def _is_absent(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def normalize_margin(raw: Any, proposed: Decimal, sold: Decimal) -> Decimal:
    """
    Margin percentage from a margin cell.

    A supplied value with ``0 < |m| <= 1`` is read as a fraction and
    scaled by 100 (``0.0666`` -> ``6.66``); other values are taken as
    percentages.  An absent cell derives the margin from proposed/sold.
    """
    if _is_absent(raw):
        return margin_from_values(proposed, sold)
    margin = parse_money(raw)
    if ZERO < abs(margin) <= 1:
        return margin * 100
    return margin
