"""
Values -- Decimal helpers for two-decimal monetary arithmetic.

Responsibility:
    Single place for converting loose numeric input to ``Decimal`` and for
    the rounding rules used across engines (half-up to cents, floor to
    cents).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts are ``Decimal`` end to end; floats are converted through
      ``str()`` so ``0.1`` becomes ``Decimal("0.1")``, never its binary
      expansion.
    - ``round_money`` is ROUND_HALF_UP at 2 decimal places.

Failure modes:
    - ValueError from ``to_decimal`` on non-numeric input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Convert int/float/str/Decimal to Decimal.

    Raises:
        ValueError: if ``value`` is not numeric (bool included).
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert boolean to Decimal: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Cannot convert to Decimal: {value!r}") from exc
        if not result.is_finite():
            raise ValueError(f"Non-finite amount: {value!r}")
        return result
    raise ValueError(f"Cannot convert {type(value).__name__} to Decimal")


def round_money(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def floor_money(value: Decimal) -> Decimal:
    """Round toward negative infinity to cents."""
    return value.quantize(CENT, rounding=ROUND_FLOOR)


def margin_from_values(proposed: Decimal, sold: Decimal) -> Decimal:
    """Percentage margin of ``sold`` over ``proposed``, rounded to 2 places.

    Returns 0 when ``proposed`` is 0 (no division by zero).
    """
    if proposed == ZERO:
        return ZERO
    raw = (sold - proposed) / proposed * HUNDRED
    return round_money(raw)


def parse_iso_datetime(value: Any) -> datetime | None:
    """Parse a stored ISO-8601 timestamp; ``None``/``""`` mean "no date".

    Naive values are taken as UTC.

    Raises:
        ValueError: on a non-empty value that is not ISO-8601.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return None
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError as exc:
        raise ValueError(f"Timestamp out of range: {value!r}") from exc


def format_iso_datetime(value: datetime | None) -> str:
    """Inverse of ``parse_iso_datetime``; ``None`` becomes ``""``."""
    if value is None:
        return ""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
