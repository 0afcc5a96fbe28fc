"""
Module: sales_engines.challenge
Responsibility:
    Split a savings-challenge target into numbered cells so the cells sum
    to the target exactly, and manage the PENDING -> PAID life of a cell.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Randomness comes from an
    injected ``random.Random``; timestamps are parameters.

Invariants enforced:
    - PROPORTIONAL and LINEAR cells sum to the target exactly at cent
      granularity; the last cell absorbs the rounding remainder.
    - A PAID cell is terminal: it is never paid again nor revalued.

Failure modes:
    - ValueError when asked for fewer than one cell.
    - CellAlreadyPaidError when a PAID cell is paid or revalued.

Usage:
    from sales_engines.challenge import generate_cells

    cells = generate_cells("ch-1", Decimal("1000"), 52, ChallengeModel.LINEAR)
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sales_engines.tracer import traced_engine
from sales_kernel.domain.types import (
    CellStatus,
    Challenge,
    ChallengeCell,
    ChallengeModel,
    ChallengeStatus,
)
from sales_kernel.domain.values import ZERO, floor_money, round_money
from sales_kernel.exceptions import CellAlreadyPaidError
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.challenge")


def _cell(challenge_id: str, number: int, value: Decimal) -> ChallengeCell:
    return ChallengeCell(
        id=str(uuid4()),
        challenge_id=challenge_id,
        number=number,
        value=value,
    )


def _proportional_values(target: Decimal, count: int) -> list[Decimal]:
    base = floor_money(target / count)
    values = [base] * (count - 1)
    values.append(round_money(target - base * (count - 1)))
    return values


def _linear_values(target: Decimal, count: int) -> list[Decimal]:
    # Cell i is weighted i; weights sum to count(count+1)/2
    factor = target / (Decimal(count) * (count + 1) / 2)
    values: list[Decimal] = []
    running_total = ZERO
    for i in range(1, count):
        value = round_money(i * factor)
        running_total += value
        values.append(value)
    values.append(round_money(target - running_total))
    return values


@traced_engine(
    "challenge",
    "1.0",
    fingerprint_fields=("challenge_id", "target", "count", "model"),
)
def generate_cells(
    challenge_id: str,
    target: Decimal,
    count: int,
    model: ChallengeModel,
) -> tuple[ChallengeCell, ...]:
    """
    Build ``count`` PENDING cells numbered 1..count.

    PROPORTIONAL gives every cell the floored equal share and the last
    cell the remainder; LINEAR weights cell ``i`` by ``i``; CUSTOM cells
    start at 0 for manual entry.

    Raises:
        ValueError: if ``count`` is less than 1.
    """
    if count < 1:
        raise ValueError(f"A challenge needs at least one cell, got {count}")

    if model == ChallengeModel.PROPORTIONAL:
        values = _proportional_values(target, count)
    elif model == ChallengeModel.LINEAR:
        values = _linear_values(target, count)
    else:
        values = [ZERO] * count

    return tuple(
        _cell(challenge_id, number, value)
        for number, value in enumerate(values, start=1)
    )


def new_challenge(
    name: str,
    target: Decimal,
    count: int,
    model: ChallengeModel,
    now: datetime,
) -> tuple[Challenge, tuple[ChallengeCell, ...]]:
    """Create an ACTIVE challenge together with its generated cells."""
    challenge = Challenge(
        id=str(uuid4()),
        name=name,
        target_value=target,
        deposit_count=count,
        model=model,
        created_at=now,
        status=ChallengeStatus.ACTIVE,
    )
    return challenge, generate_cells(challenge.id, target, count, model)


def mark_cell_paid(cell: ChallengeCell, paid_at: datetime) -> ChallengeCell:
    """
    PENDING -> PAID, recording ``paid_at``.

    Raises:
        CellAlreadyPaidError: if the cell is already PAID.
    """
    if cell.is_paid:
        raise CellAlreadyPaidError(cell.id, cell.number)
    return replace(cell, status=CellStatus.PAID, paid_date=paid_at)


def set_cell_value(cell: ChallengeCell, value: Decimal) -> ChallengeCell:
    """
    Manually set a PENDING cell's value (CUSTOM challenges).

    Raises:
        CellAlreadyPaidError: if the cell is already PAID.
    """
    if cell.is_paid:
        raise CellAlreadyPaidError(cell.id, cell.number)
    return replace(cell, value=round_money(value))


def pick_random_pending(
    cells: Iterable[ChallengeCell],
    challenge_id: str,
    rng: random.Random | None = None,
) -> ChallengeCell | None:
    """Uniform pick among the PENDING cells of one challenge, or None."""
    pending = [
        c for c in cells
        if c.challenge_id == challenge_id and c.status == CellStatus.PENDING
    ]
    if not pending:
        return None
    return (rng or random.Random()).choice(pending)


@dataclass(frozen=True)
class ChallengeProgress:
    paid_total: Decimal
    remaining: Decimal
    paid_count: int
    total_count: int

    @property
    def is_complete(self) -> bool:
        return self.total_count > 0 and self.paid_count == self.total_count


def challenge_progress(
    challenge: Challenge, cells: Sequence[ChallengeCell]
) -> ChallengeProgress:
    """Paid total and remaining amount of one challenge."""
    own = [c for c in cells if c.challenge_id == challenge.id]
    paid = [c for c in own if c.is_paid]
    paid_total = sum((c.value for c in paid), ZERO)
    return ChallengeProgress(
        paid_total=paid_total,
        remaining=challenge.target_value - paid_total,
        paid_count=len(paid),
        total_count=len(own),
    )
