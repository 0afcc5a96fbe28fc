"""
Module: sales_engines.commission
Responsibility:
    Tiered commission lookup and sale computation: find the bracket a
    margin falls in, derive the commission base and value of a sale, and
    validate a rule table before it replaces the active one.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import sales_kernel domain types and values.

Invariants enforced:
    - Lookup is first-match in stored order; no match yields rate 0.
    - commission_base_total == quantity * value_proposed.
    - commission_value_total == base * rate, unrounded.
    - recompute_sale keeps identity and the stored margin; the margin is
      never re-derived from proposed/sold.

Failure modes:
    - InvalidRuleTableError from validate_rule_table on an inverted,
      overlapping, misplaced-unbounded or negative-rate bracket.

Usage:
    from sales_engines.commission import compute_sale

    sale = compute_sale(sale_input, rules_by_type[sale_input.product_type])
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from uuid import uuid4

from sales_engines.tracer import traced_engine
from sales_kernel.domain.types import CommissionRule, Sale, SaleInput
from sales_kernel.domain.values import ZERO, margin_from_values
from sales_kernel.exceptions import InvalidRuleTableError
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.commission")

__all__ = [
    "MonthlyCommission",
    "compute_sale",
    "find_rate",
    "margin_from_values",
    "monthly_commission_summary",
    "recompute_sale",
    "validate_rule_table",
]


def find_rate(margin: Decimal, rules: Sequence[CommissionRule]) -> Decimal:
    """
    Commission rate of the first bracket containing ``margin``.

    Brackets are scanned in stored order, so an unsorted or overlapping
    table resolves to whichever matching bracket comes first.  A margin
    that falls in a gap (or below every bracket) earns ``0``.
    """
    for rule in rules:
        if rule.matches(margin):
            return rule.commission_rate
    return ZERO


def _apply_rules(
    quantity: Decimal,
    value_proposed: Decimal,
    margin: Decimal,
    rules: Sequence[CommissionRule],
) -> tuple[Decimal, Decimal, Decimal]:
    rate = find_rate(margin, rules)
    base = quantity * value_proposed
    return base, rate, base * rate


@traced_engine("commission", "1.0", fingerprint_fields=("sale_input",))
def compute_sale(sale_input: SaleInput, rules: Sequence[CommissionRule]) -> Sale:
    """Build a new ``Sale`` (fresh id) from form data and the active table."""
    base, rate, value = _apply_rules(
        sale_input.quantity,
        sale_input.value_proposed,
        sale_input.margin_percent,
        rules,
    )
    return Sale(
        id=str(uuid4()),
        client=sale_input.client,
        quantity=sale_input.quantity,
        product_type=sale_input.product_type,
        value_proposed=sale_input.value_proposed,
        value_sold=sale_input.value_sold,
        margin_percent=sale_input.margin_percent,
        commission_base_total=base,
        commission_rate_applied=rate,
        commission_value_total=value,
        billing_date=sale_input.billing_date,
        completion_date=sale_input.completion_date,
        quote_number=sale_input.quote_number,
        tracking_code=sale_input.tracking_code,
        boleto_status=sale_input.boleto_status,
        observations=sale_input.observations,
    )


def recompute_sale(sale: Sale, rules: Sequence[CommissionRule]) -> Sale:
    """Reapply the commission formula to an existing sale, keeping its id."""
    base, rate, value = _apply_rules(
        sale.quantity, sale.value_proposed, sale.margin_percent, rules
    )
    return replace(
        sale,
        commission_base_total=base,
        commission_rate_applied=rate,
        commission_value_total=value,
    )


def validate_rule_table(rules: Iterable[CommissionRule]) -> tuple[CommissionRule, ...]:
    """
    Sort a rule table ascending by ``min_percent`` and check its brackets.

    Gaps between brackets are allowed (a margin in a gap earns 0).

    Raises:
        InvalidRuleTableError: on ``min > max``, a negative rate, a bracket
            overlapping its predecessor, or an unbounded bracket that is
            not the last one.
    """
    ordered = tuple(sorted(rules, key=lambda r: r.min_percent))
    previous: CommissionRule | None = None
    for rule in ordered:
        if rule.max_percent is not None and rule.min_percent > rule.max_percent:
            raise InvalidRuleTableError(rule.id, "min_percent is greater than max_percent")
        if rule.commission_rate < ZERO:
            raise InvalidRuleTableError(rule.id, "commission_rate is negative")
        if previous is not None:
            if previous.max_percent is None:
                raise InvalidRuleTableError(
                    previous.id, "unbounded bracket must be the last one"
                )
            if rule.min_percent <= previous.max_percent:
                raise InvalidRuleTableError(
                    rule.id, f"overlaps bracket {previous.id}"
                )
        previous = rule
    return ordered


@dataclass(frozen=True)
class MonthlyCommission:
    month: str  # YYYY-MM
    total: Decimal


def monthly_commission_summary(sales: Iterable[Sale]) -> list[MonthlyCommission]:
    """Commission totals per billing month, newest month first.

    Pending sales (no billing date) are excluded.
    """
    grouped: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for sale in sales:
        if sale.billing_date is None:
            continue
        grouped[sale.billing_date.strftime("%Y-%m")] += sale.commission_value_total
    return [
        MonthlyCommission(month=month, total=grouped[month])
        for month in sorted(grouped, reverse=True)
    ]
