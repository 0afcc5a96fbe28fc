"""
Module: sales_engines.client_analytics
Responsibility:
    Group sales by client and derive recency/frequency/value metrics plus
    a lifecycle status (NEW, ACTIVE, INACTIVE, LOST) for each client.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``now`` is a parameter;
    callers take it from an injected Clock.

Invariants enforced:
    - Client names are grouped trimmed and upper-cased; an empty name
      falls into the ``UNKNOWN_CLIENT`` group.
    - Classification priority is NEW, then LOST, then INACTIVE, then ACTIVE.
    - Output is sorted ascending by days since last purchase.

Failure modes:
    - None.  A client whose first or last sale has no billing date is
      left out of the result.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime

from sales_engines.tracer import traced_engine
from sales_kernel.domain.types import (
    ClientMetric,
    ClientStatus,
    ProductType,
    ReportConfig,
    Sale,
)
from sales_kernel.domain.values import ZERO
from sales_kernel.logging_config import get_logger

logger = get_logger("engines.client_analytics")

UNKNOWN_CLIENT = "UNKNOWN"

_SECONDS_PER_DAY = 86400


def normalize_client_name(name: str | None) -> str:
    cleaned = (name or "").strip().upper()
    return cleaned or UNKNOWN_CLIENT


def _days_between(now: datetime, then: datetime) -> int:
    """Whole days between two instants, rounded up."""
    return math.ceil(abs((now - then).total_seconds()) / _SECONDS_PER_DAY)


def classify_client(
    days_since_first: int,
    days_since_last: int,
    total_orders: int,
    config: ReportConfig,
) -> ClientStatus:
    if days_since_first < config.days_for_new_client and total_orders <= 2:
        return ClientStatus.NEW
    if days_since_last > config.days_for_lost:
        return ClientStatus.LOST
    if days_since_last > config.days_for_inactive:
        return ClientStatus.INACTIVE
    return ClientStatus.ACTIVE


def _chronological_key(sale: Sale) -> tuple[bool, datetime]:
    # Pending sales sort after every dated one
    return (sale.billing_date is None, sale.billing_date or datetime.min)


@traced_engine("client_analytics", "1.0")
def analyze_clients(
    sales: Iterable[Sale],
    config: ReportConfig,
    now: datetime,
) -> list[ClientMetric]:
    """
    Derive one ``ClientMetric`` per client.

    Args:
        sales: Every sale of the user, pending ones included.
        config: Day thresholds for NEW / INACTIVE / LOST.
        now: Reference instant (timezone-aware).
    """
    groups: dict[str, list[Sale]] = {}
    for sale in sales:
        groups.setdefault(normalize_client_name(sale.client), []).append(sale)

    metrics: list[ClientMetric] = []
    skipped = 0
    for name, client_sales in groups.items():
        client_sales.sort(key=_chronological_key)
        first, last = client_sales[0], client_sales[-1]
        if first.billing_date is None or last.billing_date is None:
            skipped += 1
            continue

        total_orders = len(client_sales)
        total_spent = sum((s.value_sold * s.quantity for s in client_sales), ZERO)
        days_since_last = _days_between(now, last.billing_date)
        days_since_first = _days_between(now, first.billing_date)

        types_bought: list[ProductType] = []
        for s in client_sales:
            if s.product_type not in types_bought:
                types_bought.append(s.product_type)

        metrics.append(
            ClientMetric(
                name=name,
                total_orders=total_orders,
                total_spent=total_spent,
                average_ticket=total_spent / total_orders,
                first_purchase_date=first.billing_date,
                last_purchase_date=last.billing_date,
                days_since_first_purchase=days_since_first,
                days_since_last_purchase=days_since_last,
                status=classify_client(days_since_first, days_since_last, total_orders, config),
                types_bought=tuple(types_bought),
            )
        )

    if skipped:
        logger.debug("clients_skipped_without_dates", extra={"count": skipped})

    metrics.sort(key=lambda m: m.days_since_last_purchase)
    return metrics
