"""
Module: sales_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for
    ``sales_services`` and ``sales_ingestion``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import sales_kernel domain types and values (and sibling
    engine modules).  MUST NOT import sales_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()``; the current time is a
      parameter supplied by services from an injected Clock.
    - Decimal-only arithmetic for amounts and percentages.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``sales_engines.tracer``), emitting SALES_ENGINE_TRACE records.
"""

from sales_kernel.logging_config import get_logger

logger = get_logger("engines")

from sales_engines.challenge import (
    ChallengeProgress,
    challenge_progress,
    generate_cells,
    mark_cell_paid,
    new_challenge,
    pick_random_pending,
    set_cell_value,
)
from sales_engines.client_analytics import (
    UNKNOWN_CLIENT,
    analyze_clients,
    classify_client,
    normalize_client_name,
)
from sales_engines.commission import (
    MonthlyCommission,
    compute_sale,
    find_rate,
    margin_from_values,
    monthly_commission_summary,
    recompute_sale,
    validate_rule_table,
)
from sales_engines.reporting import (
    ReportMode,
    available_basic_periods,
    available_natal_years,
    filter_sales_by_mode,
)
from sales_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "ChallengeProgress",
    "challenge_progress",
    "generate_cells",
    "mark_cell_paid",
    "new_challenge",
    "pick_random_pending",
    "set_cell_value",
    "UNKNOWN_CLIENT",
    "analyze_clients",
    "classify_client",
    "normalize_client_name",
    "MonthlyCommission",
    "compute_sale",
    "find_rate",
    "margin_from_values",
    "monthly_commission_summary",
    "recompute_sale",
    "validate_rule_table",
    "ReportMode",
    "available_basic_periods",
    "available_natal_years",
    "filter_sales_by_mode",
    "compute_input_fingerprint",
    "traced_engine",
]
