"""Pure domain layer: value helpers, clock, user scope and frozen types."""

from sales_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from sales_kernel.domain.scope import UserScope, require_scope
from sales_kernel.domain.types import (
    AppPreferences,
    BackupFrequency,
    BoletoStatus,
    CellStatus,
    Challenge,
    ChallengeCell,
    ChallengeModel,
    ChallengeStatus,
    ClientMetric,
    ClientStatus,
    CommissionRule,
    DashboardWidgetConfig,
    DomainDefaults,
    FinanceState,
    ProductType,
    ReportConfig,
    Sale,
    SaleInput,
    Snapshot,
    SystemConfig,
)
from sales_kernel.domain.values import (
    CENT,
    HUNDRED,
    ZERO,
    floor_money,
    format_iso_datetime,
    margin_from_values,
    parse_iso_datetime,
    round_money,
    to_decimal,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "UserScope",
    "require_scope",
    "AppPreferences",
    "BackupFrequency",
    "BoletoStatus",
    "CellStatus",
    "Challenge",
    "ChallengeCell",
    "ChallengeModel",
    "ChallengeStatus",
    "ClientMetric",
    "ClientStatus",
    "CommissionRule",
    "DashboardWidgetConfig",
    "DomainDefaults",
    "FinanceState",
    "ProductType",
    "ReportConfig",
    "Sale",
    "SaleInput",
    "Snapshot",
    "SystemConfig",
    "CENT",
    "HUNDRED",
    "ZERO",
    "floor_money",
    "format_iso_datetime",
    "margin_from_values",
    "parse_iso_datetime",
    "round_money",
    "to_decimal",
]
