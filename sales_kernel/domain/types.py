"""
sales_kernel.domain.types -- Frozen dataclasses for every persisted domain.

ZERO I/O. Each persisted type has ``to_dict()`` / ``from_dict()`` for the
JSON wire shape shared by the domain store and the backup document. The
wire keys are camelCase so backups written by earlier releases of the
application restore unchanged; ``Decimal`` is written as a string and
read back from either a string or a JSON number.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sales_kernel.domain.values import (
    CENT,
    ZERO,
    format_iso_datetime,
    margin_from_values,
    parse_iso_datetime,
    to_decimal,
)


def _dec(value: Any, default: Decimal = ZERO) -> Decimal:
    if value is None or value == "":
        return default
    return to_decimal(value)


def _opt_dec(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return to_decimal(value)


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


# =============================================================================
# Enums
# =============================================================================


class ProductType(str, Enum):
    """Product category; each one owns a commission rule table."""

    BASICA = "BASICA"
    NATAL = "NATAL"


class BoletoStatus(str, Enum):
    """Payment-slip status tracked per sale."""

    PENDING = "PENDING"
    SENT = "SENT"
    PAID = "PAID"

    @classmethod
    def from_label(cls, value: Any) -> "BoletoStatus":
        """Lenient parse of spreadsheet labels; unknown labels are PENDING."""
        label = str(value or "").strip().upper()
        return _BOLETO_ALIASES.get(label, cls.PENDING)


_BOLETO_ALIASES = {
    "PENDING": BoletoStatus.PENDING,
    "PENDENTE": BoletoStatus.PENDING,
    "SENT": BoletoStatus.SENT,
    "ENVIADO": BoletoStatus.SENT,
    "PAID": BoletoStatus.PAID,
    "PAGO": BoletoStatus.PAID,
}


class ClientStatus(str, Enum):
    """Recency/frequency classification of a client."""

    NEW = "NEW"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    LOST = "LOST"


class ChallengeModel(str, Enum):
    """How a challenge target is spread over its cells."""

    PROPORTIONAL = "PROPORTIONAL"
    LINEAR = "LINEAR"
    CUSTOM = "CUSTOM"


class ChallengeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class CellStatus(str, Enum):
    """PENDING -> PAID, one-way."""

    PENDING = "PENDING"
    PAID = "PAID"


class BackupFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    NEVER = "NEVER"


# =============================================================================
# Commission rules
# =============================================================================


@dataclass(frozen=True)
class CommissionRule:
    """
    One commission bracket: margin range -> rate.

    ``max_percent`` of ``None`` means the bracket is unbounded above.
    ``commission_rate`` is a fraction (0.0045 == 0.45%).
    """

    id: str
    min_percent: Decimal
    max_percent: Decimal | None
    commission_rate: Decimal

    def matches(self, margin: Decimal) -> bool:
        if margin < self.min_percent:
            return False
        return self.max_percent is None or margin <= self.max_percent

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "minPercent": str(self.min_percent),
            "maxPercent": None if self.max_percent is None else str(self.max_percent),
            "commissionRate": str(self.commission_rate),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommissionRule:
        return cls(
            id=str(data["id"]),
            min_percent=_dec(data.get("minPercent")),
            max_percent=_opt_dec(data.get("maxPercent")),
            commission_rate=_dec(data.get("commissionRate")),
        )


# =============================================================================
# Sales
# =============================================================================


@dataclass(frozen=True)
class SaleInput:
    """Form data for a sale before commission is computed."""

    client: str
    quantity: Decimal
    product_type: ProductType
    value_proposed: Decimal
    value_sold: Decimal
    margin_percent: Decimal
    billing_date: datetime | None = None
    completion_date: datetime | None = None
    quote_number: str = ""
    tracking_code: str = ""
    boleto_status: BoletoStatus = BoletoStatus.PENDING
    observations: str = ""


@dataclass(frozen=True)
class Sale:
    """
    A computed sale record.

    ``billing_date`` of ``None`` means pending (awaiting invoice).
    ``margin_percent`` is authoritative and stored independently of the
    proposed/sold pair; ``derived_margin`` exposes the value implied by the
    prices so a divergence between the two can be detected.
    """

    id: str
    client: str
    quantity: Decimal
    product_type: ProductType
    value_proposed: Decimal
    value_sold: Decimal
    margin_percent: Decimal
    commission_base_total: Decimal
    commission_rate_applied: Decimal
    commission_value_total: Decimal
    billing_date: datetime | None = None
    completion_date: datetime | None = None
    quote_number: str = ""
    tracking_code: str = ""
    boleto_status: BoletoStatus = BoletoStatus.PENDING
    boleto_paid_date: datetime | None = None
    observations: str = ""

    @property
    def is_pending(self) -> bool:
        return self.billing_date is None

    @property
    def derived_margin(self) -> Decimal:
        return margin_from_values(self.value_proposed, self.value_sold)

    @property
    def margin_divergence(self) -> Decimal:
        """Stored margin minus the margin implied by proposed/sold."""
        return self.margin_percent - self.derived_margin

    @property
    def has_margin_divergence(self) -> bool:
        return abs(self.margin_divergence) > CENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client": self.client,
            "quantity": str(self.quantity),
            "type": self.product_type.value,
            "valueProposed": str(self.value_proposed),
            "valueSold": str(self.value_sold),
            "date": format_iso_datetime(self.billing_date),
            "observations": self.observations,
            "quoteNumber": self.quote_number,
            "completionDate": format_iso_datetime(self.completion_date),
            "trackingCode": self.tracking_code,
            "boletoStatus": self.boleto_status.value,
            "boletoPaidDate": format_iso_datetime(self.boleto_paid_date),
            "marginPercent": str(self.margin_percent),
            "commissionBaseTotal": str(self.commission_base_total),
            "commissionRateApplied": str(self.commission_rate_applied),
            "commissionValueTotal": str(self.commission_value_total),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Sale:
        return cls(
            id=str(data["id"]),
            client=str(data.get("client") or ""),
            quantity=_dec(data.get("quantity")),
            product_type=ProductType(data.get("type") or ProductType.BASICA.value),
            value_proposed=_dec(data.get("valueProposed")),
            value_sold=_dec(data.get("valueSold")),
            margin_percent=_dec(data.get("marginPercent")),
            commission_base_total=_dec(data.get("commissionBaseTotal")),
            commission_rate_applied=_dec(data.get("commissionRateApplied")),
            commission_value_total=_dec(data.get("commissionValueTotal")),
            billing_date=parse_iso_datetime(data.get("date")),
            completion_date=parse_iso_datetime(data.get("completionDate")),
            quote_number=str(data.get("quoteNumber") or ""),
            tracking_code=str(data.get("trackingCode") or ""),
            boleto_status=BoletoStatus.from_label(data.get("boletoStatus")),
            boleto_paid_date=parse_iso_datetime(data.get("boletoPaidDate")),
            observations=str(data.get("observations") or ""),
        )


@dataclass(frozen=True)
class ClientMetric:
    """Derived recency/frequency/value figures for one client. Never persisted."""

    name: str
    total_orders: int
    total_spent: Decimal
    average_ticket: Decimal
    first_purchase_date: datetime
    last_purchase_date: datetime
    days_since_first_purchase: int
    days_since_last_purchase: int
    status: ClientStatus
    types_bought: tuple[ProductType, ...] = ()


# =============================================================================
# Challenges
# =============================================================================


@dataclass(frozen=True)
class Challenge:
    """A savings goal split into ``deposit_count`` numbered cells."""

    id: str
    name: str
    target_value: Decimal
    deposit_count: int
    model: ChallengeModel
    created_at: datetime | None = None
    status: ChallengeStatus = ChallengeStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "targetValue": str(self.target_value),
            "depositCount": self.deposit_count,
            "model": self.model.value,
            "createdAt": format_iso_datetime(self.created_at),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Challenge:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            target_value=_dec(data.get("targetValue")),
            deposit_count=int(data.get("depositCount") or 0),
            model=ChallengeModel(data.get("model") or ChallengeModel.CUSTOM.value),
            created_at=parse_iso_datetime(data.get("createdAt")),
            status=ChallengeStatus(data.get("status") or ChallengeStatus.ACTIVE.value),
        )


@dataclass(frozen=True)
class ChallengeCell:
    """One numbered installment of a challenge. PAID cells are terminal."""

    id: str
    challenge_id: str
    number: int
    value: Decimal
    status: CellStatus = CellStatus.PENDING
    paid_date: datetime | None = None

    @property
    def is_paid(self) -> bool:
        return self.status == CellStatus.PAID

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "challengeId": self.challenge_id,
            "number": self.number,
            "value": str(self.value),
            "status": self.status.value,
        }
        if self.paid_date is not None:
            data["paidDate"] = format_iso_datetime(self.paid_date)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChallengeCell:
        return cls(
            id=str(data["id"]),
            challenge_id=str(data["challengeId"]),
            number=int(data["number"]),
            value=_dec(data.get("value")),
            status=CellStatus(data.get("status") or CellStatus.PENDING.value),
            paid_date=parse_iso_datetime(data.get("paidDate")),
        )


# =============================================================================
# Configuration domains
# =============================================================================


@dataclass(frozen=True)
class ReportConfig:
    """Day thresholds for client classification."""

    days_for_new_client: int = 30
    days_for_inactive: int = 45
    days_for_lost: int = 60

    def to_dict(self) -> dict[str, Any]:
        return {
            "daysForNewClient": self.days_for_new_client,
            "daysForInactive": self.days_for_inactive,
            "daysForLost": self.days_for_lost,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportConfig:
        return cls(
            days_for_new_client=int(data["daysForNewClient"]),
            days_for_inactive=int(data["daysForInactive"]),
            days_for_lost=int(data["daysForLost"]),
        )


@dataclass(frozen=True)
class SystemConfig:
    backup_frequency: BackupFrequency = BackupFrequency.WEEKLY
    last_backup_date: datetime | None = None
    google_drive_connected: bool = False
    google_drive_account: str | None = None
    include_non_accounting_in_total: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "backupFrequency": self.backup_frequency.value,
            "lastBackupDate": (
                None if self.last_backup_date is None
                else format_iso_datetime(self.last_backup_date)
            ),
            "googleDriveConnected": self.google_drive_connected,
            "includeNonAccountingInTotal": self.include_non_accounting_in_total,
        }
        if self.google_drive_account is not None:
            data["googleDriveAccount"] = self.google_drive_account
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SystemConfig:
        return cls(
            backup_frequency=BackupFrequency(
                data.get("backupFrequency") or BackupFrequency.WEEKLY.value
            ),
            last_backup_date=parse_iso_datetime(data.get("lastBackupDate")),
            google_drive_connected=bool(data.get("googleDriveConnected", False)),
            google_drive_account=_opt_str(data.get("googleDriveAccount")),
            include_non_accounting_in_total=bool(
                data.get("includeNonAccountingInTotal", False)
            ),
        )


@dataclass(frozen=True)
class DashboardWidgetConfig:
    show_stats: bool = True
    show_charts: bool = True
    show_recents: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "showStats": self.show_stats,
            "showCharts": self.show_charts,
            "showRecents": self.show_recents,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DashboardWidgetConfig:
        return cls(
            show_stats=bool(data.get("showStats", True)),
            show_charts=bool(data.get("showCharts", True)),
            show_recents=bool(data.get("showRecents", True)),
        )


@dataclass(frozen=True)
class AppPreferences:
    hide_values: bool = False
    sales_config: DashboardWidgetConfig = field(default_factory=DashboardWidgetConfig)
    finance_config: DashboardWidgetConfig = field(default_factory=DashboardWidgetConfig)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hideValues": self.hide_values,
            "salesConfig": self.sales_config.to_dict(),
            "financeConfig": self.finance_config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppPreferences:
        return cls(
            hide_values=bool(data.get("hideValues", False)),
            sales_config=_widget_config(data.get("salesConfig"), "salesConfig"),
            finance_config=_widget_config(data.get("financeConfig"), "financeConfig"),
        )


def _widget_config(value: Any, name: str) -> DashboardWidgetConfig:
    if value is None:
        return DashboardWidgetConfig()
    if not isinstance(value, dict):
        raise ValueError(f"Preference '{name}' must be an object")
    return DashboardWidgetConfig.from_dict(value)


# =============================================================================
# Finance domain
# =============================================================================


def _records(value: Any) -> tuple[dict[str, Any], ...]:
    """Keep only object entries of a JSON list (anything else is dropped)."""
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, dict))


@dataclass(frozen=True)
class FinanceState:
    """
    Personal-finance domain state.

    Accounts, cards, transactions, categories, goals and receivables are
    owned by collaborators and carried as opaque JSON records; challenges
    and their cells are typed because the core generates them.
    """

    accounts: tuple[dict[str, Any], ...] = ()
    cards: tuple[dict[str, Any], ...] = ()
    transactions: tuple[dict[str, Any], ...] = ()
    categories: tuple[dict[str, Any], ...] = ()
    goals: tuple[dict[str, Any], ...] = ()
    challenges: tuple[Challenge, ...] = ()
    cells: tuple[ChallengeCell, ...] = ()
    receivables: tuple[dict[str, Any], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "accounts": [dict(r) for r in self.accounts],
            "cards": [dict(r) for r in self.cards],
            "transactions": [dict(r) for r in self.transactions],
            "categories": [dict(r) for r in self.categories],
            "goals": [dict(r) for r in self.goals],
            "challenges": [c.to_dict() for c in self.challenges],
            "cells": [c.to_dict() for c in self.cells],
            "receivables": [dict(r) for r in self.receivables],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FinanceState:
        return cls(
            accounts=_records(data.get("accounts")),
            cards=_records(data.get("cards")),
            transactions=_records(data.get("transactions")),
            categories=_records(data.get("categories")),
            goals=_records(data.get("goals")),
            challenges=tuple(Challenge.from_dict(c) for c in _records(data.get("challenges"))),
            cells=tuple(ChallengeCell.from_dict(c) for c in _records(data.get("cells"))),
            receivables=_records(data.get("receivables")),
        )


@dataclass(frozen=True)
class DomainDefaults:
    """
    Values a domain takes when nothing has been persisted for it yet.

    Built by ``sales_config`` from the YAML defaults and injected into the
    domain store; the kernel never reads configuration itself.
    """

    basic_rules: tuple[CommissionRule, ...]
    natal_rules: tuple[CommissionRule, ...]
    report_config: ReportConfig = field(default_factory=ReportConfig)
    system_config: SystemConfig = field(default_factory=SystemConfig)
    preferences: AppPreferences = field(default_factory=AppPreferences)

    def rules_for(self, product_type: ProductType) -> tuple[CommissionRule, ...]:
        if product_type == ProductType.BASICA:
            return self.basic_rules
        return self.natal_rules


@dataclass(frozen=True)
class Snapshot:
    """A prior sale collection captured before a batch mutation."""

    sales: tuple[Sale, ...]
    taken_at: datetime
