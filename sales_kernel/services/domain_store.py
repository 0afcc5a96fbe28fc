"""
DomainStore -- typed, per-user access to every persisted domain.

Responsibility:
    Reads and writes the application domains (sales, commission rule
    tables, report/system config, preferences and the finance
    collections) for exactly one ``UserScope``.  Each domain is one
    ``PersistedDomain`` row holding the domain's wire dict.

Architecture position:
    Kernel > Services.  Engines never touch the store; services in
    ``sales_services`` load state through it, call pure engines, and
    save the results back.

Invariants enforced:
    - A scope is required at construction (``ScopeRequiredError``).
    - Rows are keyed by (user_id, domain_key); one user's domains are
      never visible to another scope.
    - A domain with no stored row reads as its configured default.
    - Flush only; the caller owns the transaction.

Failure modes:
    - ScopeRequiredError when constructed without a scope.
    - ValueError / KeyError from ``from_dict`` on a malformed stored row.
"""

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from sales_kernel.domain.clock import Clock
from sales_kernel.domain.scope import UserScope, require_scope
from sales_kernel.domain.types import (
    AppPreferences,
    CommissionRule,
    DomainDefaults,
    FinanceState,
    ProductType,
    ReportConfig,
    Sale,
    SystemConfig,
)
from sales_kernel.logging_config import get_logger
from sales_kernel.models.persisted_domain import PersistedDomain
from sales_kernel.services.base import BaseService

logger = get_logger("services.domain_store")


class DomainKey:
    """Stable storage keys, one per persisted domain."""

    SALES = "app_sales_v1"
    TABLE_BASIC = "app_table_basic_v2"
    TABLE_NATAL = "app_table_natal_v2"
    REPORT_CONFIG = "app_report_config_v1"
    SYSTEM_CONFIG = "app_system_config_v1"
    APP_PREFERENCES = "app_preferences_v1"
    FIN_ACCOUNTS = "fin_accounts_v1"
    FIN_CARDS = "fin_cards_v1"
    FIN_TRANSACTIONS = "fin_transactions_v1"
    FIN_CATEGORIES = "fin_categories_v1"
    FIN_GOALS = "fin_goals_v1"
    FIN_CHALLENGES = "fin_challenges_v1"
    FIN_CELLS = "fin_cells_v1"
    FIN_RECEIVABLES = "fin_receivables_v1"


# FinanceState attribute -> storage key
_FINANCE_KEYS = {
    "accounts": DomainKey.FIN_ACCOUNTS,
    "cards": DomainKey.FIN_CARDS,
    "transactions": DomainKey.FIN_TRANSACTIONS,
    "categories": DomainKey.FIN_CATEGORIES,
    "goals": DomainKey.FIN_GOALS,
    "challenges": DomainKey.FIN_CHALLENGES,
    "cells": DomainKey.FIN_CELLS,
    "receivables": DomainKey.FIN_RECEIVABLES,
}


def _rules_key(product_type: ProductType) -> str:
    if product_type == ProductType.BASICA:
        return DomainKey.TABLE_BASIC
    return DomainKey.TABLE_NATAL


def _object_list(value: Any) -> list[dict[str, Any]]:
    """Stored list with non-object entries dropped; anything else is empty."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class DomainStore(BaseService):
    """
    Per-user domain persistence.

    Contract:
        Every method operates on the scope given at construction.
        ``get_*`` returns frozen domain values; ``save_*`` replaces the
        whole domain.

    Non-goals:
        - No merge of concurrent edits: the last save wins.
    """

    def __init__(
        self,
        session: Session,
        scope: UserScope | None,
        defaults: DomainDefaults,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self.scope = require_scope(scope, "domain_store")
        self._defaults = defaults

    @property
    def defaults(self) -> DomainDefaults:
        return self._defaults

    # -----------------------------------------------------------------
    # Raw row access
    # -----------------------------------------------------------------

    def _row(self, domain_key: str) -> PersistedDomain | None:
        return self.session.execute(
            select(PersistedDomain).where(
                PersistedDomain.user_id == self.scope.user_id,
                PersistedDomain.domain_key == domain_key,
            )
        ).scalar_one_or_none()

    def _read(self, domain_key: str) -> Any:
        row = self._row(domain_key)
        if row is None:
            return None
        return row.payload.get("value")

    def _write(self, domain_key: str, value: Any) -> None:
        now = self._clock.now()
        row = self._row(domain_key)
        if row is None:
            row = PersistedDomain(
                user_id=self.scope.user_id,
                domain_key=domain_key,
                payload={"value": value},
                updated_at=now,
            )
            self.session.add(row)
        else:
            row.payload = {"value": value}
            row.updated_at = now
        self.session.flush()
        logger.debug(
            "domain_saved",
            extra={
                "user_id": self.scope.user_id,
                "domain_key": domain_key,
                "size": len(value) if isinstance(value, list) else None,
            },
        )

    def has_domain(self, domain_key: str) -> bool:
        return self._row(domain_key) is not None

    # -----------------------------------------------------------------
    # Sales
    # -----------------------------------------------------------------

    def get_sales(self) -> tuple[Sale, ...]:
        return tuple(Sale.from_dict(d) for d in _object_list(self._read(DomainKey.SALES)))

    def save_sales(self, sales: Iterable[Sale]) -> None:
        self._write(DomainKey.SALES, [s.to_dict() for s in sales])

    # -----------------------------------------------------------------
    # Commission rule tables
    # -----------------------------------------------------------------

    def get_rules(self, product_type: ProductType) -> tuple[CommissionRule, ...]:
        stored = self._read(_rules_key(product_type))
        if not isinstance(stored, list):
            return self._defaults.rules_for(product_type)
        return tuple(CommissionRule.from_dict(d) for d in _object_list(stored))

    def save_rules(
        self, product_type: ProductType, rules: Iterable[CommissionRule]
    ) -> None:
        self._write(_rules_key(product_type), [r.to_dict() for r in rules])

    def get_rules_by_type(self) -> dict[ProductType, tuple[CommissionRule, ...]]:
        return {pt: self.get_rules(pt) for pt in ProductType}

    # -----------------------------------------------------------------
    # Configuration domains
    # -----------------------------------------------------------------

    def get_report_config(self) -> ReportConfig:
        stored = self._read(DomainKey.REPORT_CONFIG)
        if not isinstance(stored, dict):
            return self._defaults.report_config
        return ReportConfig.from_dict(stored)

    def save_report_config(self, config: ReportConfig) -> None:
        self._write(DomainKey.REPORT_CONFIG, config.to_dict())

    def get_system_config(self) -> SystemConfig:
        stored = self._read(DomainKey.SYSTEM_CONFIG)
        if not isinstance(stored, dict):
            return self._defaults.system_config
        return SystemConfig.from_dict(stored)

    def save_system_config(self, config: SystemConfig) -> None:
        self._write(DomainKey.SYSTEM_CONFIG, config.to_dict())

    def get_preferences(self) -> AppPreferences:
        stored = self._read(DomainKey.APP_PREFERENCES)
        if not isinstance(stored, dict):
            return self._defaults.preferences
        return AppPreferences.from_dict(stored)

    def save_preferences(self, preferences: AppPreferences) -> None:
        self._write(DomainKey.APP_PREFERENCES, preferences.to_dict())

    # -----------------------------------------------------------------
    # Finance
    # -----------------------------------------------------------------

    def get_finance(self) -> FinanceState:
        return FinanceState.from_dict(
            {attr: self._read(key) for attr, key in _FINANCE_KEYS.items()}
        )

    def save_finance(self, finance: FinanceState) -> None:
        data = finance.to_dict()
        for attr, key in _FINANCE_KEYS.items():
            self._write(key, data[attr])

    # -----------------------------------------------------------------
    # Whole-state replacement
    # -----------------------------------------------------------------

    def replace_all(
        self,
        *,
        sales: Iterable[Sale],
        basic_rules: Iterable[CommissionRule],
        natal_rules: Iterable[CommissionRule],
        report_config: ReportConfig,
        system_config: SystemConfig,
        preferences: AppPreferences,
        finance: FinanceState,
    ) -> None:
        """Overwrite every domain for this scope (restore path)."""
        self.save_sales(sales)
        self.save_rules(ProductType.BASICA, basic_rules)
        self.save_rules(ProductType.NATAL, natal_rules)
        self.save_report_config(report_config)
        self.save_system_config(system_config)
        self.save_preferences(preferences)
        self.save_finance(finance)
        logger.info("domains_replaced", extra={"user_id": self.scope.user_id})
