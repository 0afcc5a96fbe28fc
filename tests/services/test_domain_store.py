"""
Tests for DomainStore.

Covers:
- Scope required at construction
- Unsaved domains read as the injected defaults
- Save/read of every domain, including the finance collections
- Per-user isolation of rows
- Whole-state replacement
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from sales_engines.commission import compute_sale
from sales_kernel.domain.scope import UserScope
from sales_kernel.domain.types import (
    AppPreferences,
    BackupFrequency,
    CommissionRule,
    FinanceState,
    ProductType,
    ReportConfig,
    SystemConfig,
)
from sales_kernel.exceptions import ScopeRequiredError
from sales_kernel.services.domain_store import DomainKey, DomainStore


@pytest.fixture
def store(session, scope, defaults, clock):
    return DomainStore(session, scope, defaults.domain, clock=clock)


class TestDomainStoreScope:
    """Tests for the scope precondition."""

    @pytest.mark.parametrize("bad_scope", [None, UserScope("")])
    def test_scope_required(self, session, defaults, bad_scope):
        with pytest.raises(ScopeRequiredError):
            DomainStore(session, bad_scope, defaults.domain)


class TestDomainStoreDefaults:
    """Tests for reads of never-saved domains."""

    def test_empty_state(self, store, defaults):
        assert store.get_sales() == ()
        assert store.get_rules(ProductType.BASICA) == defaults.domain.basic_rules
        assert store.get_rules(ProductType.NATAL) == defaults.domain.natal_rules
        assert store.get_report_config() == ReportConfig()
        assert store.get_system_config().backup_frequency == BackupFrequency.WEEKLY
        assert store.get_preferences() == AppPreferences()
        assert store.get_finance() == FinanceState()
        assert not store.has_domain(DomainKey.SALES)


class TestDomainStoreReadWrite:
    """Tests for saving and reading back each domain."""

    def test_sales(self, store, make_sale_input):
        sale = compute_sale(make_sale_input(), store.get_rules(ProductType.BASICA))
        store.save_sales([sale])
        assert store.get_sales() == (sale,)
        assert store.has_domain(DomainKey.SALES)

    def test_overwrite_keeps_one_row(self, store, session, make_sale_input):
        from sqlalchemy import func, select

        from sales_kernel.models import PersistedDomain

        sale = compute_sale(make_sale_input(), ())
        store.save_sales([sale])
        store.save_sales([])

        count = session.execute(
            select(func.count()).select_from(PersistedDomain)
        ).scalar_one()
        assert count == 1
        assert store.get_sales() == ()

    def test_rules(self, store):
        rules = (CommissionRule("x", Decimal("0"), None, Decimal("0.01")),)
        store.save_rules(ProductType.NATAL, rules)
        assert store.get_rules(ProductType.NATAL) == rules
        assert store.get_rules_by_type()[ProductType.NATAL] == rules

    def test_saved_empty_table_is_not_replaced_by_defaults(self, store):
        store.save_rules(ProductType.BASICA, ())
        assert store.get_rules(ProductType.BASICA) == ()

    def test_configs(self, store):
        report = ReportConfig(days_for_new_client=10, days_for_inactive=20, days_for_lost=30)
        system = SystemConfig(
            backup_frequency=BackupFrequency.DAILY,
            last_backup_date=datetime(2025, 6, 1, tzinfo=timezone.utc),
        )
        prefs = AppPreferences(hide_values=True)
        store.save_report_config(report)
        store.save_system_config(system)
        store.save_preferences(prefs)

        assert store.get_report_config() == report
        assert store.get_system_config() == system
        assert store.get_preferences() == prefs

    def test_finance(self, store):
        finance = FinanceState(
            accounts=({"id": "acc-1", "name": "Wallet", "balance": "10.50"},),
            receivables=({"id": "r1"},),
        )
        store.save_finance(finance)
        assert store.get_finance() == finance
        assert store.has_domain(DomainKey.FIN_ACCOUNTS)
        assert store.has_domain(DomainKey.FIN_CELLS)


class TestDomainStoreIsolation:
    """One user's rows are invisible to another scope."""

    def test_users_do_not_see_each_other(self, session, defaults, make_sale_input):
        alice = DomainStore(session, UserScope("alice"), defaults.domain)
        bob = DomainStore(session, UserScope("bob"), defaults.domain)

        alice.save_sales([compute_sale(make_sale_input(), ())])
        alice.save_report_config(ReportConfig(1, 2, 3))

        assert len(alice.get_sales()) == 1
        assert bob.get_sales() == ()
        assert bob.get_report_config() == ReportConfig()


class TestReplaceAll:
    """Tests for whole-state replacement."""

    def test_overwrites_every_domain(self, store, make_sale_input, captured_logs):
        sale = compute_sale(make_sale_input(), ())
        rules = (CommissionRule("x", Decimal("0"), None, Decimal("0.01")),)

        store.replace_all(
            sales=[sale],
            basic_rules=rules,
            natal_rules=rules,
            report_config=ReportConfig(5, 6, 7),
            system_config=SystemConfig(backup_frequency=BackupFrequency.NEVER),
            preferences=AppPreferences(hide_values=True),
            finance=FinanceState(goals=({"id": "g1"},)),
        )

        assert store.get_sales() == (sale,)
        assert store.get_rules(ProductType.BASICA) == rules
        assert store.get_report_config() == ReportConfig(5, 6, 7)
        assert store.get_system_config().backup_frequency == BackupFrequency.NEVER
        assert store.get_preferences().hide_values
        assert store.get_finance().goals == ({"id": "g1"},)
        assert any(r["message"] == "domains_replaced" for r in captured_logs())
