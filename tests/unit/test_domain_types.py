"""
Unit tests for the frozen domain types and their wire dicts.

Covers:
- Rule bracket matching (inclusive bounds, unbounded top)
- Sale wire keys, pending state and margin divergence
- Lenient boleto labels
- Config domains reading stored dicts (including older JSON numbers)
- FinanceState dropping non-object records
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from sales_kernel.domain.scope import UserScope, require_scope
from sales_kernel.domain.types import (
    BackupFrequency,
    BoletoStatus,
    CellStatus,
    ChallengeCell,
    CommissionRule,
    FinanceState,
    ProductType,
    ReportConfig,
    Sale,
    SystemConfig,
)
from sales_kernel.exceptions import ScopeRequiredError


def _sale(**overrides) -> Sale:
    values = dict(
        id="s-1",
        client="ACME",
        quantity=Decimal("10"),
        product_type=ProductType.BASICA,
        value_proposed=Decimal("75"),
        value_sold=Decimal("80"),
        margin_percent=Decimal("6.66"),
        commission_base_total=Decimal("750"),
        commission_rate_applied=Decimal("0.0045"),
        commission_value_total=Decimal("3.375"),
        billing_date=datetime(2025, 5, 20, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Sale(**values)


class TestCommissionRule:
    """Tests for bracket matching and wire form."""

    def setup_method(self):
        self.bounded = CommissionRule("b6", Decimal("6.50"), Decimal("6.99"), Decimal("0.0045"))
        self.unbounded = CommissionRule("b14", Decimal("40"), None, Decimal("0.05"))

    def test_bounds_inclusive(self):
        assert self.bounded.matches(Decimal("6.50"))
        assert self.bounded.matches(Decimal("6.99"))
        assert not self.bounded.matches(Decimal("6.995"))
        assert not self.bounded.matches(Decimal("6.49"))

    def test_unbounded_top(self):
        assert self.unbounded.matches(Decimal("1000"))
        assert not self.unbounded.matches(Decimal("39.99"))

    def test_wire_dict(self):
        data = self.unbounded.to_dict()
        assert data == {
            "id": "b14",
            "minPercent": "40",
            "maxPercent": None,
            "commissionRate": "0.05",
        }
        assert CommissionRule.from_dict(data) == self.unbounded

    def test_reads_json_numbers(self):
        """Older stores hold plain numbers."""
        rule = CommissionRule.from_dict(
            {"id": "x", "minPercent": 4, "maxPercent": 4.49, "commissionRate": 0.002}
        )
        assert rule.max_percent == Decimal("4.49")
        assert rule.commission_rate == Decimal("0.002")


class TestSale:
    """Tests for Sale state and wire form."""

    def test_pending_when_no_billing_date(self):
        assert _sale(billing_date=None).is_pending
        assert not _sale().is_pending

    def test_wire_keys(self):
        data = _sale().to_dict()
        assert data["type"] == "BASICA"
        assert data["date"] == "2025-05-20T00:00:00Z"
        assert data["valueSold"] == "80"
        assert data["commissionValueTotal"] == "3.375"
        assert data["boletoStatus"] == "PENDING"
        assert data["boletoPaidDate"] == ""

    def test_pending_sale_has_empty_date(self):
        data = _sale(billing_date=None).to_dict()
        assert data["date"] == ""
        assert Sale.from_dict(data).is_pending

    def test_from_dict_round_trip(self):
        sale = _sale(observations="first order", tracking_code="BR1")
        assert Sale.from_dict(sale.to_dict()) == sale

    def test_margin_divergence_detected(self):
        """Stored 6.66 vs implied 6.67 is within one cent; 8.00 is not."""
        assert not _sale().has_margin_divergence
        diverging = _sale(margin_percent=Decimal("8.00"))
        assert diverging.has_margin_divergence
        assert diverging.margin_divergence == Decimal("1.33")


class TestBoletoStatus:
    """Tests for lenient boleto labels."""

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("PAGO", BoletoStatus.PAID),
            ("pago", BoletoStatus.PAID),
            ("ENVIADO", BoletoStatus.SENT),
            ("SENT", BoletoStatus.SENT),
            ("PENDENTE", BoletoStatus.PENDING),
            ("", BoletoStatus.PENDING),
            (None, BoletoStatus.PENDING),
            ("CANCELADO", BoletoStatus.PENDING),
        ],
    )
    def test_from_label(self, label, expected):
        assert BoletoStatus.from_label(label) == expected


class TestConfigDomains:
    """Tests for the configuration dataclasses."""

    def test_report_config_defaults(self):
        config = ReportConfig()
        assert (config.days_for_new_client, config.days_for_inactive, config.days_for_lost) == (
            30,
            45,
            60,
        )

    def test_system_config_null_backup_date(self):
        data = SystemConfig().to_dict()
        assert data["lastBackupDate"] is None
        assert data["backupFrequency"] == "WEEKLY"
        assert "googleDriveAccount" not in data

    def test_system_config_from_dict(self):
        config = SystemConfig.from_dict(
            {
                "backupFrequency": "DAILY",
                "lastBackupDate": "2025-06-01T08:00:00Z",
                "googleDriveConnected": True,
                "googleDriveAccount": "me@example.com",
            }
        )
        assert config.backup_frequency == BackupFrequency.DAILY
        assert config.last_backup_date == datetime(2025, 6, 1, 8, tzinfo=timezone.utc)
        assert config.google_drive_account == "me@example.com"
        assert config.include_non_accounting_in_total is False


class TestFinanceState:
    """Tests for the finance aggregate."""

    def test_non_object_records_dropped(self):
        state = FinanceState.from_dict(
            {"accounts": [{"id": "a1"}, "junk", 3], "cards": "not a list"}
        )
        assert state.accounts == ({"id": "a1"},)
        assert state.cards == ()

    def test_cells_typed(self):
        state = FinanceState.from_dict(
            {
                "cells": [
                    {"id": "c1", "challengeId": "ch", "number": 1, "value": "10.00",
                     "status": "PAID", "paidDate": "2025-01-02T00:00:00Z"},
                ]
            }
        )
        cell = state.cells[0]
        assert isinstance(cell, ChallengeCell)
        assert cell.status == CellStatus.PAID
        assert cell.value == Decimal("10.00")

    def test_pending_cell_has_no_paid_date_key(self):
        cell = ChallengeCell("c1", "ch", 1, Decimal("5"))
        assert "paidDate" not in cell.to_dict()


class TestUserScope:
    """Tests for the explicit scope handle."""

    @pytest.mark.parametrize("scope", [None, UserScope(""), UserScope("   ")])
    def test_require_scope_rejects_missing(self, scope):
        with pytest.raises(ScopeRequiredError) as exc_info:
            require_scope(scope, "save_sales")
        assert exc_info.value.operation == "save_sales"
        assert exc_info.value.code == "SCOPE_REQUIRED"

    def test_require_scope_returns_scope(self):
        scope = UserScope("u1")
        assert require_scope(scope, "x") is scope
