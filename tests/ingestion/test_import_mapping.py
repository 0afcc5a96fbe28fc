"""
Tests for the import mapping engine.

Covers:
- Required-field mapping checks
- Header auto-mapping from configured keywords
- Row mapping: template sample rows, skip rules, type detection,
  pending billing, completion date defaulting, boleto labels
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from sales_ingestion.mapping import (
    REQUIRED_FIELDS,
    UNMAPPED,
    check_required_mapping,
    guess_mapping,
    map_row,
    map_rows,
)
from sales_kernel.domain.types import BoletoStatus, ProductType
from sales_kernel.exceptions import MissingMappingError

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

# Compact mapping used for hand-written rows
MAPPING = {
    "date": 0,
    "type": 1,
    "client": 2,
    "quantity": 3,
    "value_proposed": 4,
    "value_sold": 5,
    "margin": 6,
    "boleto_status": 7,
}
HEADER = ["data", "tipo", "cliente", "qtd", "proposto", "venda", "margem", "boleto"]


@pytest.fixture
def rules_by_type(defaults):
    domain = defaults.domain
    return {
        ProductType.BASICA: domain.basic_rules,
        ProductType.NATAL: domain.natal_rules,
    }


class TestCheckRequiredMapping:
    """Tests for check_required_mapping."""

    def test_complete_mapping_passes(self):
        check_required_mapping({key: i for i, key in enumerate(REQUIRED_FIELDS)})

    def test_lists_every_missing_field(self):
        mapping = {"type": 0, "client": 1, "quantity": UNMAPPED}
        with pytest.raises(MissingMappingError) as exc_info:
            check_required_mapping(mapping)
        assert exc_info.value.missing_fields == [
            "quantity",
            "value_proposed",
            "value_sold",
            "margin",
        ]
        assert exc_info.value.code == "MISSING_MAPPING"


class TestGuessMapping:
    """Tests for header auto-mapping."""

    def test_template_headers_map_in_order(self, defaults):
        template = defaults.import_template
        mapping = guess_mapping(list(template.headers))
        assert mapping == {field.key: i for i, field in enumerate(template.fields)}

    def test_keywords_case_insensitive(self):
        mapping = guess_mapping(["Nome do Cliente", "Margem %", "Qtd."])
        assert mapping["client"] == 0
        assert mapping["margin"] == 1
        assert mapping["quantity"] == 2
        assert mapping["value_sold"] == UNMAPPED

    def test_exact_key_match(self):
        mapping = guess_mapping(["value_proposed", "value_sold"])
        assert mapping["value_proposed"] == 0
        assert mapping["value_sold"] == 1

    def test_column_used_once(self):
        """'Cliente Tipo' would match both type and client; type claims it first."""
        mapping = guess_mapping(["Cliente Tipo"])
        assert mapping["type"] == 0
        assert mapping["client"] == UNMAPPED

    def test_blank_headers_ignored(self):
        mapping = guess_mapping(["", None, "obs"])
        assert mapping["obs"] == 2


class TestMapRows:
    """Tests for turning rows into computed sales."""

    def test_template_sample_rows(self, defaults, rules_by_type):
        template = defaults.import_template
        rows = [list(template.headers), *[list(r) for r in template.sample_rows]]
        mapping = guess_mapping(rows[0])

        basic, natal = map_rows(rows, mapping, rules_by_type, NOW)

        assert basic.client == "Empresa Exemplo LTDA"
        assert basic.product_type == ProductType.BASICA
        assert basic.billing_date == datetime(2025, 5, 20, tzinfo=timezone.utc)
        assert basic.completion_date == datetime(2025, 5, 15, tzinfo=timezone.utc)
        assert basic.quote_number == "12345"
        assert basic.margin_percent == Decimal("6.66")
        assert basic.commission_base_total == Decimal("750")
        assert basic.commission_rate_applied == Decimal("0.0045")
        assert basic.commission_value_total == Decimal("3.375")
        assert basic.tracking_code == "BR123456"
        assert basic.boleto_status == BoletoStatus.PENDING
        assert basic.observations == "Primeira compra"

        assert natal.product_type == ProductType.NATAL
        assert natal.is_pending
        assert natal.commission_base_total == Decimal("8000")
        assert natal.commission_rate_applied == Decimal("0")
        assert natal.boleto_status == BoletoStatus.SENT

    def test_header_never_imported(self, rules_by_type):
        assert map_rows([HEADER], MAPPING, rules_by_type, NOW) == []

    def test_skip_rules(self, rules_by_type):
        rows = [
            HEADER,
            ["2025-05-01", "BASICA", "", "1", "10", "11", "10", ""],
            ["2025-05-01", "BASICA", "ACME", "0", "10", "11", "10", ""],
            ["2025-05-01", "BASICA", "ACME", "abc", "10", "11", "10", ""],
            [],
            ["2025-05-01", "BASICA", "ACME", "2", "10", "11", "10", ""],
        ]
        sales = map_rows(rows, MAPPING, rules_by_type, NOW)
        assert len(sales) == 1
        assert sales[0].quantity == Decimal("2")

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("NATAL", ProductType.NATAL),
            ("Campanha natal 2025", ProductType.NATAL),
            ("BASICA", ProductType.BASICA),
            ("", ProductType.BASICA),
            ("outro", ProductType.BASICA),
        ],
    )
    def test_type_detection(self, rules_by_type, label, expected):
        row = ["2025-05-01", label, "ACME", "1", "10", "11", "10", ""]
        sale = map_row(row, MAPPING, rules_by_type, NOW)
        assert sale.product_type == expected

    def test_missing_completion_defaults_to_now(self, rules_by_type):
        row = ["", "BASICA", "ACME", "1", "10", "11", "10", "PAGO"]
        sale = map_row(row, MAPPING, rules_by_type, NOW)
        assert sale.is_pending
        assert sale.completion_date == NOW
        assert sale.boleto_status == BoletoStatus.PAID

    def test_missing_margin_derived(self, rules_by_type):
        row = ["2025-05-01", "BASICA", "ACME", "1", "100", "110", "", ""]
        sale = map_row(row, MAPPING, rules_by_type, NOW)
        assert sale.margin_percent == Decimal("10.00")
        assert sale.commission_rate_applied == Decimal("0.0075")

    def test_short_row_reads_blank_cells(self, rules_by_type):
        row = ["2025-05-01", "BASICA", "ACME", "1", "100", "110", "10"]
        sale = map_row(row, MAPPING, rules_by_type, NOW)
        assert sale.boleto_status == BoletoStatus.PENDING

    def test_logs_summary(self, rules_by_type, captured_logs):
        rows = [HEADER, ["2025-05-01", "BASICA", "ACME", "1", "10", "11", "10", ""], ["", "", "", ""]]
        map_rows(rows, MAPPING, rules_by_type, NOW)
        [summary] = [r for r in captured_logs() if r["message"] == "import_rows_mapped"]
        assert summary["row_count"] == 2
        assert summary["imported"] == 1
        assert summary["skipped"] == 1
