"""Tests for the engine tracer decorator and input fingerprints."""

from decimal import Decimal

from sales_engines.tracer import compute_input_fingerprint, traced_engine
from sales_kernel.domain.types import ProductType


@traced_engine("sample", "2.1", fingerprint_fields=("amount", "kind"))
def _sample_engine(amount, kind, note=""):
    return amount * 2


class TestTracedEngine:
    """Tests for @traced_engine."""

    def test_result_passes_through(self):
        assert _sample_engine(Decimal("1.5"), ProductType.NATAL) == Decimal("3.0")
        assert _sample_engine.__name__ == "_sample_engine"

    def test_trace_record(self, captured_logs):
        _sample_engine(Decimal("1.5"), kind=ProductType.NATAL)

        [record] = [r for r in captured_logs() if r["message"] == "SALES_ENGINE_TRACE"]
        assert record["engine_name"] == "sample"
        assert record["engine_version"] == "2.1"
        assert record["trace_type"] == "SALES_ENGINE_TRACE"
        assert record["duration_ms"] >= 0

    def test_positional_and_keyword_fingerprints_match(self, captured_logs):
        _sample_engine(Decimal("1.5"), ProductType.NATAL)
        _sample_engine(amount=Decimal("1.5"), kind=ProductType.NATAL, note="ignored")

        traces = [r for r in captured_logs() if r["message"] == "SALES_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]


class TestComputeInputFingerprint:
    """Tests for fingerprint determinism."""

    def test_dict_key_order_irrelevant(self):
        a = compute_input_fingerprint(("d",), {"d": {"x": 1, "y": 2}})
        b = compute_input_fingerprint(("d",), {"d": {"y": 2, "x": 1}})
        assert a == b
        assert len(a) == 16

    def test_values_change_fingerprint(self):
        a = compute_input_fingerprint(("v",), {"v": Decimal("1")})
        b = compute_input_fingerprint(("v",), {"v": Decimal("2")})
        assert a != b

    def test_unbound_field_is_null(self):
        assert compute_input_fingerprint(("v",), {}) == compute_input_fingerprint(
            ("v",), {"v": None}
        )
