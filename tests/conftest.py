"""
Pytest fixtures for the sales core test suite.

Provides:
- Structured logging configured once per session, plus a capture fixture
- An in-memory SQLite database (fresh per test) and a session on it
- Deterministic clock, user scope, shipped defaults and undo history
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from sales_config import get_defaults
from sales_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from sales_kernel.domain.clock import DeterministicClock
from sales_kernel.domain.scope import UserScope
from sales_kernel.domain.types import ProductType, SaleInput
from sales_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from sales_services.snapshot import SnapshotManager

TEST_USER_ID = "user-1"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture sales_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.clear_sales()
            logs = captured_logs()
            assert any(r["message"] == "sales_cleared" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("sales_kernel")
    previous_level = root.level
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database with every table created."""
    reset_engine()
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine):
    """Session on the test database; rolled back and closed afterwards."""
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def scope():
    return UserScope(TEST_USER_ID)


@pytest.fixture
def defaults():
    """Shipped defaults (rule tables, configs, import template, backup naming)."""
    return get_defaults()


@pytest.fixture
def snapshots(clock):
    return SnapshotManager(depth=1, clock=clock)


@pytest.fixture
def make_sale_input():
    """Factory for SaleInput with sensible BASICA defaults."""

    def _make(**overrides) -> SaleInput:
        values = {
            "client": "ACME",
            "quantity": Decimal("10"),
            "product_type": ProductType.BASICA,
            "value_proposed": Decimal("75"),
            "value_sold": Decimal("80"),
            "margin_percent": Decimal("6.66"),
            "billing_date": datetime(2025, 5, 20, tzinfo=timezone.utc),
            "completion_date": datetime(2025, 5, 15, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return SaleInput(**values)

    return _make
