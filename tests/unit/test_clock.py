"""Tests for the injectable clocks."""

from datetime import datetime, timedelta, timezone

from sales_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def setup_method(self):
        self.start = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
        self.clock = DeterministicClock(self.start)

    def test_fixed_until_moved(self):
        assert self.clock.now() == self.start
        assert self.clock.now() == self.start

    def test_advance_and_advance_days(self):
        self.clock.advance(30)
        self.clock.advance_days(2)
        assert self.clock.now() == self.start + timedelta(days=2, seconds=30)

    def test_set_time(self):
        later = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.clock.advance(5)
        self.clock.set_time(later)
        assert self.clock.now() == later

    def test_default_instant(self):
        assert DeterministicClock().now() == datetime(2025, 1, 1, 12, tzinfo=timezone.utc)


def test_system_clock_is_utc_aware():
    assert SystemClock().now().tzinfo is timezone.utc
