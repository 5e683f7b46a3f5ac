"""Tests for period filtering."""

import pytest
from decimal import Decimal
from datetime import date

from billing_tool.engine.periods import PeriodFilter, filter_by_period, previous_month_range
from billing_tool.models import TimeEntry


def _make_entry(entry_id, dt, invoiced=False) -> TimeEntry:
    return TimeEntry(
        id=entry_id,
        hours=Decimal("1"),
        rate=Decimal("100"),
        date=dt,
        invoiced=invoiced,
    )


def _entries() -> list[TimeEntry]:
    return [
        _make_entry("nov30", date(2025, 11, 30)),
        _make_entry("dec01", date(2025, 12, 1)),
        _make_entry("dec15", date(2025, 12, 15)),
        _make_entry("dec15-billed", date(2025, 12, 15), invoiced=True),
        _make_entry("dec31", date(2025, 12, 31)),
        _make_entry("jan01", date(2026, 1, 1)),
    ]


def _ids(entries) -> list[str]:
    return [e.id for e in entries]


class TestPreviousMonthRange:
    def test_mid_month(self):
        assert previous_month_range(date(2026, 3, 17)) == (date(2026, 2, 1), date(2026, 2, 28))

    def test_january_rolls_back_a_year(self):
        assert previous_month_range(date(2026, 1, 5)) == (date(2025, 12, 1), date(2025, 12, 31))

    def test_leap_february(self):
        assert previous_month_range(date(2024, 3, 1)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_first_of_month(self):
        assert previous_month_range(date(2026, 5, 1)) == (date(2026, 4, 1), date(2026, 4, 30))


class TestFilterByPeriod:
    def test_all_drops_invoiced_only(self):
        result = filter_by_period(_entries(), PeriodFilter.ALL)
        assert _ids(result) == ["nov30", "dec01", "dec15", "dec31", "jan01"]

    def test_previous_month_inclusive(self):
        result = filter_by_period(_entries(), PeriodFilter.PREVIOUS_MONTH, today=date(2026, 1, 20))
        assert _ids(result) == ["dec01", "dec15", "dec31"]

    def test_manual_range_inclusive(self):
        result = filter_by_period(
            _entries(), PeriodFilter.MANUAL, start=date(2025, 11, 30), end=date(2025, 12, 15),
        )
        assert _ids(result) == ["nov30", "dec01", "dec15"]

    @pytest.mark.parametrize("start,end", [
        (None, date(2025, 12, 15)),
        (date(2025, 12, 1), None),
        (None, None),
    ])
    def test_manual_without_both_bounds_shows_all(self, start, end):
        result = filter_by_period(_entries(), PeriodFilter.MANUAL, start=start, end=end)
        assert len(result) == 5

    def test_bounds_ignored_unless_manual(self):
        result = filter_by_period(
            _entries(), PeriodFilter.ALL, start=date(2026, 1, 1), end=date(2026, 1, 1),
        )
        assert len(result) == 5

    def test_empty(self):
        assert filter_by_period([], PeriodFilter.PREVIOUS_MONTH, today=date(2026, 1, 1)) == []

    def test_enum_values(self):
        assert PeriodFilter("previous-month") is PeriodFilter.PREVIOUS_MONTH
        assert PeriodFilter("manual") is PeriodFilter.MANUAL
