"""Tests for input boundary validation."""

import pytest
from decimal import Decimal
from datetime import date

from billing_tool.engine.draft import set_adjustment, set_manual_total
from billing_tool.engine.validator import (
    apply_adjustment_edit,
    apply_manual_total_edit,
    parse_amount,
    validate_entries,
)
from billing_tool.models import (
    AdjustmentField,
    DraftState,
    StrictValidationError,
    TimeEntry,
)


def _make_entry(**kwargs) -> TimeEntry:
    defaults = dict(
        id="t1",
        hours=Decimal("2"),
        rate=Decimal("100"),
        date=date(2026, 1, 10),
    )
    defaults.update(kwargs)
    return TimeEntry(**defaults)


class TestParseAmount:
    @pytest.mark.parametrize("text,expected", [
        ("12", Decimal("12")),
        ("12.5", Decimal("12.5")),
        ("12,5", Decimal("12.5")),
        (" 1 234,50 ", Decimal("1234.50")),
        ("0", Decimal("0")),
        ("1 000", Decimal("1000")),
    ])
    def test_valid(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [
        None, "", "   ", "abc", "-1", "-0.5", "1,2,3", "1.234,5", "NaN", "Infinity", "12eur",
        "1_000", "1e3", "+5", "0x10",
    ])
    def test_rejected(self, text):
        assert parse_amount(text) is None


class TestApplyEdits:
    def test_valid_adjustment_applied(self):
        state = apply_adjustment_edit(DraftState(), "t1", AdjustmentField.HOURS, "1,5")
        assert state.adjustment_for("t1").adjusted_hours == Decimal("1.5")

    def test_invalid_adjustment_keeps_previous_value(self):
        state = set_adjustment(DraftState(), "t1", AdjustmentField.AMOUNT, Decimal("80"))
        after = apply_adjustment_edit(state, "t1", AdjustmentField.AMOUNT, "-5")
        assert after is state
        assert after.adjustment_for("t1").adjusted_amount == Decimal("80")

    def test_valid_manual_total_applied(self):
        state = apply_manual_total_edit(DraftState(), "1 500,00")
        assert state.manual_total == Decimal("1500.00")

    def test_invalid_manual_total_keeps_previous_value(self):
        state = set_manual_total(DraftState(), Decimal("500"))
        after = apply_manual_total_edit(state, "lots")
        assert after is state
        assert after.manual_total == Decimal("500")


class TestValidateEntries:
    def test_valid_entries_pass(self):
        entries = [_make_entry(), _make_entry(id="t2")]
        assert validate_entries(entries) == entries

    def test_empty_is_valid(self):
        assert validate_entries([]) == []

    def test_zero_values_allowed(self):
        assert len(validate_entries([_make_entry(hours=Decimal("0"), rate=Decimal("0"))])) == 1

    def test_negative_hours_fail(self):
        with pytest.raises(StrictValidationError, match="negative hours"):
            validate_entries([_make_entry(hours=Decimal("-1"))])

    def test_negative_rate_fail(self):
        with pytest.raises(StrictValidationError, match="negative rate"):
            validate_entries([_make_entry(rate=Decimal("-100"))])

    def test_non_finite_fail(self):
        with pytest.raises(StrictValidationError, match="not finite"):
            validate_entries([_make_entry(hours=Decimal("NaN"))])

    def test_float_rejected(self):
        with pytest.raises(StrictValidationError, match="must be a Decimal"):
            validate_entries([_make_entry(rate=100.0)])

    def test_duplicate_ids_fail(self):
        with pytest.raises(StrictValidationError, match="appears 2 times"):
            validate_entries([_make_entry(), _make_entry()])

    def test_all_errors_reported(self):
        with pytest.raises(StrictValidationError) as exc_info:
            validate_entries([
                _make_entry(id="a", hours=Decimal("-1")),
                _make_entry(id="b", rate=Decimal("-1")),
            ])
        assert len(exc_info.value.errors) == 2
