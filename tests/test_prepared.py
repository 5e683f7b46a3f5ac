"""Tests for prepared invoices."""

import pytest
from decimal import Decimal
from datetime import date

from billing_tool.engine.draft import add_manual_item, compute_totals, set_adjustment, set_manual_total
from billing_tool.engine.prepared import (
    DISCOUNT_LINE_NAME,
    PREMIUM_LINE_NAME,
    build_line_items,
    prepare_invoice,
)
from billing_tool.models import (
    AdjustmentField,
    CaseRef,
    ClientRef,
    DraftNotSubmittableError,
    DraftState,
    LineType,
    ManualLineItem,
    TimeEntry,
)

ACME = ClientRef(id="c1", name="Acme SRL")
CASE_A = CaseRef(id="kA", number="100/2026", title="Acme v. Beta")


def _make_entry(entry_id, hours, rate, description="") -> TimeEntry:
    return TimeEntry(
        id=entry_id,
        hours=Decimal(hours),
        rate=Decimal(rate),
        date=date(2026, 1, 10),
        case=CASE_A,
        description=description,
    )


def _entries() -> list[TimeEntry]:
    return [
        _make_entry("t1", "2", "100", description="Drafting the claim"),
        _make_entry("t2", "3", "150"),
    ]


def _all_selected() -> DraftState:
    return DraftState(selected_ids=("t1", "t2"))


class TestBuildLineItems:
    def test_time_entry_lines(self):
        lines = build_line_items(_entries(), _all_selected())
        assert len(lines) == 2
        first, second = lines
        assert first.line_type is LineType.TIME_ENTRY
        assert first.name == "Drafting the claim"
        assert first.time_entry_id == "t1"
        assert first.quantity == Decimal("2")
        assert first.unit_price == Decimal("100")
        assert first.amount == Decimal("200")
        assert not first.was_adjusted
        assert second.name == "Legal services 2026-01-10"

    def test_adjusted_line_keeps_original_values(self):
        state = set_adjustment(_all_selected(), "t2", AdjustmentField.AMOUNT, Decimal("400"))
        line = build_line_items(_entries(), state)[1]
        assert line.was_adjusted
        assert line.amount == Decimal("400")
        assert line.quantity == Decimal("3")
        assert line.original_hours == Decimal("3")
        assert line.original_rate == Decimal("150")

    def test_amount_override_on_zero_hours(self):
        state = set_adjustment(_all_selected(), "t1", AdjustmentField.HOURS, Decimal("0"))
        state = set_adjustment(state, "t1", AdjustmentField.AMOUNT, Decimal("50"))
        line = build_line_items(_entries(), state)[0]
        assert line.quantity == Decimal("0")
        assert line.amount == Decimal("50")

    def test_discount_line(self):
        state = set_manual_total(_all_selected(), Decimal("500"))
        lines = build_line_items(_entries(), state)
        discount = lines[-1]
        assert discount.line_type is LineType.DISCOUNT
        assert discount.name == DISCOUNT_LINE_NAME
        assert discount.amount == Decimal("-150")

    def test_premium_line(self):
        state = set_manual_total(_all_selected(), Decimal("700"))
        lines = build_line_items(_entries(), state)
        assert lines[-1].name == PREMIUM_LINE_NAME
        assert lines[-1].amount == Decimal("50")

    def test_manual_lines_last(self):
        state = add_manual_item(_all_selected(), ManualLineItem(
            id="m1", description="Court fee", quantity=Decimal("2"), unit_price=Decimal("75"),
        ))
        lines = build_line_items(_entries(), state)
        assert lines[-1].line_type is LineType.MANUAL
        assert lines[-1].name == "Court fee"
        assert lines[-1].amount == Decimal("150")

    @pytest.mark.parametrize("manual_total", [None, "0", "333.33", "650", "1000"])
    def test_lines_add_up_to_grand_total(self, manual_total):
        state = set_adjustment(_all_selected(), "t1", AdjustmentField.AMOUNT, Decimal("100"))
        state = set_adjustment(state, "t2", AdjustmentField.HOURS, Decimal("2.5"))
        if manual_total is not None:
            state = set_manual_total(state, Decimal(manual_total))
        state = add_manual_item(state, ManualLineItem(
            id="m1", description="Copies", quantity=Decimal("7"), unit_price=Decimal("0.35"),
        ))
        lines = build_line_items(_entries(), state)
        totals = compute_totals(_entries(), state)
        assert sum(line.amount for line in lines) == totals.grand_total


class TestPrepareInvoice:
    def test_conversion_and_vat(self):
        invoice = prepare_invoice(
            _entries(),
            _all_selected(),
            ACME,
            case=CASE_A,
            vat_rate=Decimal("19"),
            exchange_rate=Decimal("5"),
            issue_date=date(2026, 2, 1),
            due_days=30,
        )
        assert invoice.subtotal == Decimal("650")
        assert invoice.subtotal_converted == Decimal("3250")
        assert invoice.vat_amount == Decimal("617.5")
        assert invoice.total == Decimal("3867.5")
        assert invoice.lines[0].amount_converted == Decimal("1000")
        assert invoice.lines[0].vat_amount == Decimal("190")
        assert invoice.lines[0].total == Decimal("1190")

    def test_dates(self):
        invoice = prepare_invoice(
            _entries(), _all_selected(), ACME, issue_date=date(2026, 1, 15), due_days=14,
        )
        assert invoice.issue_date == date(2026, 1, 15)
        assert invoice.due_date == date(2026, 1, 29)

    def test_defaults_no_vat_no_conversion(self):
        invoice = prepare_invoice(_entries(), _all_selected(), ACME)
        assert invoice.vat_amount == Decimal("0")
        assert invoice.total == Decimal("650")
        assert invoice.currency == "EUR"
        assert invoice.invoice_currency == "RON"

    def test_discount_reduces_subtotal(self):
        state = set_manual_total(_all_selected(), Decimal("500"))
        invoice = prepare_invoice(_entries(), state, ACME)
        assert invoice.subtotal == Decimal("500")
        assert invoice.totals.discount == Decimal("150")

    def test_empty_draft_rejected(self):
        with pytest.raises(DraftNotSubmittableError):
            prepare_invoice(_entries(), DraftState(), ACME)

    def test_manual_only_draft_allowed(self):
        state = add_manual_item(DraftState(), ManualLineItem(
            id="m1", description="Consultation", unit_price=Decimal("250"),
        ))
        invoice = prepare_invoice(_entries(), state, ACME)
        assert len(invoice.lines) == 1
        assert invoice.subtotal == Decimal("250")
