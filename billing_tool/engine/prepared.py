"""Layer 5 - Prepared invoice.

Turns a draft into invoice lines and currency totals. The lines always add
up to the draft's grand total: a manual total shows up as a discount line
(or a premium line when it is above the time amount).
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from billing_tool.engine.draft import compute_totals, effective_values, selected_entries
from billing_tool.models import (
    CaseRef,
    ClientRef,
    DraftNotSubmittableError,
    DraftState,
    LineItem,
    LineType,
    PreparedInvoice,
    PreparedLine,
    TimeEntry,
)

logger = logging.getLogger(__name__)

DISCOUNT_LINE_NAME = "Discount"
PREMIUM_LINE_NAME = "Adjustment"


def _time_entry_line(entry: TimeEntry, state: DraftState) -> LineItem:
    adjustment = state.adjustment_for(entry.id)
    values = effective_values(entry, adjustment)
    if values.hours:
        unit_price = values.amount / values.hours
    else:
        unit_price = values.amount
    return LineItem(
        name=entry.description or f"Legal services {entry.date.isoformat()}",
        line_type=LineType.TIME_ENTRY,
        quantity=values.hours,
        unit_price=unit_price,
        amount=values.amount,
        time_entry_id=entry.id,
        original_hours=entry.hours,
        original_rate=entry.rate,
        was_adjusted=adjustment is not None and not adjustment.is_empty,
    )


def build_line_items(entries: Iterable[TimeEntry], state: DraftState) -> list[LineItem]:
    """Invoice lines for a draft, in display order."""
    entries = list(entries)
    totals = compute_totals(entries, state)
    lines = [_time_entry_line(e, state) for e in selected_entries(entries, state)]

    if totals.has_discount:
        lines.append(LineItem(
            name=DISCOUNT_LINE_NAME,
            line_type=LineType.DISCOUNT,
            quantity=Decimal("1"),
            unit_price=-totals.discount,
            amount=-totals.discount,
        ))
    elif totals.final_total > totals.total_time_amount:
        premium = totals.final_total - totals.total_time_amount
        lines.append(LineItem(
            name=PREMIUM_LINE_NAME,
            line_type=LineType.MANUAL,
            quantity=Decimal("1"),
            unit_price=premium,
            amount=premium,
        ))

    for item in state.manual_items:
        lines.append(LineItem(
            name=item.description,
            line_type=LineType.MANUAL,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=item.amount,
        ))

    return lines


def prepare_invoice(
    entries: Iterable[TimeEntry],
    state: DraftState,
    client: ClientRef,
    *,
    case: Optional[CaseRef] = None,
    vat_rate: Decimal = Decimal("0"),
    exchange_rate: Decimal = Decimal("1"),
    currency: str = "EUR",
    invoice_currency: str = "RON",
    issue_date: Optional[date] = None,
    due_days: int = 30,
    notes: str = "",
) -> PreparedInvoice:
    """Build a prepared invoice from a draft.

    Amounts are converted with ``exchange_rate`` and VAT (a percentage) is
    charged on the converted amount of each line.
    """
    entries = list(entries)
    totals = compute_totals(entries, state)
    if not totals.is_submittable:
        raise DraftNotSubmittableError(
            "Draft has no selected time entries and no billable manual line"
        )

    prepared_lines = []
    for item in build_line_items(entries, state):
        converted = item.amount * exchange_rate
        prepared_lines.append(PreparedLine(
            item=item,
            amount_converted=converted,
            vat_rate=vat_rate,
            vat_amount=converted * vat_rate / 100,
        ))

    issue_date = issue_date or date.today()
    invoice = PreparedInvoice(
        client=client,
        case=case,
        lines=prepared_lines,
        currency=currency,
        invoice_currency=invoice_currency,
        exchange_rate=exchange_rate,
        issue_date=issue_date,
        due_date=issue_date + timedelta(days=due_days),
        totals=totals,
        notes=notes,
    )
    logger.info(
        "Prepared invoice for client %s: %d line(s), subtotal %s %s",
        client.id, len(prepared_lines), invoice.subtotal, currency,
    )
    return invoice
