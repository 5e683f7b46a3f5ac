"""CLI entry point.

Usage:
    python -m billing_tool summary \
        --entries "time_entries.json" \
        --xlsx "Unbilled.xlsx"

    python -m billing_tool draft \
        --entries "time_entries.json" \
        --client c1 \
        --period previous-month \
        --adjust-hours t1=1.5 \
        --manual-total 500 \
        --item "Court fee:1:75" \
        --audit-out "Draft.json"
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import typer

from billing_tool.config import get_settings
from billing_tool.formatting import format_amount, format_hours
from billing_tool.logging_config import configure_logging
from billing_tool.models import (
    AdjustmentField,
    BillingError,
    DraftState,
    ManualLineItem,
    StrictValidationError,
)
from billing_tool.engine.periods import PeriodFilter
from billing_tool.engine.validator import parse_amount

app = typer.Typer(help="Unbilled time summaries and invoice drafts.", no_args_is_help=True)


def _split_pair(raw: str) -> tuple[str, str]:
    if "=" not in raw:
        raise typer.BadParameter(f"expected ID=VALUE, got '{raw}'")
    entry_id, value = raw.split("=", 1)
    return entry_id.strip(), value


def _parse_item(raw: str, index: int) -> ManualLineItem:
    parts = raw.rsplit(":", 2)
    if len(parts) != 3:
        raise typer.BadParameter(f"expected DESCRIPTION:QTY:PRICE, got '{raw}'")
    description, qty_text, price_text = parts
    quantity = parse_amount(qty_text)
    unit_price = parse_amount(price_text)
    if quantity is None or unit_price is None:
        raise typer.BadParameter(f"invalid quantity or price in '{raw}'")
    return ManualLineItem(
        id=f"manual-{index}",
        description=description.strip(),
        quantity=quantity,
        unit_price=unit_price,
    )


@app.command()
def summary(
    entries: str = typer.Option(..., "--entries", help="JSON export of time entries"),
    client: Optional[list[str]] = typer.Option(None, "--client", help="Limit to these client ids"),
    include_invoiced: bool = typer.Option(False, "--include-invoiced", help="Also count invoiced entries"),
    xlsx: Optional[str] = typer.Option(None, "--xlsx", help="Write the summary to an Excel file"),
) -> None:
    """Show unbilled hours and amounts per client and case."""
    from billing_tool.engine import summarize
    from billing_tool.excel import generate_summary_report
    from billing_tool.sources import JsonFileEntrySource

    settings = get_settings()
    configure_logging(settings.log_level)
    locale = settings.amount_locale

    try:
        source = JsonFileEntrySource(entries)
        batches = source.batches()
        if client:
            wanted = set(client)
            batches = [(c, e) for c, e in batches if c.id in wanted]

        summaries = summarize(batches, unbilled_only=not include_invoiced)
        if not summaries:
            typer.echo("No unbilled time entries.")

        for s in summaries:
            oldest = s.oldest_entry_date.isoformat() if s.oldest_entry_date else "-"
            typer.echo(
                f"{s.client.name} ({s.client.id}): {s.entry_count} entries, "
                f"{format_hours(s.total_hours)}h, {format_amount(s.total_amount, locale)} {settings.currency}, "
                f"oldest {oldest}"
            )
            for g in s.case_groups:
                typer.echo(
                    f"    {g.case_number} {g.case_title}: {g.entry_count} entries, "
                    f"{format_hours(g.total_hours)}h, {format_amount(g.total_amount, locale)} {settings.currency}"
                )

        if xlsx:
            generate_summary_report(summaries, xlsx)
            typer.echo(f"\nExcel summary saved to: {xlsx}")

    except StrictValidationError as e:
        typer.echo("\nSTRICT VALIDATION FAILED:", err=True)
        for error in e.errors:
            typer.echo(f"  ERROR: {error}", err=True)
        raise typer.Exit(1)

    except (BillingError, OSError) as e:
        typer.echo(f"\nFATAL ERROR: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def draft(
    entries: str = typer.Option(..., "--entries", help="JSON export of time entries"),
    client: str = typer.Option(..., "--client", help="Client id to invoice"),
    period: PeriodFilter = typer.Option(PeriodFilter.ALL, "--period", help="Which unbilled entries to offer"),
    start: Optional[datetime] = typer.Option(None, "--start", formats=["%Y-%m-%d"], help="Manual period start"),
    end: Optional[datetime] = typer.Option(None, "--end", formats=["%Y-%m-%d"], help="Manual period end"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", help="Entry ids to leave out"),
    adjust_hours: Optional[list[str]] = typer.Option(None, "--adjust-hours", help="ID=HOURS override"),
    adjust_amount: Optional[list[str]] = typer.Option(None, "--adjust-amount", help="ID=AMOUNT override"),
    manual_total: Optional[str] = typer.Option(None, "--manual-total", help="Replace the time total"),
    item: Optional[list[str]] = typer.Option(None, "--item", help="Manual line DESCRIPTION:QTY:PRICE"),
    prepare: bool = typer.Option(False, "--prepare", help="Also show converted totals with VAT"),
    xlsx: Optional[str] = typer.Option(None, "--xlsx", help="Write the draft to an Excel file"),
    audit_out: Optional[str] = typer.Option(None, "--audit-out", help="Write the draft record JSON"),
) -> None:
    """Compute the totals of an invoice draft for one client."""
    from billing_tool.audit import generate_audit
    from billing_tool.engine import compute_totals, filter_by_period, prepare_invoice
    from billing_tool.engine.draft import add_manual_item, select_all, toggle_entry
    from billing_tool.engine.validator import apply_adjustment_edit, apply_manual_total_edit
    from billing_tool.excel import generate_draft_report
    from billing_tool.sources import JsonFileEntrySource

    settings = get_settings()
    configure_logging(settings.log_level)
    locale = settings.amount_locale

    try:
        source = JsonFileEntrySource(entries)
        client_ref = source.client(client)
        candidates = filter_by_period(
            source.fetch_unbilled_entries(client),
            period,
            start=start.date() if start else None,
            end=end.date() if end else None,
        )

        state = select_all(DraftState(), candidates)
        for entry_id in exclude or []:
            if state.is_selected(entry_id):
                state = toggle_entry(state, entry_id)

        for field, raw_values in ((AdjustmentField.HOURS, adjust_hours), (AdjustmentField.AMOUNT, adjust_amount)):
            for raw in raw_values or []:
                entry_id, text = _split_pair(raw)
                updated = apply_adjustment_edit(state, entry_id, field, text)
                if updated is state:
                    typer.echo(f"WARNING: ignored invalid {field.value} '{text}' for {entry_id}", err=True)
                state = updated

        if manual_total is not None:
            updated = apply_manual_total_edit(state, manual_total)
            if updated is state:
                typer.echo(f"WARNING: ignored invalid manual total '{manual_total}'", err=True)
            state = updated

        for i, raw in enumerate(item or []):
            state = add_manual_item(state, _parse_item(raw, i))

        totals = compute_totals(candidates, state)
        currency = settings.currency

        typer.echo(f"Client: {client_ref.name} ({client_ref.id})")
        typer.echo(f"Entries offered: {len(candidates)}, selected: {totals.selected_count}")
        typer.echo(f"  Hours:          {format_hours(totals.total_hours)}h")
        typer.echo(f"  Original total: {format_amount(totals.original_total, locale)} {currency}")
        typer.echo(f"  Time subtotal:  {format_amount(totals.total_time_amount, locale)} {currency}")
        if totals.has_discount:
            typer.echo(f"  Discount:      -{format_amount(totals.discount, locale)} {currency}")
        typer.echo(f"  Time total:     {format_amount(totals.final_total, locale)} {currency}")
        if state.manual_items:
            typer.echo(f"  Manual lines:   {format_amount(totals.manual_items_total, locale)} {currency}")
        typer.echo(f"\n  GRAND TOTAL: {format_amount(totals.grand_total, locale)} {currency}")

        if not totals.is_submittable:
            typer.echo("\nDraft is empty and cannot be submitted.")

        if prepare:
            invoice = prepare_invoice(
                candidates,
                state,
                client_ref,
                vat_rate=settings.vat_rate,
                exchange_rate=settings.exchange_rate,
                currency=currency,
                invoice_currency=settings.invoice_currency,
                due_days=settings.default_due_days,
            )
            ic = invoice.invoice_currency
            typer.echo(f"\nPrepared invoice ({len(invoice.lines)} lines, rate {invoice.exchange_rate}):")
            typer.echo(f"  Subtotal: {format_amount(invoice.subtotal_converted, locale)} {ic}")
            typer.echo(f"  VAT:      {format_amount(invoice.vat_amount, locale)} {ic}")
            typer.echo(f"  Total:    {format_amount(invoice.total, locale)} {ic}")
            typer.echo(f"  Due:      {invoice.due_date.isoformat()}")

        if xlsx:
            generate_draft_report(candidates, state, client_ref, xlsx)
            typer.echo(f"\nExcel draft saved to: {xlsx}")

        if audit_out:
            generate_audit(candidates, state, client_ref, audit_out)
            typer.echo(f"Draft record saved to: {audit_out}")

    except StrictValidationError as e:
        typer.echo("\nSTRICT VALIDATION FAILED:", err=True)
        for error in e.errors:
            typer.echo(f"  ERROR: {error}", err=True)
        raise typer.Exit(1)

    except (BillingError, OSError) as e:
        typer.echo(f"\nFATAL ERROR: {e}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
