"""API routes for the Billing API."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from billing_tool.config import get_settings
from billing_tool.engine import (
    compute_totals,
    effective_values,
    filter_by_period,
    prepare_invoice,
    summarize,
    validate_entries,
)
from billing_tool.engine.draft import select_all
from billing_tool.models import (
    BillingError,
    CaseRef,
    ClientRef,
    DraftNotSubmittableError,
    DraftState,
    LineItemAdjustment,
    ManualLineItem,
    StrictValidationError,
    TimeEntry,
    Totals,
)

from api.schemas import (
    CaseGroupOut,
    CaseIn,
    ClientSummaryOut,
    DraftRequest,
    DraftResponse,
    EntryValuesOut,
    PreparedInvoiceOut,
    PreparedLineOut,
    PrepareRequest,
    PrepareResponse,
    SummaryRequest,
    SummaryResponse,
    TimeEntryIn,
    TotalsOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")


def _case(case: CaseIn | None) -> CaseRef | None:
    if case is None:
        return None
    return CaseRef(id=case.id, number=case.number, title=case.title)


def _entry(raw: TimeEntryIn) -> TimeEntry:
    return TimeEntry(
        id=raw.id,
        hours=raw.hours,
        rate=raw.rate,
        date=raw.date,
        invoiced=raw.invoiced,
        case=_case(raw.case),
        description=raw.description,
        user_name=raw.user_name,
    )


def _draft(request: DraftRequest) -> tuple[list[TimeEntry], DraftState]:
    """Offered entries and the draft state described by a request."""
    entries = validate_entries(_entry(e) for e in request.entries)
    offered = filter_by_period(
        entries, request.period, start=request.start, end=request.end, today=request.today,
    )

    if request.selected_ids is None:
        selected = select_all(DraftState(), offered).selected_ids
    else:
        selected = tuple(dict.fromkeys(request.selected_ids))

    adjustments = {
        entry_id: LineItemAdjustment(adjusted_hours=adj.adjusted_hours, adjusted_amount=adj.adjusted_amount)
        for entry_id, adj in request.adjustments.items()
    }
    state = DraftState(
        selected_ids=selected,
        adjustments={k: v for k, v in adjustments.items() if not v.is_empty},
        manual_total=request.manual_total,
        manual_items=tuple(
            ManualLineItem(id=i.id, description=i.description, quantity=i.quantity, unit_price=i.unit_price)
            for i in request.manual_items
        ),
    )
    return offered, state


def _totals(totals: Totals) -> TotalsOut:
    return TotalsOut(
        original_total=totals.original_total,
        total_time_amount=totals.total_time_amount,
        total_hours=totals.total_hours,
        final_total=totals.final_total,
        discount=totals.discount,
        manual_items_total=totals.manual_items_total,
        grand_total=totals.grand_total,
        selected_count=totals.selected_count,
        has_discount=totals.has_discount,
        is_submittable=totals.is_submittable,
    )


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.post("/summary", response_model=SummaryResponse)
async def summary(request: SummaryRequest):
    """Unbilled client and case roll-ups for per-client batches of entries."""
    try:
        batches = [
            (ClientRef(id=c.id, name=c.name), validate_entries(_entry(e) for e in c.entries))
            for c in request.clients
        ]
    except StrictValidationError as e:
        return SummaryResponse(success=False, error_type="validation_error", errors=e.errors)

    summaries = summarize(batches, unbilled_only=request.unbilled_only)
    return SummaryResponse(
        success=True,
        clients=[
            ClientSummaryOut(
                client_id=s.client.id,
                client_name=s.client.name,
                entry_count=s.entry_count,
                total_hours=s.total_hours,
                total_amount=s.total_amount,
                oldest_entry_date=s.oldest_entry_date,
                case_groups=[
                    CaseGroupOut(
                        case_id=g.case_id,
                        case_number=g.case_number,
                        case_title=g.case_title,
                        entry_ids=g.entry_ids,
                        entry_count=g.entry_count,
                        total_hours=g.total_hours,
                        total_amount=g.total_amount,
                    )
                    for g in s.case_groups
                ],
            )
            for s in summaries
        ],
    )


@router.post("/draft/totals", response_model=DraftResponse)
async def draft_totals(request: DraftRequest):
    """Live totals of an invoice draft plus the effective values of every offered entry."""
    try:
        offered, state = _draft(request)
    except StrictValidationError as e:
        return DraftResponse(success=False, error_type="validation_error", errors=e.errors)

    values = []
    for entry in offered:
        adjustment = state.adjustment_for(entry.id)
        effective = effective_values(entry, adjustment)
        values.append(EntryValuesOut(
            entry_id=entry.id,
            hours=effective.hours,
            amount=effective.amount,
            hours_adjusted=adjustment is not None and adjustment.adjusted_hours is not None,
            amount_adjusted=adjustment is not None and adjustment.adjusted_amount is not None,
        ))

    return DraftResponse(
        success=True,
        offered_ids=[e.id for e in offered],
        totals=_totals(compute_totals(offered, state)),
        entries=values,
    )


@router.post("/draft/prepare", response_model=PrepareResponse)
async def draft_prepare(request: PrepareRequest):
    """Turn a draft into prepared invoice lines with currency conversion and VAT."""
    settings = get_settings()
    client = ClientRef(id=request.client.id, name=request.client.name)

    try:
        offered, state = _draft(request)
        invoice = prepare_invoice(
            offered,
            state,
            client,
            case=_case(request.case),
            vat_rate=request.vat_rate if request.vat_rate is not None else settings.vat_rate,
            exchange_rate=request.exchange_rate if request.exchange_rate is not None else settings.exchange_rate,
            currency=settings.currency,
            invoice_currency=settings.invoice_currency,
            issue_date=request.issue_date,
            due_days=request.due_days if request.due_days is not None else settings.default_due_days,
            notes=request.notes,
        )
    except StrictValidationError as e:
        return PrepareResponse(success=False, error_type="validation_error", errors=e.errors)
    except DraftNotSubmittableError as e:
        return PrepareResponse(success=False, error_type="empty_draft", errors=[str(e)])
    except BillingError as e:
        logger.exception("Failed to prepare invoice for client %s", client.id)
        return PrepareResponse(success=False, error_type="processing_error", errors=[str(e)])

    return PrepareResponse(
        success=True,
        totals=_totals(invoice.totals),
        invoice=PreparedInvoiceOut(
            client_id=client.id,
            case_id=invoice.case.id if invoice.case else None,
            currency=invoice.currency,
            invoice_currency=invoice.invoice_currency,
            exchange_rate=invoice.exchange_rate,
            issue_date=invoice.issue_date,
            due_date=invoice.due_date,
            subtotal=invoice.subtotal,
            subtotal_converted=invoice.subtotal_converted,
            vat_amount=invoice.vat_amount,
            total=invoice.total,
            lines=[
                PreparedLineOut(
                    name=line.item.name,
                    line_type=line.item.line_type.value,
                    time_entry_id=line.item.time_entry_id,
                    quantity=line.item.quantity,
                    unit_price=line.item.unit_price,
                    amount=line.amount,
                    amount_converted=line.amount_converted,
                    vat_rate=line.vat_rate,
                    vat_amount=line.vat_amount,
                    was_adjusted=line.item.was_adjusted,
                )
                for line in invoice.lines
            ],
        ),
    )
