"""Pydantic request/response models for the Billing API.

Money and hours are Decimals end to end; pydantic writes them to JSON as
strings so no precision is lost on the way out.
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from billing_tool.engine.periods import PeriodFilter


# --- Requests ---------------------------------------------------------------

class CaseIn(BaseModel):
    id: str
    number: str = "-"
    title: str = ""


class ClientIn(BaseModel):
    id: str
    name: str = ""


class TimeEntryIn(BaseModel):
    id: str
    hours: Decimal = Field(ge=0)
    rate: Decimal = Field(ge=0)
    date: datetime.date
    invoiced: bool = False
    case: CaseIn | None = None
    description: str = ""
    user_name: str | None = None


class ClientBatchIn(ClientIn):
    entries: list[TimeEntryIn] = []


class SummaryRequest(BaseModel):
    clients: list[ClientBatchIn]
    unbilled_only: bool = True


class AdjustmentIn(BaseModel):
    adjusted_hours: Decimal | None = Field(default=None, ge=0)
    adjusted_amount: Decimal | None = Field(default=None, ge=0)


class ManualItemIn(BaseModel):
    id: str
    description: str = ""
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class DraftRequest(BaseModel):
    client: ClientIn
    entries: list[TimeEntryIn]
    period: PeriodFilter = PeriodFilter.ALL
    start: datetime.date | None = None
    end: datetime.date | None = None
    today: datetime.date | None = None
    selected_ids: list[str] | None = None  # None selects every offered entry
    adjustments: dict[str, AdjustmentIn] = {}
    manual_total: Decimal | None = Field(default=None, ge=0)
    manual_items: list[ManualItemIn] = []


class PrepareRequest(DraftRequest):
    case: CaseIn | None = None
    vat_rate: Decimal | None = Field(default=None, ge=0)
    exchange_rate: Decimal | None = Field(default=None, gt=0)
    issue_date: datetime.date | None = None
    due_days: int | None = Field(default=None, ge=0)
    notes: str = ""


# --- Responses --------------------------------------------------------------

class CaseGroupOut(BaseModel):
    case_id: str
    case_number: str
    case_title: str
    entry_ids: list[str]
    entry_count: int
    total_hours: Decimal
    total_amount: Decimal


class ClientSummaryOut(BaseModel):
    client_id: str
    client_name: str
    entry_count: int
    total_hours: Decimal
    total_amount: Decimal
    oldest_entry_date: datetime.date | None = None
    case_groups: list[CaseGroupOut]


class SummaryResponse(BaseModel):
    success: bool
    clients: list[ClientSummaryOut] | None = None
    error_type: str | None = None
    errors: list[str] | None = None


class EntryValuesOut(BaseModel):
    entry_id: str
    hours: Decimal
    amount: Decimal
    hours_adjusted: bool
    amount_adjusted: bool


class TotalsOut(BaseModel):
    original_total: Decimal
    total_time_amount: Decimal
    total_hours: Decimal
    final_total: Decimal
    discount: Decimal
    manual_items_total: Decimal
    grand_total: Decimal
    selected_count: int
    has_discount: bool
    is_submittable: bool


class DraftResponse(BaseModel):
    success: bool
    offered_ids: list[str] | None = None
    totals: TotalsOut | None = None
    entries: list[EntryValuesOut] | None = None
    error_type: str | None = None
    errors: list[str] | None = None


class PreparedLineOut(BaseModel):
    name: str
    line_type: str
    time_entry_id: str | None = None
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    amount_converted: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    was_adjusted: bool


class PreparedInvoiceOut(BaseModel):
    client_id: str
    case_id: str | None = None
    currency: str
    invoice_currency: str
    exchange_rate: Decimal
    issue_date: datetime.date
    due_date: datetime.date
    subtotal: Decimal
    subtotal_converted: Decimal
    vat_amount: Decimal
    total: Decimal
    lines: list[PreparedLineOut]


class PrepareResponse(BaseModel):
    success: bool
    invoice: PreparedInvoiceOut | None = None
    totals: TotalsOut | None = None
    error_type: str | None = None
    errors: list[str] | None = None
