"""Layer 2 - Canonical data model for unbilled time and invoice drafts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

ZERO = Decimal("0")

# Grouping key for time entries logged without a case.
NO_CASE_ID = "no-case"
NO_CASE_NUMBER = "-"
NO_CASE_TITLE = "No case"


class AdjustmentField(Enum):
    HOURS = "hours"
    AMOUNT = "amount"


class LineType(Enum):
    TIME_ENTRY = "TimeEntry"
    MANUAL = "Manual"
    DISCOUNT = "Discount"


@dataclass(frozen=True)
class CaseRef:
    id: str
    number: str
    title: str


@dataclass(frozen=True)
class ClientRef:
    id: str
    name: str


@dataclass(frozen=True)
class TimeEntry:
    """One time entry as supplied by the data source. Never mutated here."""
    id: str
    hours: Decimal
    rate: Decimal
    date: date
    invoiced: bool = False
    case: Optional[CaseRef] = None
    description: str = ""
    user_name: Optional[str] = None

    @property
    def amount(self) -> Decimal:
        return self.hours * self.rate

    @property
    def case_key(self) -> str:
        return self.case.id if self.case is not None else NO_CASE_ID


@dataclass
class CaseGroup:
    """All of one client's entries that share a case."""
    case_id: str
    case_number: str
    case_title: str
    entries: list[TimeEntry] = field(default_factory=list)

    @property
    def total_hours(self) -> Decimal:
        return sum((e.hours for e in self.entries), ZERO)

    @property
    def total_amount(self) -> Decimal:
        return sum((e.amount for e in self.entries), ZERO)

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def entry_ids(self) -> list[str]:
        return [e.id for e in self.entries]


@dataclass
class ClientSummary:
    """Roll-up of one client's case groups."""
    client: ClientRef
    case_groups: list[CaseGroup] = field(default_factory=list)

    @property
    def total_hours(self) -> Decimal:
        return sum((g.total_hours for g in self.case_groups), ZERO)

    @property
    def total_amount(self) -> Decimal:
        return sum((g.total_amount for g in self.case_groups), ZERO)

    @property
    def entry_count(self) -> int:
        return sum(g.entry_count for g in self.case_groups)

    @property
    def oldest_entry_date(self) -> Optional[date]:
        dates = [e.date for g in self.case_groups for e in g.entries]
        return min(dates) if dates else None


@dataclass(frozen=True)
class LineItemAdjustment:
    """Per-line override of hours and/or amount. ``None`` means "use the computed value"."""
    adjusted_hours: Optional[Decimal] = None
    adjusted_amount: Optional[Decimal] = None

    @property
    def is_empty(self) -> bool:
        return self.adjusted_hours is None and self.adjusted_amount is None


@dataclass(frozen=True)
class ManualLineItem:
    id: str
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = ZERO

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class DraftState:
    """Everything the user has decided about an invoice draft so far.

    Instances are immutable; the functions in ``billing_tool.engine.draft``
    return a new state for every change. ``adjustments`` is stored as a
    read-only mapping and left out of the hash.
    """
    selected_ids: tuple[str, ...] = ()
    adjustments: Mapping[str, LineItemAdjustment] = field(default_factory=dict, hash=False)
    manual_total: Optional[Decimal] = None
    manual_items: tuple[ManualLineItem, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "adjustments", MappingProxyType(dict(self.adjustments)))

    def is_selected(self, entry_id: str) -> bool:
        return entry_id in self.selected_ids

    def adjustment_for(self, entry_id: str) -> Optional[LineItemAdjustment]:
        return self.adjustments.get(entry_id)


@dataclass(frozen=True)
class EffectiveValues:
    hours: Decimal
    amount: Decimal


@dataclass(frozen=True)
class Totals:
    """Live totals of an invoice draft."""
    original_total: Decimal
    total_time_amount: Decimal
    total_hours: Decimal
    final_total: Decimal
    discount: Decimal
    manual_items_total: Decimal
    grand_total: Decimal
    selected_count: int = 0
    has_billable_manual_item: bool = False

    @property
    def has_discount(self) -> bool:
        return self.discount > 0

    @property
    def is_submittable(self) -> bool:
        return self.selected_count > 0 or self.has_billable_manual_item


@dataclass(frozen=True)
class LineItem:
    """A prepared invoice line, amounts in the source currency.

    ``amount`` is carried explicitly: for an amount override the unit price
    is only the amount spread over the hours, and multiplying it back out
    could lose precision.
    """
    name: str
    line_type: LineType
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    time_entry_id: Optional[str] = None
    original_hours: Optional[Decimal] = None
    original_rate: Optional[Decimal] = None
    was_adjusted: bool = False


@dataclass(frozen=True)
class PreparedLine:
    item: LineItem
    amount_converted: Decimal
    vat_rate: Decimal
    vat_amount: Decimal

    @property
    def amount(self) -> Decimal:
        return self.item.amount

    @property
    def total(self) -> Decimal:
        return self.amount_converted + self.vat_amount


@dataclass
class PreparedInvoice:
    """A draft ready to hand to the invoicing backend."""
    client: ClientRef
    case: Optional[CaseRef]
    lines: list[PreparedLine]
    currency: str
    invoice_currency: str
    exchange_rate: Decimal
    issue_date: date
    due_date: date
    totals: Totals
    notes: str = ""

    @property
    def subtotal(self) -> Decimal:
        return sum((line.amount for line in self.lines), ZERO)

    @property
    def subtotal_converted(self) -> Decimal:
        return self.subtotal * self.exchange_rate

    @property
    def vat_amount(self) -> Decimal:
        return sum((line.vat_amount for line in self.lines), ZERO)

    @property
    def total(self) -> Decimal:
        return self.subtotal_converted + self.vat_amount


class BillingError(Exception):
    """Base class for billing errors."""


class StrictValidationError(BillingError):
    """Raised when strict validation fails."""
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Strict validation failed with {len(errors)} error(s):\n" +
                         "\n".join(f"  - {e}" for e in errors))


class DraftNotSubmittableError(BillingError):
    """Raised when a draft has neither selected entries nor a billable manual line."""


class UnknownClientError(BillingError):
    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Unknown client: {client_id}")
