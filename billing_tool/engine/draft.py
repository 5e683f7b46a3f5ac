"""Layer 4 - Invoice draft computation.

A draft is an immutable ``DraftState``. The functions below either compute
over a state (``effective_values``, ``compute_totals``) or return a new
state with one change applied; the caller owns the current state.
"""

from __future__ import annotations

import dataclasses
import uuid
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from billing_tool.models import (
    ZERO,
    AdjustmentField,
    DraftState,
    EffectiveValues,
    LineItemAdjustment,
    ManualLineItem,
    TimeEntry,
    Totals,
)


def effective_values(
    entry: TimeEntry,
    adjustment: Optional[LineItemAdjustment] = None,
) -> EffectiveValues:
    """Hours and amount of an entry after its adjustment, if any.

    An amount override wins outright. Without one, the amount is the
    effective hours times the entry's rate, so an hours override also moves
    the default amount.
    """
    hours = entry.hours
    amount = None
    if adjustment is not None:
        if adjustment.adjusted_hours is not None:
            hours = adjustment.adjusted_hours
        amount = adjustment.adjusted_amount
    if amount is None:
        amount = hours * entry.rate
    return EffectiveValues(hours=hours, amount=amount)


def selected_entries(entries: Iterable[TimeEntry], state: DraftState) -> list[TimeEntry]:
    """Entries from ``entries`` that are selected in ``state``, in input order."""
    selected = set(state.selected_ids)
    return [e for e in entries if e.id in selected]


def compute_totals(entries: Iterable[TimeEntry], state: DraftState) -> Totals:
    """Compute the live totals of a draft.

    ``entries`` are the candidate entries on screen; selected ids that are
    not among them do not count.
    """
    original_total = ZERO
    total_time_amount = ZERO
    total_hours = ZERO
    chosen = selected_entries(entries, state)

    for entry in chosen:
        values = effective_values(entry, state.adjustment_for(entry.id))
        original_total += entry.amount
        total_time_amount += values.amount
        total_hours += values.hours

    final_total = state.manual_total if state.manual_total is not None else total_time_amount
    # A manual total above the time amount is a premium, not a negative discount
    discount = max(ZERO, total_time_amount - final_total)
    manual_items_total = sum((item.amount for item in state.manual_items), ZERO)

    return Totals(
        original_total=original_total,
        total_time_amount=total_time_amount,
        total_hours=total_hours,
        final_total=final_total,
        discount=discount,
        manual_items_total=manual_items_total,
        grand_total=final_total + manual_items_total,
        selected_count=len(chosen),
        has_billable_manual_item=any(
            item.description and item.unit_price > 0 for item in state.manual_items
        ),
    )


# --- Selection -------------------------------------------------------------

def toggle_entry(state: DraftState, entry_id: str) -> DraftState:
    if entry_id in state.selected_ids:
        selected = tuple(i for i in state.selected_ids if i != entry_id)
    else:
        selected = state.selected_ids + (entry_id,)
    return dataclasses.replace(state, selected_ids=selected)


def toggle_group(state: DraftState, entry_ids: Sequence[str]) -> DraftState:
    """Select every id in the group, or deselect them all if they already are."""
    if all(i in state.selected_ids for i in entry_ids):
        group = set(entry_ids)
        selected = tuple(i for i in state.selected_ids if i not in group)
    else:
        selected = state.selected_ids + tuple(
            i for i in dict.fromkeys(entry_ids) if i not in state.selected_ids
        )
    return dataclasses.replace(state, selected_ids=selected)


def select_all(state: DraftState, entries: Iterable[TimeEntry]) -> DraftState:
    return dataclasses.replace(state, selected_ids=tuple(dict.fromkeys(e.id for e in entries)))


def clear_selection(state: DraftState) -> DraftState:
    return dataclasses.replace(state, selected_ids=())


def toggle_all(state: DraftState, entries: Sequence[TimeEntry]) -> DraftState:
    if entries and all(e.id in state.selected_ids for e in entries):
        return clear_selection(state)
    return select_all(state, entries)


# --- Line adjustments ------------------------------------------------------

def _field_name(field: AdjustmentField) -> str:
    return "adjusted_hours" if field is AdjustmentField.HOURS else "adjusted_amount"


def set_adjustment(
    state: DraftState,
    entry_id: str,
    field: AdjustmentField,
    value: Decimal,
) -> DraftState:
    """Override one field of an entry, leaving the other field untouched."""
    current = state.adjustments.get(entry_id, LineItemAdjustment())
    adjustments = dict(state.adjustments)
    adjustments[entry_id] = dataclasses.replace(current, **{_field_name(field): value})
    return dataclasses.replace(state, adjustments=adjustments)


def clear_adjustment(state: DraftState, entry_id: str, field: AdjustmentField) -> DraftState:
    """Drop one override; the adjustment goes away once both fields are clear."""
    current = state.adjustments.get(entry_id)
    if current is None:
        return state

    updated = dataclasses.replace(current, **{_field_name(field): None})
    adjustments = dict(state.adjustments)
    if updated.is_empty:
        del adjustments[entry_id]
    else:
        adjustments[entry_id] = updated
    return dataclasses.replace(state, adjustments=adjustments)


# --- Manual total ----------------------------------------------------------

def set_manual_total(state: DraftState, value: Decimal) -> DraftState:
    return dataclasses.replace(state, manual_total=value)


def clear_manual_total(state: DraftState) -> DraftState:
    return dataclasses.replace(state, manual_total=None)


# --- Manual line items -----------------------------------------------------

def add_manual_item(state: DraftState, item: Optional[ManualLineItem] = None) -> DraftState:
    """Append a manual line; a blank one (quantity 1, price 0) when none is given."""
    if item is None:
        item = ManualLineItem(id=str(uuid.uuid4()))
    return dataclasses.replace(state, manual_items=state.manual_items + (item,))


def update_manual_item(state: DraftState, item_id: str, **changes) -> DraftState:
    items = tuple(
        dataclasses.replace(item, **changes) if item.id == item_id else item
        for item in state.manual_items
    )
    return dataclasses.replace(state, manual_items=items)


def remove_manual_item(state: DraftState, item_id: str) -> DraftState:
    items = tuple(item for item in state.manual_items if item.id != item_id)
    return dataclasses.replace(state, manual_items=items)
