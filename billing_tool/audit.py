"""Layer 6 - Draft record.

Builds the JSON record of an invoice draft: which entries were selected,
every override applied, and the resulting totals.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional

from billing_tool.engine.draft import compute_totals, effective_values, selected_entries
from billing_tool.models import CaseRef, ClientRef, DraftState, TimeEntry, Totals

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that keeps Decimal values exact by writing them as strings."""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


def _optional(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def totals_dict(totals: Totals) -> dict:
    return {
        "original_total": str(totals.original_total),
        "total_time_amount": str(totals.total_time_amount),
        "total_hours": str(totals.total_hours),
        "final_total": str(totals.final_total),
        "discount": str(totals.discount),
        "manual_items_total": str(totals.manual_items_total),
        "grand_total": str(totals.grand_total),
        "selected_count": totals.selected_count,
        "has_discount": totals.has_discount,
        "is_submittable": totals.is_submittable,
    }


def generate_draft_record(
    entries: Iterable[TimeEntry],
    state: DraftState,
    client: ClientRef,
    case: Optional[CaseRef] = None,
    issue_date: Optional[date] = None,
    due_date: Optional[date] = None,
    notes: str = "",
    internal_note: str = "",
) -> dict:
    """Build the draft record dictionary (no file I/O)."""
    entries = list(entries)
    totals = compute_totals(entries, state)

    lines = []
    for entry in selected_entries(entries, state):
        values = effective_values(entry, state.adjustment_for(entry.id))
        lines.append({
            "time_entry_id": entry.id,
            "date": entry.date.isoformat(),
            "case_id": entry.case.id if entry.case else None,
            "description": entry.description,
            "original_hours": str(entry.hours),
            "rate": str(entry.rate),
            "original_amount": str(entry.amount),
            "hours": str(values.hours),
            "amount": str(values.amount),
        })

    return {
        "client_id": client.id,
        "client_name": client.name,
        "case_id": case.id if case else None,
        "issue_date": issue_date.isoformat() if issue_date else None,
        "due_date": due_date.isoformat() if due_date else None,
        "notes": notes,
        "internal_note": internal_note,
        "time_entry_ids": [line["time_entry_id"] for line in lines],
        "adjustments": {
            entry_id: {
                "adjusted_hours": _optional(adj.adjusted_hours),
                "adjusted_amount": _optional(adj.adjusted_amount),
            }
            for entry_id, adj in sorted(state.adjustments.items())
        },
        "manual_total": _optional(state.manual_total),
        "manual_items": [
            {
                "id": item.id,
                "description": item.description,
                "quantity": str(item.quantity),
                "unit_price": str(item.unit_price),
                "amount": str(item.amount),
            }
            for item in state.manual_items
        ],
        "lines": lines,
        "totals": totals_dict(totals),
        # final total including manual lines, as submitted
        "final_total": str(totals.grand_total),
    }


def generate_audit(
    entries: Iterable[TimeEntry],
    state: DraftState,
    client: ClientRef,
    output_path: str | Path,
    **kwargs,
) -> Path:
    """Write the draft record to a JSON file."""
    output_path = Path(output_path)
    record = generate_draft_record(entries, state, client, **kwargs)
    output_path.write_text(json.dumps(record, indent=2, cls=DecimalEncoder), encoding='utf-8')
    logger.info("Draft record written to %s", output_path)
    return output_path
