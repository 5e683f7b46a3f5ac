"""Layer 3 - Input boundary validation.

Two kinds of checks live here. ``validate_entries`` is the strict check on
records coming from a data source and raises on any problem. The ``parse_*``
and ``apply_*`` helpers handle text typed into a draft: bad input is
rejected and the previous value stays in place.
"""

from __future__ import annotations

import re
from collections import Counter
from decimal import Decimal
from typing import Iterable, Optional

from billing_tool.engine.draft import set_adjustment, set_manual_total
from billing_tool.models import (
    AdjustmentField,
    DraftState,
    StrictValidationError,
    TimeEntry,
)

_WHITESPACE = re.compile(r"\s+")
_PLAIN_NUMBER = re.compile(r"[0-9]+(\.[0-9]+)?")


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """Parse a user-typed non-negative number.

    Accepts digits with an optional decimal point or decimal comma and ignores
    whitespace used as a thousands separator (``"1 234,50"``). Signs,
    exponents and underscores are rejected. Returns None for anything else.
    """
    if text is None:
        return None
    cleaned = _WHITESPACE.sub("", text)
    if cleaned.count(",") == 1 and "." not in cleaned:
        cleaned = cleaned.replace(",", ".")
    if not _PLAIN_NUMBER.fullmatch(cleaned):
        return None
    return Decimal(cleaned)


def apply_adjustment_edit(
    state: DraftState,
    entry_id: str,
    field: AdjustmentField,
    text: str,
) -> DraftState:
    value = parse_amount(text)
    if value is None:
        return state
    return set_adjustment(state, entry_id, field, value)


def apply_manual_total_edit(state: DraftState, text: str) -> DraftState:
    value = parse_amount(text)
    if value is None:
        return state
    return set_manual_total(state, value)


def validate_entries(entries: Iterable[TimeEntry]) -> list[TimeEntry]:
    """Validate time entries received from a data source.

    Returns the entries unchanged if every check passes, otherwise raises
    StrictValidationError listing all problems found.
    """
    entries = list(entries)
    errors: list[str] = []

    for entry in entries:
        for attr in ("hours", "rate"):
            val = getattr(entry, attr)
            if not isinstance(val, Decimal):
                errors.append(f"Entry {entry.id}: {attr} must be a Decimal, got {type(val).__name__}")
                continue
            if not val.is_finite():
                errors.append(f"Entry {entry.id}: {attr} is not finite")
            elif val < 0:
                errors.append(f"Entry {entry.id}: negative {attr}={val}")

    counts = Counter(e.id for e in entries)
    for entry_id, count in counts.items():
        if count > 1:
            errors.append(f"Entry {entry_id} appears {count} times")

    if errors:
        raise StrictValidationError(errors)

    return entries
