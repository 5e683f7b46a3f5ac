"""Layer 4 - Unbilled summary aggregation.

Groups a client's time entries by case and rolls the groups up into a
client summary. Every total is derived from the entries on read, so a
summary can never drift from its inputs.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from billing_tool.models import (
    NO_CASE_ID,
    NO_CASE_NUMBER,
    NO_CASE_TITLE,
    CaseGroup,
    ClientRef,
    ClientSummary,
    TimeEntry,
)

logger = logging.getLogger(__name__)


def group_by_case(entries: Iterable[TimeEntry]) -> list[CaseGroup]:
    """Partition entries by case, highest-value case first."""
    groups: dict[str, CaseGroup] = {}

    for entry in entries:
        key = entry.case_key
        group = groups.get(key)
        if group is None:
            if entry.case is None:
                group = CaseGroup(case_id=NO_CASE_ID, case_number=NO_CASE_NUMBER, case_title=NO_CASE_TITLE)
            else:
                group = CaseGroup(case_id=key, case_number=entry.case.number, case_title=entry.case.title)
            groups[key] = group
        group.entries.append(entry)

    # sorted() is stable: equal totals keep first-appearance order
    return sorted(groups.values(), key=lambda g: g.total_amount, reverse=True)


def summarize_client(
    client: ClientRef,
    entries: Iterable[TimeEntry],
    unbilled_only: bool = True,
) -> Optional[ClientSummary]:
    """Build the summary for one client's batch, or None if nothing is left to show."""
    if unbilled_only:
        entries = [e for e in entries if not e.invoiced]
    else:
        entries = list(entries)

    if not entries:
        return None

    return ClientSummary(client=client, case_groups=group_by_case(entries))


def summarize(
    batches: Iterable[tuple[ClientRef, Iterable[TimeEntry]]],
    unbilled_only: bool = True,
) -> list[ClientSummary]:
    """Summarize per-client batches of time entries.

    Each batch is already scoped to a single client by the caller. Clients
    whose batch is empty after filtering are left out, so no input gives an
    empty list.
    """
    summaries: list[ClientSummary] = []
    for client, entries in batches:
        summary = summarize_client(client, entries, unbilled_only=unbilled_only)
        if summary is not None:
            summaries.append(summary)

    logger.debug("Summarized %d client(s) with unbilled time", len(summaries))
    return sorted(summaries, key=lambda s: s.total_amount, reverse=True)
