"""Period filtering applied before draft totals are computed."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Optional

from billing_tool.models import TimeEntry


class PeriodFilter(Enum):
    ALL = "all"
    PREVIOUS_MONTH = "previous-month"
    MANUAL = "manual"


def previous_month_range(today: date) -> tuple[date, date]:
    """First and last day of the calendar month before ``today``."""
    last = today.replace(day=1) - timedelta(days=1)
    return last.replace(day=1), last


def filter_by_period(
    entries: Iterable[TimeEntry],
    period: PeriodFilter = PeriodFilter.ALL,
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None,
) -> list[TimeEntry]:
    """Return the unbilled entries that fall inside the chosen period.

    Invoiced entries are always dropped. Both bounds are inclusive. A manual
    period with a missing bound shows every unbilled entry.
    """
    unbilled = [e for e in entries if not e.invoiced]

    if period is PeriodFilter.PREVIOUS_MONTH:
        start, end = previous_month_range(today or date.today())
    elif period is PeriodFilter.MANUAL and start is not None and end is not None:
        pass
    else:
        return unbilled

    return [e for e in unbilled if start <= e.date <= end]
