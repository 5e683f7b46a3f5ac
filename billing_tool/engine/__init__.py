"""Aggregation, draft and validation engines."""
from billing_tool.engine.aggregator import group_by_case, summarize, summarize_client
from billing_tool.engine.draft import compute_totals, effective_values
from billing_tool.engine.periods import PeriodFilter, filter_by_period, previous_month_range
from billing_tool.engine.prepared import build_line_items, prepare_invoice
from billing_tool.engine.validator import parse_amount, validate_entries

__all__ = [
    "group_by_case",
    "summarize",
    "summarize_client",
    "compute_totals",
    "effective_values",
    "PeriodFilter",
    "filter_by_period",
    "previous_month_range",
    "build_line_items",
    "prepare_invoice",
    "parse_amount",
    "validate_entries",
]
