"""Excel export."""
from billing_tool.excel.generator import generate_draft_report, generate_summary_report

__all__ = ["generate_draft_report", "generate_summary_report"]
