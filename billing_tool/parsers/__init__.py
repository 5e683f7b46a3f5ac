"""Time entry input parsing."""
from billing_tool.parsers.entries_parser import parse_entries_data, parse_entries_file

__all__ = ["parse_entries_data", "parse_entries_file"]
