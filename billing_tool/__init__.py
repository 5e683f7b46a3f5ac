"""Unbilled time aggregation and invoice draft computation."""

__version__ = "1.0.0"
