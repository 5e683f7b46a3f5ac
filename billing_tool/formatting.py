"""Display formatting. The only place where amounts and hours get rounded."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
TENTH = Decimal("0.1")

# (thousands separator, decimal separator)
_SEPARATORS = {
    "ro": (".", ","),
    "en": (",", "."),
}


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(CENT, ROUND_HALF_UP)


def format_amount(value: Decimal, locale: str = "ro") -> str:
    """Format with 2 decimals and locale separators, e.g. ``1.234,50`` for ``ro``."""
    thousands, decimal_sep = _SEPARATORS.get(locale, _SEPARATORS["en"])
    text = f"{round_amount(value):,.2f}"
    return text.replace(",", "\0").replace(".", decimal_sep).replace("\0", thousands)


def format_hours(value: Decimal) -> str:
    return f"{value.quantize(TENTH, ROUND_HALF_UP):.1f}"
