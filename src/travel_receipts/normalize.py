"""Number, date and time normalization shared by the extractors."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

logger = logging.getLogger(__name__)

# Loose numeric token as printed on receipts: "1,234", "12.50", "12."
NUMBER = r"[\d,]+\.?\d*"


def parse_amount(text: str) -> Decimal | None:
    """Parse a money amount, ignoring thousands separators.

    Returns None when the text is not a finite number once the
    separators are removed.
    """
    cleaned = text.replace(",", "").strip()
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        logger.debug("Malformed amount %r", text)
        return None
    if not value.is_finite():
        logger.debug("Malformed amount %r", text)
        return None
    return value


def parse_qty(text: str | None) -> int:
    """Parse a quantity, falling back to 1 for missing or non-positive values."""
    try:
        qty = int(text)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 1
    return qty if qty >= 1 else 1


def normalize_date(year: str, month: str, day: str) -> str | None:
    """Return a zero-padded YYYY-MM-DD string, or None for impossible dates."""
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def normalize_time(hour: str, minute: str) -> str:
    """Return a zero-padded HH:MM string."""
    return f"{int(hour):02d}:{int(minute):02d}"
