"""Metadata extraction from recognized receipt text.

Each extractor is a pure function of the text and falls back to a
default instead of raising: recognized text is noisy, and a receipt with
some metadata missing is still worth reviewing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from travel_receipts.config import ParserConfig
from travel_receipts.models import FieldSource
from travel_receipts.normalize import normalize_date, normalize_time

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    Clock = Callable[[], datetime]

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ParserConfig()

_DATE = re.compile(
    r"(?<!\d)(?:(\d{4})[-/](\d{1,2})[-/](\d{1,2})"
    r"|(\d{1,2})[-/](\d{1,2})[-/](\d{4}))(?!\d)"
)
_TIME = re.compile(r"(?<!\d)([01]?\d|2[0-3]):([0-5]\d)(?::[0-5]\d)?(?!\d)")
_LABELED_TEL = re.compile(
    r"(?<![A-Za-z])(?:tel|電話)[:：\s]*([(\d][\d\-() ]{7,14})", re.IGNORECASE
)
_UNLABELED_TEL = re.compile(r"(?<!\d)\d{2,3}-\d{3,4}-\d{4}(?!\d)")
_FOUR_DIGITS = re.compile(r"\d{4}")


@dataclass(frozen=True)
class ReceiptFields:
    """Metadata found in a receipt, with how each value was obtained."""

    shop_name: str
    tel: str | None
    tx_date: str
    tx_time: str
    currency: str
    provenance: dict[str, FieldSource] = field(default_factory=dict)


def extract_fields(
    raw: str,
    lines: Sequence[str],
    *,
    config: ParserConfig = _DEFAULT_CONFIG,
    clock: Clock = datetime.now,
) -> ReceiptFields:
    """Run every metadata extractor over the text."""
    provenance: dict[str, FieldSource] = {}
    now = clock()

    tx_date = _find_date(raw)
    provenance["tx_date"] = _source(tx_date)
    tx_time = _find_time(raw)
    provenance["tx_time"] = _source(tx_time)
    tel = extract_tel(raw)
    provenance["tel"] = _source(tel)
    currency = _find_currency(raw, config)
    provenance["currency"] = _source(currency)
    shop_name = _find_shop_name(lines, config)
    provenance["shop_name"] = _source(shop_name)

    defaulted = sorted(k for k, v in provenance.items() if v is FieldSource.DEFAULTED)
    if defaulted:
        logger.debug("Defaulted receipt fields: %s", ", ".join(defaulted))

    return ReceiptFields(
        shop_name=shop_name or config.unknown_shop,
        tel=tel,
        tx_date=tx_date or now.date().isoformat(),
        tx_time=tx_time or now.strftime("%H:%M"),
        currency=currency or config.home_currency,
        provenance=provenance,
    )


def extract_date(raw: str, *, clock: Clock = datetime.now) -> str:
    """Return the first date in the text as YYYY-MM-DD, or today's date."""
    return _find_date(raw) or clock().date().isoformat()


def extract_time(raw: str, *, clock: Clock = datetime.now) -> str:
    """Return the first 24-hour time in the text as HH:MM, or the current time."""
    return _find_time(raw) or clock().strftime("%H:%M")


def extract_tel(raw: str) -> str | None:
    """Return a phone number, preferring one next to a Tel/電話 label."""
    labeled = _LABELED_TEL.search(raw)
    if labeled:
        return labeled.group(1).strip()
    unlabeled = _UNLABELED_TEL.search(raw)
    if unlabeled:
        return unlabeled.group(0)
    return None


def extract_currency(raw: str, *, config: ParserConfig = _DEFAULT_CONFIG) -> str:
    """Return the currency implied by the text, or the home currency."""
    return _find_currency(raw, config) or config.home_currency


def extract_shop_name(
    lines: Sequence[str], *, config: ParserConfig = _DEFAULT_CONFIG
) -> str:
    """Return the first plausible shop name near the top of the receipt."""
    return _find_shop_name(lines, config) or config.unknown_shop


def _find_date(raw: str) -> str | None:
    for match in _DATE.finditer(raw):
        if match.group(1):
            year, month, day = match.group(1, 2, 3)
        else:
            day, month, year = match.group(4, 5, 6)
        normalized = normalize_date(year, month, day)
        if normalized:
            return normalized
        logger.debug("Skipping impossible date %r", match.group(0))
    return None


def _find_time(raw: str) -> str | None:
    match = _TIME.search(raw)
    if match is None:
        return None
    return normalize_time(match.group(1), match.group(2))


def _find_currency(raw: str, config: ParserConfig) -> str | None:
    for currency, markers in config.currency_rules:
        if any(marker in raw for marker in markers):
            return currency
    return None


def _find_shop_name(lines: Sequence[str], config: ParserConfig) -> str | None:
    titles = [keyword.upper() for keyword in config.title_keywords]
    for line in lines[: config.shop_name_lookahead]:
        if len(line) <= 2 or _FOUR_DIGITS.search(line):
            continue
        if ":" in line or "：" in line:
            continue
        if any(title in line.upper() for title in titles):
            continue
        return line
    return None


def _source(value: str | None) -> FieldSource:
    return FieldSource.MATCHED if value else FieldSource.DEFAULTED
