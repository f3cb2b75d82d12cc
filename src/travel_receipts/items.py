"""Line-item classification for recognized receipt text.

Every line is offered to an ordered list of rules and the first rule that
accepts it wins:

1. total     a total keyword, amount on the same or the next line
2. discount  a negative trailing amount or a discount keyword
3. item      ``<name> <price> <qty> <line total>``
4. item      ``[qty] X|@ [qty] price total``, name on the previous line

When no item was found at all, a second pass accepts plain
``<name> <amount>`` lines as single-quantity items.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING

from travel_receipts.config import ParserConfig
from travel_receipts.models import ParsedItem
from travel_receipts.normalize import NUMBER, parse_amount, parse_qty

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from decimal import Decimal

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ParserConfig()

TOTAL = "total"
TOTAL_AMOUNT = "total_amount"
DISCOUNT = "discount"
ITEM = "item"
MULTIPLIER = "multiplier"
ITEM_NAME = "item_name"
FALLBACK_ITEM = "fallback_item"
RESERVED = "reserved"

_TRAILING_NUMBER = re.compile(rf"({NUMBER})$")
_NEGATIVE_TAIL = re.compile(rf"(?:^|[\s$])-({NUMBER})$")
_STRUCTURED_ITEM = re.compile(rf"^(.*?)\s+({NUMBER})\s+(\d+)\s+({NUMBER})$")
_MULTIPLIER = re.compile(
    rf"^(?:(\d+)\s*)?[Xx×@]\s*(?:(\d+)\s+)?\$?\s*({NUMBER})\s+\$?\s*({NUMBER})$"
)
_FALLBACK_DECIMAL = re.compile(r"^(.*?)\s+([\d,]+\.\d{2,})$")
_FALLBACK_INTEGER = re.compile(r"^(.*?)\s+(\d[\d,]*)$")


@dataclass(frozen=True)
class LineItems:
    """Result of classifying every line of a receipt."""

    items: tuple[ParsedItem, ...]
    total_amount: Decimal | None
    labels: tuple[str | None, ...]
    used_fallback: bool = False


@dataclass
class _ParseState:
    lines: Sequence[str]
    config: ParserConfig
    labels: list[str | None]
    items: list[ParsedItem] = field(default_factory=list)
    total_amount: Decimal | None = None

    @property
    def total_keywords(self) -> tuple[str, ...]:
        return _upper_keywords(self.config.total_keywords)

    def has_total_keyword(self, text: str) -> bool:
        upper = text.upper()
        return any(keyword in upper for keyword in self.total_keywords)

    def add_item(self, name: str, price: Decimal, qty: int) -> None:
        item_type = self.config.default_item_type
        self.items.append(ParsedItem(name=name, price=price, qty=qty, type=item_type))


_Rule = tuple[str, Callable[[_ParseState, int], bool]]


def parse_line_items(
    lines: Sequence[str],
    *,
    config: ParserConfig = _DEFAULT_CONFIG,
    reserved: Collection[int] = (),
) -> LineItems:
    """Classify receipt lines into totals, discounts and items.

    ``reserved`` holds indices of lines already used for metadata; those
    lines are never read as totals or items.
    """
    state = _ParseState(
        lines=lines,
        config=config,
        labels=[RESERVED if i in reserved else None for i in range(len(lines))],
    )

    for index in range(len(lines)):
        if state.labels[index] is not None:
            continue
        for name, rule in _RULES:
            if rule(state, index):
                logger.debug("Line %d %r classified as %s", index, lines[index], name)
                break

    used_fallback = False
    if not state.items:
        used_fallback = _fallback_pass(state)

    return LineItems(
        items=tuple(state.items),
        total_amount=state.total_amount,
        labels=tuple(state.labels),
        used_fallback=used_fallback,
    )


def _match_total(state: _ParseState, index: int) -> bool:
    line = state.lines[index]
    if not state.has_total_keyword(line):
        return False
    state.labels[index] = TOTAL

    amount = _trailing_amount(line)
    if amount is None and index + 1 < len(state.lines):
        following = state.lines[index + 1]
        if state.labels[index + 1] is None:
            amount = _trailing_amount(following)
            # An item-shaped line lends its amount but stays an item.
            if amount is not None and not _looks_like_item(following):
                state.labels[index + 1] = TOTAL_AMOUNT
    if amount is not None:
        state.total_amount = amount
    else:
        logger.debug("Total keyword without amount on line %d", index)
    # A total line is never an item, even without a usable amount.
    return True


def _match_discount(state: _ParseState, index: int) -> bool:
    line = state.lines[index]
    match = _NEGATIVE_TAIL.search(line) or _discount_pattern(
        state.config.discount_keywords
    ).search(line)
    if match is None:
        return False
    amount = parse_amount(match.group(1))
    if amount is None:
        return False
    state.labels[index] = DISCOUNT
    if not state.items:
        logger.debug("Dropping discount on line %d: no item to attach to", index)
        return True
    last = state.items[-1]
    state.items[-1] = last.model_copy(update={"discount": abs(amount)})
    return True


def _match_structured_item(state: _ParseState, index: int) -> bool:
    match = _STRUCTURED_ITEM.match(state.lines[index])
    if match is None:
        return False
    name = match.group(1).strip()
    price = parse_amount(match.group(2))
    # The line total only has to look like a number.
    if not name or price is None or parse_amount(match.group(4)) is None:
        return False
    state.add_item(name, price, parse_qty(match.group(3)))
    state.labels[index] = ITEM
    return True


def _match_multiplier(state: _ParseState, index: int) -> bool:
    if index == 0 or state.labels[index - 1] is not None:
        return False
    match = _MULTIPLIER.match(state.lines[index])
    if match is None:
        return False
    price = parse_amount(match.group(3))
    if price is None or parse_amount(match.group(4)) is None:
        return False
    name = state.lines[index - 1].strip()
    if not name:
        return False
    qty = parse_qty(match.group(1) or match.group(2))
    state.add_item(name, price, qty)
    state.labels[index - 1] = ITEM_NAME
    state.labels[index] = MULTIPLIER
    return True


_RULES: tuple[_Rule, ...] = (
    (TOTAL, _match_total),
    (DISCOUNT, _match_discount),
    (ITEM, _match_structured_item),
    (MULTIPLIER, _match_multiplier),
)


def _fallback_pass(state: _ParseState) -> bool:
    """Accept ``<name> <amount>`` lines when no structured item was found."""
    for index, line in enumerate(state.lines):
        if state.labels[index] is not None:
            continue
        match = _FALLBACK_DECIMAL.match(line)
        if match is None:
            match = _FALLBACK_INTEGER.match(line)
            # Integer prices need 4-10 digits; separators do not count.
            if match is None or not 4 <= _digit_count(match.group(2)) <= 10:
                continue
        name = match.group(1).strip()
        if len(name) <= 2 or state.has_total_keyword(name):
            continue
        price = parse_amount(match.group(2))
        if price is None:
            continue
        state.add_item(name, price, 1)
        state.labels[index] = FALLBACK_ITEM

    if state.items:
        logger.debug("Fallback pass recovered %d items", len(state.items))
        return True
    return False


def _trailing_amount(line: str) -> Decimal | None:
    match = _TRAILING_NUMBER.search(line)
    if match is None:
        return None
    return parse_amount(match.group(1))


def _digit_count(text: str) -> int:
    return sum(char.isdigit() for char in text)


def _looks_like_item(line: str) -> bool:
    return bool(_STRUCTURED_ITEM.match(line) or _MULTIPLIER.match(line))


@lru_cache(maxsize=16)
def _upper_keywords(keywords: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(keyword.upper() for keyword in keywords)


@lru_cache(maxsize=16)
def _discount_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(keyword) for keyword in keywords)
    # Case-sensitive, and a keyword never starts or ends inside a word.
    return re.compile(
        rf"(?<![A-Za-z])(?:{alternatives})(?![A-Za-z]).*?-?({NUMBER})$"
    )
