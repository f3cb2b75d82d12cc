"""Turn recognized receipt text into a ParsedReceipt."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from travel_receipts.config import ParserConfig, validate_currency_code
from travel_receipts.fields import extract_fields
from travel_receipts.items import parse_line_items
from travel_receipts.models import FieldSource, ParsedReceipt, RecognizedText

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def interpret_receipt_text(
    text: str,
    *,
    config: ParserConfig | None = None,
    home_currency: str | None = None,
    clock: Callable[[], datetime] | None = None,
) -> ParsedReceipt:
    """Interpret recognized receipt text.

    Never raises for text input: fields that cannot be found get their
    defaults and unrecognized lines are ignored. ``clock`` supplies the
    date and time used when the text has none.
    """
    config = config or ParserConfig()
    if home_currency:
        config = replace(config, home_currency=validate_currency_code(home_currency))
    clock = clock or datetime.now

    recognized = RecognizedText.from_raw(text)
    fields = extract_fields(
        recognized.raw, recognized.lines, config=config, clock=clock
    )

    # Lines holding the phone number belong to the header, not the items.
    reserved = (
        {i for i, line in enumerate(recognized.lines) if fields.tel in line}
        if fields.tel
        else set()
    )
    line_items = parse_line_items(recognized.lines, config=config, reserved=reserved)

    provenance = dict(fields.provenance)
    provenance["total_amount"] = (
        FieldSource.MATCHED
        if line_items.total_amount is not None
        else FieldSource.DEFAULTED
    )

    logger.debug(
        "Interpreted %d lines: %d items, total %s",
        len(recognized.lines),
        len(line_items.items),
        line_items.total_amount,
    )

    return ParsedReceipt(
        shop_name=fields.shop_name,
        tel=fields.tel,
        tx_date=fields.tx_date,
        tx_time=fields.tx_time,
        currency=fields.currency,
        total_amount=line_items.total_amount or Decimal(0),
        items=line_items.items,
        provenance=provenance,
    )
