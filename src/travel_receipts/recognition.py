"""Receipt image recognition through an LLM using pydantic-ai."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from pydantic_ai import Agent, BinaryContent
from pydantic_ai.exceptions import UnexpectedModelBehavior

from travel_receipts.config import get_anthropic_api_key, get_llm_model
from travel_receipts.models import ParsedReceipt, ReceiptDocument

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """\
You are a receipt recognition assistant. Given a photo of a shopping \
receipt, return exactly one JSON object with these fields:

- shopName: the shop name
- shopAddress: the shop address (if shown)
- country: country or region (e.g. Japan, Taiwan, Hong Kong, Korea)
- tel: phone number (if shown)
- txDate: transaction date (YYYY-MM-DD)
- txTime: transaction time (HH:mm)
- currency: ISO 4217 currency code (e.g. JPY, TWD, HKD, KRW)
- totalAmount: the total amount paid, as a number
- items: list of purchased products, each with
  - name: the product name exactly as printed
  - nameChinese: the product name translated to Traditional Chinese
  - price: unit price, as a number
  - qty: quantity, as a number (default 1)
  - discount: discount on this item as a positive number, or 0
  - type: one of food, medicine, household, cosmetics, clothing, \
electronics, other

Leave out or set to null any field you cannot read. If there are \
discounts, totalAmount must be the final amount after discounts.\
"""

_USER_PROMPT = "Extract the receipt in this image."

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

_NO_STRUCTURE = "recognition produced no usable structure"


class RecognitionError(ValueError):
    """Recognition produced no usable structure."""


def create_recognition_agent() -> Agent[None, ReceiptDocument]:
    """Create a pydantic-ai Agent configured for receipt recognition."""
    # Ensure API key is available (fail fast)
    get_anthropic_api_key()

    model_name = get_llm_model()
    return Agent(
        f"anthropic:{model_name}",
        output_type=ReceiptDocument,
        system_prompt=_SYSTEM_PROMPT,
    )


def recognize_receipt_image(
    image: bytes,
    media_type: str,
    *,
    agent: Agent[None, ReceiptDocument] | None = None,
    home_currency: str = "HKD",
    clock: Callable[[], datetime] | None = None,
) -> ParsedReceipt:
    """Recognize a receipt photo and return it as a ParsedReceipt.

    Accepts an optional agent for dependency injection in tests.
    """
    if agent is None:
        agent = create_recognition_agent()

    try:
        result: Any = agent.run_sync(
            [_USER_PROMPT, BinaryContent(data=image, media_type=media_type)]
        )
    except UnexpectedModelBehavior as exc:
        raise RecognitionError(_NO_STRUCTURE) from exc

    document = result.output
    if not isinstance(document, ReceiptDocument):
        raise RecognitionError(_NO_STRUCTURE)
    return _to_receipt(document, home_currency, clock)


def parse_recognition_response(
    text: str,
    *,
    home_currency: str = "HKD",
    clock: Callable[[], datetime] | None = None,
) -> ParsedReceipt:
    """Validate a free-text model reply and convert it to a ParsedReceipt.

    The reply may wrap the JSON object in prose or a code fence; the
    outermost ``{...}`` block is used.
    """
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        logger.warning("Recognition reply contains no JSON object")
        raise RecognitionError(_NO_STRUCTURE)

    try:
        document = ReceiptDocument.model_validate_json(match.group(0))
    except ValidationError as exc:
        logger.warning("Recognition reply failed validation: %s", exc)
        raise RecognitionError(_NO_STRUCTURE) from exc
    return _to_receipt(document, home_currency, clock)


def _to_receipt(
    document: ReceiptDocument,
    home_currency: str,
    clock: Callable[[], datetime] | None,
) -> ParsedReceipt:
    now = (clock or datetime.now)()
    try:
        return document.to_parsed_receipt(home_currency=home_currency, now=now)
    except ValidationError as exc:
        raise RecognitionError(_NO_STRUCTURE) from exc
