"""Best-effort product name translation to Traditional Chinese."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel
from pydantic_ai import Agent

from travel_receipts.config import get_anthropic_api_key, get_llm_model

if TYPE_CHECKING:
    from collections.abc import Callable

    from travel_receipts.models import ParsedReceipt

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "Translate the given product name to Traditional Chinese. "
    "Return only the translation."
)


class Translation(BaseModel):
    """A translated product name and where it came from."""

    chinese: str
    source: Literal["model", "manual"]


_MANUAL = Translation(chinese="", source="manual")


def create_translation_agent() -> Agent[None, str]:
    """Create a pydantic-ai Agent that translates product names."""
    get_anthropic_api_key()

    return Agent(
        f"anthropic:{get_llm_model()}",
        output_type=str,
        system_prompt=_SYSTEM_PROMPT,
    )


def translate_to_chinese(
    text: str,
    *,
    agent: Agent[None, str] | None = None,
) -> Translation:
    """Translate a product name, returning an empty manual result on failure."""
    if not text.strip():
        return _MANUAL

    try:
        if agent is None:
            agent = create_translation_agent()
        result: Any = agent.run_sync(f'Product name: "{text}"')
    except Exception:
        logger.warning("Translation failed for %r", text, exc_info=True)
        return _MANUAL

    chinese = str(result.output).strip()
    if not chinese:
        return _MANUAL
    return Translation(chinese=chinese, source="model")


def fill_translations(
    receipt: ParsedReceipt,
    translate: Callable[[str], Translation] = translate_to_chinese,
) -> ParsedReceipt:
    """Return a copy of the receipt with missing Chinese item names filled."""
    items = []
    for item in receipt.items:
        if item.name_chinese is None:
            translation = translate(item.name)
            if translation.chinese:
                item = item.model_copy(update={"name_chinese": translation.chinese})
        items.append(item)
    return receipt.model_copy(update={"items": tuple(items)})
