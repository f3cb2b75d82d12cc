"""Configuration via environment variables and parser keyword tables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, replace

from dotenv import load_dotenv

load_dotenv()

UNKNOWN_SHOP = "未知商店"

DEFAULT_TOTAL_KEYWORDS: tuple[str, ...] = (
    "總額",
    "總數",
    "合計",
    "合 計",
    "합계",
    "합 계",
    "TOTAL",
    "TOTAL AMOUNT",
    "實際應付金額",
    "結算金額",
    "받을금액",
    "결제금액",
)

DEFAULT_DISCOUNT_KEYWORDS: tuple[str, ...] = ("折扣", "優惠", "Disc", "Discount")

DEFAULT_TITLE_KEYWORDS: tuple[str, ...] = ("收據", "收据", "RECEIPT", "영수증")

# Checked in order; the first currency with any marker present wins.
DEFAULT_CURRENCY_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("KRW", ("KRW", "원", "브랜드")),
    ("JPY", ("JPY", "円")),
    ("TWD", ("TWD", "NT$")),
    ("HKD", ("HKD", "$", "759", "惠康")),
)

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class ParserConfig:
    """Keyword tables and defaults used by the receipt text interpreter.

    The keyword lists come from real receipt samples and are not complete;
    use ``extended`` to add more without touching the defaults.
    """

    home_currency: str = "HKD"
    total_keywords: tuple[str, ...] = DEFAULT_TOTAL_KEYWORDS
    discount_keywords: tuple[str, ...] = DEFAULT_DISCOUNT_KEYWORDS
    title_keywords: tuple[str, ...] = DEFAULT_TITLE_KEYWORDS
    currency_rules: tuple[tuple[str, tuple[str, ...]], ...] = DEFAULT_CURRENCY_RULES
    shop_name_lookahead: int = 5
    unknown_shop: str = UNKNOWN_SHOP
    default_item_type: str = "other"

    def extended(
        self,
        *,
        total_keywords: tuple[str, ...] = (),
        discount_keywords: tuple[str, ...] = (),
        title_keywords: tuple[str, ...] = (),
    ) -> ParserConfig:
        """Return a copy with extra keywords appended to the tables."""
        return replace(
            self,
            total_keywords=self.total_keywords + tuple(total_keywords),
            discount_keywords=self.discount_keywords + tuple(discount_keywords),
            title_keywords=self.title_keywords + tuple(title_keywords),
        )


def validate_currency_code(code: str) -> str:
    """Return the upper-cased code, or raise ValueError if it is not 3 letters."""
    currency = code.strip().upper()
    if not _CURRENCY_CODE.match(currency):
        msg = f"currency must be a 3-letter code, got {code!r}"
        raise ValueError(msg)
    return currency


def get_home_currency() -> str:
    """Return HOME_CURRENCY, defaulting to HKD."""
    try:
        return validate_currency_code(os.environ.get("HOME_CURRENCY", "HKD"))
    except ValueError as exc:
        msg = f"HOME_CURRENCY: {exc}"
        raise ValueError(msg) from exc


def get_parser_config() -> ParserConfig:
    """Build a ParserConfig from the environment.

    Optional: HOME_CURRENCY, RECEIPT_EXTRA_TOTAL_KEYWORDS and
    RECEIPT_EXTRA_DISCOUNT_KEYWORDS (comma-separated).
    """
    config = ParserConfig(home_currency=get_home_currency())
    return config.extended(
        total_keywords=_split_keywords("RECEIPT_EXTRA_TOTAL_KEYWORDS"),
        discount_keywords=_split_keywords("RECEIPT_EXTRA_DISCOUNT_KEYWORDS"),
    )


def get_anthropic_api_key() -> str:
    """Return the ANTHROPIC_API_KEY from the environment."""
    key = os.environ.get("ANTHROPIC_API_KEY")
    if not key:
        msg = "ANTHROPIC_API_KEY environment variable is required"
        raise ValueError(msg)
    return key


def get_llm_model() -> str:
    """Return the LLM model identifier.

    Defaults to claude-haiku-4-5-20251001.
    """
    return os.environ.get("LLM_MODEL", "claude-haiku-4-5-20251001")


def _split_keywords(name: str) -> tuple[str, ...]:
    raw = os.environ.get(name, "")
    return tuple(part.strip() for part in raw.split(",") if part.strip())
