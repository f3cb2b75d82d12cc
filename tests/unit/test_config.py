"""Tests for travel_receipts.config."""

from __future__ import annotations

import pytest

from travel_receipts.config import (
    DEFAULT_TOTAL_KEYWORDS,
    UNKNOWN_SHOP,
    ParserConfig,
    get_anthropic_api_key,
    get_home_currency,
    get_llm_model,
    get_parser_config,
    validate_currency_code,
)


class TestParserConfig:
    """Tests for the ParserConfig keyword tables."""

    def test_defaults(self) -> None:
        config = ParserConfig()
        assert config.home_currency == "HKD"
        assert "TOTAL" in config.total_keywords
        assert "합계" in config.total_keywords
        assert "折扣" in config.discount_keywords
        assert config.shop_name_lookahead == 5
        assert config.unknown_shop == UNKNOWN_SHOP
        assert config.default_item_type == "other"

    def test_currency_rules_in_priority_order(self) -> None:
        codes = [code for code, _markers in ParserConfig().currency_rules]
        assert codes == ["KRW", "JPY", "TWD", "HKD"]

    def test_extended_appends_keywords(self) -> None:
        config = ParserConfig().extended(
            total_keywords=("GESAMT",), discount_keywords=("RABATT",)
        )
        assert config.total_keywords[-1] == "GESAMT"
        assert config.total_keywords[: len(DEFAULT_TOTAL_KEYWORDS)] == (
            DEFAULT_TOTAL_KEYWORDS
        )
        assert "RABATT" in config.discount_keywords

    def test_extended_leaves_original_untouched(self) -> None:
        original = ParserConfig()
        original.extended(total_keywords=("GESAMT",))
        assert "GESAMT" not in original.total_keywords

    def test_config_is_frozen(self) -> None:
        config = ParserConfig()
        with pytest.raises(AttributeError):
            config.home_currency = "JPY"  # type: ignore[misc]

    def test_config_is_hashable(self) -> None:
        assert hash(ParserConfig()) == hash(ParserConfig())


class TestValidateCurrencyCode:
    """Tests for validate_currency_code()."""

    def test_upper_cases(self) -> None:
        assert validate_currency_code(" jpy ") == "JPY"

    def test_rejects_bad_codes(self) -> None:
        for bad in ("", "HK", "dollars", "12A"):
            with pytest.raises(ValueError, match="3-letter"):
                validate_currency_code(bad)


class TestGetHomeCurrency:
    """Tests for get_home_currency()."""

    def test_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("HOME_CURRENCY", raising=False)
        assert get_home_currency() == "HKD"

    def test_custom(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME_CURRENCY", "twd")
        assert get_home_currency() == "TWD"

    def test_invalid_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME_CURRENCY", "NTD$")
        with pytest.raises(ValueError, match="HOME_CURRENCY"):
            get_home_currency()


class TestGetParserConfig:
    """Tests for get_parser_config()."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("HOME_CURRENCY", raising=False)
        monkeypatch.delenv("RECEIPT_EXTRA_TOTAL_KEYWORDS", raising=False)
        monkeypatch.delenv("RECEIPT_EXTRA_DISCOUNT_KEYWORDS", raising=False)
        assert get_parser_config() == ParserConfig()

    def test_extra_keywords(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME_CURRENCY", "KRW")
        monkeypatch.setenv("RECEIPT_EXTRA_TOTAL_KEYWORDS", "GESAMT, SUMME,,")
        monkeypatch.setenv("RECEIPT_EXTRA_DISCOUNT_KEYWORDS", "할인")

        config = get_parser_config()

        assert config.home_currency == "KRW"
        assert config.total_keywords[-2:] == ("GESAMT", "SUMME")
        assert config.discount_keywords[-1] == "할인"


class TestGetAnthropicApiKey:
    """Tests for get_anthropic_api_key()."""

    def test_key_present(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test-key")
        assert get_anthropic_api_key() == "sk-ant-test-key"

    def test_key_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            get_anthropic_api_key()


class TestGetLlmModel:
    """Tests for get_llm_model()."""

    def test_default_model(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LLM_MODEL", raising=False)
        assert get_llm_model() == "claude-haiku-4-5-20251001"

    def test_custom_model(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM_MODEL", "claude-sonnet-4-20250514")
        assert get_llm_model() == "claude-sonnet-4-20250514"
