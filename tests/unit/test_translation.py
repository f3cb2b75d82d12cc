"""Tests for travel_receipts.translation."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

from travel_receipts.models import ParsedItem, ParsedReceipt
from travel_receipts.translation import (
    Translation,
    fill_translations,
    translate_to_chinese,
)


def _agent_returning(output: str) -> MagicMock:
    mock_result = MagicMock()
    mock_result.output = output
    mock_agent = MagicMock()
    mock_agent.run_sync.return_value = mock_result
    return mock_agent


class TestTranslateToChinese:
    """Tests for translate_to_chinese()."""

    def test_returns_model_translation(self) -> None:
        agent = _agent_returning(" 可樂 \n")
        result = translate_to_chinese("Cola", agent=agent)
        assert result == Translation(chinese="可樂", source="model")
        assert "Cola" in agent.run_sync.call_args[0][0]

    def test_failure_returns_manual(self) -> None:
        agent = MagicMock()
        agent.run_sync.side_effect = RuntimeError("network down")
        result = translate_to_chinese("Cola", agent=agent)
        assert result == Translation(chinese="", source="manual")

    def test_empty_reply_returns_manual(self) -> None:
        result = translate_to_chinese("Cola", agent=_agent_returning("   "))
        assert result.source == "manual"

    def test_blank_text_skips_agent(self) -> None:
        agent = _agent_returning("unused")
        result = translate_to_chinese("  ", agent=agent)
        assert result.chinese == ""
        agent.run_sync.assert_not_called()


class TestFillTranslations:
    """Tests for fill_translations()."""

    def _receipt(self) -> ParsedReceipt:
        return ParsedReceipt(
            tx_date="2024-03-15",
            tx_time="14:30",
            currency="JPY",
            items=(
                ParsedItem(name="Cola", price=Decimal(150)),
                ParsedItem(name="Tea", name_chinese="茶", price=Decimal(120)),
                ParsedItem(name="Unknown thing", price=Decimal(99)),
            ),
        )

    def test_fills_missing_names(self) -> None:
        names = {"Cola": "可樂"}
        calls: list[str] = []

        def translate(text: str) -> Translation:
            calls.append(text)
            if text in names:
                return Translation(chinese=names[text], source="model")
            return Translation(chinese="", source="manual")

        receipt = self._receipt()
        filled = fill_translations(receipt, translate)

        assert [item.name_chinese for item in filled.items] == ["可樂", "茶", None]
        assert calls == ["Cola", "Unknown thing"]
        assert receipt.items[0].name_chinese is None
