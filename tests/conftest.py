"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import pytest

from travel_receipts.config import ParserConfig

if TYPE_CHECKING:
    from collections.abc import Callable

FIXED_NOW = datetime(2025, 6, 15, 10, 30, 45)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Provide a clock that always returns 2025-06-15 10:30:45."""
    return lambda: FIXED_NOW


@pytest.fixture
def parser_config() -> ParserConfig:
    """Provide the default parser configuration with HKD as home currency."""
    return ParserConfig(home_currency="HKD")


@pytest.fixture
def acme_receipt_text() -> str:
    """Provide a small English receipt with one structured item line."""
    return "\n".join(
        [
            "ACME MART",
            "2024-03-15",
            "14:30",
            "Cola  5.00  2  10.00",
            "TOTAL  10.00",
        ]
    )


@pytest.fixture
def hk_receipt_text() -> str:
    """Provide a Hong Kong supermarket receipt with multiplier lines."""
    return "\n".join(
        [
            "惠康 Wellcome",
            "收據 Receipt",
            "Tel: 2345 6789",
            "15/03/2024 9:05:12",
            "Green Tea 500ml",
            "X 2 $12.90 $25.80",
            "Potato Chips",
            "1 @ 15.50 15.50",
            "優惠 -3.00",
            "合計",
            "HK$38.30",
        ]
    )
