"""Input and output models for receipt text interpretation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from travel_receipts.config import UNKNOWN_SHOP
from travel_receipts.normalize import normalize_time

_RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
    frozen=True,
)


class FieldSource(StrEnum):
    """How a receipt field got its value."""

    MATCHED = "matched"
    DEFAULTED = "defaulted"
    RECOGNIZED = "recognized"


@dataclass(frozen=True)
class RecognizedText:
    """Text produced by an image-to-text step, split into trimmed lines."""

    raw: str
    lines: tuple[str, ...]

    @classmethod
    def from_raw(cls, raw: str) -> RecognizedText:
        lines = tuple(line.strip() for line in raw.splitlines() if line.strip())
        return cls(raw=raw, lines=lines)


class ParsedItem(BaseModel):
    """A single purchased product line."""

    model_config = _RECORD_CONFIG

    name: str = Field(min_length=1)
    name_chinese: str | None = None
    price: Decimal = Field(ge=0)
    qty: int = Field(default=1, ge=1)
    discount: Decimal = Field(default=Decimal(0), ge=0)
    type: str = "other"


class ParsedReceipt(BaseModel):
    """Structured transaction record built from one receipt."""

    model_config = _RECORD_CONFIG

    shop_name: str = Field(default=UNKNOWN_SHOP, min_length=1)
    shop_address: str | None = None
    country: str | None = None
    tel: str | None = None
    tx_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    tx_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    currency: str = Field(pattern=r"^[A-Z]{3}$")
    total_amount: Decimal = Field(default=Decimal(0), ge=0)
    items: tuple[ParsedItem, ...] = ()
    provenance: dict[str, FieldSource] = Field(default_factory=dict)

    @field_validator("tx_date")
    @classmethod
    def _real_calendar_date(cls, value: str) -> str:
        date.fromisoformat(value)
        return value

    @field_validator("tx_time")
    @classmethod
    def _real_clock_time(cls, value: str) -> str:
        hour, minute = (int(part) for part in value.split(":"))
        if hour > 23 or minute > 59:
            msg = f"invalid time {value!r}"
            raise ValueError(msg)
        return value

    def defaulted_fields(self) -> list[str]:
        """Return the names of fields filled with a default value."""
        return [
            name
            for name, source in self.provenance.items()
            if source is FieldSource.DEFAULTED
        ]


class ReceiptDocument(BaseModel):
    """Receipt object as returned by an image-understanding service.

    Missing or null optional fields are tolerated; ``shopName``, ``txDate``,
    ``totalAmount`` and ``items`` must be present.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    shop_name: str = Field(min_length=1)
    shop_address: str | None = None
    country: str | None = None
    tel: str | None = None
    tx_date: date
    tx_time: str | None = Field(default=None, pattern=r"^\d{1,2}:\d{2}(:\d{2})?$")
    currency: str | None = Field(default=None, pattern=r"^[A-Z]{3}$")
    total_amount: Decimal = Field(ge=0)
    items: list[ParsedItem]

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = {key: value for key, value in data.items() if value is not None}
        items = cleaned.get("items")
        if isinstance(items, list):
            cleaned["items"] = [
                {k: v for k, v in item.items() if v is not None}
                if isinstance(item, dict)
                else item
                for item in items
            ]
        return cleaned

    def to_parsed_receipt(self, *, home_currency: str, now: datetime) -> ParsedReceipt:
        """Convert to a ParsedReceipt, defaulting time and currency."""
        provenance = {
            "shop_name": FieldSource.RECOGNIZED,
            "tx_date": FieldSource.RECOGNIZED,
            "total_amount": FieldSource.RECOGNIZED,
        }
        if self.tx_time is not None:
            hour, minute = self.tx_time.split(":")[:2]
            tx_time = normalize_time(hour, minute)
            provenance["tx_time"] = FieldSource.RECOGNIZED
        else:
            tx_time = now.strftime("%H:%M")
            provenance["tx_time"] = FieldSource.DEFAULTED
        provenance["currency"] = (
            FieldSource.RECOGNIZED if self.currency else FieldSource.DEFAULTED
        )
        provenance["tel"] = (
            FieldSource.RECOGNIZED if self.tel else FieldSource.DEFAULTED
        )

        return ParsedReceipt(
            shop_name=self.shop_name,
            shop_address=self.shop_address,
            country=self.country,
            tel=self.tel,
            tx_date=self.tx_date.isoformat(),
            tx_time=tx_time,
            currency=self.currency or home_currency,
            total_amount=self.total_amount,
            items=tuple(self.items),
            provenance=provenance,
        )
