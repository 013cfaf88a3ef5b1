"""Pydantic model for one row of a bank statement CSV export."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator

from ledgerdesk.domain.model import TransactionType

REQUIRED_COLUMNS = ("date", "amount", "description")


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class CsvRow(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)

    date: datetime
    amount: Decimal
    description: str = ""
    reference: str | None = None
    external_id: str | None = None
    type: TransactionType | None = None
    category: str | None = None
    notes: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: object) -> object:
        if isinstance(value, str):
            return datetime.fromisoformat(value.strip())
        return value

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @field_validator("amount", mode="before")
    @classmethod
    def _strip_grouping(cls, value: object) -> object:
        if isinstance(value, str):
            return value.replace(",", "").replace(" ", "")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value: object) -> object:
        value = _blank_to_none(value)
        return value.lower() if isinstance(value, str) else value

    _normalize_optional = field_validator(
        "reference",
        "external_id",
        "category",
        "notes",
        mode="before",
    )(_blank_to_none)

