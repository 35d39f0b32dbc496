"""Core domain model for repair jobs.

A JobRecord is one completed repair as stored in the shop's job sheet.
Sheet rows are loosely typed: mobile numbers arrive as numbers, amounts as
strings with thousands separators, and dates in several shapes. The model
absorbs all of that at construction time so downstream code only ever sees
clean values.
"""

import math
from typing import Any, Dict, Mapping, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from repair_tracker.normalization.dates import normalize_date

_AMOUNT_KEYS = {
    "price": ("price",),
    "parts_cost": ("parts_cost", "partsCost"),
    "profit": ("profit",),
}


def coerce_amount(value: Any) -> float:
    """Convert a loosely typed money value to float; anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def coerce_text(value: Any) -> str:
    """Convert a loosely typed text cell to a stripped string."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _first_present(data: Mapping[str, Any], keys) -> Any:
    for key in keys:
        if key in data and data[key] is not None and data[key] != "":
            return data[key]
    return None


class JobRecord(BaseModel):
    """A single repair job.

    Input accepts both the snake_case field names and the sheet's camelCase
    wire names (``customerName``, ``tvModel``, ``workDone``, ``partsCost``).
    When ``profit`` is missing it is derived as ``price - parts_cost``; a
    supplied profit is kept as-is even when it disagrees.
    """

    date: str = Field("", description="Canonical YYYY-MM-DD day, raw text if unparseable, '' if absent")
    customer_name: str = Field(
        "", validation_alias=AliasChoices("customer_name", "customerName")
    )
    mobile: str = Field("", description="Customer phone number as entered")
    device_model: str = Field(
        "", validation_alias=AliasChoices("device_model", "deviceModel", "tvModel")
    )
    work_description: str = Field(
        "", validation_alias=AliasChoices("work_description", "workDescription", "workDone")
    )
    price: float = Field(0.0, description="Amount charged")
    parts_cost: float = Field(0.0, validation_alias=AliasChoices("parts_cost", "partsCost"))
    profit: float = Field(0.0, description="Amount earned after parts")

    model_config = {"frozen": True, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def derive_profit(cls, data: Any) -> Any:
        """Fill in profit from price and parts cost when it was not supplied."""
        if not isinstance(data, Mapping):
            return data
        if _first_present(data, _AMOUNT_KEYS["profit"]) is not None:
            return data
        values = dict(data)
        price = coerce_amount(_first_present(data, _AMOUNT_KEYS["price"]))
        parts_cost = coerce_amount(_first_present(data, _AMOUNT_KEYS["parts_cost"]))
        values["profit"] = price - parts_cost
        return values

    @field_validator("customer_name", "mobile", "device_model", "work_description", mode="before")
    @classmethod
    def clean_text(cls, v: Any) -> str:
        return coerce_text(v)

    @field_validator("price", "parts_cost", "profit", mode="before")
    @classmethod
    def clean_amount(cls, v: Any) -> float:
        return coerce_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def canonical_date(cls, v: Any) -> str:
        """Normalize whatever the sheet produced to a canonical day."""
        return normalize_date(v)

    @classmethod
    def from_raw(cls, raw: Union["JobRecord", Mapping[str, Any]]) -> "JobRecord":
        """Build a record from a sheet row, API payload or existing record."""
        if isinstance(raw, JobRecord):
            return raw
        return cls.model_validate(dict(raw))

    @property
    def category(self) -> str:
        """Brand name: first word of the device model, or 'Other'."""
        tokens = self.device_model.split()
        return tokens[0] if tokens else "Other"

    def to_sheet_payload(self) -> Dict[str, Any]:
        """Wire representation understood by the spreadsheet script."""
        return {
            "date": self.date,
            "customerName": self.customer_name,
            "mobile": self.mobile,
            "tvModel": self.device_model,
            "workDone": self.work_description,
            "price": self.price,
            "partsCost": self.parts_cost,
            "profit": self.profit,
        }
