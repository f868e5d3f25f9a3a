# This module is the single edge adapter between submitted form values and the numeric price engine.
# It exists because upstream forms always submit strings, while the engine only accepts typed numbers.
# Malformed numbers coerce to zero instead of raising; manual overrides that fail to parse stay unset.
# The pydantic models accept the camelCase field names the forms post as well as snake_case names.

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.price_adjustment.price_types import (
    AdjustmentType,
    PriceQuote,
    PriceType,
    RoundingRule,
    ValidationRules,
)


class PriceUpdateFormError(ValueError):
    """Raised when a submitted form cannot start a price update run."""


def parse_optional_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def coerce_number(value: Any) -> float:
    parsed = parse_optional_number(value)
    if parsed is None:
        return 0.0
    return parsed


def _as_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class ValidationRulesForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    min_price: str | None = Field(default=None, alias="minPrice")
    max_price: str | None = Field(default=None, alias="maxPrice")
    max_increase: str | None = Field(default=None, alias="maxIncrease")
    max_decrease: str | None = Field(default=None, alias="maxDecrease")

    @field_validator("min_price", "max_price", "max_increase", "max_decrease", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        return _as_optional_text(value)

    def to_validation_rules(self) -> ValidationRules:
        return ValidationRules(
            min_price=parse_optional_number(self.min_price),
            max_price=parse_optional_number(self.max_price),
            max_increase_percent=parse_optional_number(self.max_increase),
            max_decrease_percent=parse_optional_number(self.max_decrease),
        )


class PriceUpdateForm(BaseModel):
    """Bulk price update request as submitted by the review screen."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    adjustment_type: AdjustmentType = Field(default=AdjustmentType.PERCENTAGE, alias="adjustmentType")
    adjustment_value: str | None = Field(default=None, alias="adjustmentValue")
    category: str | None = None
    price_type: PriceType = Field(default=PriceType.SELLING, alias="priceType")
    rounding_rule: RoundingRule = Field(default=RoundingRule.NEAREST, alias="roundingRule")
    custom_rounding: str | None = Field(default=None, alias="customRounding")
    reason: str | None = None
    validation_rules: ValidationRulesForm | None = Field(default=None, alias="validationRules")

    @field_validator("adjustment_value", "custom_rounding", "category", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        return _as_optional_text(value)

    def require_adjustment_value(self) -> None:
        if self.adjustment_type is AdjustmentType.MANUAL:
            return
        if self.adjustment_value is None or self.adjustment_value.strip() == "":
            raise PriceUpdateFormError("Please enter an adjustment value")

    def parsed_adjustment_value(self) -> float | None:
        if self.adjustment_type is AdjustmentType.MANUAL:
            return parse_optional_number(self.adjustment_value)
        return coerce_number(self.adjustment_value)

    def to_quote(self, current_price: Any, cost: Any = None) -> PriceQuote:
        return PriceQuote(
            current_price=coerce_number(current_price),
            adjustment_type=self.adjustment_type,
            adjustment_value=self.parsed_adjustment_value(),
            rounding_rule=self.rounding_rule,
            cost=None if cost is None else coerce_number(cost),
            custom_rounding_unit=parse_optional_number(self.custom_rounding),
        )

    def to_validation_rules(self) -> ValidationRules | None:
        if self.validation_rules is None:
            return None
        return self.validation_rules.to_validation_rules()
