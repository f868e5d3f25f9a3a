# This module defines the closed vocabularies and immutable records shared by the price engine.
# It exists so strategy and rounding names are checked in one place instead of string-matched by callers.
# Quotes and rules are frozen; results are created fresh for every computation.
# Callers construct these from form input through `form_inputs`, never by hand-parsing strings.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AdjustmentType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    MARGIN = "margin"
    COMPETITION = "competition"
    MANUAL = "manual"


class RoundingRule(str, Enum):
    NONE = "none"
    NEAREST = "nearest"
    UP = "up"
    DOWN = "down"
    CUSTOM = "custom"


class PriceType(str, Enum):
    """Which product field a bulk run treats as the current price."""

    SELLING = "selling"
    COST = "cost"
    MRP = "mrp"

    @property
    def product_field(self) -> str:
        return {"selling": "price", "cost": "cost", "mrp": "mrp"}[self.value]


@dataclass(frozen=True)
class PriceQuote:
    current_price: float
    adjustment_type: AdjustmentType
    adjustment_value: float | None = None
    rounding_rule: RoundingRule = RoundingRule.NONE
    cost: float | None = None
    custom_rounding_unit: float | None = None


@dataclass(frozen=True)
class ValidationRules:
    min_price: float | None = None
    max_price: float | None = None
    max_increase_percent: float | None = None
    max_decrease_percent: float | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.min_price, self.max_price, self.max_increase_percent, self.max_decrease_percent)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_price": self.min_price,
            "max_price": self.max_price,
            "max_increase_percent": self.max_increase_percent,
            "max_decrease_percent": self.max_decrease_percent,
        }


@dataclass(frozen=True)
class HeuristicThresholds:
    large_increase_percent: float = 50.0
    large_decrease_percent: float = 30.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "large_increase_percent": self.large_increase_percent,
            "large_decrease_percent": self.large_decrease_percent,
        }


@dataclass(frozen=True)
class PriceUpdateResult:
    new_price: float
    change_amount: float
    change_percent: float
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "new_price": self.new_price,
            "change_amount": self.change_amount,
            "change_percent": self.change_percent,
            "warnings": list(self.warnings),
        }
