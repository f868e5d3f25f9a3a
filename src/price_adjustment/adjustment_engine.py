# This module computes a new product price from a quote and an adjustment strategy.
# It exists to keep the arithmetic of bulk price updates in pure functions with no I/O or shared state.
# Post-processing order is fixed: clamp at zero, apply the rounding rule, then round to currency scale.
# Internal math stays in full float precision; only the returned value is cut to two decimals.

from __future__ import annotations

import math

from src.price_adjustment.price_types import (
    AdjustmentType,
    HeuristicThresholds,
    PriceQuote,
    PriceUpdateResult,
    RoundingRule,
    ValidationRules,
)
from src.price_adjustment.price_validation import percent_change, validate_price_change


def to_currency(value: float) -> float:
    # `+ 0.0` folds -0.0 into 0.0.
    return round(float(value), 2) + 0.0


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def apply_rounding(price: float, rounding_rule: RoundingRule | str, custom_unit: float | None = None) -> float:
    rule = RoundingRule(rounding_rule)
    # Infinite prices pass through unchanged so the guard rails can flag them.
    if rule is RoundingRule.NONE or not math.isfinite(price):
        return price
    if rule is RoundingRule.NEAREST:
        return _round_half_up(price)
    if rule is RoundingRule.UP:
        return float(math.ceil(price))
    if rule is RoundingRule.DOWN:
        return float(math.floor(price))
    if rule is RoundingRule.CUSTOM:
        unit = custom_unit if custom_unit is not None and custom_unit > 0 else 1.0
        scaled = price / unit
        if not math.isfinite(scaled):
            return price
        return _round_half_up(scaled) * unit
    raise ValueError(f"Unsupported rounding rule: {rule}")


def _raw_price(quote: PriceQuote, adjustment_type: AdjustmentType, value: float) -> float:
    current = float(quote.current_price)
    if adjustment_type is AdjustmentType.PERCENTAGE:
        return current * (1 + value / 100)
    if adjustment_type is AdjustmentType.FIXED:
        return current + value
    if adjustment_type is AdjustmentType.MARGIN:
        cost = float(quote.cost or 0.0)
        if cost > 0:
            return cost * (1 + value / 100)
        # Without a cost the value is applied as a plain increase over the current price.
        return current * (1 + value / 100)
    if adjustment_type in (AdjustmentType.COMPETITION, AdjustmentType.MANUAL):
        return value
    raise ValueError(f"Unsupported adjustment type: {adjustment_type}")


def compute_new_price(quote: PriceQuote) -> float:
    adjustment_type = AdjustmentType(quote.adjustment_type)
    value = quote.adjustment_value

    if adjustment_type is AdjustmentType.MANUAL and (value is None or not math.isfinite(value)):
        return quote.current_price

    raw = _raw_price(quote, adjustment_type, float(value or 0.0))
    clamped = max(0.0, raw)
    rounded = apply_rounding(clamped, quote.rounding_rule, quote.custom_rounding_unit)
    return to_currency(rounded)


def compute_change_metrics(current_price: float, new_price: float) -> tuple[float, float]:
    change_amount = float(new_price) - float(current_price)
    return to_currency(change_amount), to_currency(percent_change(current_price, new_price))


def compute_price_update(
    quote: PriceQuote,
    rules: ValidationRules | None = None,
    heuristics: HeuristicThresholds | None = None,
) -> PriceUpdateResult:
    new_price = compute_new_price(quote)
    change_amount, change_percent = compute_change_metrics(quote.current_price, new_price)
    warnings = validate_price_change(quote.current_price, new_price, rules, heuristics)
    return PriceUpdateResult(
        new_price=new_price,
        change_amount=change_amount,
        change_percent=change_percent,
        warnings=tuple(warnings),
    )


def margin_percent(price: float, cost: float | None) -> float:
    price_value = float(price)
    cost_value = float(cost or 0.0)
    if cost_value > 0 and price_value > 0:
        return (price_value - cost_value) / price_value * 100.0
    return 0.0
