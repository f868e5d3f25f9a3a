# This module flags risky price changes against configured guard rails.
# It exists so bulk updates surface min/max and percent-change concerns as plain warnings.
# Validation is advisory: nothing here raises for a business-rule violation, flagged rows can still be applied.
# Every check is evaluated independently so an operator sees all reasons at once.

from __future__ import annotations

from src.price_adjustment.price_types import HeuristicThresholds, ValidationRules

DEFAULT_HEURISTICS = HeuristicThresholds()


def percent_change(current_price: float, new_price: float) -> float:
    current = float(current_price)
    if current > 0:
        return (float(new_price) - current) / current * 100.0
    return 0.0


def format_threshold(value: float) -> str:
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return str(number)


def validate_price_change(
    current_price: float,
    new_price: float,
    rules: ValidationRules | None = None,
    heuristics: HeuristicThresholds | None = None,
) -> list[str]:
    warnings: list[str] = []
    new = float(new_price)
    change = percent_change(current_price, new)

    if rules is not None:
        if rules.min_price is not None and new < rules.min_price:
            warnings.append(f"Price below minimum threshold of {format_threshold(rules.min_price)}")
        if rules.max_price is not None and new > rules.max_price:
            warnings.append(f"Price above maximum threshold of {format_threshold(rules.max_price)}")
        if rules.max_increase_percent is not None and change > rules.max_increase_percent:
            warnings.append(f"Increase exceeds {format_threshold(rules.max_increase_percent)}% limit")
        if rules.max_decrease_percent is not None and change < -rules.max_decrease_percent:
            warnings.append(f"Decrease exceeds {format_threshold(rules.max_decrease_percent)}% limit")

    limits = heuristics or DEFAULT_HEURISTICS
    if change > limits.large_increase_percent:
        warnings.append(f"Large price increase (>{format_threshold(limits.large_increase_percent)}%)")
    if change < -limits.large_decrease_percent:
        warnings.append(f"Large price decrease (>{format_threshold(limits.large_decrease_percent)}%)")
    if new == 0:
        warnings.append("Zero price detected")

    return warnings
