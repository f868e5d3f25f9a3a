# This test file validates guard-rail warnings for proposed price changes.
# It exists so every configured limit and built-in heuristic keeps its exact operator-facing message.
# The checks are independent, so several warnings can fire for one change.

from __future__ import annotations

import pytest

from src.price_adjustment.price_types import HeuristicThresholds, ValidationRules
from src.price_adjustment.price_validation import percent_change, validate_price_change


def test_increase_limit_and_heuristic_both_fire() -> None:
    warnings = validate_price_change(50.0, 80.0, ValidationRules(max_increase_percent=50.0))

    assert warnings == ["Increase exceeds 50% limit", "Large price increase (>50%)"]


def test_min_and_max_thresholds() -> None:
    assert validate_price_change(100.0, 95.0, ValidationRules(min_price=99.5)) == [
        "Price below minimum threshold of 99.5"
    ]
    assert validate_price_change(150.0, 160.0, ValidationRules(max_price=150.0)) == [
        "Price above maximum threshold of 150"
    ]


def test_decrease_limit() -> None:
    warnings = validate_price_change(100.0, 85.0, ValidationRules(max_decrease_percent=10.0))
    assert warnings == ["Decrease exceeds 10% limit"]


def test_zero_price_and_large_decrease() -> None:
    assert validate_price_change(100.0, 0.0) == ["Large price decrease (>30%)", "Zero price detected"]


def test_all_checks_are_evaluated_in_order() -> None:
    rules = ValidationRules(min_price=10.0, max_price=1.0, max_increase_percent=5.0, max_decrease_percent=5.0)

    warnings = validate_price_change(100.0, 0.0, rules)

    assert warnings == [
        "Price below minimum threshold of 10",
        "Decrease exceeds 5% limit",
        "Large price decrease (>30%)",
        "Zero price detected",
    ]


def test_rules_are_not_mutated() -> None:
    rules = ValidationRules(min_price=5.0, max_increase_percent=20.0)
    snapshot = rules.to_dict()

    validate_price_change(10.0, 100.0, rules)

    assert rules.to_dict() == snapshot


@pytest.mark.parametrize(
    ("current", "new"),
    [(-10.0, 5.0), (0.0, 0.0), (-1.0, -1.0), (1e-9, 1e12), (250.0, 250.0)],
)
def test_validation_is_total_for_finite_inputs(current: float, new: float) -> None:
    warnings = validate_price_change(current, new, ValidationRules(0.0, 10.0, 1.0, 1.0))
    assert isinstance(warnings, list)


def test_negative_current_price_has_no_percent_change() -> None:
    assert percent_change(-10.0, 5.0) == 0.0
    assert validate_price_change(-10.0, 5.0) == []


def test_custom_heuristic_thresholds() -> None:
    heuristics = HeuristicThresholds(large_increase_percent=20.0, large_decrease_percent=10.0)

    assert validate_price_change(100.0, 125.0, heuristics=heuristics) == ["Large price increase (>20%)"]
    assert validate_price_change(100.0, 85.0, heuristics=heuristics) == ["Large price decrease (>10%)"]
