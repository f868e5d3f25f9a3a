# This test file validates coercion of submitted form strings into typed engine inputs.
# It exists because forms always post strings and malformed numbers must fall back to zero.

from __future__ import annotations

import pytest

from src.price_adjustment.form_inputs import (
    PriceUpdateForm,
    PriceUpdateFormError,
    coerce_number,
    parse_optional_number,
)
from src.price_adjustment.price_types import AdjustmentType, PriceType, RoundingRule, ValidationRules


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("12.5", 12.5), (" 7 ", 7.0), (7, 7.0), ("abc", 0.0), ("", 0.0), (None, 0.0), ("nan", 0.0), ("inf", 0.0)],
)
def test_coerce_number(raw: object, expected: float) -> None:
    assert coerce_number(raw) == expected


def test_parse_optional_number_keeps_missing_values_unset() -> None:
    assert parse_optional_number("abc") is None
    assert parse_optional_number("  ") is None
    assert parse_optional_number(True) is None
    assert parse_optional_number("0") == 0.0


def test_form_accepts_camel_case_payload() -> None:
    form = PriceUpdateForm.model_validate(
        {
            "adjustmentType": "margin",
            "adjustmentValue": "25",
            "priceType": "mrp",
            "roundingRule": "custom",
            "customRounding": "5",
            "validationRules": {"minPrice": "", "maxIncrease": "50", "maxDecrease": "oops"},
        }
    )

    assert form.adjustment_type is AdjustmentType.MARGIN
    assert form.price_type is PriceType.MRP
    assert form.rounding_rule is RoundingRule.CUSTOM
    assert form.to_validation_rules() == ValidationRules(max_increase_percent=50.0)

    quote = form.to_quote("120", cost="60")
    assert quote.current_price == 120.0
    assert quote.cost == 60.0
    assert quote.adjustment_value == 25.0
    assert quote.custom_rounding_unit == 5.0


def test_non_numeric_adjustment_coerces_to_zero_for_non_manual_types() -> None:
    form = PriceUpdateForm(adjustment_type="percentage", adjustment_value="abc")
    assert form.to_quote("100").adjustment_value == 0.0


def test_numeric_values_are_accepted_as_form_strings() -> None:
    form = PriceUpdateForm(adjustment_type="fixed", adjustment_value=10, custom_rounding=2.5)
    assert form.adjustment_value == "10"
    assert form.to_quote(40).adjustment_value == 10.0


def test_missing_adjustment_value_is_rejected_except_for_manual() -> None:
    with pytest.raises(PriceUpdateFormError, match="Please enter an adjustment value"):
        PriceUpdateForm(adjustment_type="percentage", adjustment_value="  ").require_adjustment_value()

    PriceUpdateForm(adjustment_type="manual").require_adjustment_value()


def test_form_without_rules_has_no_validation_rules() -> None:
    form = PriceUpdateForm(adjustment_value="5")
    assert form.to_validation_rules() is None
    assert form.rounding_rule is RoundingRule.NEAREST
