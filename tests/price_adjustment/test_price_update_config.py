# This test file validates loading of the price update policy file.
# It exists so YAML defaults, environment overrides, and load-time validation stay predictable.

from __future__ import annotations

from pathlib import Path

import pytest

from src.price_adjustment.price_types import AdjustmentType, HeuristicThresholds, RoundingRule
from src.price_adjustment.price_update_config import load_price_update_config

ROOT_DIR = Path(__file__).resolve().parents[2]


def _write_policy(tmp_path: Path, body: str) -> str:
    path = tmp_path / "price_update_policy.yaml"
    path.write_text(body, encoding="utf-8")
    return str(path)


def test_repository_default_policy_loads() -> None:
    config = load_price_update_config(config_path=str(ROOT_DIR / "configs" / "price_update_policy.yaml"))

    assert config.default_adjustment_type is AdjustmentType.PERCENTAGE
    assert config.default_rounding_rule is RoundingRule.NEAREST
    assert config.validation_rules.is_empty()
    assert config.heuristics == HeuristicThresholds()
    assert config.repack_selling_markup_percent == 30.0
    assert config.repack_mrp_markup_percent == 50.0
    assert config.strict_checks is True


def test_environment_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write_policy(
        tmp_path,
        "validation_rules:\n  min_price: 5\n  max_increase_percent: 40\nstrict_checks: true\n",
    )
    monkeypatch.setenv("PRICE_UPDATE_MAX_INCREASE_PERCENT", "25")
    monkeypatch.setenv("PRICE_UPDATE_STRICT_CHECKS", "false")
    monkeypatch.setenv("PRICE_UPDATE_DEFAULT_ROUNDING_RULE", "custom")

    config = load_price_update_config(config_path=path)

    assert config.validation_rules.min_price == 5.0
    assert config.validation_rules.max_increase_percent == 25.0
    assert config.strict_checks is False
    assert config.default_rounding_rule is RoundingRule.CUSTOM
    assert config.to_dict()["validation_rules"]["max_increase_percent"] == 25.0


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("default_rounding_rule: banker\n", "DEFAULT_ROUNDING_RULE"),
        ("default_adjustment_type: discount\n", "DEFAULT_ADJUSTMENT_TYPE"),
        ("default_custom_rounding_unit: -5\n", "default_custom_rounding_unit"),
        ("validation_rules:\n  min_price: 10\n  max_price: 5\n", "max_price"),
        ("validation_rules:\n  max_decrease_percent: -1\n", "max_decrease_percent"),
    ],
)
def test_invalid_policy_values_are_rejected(tmp_path: Path, body: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        load_price_update_config(config_path=_write_policy(tmp_path, body))


def test_policy_must_be_a_mapping(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="must be a mapping"):
        load_price_update_config(config_path=_write_policy(tmp_path, "- one\n- two\n"))
