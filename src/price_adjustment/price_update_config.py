# This file defines runtime configuration for bulk price updates and repack pricing.
# It exists so interactive previews, batch runs, and tests all use one consistent policy surface.
# The loader merges YAML defaults with environment overrides and validates the guard-rail settings.
# The resulting config is immutable and passed explicitly into every call that needs it.

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import yaml

from src.price_adjustment.price_types import (
    AdjustmentType,
    HeuristicThresholds,
    PriceType,
    RoundingRule,
    ValidationRules,
)


def _load_yaml(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config at {path} must be a mapping, got: {type(loaded).__name__}")
    return dict(loaded)


def _env_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value


def _env_float(name: str, default: float | None = None) -> float | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def _env_int(name: str, default: int | None = None) -> int | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_bool(name: str, default: bool | None = None) -> bool | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean value (true/false), got: {value!r}")


def _optional_float(value: Any) -> float | None:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    return float(value)


@dataclass(frozen=True)
class PriceUpdateConfig:
    price_update_policy_version: str

    default_adjustment_type: AdjustmentType
    default_price_type: PriceType
    default_rounding_rule: RoundingRule
    default_custom_rounding_unit: float

    validation_rules: ValidationRules
    heuristics: HeuristicThresholds

    repack_selling_markup_percent: float
    repack_mrp_markup_percent: float

    strict_checks: bool
    report_sample_size: int
    reports_dir: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "price_update_policy_version": self.price_update_policy_version,
            "default_adjustment_type": self.default_adjustment_type.value,
            "default_price_type": self.default_price_type.value,
            "default_rounding_rule": self.default_rounding_rule.value,
            "default_custom_rounding_unit": self.default_custom_rounding_unit,
            "validation_rules": self.validation_rules.to_dict(),
            "heuristics": self.heuristics.to_dict(),
            "repack_selling_markup_percent": self.repack_selling_markup_percent,
            "repack_mrp_markup_percent": self.repack_mrp_markup_percent,
            "strict_checks": self.strict_checks,
            "report_sample_size": self.report_sample_size,
            "reports_dir": self.reports_dir,
        }


def load_price_update_config(*, config_path: str = "configs/price_update_policy.yaml") -> PriceUpdateConfig:
    cfg = _load_yaml(config_path)
    rules_cfg = dict(cfg.get("validation_rules") or {})
    heuristics_cfg = dict(cfg.get("heuristics") or {})
    repack_cfg = dict(cfg.get("repack") or {})

    policy_version = str(
        _env_str("PRICE_UPDATE_POLICY_VERSION", str(cfg.get("price_update_policy_version", "pu1")))
    )
    adjustment_type_raw = str(
        _env_str("PRICE_UPDATE_DEFAULT_ADJUSTMENT_TYPE", str(cfg.get("default_adjustment_type", "percentage")))
    )
    price_type_raw = str(_env_str("PRICE_UPDATE_DEFAULT_PRICE_TYPE", str(cfg.get("default_price_type", "selling"))))
    rounding_rule_raw = str(
        _env_str("PRICE_UPDATE_DEFAULT_ROUNDING_RULE", str(cfg.get("default_rounding_rule", "nearest")))
    )
    custom_unit = float(
        _env_float("PRICE_UPDATE_CUSTOM_ROUNDING_UNIT", float(cfg.get("default_custom_rounding_unit", 1.0))) or 1.0
    )

    validation_rules = ValidationRules(
        min_price=_env_float("PRICE_UPDATE_MIN_PRICE", _optional_float(rules_cfg.get("min_price"))),
        max_price=_env_float("PRICE_UPDATE_MAX_PRICE", _optional_float(rules_cfg.get("max_price"))),
        max_increase_percent=_env_float(
            "PRICE_UPDATE_MAX_INCREASE_PERCENT", _optional_float(rules_cfg.get("max_increase_percent"))
        ),
        max_decrease_percent=_env_float(
            "PRICE_UPDATE_MAX_DECREASE_PERCENT", _optional_float(rules_cfg.get("max_decrease_percent"))
        ),
    )
    heuristics = HeuristicThresholds(
        large_increase_percent=float(
            _env_float(
                "PRICE_UPDATE_LARGE_INCREASE_PERCENT", float(heuristics_cfg.get("large_increase_percent", 50.0))
            )
        ),
        large_decrease_percent=float(
            _env_float(
                "PRICE_UPDATE_LARGE_DECREASE_PERCENT", float(heuristics_cfg.get("large_decrease_percent", 30.0))
            )
        ),
    )

    repack_selling_markup_percent = float(
        _env_float("PRICE_UPDATE_REPACK_SELLING_MARKUP", float(repack_cfg.get("selling_markup_percent", 30.0)))
    )
    repack_mrp_markup_percent = float(
        _env_float("PRICE_UPDATE_REPACK_MRP_MARKUP", float(repack_cfg.get("mrp_markup_percent", 50.0)))
    )

    strict_checks = bool(_env_bool("PRICE_UPDATE_STRICT_CHECKS", bool(cfg.get("strict_checks", True))))
    report_sample_size = int(
        _env_int("PRICE_UPDATE_REPORT_SAMPLE_SIZE", int(cfg.get("report_sample_size", 300))) or 300
    )
    reports_dir = str(_env_str("PRICE_UPDATE_REPORTS_DIR", str(cfg.get("reports_dir", "reports/price_updates"))))

    valid_adjustments = {item.value for item in AdjustmentType}
    if adjustment_type_raw not in valid_adjustments:
        raise ValueError(
            f"PRICE_UPDATE_DEFAULT_ADJUSTMENT_TYPE must be one of {sorted(valid_adjustments)}, got {adjustment_type_raw}"
        )
    valid_price_types = {item.value for item in PriceType}
    if price_type_raw not in valid_price_types:
        raise ValueError(
            f"PRICE_UPDATE_DEFAULT_PRICE_TYPE must be one of {sorted(valid_price_types)}, got {price_type_raw}"
        )
    valid_rounding = {item.value for item in RoundingRule}
    if rounding_rule_raw not in valid_rounding:
        raise ValueError(
            f"PRICE_UPDATE_DEFAULT_ROUNDING_RULE must be one of {sorted(valid_rounding)}, got {rounding_rule_raw}"
        )

    if custom_unit <= 0:
        raise ValueError("default_custom_rounding_unit must be > 0")
    if (
        validation_rules.min_price is not None
        and validation_rules.max_price is not None
        and validation_rules.max_price < validation_rules.min_price
    ):
        raise ValueError("validation_rules.max_price cannot be below validation_rules.min_price")
    for name, value in (
        ("max_increase_percent", validation_rules.max_increase_percent),
        ("max_decrease_percent", validation_rules.max_decrease_percent),
    ):
        if value is not None and value < 0:
            raise ValueError(f"validation_rules.{name} must be nonnegative")
    if heuristics.large_increase_percent < 0 or heuristics.large_decrease_percent < 0:
        raise ValueError("heuristic percent thresholds must be nonnegative")
    if repack_selling_markup_percent < 0 or repack_mrp_markup_percent < 0:
        raise ValueError("repack markups must be nonnegative")
    if report_sample_size <= 0:
        raise ValueError("report_sample_size must be > 0")

    return PriceUpdateConfig(
        price_update_policy_version=policy_version,
        default_adjustment_type=AdjustmentType(adjustment_type_raw),
        default_price_type=PriceType(price_type_raw),
        default_rounding_rule=RoundingRule(rounding_rule_raw),
        default_custom_rounding_unit=custom_unit,
        validation_rules=validation_rules,
        heuristics=heuristics,
        repack_selling_markup_percent=repack_selling_markup_percent,
        repack_mrp_markup_percent=repack_mrp_markup_percent,
        strict_checks=strict_checks,
        report_sample_size=report_sample_size,
        reports_dir=reports_dir,
    )
