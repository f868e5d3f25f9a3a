# This module prices smaller packs derived from a bulk product by weight.
# It exists so the repacking screen and batch jobs share one conversion and markup path.
# Weights are normalised to a common unit before any ratio is taken; a zero bulk weight is rejected.
# Plans also derive the new product record and the bulk stock it consumes, without persisting either.

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.price_adjustment.adjustment_engine import to_currency
from src.price_adjustment.form_inputs import coerce_number, parse_optional_number
from src.price_adjustment.price_update_config import PriceUpdateConfig
from src.price_adjustment.price_validation import format_threshold

DEFAULT_SELLING_MARKUP_PERCENT = 30.0
DEFAULT_MRP_MARKUP_PERCENT = 50.0
REPACK_ALERT_THRESHOLD = 5
LOSS_WARNING = "Selling price is less than cost price. This will result in a loss."

_UNIT_FACTORS: dict[tuple[str, str], float] = {
    ("kg", "g"): 1000.0,
    ("g", "kg"): 0.001,
    ("l", "ml"): 1000.0,
    ("ml", "l"): 0.001,
}


class RepackWeightError(ZeroDivisionError):
    """Raised when a bulk weight cannot be used as a divisor."""


class RepackStockError(ValueError):
    """Raised when pack sizes or bulk stock cannot cover a repack."""


class RepackPricingError(ValueError):
    """Raised when a repack plan carries a negative cost or price."""


@dataclass(frozen=True)
class RepackPricing:
    unit_cost: float
    selling_price: float
    mrp: float

    def to_dict(self) -> dict[str, float]:
        return {"unit_cost": self.unit_cost, "selling_price": self.selling_price, "mrp": self.mrp}


@dataclass(frozen=True)
class RepackPlan:
    bulk_product_id: Any
    bulk_units_needed: int
    remaining_bulk_stock: int
    repacked_product: dict[str, Any]
    warnings: tuple[str, ...] = field(default_factory=tuple)


def normalize_weight(weight: float, unit: str, target_unit: str = "g") -> float:
    source = str(unit).strip().lower()
    target = str(target_unit).strip().lower()
    if source == target:
        return float(weight)
    factor = _UNIT_FACTORS.get((source, target))
    if factor is None:
        raise ValueError(f"Cannot convert weight from {unit!r} to {target_unit!r}")
    return float(weight) * factor


def _usable_weight(weight: float) -> bool:
    value = float(weight)
    return math.isfinite(value) and value > 0


def compute_repack_unit_price(
    bulk_price: float,
    bulk_weight: float,
    target_weight: float,
    margin_percent: float,
) -> float:
    if not _usable_weight(bulk_weight):
        raise RepackWeightError(f"bulk_weight must be > 0, got {bulk_weight!r}")
    weight_ratio = float(target_weight) / float(bulk_weight)
    base_price = float(bulk_price) * weight_ratio
    return to_currency(base_price * (1 + float(margin_percent) / 100))


def build_repack_pricing(
    *,
    bulk_cost: float,
    bulk_weight: float,
    bulk_unit: str,
    unit_weight: float,
    unit_unit: str = "g",
    selling_markup_percent: float = DEFAULT_SELLING_MARKUP_PERCENT,
    mrp_markup_percent: float = DEFAULT_MRP_MARKUP_PERCENT,
) -> RepackPricing:
    bulk_grams = normalize_weight(bulk_weight, bulk_unit)
    unit_grams = normalize_weight(unit_weight, unit_unit)
    return RepackPricing(
        unit_cost=compute_repack_unit_price(bulk_cost, bulk_grams, unit_grams, 0.0),
        selling_price=compute_repack_unit_price(bulk_cost, bulk_grams, unit_grams, selling_markup_percent),
        mrp=compute_repack_unit_price(bulk_cost, bulk_grams, unit_grams, mrp_markup_percent),
    )


def build_repack_pricing_from_config(
    config: PriceUpdateConfig,
    *,
    bulk_cost: float,
    bulk_weight: float,
    bulk_unit: str,
    unit_weight: float,
    unit_unit: str = "g",
) -> RepackPricing:
    return build_repack_pricing(
        bulk_cost=bulk_cost,
        bulk_weight=bulk_weight,
        bulk_unit=bulk_unit,
        unit_weight=unit_weight,
        unit_unit=unit_unit,
        selling_markup_percent=config.repack_selling_markup_percent,
        mrp_markup_percent=config.repack_mrp_markup_percent,
    )


def bulk_weight_in_grams(product: Mapping[str, Any]) -> float:
    unit = str(product.get("weight_unit") or "g").strip().lower()
    weight = parse_optional_number(product.get("weight"))
    if weight is None:
        # Unlabelled bulk stock is assumed to be one kilogram.
        weight = 1.0 if unit == "kg" else 1000.0
    return normalize_weight(weight, unit)


def _repacked_name(bulk_name: str, weight_label: str) -> str:
    if "BULK" in bulk_name:
        return bulk_name.replace("BULK", f"{weight_label}g")
    return f"{bulk_name} ({weight_label}g Pack)"


def plan_repack(
    *,
    bulk_product: Mapping[str, Any],
    unit_weight: float,
    pack_quantity: int,
    pricing: RepackPricing,
    created_at: datetime | None = None,
) -> RepackPlan:
    if pack_quantity < 1:
        raise RepackStockError("Repack quantity must be at least 1")
    if unit_weight < 1:
        raise RepackStockError("Unit weight must be at least 1 gram")
    if pricing.unit_cost < 0 or pricing.selling_price < 0 or pricing.mrp < 0:
        raise RepackPricingError("Prices cannot be negative")

    bulk_grams = bulk_weight_in_grams(bulk_product)
    if not _usable_weight(bulk_grams):
        raise RepackWeightError(f"bulk product {bulk_product.get('id')!r} has no usable weight")

    bulk_units_needed = math.ceil(float(unit_weight) * pack_quantity / bulk_grams)
    stock = int(coerce_number(bulk_product.get("stock_quantity")))
    name = str(bulk_product.get("name", ""))
    if stock < bulk_units_needed:
        raise RepackStockError(f'Insufficient stock. Product "{name}" has only {stock} units available.')

    warnings: list[str] = []
    if pricing.selling_price < pricing.unit_cost:
        warnings.append(LOSS_WARNING)

    stamp = created_at or datetime.now(tz=UTC)
    timestamp = int(stamp.timestamp() * 1000)
    weight_label = format_threshold(unit_weight)
    repacked_product = {
        "name": _repacked_name(name, weight_label),
        "description": (
            f"Repacked from bulk item: {name}. "
            f"Original weight: {bulk_product.get('weight')}{bulk_product.get('weight_unit') or ''}"
        ),
        "sku": f"{bulk_product.get('sku', '')}-REPACK-{weight_label}G-{timestamp}",
        "price": pricing.selling_price,
        "cost": pricing.unit_cost,
        "mrp": pricing.mrp,
        "weight": float(unit_weight),
        "weight_unit": "g",
        "category_id": bulk_product.get("category_id") or 1,
        "stock_quantity": int(pack_quantity),
        "alert_threshold": REPACK_ALERT_THRESHOLD,
        "active": True,
    }
    return RepackPlan(
        bulk_product_id=bulk_product.get("id"),
        bulk_units_needed=int(bulk_units_needed),
        remaining_bulk_stock=max(0, stock - bulk_units_needed),
        repacked_product=repacked_product,
        warnings=tuple(warnings),
    )
