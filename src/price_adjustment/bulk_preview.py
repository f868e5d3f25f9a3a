# This module builds the review table for a bulk price update over many products.
# It exists to run the pure price engine per product and keep operator selection state explicit.
# Rows with guard-rail warnings are excluded from select-all but can still be picked by hand.
# Commit payloads are produced for the external product store; nothing here writes anywhere.

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import pandas as pd

from src.price_adjustment.adjustment_engine import (
    compute_change_metrics,
    compute_price_update,
    margin_percent,
    to_currency,
)
from src.price_adjustment.form_inputs import PriceUpdateForm, coerce_number, parse_optional_number
from src.price_adjustment.price_types import HeuristicThresholds, PriceType, ValidationRules
from src.price_adjustment.price_validation import validate_price_change

PREVIEW_COLUMNS = [
    "product_id",
    "name",
    "sku",
    "category",
    "cost",
    "current_price",
    "new_price",
    "margin",
    "change_amount",
    "change_percent",
    "warnings",
    "has_warnings",
    "selected",
    "stock_quantity",
]
DEFAULT_UPDATE_REASON = "Bulk price update"


class PriceUpdateCancelled(RuntimeError):
    def __init__(self, message: str, *, warning_rows: int) -> None:
        super().__init__(message)
        self.warning_rows = warning_rows


@dataclass(frozen=True)
class PreviewSummary:
    row_count: int
    selected_count: int
    warning_count: int
    total_value_change: float
    average_change_percent: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_count": self.row_count,
            "selected_count": self.selected_count,
            "warning_count": self.warning_count,
            "total_value_change": self.total_value_change,
            "average_change_percent": self.average_change_percent,
        }


def filter_products(
    products: pd.DataFrame,
    *,
    search: str | None = None,
    category_id: Any | None = None,
) -> pd.DataFrame:
    frame = products.copy()
    if frame.empty:
        return frame

    mask = pd.Series(True, index=frame.index)
    if "active" in frame.columns:
        mask &= frame["active"].fillna(False).astype(bool)

    if search:
        needle = search.strip().lower()
        name = frame["name"].fillna("").astype(str).str.lower()
        sku = frame.get("sku", pd.Series("", index=frame.index)).fillna("").astype(str).str.lower()
        mask &= name.str.contains(needle, regex=False) | sku.str.contains(needle, regex=False)

    if category_id is not None and str(category_id) not in {"", "all"}:
        target = parse_optional_number(category_id)
        if target is not None:
            # Missing ids turn the column into floats, so "10" must still match 10.0.
            mask &= pd.to_numeric(frame["category_id"], errors="coerce") == target
        else:
            mask &= frame["category_id"].astype(str) == str(category_id)

    return frame[mask].copy()


def select_current_price(product: Mapping[str, Any], price_type: PriceType | str) -> Any:
    return product.get(PriceType(price_type).product_field)


def _preview_row(
    record: Mapping[str, Any],
    *,
    form: PriceUpdateForm,
    rules: ValidationRules | None,
    heuristics: HeuristicThresholds | None,
    categories: Mapping[Any, str],
) -> dict[str, Any]:
    quote = form.to_quote(select_current_price(record, form.price_type), record.get("cost"))
    result = compute_price_update(quote, rules, heuristics)
    cost = coerce_number(record.get("cost"))
    return {
        "product_id": record.get("id"),
        "name": record.get("name"),
        "sku": record.get("sku"),
        "category": categories.get(record.get("category_id"), "Unknown"),
        "cost": cost,
        "current_price": to_currency(quote.current_price),
        "new_price": result.new_price,
        "margin": round(margin_percent(result.new_price, cost), 1),
        "change_amount": result.change_amount,
        "change_percent": result.change_percent,
        "warnings": list(result.warnings),
        "has_warnings": result.has_warnings,
        "selected": False,
        "stock_quantity": int(coerce_number(record.get("stock_quantity"))),
    }


def build_price_update_preview(
    products: pd.DataFrame,
    form: PriceUpdateForm,
    *,
    categories: Mapping[Any, str] | None = None,
    heuristics: HeuristicThresholds | None = None,
) -> pd.DataFrame:
    form.require_adjustment_value()
    rules = form.to_validation_rules()
    category_names = dict(categories or {})

    rows = [
        _preview_row(record, form=form, rules=rules, heuristics=heuristics, categories=category_names)
        for record in products.to_dict(orient="records")
    ]
    return pd.DataFrame(rows, columns=PREVIEW_COLUMNS)


def select_all(preview: pd.DataFrame, checked: bool) -> pd.DataFrame:
    frame = preview.copy()
    if checked:
        frame["selected"] = frame["selected"].astype(bool) | ~frame["has_warnings"].astype(bool)
    else:
        frame["selected"] = False
    return frame


def _row_position(preview: pd.DataFrame, product_id: Any) -> int:
    matches = [pos for pos, value in enumerate(preview["product_id"]) if value == product_id]
    if not matches:
        raise KeyError(f"product_id {product_id!r} is not part of this preview")
    return matches[0]


def set_row_selected(preview: pd.DataFrame, product_id: Any, selected: bool) -> pd.DataFrame:
    records = preview.to_dict(orient="records")
    records[_row_position(preview, product_id)]["selected"] = bool(selected)
    return pd.DataFrame(records, columns=PREVIEW_COLUMNS)


def override_row_price(
    preview: pd.DataFrame,
    product_id: Any,
    new_price: Any,
    *,
    rules: ValidationRules | None = None,
    heuristics: HeuristicThresholds | None = None,
) -> pd.DataFrame:
    records = preview.to_dict(orient="records")
    row = records[_row_position(preview, product_id)]

    price = to_currency(coerce_number(new_price))
    change_amount, change_percent = compute_change_metrics(row["current_price"], price)
    warnings = validate_price_change(row["current_price"], price, rules, heuristics)

    row["new_price"] = price
    row["change_amount"] = change_amount
    row["change_percent"] = change_percent
    row["margin"] = round(margin_percent(price, row["cost"]), 1)
    row["warnings"] = warnings
    row["has_warnings"] = bool(warnings)
    return pd.DataFrame(records, columns=PREVIEW_COLUMNS)


def summarize_preview(preview: pd.DataFrame) -> PreviewSummary:
    if preview.empty:
        return PreviewSummary(0, 0, 0, 0.0, 0.0)

    selected = preview[preview["selected"].astype(bool)]
    total_value_change = float(
        (selected["change_amount"].astype(float) * selected["stock_quantity"].astype(float)).sum()
    )
    average_change = float(selected["change_percent"].astype(float).mean()) if not selected.empty else 0.0
    return PreviewSummary(
        row_count=int(len(preview)),
        selected_count=int(len(selected)),
        warning_count=int(preview["has_warnings"].astype(bool).sum()),
        total_value_change=to_currency(total_value_change),
        average_change_percent=round(average_change, 1),
    )


def build_commit_payloads(
    preview: pd.DataFrame,
    products: pd.DataFrame,
    price_type: PriceType | str,
    *,
    reason: str | None = None,
    confirm_warnings: bool = False,
) -> list[dict[str, Any]]:
    if preview.empty:
        return []
    selected = preview[preview["selected"].astype(bool)]
    if selected.empty:
        return []

    warning_rows = int(selected["has_warnings"].astype(bool).sum())
    if warning_rows > 0 and not confirm_warnings:
        raise PriceUpdateCancelled(
            f"{warning_rows} products have warnings; update cancelled without confirmation.",
            warning_rows=warning_rows,
        )

    target_field = PriceType(price_type).product_field
    lookup = {record.get("id"): record for record in products.to_dict(orient="records")}

    payloads: list[dict[str, Any]] = []
    for row in selected.to_dict(orient="records"):
        product_id = row["product_id"]
        new_price = float(row["new_price"])
        if not math.isfinite(new_price) or new_price < 0:
            raise ValueError(f"Invalid price for product {product_id!r}: {row['new_price']!r}")
        if product_id not in lookup:
            raise KeyError(f"product_id {product_id!r} missing from product records")

        product = lookup[product_id]
        payload: dict[str, Any] = {
            "product_id": product_id,
            "name": product.get("name"),
            "sku": product.get("sku"),
            "category_id": product.get("category_id"),
            "price": coerce_number(product.get("price")),
            "cost": coerce_number(product.get("cost")),
            "mrp": coerce_number(product.get("mrp")),
        }
        weight = parse_optional_number(product.get("weight"))
        if weight is not None:
            payload["weight"] = weight
        payload[target_field] = new_price
        payload["price_update_reason"] = reason or DEFAULT_UPDATE_REASON
        payloads.append(payload)
    return payloads
