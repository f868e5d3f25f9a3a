# This module is the end-to-end entrypoint for a bulk price update run.
# It exists to run filtering, price computation, pre-commit checks, and payload export in one audited flow.
# Each run writes a preview sample, a run summary, and (on export) commit payloads under its own report folder.
# Persisting the payloads to the product store is left to the caller.

from __future__ import annotations

import argparse
import json
import logging
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from src.common.logging import configure_logging
from src.common.settings import get_settings
from src.price_adjustment.bulk_preview import (
    PriceUpdateCancelled,
    build_commit_payloads,
    build_price_update_preview,
    filter_products,
    select_all,
    summarize_preview,
)
from src.price_adjustment.form_inputs import PriceUpdateForm, ValidationRulesForm
from src.price_adjustment.preview_checks import (
    PreviewCheckError,
    enforce_preview_checks,
    run_preview_checks,
)
from src.price_adjustment.price_types import AdjustmentType, PriceType, RoundingRule
from src.price_adjustment.price_update_config import PriceUpdateConfig, load_price_update_config

LOGGER = logging.getLogger("price_update")

STEP_ORDER = ["preview", "validate", "export"]


def load_products(path: str) -> pd.DataFrame:
    source = Path(path)
    if source.suffix.lower() == ".json":
        return pd.read_json(source, orient="records")
    if source.suffix.lower() == ".csv":
        return pd.read_csv(source)
    raise ValueError(f"Unsupported product file type: {source.suffix!r} (expected .csv or .json)")


def _reports_dir(reports_root: str, run_id: str) -> Path:
    out = Path(reports_root) / run_id
    out.mkdir(parents=True, exist_ok=True)
    return out


def _write_artifacts(
    *,
    reports_root: str,
    run_id: str,
    preview_frame: pd.DataFrame,
    run_summary: dict[str, Any],
    sample_size: int,
    commit_payloads: list[dict[str, Any]] | None = None,
) -> str:
    out_dir = _reports_dir(reports_root, run_id)
    sample = preview_frame.head(sample_size).copy()
    if "warnings" in sample.columns:
        sample["warnings"] = sample["warnings"].apply(lambda items: " | ".join(items) if isinstance(items, list) else "")
    sample.to_csv(out_dir / "preview.csv", index=False)
    (out_dir / "run_summary.json").write_text(json.dumps(run_summary, indent=2, default=str), encoding="utf-8")
    if commit_payloads is not None:
        (out_dir / "commit_payloads.json").write_text(
            json.dumps(commit_payloads, indent=2, default=str), encoding="utf-8"
        )
    return str(out_dir)


def _step_reached(*, requested_step: str, checkpoint: str) -> bool:
    return STEP_ORDER.index(requested_step) >= STEP_ORDER.index(checkpoint)


def run_price_update(
    *,
    products: pd.DataFrame,
    form: PriceUpdateForm,
    config: PriceUpdateConfig,
    run_id: str | None = None,
    step: str = "export",
    search: str | None = None,
    category_id: Any | None = None,
    categories: Mapping[Any, str] | None = None,
    select_all_rows: bool = False,
    confirm_warnings: bool = False,
) -> dict[str, Any]:
    if step not in STEP_ORDER:
        raise ValueError(f"step must be one of {STEP_ORDER}, got {step!r}")
    configure_logging()

    current_run_id = run_id or str(uuid.uuid4())
    started_at = datetime.now(tz=UTC)
    preview = pd.DataFrame()
    run_summary: dict[str, Any] = {
        "run_id": current_run_id,
        "step": step,
        "started_at": started_at,
        "price_update_policy_version": config.price_update_policy_version,
        "adjustment_type": form.adjustment_type.value,
        "price_type": form.price_type.value,
        "rounding_rule": form.rounding_rule.value,
        "config_snapshot": config.to_dict(),
    }
    LOGGER.info(
        "price update started run_id=%s step=%s adjustment_type=%s price_type=%s",
        current_run_id,
        step,
        form.adjustment_type.value,
        form.price_type.value,
    )

    try:
        filtered = filter_products(
            products,
            search=search,
            category_id=category_id if category_id is not None else form.category,
        )
        preview = build_price_update_preview(filtered, form, categories=categories, heuristics=config.heuristics)
        if select_all_rows:
            preview = select_all(preview, True)
        run_summary["preview_summary"] = summarize_preview(preview).to_dict()

        commit_payloads: list[dict[str, Any]] | None = None
        if _step_reached(requested_step=step, checkpoint="validate"):
            check_summary = run_preview_checks(preview_frame=preview)
            run_summary["check_summary"] = check_summary.to_dict()
            enforce_preview_checks(check_summary, strict_checks=config.strict_checks)

        if _step_reached(requested_step=step, checkpoint="export"):
            commit_payloads = build_commit_payloads(
                preview,
                filtered,
                form.price_type,
                reason=form.reason,
                confirm_warnings=confirm_warnings,
            )
            run_summary["commit_count"] = len(commit_payloads)

        ended_at = datetime.now(tz=UTC)
        run_summary["status"] = "succeeded"
        run_summary["ended_at"] = ended_at
        run_summary["latency_ms"] = (ended_at - started_at).total_seconds() * 1000.0
        artifacts_path = _write_artifacts(
            reports_root=config.reports_dir,
            run_id=current_run_id,
            preview_frame=preview,
            run_summary=run_summary,
            sample_size=config.report_sample_size,
            commit_payloads=commit_payloads,
        )
        LOGGER.info(
            "price update finished run_id=%s rows=%s warnings=%s",
            current_run_id,
            run_summary["preview_summary"]["row_count"],
            run_summary["preview_summary"]["warning_count"],
        )
        return run_summary | {"artifacts_path": artifacts_path}

    except PriceUpdateCancelled as exc:
        LOGGER.warning("Price update cancelled for run_id=%s: %s", current_run_id, exc)
        run_summary |= {"status": "cancelled", "error": str(exc), "warning_rows": exc.warning_rows}
        artifacts_path = _write_artifacts(
            reports_root=config.reports_dir,
            run_id=current_run_id,
            preview_frame=preview,
            run_summary=run_summary,
            sample_size=config.report_sample_size,
        )
        return run_summary | {"artifacts_path": artifacts_path}
    except PreviewCheckError as exc:
        LOGGER.exception("Preview checks failed for run_id=%s", current_run_id)
        run_summary |= {"status": "failed", "error": str(exc), "check_summary": exc.details}
        artifacts_path = _write_artifacts(
            reports_root=config.reports_dir,
            run_id=current_run_id,
            preview_frame=preview,
            run_summary=run_summary,
            sample_size=config.report_sample_size,
        )
        if config.strict_checks:
            raise
        return run_summary | {"artifacts_path": artifacts_path}
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Price update failed for run_id=%s", current_run_id)
        run_summary |= {"status": "failed", "error": str(exc)}
        _write_artifacts(
            reports_root=config.reports_dir,
            run_id=current_run_id,
            preview_frame=preview,
            run_summary=run_summary,
            sample_size=config.report_sample_size,
        )
        raise


def build_form_from_args(args: argparse.Namespace, config: PriceUpdateConfig) -> PriceUpdateForm:
    cli_rules = {
        "min_price": args.min_price,
        "max_price": args.max_price,
        "max_increase": args.max_increase,
        "max_decrease": args.max_decrease,
    }
    if any(value is not None for value in cli_rules.values()):
        rules_form = ValidationRulesForm(**cli_rules)
    else:
        defaults = config.validation_rules
        rules_form = ValidationRulesForm(
            min_price=defaults.min_price,
            max_price=defaults.max_price,
            max_increase=defaults.max_increase_percent,
            max_decrease=defaults.max_decrease_percent,
        )

    return PriceUpdateForm(
        adjustment_type=args.adjustment_type or config.default_adjustment_type.value,
        adjustment_value=args.adjustment_value,
        price_type=args.price_type or config.default_price_type.value,
        rounding_rule=args.rounding_rule or config.default_rounding_rule.value,
        custom_rounding=args.custom_rounding or config.default_custom_rounding_unit,
        reason=args.reason,
        validation_rules=rules_form,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk product price update")
    parser.add_argument("--products", type=str, required=True, help="Product records as .csv or .json")
    parser.add_argument("--config", type=str, default=None, help="Price update policy YAML")
    parser.add_argument("--run-id", type=str, default=None, help="Optional run id for traceability")
    parser.add_argument("--step", type=str, default="export", choices=STEP_ORDER)
    parser.add_argument("--adjustment-type", type=str, default=None, choices=[item.value for item in AdjustmentType])
    parser.add_argument("--adjustment-value", type=str, default=None)
    parser.add_argument("--price-type", type=str, default=None, choices=[item.value for item in PriceType])
    parser.add_argument("--rounding-rule", type=str, default=None, choices=[item.value for item in RoundingRule])
    parser.add_argument("--custom-rounding", type=str, default=None)
    parser.add_argument("--category", type=str, default=None, help="Only products in this category id")
    parser.add_argument("--search", type=str, default=None, help="Name or SKU substring")
    parser.add_argument("--min-price", type=str, default=None)
    parser.add_argument("--max-price", type=str, default=None)
    parser.add_argument("--max-increase", type=str, default=None)
    parser.add_argument("--max-decrease", type=str, default=None)
    parser.add_argument("--reason", type=str, default=None)
    parser.add_argument("--select-all", action="store_true", help="Select every row without warnings")
    parser.add_argument("--confirm-warnings", action="store_true", help="Export selected rows even with warnings")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    config_path = args.config or get_settings().PRICE_UPDATE_CONFIG_PATH
    config = load_price_update_config(config_path=config_path)
    result = run_price_update(
        products=load_products(args.products),
        form=build_form_from_args(args, config),
        config=config,
        run_id=args.run_id,
        step=args.step,
        search=args.search,
        category_id=args.category,
        select_all_rows=args.select_all,
        confirm_warnings=args.confirm_warnings,
    )
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
