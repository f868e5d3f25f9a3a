# This module implements hard quality checks for a bulk price update preview.
# It exists to stop malformed previews from turning into product writes.
# Guard-rail warnings are reported but never fail the run; broken rows and duplicate products do.
# Results are structured for run summaries so operators can quickly find failures.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd


class PreviewCheckError(RuntimeError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class PreviewCheckSummary:
    passed: bool
    failures: list[dict[str, Any]]
    warnings: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {"passed": self.passed, "failures": self.failures, "warnings": self.warnings}


def run_preview_checks(*, preview_frame: pd.DataFrame) -> PreviewCheckSummary:
    failures: list[dict[str, Any]] = []
    warnings: list[dict[str, Any]] = []

    if preview_frame.empty:
        warnings.append({"check": "empty_preview", "message": "No products matched the price update filters."})
        return PreviewCheckSummary(passed=True, failures=failures, warnings=warnings)

    duplicate_count = int(preview_frame.duplicated(subset=["product_id"]).sum())
    if duplicate_count > 0:
        failures.append({"check": "duplicate_products", "duplicate_rows": duplicate_count})

    new_price = pd.to_numeric(preview_frame["new_price"], errors="coerce").astype(float)
    if new_price.isna().any():
        failures.append({"check": "new_price_null", "null_rows": int(new_price.isna().sum())})
    non_finite = new_price.notna() & ~np.isfinite(new_price)
    if non_finite.any():
        failures.append({"check": "new_price_finite", "invalid_rows": int(non_finite.sum())})
    if (new_price < 0).any():
        failures.append({"check": "new_price_nonnegative", "invalid_rows": int((new_price < 0).sum())})

    flagged = preview_frame["has_warnings"].astype(bool)
    if flagged.any():
        exploded = preview_frame.loc[flagged, ["warnings"]].explode("warnings")
        by_message = exploded.groupby("warnings").size().sort_index()
        warnings.append(
            {
                "check": "guardrail_warnings",
                "flagged_rows": int(flagged.sum()),
                "by_message": {str(message): int(count) for message, count in by_message.items()},
            }
        )

    return PreviewCheckSummary(passed=len(failures) == 0, failures=failures, warnings=warnings)


def enforce_preview_checks(summary: PreviewCheckSummary, *, strict_checks: bool) -> None:
    if summary.passed:
        return
    if strict_checks:
        raise PreviewCheckError("Preview checks failed; commit payloads were not generated.", details=summary.to_dict())
