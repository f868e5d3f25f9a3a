"""
Shared test configuration.
It asserts expected behavior and guards against regressions in the corresponding component.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pandas as pd
import pytest

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


@pytest.fixture(autouse=True)
def base_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure required environment variables are present during tests."""

    defaults = {
        "PROJECT_NAME": "test-project",
        "ENV": "test",
        "LOG_LEVEL": "INFO",
    }

    for key, value in defaults.items():
        if os.getenv(key) is None:
            monkeypatch.setenv(key, value)


@pytest.fixture
def product_frame() -> pd.DataFrame:
    """Small catalog with one product per interesting pricing situation."""

    return pd.DataFrame(
        {
            "id": [1, 2, 3, 4],
            "name": ["Basmati Rice 1kg", "Sugar BULK", "Toor Dal 500g", "Old Soap"],
            "sku": ["RICE-1KG", "SUG-BULK", "DAL-500", "SOAP-OLD"],
            "category_id": [10, 10, 20, 30],
            "price": [100.0, 50.0, 80.0, 20.0],
            "cost": [60.0, 40.0, None, 12.0],
            "mrp": [120.0, 55.0, 90.0, 25.0],
            "weight": [1.0, 5.0, 500.0, None],
            "stock_quantity": [10, 3, 7, 0],
            "active": [True, True, True, False],
        }
    )
