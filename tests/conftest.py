"""Shared fixtures for the receipt composer test suite."""

import json
import sys
from pathlib import Path

import pytest

# Allow running the suite from a plain checkout
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def receipt_config() -> dict:
    """Sample section registry with header, items, footer and two copies."""
    return json.loads((FIXTURES_DIR / "receipt-config.json").read_text(encoding="utf-8"))


@pytest.fixture
def receipt_data() -> dict:
    """Sample transaction with three line items."""
    return json.loads((FIXTURES_DIR / "receipt-data.json").read_text(encoding="utf-8"))
