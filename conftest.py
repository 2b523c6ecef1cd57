from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop the cached settings so env overrides apply per test."""
    from price_monitor.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
