"""
Pytest configuration and fixtures for cfgsnap tests.
"""

from __future__ import annotations

import logging
import os
from datetime import date
from typing import Dict, Generator
from unittest.mock import MagicMock

import pytest

from cfgsnap.config import reset_config
from cfgsnap.schema_compat.loader import GateConfigLoader


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Hide any CFGSNAP_* variables of the developer shell from each test."""
    original: Dict[str, str] = {
        key: value for key, value in os.environ.items() if key.startswith("CFGSNAP_")
    }
    for key in original:
        del os.environ[key]
    reset_config()

    yield

    for key in [k for k in os.environ if k.startswith("CFGSNAP_")]:
        del os.environ[key]
    os.environ.update(original)
    reset_config()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop handlers installed by ``configure_logging`` during a test."""
    yield
    root = logging.getLogger("cfgsnap")
    for handler in list(root.handlers):
        if getattr(handler, "_cfgsnap_handler", False):
            root.removeHandler(handler)
    root.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def clear_gate_cache() -> Generator[None, None, None]:
    GateConfigLoader.clear_cache()
    yield
    GateConfigLoader.clear_cache()


# ============================================================================
# OTel Fixtures
# ============================================================================


@pytest.fixture
def mock_span() -> MagicMock:
    """A mock OTel span that is recording."""
    span = MagicMock()
    span.is_recording.return_value = True
    return span


# ============================================================================
# Row Fixtures
# ============================================================================


@pytest.fixture
def instrument_rows() -> list[dict]:
    return [
        {
            "id": 1,
            "symbol": "AAPL",
            "type": 0,
            "currency": "USD",
            "tick_size_nanos": 10_000_000,
            "tick_size_ticks": 1,
            "lot_size_lots": 100,
            "meta": 0,
        },
        {
            "id": 2,
            "symbol": "SPY",
            "type": 1,
            "currency": None,
            "tick_size_nanos": 10_000_000,
            "tick_size_ticks": 1,
            "lot_size_lots": 1,
            "meta": 7,
        },
        {
            "id": 3,
            "symbol": "AAPL240621C00200000",
            "type": 2,
            "currency": "USD",
            "tick_size_nanos": 10_000_000,
            "tick_size_ticks": 1,
            "lot_size_lots": 1,
            "meta": 0,
        },
    ]


@pytest.fixture
def etf_rows() -> list[dict]:
    return [
        {"etf_instrument_id": 2, "component_instrument_id": 1, "weight_num": 7, "weight_den": 100},
    ]


@pytest.fixture
def option_rows() -> list[dict]:
    return [
        {
            "instrument_id": 3,
            "underlying_instrument_id": 1,
            "strike_ticks": 20_000,
            "right": 0,
            "expiry": date(2024, 6, 21),
            "multiplier": 100,
        },
    ]


@pytest.fixture
def limit_rows() -> list[dict]:
    return [
        {
            "team_id": 10,
            "instrument_id": 1,
            "pos_min_lots": -5_000,
            "pos_max_lots": 5_000,
            "notional_max_ticks": 50_000_000_000,
            "max_orders_per_sec": 50,
        },
        {
            "team_id": 10,
            "instrument_id": 2,
            "pos_min_lots": -1_000,
            "pos_max_lots": 1_000,
            "notional_max_ticks": 10_000_000_000,
            "max_orders_per_sec": 20,
        },
    ]


@pytest.fixture
def row_sets(instrument_rows, etf_rows, option_rows, limit_rows) -> dict[str, list[dict]]:
    return {
        "instruments": instrument_rows,
        "etf_components": etf_rows,
        "options": option_rows,
        "risk_limits": limit_rows,
    }
