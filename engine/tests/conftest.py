"""
Shared test fixtures for the energy-flow engine tests.

Engine env vars are cleaned before each test and the working directory is
moved to tmp_path so no .env file is picked up by EngineSettings.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from typing import Any

import pytest
from engine.src.config import CardConfig
from engine.src.models import Reading

# All EngineSettings environment variable names, used for cleanup.
_ALL_ENGINE_ENV_VARS = (
    "MIN_FLOW_RATE",
    "MAX_FLOW_RATE",
    "MIN_EXPECTED_ENERGY",
    "MAX_EXPECTED_ENERGY",
    "USE_NEW_FLOW_RATE_MODEL",
    "DIAGNOSTIC_INTERVAL_S",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_engine_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all engine env vars and isolate from .env files before each test."""
    for var in _ALL_ENGINE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


def _wh(value: float, unit: str = "Wh") -> Reading:
    """Shorthand for a Reading in the given unit."""
    return Reading(value=value, unit=unit)


def _config(**entities: Any) -> CardConfig:
    """Validate a card configuration from role blocks passed as kwargs."""
    return CardConfig.model_validate({"entities": entities})


@pytest.fixture()
def full_config() -> CardConfig:
    """Grid with return, solar, battery, home and both individual devices."""
    return _config(
        grid={
            "entity": {
                "consumption": "sensor.grid_import",
                "production": "sensor.grid_export",
            }
        },
        solar={"entity": "sensor.solar"},
        battery={
            "entity": {
                "consumption": "sensor.battery_out",
                "production": "sensor.battery_in",
            }
        },
        home={"entity": "sensor.home"},
        individual1={"entity": "sensor.car"},
        individual2={"entity": "sensor.bike"},
    )


@pytest.fixture()
def full_readings() -> dict[str, Reading]:
    """Readings matching full_config: a sunny afternoon with a charging battery."""
    return {
        "sensor.grid_import": _wh(0.2, "kWh"),
        "sensor.grid_export": _wh(1.0, "kWh"),
        "sensor.solar": _wh(4000),
        "sensor.battery_out": _wh(300),
        "sensor.battery_in": _wh(1000),
        "sensor.home": _wh(2500),
        "sensor.car": _wh(700),
        "sensor.bike": _wh(300),
    }
