"""
Tests for card configuration validation and environment-loaded settings.

CHANGELOG:
- 2026-10-17: Add range ordering tests (STORY-009)
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from engine.src.config import (
    CardConfig,
    ComboEntity,
    EngineSettings,
    RateOptions,
)
from pydantic import ValidationError


def _card(**raw: Any) -> CardConfig:
    raw.setdefault("entities", {"grid": {"entity": "sensor.grid"}})
    return CardConfig.model_validate(raw)


# ===========================================================================
# EngineSettings
# ===========================================================================


class TestEngineSettingsDefaults:
    """Defaults apply when no environment variable is set."""

    def test_defaults(self) -> None:
        settings = EngineSettings()
        assert settings.min_flow_rate == 1.0
        assert settings.max_flow_rate == 6.0
        assert settings.min_expected_energy == 10.0
        assert settings.max_expected_energy == 2000.0
        assert settings.use_new_flow_rate_model is False
        assert settings.diagnostic_interval_s == 60.0
        assert settings.log_level == "INFO"

    def test_rate_options(self) -> None:
        assert EngineSettings().rate_options() == RateOptions()


class TestEngineSettingsFromEnv:
    """Environment variables and .env files override defaults."""

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MIN_FLOW_RATE", "0.5")
        monkeypatch.setenv("MAX_FLOW_RATE", "4")
        monkeypatch.setenv("USE_NEW_FLOW_RATE_MODEL", "true")
        settings = EngineSettings()
        assert settings.min_flow_rate == 0.5
        assert settings.max_flow_rate == 4.0
        assert settings.use_new_flow_rate_model is True

    def test_dotenv_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("DIAGNOSTIC_INTERVAL_S=5\n", encoding="utf-8")
        assert EngineSettings().diagnostic_interval_s == 5.0

    def test_log_level_is_normalized(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert EngineSettings().log_level == "DEBUG"


class TestEngineSettingsValidation:
    """Invalid settings fail at startup."""

    @pytest.mark.parametrize(
        ("var", "value"),
        [
            ("MIN_FLOW_RATE", "0"),
            ("MAX_FLOW_RATE", "-1"),
            ("DIAGNOSTIC_INTERVAL_S", "-5"),
            ("LOG_LEVEL", "verbose"),
            ("MIN_FLOW_RATE", "not-a-number"),
        ],
    )
    def test_rejected(self, monkeypatch: pytest.MonkeyPatch, var: str, value: str) -> None:
        monkeypatch.setenv(var, value)
        with pytest.raises(ValidationError):
            EngineSettings()

    def test_inverted_flow_rates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MIN_FLOW_RATE", "7")
        with pytest.raises(ValidationError, match="MIN_FLOW_RATE must be <= MAX_FLOW_RATE"):
            EngineSettings()

    def test_empty_energy_range(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MIN_EXPECTED_ENERGY", "2000")
        with pytest.raises(ValidationError):
            EngineSettings()


# ===========================================================================
# CardConfig
# ===========================================================================


class TestCardConfigAcceptance:
    """A configuration needs at least one of grid, solar or battery."""

    @pytest.mark.parametrize(
        "entities",
        [
            {},
            {"home": {"entity": "sensor.home"}},
            {"grid": {"entity": ""}},
            {"solar": {}},
            {"battery": {"entity": {"consumption": None}}},
        ],
    )
    def test_rejected_without_source(self, entities: dict[str, Any]) -> None:
        with pytest.raises(ValidationError, match="At least one entity"):
            CardConfig.model_validate({"entities": entities})

    @pytest.mark.parametrize("role", ["grid", "solar", "battery"])
    def test_any_single_source_is_enough(self, role: str) -> None:
        config = CardConfig.model_validate({"entities": {role: {"entity": f"sensor.{role}"}}})
        assert getattr(config.entities, role).present is True

    def test_missing_entities_block(self) -> None:
        with pytest.raises(ValidationError):
            CardConfig.model_validate({})

    def test_unknown_keys_are_ignored(self) -> None:
        config = _card(title="Energy", entities={"solar": {"entity": "sensor.s", "color": "red"}})
        assert config.entities.solar is not None

    def test_invalid_display_state(self) -> None:
        with pytest.raises(ValidationError):
            _card(entities={"grid": {"entity": "sensor.grid", "display_state": "sideways"}})

    def test_negative_tolerance(self) -> None:
        with pytest.raises(ValidationError, match="display_zero_tolerance"):
            _card(entities={"grid": {"entity": "sensor.grid", "display_zero_tolerance": -1}})

    def test_inverted_card_ranges(self) -> None:
        with pytest.raises(ValidationError):
            _card(min_flow_rate=5, max_flow_rate=2)
        with pytest.raises(ValidationError):
            _card(min_expected_energy=100, max_expected_energy=100)


class TestEntityRefs:
    """Single ids, id lists and consumption/production pairs."""

    def test_single_id(self) -> None:
        grid = _card().entities.grid
        assert grid is not None
        assert grid.is_combo is False
        assert grid.consumption_ids == ["sensor.grid"]
        assert grid.production_ids == []

    def test_id_list_drops_empty_strings(self) -> None:
        config = _card(entities={"solar": {"entity": ["sensor.a", "", "sensor.b"]}})
        assert config.entities.solar.entity_ids == ["sensor.a", "sensor.b"]

    def test_combo(self) -> None:
        config = _card(
            entities={
                "grid": {
                    "entity": {"consumption": "sensor.in", "production": ["sensor.o1", "sensor.o2"]}
                }
            }
        )
        grid = config.entities.grid
        assert isinstance(grid.entity, ComboEntity)
        assert grid.consumption_ids == ["sensor.in"]
        assert grid.production_ids == ["sensor.o1", "sensor.o2"]


class TestRateOptionsMerge:
    """Card options win over engine-wide settings."""

    def test_defaults_without_settings(self) -> None:
        assert _card().rate_options() == RateOptions()

    def test_card_overrides_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_FLOW_RATE", "8")
        monkeypatch.setenv("MAX_EXPECTED_ENERGY", "5000")
        options = _card(max_flow_rate=3, use_new_flow_rate_model=True).rate_options(
            EngineSettings()
        )
        assert options.max_flow_rate == 3
        assert options.max_expected_energy == 5000.0
        assert options.min_flow_rate == 1.0
        assert options.use_new_flow_rate_model is True
