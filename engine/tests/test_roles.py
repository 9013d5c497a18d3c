"""
Tests for the role reader: presence, inversion and zero tolerance.

CHANGELOG:
- 2026-10-14: Add single signed battery entity tests (STORY-003)
- 2026-10-13: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

import pytest
from engine.src.config import BatteryConfig, GridConfig, IndividualConfig, SolarConfig
from engine.src.models import Reading
from engine.src.roles import apply_tolerance, read_role


def _r(value: float, unit: str = "Wh") -> Reading:
    return Reading(value=value, unit=unit)


class TestPresence:
    """A role is present iff an entity is configured, whatever its value."""

    def test_unconfigured_role_is_absent(self) -> None:
        total = read_role("solar", None, {})
        assert total.present is False
        assert total.total == 0.0

    def test_empty_entity_id_is_absent(self) -> None:
        total = read_role("solar", SolarConfig(entity=""), {})
        assert total.present is False

    def test_unavailable_entity_is_still_present(self) -> None:
        missing: list[str] = []
        total = read_role("solar", SolarConfig(entity="sensor.solar"), {}, missing.append)
        assert total.present is True
        assert total.total == 0.0
        assert missing == ["sensor.solar"]


class TestSingleEntity:
    """Single entities clamp to >= 0; inversion keeps only the negative part."""

    def test_positive_value(self) -> None:
        total = read_role("grid", GridConfig(entity="sensor.grid"), {"sensor.grid": _r(1.2, "kWh")})
        assert total.total == pytest.approx(1200.0)
        assert total.production is None

    def test_negative_value_clamps_to_zero(self) -> None:
        total = read_role("solar", SolarConfig(entity="sensor.solar"), {"sensor.solar": _r(-50)})
        assert total.total == 0.0

    def test_inverted_uses_negative_part(self) -> None:
        config = GridConfig(entity="sensor.grid", invert_state=True)
        total = read_role("grid", config, {"sensor.grid": _r(-300)})
        assert total.total == 300.0

    def test_inverted_positive_value_is_zero(self) -> None:
        config = SolarConfig(entity="sensor.solar", invert_state=True)
        total = read_role("solar", config, {"sensor.solar": _r(300)})
        assert total.total == 0.0

    def test_list_of_entities_is_summed(self) -> None:
        config = SolarConfig(entity=["sensor.east", "sensor.west"])
        readings = {"sensor.east": _r(1, "kWh"), "sensor.west": _r(500)}
        assert read_role("solar", config, readings).total == pytest.approx(1500.0)


class TestBidirectional:
    """Grid and battery read both directions."""

    def test_grid_pair(self) -> None:
        config = GridConfig(entity={"consumption": "sensor.in", "production": "sensor.out"})
        readings = {"sensor.in": _r(800), "sensor.out": _r(0.2, "kWh")}
        total = read_role("grid", config, readings)
        assert total.total == 800.0
        assert total.production == pytest.approx(200.0)

    def test_grid_consumption_only_has_no_return(self) -> None:
        config = GridConfig(entity={"consumption": "sensor.in"})
        total = read_role("grid", config, {"sensor.in": _r(800)})
        assert total.production is None

    def test_battery_pair(self) -> None:
        config = BatteryConfig(entity={"consumption": "sensor.out", "production": "sensor.in"})
        readings = {"sensor.out": _r(400), "sensor.in": _r(900)}
        total = read_role("battery", config, readings)
        assert total.total == 400.0
        assert total.production == 900.0

    def test_battery_single_signed_entity_discharging(self) -> None:
        config = BatteryConfig(entity="sensor.battery")
        total = read_role("battery", config, {"sensor.battery": _r(250)})
        assert total.total == 250.0
        assert total.production == 0.0

    def test_battery_single_signed_entity_charging(self) -> None:
        config = BatteryConfig(entity="sensor.battery")
        total = read_role("battery", config, {"sensor.battery": _r(-250)})
        assert total.total == 0.0
        assert total.production == 250.0

    def test_battery_single_entity_inverted(self) -> None:
        config = BatteryConfig(entity="sensor.battery", invert_state=True)
        total = read_role("battery", config, {"sensor.battery": _r(250)})
        assert total.total == 0.0
        assert total.production == 250.0


class TestZeroTolerance:
    """Magnitudes within the tolerance become exactly 0."""

    @pytest.mark.parametrize(
        ("value", "tolerance", "expected"),
        [
            (5.0, 10.0, 0.0),
            (10.0, 10.0, 0.0),
            (10.5, 10.0, 10.5),
            (-5.0, 10.0, 0.0),
            (5.0, None, 5.0),
            (0.0, 0.0, 0.0),
        ],
    )
    def test_apply_tolerance(self, value: float, tolerance: float | None, expected: float) -> None:
        assert apply_tolerance(value, tolerance) == expected

    def test_grid_both_directions(self) -> None:
        config = GridConfig(
            entity={"consumption": "sensor.in", "production": "sensor.out"},
            display_zero_tolerance=20,
        )
        total = read_role("grid", config, {"sensor.in": _r(15), "sensor.out": _r(30)})
        assert total.total == 0.0
        assert total.production == 30.0

    def test_individual_noise_suppressed(self) -> None:
        config = IndividualConfig(entity="sensor.car", display_zero_tolerance=2)
        total = read_role("individual1", config, {"sensor.car": _r(1.5)})
        assert total.total == 0.0
        assert total.present is True
