"""
Pydantic models for readings, role totals and the reconciled flow state.

A fresh FlowState is built on every invocation from immutable inputs. The
per-role sub-models are frozen so the rendering layer cannot mutate results
in place; the reconciler assembles them once all derivation steps have run.

All energy values are in watt-hours.

CHANGELOG:
- 2026-10-18: Add HomeFlows.display_total (STORY-010)
- 2026-10-16: Add HomeArcs and DisplayRoles (STORY-006)
- 2026-10-14: Add ambiguous flag to FlowState (STORY-003)
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, field_validator

# Path names shared by the rate mapper and the rendering layer.
PATH_GRID_TO_HOME = "gridToHome"
PATH_SOLAR_TO_HOME = "solarToHome"
PATH_SOLAR_TO_GRID = "solarToGrid"
PATH_SOLAR_TO_BATTERY = "solarToBattery"
PATH_BATTERY_TO_HOME = "batteryToHome"
PATH_BATTERY_GRID = "batteryGrid"
PATH_INDIVIDUAL1 = "individual1"
PATH_INDIVIDUAL2 = "individual2"
PATH_NON_FOSSIL = "nonFossil"

MAIN_PATHS: tuple[str, ...] = (
    PATH_GRID_TO_HOME,
    PATH_SOLAR_TO_HOME,
    PATH_SOLAR_TO_GRID,
    PATH_SOLAR_TO_BATTERY,
    PATH_BATTERY_TO_HOME,
    PATH_BATTERY_GRID,
)
ALL_PATHS: tuple[str, ...] = (
    *MAIN_PATHS,
    PATH_INDIVIDUAL1,
    PATH_INDIVIDUAL2,
    PATH_NON_FOSSIL,
)


class Reading(BaseModel):
    """A single scalar measurement for one entity.

    Attributes:
        value: Numeric state of the entity.
        unit: Unit tag as reported by the entity (``"Wh"``, ``"kWh"``, ...).
    """

    model_config = ConfigDict(frozen=True)

    value: float
    unit: str | None = None

    @field_validator("value")
    @classmethod
    def value_must_be_finite(cls, v: float) -> float:
        """Reject NaN and infinities so they never reach the reconciler."""
        if not math.isfinite(v):
            raise ValueError("Reading value must be a finite number")
        return v


class RoleTotal(BaseModel):
    """Resolved total for one logical role.

    Attributes:
        role: Role name (``"grid"``, ``"solar"``, ...).
        present: True iff at least one entity is configured for the role.
        total: Primary direction in Wh, always >= 0 (grid consumption,
            solar production, battery discharge, device consumption).
        production: Second direction in Wh for bidirectional roles (grid
            return, battery charge), or None when not measured.
    """

    model_config = ConfigDict(frozen=True)

    role: str
    present: bool
    total: float = 0.0
    production: float | None = None


class GridFlows(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_grid: float | None = None
    to_grid: float | None = None
    to_battery: float | None = None
    has_return: bool = False
    power_outage: bool = False


class SolarFlows(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: float | None = None
    to_home: float | None = None
    to_grid: float | None = None
    to_battery: float | None = None


class BatteryFlows(BaseModel):
    model_config = ConfigDict(frozen=True)

    to_battery: float | None = None
    from_battery: float | None = None
    to_grid: float | None = None
    to_home: float | None = None


class HomeFlows(BaseModel):
    """Home consumption.

    Attributes:
        total_consumption: Derived (or overridden) home total in Wh; the
            divisor of the home circle arcs.
        display_total: Value shown on the home circle; excludes the
            individual devices when ``subtract_individual`` is set.
        overridden: True when the measured home total replaced the derived
            one.
    """

    model_config = ConfigDict(frozen=True)

    total_consumption: float = 0.0
    display_total: float = 0.0
    overridden: bool = False


class IndividualFlows(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: float | None = None


class FlowState(BaseModel):
    """Reconciled decomposition of energy flows for one invocation.

    Every value is either None (undefined for the configured topology) or a
    finite float >= 0.

    Attributes:
        ambiguous: True when a solar deficit had to be split between
            grid-to-battery and battery-to-grid; both attributions fit the
            measurements so the split follows the fixed preference order.
    """

    model_config = ConfigDict(frozen=True)

    grid: GridFlows = GridFlows()
    solar: SolarFlows = SolarFlows()
    battery: BatteryFlows = BatteryFlows()
    home: HomeFlows = HomeFlows()
    individual1: IndividualFlows = IndividualFlows()
    individual2: IndividualFlows = IndividualFlows()
    ambiguous: bool = False

    @property
    def has_grid(self) -> bool:
        return self.grid.from_grid is not None

    @property
    def has_solar(self) -> bool:
        return self.solar.total is not None

    @property
    def has_battery(self) -> bool:
        return self.battery.from_battery is not None

    @property
    def total_lines(self) -> float:
        """Sum of every main line, the shared divisor of the ratio model."""
        return (
            (self.grid.from_grid or 0.0)
            + (self.solar.to_home or 0.0)
            + (self.solar.to_grid or 0.0)
            + (self.solar.to_battery or 0.0)
            + (self.battery.to_home or 0.0)
            + (self.grid.to_battery or 0.0)
            + (self.battery.to_grid or 0.0)
        )

    @property
    def total_individual(self) -> float:
        return (self.individual1.total or 0.0) + (self.individual2.total or 0.0)


class AnimationParams(BaseModel):
    """Per-path animation durations in seconds.

    Only animated paths appear in ``durations``; a path whose flow is zero
    or whose rate is undefined is hidden.
    """

    model_config = ConfigDict(frozen=True)

    durations: dict[str, float] = {}

    def get(self, path: str) -> float | None:
        return self.durations.get(path)


class CarbonOverlay(BaseModel):
    """Low-carbon share of grid consumption.

    Attributes:
        low_carbon_energy: Non-fossil energy drawn from the grid in Wh.
        low_carbon_percentage: Share of grid consumption that was non-fossil.
        high_carbon_energy: Fossil energy drawn from the grid in Wh.
        has_usage: True when the low-carbon energy exceeds the configured
            display tolerance.
    """

    model_config = ConfigDict(frozen=True)

    low_carbon_energy: float | None = None
    low_carbon_percentage: float | None = None
    high_carbon_energy: float | None = None
    has_usage: bool = False


class HomeArcs(BaseModel):
    """Arc lengths of the home circle breakdown.

    The arcs add up to the full circumference; whichever arc is computed as
    the residual absorbs rounding.
    """

    model_config = ConfigDict(frozen=True)

    solar: float = 0.0
    battery: float = 0.0
    grid: float = 0.0
    non_fossil: float | None = None

    @property
    def total(self) -> float:
        return self.solar + self.battery + self.grid + (self.non_fossil or 0.0)


class DisplayRoles(BaseModel):
    """Colour roles and visibility flags for the rendering layer."""

    model_config = ConfigDict(frozen=True)

    grid_direction: str = "consumption"
    battery_direction: str = "out"
    home_largest_source: str | None = None
    battery_grid_direction: str | None = None
    show_grid_return: bool = False
    show_grid_consumption: bool = False
    show_battery_in: bool = False
    show_battery_out: bool = False
    lines: frozenset[str] = frozenset()
