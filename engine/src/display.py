"""
Display roles: what the rendering layer should show, without choosing colours.

The engine reports *roles* (grid is net consuming, battery is net
discharging, which source dominates the home) and visibility flags; mapping
roles to actual colours and icons stays with the renderer.

CHANGELOG:
- 2026-10-18: Document the value visibility predicates (STORY-010)
- 2026-10-16: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

from engine.src.config import CardConfig
from engine.src.models import (
    PATH_BATTERY_GRID,
    PATH_BATTERY_TO_HOME,
    PATH_GRID_TO_HOME,
    PATH_INDIVIDUAL1,
    PATH_INDIVIDUAL2,
    PATH_NON_FOSSIL,
    PATH_SOLAR_TO_BATTERY,
    PATH_SOLAR_TO_GRID,
    PATH_SOLAR_TO_HOME,
    CarbonOverlay,
    DisplayRoles,
    FlowState,
    HomeArcs,
)


def _shows_all(display_state: str | None) -> bool:
    return display_state in (None, "two_way")


def show_grid_return(flows: FlowState, display_state: str | None) -> bool:
    """Whether the grid return value is shown under *display_state*."""
    grid = flows.grid
    if grid.to_grid is None or grid.power_outage:
        return False
    if _shows_all(display_state):
        return True
    if display_state == "one_way":
        return grid.to_grid > 0
    return not grid.from_grid and grid.to_grid != 0


def show_grid_consumption(flows: FlowState, display_state: str | None) -> bool:
    """Whether the grid consumption value is shown; hidden during an outage."""
    grid = flows.grid
    if grid.from_grid is None or grid.power_outage:
        return False
    if _shows_all(display_state):
        return True
    if display_state == "one_way":
        return grid.from_grid > 0
    return not grid.to_grid


def show_battery_in(flows: FlowState, display_state: str | None) -> bool:
    """Whether the battery charge value is shown."""
    battery = flows.battery
    if battery.to_battery is None:
        return False
    if _shows_all(display_state):
        return True
    if display_state == "one_way":
        return battery.to_battery > 0
    return battery.to_battery != 0


def show_battery_out(flows: FlowState, display_state: str | None) -> bool:
    """Whether the battery discharge value is shown."""
    battery = flows.battery
    if battery.from_battery is None:
        return False
    if _shows_all(display_state):
        return True
    if display_state == "one_way":
        return battery.from_battery > 0
    return battery.to_battery == 0 or battery.from_battery != 0


def largest_home_source(arcs: HomeArcs | None) -> str | None:
    """Name of the largest home arc; on a tie the later source wins."""
    if arcs is None:
        return None
    candidates = (
        ("battery", arcs.battery),
        ("solar", arcs.solar),
        ("grid", arcs.grid),
        ("non_fossil", arcs.non_fossil),
    )
    best: str | None = None
    best_value = -1.0
    for name, value in candidates:
        if value is not None and value >= best_value:
            best, best_value = name, value
    return best


def visible_lines(
    flows: FlowState,
    config: CardConfig,
    carbon: CarbonOverlay | None = None,
) -> frozenset[str]:
    """Paths whose line is drawn (a drawn line may still have no dot)."""

    def show(energy: float | None) -> bool:
        return config.display_zero_lines or (energy or 0.0) > 0

    fossil = config.entities.fossil_fuel_percentage
    checks = {
        PATH_SOLAR_TO_HOME: flows.has_solar and show(flows.solar.to_home),
        PATH_SOLAR_TO_GRID: flows.grid.has_return and flows.has_solar and show(flows.solar.to_grid),
        PATH_SOLAR_TO_BATTERY: flows.has_battery
        and flows.has_solar
        and show(flows.solar.to_battery),
        PATH_GRID_TO_HOME: flows.has_grid and show(flows.grid.from_grid),
        PATH_BATTERY_TO_HOME: flows.has_battery and show(flows.battery.to_home),
        PATH_BATTERY_GRID: flows.has_grid
        and flows.has_battery
        and show(max(flows.grid.to_battery or 0.0, flows.battery.to_grid or 0.0)),
        PATH_INDIVIDUAL1: flows.individual1.total is not None and show(flows.individual1.total),
        PATH_INDIVIDUAL2: flows.individual2.total is not None and show(flows.individual2.total),
        PATH_NON_FOSSIL: fossil is not None
        and fossil.show
        and carbon is not None
        and show(carbon.low_carbon_energy),
    }
    return frozenset(path for path, visible in checks.items() if visible)


def display_roles(
    flows: FlowState,
    config: CardConfig,
    arcs: HomeArcs | None = None,
    carbon: CarbonOverlay | None = None,
) -> DisplayRoles:
    """Compute colour roles and visibility for one invocation."""
    entities = config.entities
    grid_state = entities.grid.display_state if entities.grid else None
    battery_state = entities.battery.display_state if entities.battery else None

    grid_direction = (
        "consumption"
        if (flows.grid.from_grid or 0.0) >= (flows.grid.to_grid or 0.0)
        else "production"
    )
    battery_direction = (
        "out"
        if (flows.battery.from_battery or 0.0) >= (flows.battery.to_battery or 0.0)
        else "in"
    )

    from_grid = flows.grid.to_battery or 0.0
    to_grid = flows.battery.to_grid or 0.0
    battery_grid_direction: str | None = None
    if from_grid or to_grid:
        battery_grid_direction = "battery-from-grid" if from_grid >= to_grid else "battery-to-grid"

    return DisplayRoles(
        grid_direction=grid_direction,
        battery_direction=battery_direction,
        home_largest_source=largest_home_source(arcs),
        battery_grid_direction=battery_grid_direction,
        show_grid_return=show_grid_return(flows, grid_state),
        show_grid_consumption=show_grid_consumption(flows, grid_state),
        show_battery_in=show_battery_in(flows, battery_state),
        show_battery_out=show_battery_out(flows, battery_state),
        lines=visible_lines(flows, config, carbon),
    )
