"""
Carbon-intensity estimator and home circle breakdown.

Two modes:

- Statistics mode: fossil energy consumed from the grid over the active
  period is known per source (kWh). It is summed, scaled to Wh and
  subtracted from grid consumption to give the low-carbon energy.
- Instantaneous mode (no date-range statistics): a fossil-percentage sensor
  gives the share directly and the low-carbon energy is back-computed from
  grid consumption.

The home circle is split into solar, battery, fossil-grid and low-carbon
arcs. The last arc is always the residual of the circumference, so the four
lengths add up to the full circle.

CHANGELOG:
- 2026-10-16: Derive fossil energy in instantaneous mode for the arcs (STORY-006)
- 2026-10-15: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Mapping

from engine.src.models import CarbonOverlay, FlowState, HomeArcs

CIRCLE_CIRCUMFERENCE = 238.76104
"""Circumference of the home circle (r = 38) in SVG user units."""


def high_carbon_energy(fossil_stats: Mapping[str, float]) -> float:
    """Sum per-source fossil consumption (kWh) and return it in Wh."""
    return sum(fossil_stats.values()) * 1000


def _has_usage(low_carbon_energy: float | None, tolerance: float | None) -> bool:
    # The tolerance is configured in kWh.
    if not low_carbon_energy:
        return False
    return low_carbon_energy > (tolerance or 0.0) * 1000


def estimate_from_statistics(
    from_grid: float,
    fossil_stats: Mapping[str, float],
    tolerance: float | None = None,
) -> CarbonOverlay:
    """Low-carbon overlay from period fossil-consumption statistics."""
    high = min(max(high_carbon_energy(fossil_stats), 0.0), from_grid)
    low = from_grid - high
    percentage = low / from_grid * 100 if from_grid else None
    return CarbonOverlay(
        low_carbon_energy=low,
        low_carbon_percentage=percentage,
        high_carbon_energy=high,
        has_usage=_has_usage(low, tolerance),
    )


def estimate_from_percentage(
    from_grid: float,
    fossil_percentage: float,
    tolerance: float | None = None,
) -> CarbonOverlay:
    """Low-carbon overlay from an instantaneous fossil-percentage sensor."""
    percentage = min(max(100 - fossil_percentage, 0.0), 100.0)
    low = percentage * from_grid / 100
    return CarbonOverlay(
        low_carbon_energy=low,
        low_carbon_percentage=percentage,
        high_carbon_energy=from_grid - low,
        has_usage=_has_usage(low, tolerance),
    )


def estimate_carbon(
    from_grid: float | None,
    *,
    energy_date_selection: bool = True,
    fossil_stats: Mapping[str, float] | None = None,
    fossil_percentage: float | None = None,
    tolerance: float | None = None,
) -> CarbonOverlay | None:
    """Pick the estimation mode and compute the overlay.

    Returns:
        None when the needed input for the active mode is unavailable.
    """
    grid = from_grid or 0.0
    if not energy_date_selection:
        if fossil_percentage is None:
            return None
        return estimate_from_percentage(grid, fossil_percentage, tolerance)
    if fossil_stats is None:
        return None
    return estimate_from_statistics(grid, fossil_stats, tolerance)


def home_arcs(flows: FlowState, carbon: CarbonOverlay | None = None) -> HomeArcs | None:
    """Split the home circle proportionally between its sources.

    Without carbon data the grid arc is the residual and there is no
    low-carbon arc. Returns None when the home consumed nothing.
    """
    total = flows.home.total_consumption
    solar_in = flows.solar.to_home or 0.0
    battery_in = flows.battery.to_home or 0.0
    # An overridden or floored home total can be smaller than its sources.
    divisor = max(total, solar_in + battery_in)
    if divisor <= 0:
        return None

    solar = CIRCLE_CIRCUMFERENCE * solar_in / divisor
    battery = CIRCLE_CIRCUMFERENCE * battery_in / divisor
    remaining = max(CIRCLE_CIRCUMFERENCE - solar - battery, 0.0)

    if carbon is None or carbon.high_carbon_energy is None:
        return HomeArcs(solar=solar, battery=battery, grid=remaining)

    grid = min(CIRCLE_CIRCUMFERENCE * carbon.high_carbon_energy / divisor, remaining)
    non_fossil = CIRCLE_CIRCUMFERENCE - solar - battery - grid
    return HomeArcs(solar=solar, battery=battery, grid=grid, non_fossil=non_fossil)
