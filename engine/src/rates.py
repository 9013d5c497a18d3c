"""
Animation-rate mapper: turns flow magnitudes into dot animation durations.

Two interchangeable models:

- Ratio model (default): a path's share of its group total decides where
  the duration sits between ``max_flow_rate`` (share 0, slowest) and
  ``min_flow_rate`` (share 1, fastest).
- Range model (``use_new_flow_rate_model``): the flow is mapped linearly
  from ``[min_expected_energy, max_expected_energy]`` onto
  ``[max_flow_rate, min_flow_rate]``. Flows above ``max_expected_energy``
  return ``min_flow_rate``; flows below ``min_expected_energy`` extrapolate
  past ``max_flow_rate``.

A path whose flow is 0, or whose duration is undefined (zero group total),
is left out of AnimationParams so the renderer hides its dot.

DurationCache is the only state kept between invocations. It never feeds
back into the numbers; it only lets a running dot keep its relative position
when its duration changes.

CHANGELOG:
- 2026-10-16: Add DurationCache playback rescaling (STORY-007)
- 2026-10-15: Add fixed-rate override for individual and low-carbon paths (STORY-005)
- 2026-10-14: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Mapping

from engine.src.config import RateOptions
from engine.src.models import (
    MAIN_PATHS,
    PATH_BATTERY_GRID,
    PATH_BATTERY_TO_HOME,
    PATH_GRID_TO_HOME,
    PATH_INDIVIDUAL1,
    PATH_INDIVIDUAL2,
    PATH_NON_FOSSIL,
    PATH_SOLAR_TO_BATTERY,
    PATH_SOLAR_TO_GRID,
    PATH_SOLAR_TO_HOME,
    AnimationParams,
    FlowState,
)

DEFAULT_ADDITIONAL_RATE = 1.66
"""Duration in seconds of individual and low-carbon dots without a computed rate."""


def map_range(
    value: float,
    min_out: float,
    max_out: float,
    min_in: float,
    max_in: float,
) -> float:
    """Linearly map *value* from ``[min_in, max_in]`` to ``[min_out, max_out]``.

    Values above *max_in* return *max_out*; values below *min_in* are not
    clamped.
    """
    if value > max_in:
        return max_out
    return ((value - min_in) * (max_out - min_out)) / (max_in - min_in) + min_out


def circle_rate(value: float, total: float, options: RateOptions) -> float | None:
    """Return the animation duration for a flow, or None if undefined.

    Args:
        value: Flow magnitude in Wh.
        total: Sum of the flows in the same group (ratio model only).
        options: Resolved rate parameters.
    """
    max_rate = options.max_flow_rate
    min_rate = options.min_flow_rate
    if options.use_new_flow_rate_model:
        if options.max_expected_energy == options.min_expected_energy:
            return None
        return map_range(
            value,
            max_rate,
            min_rate,
            options.min_expected_energy,
            options.max_expected_energy,
        )
    if not total:
        return None
    return max_rate - (value / total) * (max_rate - min_rate)


def additional_rate(entry: bool | float | None, computed: float | None) -> float | None:
    """Resolve the duration of an individual or low-carbon path.

    ``calculate_flow_rate: true`` uses the computed rate, a number is used
    as a fixed duration, anything else falls back to the default.
    """
    if entry is True and computed:
        return computed
    if isinstance(entry, (int, float)) and not isinstance(entry, bool):
        return float(entry) if entry > 0 else None
    return DEFAULT_ADDITIONAL_RATE


def path_flows(flows: FlowState, low_carbon_energy: float | None = None) -> dict[str, float]:
    """Flow magnitude driving each animated path."""
    return {
        PATH_GRID_TO_HOME: flows.grid.from_grid or 0.0,
        PATH_SOLAR_TO_HOME: flows.solar.to_home or 0.0,
        PATH_SOLAR_TO_GRID: flows.solar.to_grid or 0.0,
        PATH_SOLAR_TO_BATTERY: flows.solar.to_battery or 0.0,
        PATH_BATTERY_TO_HOME: flows.battery.to_home or 0.0,
        # One line carries both directions; the dominant one sets the pace.
        PATH_BATTERY_GRID: max(flows.grid.to_battery or 0.0, flows.battery.to_grid or 0.0),
        PATH_INDIVIDUAL1: flows.individual1.total or 0.0,
        PATH_INDIVIDUAL2: flows.individual2.total or 0.0,
        PATH_NON_FOSSIL: low_carbon_energy or 0.0,
    }


def compute_animation(
    flows: FlowState,
    options: RateOptions,
    *,
    low_carbon_energy: float | None = None,
    individual1_rate: bool | float | None = None,
    individual2_rate: bool | float | None = None,
    non_fossil_rate: bool | float | None = None,
) -> AnimationParams:
    """Compute durations for every path that carries energy.

    Args:
        flows: Reconciled flow state.
        options: Resolved rate parameters.
        low_carbon_energy: Low-carbon grid energy driving the leaf path.
        individual1_rate: ``calculate_flow_rate`` of the first device.
        individual2_rate: ``calculate_flow_rate`` of the second device.
        non_fossil_rate: ``calculate_flow_rate`` of the low-carbon block.
    """
    values = path_flows(flows, low_carbon_energy)
    total_lines = flows.total_lines
    total_individual = flows.total_individual
    durations: dict[str, float] = {}

    for path in MAIN_PATHS:
        value = values[path]
        if value <= 0:
            continue
        rate = circle_rate(value, total_lines, options)
        if rate is not None:
            durations[path] = rate

    extra = (
        (PATH_INDIVIDUAL1, total_individual, individual1_rate),
        (PATH_INDIVIDUAL2, total_individual, individual2_rate),
        (PATH_NON_FOSSIL, total_lines, non_fossil_rate),
    )
    for path, total, entry in extra:
        value = values[path]
        if value <= 0:
            continue
        rate = additional_rate(entry, circle_rate(value, total, options))
        if rate is not None:
            durations[path] = rate

    return AnimationParams(durations=durations)


class DurationCache:
    """Previous durations per path, used to rescale running animations.

    When a path's duration changes from ``old`` to ``new``, a dot currently
    at playback time ``t`` continues from ``t * new / old`` instead of
    restarting, so it does not visibly jump.
    """

    def __init__(self) -> None:
        self._previous: dict[str, float] = {}

    def previous(self, path: str) -> float | None:
        """Duration stored for *path* by the last transition, if any."""
        return self._previous.get(path)

    def transition(
        self,
        params: AnimationParams,
        positions: Mapping[str, float] | None = None,
    ) -> dict[str, float]:
        """Store the new durations and rescale in-flight playback positions.

        Args:
            params: Durations computed for this invocation.
            positions: Current playback time in seconds per running path.

        Returns:
            New playback time per path whose duration changed. Paths with no
            previous duration, an unchanged duration or no known position
            are omitted.
        """
        positions = positions or {}
        rescaled: dict[str, float] = {}
        for path, new in params.durations.items():
            old = self._previous.get(path)
            if old and old != new and path in positions:
                rescaled[path] = positions[path] * (new / old)
        self._previous = dict(params.durations)
        return rescaled

    def clear(self) -> None:
        """Forget all stored durations, e.g. after the card is re-rendered."""
        self._previous.clear()
