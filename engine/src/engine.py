"""
Engine entry point: one push-driven invocation from readings to results.

compute() is pure: given the same configuration and inputs it returns the
same EngineResult. FlowEngine wraps it for a long-lived card and owns the two
pieces of cross-invocation state, neither of which touches the numbers:

- the DurationCache of the rate mapper, used to rescale running animations;
- the DiagnosticLimiter that keeps unavailable-entity warnings quiet.

CHANGELOG:
- 2026-10-18: Read the home entity only under override_state (STORY-010)
- 2026-10-17: Split pure compute() from FlowEngine state (STORY-008)
- 2026-10-16: Initial creation (STORY-008)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from engine.src.carbon import estimate_carbon, home_arcs
from engine.src.config import CardConfig, EngineSettings, RateOptions
from engine.src.diagnostics import DiagnosticLimiter
from engine.src.display import display_roles
from engine.src.models import (
    AnimationParams,
    CarbonOverlay,
    DisplayRoles,
    FlowState,
    HomeArcs,
    Reading,
)
from engine.src.rates import DurationCache, compute_animation
from engine.src.reconciler import reconcile
from engine.src.roles import read_role

logger = logging.getLogger(__name__)


class EngineResult(BaseModel):
    """Everything the rendering layer consumes for one update.

    Attributes:
        flows: Reconciled flow state.
        animation: Durations of the animated paths.
        carbon: Low-carbon overlay, or None when no carbon data applies.
        arcs: Home circle breakdown, or None when the home consumed nothing.
        display: Colour roles and visibility flags.
        warnings: Entity ids that could not be read in this invocation.
        playback: Rescaled playback positions for paths whose duration
            changed (only filled by FlowEngine.update).
    """

    model_config = ConfigDict(frozen=True)

    flows: FlowState
    animation: AnimationParams
    carbon: CarbonOverlay | None = None
    arcs: HomeArcs | None = None
    display: DisplayRoles
    warnings: tuple[str, ...] = ()
    playback: dict[str, float] = {}


def is_power_outage(config: CardConfig, states: Mapping[str, Any] | None) -> bool:
    """True when the configured outage entity is in its alert state."""
    grid = config.entities.grid
    if grid is None or grid.power_outage is None or not states:
        return False
    outage = grid.power_outage
    state = states.get(outage.entity)
    return state is not None and str(state) == outage.state_alert


def compute(
    config: CardConfig,
    readings: Mapping[str, Reading | None],
    *,
    options: RateOptions | None = None,
    states: Mapping[str, Any] | None = None,
    fossil_stats: Mapping[str, float] | None = None,
    on_missing: Callable[[str], object] | None = None,
) -> EngineResult:
    """Run one full reconciliation.

    Args:
        config: Validated card configuration.
        readings: Resolved readings keyed by entity id.
        options: Rate parameters; defaults to the card's own options.
        states: Raw host states keyed by entity id, used for the power
            outage indicator.
        fossil_stats: Fossil energy consumption per source in kWh for the
            active period (statistics mode).
        on_missing: Extra callback for every unreadable entity.

    Returns:
        The EngineResult for this update.
    """
    entities = config.entities
    options = options or config.rate_options()
    missing: list[str] = []

    def _missing(entity_id: str) -> None:
        if entity_id not in missing:
            missing.append(entity_id)
        if on_missing is not None:
            on_missing(entity_id)

    grid = read_role("grid", entities.grid, readings, _missing)
    solar = read_role("solar", entities.solar, readings, _missing)
    battery = read_role("battery", entities.battery, readings, _missing)
    # The measured home total is only used as an override.
    home_config = entities.home if entities.home and entities.home.override_state else None
    home = read_role("home", home_config, readings, _missing)
    individual1 = read_role("individual1", entities.individual1, readings, _missing)
    individual2 = read_role("individual2", entities.individual2, readings, _missing)

    flows = reconcile(
        grid,
        solar,
        battery,
        home=home,
        individual1=individual1,
        individual2=individual2,
        power_outage=is_power_outage(config, states),
        grid_tolerance=entities.grid.display_zero_tolerance if entities.grid else None,
        battery_tolerance=entities.battery.display_zero_tolerance if entities.battery else None,
        override_home=bool(entities.home and entities.home.override_state),
        subtract_individual=bool(entities.home and entities.home.subtract_individual),
    )

    carbon = _estimate_carbon(config, flows, readings, fossil_stats, _missing)
    arcs = home_arcs(flows, carbon)

    fossil = entities.fossil_fuel_percentage
    animation = compute_animation(
        flows,
        options,
        low_carbon_energy=carbon.low_carbon_energy if carbon and fossil and fossil.show else None,
        individual1_rate=entities.individual1.calculate_flow_rate if entities.individual1 else None,
        individual2_rate=entities.individual2.calculate_flow_rate if entities.individual2 else None,
        non_fossil_rate=fossil.calculate_flow_rate if fossil else None,
    )

    return EngineResult(
        flows=flows,
        animation=animation,
        carbon=carbon,
        arcs=arcs,
        display=display_roles(flows, config, arcs, carbon),
        warnings=tuple(missing),
    )


def _estimate_carbon(
    config: CardConfig,
    flows: FlowState,
    readings: Mapping[str, Reading | None],
    fossil_stats: Mapping[str, float] | None,
    on_missing: Callable[[str], None],
) -> CarbonOverlay | None:
    fossil = config.entities.fossil_fuel_percentage
    if fossil is None or not flows.has_grid:
        return None

    percentage: float | None = None
    if not config.energy_date_selection and fossil.entity:
        reading = readings.get(fossil.entity)
        if reading is None:
            on_missing(fossil.entity)
        else:
            percentage = reading.value

    return estimate_carbon(
        flows.grid.from_grid,
        energy_date_selection=config.energy_date_selection,
        fossil_stats=fossil_stats,
        fossil_percentage=percentage,
        tolerance=fossil.display_zero_tolerance,
    )


class FlowEngine:
    """Long-lived engine for one card configuration.

    Args:
        config: Validated card configuration.
        settings: Engine-wide defaults; loaded from the environment when
            omitted.
        limiter: Diagnostics limiter, injectable for tests.
    """

    def __init__(
        self,
        config: CardConfig,
        settings: EngineSettings | None = None,
        *,
        limiter: DiagnosticLimiter | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or EngineSettings()
        self.options = config.rate_options(self.settings)
        self.durations = DurationCache()
        self.diagnostics = limiter or DiagnosticLimiter(self.settings.diagnostic_interval_s)

    @classmethod
    def from_dict(
        cls,
        raw: Mapping[str, Any],
        settings: EngineSettings | None = None,
    ) -> FlowEngine:
        """Validate a raw card configuration and build an engine for it.

        Raises:
            pydantic.ValidationError: The configuration is rejected.
        """
        return cls(CardConfig.model_validate(raw), settings)

    def update(
        self,
        readings: Mapping[str, Reading | None],
        *,
        states: Mapping[str, Any] | None = None,
        fossil_stats: Mapping[str, float] | None = None,
        positions: Mapping[str, float] | None = None,
    ) -> EngineResult:
        """Recompute on an upstream update and advance the duration cache.

        Args:
            readings: Resolved readings keyed by entity id.
            states: Raw host states keyed by entity id.
            fossil_stats: Fossil energy consumption per source in kWh.
            positions: Current playback time in seconds of running dots.
        """
        result = compute(
            self.config,
            readings,
            options=self.options,
            states=states,
            fossil_stats=fossil_stats,
            on_missing=self.diagnostics.report_unavailable,
        )
        playback = self.durations.transition(result.animation, positions)
        logger.debug(
            "Update: home=%.4g Wh, animated=%d, missing=%d",
            result.flows.home.total_consumption,
            len(result.animation.durations),
            len(result.warnings),
        )
        return result.model_copy(update={"playback": playback})
