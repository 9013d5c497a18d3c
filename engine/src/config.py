"""
Card configuration models and environment-loaded engine settings.

CardConfig mirrors the card's YAML configuration: an ``entities`` mapping
with one block per role plus top-level flow-rate options. It is validated
once at acceptance time; a configuration without any grid, solar or battery
entity is rejected with a pydantic ValidationError and the engine never runs
on it.

EngineSettings holds process-wide defaults loaded from environment variables
or a .env file. Card options left unset fall back to these defaults.

CHANGELOG:
- 2026-10-17: Validate expected-energy and flow-rate ranges (STORY-009)
- 2026-10-15: Add fossil fuel percentage block (STORY-005)
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic_settings import BaseSettings

DisplayState = Literal["two_way", "one_way", "one_way_no_zero"]
EntityRef = str | list[str]

DEFAULT_MIN_FLOW_RATE = 1.0
DEFAULT_MAX_FLOW_RATE = 6.0
DEFAULT_MIN_EXPECTED_ENERGY = 10.0
DEFAULT_MAX_EXPECTED_ENERGY = 2000.0

_T = TypeVar("_T")


def _as_list(ref: EntityRef | None) -> list[str]:
    """Flatten a single id or a list of ids, dropping empty strings."""
    if ref is None:
        return []
    if isinstance(ref, str):
        return [ref] if ref else []
    return [r for r in ref if r]


# ---------------------------------------------------------------------------
# Per-role blocks
# ---------------------------------------------------------------------------


class ComboEntity(BaseModel):
    """A consumption/production entity pair for a bidirectional role."""

    model_config = ConfigDict(extra="ignore")

    consumption: EntityRef | None = None
    production: EntityRef | None = None


class RoleConfig(BaseModel):
    """Options shared by every role block."""

    model_config = ConfigDict(extra="ignore")

    entity: EntityRef | ComboEntity | None = None
    invert_state: bool = False
    display_zero_tolerance: float | None = None
    display_state: DisplayState | None = None

    @field_validator("display_zero_tolerance")
    @classmethod
    def tolerance_must_be_non_negative(cls, v: float | None) -> float | None:
        if v is not None and v < 0:
            raise ValueError("display_zero_tolerance must be >= 0")
        return v

    @property
    def is_combo(self) -> bool:
        return isinstance(self.entity, ComboEntity)

    @property
    def consumption_ids(self) -> list[str]:
        """Entity ids of the primary direction (or the single entity)."""
        if isinstance(self.entity, ComboEntity):
            return _as_list(self.entity.consumption)
        return _as_list(self.entity)

    @property
    def production_ids(self) -> list[str]:
        if isinstance(self.entity, ComboEntity):
            return _as_list(self.entity.production)
        return []

    @property
    def entity_ids(self) -> list[str]:
        return self.consumption_ids + self.production_ids

    @property
    def present(self) -> bool:
        return bool(self.entity_ids)


class PowerOutageConfig(BaseModel):
    """Entity whose state signals a grid outage."""

    model_config = ConfigDict(extra="ignore")

    entity: str
    state_alert: str = "on"
    label_alert: str | None = None
    icon_alert: str | None = None


class GridConfig(RoleConfig):
    power_outage: PowerOutageConfig | None = None


class SolarConfig(RoleConfig):
    pass


class BatteryConfig(RoleConfig):
    state_of_charge: str | None = None


class HomeConfig(RoleConfig):
    override_state: bool = False
    subtract_individual: bool = False


class IndividualConfig(RoleConfig):
    calculate_flow_rate: bool | float | None = None
    inverted_animation: bool = False
    display_zero: bool = False


class FossilFuelConfig(BaseModel):
    """Low-carbon overlay options.

    ``entity`` is the fossil-percentage sensor read in instantaneous mode.
    """

    model_config = ConfigDict(extra="ignore")

    entity: str | None = None
    show: bool = False
    state_type: Literal["percentage", "energy"] = "percentage"
    display_zero: bool = True
    display_zero_tolerance: float | None = None
    calculate_flow_rate: bool | float | None = None


class EntitiesConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    grid: GridConfig | None = None
    solar: SolarConfig | None = None
    battery: BatteryConfig | None = None
    home: HomeConfig | None = None
    individual1: IndividualConfig | None = None
    individual2: IndividualConfig | None = None
    fossil_fuel_percentage: FossilFuelConfig | None = None


# ---------------------------------------------------------------------------
# Rate options
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateOptions:
    """Resolved parameters of the animation-rate mapper.

    Attributes:
        min_flow_rate: Shortest duration in seconds (fastest dot).
        max_flow_rate: Longest duration in seconds (slowest dot).
        min_expected_energy: Lower input bound of the range model in Wh.
        max_expected_energy: Upper input bound of the range model in Wh.
        use_new_flow_rate_model: Select the range model instead of the
            ratio model.
    """

    min_flow_rate: float = DEFAULT_MIN_FLOW_RATE
    max_flow_rate: float = DEFAULT_MAX_FLOW_RATE
    min_expected_energy: float = DEFAULT_MIN_EXPECTED_ENERGY
    max_expected_energy: float = DEFAULT_MAX_EXPECTED_ENERGY
    use_new_flow_rate_model: bool = False


# ---------------------------------------------------------------------------
# Card configuration
# ---------------------------------------------------------------------------


class CardConfig(BaseModel):
    """Validated card configuration.

    Raises:
        pydantic.ValidationError: When none of grid, solar or battery has an
            entity configured, or when a rate or energy range is inverted.
    """

    model_config = ConfigDict(extra="ignore")

    entities: EntitiesConfig
    min_flow_rate: float | None = None
    max_flow_rate: float | None = None
    min_expected_energy: float | None = None
    max_expected_energy: float | None = None
    use_new_flow_rate_model: bool | None = None
    energy_date_selection: bool = True
    display_zero_lines: bool = True

    @model_validator(mode="after")
    def _require_a_source(self) -> CardConfig:
        """At least one of grid, solar or battery must name an entity."""
        sources = (self.entities.grid, self.entities.solar, self.entities.battery)
        if not any(s is not None and s.present for s in sources):
            raise ValueError("At least one entity for battery, grid or solar must be defined")
        return self

    @model_validator(mode="after")
    def _ranges_must_be_ordered(self) -> CardConfig:
        if (
            self.min_flow_rate is not None
            and self.max_flow_rate is not None
            and self.min_flow_rate > self.max_flow_rate
        ):
            raise ValueError("min_flow_rate must be <= max_flow_rate")
        if (
            self.min_expected_energy is not None
            and self.max_expected_energy is not None
            and self.min_expected_energy >= self.max_expected_energy
        ):
            raise ValueError("min_expected_energy must be < max_expected_energy")
        return self

    def rate_options(self, settings: EngineSettings | None = None) -> RateOptions:
        """Merge card options over the engine-wide defaults."""
        base = settings.rate_options() if settings is not None else RateOptions()
        return RateOptions(
            min_flow_rate=_pick(self.min_flow_rate, base.min_flow_rate),
            max_flow_rate=_pick(self.max_flow_rate, base.max_flow_rate),
            min_expected_energy=_pick(self.min_expected_energy, base.min_expected_energy),
            max_expected_energy=_pick(self.max_expected_energy, base.max_expected_energy),
            use_new_flow_rate_model=_pick(
                self.use_new_flow_rate_model, base.use_new_flow_rate_model
            ),
        )


def _pick(value: _T | None, fallback: _T) -> _T:
    return fallback if value is None else value


# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------


class EngineSettings(BaseSettings):
    """Process-wide engine defaults loaded from environment variables.

    Attributes:
        min_flow_rate: Default shortest animation duration in seconds.
        max_flow_rate: Default longest animation duration in seconds.
        min_expected_energy: Default lower bound of the range model in Wh.
        max_expected_energy: Default upper bound of the range model in Wh.
        use_new_flow_rate_model: Default rate model selection.
        diagnostic_interval_s: Minimum seconds between two warnings about
            the same unavailable entity.
        log_level: Root logger level used by configure_logging().
    """

    min_flow_rate: float = DEFAULT_MIN_FLOW_RATE
    max_flow_rate: float = DEFAULT_MAX_FLOW_RATE
    min_expected_energy: float = DEFAULT_MIN_EXPECTED_ENERGY
    max_expected_energy: float = DEFAULT_MAX_EXPECTED_ENERGY
    use_new_flow_rate_model: bool = False
    diagnostic_interval_s: float = 60.0
    log_level: str = "INFO"

    @field_validator("min_flow_rate", "max_flow_rate")
    @classmethod
    def flow_rate_must_be_positive(cls, v: float) -> float:
        """Durations are seconds of an SVG animation and must be > 0."""
        if v <= 0:
            raise ValueError("MIN_FLOW_RATE and MAX_FLOW_RATE must be > 0")
        return v

    @field_validator("diagnostic_interval_s")
    @classmethod
    def diagnostic_interval_must_be_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("DIAGNOSTIC_INTERVAL_S must be >= 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard logging level (got: '{v}')")
        return level

    @model_validator(mode="after")
    def _ranges_must_be_ordered(self) -> EngineSettings:
        if self.min_flow_rate > self.max_flow_rate:
            raise ValueError("MIN_FLOW_RATE must be <= MAX_FLOW_RATE")
        if self.min_expected_energy >= self.max_expected_energy:
            raise ValueError("MIN_EXPECTED_ENERGY must be < MAX_EXPECTED_ENERGY")
        return self

    def rate_options(self) -> RateOptions:
        return RateOptions(
            min_flow_rate=self.min_flow_rate,
            max_flow_rate=self.max_flow_rate,
            min_expected_energy=self.min_expected_energy,
            max_expected_energy=self.max_expected_energy,
            use_new_flow_rate_model=self.use_new_flow_rate_model,
        )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
