"""
Unit normalizer: converts energy readings to watt-hours.

Unit tags are matched case-insensitively on their prefix, so ``"kWh"``,
``"KWH"`` and ``"kwh/day"`` all scale by 1000. Anything that is neither a
kWh nor an MWh tag is taken to already be watt-hours.

Missing readings never raise here; they contribute 0 and are passed to the
caller's ``on_missing`` callback so it can decide how to report them.

CHANGELOG:
- 2026-10-13: Add reading_from_state for raw host states (STORY-002)
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping

from engine.src.models import Reading

_UNIT_FACTORS: tuple[tuple[str, float], ...] = (
    ("KWH", 1_000.0),
    ("MWH", 1_000_000.0),
)
"""Unit prefix (upper-cased) -> multiplier to watt-hours."""


def to_watthours(value: float, unit: str | None = None) -> float:
    """Scale *value* to watt-hours according to its unit tag."""
    if unit:
        tag = unit.strip().upper()
        for prefix, factor in _UNIT_FACTORS:
            if tag.startswith(prefix):
                return value * factor
    return value


def reading_from_state(state: object, unit: str | None = None) -> Reading | None:
    """Build a Reading from a raw host state, or None if it is not numeric.

    Host states arrive as strings (``"12.5"``, ``"unavailable"``, ``""``);
    only values that parse to a finite float are accepted.
    """
    if state is None or isinstance(state, bool):
        return None
    try:
        value = float(state)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return Reading(value=value, unit=unit)


def sum_watthours(
    entity_ids: Iterable[str],
    readings: Mapping[str, Reading | None],
    on_missing: Callable[[str], object] | None = None,
) -> float:
    """Sum several entities after normalizing each one to watt-hours.

    Args:
        entity_ids: Entities configured for one role direction.
        readings: Resolved readings keyed by entity id.
        on_missing: Called with the entity id of every reading that is
            absent; that entity contributes 0.

    Returns:
        The signed sum in Wh. Clamping and inversion are the role reader's
        concern.
    """
    total = 0.0
    for entity_id in entity_ids:
        reading = readings.get(entity_id)
        if reading is None:
            if on_missing is not None:
                on_missing(entity_id)
            continue
        total += to_watthours(reading.value, reading.unit)
    return total
