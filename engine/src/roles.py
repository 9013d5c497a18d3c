"""
Role reader: resolves each role's configured entities into a RoleTotal.

A role is present as soon as one entity id is configured for it, whatever
its current value; presence drives branch selection in the reconciler, so an
unavailable sensor must not make a role disappear.

Sign conventions:
    grid, solar, home, individual: a single entity reports the primary
        direction; negative values clamp to 0 unless ``invert_state`` is
        set, in which case only the negative part counts.
    grid with a consumption/production pair: ``total`` is consumption and
        ``production`` is the return to grid.
    battery with a consumption/production pair: ``total`` is discharge and
        ``production`` is charge.
    battery with a single entity: positive is discharge, negative is charge;
        ``invert_state`` swaps the two.

CHANGELOG:
- 2026-10-14: Split single signed battery entity into charge/discharge (STORY-003)
- 2026-10-13: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from engine.src.config import RoleConfig
from engine.src.models import Reading, RoleTotal
from engine.src.units import sum_watthours

OnMissing = Callable[[str], object]

BIDIRECTIONAL_ROLES = ("grid", "battery")


def apply_tolerance(value: float, tolerance: float | None) -> float:
    """Force *value* to exactly 0 when its magnitude is within *tolerance*."""
    if tolerance is not None and abs(value) <= tolerance:
        return 0.0
    return value


def _signed(value: float, inverted: bool) -> float:
    return -value if inverted else value


def read_role(
    role: str,
    config: RoleConfig | None,
    readings: Mapping[str, Reading | None],
    on_missing: OnMissing | None = None,
) -> RoleTotal:
    """Resolve one role into a non-negative RoleTotal.

    Args:
        role: Role name; ``"grid"`` and ``"battery"`` read both directions.
        config: The role's configuration block, or None when not configured.
        readings: Resolved readings keyed by entity id.
        on_missing: Called for every configured entity without a reading.
    """
    if config is None or not config.present:
        return RoleTotal(role=role, present=False)

    tolerance = config.display_zero_tolerance
    inverted = config.invert_state

    if role == "battery":
        if config.is_combo:
            discharge = sum_watthours(config.consumption_ids, readings, on_missing)
            charge = sum_watthours(config.production_ids, readings, on_missing)
            discharge = max(_signed(discharge, inverted), 0.0)
            charge = max(_signed(charge, inverted), 0.0)
        else:
            value = _signed(sum_watthours(config.consumption_ids, readings, on_missing), inverted)
            discharge = max(value, 0.0)
            charge = max(-value, 0.0)
        return RoleTotal(
            role=role,
            present=True,
            total=apply_tolerance(discharge, tolerance),
            production=apply_tolerance(charge, tolerance),
        )

    value = _signed(sum_watthours(config.consumption_ids, readings, on_missing), inverted)
    total = apply_tolerance(max(value, 0.0), tolerance)

    production: float | None = None
    if role == "grid" and config.production_ids:
        returned = _signed(sum_watthours(config.production_ids, readings, on_missing), inverted)
        production = apply_tolerance(max(returned, 0.0), tolerance)

    return RoleTotal(role=role, present=True, total=total, production=production)
