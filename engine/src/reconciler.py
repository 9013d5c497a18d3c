"""
Flow reconciler: derives the unmeasured flows between grid, solar, battery
and home.

Only grid consumption, grid return, solar production and battery
charge/discharge are measured. Six directional flows have to be inferred
from them:

    solar -> home, solar -> grid, solar -> battery,
    battery -> home, battery -> grid, grid -> battery

Every node's outflow must equal its measured inflow. Where that leaves more
than one answer, a solar deficit (grid return plus battery charge exceeding
solar production) is first attributed to grid -> battery and only the part
the grid cannot cover goes to battery -> grid.

The steps below run strictly in order; each reads what the previous ones
produced. Presence flags select whole branches: an absent role changes which
quantity is solved for, it is not the same as a role reading 0.

This is a pure function: no I/O, no clock, no state between calls.

CHANGELOG:
- 2026-10-18: Add home display total excluding individual devices (STORY-010)
- 2026-10-17: Restate battery totals from flows after tolerance re-check (STORY-009)
- 2026-10-14: Re-attribute clamped deficit to battery -> grid (STORY-003)
- 2026-10-13: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import logging

from engine.src.models import (
    BatteryFlows,
    FlowState,
    GridFlows,
    HomeFlows,
    IndividualFlows,
    RoleTotal,
    SolarFlows,
)
from engine.src.roles import apply_tolerance

logger = logging.getLogger(__name__)


def _absent(role: str) -> RoleTotal:
    return RoleTotal(role=role, present=False)


def reconcile(
    grid: RoleTotal,
    solar: RoleTotal,
    battery: RoleTotal,
    *,
    home: RoleTotal | None = None,
    individual1: RoleTotal | None = None,
    individual2: RoleTotal | None = None,
    power_outage: bool = False,
    grid_tolerance: float | None = None,
    battery_tolerance: float | None = None,
    override_home: bool = False,
    subtract_individual: bool = False,
) -> FlowState:
    """Reconcile role totals into a conservation-respecting FlowState.

    Args:
        grid: Grid consumption (``total``) and return (``production``).
        solar: Solar production (``total``).
        battery: Battery discharge (``total``) and charge (``production``).
        home: Directly measured home consumption, used only with
            *override_home*.
        individual1: First auxiliary device.
        individual2: Second auxiliary device.
        power_outage: Grid outage indicator is in its alert state; grid
            consumption and return are forced to 0.
        grid_tolerance: Grid zero tolerance re-applied to grid -> battery.
        battery_tolerance: Battery zero tolerance re-applied to the derived
            battery -> home and battery -> grid flows.
        override_home: Report the home role's own total instead of the
            derived consumption.
        subtract_individual: Subtract the individual device totals from
            the measured home total under *override_home*, and from the
            shown ``display_total`` otherwise.

    Returns:
        A FlowState whose values are None or finite and >= 0.
    """
    home = home or _absent("home")
    individual1 = individual1 or _absent("individual1")
    individual2 = individual2 or _absent("individual2")

    has_grid = grid.present
    has_solar = solar.present
    has_battery = battery.present

    # --- 1. Grid baseline (tolerance already applied by the role reader) ---
    from_grid = grid.total if has_grid else 0.0
    to_grid0 = grid.production if has_grid else None
    if power_outage:
        from_grid = 0.0
        if to_grid0 is not None:
            to_grid0 = 0.0

    returned = to_grid0 or 0.0
    solar_total = solar.total if has_solar else 0.0
    charged = (battery.production or 0.0) if has_battery else 0.0
    discharged = battery.total if has_battery else 0.0

    solar_to_home: float | None = None
    solar_to_grid: float | None = None
    solar_to_battery: float | None = None
    grid_to_battery: float | None = 0.0 if has_battery else None
    battery_to_grid: float | None = 0.0 if has_battery else None
    battery_to_home: float | None = None
    ambiguous = False

    # --- 2. Solar -> home, provisional ---
    if has_solar:
        solar_to_home = solar_total - returned - charged

    # --- 3. Deficit correction ---
    deficit_attributed = False
    if solar_to_home is not None and solar_to_home < 0:
        if has_battery:
            deficit = -solar_to_home
            grid_to_battery = min(deficit, from_grid, charged)
            remainder = deficit - grid_to_battery
            if remainder > 0:
                battery_to_grid = min(remainder, discharged, returned)
                ambiguous = grid_to_battery > 0 and battery_to_grid > 0
                if ambiguous:
                    logger.debug(
                        "Solar deficit %.4g Wh split: grid->battery %.4g, battery->grid %.4g",
                        deficit,
                        grid_to_battery,
                        battery_to_grid,
                    )
            deficit_attributed = True
        solar_to_home = 0.0

    # --- 4. Battery <-> grid closing term ---
    if has_solar and has_battery:
        if not deficit_attributed:
            battery_to_grid = max(0.0, returned - solar_total - charged - grid_to_battery)
        solar_to_battery = min(max(charged - grid_to_battery, 0.0), solar_total - solar_to_home)
    elif has_battery:
        # Without solar the battery is the only other producer, and the grid
        # the only thing that can have charged it.
        battery_to_grid = min(returned, discharged)
        grid_to_battery = charged if has_grid else None

    # --- 5. Solar -> grid ---
    if has_solar:
        available = max(solar_total - solar_to_home - (solar_to_battery or 0.0), 0.0)
        solar_to_grid = min(max(returned - (battery_to_grid or 0.0), 0.0), available)

    # --- 6. Battery -> home ---
    if has_battery:
        battery_to_grid = min(battery_to_grid, discharged)
        battery_to_home = discharged - battery_to_grid

    # --- 7. Zero-tolerance re-check on derived flows ---
    from_battery: float | None = None
    to_battery: float | None = None
    if has_battery:
        battery_to_home = apply_tolerance(battery_to_home, battery_tolerance)
        battery_to_grid = apply_tolerance(battery_to_grid, battery_tolerance)
        from_battery = battery_to_home + battery_to_grid
        to_battery = charged
        if grid_to_battery is not None:
            grid_to_battery = apply_tolerance(grid_to_battery, grid_tolerance)
        if not has_grid:
            grid_to_battery = None

    # --- 8. Home total ---
    total_consumption = max(
        0.0,
        from_grid - (grid_to_battery or 0.0) + (solar_to_home or 0.0) + (battery_to_home or 0.0),
    )
    individual_total = _individual_total(individual1) + _individual_total(individual2)
    overridden = False
    if override_home and home.present:
        total_consumption = home.total
        if subtract_individual:
            total_consumption = max(0.0, total_consumption - individual_total)
        overridden = True

    # The arcs keep the derived total; only the shown value drops the devices.
    display_total = total_consumption
    if subtract_individual and not overridden:
        display_total = max(0.0, total_consumption - individual_total)

    return FlowState(
        grid=GridFlows(
            from_grid=from_grid if has_grid else None,
            to_grid=to_grid0,
            to_battery=grid_to_battery,
            has_return=to_grid0 is not None,
            power_outage=power_outage,
        ),
        solar=SolarFlows(
            total=solar_total if has_solar else None,
            to_home=solar_to_home,
            to_grid=solar_to_grid,
            to_battery=solar_to_battery,
        ),
        battery=BatteryFlows(
            to_battery=to_battery,
            from_battery=from_battery,
            to_grid=battery_to_grid,
            to_home=battery_to_home,
        ),
        home=HomeFlows(
            total_consumption=total_consumption,
            display_total=display_total,
            overridden=overridden,
        ),
        individual1=IndividualFlows(total=individual1.total if individual1.present else None),
        individual2=IndividualFlows(total=individual2.total if individual2.present else None),
        ambiguous=ambiguous,
    )


def _individual_total(total: RoleTotal) -> float:
    return total.total if total.present else 0.0
