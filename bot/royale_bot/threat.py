"""
Code Royale Bot - Threat Assessment
====================================
Read-only queries about enemy pressure and own defensive coverage, shared
by the build cascade and the movement rules.
"""

from typing import Optional

from royale_bot.geometry import distance, is_obstacle
from royale_bot.models import (
    KNIGHT_COST,
    BarracksType, Owner, StructureSite, StructureType, UnitType,
)
from royale_bot.snapshot import WorldSnapshot


# Enemy knights closer than this to the queen trigger the retreat
PANIC_MODE_DIST = 300

# Towers judged enough along a threat path while the enemy can pay for knights
COMFORT_TOWERS_NUMBER = 2


def is_panic_mode(snapshot: WorldSnapshot) -> bool:
    q = snapshot.my_queen
    for unit in snapshot.enemy_units(UnitType.KNIGHT):
        if distance(q.x, q.y, unit.x, unit.y) < PANIC_MODE_DIST:
            return True
    return False


def comfort_towers(snapshot: WorldSnapshot) -> int:
    """Number of towers that make a threat path feel covered.

    Zero while the enemy can neither afford a knight nor earns anything.
    """
    if snapshot.enemy_gold < KNIGHT_COST and snapshot.enemy_income == 0:
        return 0
    return COMFORT_TOWERS_NUMBER


def closest_structure(
    structure_type: StructureType,
    barracks_type: BarracksType,
    owner: Owner,
    x: float,
    y: float,
    snapshot: WorldSnapshot,
) -> Optional[StructureSite]:
    best = None
    best_dist = float("inf")
    for site in snapshot.sites:
        if (site.structure_type != structure_type
                or site.barracks_type != barracks_type
                or site.owner != owner):
            continue
        d = distance(x, y, site.x, site.y)
        if d < best_dist:
            best_dist = d
            best = site
    return best


def towers_on_path(
    snapshot: WorldSnapshot,
    x1: float, y1: float,
    x2: float, y2: float,
    ignore: Optional[StructureSite] = None,
) -> int:
    """Count own towers whose range covers either endpoint or crosses the segment."""
    count = 0
    for site in snapshot.sites:
        if not site.is_(StructureType.TOWER, Owner.FRIENDLY):
            continue
        if ignore is not None and site.id == ignore.id:
            continue
        if (distance(x1, y1, site.x, site.y) <= site.tower_range
                or distance(x2, y2, site.x, site.y) <= site.tower_range
                or is_obstacle(x1, y1, x2, y2, site.x, site.y, site.tower_range)):
            count += 1
    return count
