"""
Code Royale Bot - Build Controller
===================================
Decides what a building site should become and issues the build/upgrade
order for the site the queen is touching.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from royale_bot.geometry import distance
from royale_bot.models import (
    GIANT_COST, KNIGHT_COST, KNIGHT_SPEED, MAX_TOWER_HP, QUEEN_SPEED, QUEEN_TOWER_UP,
    BarracksType, BuildDecision, Move, Owner, StructureSite, StructureType,
    Unit, UnitType,
)
from royale_bot.snapshot import WorldSnapshot
from royale_bot.threat import comfort_towers, is_panic_mode, towers_on_path

logger = logging.getLogger(__name__)


# A knight barracks this much farther from the enemy queen than a candidate
# site is worth rebuilding closer
BARRACKS_REPLACEMENT_THRESHOLD_DIST = 400

# Radius around a site in which empty neighbours add to its value
SURROUNDING_THRESHOLD = 400

# Gold needed before a giant barracks is worth starting
GIANT_BARRACKS_GOLD = GIANT_COST + KNIGHT_COST / 2


# ---------------------------------------------------------------------------
# Site census
# ---------------------------------------------------------------------------

@dataclass
class SiteCensus:
    """Counts and nearest structures gathered once per building decision."""
    my_barracks: int = 0
    my_giants: int = 0
    enemy_barracks: int = 0
    my_mines: int = 0
    my_towers: int = 0
    empty_surroundings: int = 0

    closest_my_barracks: Optional[StructureSite] = None
    closest_enemy_barracks: Optional[StructureSite] = None

    knight_bonus: float = 0.0
    closest_enemy_knight: Optional[Unit] = None

    @property
    def knights_present(self) -> bool:
        return self.closest_enemy_knight is not None


def take_census(site: StructureSite, snapshot: WorldSnapshot) -> SiteCensus:
    census = SiteCensus()
    my_q = snapshot.my_queen
    enemy_q = snapshot.enemy_queen
    closest_mine_dist = float("inf")
    closest_enemy_dist = float("inf")

    for s in snapshot.sites:
        if s.is_(StructureType.BARRACKS, Owner.FRIENDLY) and s.barracks_type == BarracksType.KNIGHT:
            census.my_barracks += 1
            d = distance(enemy_q.x, enemy_q.y, s.x, s.y)
            if d < closest_mine_dist:
                closest_mine_dist = d
                census.closest_my_barracks = s
        elif s.is_(StructureType.BARRACKS, Owner.ENEMY) and s.barracks_type == BarracksType.KNIGHT:
            census.enemy_barracks += 1
            d = distance(my_q.x, my_q.y, s.x, s.y)
            if d < closest_enemy_dist:
                closest_enemy_dist = d
                census.closest_enemy_barracks = s
        elif s.is_(StructureType.BARRACKS, Owner.FRIENDLY) and s.barracks_type == BarracksType.GIANT:
            census.my_giants += 1
        elif s.is_(StructureType.MINE, Owner.FRIENDLY):
            census.my_mines += 1
        elif s.is_(StructureType.TOWER, Owner.FRIENDLY):
            census.my_towers += 1
        elif s.structure_type == StructureType.NONE:
            if distance(s.x, s.y, site.x, site.y) < SURROUNDING_THRESHOLD:
                census.empty_surroundings += 1

    # Time the nearest enemy knight needs, expressed in queen-distance units
    best_bonus = float("inf")
    for unit in snapshot.enemy_units(UnitType.KNIGHT):
        bonus = distance(unit.x, unit.y, site.x, site.y) / KNIGHT_SPEED * QUEEN_SPEED
        if bonus < best_bonus:
            best_bonus = bonus
            census.closest_enemy_knight = unit
    census.knight_bonus = best_bonus if census.knights_present else 0.0

    return census


# ---------------------------------------------------------------------------
# Build decision cascade
# ---------------------------------------------------------------------------

def building_decision(
    site: StructureSite,
    snapshot: WorldSnapshot,
    second: bool,
) -> Optional[BuildDecision]:
    """Recommend what `site` should become, with a desirability bonus.

    Args:
        site: Candidate site.
        snapshot: Current world snapshot.
        second: The site is evaluated as the second stop of a trip; barracks
            recommendations are suppressed since their training would come
            too late to matter.

    Returns:
        BuildDecision, or None when the site is not worth touching.
    """
    if site.is_(StructureType.TOWER, Owner.ENEMY):
        return None

    c = take_census(site, snapshot)
    my_q = snapshot.my_queen
    enemy_q = snapshot.enemy_queen
    comfort = comfort_towers(snapshot)
    gold = snapshot.gold
    kb = c.knight_bonus
    empty = c.empty_surroundings

    dist_to_enemy_queen = distance(enemy_q.x, enemy_q.y, site.x, site.y)
    corner_x, corner_y = snapshot.home_corner
    max_dist_to_enemy_queen = distance(corner_x, corner_y, enemy_q.x, enemy_q.y)
    frontline_bonus = (max_dist_to_enemy_queen - dist_to_enemy_queen) / 2

    my_barracks_dist = None
    if c.closest_my_barracks is not None:
        b = c.closest_my_barracks
        my_barracks_dist = distance(b.x, b.y, enemy_q.x, enemy_q.y)
    barracks_drifted = (
        c.my_barracks > 0 and my_barracks_dist is not None
        and my_barracks_dist - dist_to_enemy_queen >= BARRACKS_REPLACEMENT_THRESHOLD_DIST
    )
    giant_affordable = (c.my_barracks > 0 and c.my_giants == 0
                        and gold > GIANT_BARRACKS_GOLD and not second)

    if site.structure_type == StructureType.MINE:
        threat = c.closest_enemy_barracks or c.closest_enemy_knight
        tx, ty = (threat.x, threat.y) if threat is not None else (0, 0)
        if c.knights_present and towers_on_path(snapshot, my_q.x, my_q.y, tx, ty) < comfort:
            return BuildDecision(
                StructureType.TOWER, None,
                -(site.income_rate + 1) * 2 * QUEEN_SPEED + empty * QUEEN_SPEED + kb,
            )
        if giant_affordable:
            return BuildDecision(StructureType.BARRACKS, BarracksType.GIANT, frontline_bonus + kb)

    enemy_b = c.closest_enemy_barracks
    # gold is absent for most sites; treating it as 1 keeps those sites eligible
    useless_tower = (
        site.structure_type == StructureType.TOWER
        and enemy_b is not None
        and not c.knights_present
        and towers_on_path(snapshot, my_q.x, my_q.y, enemy_b.x, enemy_b.y, site) >= comfort
        and towers_on_path(snapshot, site.x, site.y, enemy_b.x, enemy_b.y, site) >= comfort
        and (site.gold or 1) > 0
    )

    if site.structure_type == StructureType.TOWER:
        if (MAX_TOWER_HP - site.tower_hp) / QUEEN_TOWER_UP > 2 and not useless_tower:
            return BuildDecision(StructureType.TOWER, None, -QUEEN_SPEED + kb)

    useless_barracks = (
        site.structure_type == StructureType.BARRACKS
        and site.barracks_type == BarracksType.KNIGHT
        and c.my_barracks > 1
        and c.closest_my_barracks is not None
        and c.closest_my_barracks.id != site.id
    )

    if not (site.structure_type == StructureType.NONE or useless_barracks or useless_tower):
        return None

    if c.my_barracks == 0 and (c.my_mines >= 2 or c.enemy_barracks != 0) and not second:
        return BuildDecision(StructureType.BARRACKS, BarracksType.KNIGHT, frontline_bonus + kb)
    if c.my_barracks > 0 and c.my_mines >= 2 and c.my_towers == 0 and not second:
        return BuildDecision(StructureType.TOWER, None, empty * QUEEN_SPEED + kb)
    if barracks_drifted:
        return BuildDecision(StructureType.BARRACKS, BarracksType.KNIGHT, kb)
    if ((c.enemy_barracks > 0 or c.knights_present) and enemy_b is not None
            and towers_on_path(snapshot, my_q.x, my_q.y, enemy_b.x, enemy_b.y) < comfort):
        return BuildDecision(StructureType.TOWER, None, empty * QUEEN_SPEED + kb)
    if is_panic_mode(snapshot):
        return BuildDecision(StructureType.TOWER, None, kb)
    if giant_affordable:
        return BuildDecision(StructureType.BARRACKS, BarracksType.GIANT, frontline_bonus + kb)
    if barracks_drifted:
        return BuildDecision(StructureType.BARRACKS, BarracksType.KNIGHT, frontline_bonus + kb)
    if (site.gold or 1) > 0:
        return BuildDecision(StructureType.MINE, None, ((site.max_mine_size or 1) - 1) * QUEEN_SPEED + kb)
    return BuildDecision(StructureType.TOWER, None, empty + kb)


# ---------------------------------------------------------------------------
# Structure-decision rule
# ---------------------------------------------------------------------------

def decide_structure(snapshot: WorldSnapshot) -> Optional[Move]:
    """Build on, or upgrade, the site the queen is touching."""
    site = snapshot.touched_site
    if site is None:
        return None

    decision = building_decision(site, snapshot, False)

    if decision is None or decision.structure_type == site.structure_type:
        if is_panic_mode(snapshot) or site.owner != Owner.FRIENDLY:
            return None
        if (site.structure_type == StructureType.MINE
                and (site.max_mine_size or 0) > site.income_rate):
            return Move.build(site.id, StructureType.MINE)
        if (site.structure_type == StructureType.TOWER
                and MAX_TOWER_HP - site.tower_hp >= QUEEN_TOWER_UP / 2):
            return Move.build(site.id, StructureType.TOWER)
        return None

    logger.debug("Site %d: build %s %s", site.id,
                 decision.structure_type.name,
                 decision.barracks_type.name if decision.barracks_type else "")
    return Move.build(site.id, decision.structure_type, decision.barracks_type)
