"""
Code Royale Bot - Movement Rules
=================================
Queen movement: expanding to new sites, retreating from enemy knights, and
stepping out of the way of our own knights.
"""

import logging
from typing import List, Optional, Tuple

from royale_bot.build_ctrl import building_decision
from royale_bot.geometry import distance, round_half_up
from royale_bot.models import (
    ARENA_WIDTH, KNIGHT_RADIUS, KNIGHT_SPEED, QUEEN_RADIUS, QUEEN_SPEED,
    BarracksType, Move, Owner, StructureSite, StructureType, Unit, UnitType,
)
from royale_bot.planner import find_path, reachable_points
from royale_bot.snapshot import WorldSnapshot
from royale_bot.threat import PANIC_MODE_DIST, closest_structure, is_panic_mode

logger = logging.getLogger(__name__)


# Sites this close (in x) to the enemy's side of the arena are off limits
ENEMY_TERRITORY = 450

# Sites farther than this from the queen are not considered
MAX_DIST_TO_SITE = 800

# Number of second-stop candidates paired with the best first stop
SECOND_CANDIDATES = 5

# Sub-steps used to trace an own knight's next move toward the enemy queen
STEP_CHUNKS = 5


# ---------------------------------------------------------------------------
# Territory expansion
# ---------------------------------------------------------------------------

def _reachable_first(site: StructureSite, snapshot: WorldSnapshot, dist_to_queen: float) -> bool:
    """Filter out sites in enemy land, under enemy towers, or lost to a faster knight."""
    corner_x, _ = snapshot.home_corner
    if abs(site.x - (ARENA_WIDTH - corner_x)) <= ENEMY_TERRITORY:
        return False
    if dist_to_queen > MAX_DIST_TO_SITE:
        return False

    out_tanked = snapshot.enemy_queen.hp > snapshot.my_queen.hp
    for tower in snapshot.sites:
        if not tower.is_(StructureType.TOWER, Owner.ENEMY):
            continue
        margin = tower.radius if out_tanked else 0
        if distance(site.x, site.y, tower.x, tower.y) + margin <= tower.tower_range:
            return False

    for knight in snapshot.enemy_units(UnitType.KNIGHT):
        d = distance(knight.x, knight.y, site.x, site.y)
        if d / KNIGHT_SPEED <= dist_to_queen / QUEEN_SPEED:
            return False
    return True


def expand_territory(snapshot: WorldSnapshot) -> Optional[Move]:
    """Head for the best pair of sites to claim, one step at a time."""
    q = snapshot.my_queen
    touched = snapshot.touched_site
    firsts: List[Tuple[StructureSite, float]] = []
    seconds: List[Tuple[StructureSite, float]] = []

    for site in snapshot.sites:
        if touched is not None and touched.id == site.id:
            continue
        dist_to_queen = distance(q.x, q.y, site.x, site.y)
        if not _reachable_first(site, snapshot, dist_to_queen):
            continue

        decision_first = building_decision(site, snapshot, False)
        if decision_first is None:
            continue
        decision_second = building_decision(site, snapshot, True)

        firsts.append((site, decision_first.dist_bonus))
        if decision_second is not None:
            seconds.append((site, decision_second.dist_bonus))

    if not firsts:
        return None

    def rank(entry):
        site, bonus = entry
        return distance(q.x, q.y, site.x, site.y) - bonus

    firsts.sort(key=rank)
    seconds.sort(key=rank)

    best = float("inf")
    step = None
    for i in range(min(len(firsts), 1)):
        first, first_bonus = firsts[i]
        for h in range(i + 1, min(len(seconds), SECOND_CANDIDATES)):
            second, second_bonus = seconds[h]
            if first.id == second.id:
                continue
            path = find_path(q.x, q.y, first, second, snapshot)
            total = path.dist - first_bonus - second_bonus
            if total < best:
                best = total
                step = (path.step_x, path.step_y)

    if step is None:
        path = find_path(q.x, q.y, firsts[0][0], None, snapshot)
        step = (path.step_x, path.step_y)

    return Move.move_to(round_half_up(step[0]), round_half_up(step[1]))


# ---------------------------------------------------------------------------
# Emergency retreat
# ---------------------------------------------------------------------------

def _is_defensible(site: StructureSite, snapshot: WorldSnapshot) -> bool:
    if site.is_(StructureType.TOWER, Owner.FRIENDLY):
        return True
    if site.structure_type != StructureType.NONE:
        return False
    for tower in snapshot.sites:
        if (tower.is_(StructureType.TOWER, Owner.FRIENDLY)
                and distance(tower.x, tower.y, site.x, site.y) <= tower.tower_range):
            return True
    return False


def retreat_from_knights(snapshot: WorldSnapshot) -> Optional[Move]:
    """Run for cover behind the defensible site farthest from the enemy."""
    if not is_panic_mode(snapshot):
        return None

    q = snapshot.my_queen
    threats = [u for u in snapshot.enemy_units(UnitType.KNIGHT)
               if distance(q.x, q.y, u.x, u.y) < PANIC_MODE_DIST]
    center_x = sum(u.x for u in threats) / len(threats)
    center_y = sum(u.y for u in threats) / len(threats)

    origin = closest_structure(StructureType.BARRACKS, BarracksType.KNIGHT, Owner.ENEMY,
                               q.x, q.y, snapshot)
    if origin is None:
        origin = snapshot.enemy_queen

    target = None
    max_dist = float("-inf")
    for site in snapshot.sites:
        if not _is_defensible(site, snapshot):
            continue
        d = distance(origin.x, origin.y, site.x, site.y)
        if d > max_dist:
            max_dist = d
            target = site

    if target is None:
        return None

    path = find_path(q.x, q.y, target, None, snapshot)
    queen_dist = distance(q.x, q.y, target.x, target.y)
    if path.going_round or queen_dist == 0:
        return Move.move_to(round_half_up(path.step_x), round_half_up(path.step_y))

    # Slide along the target's boundary to the side facing away from the knights
    k = (target.radius + QUEEN_RADIUS) / queen_dist
    qx = (q.x - target.x) * k
    qy = (q.y - target.y) * k
    ex = center_x - target.x
    ey = center_y - target.y
    if distance(-qy, qx, ex, ey) > distance(qy, -qx, ex, ey):
        tx, ty = -qy, qx
    else:
        tx, ty = qy, -qx

    logger.debug("Retreating toward site %d away from %d knight(s)", target.id, len(threats))
    return Move.move_to(round_half_up(tx + target.x), round_half_up(ty + target.y))


# ---------------------------------------------------------------------------
# Knight-collision avoidance
# ---------------------------------------------------------------------------

def is_in_way(knight: Unit, enemy_queen: Unit, next_x: float, next_y: float,
              steps: int = STEP_CHUNKS) -> bool:
    """True if `knight`, charging the enemy queen, would bump into (next_x, next_y)."""
    gap = distance(enemy_queen.x, enemy_queen.y, knight.x, knight.y)
    if gap == 0:
        return False
    for step in range(1, steps + 1):
        mod = KNIGHT_SPEED * step / STEP_CHUNKS / gap
        kx = knight.x + round_half_up(mod * (enemy_queen.x - knight.x))
        ky = knight.y + round_half_up(mod * (enemy_queen.y - knight.y))
        if distance(kx, ky, next_x, next_y) < KNIGHT_RADIUS + QUEEN_RADIUS:
            return True
    return False


def give_way_to_knights(preferred: Move, snapshot: WorldSnapshot) -> Optional[Move]:
    """Replace the queen's step if it blocks one of our own knights.

    Returns the substitute step, or None when the preferred move stands.
    """
    if not preferred.has_movement:
        return None

    q = snapshot.my_queen
    enemy_q = snapshot.enemy_queen
    span = distance(q.x, q.y, preferred.x, preferred.y)
    if span == 0:
        return None

    k = QUEEN_SPEED / span
    pref_x = q.x + round_half_up((preferred.x - q.x) * k)
    pref_y = q.y + round_half_up((preferred.y - q.y) * k)

    for knight in snapshot.friendly_units(UnitType.KNIGHT):
        if not is_in_way(knight, enemy_q, pref_x, pref_y):
            continue

        best = None
        min_dist = float("inf")
        for nx, ny in reachable_points(q.x, q.y):
            if is_in_way(knight, enemy_q, nx, ny):
                continue
            d = distance(nx, ny, pref_x, pref_y)
            if d < min_dist:
                min_dist = d
                best = (nx, ny)

        if best is not None:
            logger.debug("Giving way to knight at (%d, %d): (%d, %d) -> (%d, %d)",
                         knight.x, knight.y, pref_x, pref_y, best[0], best[1])
            return Move.move_to(int(best[0]), int(best[1]))

    return None
