"""
Code Royale Bot - Path Planner
===============================
Single-step movement planning for the queen around circular building sites.

The planner only ever commits to one step. Its cost estimate covers the full
route to the first site and, when given, on to a second site, so callers
can rank target pairs by total travel.
"""

import logging
from typing import Iterator, Optional, Tuple

from royale_bot.geometry import distance, in_contact, is_obstacle, round_half_up
from royale_bot.models import (
    ARENA_WIDTH, ARENA_HEIGHT, CONTACT_RANGE, QUEEN_RADIUS, QUEEN_SPEED,
    Path, StructureSite,
)
from royale_bot.snapshot import WorldSnapshot

logger = logging.getLogger(__name__)


def reachable_points(x: float, y: float, speed: int = QUEEN_SPEED) -> Iterator[Tuple[float, float]]:
    """Yield every integer offset from (x, y) within `speed` that stays in the arena.

    Offsets are visited x-major, y-minor; callers rely on that order to
    break ties.
    """
    speed_sq = speed * speed
    for dx in range(-speed, speed + 1):
        nx = x + dx
        if nx < 0 or nx > ARENA_WIDTH:
            continue
        for dy in range(-speed, speed + 1):
            ny = y + dy
            if ny < 0 or ny > ARENA_HEIGHT:
                continue
            if dx * dx + dy * dy > speed_sq:
                continue
            yield nx, ny


def _nearest_obstacle(
    x: float,
    y: float,
    first: StructureSite,
    snapshot: WorldSnapshot,
) -> Tuple[Optional[StructureSite], float]:
    best = None
    best_dist = float("inf")
    for site in snapshot.sites:
        if site.id == first.id:
            continue
        if not is_obstacle(x, y, first.x, first.y, site.x, site.y, site.radius + QUEEN_RADIUS):
            continue
        d = distance(x, y, site.x, site.y)
        if d < best_dist:
            best_dist = d
            best = site
    return best, best_dist


def tangent_point(
    x: float,
    y: float,
    obstacle: StructureSite,
    first: StructureSite,
) -> Tuple[float, float]:
    """Point on the obstacle's inflated boundary to sidestep toward `first`.

    Projects the mover onto the inflated circle and rotates by a quarter
    turn either way; the candidate nearer `first` wins.
    """
    inflated = obstacle.radius + QUEEN_RADIUS
    k = inflated / distance(x, y, obstacle.x, obstacle.y)
    cx = (x - obstacle.x) * k
    cy = (y - obstacle.y) * k
    fx = first.x - obstacle.x
    fy = first.y - obstacle.y
    if distance(-cy, cx, fx, fy) > distance(cy, -cx, fx, fy):
        return cy + obstacle.x, -cx + obstacle.y
    return -cy + obstacle.x, cx + obstacle.y


def _remaining(x: float, y: float, site: StructureSite) -> float:
    return distance(x, y, site.x, site.y) - site.radius - QUEEN_RADIUS - CONTACT_RANGE


def find_path(
    cur_x: float,
    cur_y: float,
    first: StructureSite,
    second: Optional[StructureSite],
    snapshot: WorldSnapshot,
    max_detours: Optional[int] = None,
) -> Path:
    """Best next step toward `first`, optionally continuing to `second`.

    Chained detours are capped at the site count (or `max_detours`); on the
    cap the first detour step is returned with a straight-line estimate of
    the rest.
    """
    cap = len(snapshot.sites) if max_detours is None else max_detours
    cap = max(cap, 1)

    x, y = cur_x, cur_y
    walked = 0.0
    first_step: Optional[Tuple[float, float]] = None
    detours = 0

    while True:
        obstacle, _ = _nearest_obstacle(x, y, first, snapshot)
        if obstacle is None:
            break
        if detours >= cap:
            logger.warning("Detour cap %d hit planning toward site %d", cap, first.id)
            return Path(walked + _remaining(x, y, first), first_step[0], first_step[1], True)
        nx, ny = tangent_point(x, y, obstacle, first)
        walked += distance(x, y, nx, ny)
        if first_step is None:
            first_step = (nx, ny)
        x, y = nx, ny
        detours += 1

    path = _approach(x, y, first, second, snapshot, max_detours)
    if first_step is None:
        return path
    return Path(path.dist + walked, first_step[0], first_step[1], True)


def _approach(
    x: float,
    y: float,
    first: StructureSite,
    second: Optional[StructureSite],
    snapshot: WorldSnapshot,
    max_detours: Optional[int],
) -> Path:
    # Try to touch `first` this turn, leaving the queen closest to what comes next
    if second is not None:
        tx, ty, tr = second.x, second.y, second.radius
    else:
        tx, ty = snapshot.home_corner
        tr = 0

    best_future = float("inf")
    move = None
    if distance(x, y, first.x, first.y) < QUEEN_SPEED + first.radius + QUEEN_RADIUS + CONTACT_RANGE:
        for nx, ny in reachable_points(x, y):
            if not in_contact(nx, ny, QUEEN_RADIUS, first.x, first.y, first.radius):
                continue
            future = distance(nx, ny, tx, ty) - tr - QUEEN_RADIUS - CONTACT_RANGE
            if future < best_future:
                best_future = future
                move = (nx, ny)

    if move is not None:
        return Path(QUEEN_SPEED + best_future, move[0], move[1], False)

    if second is None:
        return Path(_remaining(x, y, first), first.x, first.y, False)

    # First site lies on the way to the second one: aim past it
    if is_obstacle(x, y, second.x, second.y, first.x, first.y, first.radius + QUEEN_RADIUS):
        return find_path(x, y, second, None, snapshot, max_detours)

    k = (first.radius + QUEEN_RADIUS) / distance(second.x, second.y, first.x, first.y)
    turn_x = (second.x - first.x) * k + first.x
    turn_y = (second.y - first.y) * k + first.y
    return Path(
        distance(x, y, turn_x, turn_y) + _remaining(turn_x, turn_y, second),
        round_half_up(turn_x),
        round_half_up(turn_y),
        False,
    )
