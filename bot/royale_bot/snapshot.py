"""
Code Royale Bot - World Snapshot
=================================
MatchContext lives for the whole match and owns the only cross-turn state:
the home corner (set once) and the enemy economy estimate (updated every
turn). Each turn it produces an immutable WorldSnapshot that every rule
reads.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from royale_bot.geometry import distance
from royale_bot.models import (
    ARENA_WIDTH, ARENA_HEIGHT, CONTACT_RANGE, QUEEN_RADIUS, ENEMY_GOLD_START,
    TRAINING_TABLE,
    InvariantError, Owner, SiteGeometry, StructureSite, StructureType,
    Unit, UnitType,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-turn view
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WorldSnapshot:
    sites: Tuple[StructureSite, ...]
    units: Tuple[Unit, ...]
    gold: int
    touched_site: Optional[StructureSite]
    my_queen: Unit
    enemy_queen: Unit
    home_corner: Tuple[int, int]
    income: int
    enemy_gold: int
    enemy_income: int
    turn: int = 1

    def site(self, site_id: int) -> StructureSite:
        for s in self.sites:
            if s.id == site_id:
                return s
        raise InvariantError(f"Site {site_id} is not registered")

    def friendly_sites(self) -> List[StructureSite]:
        return [s for s in self.sites if s.owner == Owner.FRIENDLY]

    def enemy_units(self, unit_type: UnitType) -> List[Unit]:
        return [u for u in self.units
                if u.owner == Owner.ENEMY and u.unit_type == unit_type]

    def friendly_units(self, unit_type: UnitType) -> List[Unit]:
        return [u for u in self.units
                if u.owner == Owner.FRIENDLY and u.unit_type == unit_type]


# ---------------------------------------------------------------------------
# Match-long context
# ---------------------------------------------------------------------------

def _find_queen(units: Iterable[Unit], owner: Owner) -> Unit:
    for u in units:
        if u.owner == owner and u.unit_type == UnitType.QUEEN:
            return u
    label = "My" if owner == Owner.FRIENDLY else "Enemy"
    raise InvariantError(f"{label} queen not found")


class MatchContext:
    def __init__(self, geometries: Sequence[SiteGeometry]):
        self._geometries: Dict[int, SiteGeometry] = {g.id: g for g in geometries}
        self.home_corner: Optional[Tuple[int, int]] = None
        self.turn = 0

        # Enemy economy estimate
        self.enemy_gold = ENEMY_GOLD_START
        self.enemy_income = 0
        self.ramp: Dict[int, int] = {}
        self._prev_enemy_queen: Optional[Unit] = None

    @property
    def geometries(self) -> List[SiteGeometry]:
        return list(self._geometries.values())

    def geometry(self, site_id: int) -> SiteGeometry:
        g = self._geometries.get(site_id)
        if g is None:
            raise InvariantError(f"Building site static {site_id} not found")
        return g

    def state(self) -> dict:
        """Cross-turn state as plain data (for recordings and the web API)."""
        prev = self._prev_enemy_queen
        return {
            "turn": self.turn,
            "home_corner": list(self.home_corner) if self.home_corner else None,
            "enemy_gold": self.enemy_gold,
            "enemy_income": self.enemy_income,
            "ramp": {site_id: r for site_id, r in self.ramp.items() if r},
            "prev_enemy_queen": [prev.x, prev.y, prev.hp] if prev else None,
        }

    def restore(self, state: dict):
        self.turn = state.get("turn", 0)
        corner = state.get("home_corner")
        self.home_corner = tuple(corner) if corner else None
        self.enemy_gold = state.get("enemy_gold", ENEMY_GOLD_START)
        self.enemy_income = state.get("enemy_income", 0)
        self.ramp = {int(k): v for k, v in (state.get("ramp") or {}).items()}
        prev = state.get("prev_enemy_queen")
        self._prev_enemy_queen = (
            Unit(x=prev[0], y=prev[1], owner=Owner.ENEMY, unit_type=UnitType.QUEEN, hp=prev[2])
            if prev else None
        )

    # ------------------------------------------------------------------
    # Turn setup
    # ------------------------------------------------------------------

    def build_snapshot(
        self,
        gold: int,
        touched_site_id: int,
        sites: Sequence[StructureSite],
        units: Sequence[Unit],
    ) -> WorldSnapshot:
        """Derive this turn's WorldSnapshot and advance the cross-turn state."""
        # All checks run before any cross-turn state changes
        for s in sites:
            if s.id not in self._geometries:
                raise InvariantError(f"Building site static {s.id} not found")
            if (s.is_(StructureType.BARRACKS, Owner.ENEMY)
                    and s.barracks_type not in TRAINING_TABLE):
                raise InvariantError(
                    f"Enemy barracks {s.id} has unknown kind {s.barracks_type.name}")

        my_queen = _find_queen(units, Owner.FRIENDLY)
        enemy_queen = _find_queen(units, Owner.ENEMY)

        touched = self._resolve_touched_site(touched_site_id, sites, my_queen)

        income = sum(s.income_rate for s in sites
                     if s.is_(StructureType.MINE, Owner.FRIENDLY))

        if self.home_corner is None:
            if my_queen.x < ARENA_WIDTH / 2:
                self.home_corner = (0, 0)
            else:
                self.home_corner = (ARENA_WIDTH, ARENA_HEIGHT)
            logger.debug("Home corner set to %s", self.home_corner)

        self._update_enemy_gold(sites, enemy_queen)
        self._prev_enemy_queen = enemy_queen
        self.turn += 1

        return WorldSnapshot(
            sites=tuple(sites),
            units=tuple(units),
            gold=gold,
            touched_site=touched,
            my_queen=my_queen,
            enemy_queen=enemy_queen,
            home_corner=self.home_corner,
            income=income,
            enemy_gold=self.enemy_gold,
            enemy_income=self.enemy_income,
            turn=self.turn,
        )

    def _resolve_touched_site(
        self,
        touched_site_id: int,
        sites: Sequence[StructureSite],
        my_queen: Unit,
    ) -> Optional[StructureSite]:
        if touched_site_id != -1:
            for s in sites:
                if s.id == touched_site_id:
                    return s
            raise InvariantError(f"Touched site {touched_site_id} not found")

        touched = None
        for s in sites:
            gap = distance(my_queen.x, my_queen.y, s.x, s.y) - s.radius - QUEEN_RADIUS
            if gap < CONTACT_RANGE:
                touched = s
        return touched

    # ------------------------------------------------------------------
    # Enemy economy estimate
    # ------------------------------------------------------------------

    def _update_enemy_gold(self, sites: Sequence[StructureSite], enemy_queen: Unit):
        """Approximate the hidden enemy gold from visible mines and barracks.

        A freshly captured enemy mine is assumed to yield 1 gold next turn.
        Every turn the enemy queen stands still touching it counts as one
        more upgrade. A barracks whose countdown sits at its initial value
        has just been paid for.
        """
        prev = self._prev_enemy_queen
        queen_idle = (prev is not None
                      and prev.x == enemy_queen.x and prev.y == enemy_queen.y)
        self.enemy_income = 0

        for site in sites:
            if site.is_(StructureType.MINE, Owner.ENEMY):
                rate = self.ramp.get(site.id, 0)
                if rate == 0:
                    self.ramp[site.id] = 1
                elif queen_idle and (
                    distance(enemy_queen.x, enemy_queen.y, site.x, site.y)
                    - site.radius - QUEEN_RADIUS < CONTACT_RANGE
                ):
                    self.ramp[site.id] = rate + 1
                self.enemy_gold += self.ramp[site.id]
                self.enemy_income += site.income_rate
            else:
                self.ramp[site.id] = 0

            if site.is_(StructureType.BARRACKS, Owner.ENEMY):
                cost, train_turns = TRAINING_TABLE[site.barracks_type]
                if site.until_train == train_turns:
                    self.enemy_gold -= cost

            self.enemy_gold = max(self.enemy_gold, 0)

        logger.debug("Enemy gold estimate: %d (income %d)",
                     self.enemy_gold, self.enemy_income)
