"""
Code Royale Bot - Data Models
==============================
Game constants, enums and the dataclasses shared by the decision core.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


# ---------------------------------------------------------------------------
# Game constants (fixed by the match rules)
# ---------------------------------------------------------------------------

ARENA_WIDTH = 1920
ARENA_HEIGHT = 1000

QUEEN_SPEED = 60
KNIGHT_SPEED = 100
QUEEN_RADIUS = 30
KNIGHT_RADIUS = 20

# Gap between two circle boundaries under which they count as touching
CONTACT_RANGE = 5

KNIGHT_COST = 80
ARCHER_COST = 100
GIANT_COST = 140

KNIGHT_TRAIN_TURNS = 4
ARCHER_TRAIN_TURNS = 7
GIANT_TRAIN_TURNS = 9

MAX_TOWER_HP = 800
QUEEN_TOWER_UP = 100        # HP added by one queen upgrade of a tower

# Both players start the match with this much gold
ENEMY_GOLD_START = 100


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class RoyaleBotError(Exception):
    """Base class for fatal decision-core errors."""


class ProtocolError(RoyaleBotError, ValueError):
    """Input from the referee could not be decoded (wrong protocol version)."""


class InvariantError(RoyaleBotError, RuntimeError):
    """A per-turn snapshot broke an assumption the whole core relies on."""


# ---------------------------------------------------------------------------
# Enums (value = protocol id)
# ---------------------------------------------------------------------------

class Owner(Enum):
    NONE = -1
    FRIENDLY = 0
    ENEMY = 1


class StructureType(Enum):
    NONE = -1
    MINE = 0
    TOWER = 1
    BARRACKS = 2


class BarracksType(Enum):
    NONE = -1
    KNIGHT = 0
    ARCHER = 1
    GIANT = 2


class UnitType(Enum):
    QUEEN = -1
    KNIGHT = 0
    ARCHER = 1
    GIANT = 2


# barracks kind -> (unit cost, initial train countdown)
TRAINING_TABLE = {
    BarracksType.KNIGHT: (KNIGHT_COST, KNIGHT_TRAIN_TURNS),
    BarracksType.ARCHER: (ARCHER_COST, ARCHER_TRAIN_TURNS),
    BarracksType.GIANT:  (GIANT_COST, GIANT_TRAIN_TURNS),
}


# ---------------------------------------------------------------------------
# Arena entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SiteGeometry:
    """Location of a building site, fixed for the whole match."""
    id: int
    x: int
    y: int
    radius: int


@dataclass(frozen=True)
class StructureSite:
    geometry: SiteGeometry
    structure_type: StructureType = StructureType.NONE
    owner: Owner = Owner.NONE
    until_train: int = 0
    gold: Optional[int] = None             # hidden/unknown -> None
    max_mine_size: Optional[int] = None    # hidden/unknown -> None
    tower_hp: int = 0
    tower_range: int = 0
    income_rate: int = 0
    barracks_type: BarracksType = BarracksType.NONE

    @property
    def id(self) -> int:
        return self.geometry.id

    @property
    def x(self) -> int:
        return self.geometry.x

    @property
    def y(self) -> int:
        return self.geometry.y

    @property
    def radius(self) -> int:
        return self.geometry.radius

    def is_(self, structure_type: StructureType, owner: Owner) -> bool:
        return self.structure_type == structure_type and self.owner == owner


@dataclass(frozen=True)
class Unit:
    x: int
    y: int
    owner: Owner
    unit_type: UnitType
    hp: int


# ---------------------------------------------------------------------------
# Decision outputs
# ---------------------------------------------------------------------------

@dataclass
class Move:
    """The single command emitted for a turn.

    At most one of movement (x, y) and build (site_id, structure_type) is
    meaningful; train_in_sites is independent of both.
    """
    x: Optional[int] = None
    y: Optional[int] = None
    site_id: Optional[int] = None
    structure_type: Optional[StructureType] = None
    barracks_type: Optional[BarracksType] = None
    train_in_sites: List[int] = field(default_factory=list)

    @property
    def has_movement(self) -> bool:
        return self.x is not None

    @property
    def has_build(self) -> bool:
        return self.structure_type is not None

    @classmethod
    def move_to(cls, x: int, y: int) -> "Move":
        return cls(x=x, y=y)

    @classmethod
    def build(cls, site_id: int, structure_type: StructureType,
              barracks_type: Optional[BarracksType] = None) -> "Move":
        return cls(site_id=site_id, structure_type=structure_type,
                   barracks_type=barracks_type)


@dataclass(frozen=True)
class Path:
    dist: float             # estimated travel cost
    step_x: float
    step_y: float
    going_round: bool       # step is a detour around an obstacle


@dataclass(frozen=True)
class BuildDecision:
    structure_type: StructureType
    barracks_type: Optional[BarracksType]
    dist_bonus: float
