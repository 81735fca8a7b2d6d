"""
Code Royale Bot - Turn Engine
==============================
Evaluates the rule tables against a snapshot, arbitrates by priority, and
composes the turn's single Move.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from royale_bot.build_ctrl import decide_structure
from royale_bot.config import BotConfig
from royale_bot.models import Move, StructureSite, Unit
from royale_bot.movement import expand_territory, give_way_to_knights, retreat_from_knights
from royale_bot.production import train_units
from royale_bot.snapshot import MatchContext, WorldSnapshot

logger = logging.getLogger(__name__)


class RuleKind(Enum):
    EXPAND = "expand"
    BUILD = "build"
    RETREAT = "retreat"
    TRAIN = "train"


RuleFn = Callable[[WorldSnapshot], Optional[Move]]

# (kind, priority, rule) in evaluation order; on equal priority the later
# rule wins
QUEEN_RULES: List[Tuple[RuleKind, int, RuleFn]] = [
    (RuleKind.EXPAND,  0, expand_territory),
    (RuleKind.BUILD,   3, decide_structure),
    (RuleKind.RETREAT, 2, retreat_from_knights),
]

TRAINING_RULES: List[Tuple[RuleKind, int, RuleFn]] = [
    (RuleKind.TRAIN, 0, train_units),
]


def best_priority_move(
    snapshot: WorldSnapshot,
    rules: Sequence[Tuple[RuleKind, int, RuleFn]],
) -> Tuple[Optional[RuleKind], Optional[Move]]:
    """Return the highest-priority non-empty proposal and the rule that made it."""
    current = None
    winner = None
    move = None
    for kind, priority, rule in rules:
        if current is not None and current > priority:
            continue
        proposal = rule(snapshot)
        if proposal is not None:
            current = priority
            winner = kind
            move = proposal
    return winner, move


@dataclass
class TurnResult:
    move: Move
    winner: Optional[RuleKind] = None      # queen rule that won arbitration
    gave_way: bool = False                 # knight correction replaced the step


def evaluate_turn(snapshot: WorldSnapshot, avoid_knights: bool = True) -> TurnResult:
    """Compose the turn's Move: queen action, knight correction, then training."""
    winner, queen_move = best_priority_move(snapshot, QUEEN_RULES)
    if winner is not None:
        logger.debug("Turn %d: %s rule wins", snapshot.turn, winner.value)

    gave_way = False
    if queen_move is not None and avoid_knights:
        corrected = give_way_to_knights(queen_move, snapshot)
        if corrected is not None:
            queen_move = corrected
            gave_way = True

    _, training = best_priority_move(snapshot, TRAINING_RULES)

    final = queen_move if queen_move is not None else Move()
    if training is not None:
        final.train_in_sites = list(training.train_in_sites)
    return TurnResult(move=final, winner=winner, gave_way=gave_way)


def find_move(snapshot: WorldSnapshot, avoid_knights: bool = True) -> Move:
    return evaluate_turn(snapshot, avoid_knights).move


class TurnEngine:
    """Drives one match: snapshot building plus move selection per turn."""

    def __init__(self, context: MatchContext, config: Optional[BotConfig] = None):
        self.context = context
        self.config = config if config is not None else BotConfig()
        self.last_snapshot: Optional[WorldSnapshot] = None

    def play_turn(
        self,
        gold: int,
        touched_site_id: int,
        sites: Sequence[StructureSite],
        units: Sequence[Unit],
    ) -> TurnResult:
        snapshot = self.context.build_snapshot(gold, touched_site_id, sites, units)
        self.last_snapshot = snapshot
        return evaluate_turn(snapshot, avoid_knights=self.config.avoid_knights)
