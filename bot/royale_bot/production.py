"""
Code Royale Bot - Production Controller
========================================
Spends the turn's gold on unit training across own barracks.
"""

from typing import List, Optional

from royale_bot.geometry import distance
from royale_bot.models import GIANT_COST, KNIGHT_COST, BarracksType, Move, Owner
from royale_bot.snapshot import WorldSnapshot


def train_units(snapshot: WorldSnapshot) -> Optional[Move]:
    """Fund as many trainings as gold allows.

    Knight barracks go first, nearest to the enemy queen first; giant
    barracks follow in site order.
    """
    gold = snapshot.gold
    enemy_q = snapshot.enemy_queen
    train_sites: List[int] = []

    knight_barracks = sorted(
        (s for s in snapshot.sites
         if s.owner == Owner.FRIENDLY and s.barracks_type == BarracksType.KNIGHT),
        key=lambda s: distance(s.x, s.y, enemy_q.x, enemy_q.y),
    )
    for site in knight_barracks:
        if gold >= KNIGHT_COST:
            gold -= KNIGHT_COST
            train_sites.append(site.id)

    for site in snapshot.sites:
        if site.owner != Owner.FRIENDLY or site.barracks_type != BarracksType.GIANT:
            continue
        if gold >= GIANT_COST:
            gold -= GIANT_COST
            train_sites.append(site.id)

    if not train_sites:
        return None
    return Move(train_in_sites=train_sites)
