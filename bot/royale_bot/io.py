"""
Code Royale Bot - I/O
======================
Load and save recorded turns and bot configuration as YAML.

A turn recording holds everything needed to replay one decision offline:
the decoded referee input plus the match context as it stood before the
turn (home corner and enemy economy estimate).
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from royale_bot.config import BotConfig, apply_overrides
from royale_bot.models import (
    BarracksType, Owner, ProtocolError, SiteGeometry, StructureSite, StructureType,
    Unit, UnitType,
)
from royale_bot.snapshot import MatchContext


@dataclass
class RecordedTurn:
    gold: int
    touched_site: int
    sites: List[StructureSite] = field(default_factory=list)
    units: List[Unit] = field(default_factory=list)
    context_state: Dict[str, Any] = field(default_factory=dict)

    @property
    def geometries(self) -> List[SiteGeometry]:
        return [s.geometry for s in self.sites]

    def make_context(self) -> MatchContext:
        """Rebuild the match context this turn was played under."""
        context = MatchContext(self.geometries)
        if self.context_state:
            context.restore(self.context_state)
        return context


# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------

def _site_from_dict(d: dict) -> StructureSite:
    return StructureSite(
        geometry=SiteGeometry(id=d["id"], x=d["x"], y=d["y"], radius=d["radius"]),
        structure_type=StructureType[d.get("structure", "NONE")],
        owner=Owner[d.get("owner", "NONE")],
        until_train=d.get("until_train", 0),
        gold=d.get("gold"),
        max_mine_size=d.get("max_mine_size"),
        tower_hp=d.get("tower_hp", 0),
        tower_range=d.get("tower_range", 0),
        income_rate=d.get("income_rate", 0),
        barracks_type=BarracksType[d.get("barracks", "NONE")],
    )


def _site_to_dict(s: StructureSite) -> dict:
    data = {
        "id": s.id, "x": s.x, "y": s.y, "radius": s.radius,
        "structure": s.structure_type.name,
        "owner": s.owner.name,
    }
    if s.gold is not None:
        data["gold"] = s.gold
    if s.max_mine_size is not None:
        data["max_mine_size"] = s.max_mine_size
    if s.structure_type == StructureType.MINE:
        data["income_rate"] = s.income_rate
    elif s.structure_type == StructureType.TOWER:
        data["tower_hp"] = s.tower_hp
        data["tower_range"] = s.tower_range
    elif s.structure_type == StructureType.BARRACKS:
        data["until_train"] = s.until_train
        data["barracks"] = s.barracks_type.name
    return data


def _unit_from_dict(d: dict) -> Unit:
    return Unit(
        x=d["x"], y=d["y"],
        owner=Owner[d["owner"]],
        unit_type=UnitType[d["type"]],
        hp=d.get("hp", 0),
    )


def _unit_to_dict(u: Unit) -> dict:
    return {"x": u.x, "y": u.y, "owner": u.owner.name, "type": u.unit_type.name, "hp": u.hp}


def load_turn(filepath: str) -> RecordedTurn:
    """Load a recorded turn. Raises ProtocolError on malformed content."""
    with open(filepath, "r") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ProtocolError(f"{filepath}: expected a mapping at top level")

    try:
        return RecordedTurn(
            gold=data.get("gold", 0),
            touched_site=data.get("touched_site", -1),
            sites=[_site_from_dict(d) for d in data.get("sites", [])],
            units=[_unit_from_dict(d) for d in data.get("units", [])],
            context_state=data.get("context") or {},
        )
    except KeyError as e:
        # missing field or unknown enum name
        raise ProtocolError(f"{filepath}: bad or missing key {e}") from None


def save_turn(turn: RecordedTurn, filepath: str):
    data = {
        "gold": turn.gold,
        "touched_site": turn.touched_site,
    }
    if turn.context_state:
        data["context"] = turn.context_state
    data["sites"] = [_site_to_dict(s) for s in turn.sites]
    data["units"] = [_unit_to_dict(u) for u in turn.units]

    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


# ---------------------------------------------------------------------------
# Bot configuration
# ---------------------------------------------------------------------------

def load_bot_config(filepath: str, base: Optional[BotConfig] = None) -> BotConfig:
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}
    config = base if base is not None else BotConfig()
    return apply_overrides(config, data)


def save_bot_config(config: BotConfig, filepath: str):
    with open(filepath, "w") as f:
        yaml.safe_dump(asdict(config), f, default_flow_style=False, sort_keys=False)
