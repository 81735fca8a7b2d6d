"""
Code Royale Bot - Web Service
==============================
FastAPI server exposing the decision core, one MatchContext per match id.

Usage:
    python -m royale_bot.web
    python cli.py serve [--port 8080]
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
import uvicorn

from royale_bot import models as m
from royale_bot.config import BotConfig
from royale_bot.engine import TurnEngine
from royale_bot.models import (
    BarracksType, Owner, RoyaleBotError, SiteGeometry, StructureSite,
    StructureType, Unit, UnitType,
)
from royale_bot.protocol import move_to_command
from royale_bot.snapshot import MatchContext

logger = logging.getLogger(__name__)

app = FastAPI(title="Code Royale Bot")

# Oldest matches are dropped once this many are live
MAX_MATCHES = 256


@dataclass
class _Match:
    engine: TurnEngine
    lock: threading.Lock = field(default_factory=threading.Lock)


# Registry lock guards the dict only; each match serializes its own turns
_matches: Dict[str, _Match] = {}
_registry_lock = threading.Lock()


# ---------------------------------------------------------------------------
# Pydantic models for request/response
# ---------------------------------------------------------------------------

class SiteIn(BaseModel):
    id: int
    x: int
    y: int
    radius: int
    structure: str = "NONE"
    owner: str = "NONE"
    until_train: int = 0
    gold: Optional[int] = None
    max_mine_size: Optional[int] = None
    tower_hp: int = 0
    tower_range: int = 0
    income_rate: int = 0
    barracks: str = "NONE"


class UnitIn(BaseModel):
    x: int
    y: int
    owner: str
    type: str
    hp: int = 0


class TurnIn(BaseModel):
    gold: int
    touched_site: int = -1
    sites: list[SiteIn] = []
    units: list[UnitIn] = []
    avoid_knights: bool = True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _enum(enum_cls, name: str):
    try:
        return enum_cls[name.upper()]
    except KeyError:
        raise HTTPException(422, f"Unknown {enum_cls.__name__}: {name}") from None


def _site_from_input(s: SiteIn) -> StructureSite:
    return StructureSite(
        geometry=SiteGeometry(id=s.id, x=s.x, y=s.y, radius=s.radius),
        structure_type=_enum(StructureType, s.structure),
        owner=_enum(Owner, s.owner),
        until_train=s.until_train,
        gold=s.gold,
        max_mine_size=s.max_mine_size,
        tower_hp=s.tower_hp,
        tower_range=s.tower_range,
        income_rate=s.income_rate,
        barracks_type=_enum(BarracksType, s.barracks),
    )


def _unit_from_input(u: UnitIn) -> Unit:
    return Unit(x=u.x, y=u.y, owner=_enum(Owner, u.owner),
                unit_type=_enum(UnitType, u.type), hp=u.hp)


def _move_to_dict(move: m.Move) -> dict:
    return {
        "x": move.x,
        "y": move.y,
        "site_id": move.site_id,
        "structure_type": move.structure_type.name if move.structure_type else None,
        "barracks_type": move.barracks_type.name if move.barracks_type else None,
        "train_in_sites": list(move.train_in_sites),
    }


def _check_geometry(context: MatchContext, sites: List[StructureSite]):
    """Site geometry is fixed by the first turn of a match."""
    for s in sites:
        if context.geometry(s.id) != s.geometry:
            raise m.InvariantError(f"Geometry of site {s.id} changed mid-match")


def _get_or_register(match_id: str, sites: List[StructureSite], avoid_knights: bool) -> _Match:
    with _registry_lock:
        match = _matches.get(match_id)
        if match is not None:
            return match
        while len(_matches) >= MAX_MATCHES:
            dropped = next(iter(_matches))
            del _matches[dropped]
            logger.info("Match %s dropped to make room", dropped)
        context = MatchContext([s.geometry for s in sites])
        match = _Match(TurnEngine(context, BotConfig(avoid_knights=avoid_knights)))
        _matches[match_id] = match
        logger.info("Match %s registered with %d sites", match_id, len(sites))
        return match


def _get_match(match_id: str) -> _Match:
    with _registry_lock:
        match = _matches.get(match_id)
    if match is None:
        raise HTTPException(404, f"Match not found: {match_id}")
    return match


# ---------------------------------------------------------------------------
# API Endpoints
# ---------------------------------------------------------------------------

@app.get("/api/constants")
def api_constants():
    """Return the fixed game constants."""
    return {
        "arena": [m.ARENA_WIDTH, m.ARENA_HEIGHT],
        "queen_speed": m.QUEEN_SPEED,
        "knight_speed": m.KNIGHT_SPEED,
        "queen_radius": m.QUEEN_RADIUS,
        "knight_radius": m.KNIGHT_RADIUS,
        "contact_range": m.CONTACT_RANGE,
        "costs": {"knight": m.KNIGHT_COST, "archer": m.ARCHER_COST, "giant": m.GIANT_COST},
        "train_turns": {"knight": m.KNIGHT_TRAIN_TURNS, "archer": m.ARCHER_TRAIN_TURNS,
                        "giant": m.GIANT_TRAIN_TURNS},
        "max_tower_hp": m.MAX_TOWER_HP,
    }


@app.post("/api/matches/{match_id}/turn")
def api_turn(match_id: str, req: TurnIn):
    """Decide one turn of a match; the first call registers the site geometry."""
    sites = [_site_from_input(s) for s in req.sites]
    units = [_unit_from_input(u) for u in req.units]

    match = _get_or_register(match_id, sites, req.avoid_knights)
    engine = match.engine
    with match.lock:
        try:
            _check_geometry(engine.context, sites)
            result = engine.play_turn(req.gold, req.touched_site, sites, units)
        except RoyaleBotError as e:
            raise HTTPException(422, str(e))
        turn = engine.context.turn

    return {
        "turn": turn,
        "rule": result.winner.value if result.winner else None,
        "command": move_to_command(result.move),
        "move": _move_to_dict(result.move),
    }


@app.get("/api/matches/{match_id}")
def api_match_state(match_id: str):
    """Current cross-turn state of a match."""
    match = _get_match(match_id)
    with match.lock:
        return match.engine.context.state()


@app.delete("/api/matches/{match_id}")
def api_match_delete(match_id: str):
    with _registry_lock:
        if _matches.pop(match_id, None) is None:
            raise HTTPException(404, f"Match not found: {match_id}")
    return {"deleted": match_id}


def start_server(port: int = 8080):
    """Start the uvicorn server."""
    logger.info("Starting Code Royale Bot service at http://localhost:%d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    start_server()
