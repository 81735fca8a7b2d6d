"""
Code Royale Bot - Referee Protocol
==================================
Decodes the referee's line-oriented input into model objects and encodes
a Move back into command text.

Initial input:
    numSites
    siteId x y radius            (numSites lines)

Per turn:
    gold touchedSite
    siteId gold maxMineSize structureType owner param1 param2   (numSites lines)
    numUnits
    x y owner unitType health    (numUnits lines)
"""

from typing import Callable, List, Tuple

from royale_bot.models import (
    BarracksType, Move, Owner, ProtocolError, SiteGeometry, StructureSite,
    StructureType, Unit, UnitType,
)
from royale_bot.snapshot import MatchContext


# ---------------------------------------------------------------------------
# Enum decoding
# ---------------------------------------------------------------------------

def _decode(enum_cls, code: int, label: str):
    try:
        return enum_cls(code)
    except ValueError:
        raise ProtocolError(f"Unsupported {label} id: {code}") from None


def owner_from_id(code: int) -> Owner:
    return _decode(Owner, code, "owner")


def structure_type_from_id(code: int) -> StructureType:
    return _decode(StructureType, code, "structure type")


def barracks_type_from_id(code: int) -> BarracksType:
    return _decode(BarracksType, code, "barracks type")


def unit_type_from_id(code: int) -> UnitType:
    return _decode(UnitType, code, "unit type")


# ---------------------------------------------------------------------------
# Line decoding
# ---------------------------------------------------------------------------

def _ints(line: str, count: int, label: str) -> List[int]:
    parts = line.split()
    if len(parts) != count:
        raise ProtocolError(f"Expected {count} fields in {label} line, got {len(parts)}: {line!r}")
    try:
        return [int(p) for p in parts]
    except ValueError:
        raise ProtocolError(f"Non-integer field in {label} line: {line!r}") from None


def parse_geometry_line(line: str) -> SiteGeometry:
    site_id, x, y, radius = _ints(line, 4, "site geometry")
    return SiteGeometry(id=site_id, x=x, y=y, radius=radius)


def parse_site_geometries(readline: Callable[[], str]) -> List[SiteGeometry]:
    (num_sites,) = _ints(readline(), 1, "site count")
    return [parse_geometry_line(readline()) for _ in range(num_sites)]


def parse_site_line(line: str, context: MatchContext) -> StructureSite:
    site_id, gold, max_mine_size, st_code, owner_code, param1, param2 = _ints(line, 7, "site")
    st = structure_type_from_id(st_code)
    return StructureSite(
        geometry=context.geometry(site_id),
        structure_type=st,
        owner=owner_from_id(owner_code),
        until_train=param1 if st == StructureType.BARRACKS else 0,
        gold=None if gold == -1 else gold,
        max_mine_size=None if max_mine_size == -1 else max_mine_size,
        tower_hp=param1 if st == StructureType.TOWER else 0,
        tower_range=param2 if st == StructureType.TOWER else 0,
        income_rate=param1 if st == StructureType.MINE else 0,
        barracks_type=(barracks_type_from_id(param2) if st == StructureType.BARRACKS
                       else BarracksType.NONE),
    )


def parse_unit_line(line: str) -> Unit:
    x, y, owner_code, type_code, health = _ints(line, 5, "unit")
    return Unit(x=x, y=y, owner=owner_from_id(owner_code),
                unit_type=unit_type_from_id(type_code), hp=health)


def read_turn(
    readline: Callable[[], str],
    context: MatchContext,
) -> Tuple[int, int, List[StructureSite], List[Unit]]:
    """Read one full turn. Returns (gold, touched_site_id, sites, units)."""
    gold, touched = _ints(readline(), 2, "gold/touched site")
    sites = [parse_site_line(readline(), context) for _ in range(len(context.geometries))]
    (num_units,) = _ints(readline(), 1, "unit count")
    units = [parse_unit_line(readline()) for _ in range(num_units)]
    return gold, touched, sites, units


# ---------------------------------------------------------------------------
# Command encoding
# ---------------------------------------------------------------------------

def move_to_command(move: Move) -> str:
    """Encode a Move as the two command lines the referee expects."""
    if move.has_movement:
        line = f"MOVE {move.x} {move.y}"
    elif move.has_build:
        line = f"BUILD {move.site_id} {move.structure_type.name}"
        if (move.structure_type == StructureType.BARRACKS
                and move.barracks_type not in (None, BarracksType.NONE)):
            line += f"-{move.barracks_type.name}"
    else:
        line = "WAIT"

    train = "TRAIN"
    if move.train_in_sites:
        train += " " + " ".join(str(i) for i in move.train_in_sites)
    return f"{line}\n{train}"
