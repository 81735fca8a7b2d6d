"""Tests for the queen movement rules and the knight give-way correction."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from royale_bot.geometry import distance
from royale_bot.models import Move, Owner, StructureType, UnitType
from royale_bot.movement import (
    expand_territory, give_way_to_knights, is_in_way, retreat_from_knights,
)


def _knight(make_unit, x, y, owner=Owner.ENEMY):
    return make_unit(x, y, owner=owner, unit_type=UnitType.KNIGHT, hp=25)


def _own_tower(make_site, site_id, x, y, tower_range=300):
    return make_site(site_id, x, y, structure=StructureType.TOWER, owner=Owner.FRIENDLY,
                     tower_hp=600, tower_range=tower_range)


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------

def test_expand_heads_for_free_site(make_site, queens, make_snapshot):
    sites = [make_site(0, 400, 500, radius=50, gold=300, max_mine_size=3),
             make_site(1, 1600, 500)]
    move = expand_territory(make_snapshot(sites, queens))
    assert (move.x, move.y) == (400, 500)


def test_expand_ignores_enemy_territory(make_site, queens, make_snapshot):
    sites = [make_site(1, 1600, 500)]
    assert expand_territory(make_snapshot(sites, queens)) is None


def test_expand_ignores_far_sites(make_site, queens, make_snapshot):
    sites = [make_site(0, 1050, 950)]
    assert expand_territory(make_snapshot(sites, queens)) is None


def test_expand_skips_touched_site(make_site, queens, make_snapshot):
    sites = [make_site(0, 290, 500), make_site(1, 300, 900)]
    snap = make_snapshot(sites, queens)
    assert snap.touched_site.id == 0
    move = expand_territory(snap)
    assert move.y > 500


def test_expand_leaves_sites_a_knight_reaches_first(make_site, queens, make_unit, make_snapshot):
    sites = [make_site(0, 700, 500)]
    units = queens + [_knight(make_unit, 760, 500)]
    assert expand_territory(make_snapshot(sites, units)) is None


def test_expand_avoids_enemy_tower_cover(make_site, queens, make_snapshot):
    sites = [
        make_site(0, 700, 500),
        make_site(1, 900, 500, structure=StructureType.TOWER, owner=Owner.ENEMY,
                  tower_hp=500, tower_range=300),
    ]
    assert expand_territory(make_snapshot(sites, queens)) is None


def test_expand_step_stays_in_arena(make_site, queens, make_snapshot):
    sites = [make_site(0, 330, 500, radius=50), make_site(1, 500, 200), make_site(2, 450, 850)]
    move = expand_territory(make_snapshot(sites, queens))
    assert move is not None
    assert 0 <= move.x <= 1920
    assert 0 <= move.y <= 1000


# ---------------------------------------------------------------------------
# Retreat
# ---------------------------------------------------------------------------

def test_no_retreat_without_knights(make_site, queens, make_snapshot):
    sites = [_own_tower(make_site, 0, 100, 200)]
    assert retreat_from_knights(make_snapshot(sites, queens)) is None


def test_retreat_heads_behind_own_tower(make_site, queens, make_unit, make_snapshot):
    sites = [_own_tower(make_site, 0, 100, 200), make_site(1, 900, 500)]
    units = queens + [_knight(make_unit, 400, 500)]
    move = retreat_from_knights(make_snapshot(sites, units))
    assert move is not None
    # Lands on the far side of the tower's boundary, away from the knight
    assert move.x < 200
    assert abs(distance(move.x, move.y, 100, 200) - 90) <= 1


def test_retreat_needs_defensible_site(make_site, queens, make_unit, make_snapshot):
    sites = [make_site(0, 900, 500)]
    units = queens + [_knight(make_unit, 400, 500)]
    assert retreat_from_knights(make_snapshot(sites, units)) is None


def test_empty_site_under_own_tower_is_defensible(make_site, queens, make_unit, make_snapshot):
    sites = [_own_tower(make_site, 0, 800, 200, tower_range=400), make_site(1, 500, 300)]
    units = queens + [_knight(make_unit, 400, 500)]
    move = retreat_from_knights(make_snapshot(sites, units))
    # Site 1 is covered by the tower and lies farther from the enemy queen
    assert abs(distance(move.x, move.y, 500, 300) - 90) <= 1


# ---------------------------------------------------------------------------
# Give way
# ---------------------------------------------------------------------------

def test_is_in_way(make_unit):
    knight = _knight(make_unit, 300, 500, owner=Owner.FRIENDLY)
    enemy_queen = make_unit(1700, 500, owner=Owner.ENEMY)
    assert is_in_way(knight, enemy_queen, 400, 500)
    assert not is_in_way(knight, enemy_queen, 400, 700)


def test_knight_on_enemy_queen_is_never_in_way(make_unit):
    knight = _knight(make_unit, 1700, 500, owner=Owner.FRIENDLY)
    enemy_queen = make_unit(1700, 500, owner=Owner.ENEMY)
    assert not is_in_way(knight, enemy_queen, 1700, 500)


def test_give_way_replaces_blocking_step(make_site, queens, make_unit, make_snapshot):
    units = queens + [_knight(make_unit, 230, 500, owner=Owner.FRIENDLY)]
    snap = make_snapshot([make_site(0, 900, 900)], units)
    move = give_way_to_knights(Move.move_to(400, 500), snap)
    assert move is not None
    assert distance(200, 500, move.x, move.y) <= 60
    assert not is_in_way(units[2], units[1], move.x, move.y)


def test_give_way_keeps_clear_step(make_site, queens, make_unit, make_snapshot):
    units = queens + [_knight(make_unit, 230, 800, owner=Owner.FRIENDLY)]
    snap = make_snapshot([make_site(0, 900, 900)], units)
    assert give_way_to_knights(Move.move_to(400, 500), snap) is None


def test_give_way_ignores_builds(make_site, queens, make_unit, make_snapshot):
    units = queens + [_knight(make_unit, 230, 500, owner=Owner.FRIENDLY)]
    snap = make_snapshot([make_site(0, 900, 900)], units)
    assert give_way_to_knights(Move.build(0, StructureType.MINE), snap) is None
