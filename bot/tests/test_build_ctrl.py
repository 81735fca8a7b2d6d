"""Tests for the build decision cascade and the structure rule."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from royale_bot.build_ctrl import building_decision, decide_structure, take_census
from royale_bot.models import BarracksType, Owner, StructureType, UnitType
from royale_bot.threat import comfort_towers, is_panic_mode, towers_on_path


def _knight(make_unit, x, y, owner=Owner.ENEMY):
    return make_unit(x, y, owner=owner, unit_type=UnitType.KNIGHT, hp=25)


def _friendly(make_site, site_id, x, y, structure, **kwargs):
    return make_site(site_id, x, y, structure=structure, owner=Owner.FRIENDLY, **kwargs)


def test_fresh_mine_site_recommends_mine(make_site, queens, make_snapshot):
    """Queen at (200,500), lone mine site at (400,500): build a mine."""
    site = make_site(0, 400, 500, radius=50, gold=300, max_mine_size=3)
    snap = make_snapshot([site], queens)
    decision = building_decision(site, snap, False)
    assert decision.structure_type == StructureType.MINE
    assert decision.dist_bonus == 2 * 60


def test_enemy_tower_is_never_a_target(make_site, queens, make_snapshot):
    site = make_site(0, 900, 500, structure=StructureType.TOWER, owner=Owner.ENEMY,
                     tower_hp=500, tower_range=300)
    snap = make_snapshot([site], queens)
    assert building_decision(site, snap, False) is None


def test_first_barracks_after_two_mines(make_site, queens, make_snapshot):
    sites = [
        _friendly(make_site, 0, 300, 200, StructureType.MINE, income_rate=1),
        _friendly(make_site, 1, 300, 800, StructureType.MINE, income_rate=1),
        make_site(2, 600, 500),
    ]
    snap = make_snapshot(sites, queens)
    decision = building_decision(sites[2], snap, False)
    assert decision.structure_type == StructureType.BARRACKS
    assert decision.barracks_type == BarracksType.KNIGHT


def test_second_stop_suppresses_barracks(make_site, queens, make_snapshot):
    sites = [
        _friendly(make_site, 0, 300, 200, StructureType.MINE, income_rate=1),
        _friendly(make_site, 1, 300, 800, StructureType.MINE, income_rate=1),
        make_site(2, 600, 500),
    ]
    snap = make_snapshot(sites, queens)
    decision = building_decision(sites[2], snap, True)
    assert decision.structure_type == StructureType.MINE
    assert decision.dist_bonus == 0


def test_threatened_mine_becomes_tower(make_site, queens, make_unit, make_snapshot):
    mine = _friendly(make_site, 0, 400, 500, StructureType.MINE, income_rate=2)
    units = queens + [_knight(make_unit, 700, 500)]
    snap = make_snapshot([mine], units)
    decision = building_decision(mine, snap, False)
    assert decision.structure_type == StructureType.TOWER
    assert decision.dist_bonus < 0


def test_giant_barracks_when_affordable(make_site, queens, make_snapshot):
    barracks = _friendly(make_site, 0, 1000, 500, StructureType.BARRACKS,
                         barracks=BarracksType.KNIGHT)
    site = make_site(1, 600, 300)
    snap = make_snapshot([barracks, site], queens, gold=200)
    decision = building_decision(site, snap, False)
    assert decision.barracks_type == BarracksType.GIANT


def test_no_giant_barracks_when_short_of_gold(make_site, queens, make_snapshot):
    barracks = _friendly(make_site, 0, 1000, 500, StructureType.BARRACKS,
                         barracks=BarracksType.KNIGHT)
    site = make_site(1, 600, 300)
    snap = make_snapshot([barracks, site], queens, gold=150)
    assert building_decision(site, snap, False).structure_type == StructureType.MINE


def test_drifted_barracks_is_replaced_closer(make_site, queens, make_snapshot):
    """A knight barracks 400+ farther from the enemy queen than the site gets rebuilt forward."""
    barracks = _friendly(make_site, 0, 300, 800, StructureType.BARRACKS,
                         barracks=BarracksType.KNIGHT)
    site = make_site(1, 1000, 500)
    snap = make_snapshot([barracks, site], queens)
    decision = building_decision(site, snap, False)
    assert decision.structure_type == StructureType.BARRACKS
    assert decision.barracks_type == BarracksType.KNIGHT


def test_census_counts(make_site, queens, make_unit, make_snapshot):
    sites = [
        _friendly(make_site, 0, 300, 200, StructureType.MINE),
        _friendly(make_site, 1, 300, 800, StructureType.TOWER, tower_hp=400, tower_range=200),
        make_site(2, 600, 500),
        make_site(3, 1500, 500, structure=StructureType.BARRACKS, owner=Owner.ENEMY,
                  barracks=BarracksType.KNIGHT, until_train=1),
    ]
    units = queens + [_knight(make_unit, 900, 500)]
    census = take_census(sites[2], make_snapshot(sites, units))
    assert census.my_mines == 1
    assert census.my_towers == 1
    assert census.enemy_barracks == 1
    assert census.empty_surroundings == 1
    assert census.closest_enemy_barracks.id == 3
    # 300 away at knight speed 100 is 3 turns, 180 in queen distance
    assert census.knight_bonus == 180


def test_comfort_towers_zero_for_broke_enemy(make_site, queens, make_snapshot):
    snap = make_snapshot([make_site(0, 900, 500)], queens, state={"enemy_gold": 10})
    assert comfort_towers(snap) == 0
    snap = make_snapshot([make_site(0, 900, 500)], queens)
    assert comfort_towers(snap) == 2


def test_towers_on_path(make_site, queens, make_snapshot):
    sites = [
        _friendly(make_site, 0, 600, 560, StructureType.TOWER, tower_hp=500, tower_range=150),
        _friendly(make_site, 1, 600, 900, StructureType.TOWER, tower_hp=500, tower_range=150),
    ]
    snap = make_snapshot(sites, queens)
    assert towers_on_path(snap, 200, 500, 1200, 500) == 1
    assert towers_on_path(snap, 200, 500, 1200, 500, ignore=sites[0]) == 0


def test_panic_mode(make_site, queens, make_unit, make_snapshot):
    sites = [make_site(0, 900, 500)]
    assert not is_panic_mode(make_snapshot(sites, queens))
    assert is_panic_mode(make_snapshot(sites, queens + [_knight(make_unit, 450, 500)]))


def test_decide_structure_needs_touched_site(make_site, queens, make_snapshot):
    snap = make_snapshot([make_site(0, 900, 500)], queens)
    assert decide_structure(snap) is None


def test_decide_structure_builds_recommendation(make_site, queens, make_snapshot):
    site = make_site(0, 290, 500, gold=200, max_mine_size=2)
    snap = make_snapshot([site], queens)
    move = decide_structure(snap)
    assert move.site_id == 0
    assert move.structure_type == StructureType.MINE


def test_decide_structure_upgrades_own_mine(make_site, queens, make_snapshot):
    mine = _friendly(make_site, 0, 290, 500, StructureType.MINE,
                     gold=200, max_mine_size=3, income_rate=1)
    snap = make_snapshot([mine], queens)
    move = decide_structure(snap)
    assert move.structure_type == StructureType.MINE
    assert move.site_id == 0


def test_decide_structure_leaves_full_mine(make_site, queens, make_snapshot):
    mine = _friendly(make_site, 0, 290, 500, StructureType.MINE,
                     gold=200, max_mine_size=2, income_rate=2)
    snap = make_snapshot([mine], queens)
    assert decide_structure(snap) is None


def test_decide_structure_reinforces_tower(make_site, queens, make_snapshot):
    tower = _friendly(make_site, 0, 290, 500, StructureType.TOWER, tower_hp=700, tower_range=300)
    snap = make_snapshot([tower], queens)
    assert decide_structure(snap).structure_type == StructureType.TOWER


def test_decide_structure_skips_upgrade_in_panic(make_site, queens, make_unit, make_snapshot):
    tower = _friendly(make_site, 0, 290, 500, StructureType.TOWER, tower_hp=700, tower_range=300)
    snap = make_snapshot([tower], queens + [_knight(make_unit, 450, 500)])
    assert decide_structure(snap) is None
