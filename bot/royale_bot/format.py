"""
Code Royale Bot - Output Formatting
====================================
Pretty-printing for replayed turns.
"""

from royale_bot.engine import TurnResult
from royale_bot.models import Move, StructureSite, StructureType
from royale_bot.protocol import move_to_command
from royale_bot.snapshot import WorldSnapshot


def fmt_site_kind(site: StructureSite) -> str:
    if site.structure_type == StructureType.BARRACKS:
        return f"BARRACKS-{site.barracks_type.name}"
    return site.structure_type.name


def fmt_optional(val) -> str:
    return "-" if val is None else str(val)


def print_turn_report(snapshot: WorldSnapshot, result: TurnResult):
    print()
    print("=" * 70)
    print("  CODE ROYALE BOT - TURN REPORT")
    print(f"  Turn: {snapshot.turn}   Home corner: {snapshot.home_corner}")
    print("=" * 70)

    print_economy(snapshot)
    print_queens(snapshot)
    print_sites(snapshot)
    print_decision(result)


def print_economy(snapshot: WorldSnapshot):
    print()
    print("--- ECONOMY ---")
    print(f" Gold:               {snapshot.gold}")
    print(f" Income:             {snapshot.income}/turn")
    print(f" Enemy gold (est.):  {snapshot.enemy_gold}")
    print(f" Enemy income:       {snapshot.enemy_income}/turn")


def print_queens(snapshot: WorldSnapshot):
    mq, eq = snapshot.my_queen, snapshot.enemy_queen
    print()
    print("--- QUEENS ---")
    print(f" Mine:   ({mq.x:>4}, {mq.y:>4})  hp {mq.hp}")
    print(f" Enemy:  ({eq.x:>4}, {eq.y:>4})  hp {eq.hp}")
    touched = snapshot.touched_site
    print(f" Touching site: {touched.id if touched else '-'}")


def print_sites(snapshot: WorldSnapshot):
    print()
    print("--- SITES ---")
    print(f" {'Id':>3} {'X':>5} {'Y':>5} {'R':>3}  {'Owner':<9} {'Kind':<17} {'Gold':>5} {'Max':>4}")
    print(f" {'--':>3} {'-':>5} {'-':>5} {'-':>3}  {'-----':<9} {'----':<17} {'----':>5} {'---':>4}")
    for s in snapshot.sites:
        print(f" {s.id:>3} {s.x:>5} {s.y:>5} {s.radius:>3}  {s.owner.name:<9} "
              f"{fmt_site_kind(s):<17} {fmt_optional(s.gold):>5} {fmt_optional(s.max_mine_size):>4}")


def print_decision(result: TurnResult):
    print()
    print("--- DECISION ---")
    print(f" Winning rule:  {result.winner.value if result.winner else 'none'}")
    if result.gave_way:
        print(" Step adjusted to give way to an own knight")
    print(f" Summary:       {describe_move(result.move)}")
    print(" Command:")
    for line in move_to_command(result.move).splitlines():
        print(f"   {line}")


def describe_move(move: Move) -> str:
    parts = []
    if move.has_movement:
        parts.append(f"move to ({move.x}, {move.y})")
    elif move.has_build:
        kind = move.structure_type.name
        if move.barracks_type is not None:
            kind += f"-{move.barracks_type.name}"
        parts.append(f"build {kind} on site {move.site_id}")
    else:
        parts.append("wait")
    if move.train_in_sites:
        parts.append(f"train at {', '.join(str(i) for i in move.train_in_sites)}")
    return "; ".join(parts)
