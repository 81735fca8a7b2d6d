"""
Code Royale Bot - CLI Entry Point
==================================
Usage:
    python cli.py play [--config bot.yaml] [--set 'avoid_knights=false'] [--log-level DEBUG]
    python cli.py decide <turn.yaml> [--json]
    python cli.py constants
    python cli.py serve [--port 8080]

`play` speaks the referee protocol on stdin/stdout. Logging always goes to
stderr so it never mixes with the command stream.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from royale_bot import models as m
from royale_bot.config import BotConfig, LOG_LEVELS, parse_config_string
from royale_bot.engine import TurnEngine
from royale_bot.format import print_turn_report
from royale_bot.io import RecordedTurn, load_bot_config, load_turn, save_turn
from royale_bot.models import InvariantError, ProtocolError
from royale_bot.protocol import move_to_command, parse_site_geometries, read_turn
from royale_bot.snapshot import MatchContext

logger = logging.getLogger("royale_bot.cli")


def _setup_logging(level: str):
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _stdin_readline() -> str:
    line = sys.stdin.readline()
    if line == "":
        raise EOFError
    return line


def _resolve_config(args) -> BotConfig:
    config = BotConfig()
    if args.config:
        config = load_bot_config(args.config, base=config)
    if args.set:
        config = parse_config_string(args.set, base=config)
    if args.log_level:
        config.log_level = args.log_level
    if args.record_dir:
        config.record_dir = args.record_dir
    if args.no_avoid_knights:
        config.avoid_knights = False
    return config


def cmd_play(args) -> int:
    config = _resolve_config(args)
    _setup_logging(config.log_level)
    logger.info("Bot config: %s", config.summary())

    try:
        context = MatchContext(parse_site_geometries(_stdin_readline))
    except EOFError:
        logger.error("Input closed before the site list was read")
        return 1
    except ProtocolError:
        logger.exception("Malformed initial input")
        return 2

    engine = TurnEngine(context, config)
    record_dir = Path(config.record_dir) if config.record_dir else None

    while True:
        try:
            gold, touched, sites, units = read_turn(_stdin_readline, context)
        except EOFError:
            logger.info("Input closed after %d turns", context.turn)
            return 0
        except (ProtocolError, InvariantError):
            logger.exception("Malformed turn input on turn %d", context.turn + 1)
            return 2

        state_before = context.state()
        try:
            result = engine.play_turn(gold, touched, sites, units)
        except InvariantError:
            logger.exception("Inconsistent world state on turn %d", context.turn + 1)
            return 3

        print(move_to_command(result.move), flush=True)

        if record_dir is not None:
            turn = RecordedTurn(gold=gold, touched_site=touched, sites=sites,
                                units=units, context_state=state_before)
            save_turn(turn, str(record_dir / f"turn_{context.turn:03d}.yaml"))


def cmd_decide(args) -> int:
    _setup_logging(args.log_level)
    try:
        turn = load_turn(args.file)
    except ProtocolError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    engine = TurnEngine(turn.make_context(), BotConfig(avoid_knights=not args.no_avoid_knights))
    try:
        result = engine.play_turn(turn.gold, turn.touched_site, turn.sites, turn.units)
    except InvariantError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3

    if args.json:
        print(json.dumps({
            "turn": engine.context.turn,
            "rule": result.winner.value if result.winner else None,
            "gave_way": result.gave_way,
            "command": move_to_command(result.move),
        }, indent=2))
    else:
        print_turn_report(engine.last_snapshot, result)
    return 0


def cmd_constants(args) -> int:
    print("Code Royale constants")
    print(f"  Arena:          {m.ARENA_WIDTH} x {m.ARENA_HEIGHT}")
    print(f"  Queen:          speed {m.QUEEN_SPEED}, radius {m.QUEEN_RADIUS}")
    print(f"  Knight:         speed {m.KNIGHT_SPEED}, radius {m.KNIGHT_RADIUS}")
    print(f"  Contact range:  {m.CONTACT_RANGE}")
    print(f"  {'Barracks':<10} {'Cost':>5} {'Turns':>6}")
    for kind, (cost, turns) in m.TRAINING_TABLE.items():
        print(f"  {kind.name:<10} {cost:>5} {turns:>6}")
    print(f"  Max tower hp:   {m.MAX_TOWER_HP}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Code Royale Bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Command to run")

    # play
    p_play = sub.add_parser("play", help="Play a match over stdin/stdout")
    p_play.add_argument("--config", "-c", default=None,
                        help="Bot config YAML file")
    p_play.add_argument("--set", "-s", default=None,
                        help="Config overrides: 'log_level=DEBUG,avoid_knights=false'")
    p_play.add_argument("--log-level", choices=LOG_LEVELS, default=None,
                        help="Logging level on stderr (default: WARNING)")
    p_play.add_argument("--record-dir", default=None,
                        help="Save every turn as YAML under this directory")
    p_play.add_argument("--no-avoid-knights", action="store_true",
                        help="Disable the give-way correction for own knights")

    # decide
    p_dec = sub.add_parser("decide", help="Replay one recorded turn")
    p_dec.add_argument("file", help="Path to turn YAML file")
    p_dec.add_argument("--json", action="store_true",
                       help="Print the decision as JSON instead of a report")
    p_dec.add_argument("--log-level", choices=LOG_LEVELS, default="WARNING")
    p_dec.add_argument("--no-avoid-knights", action="store_true")

    # constants
    sub.add_parser("constants", help="Show the fixed game constants")

    # serve
    p_web = sub.add_parser("serve", aliases=["web"],
                           help="Start the decision web service")
    p_web.add_argument("--port", type=int, default=8080,
                       help="Port to serve on (default: 8080)")

    args = parser.parse_args()

    if args.command == "play":
        sys.exit(cmd_play(args))
    elif args.command == "decide":
        sys.exit(cmd_decide(args))
    elif args.command == "constants":
        sys.exit(cmd_constants(args))
    elif args.command in ("serve", "web"):
        _setup_logging("INFO")
        from royale_bot.web import start_server
        start_server(port=args.port)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
