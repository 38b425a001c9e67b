"""
Warp Protocol CLI - Command-line interface for the engine.

Usage:
    warp-protocol play [--seed S] [--mode M] [--date D]   Play interactively
    warp-protocol replay --seed S ACTION...               Replay a seed, print the result
    warp-protocol serve [--host H] [--port P]             Run the REST API

Replay actions: draw, bank, next, buy:<module-kind>, upgrade:<upgrade-kind>
"""

import argparse
import sys

from .engine_core import (
    Action,
    GameState,
    MODULE_TEMPLATES,
    UPGRADE_TRACKS,
    replay,
)
from .session import RunDescriptor, SessionManager, result_summary

PLAY_HELP = """Commands:
  d | draw              Draw one module
  b | bank              Stop and bank the round
  n | next              Start the next round
  buy <kind>            Buy a module ({modules})
  up <kind>             Buy an upgrade ({upgrades})
  s | state             Show the state
  new [seed]            Start a new run
  share                 Show the share link and result
  q | quit              Exit"""


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Warp Protocol - push-your-luck engine",
        prog="warp-protocol",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play interactively")
    play_parser.add_argument("--seed", help="Seed string (random if omitted)")
    play_parser.add_argument("--mode", choices=["random", "seeded", "daily"], help="Game mode")
    play_parser.add_argument("--date", help="Daily challenge date (YYYY-MM-DD)")
    play_parser.add_argument("--share", help="Share link query to replay")

    # Replay command
    replay_parser = subparsers.add_parser("replay", help="Replay a seed against actions")
    replay_parser.add_argument("--seed", required=True, help="Seed string")
    replay_parser.add_argument("--mode", choices=["random", "seeded", "daily"], default="seeded")
    replay_parser.add_argument("--date", help="Daily challenge date (YYYY-MM-DD)")
    replay_parser.add_argument("actions", nargs="*", help="draw, bank, next, buy:<kind>, upgrade:<kind>")
    replay_parser.add_argument("--log", action="store_true", help="Print the full log")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()

    if args.command == "play":
        cmd_play(args)
    elif args.command == "replay":
        cmd_replay(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def parse_action_token(token: str) -> Action:
    """
    Parse a short replay token into an Action.

    Raises ValueError for unknown tokens.
    """
    name, _, arg = token.partition(":")
    if name in ("draw", "d"):
        return Action.draw_module()
    if name in ("bank", "b"):
        return Action.stop_and_bank()
    if name in ("next", "n"):
        return Action.start_next_round()
    if name == "buy":
        return Action.from_dict({"type": "buy-module", "kind": arg})
    if name in ("upgrade", "up"):
        return Action.from_dict({"type": "buy-upgrade", "kind": arg})
    raise ValueError(f"Unknown action: {token}")


def format_state(state: GameState) -> str:
    """Multi-line status block."""
    lines = [
        f"Run: {RunDescriptor.from_state(state).challenge_label} [{state.status.value}]",
        f"Round {state.rounds + 1} | {state.round_status.value.upper()}",
        f"Instability {state.round_instability}/{state.instability_threshold} | "
        f"Slots {len(state.active_pile)}/{state.slot_capacity}",
        f"Unbanked: {state.round_flux} flux, {state.round_credits} credits",
        f"Banked:   {state.banked_flux} flux, {state.banked_credits} credits",
        f"Bag {len(state.bag)} | Discard {len(state.discard)} | "
        f"Warp cores owned {state.owned_warp_cores} (goal: {state.warp_core_target} in one round)",
    ]
    if state.active_pile:
        lines.append("Active: " + ", ".join(m.name for m in state.active_pile))
    if state.score is not None:
        lines.append(f"Score: {state.score}")
    return "\n".join(lines)


def cmd_play(args):
    """Interactive play loop."""
    manager = SessionManager()
    try:
        session = manager.create_session(
            mode=args.mode or ("seeded" if args.seed else None),
            seed=args.seed,
            daily_date=args.date,
            share_query=args.share,
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    help_text = PLAY_HELP.format(
        modules=", ".join(kind.value for kind in MODULE_TEMPLATES),
        upgrades=", ".join(kind.value for kind in UPGRADE_TRACKS),
    )
    for entry in session.game_state.log:
        print(entry)
    print()
    print(format_state(session.game_state))
    print(help_text)

    while True:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not line:
            continue

        command, _, arg = line.partition(" ")
        arg = arg.strip()
        if command in ("q", "quit", "exit"):
            break
        if command in ("h", "help", "?"):
            print(help_text)
            continue
        if command in ("s", "state"):
            print(format_state(session.game_state))
            continue
        if command == "share":
            print(f"?{session.descriptor.to_query()}")
            print(result_summary(session.game_state))
            continue

        try:
            if command == "new":
                descriptor = RunDescriptor.create(
                    mode="seeded" if arg else "random",
                    seed=arg or None,
                    seed_source=manager.seed_source,
                )
                action = Action.new_run(descriptor.seed, mode=descriptor.mode)
            elif command in ("buy", "up", "upgrade"):
                action = parse_action_token(f"{command}:{arg}")
            else:
                action = parse_action_token(command)
        except ValueError as e:
            print(f"Error: {e}")
            continue

        result = session.dispatch(action)
        if not result.applied:
            print("Not available right now.")
            continue
        for entry in result.new_log_entries:
            print(entry)
        print(format_state(result.state))


def cmd_replay(args):
    """Replay a seed against a list of actions and print the result."""
    try:
        actions = [parse_action_token(token) for token in args.actions]
        state = replay(args.seed, actions, mode=args.mode, daily_date=args.date)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    if args.log:
        for entry in state.log:
            print(entry)
        print()
    print(format_state(state))
    print(result_summary(state))


def cmd_serve(args):
    """Run the REST API with uvicorn."""
    import uvicorn

    uvicorn.run("warp_protocol.api.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
