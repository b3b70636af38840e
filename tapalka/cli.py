"""
Tapalka CLI - Command-line interface for the engine.

Usage:
    tapalka serve [--host H] [--port P]     Run the HTTP API
    tapalka status <player>                 Show a player's economy
    tapalka tap <player> [--count N]        Tap N times
    tapalka buy <player> <kind>             Buy the next upgrade level
    tapalka leaderboard [--limit N]         Top players by balance

Offline commands use the same SQLite remote store and JSON local
cache as the server, and force a remote flush before exiting.
"""

import argparse
import logging
import os
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tapalka - Tap-to-earn Economy Engine",
        prog="tapalka",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("TAPALKA_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    # Status command
    status_parser = subparsers.add_parser("status", help="Show a player's economy")
    status_parser.add_argument("player_id")

    # Tap command
    tap_parser = subparsers.add_parser("tap", help="Tap for a player")
    tap_parser.add_argument("player_id")
    tap_parser.add_argument("--count", "-n", type=int, default=1, help="Number of taps")

    # Buy command
    buy_parser = subparsers.add_parser("buy", help="Buy the next upgrade level")
    buy_parser.add_argument("player_id")
    buy_parser.add_argument("kind", choices=["capacity", "regen_speed", "tap_power"])

    # Leaderboard command
    board_parser = subparsers.add_parser("leaderboard", help="Top players by balance")
    board_parser.add_argument("--limit", type=int, default=10)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "status":
        cmd_status(args)
    elif args.command == "tap":
        cmd_tap(args)
    elif args.command == "buy":
        cmd_buy(args)
    elif args.command == "leaderboard":
        cmd_leaderboard(args)
    else:
        parser.print_help()
        sys.exit(1)


def _service():
    from .api.app import build_default_service
    return build_default_service()


def _print_state(state):
    energy = state.energy
    print(f"Player:  {state.player_id}")
    print(f"Balance: {state.balance:,}")
    flag = " (exhausted)" if energy.exhausted else ""
    print(f"Energy:  {energy.current:.1f}/{energy.max}{flag}")
    print(f"Tap:     +{state.tap_power}   Passive: {state.income_per_minute:g}/min")
    for upgrade in state.upgrades:
        next_cost = f"next {upgrade.next_cost:,}" if upgrade.next_cost else "max"
        print(f"  {upgrade.kind:<12} L{upgrade.level}  ({next_cost})")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "tapalka.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
    )


def cmd_status(args):
    """Show a player's economy."""
    service = _service()
    try:
        session = service.start_session(args.player_id)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    if session.offline_credit:
        print(f"Earned {session.offline_credit:,} while away")
    _print_state(session.state)
    service.end_session(args.player_id)


def cmd_tap(args):
    """Tap for a player."""
    from .api.schemas import ErrorResponse

    service = _service()
    try:
        service.start_session(args.player_id)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    result = service.tap(args.player_id, count=max(args.count, 1))
    service.end_session(args.player_id)

    if isinstance(result, ErrorResponse):
        print(f"Error: {result.error}")
        sys.exit(1)

    print(f"Taps accepted: {result.accepted}  (+{result.reward:,})")
    print(f"Balance: {result.balance:,}  Energy: {result.energy.current:.1f}/{result.energy.max}")
    if result.rejected:
        print(f"Stopped: {result.notice}")


def cmd_buy(args):
    """Buy the next upgrade level."""
    from .api.schemas import ErrorResponse

    service = _service()
    try:
        service.start_session(args.player_id)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    result = service.purchase(args.player_id, args.kind)
    service.end_session(args.player_id)

    if isinstance(result, ErrorResponse):
        print(f"Rejected: {result.error}")
        sys.exit(1)

    print(f"Bought {result.kind} level {result.level}")
    _print_state(result.state)


def cmd_leaderboard(args):
    """Top players by balance."""
    from .api.schemas import ErrorResponse

    result = _service().leaderboard(args.limit)
    if isinstance(result, ErrorResponse):
        print(f"Error: {result.error}")
        sys.exit(1)

    for entry in result.entries:
        name = entry.display_name or entry.player_id
        print(f"{entry.rank:>3}. {name:<24} {entry.balance:>12,}")


if __name__ == "__main__":
    main()
