"""Matchfolio CLI.

Usage:
    python -m matchfolio run                   Track held matches until interrupted
    python -m matchfolio status                Show held matches and their last known state
    python -m matchfolio add-user USER         Create an empty user
    python -m matchfolio buy USER MATCH PLAYER --team T --price P --quantity Q
    python -m matchfolio sell USER MATCH PLAYER --price P --quantity Q
    python -m matchfolio portfolio USER        Print a user's portfolio
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import signal
import sys
from pathlib import Path

import structlog

from matchfolio.config.settings import MatchfolioSettings, load_settings
from matchfolio.exceptions import PortfolioError
from matchfolio.factory import MatchfolioSystem, build_system
from matchfolio.tracking.tracker import active_match_ids
from matchfolio.utils.logging import configure_logging

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = Path("config/matchfolio.yaml")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="matchfolio",
        description="Matchfolio: match portfolio tracker",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to YAML settings file (optional)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for persistent storage (users, match scores)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Render logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Track held matches until interrupted")
    run.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between maintenance cycles",
    )
    run.add_argument(
        "--refresh-every",
        type=int,
        default=None,
        help="Rebuild tracking from scratch every N cycles",
    )

    subparsers.add_parser("status", help="Show held matches and their last known state")

    add_user = subparsers.add_parser("add-user", help="Create an empty user")
    add_user.add_argument("user_id")

    buy = subparsers.add_parser("buy", help="Buy units of a player in a match")
    buy.add_argument("user_id")
    buy.add_argument("match_id")
    buy.add_argument("player_id")
    buy.add_argument("--team", required=True)
    buy.add_argument("--price", type=float, required=True)
    buy.add_argument("--quantity", type=float, required=True)
    buy.add_argument("--player-name", default="")
    buy.add_argument("--initial-price", type=float, default=None)

    sell = subparsers.add_parser("sell", help="Sell units of a player in a match")
    sell.add_argument("user_id")
    sell.add_argument("match_id")
    sell.add_argument("player_id")
    sell.add_argument("--price", type=float, required=True)
    sell.add_argument("--quantity", type=float, required=True)
    sell.add_argument("--auto-sold", action="store_true")
    sell.add_argument("--reason", default="")

    portfolio = subparsers.add_parser("portfolio", help="Print a user's portfolio")
    portfolio.add_argument("user_id")

    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> MatchfolioSettings:
    settings = load_settings(args.config)
    overrides = {}
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.json_logs:
        overrides["json_logs"] = True
    if getattr(args, "refresh_every", None) is not None:
        overrides["refresh_every"] = args.refresh_every
    if getattr(args, "interval", None) is not None:
        overrides["cycle_interval_seconds"] = args.interval
    return dataclasses.replace(settings, **overrides) if overrides else settings


async def _cmd_run(system: MatchfolioSystem) -> int:
    """Run the tracker with graceful shutdown on SIGINT/SIGTERM."""
    runner = system.runner
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, runner.request_shutdown)

    try:
        await runner.run_continuous(interval_seconds=system.settings.cycle_interval_seconds)
    finally:
        await system.score_source.close()
    logger.info("Shutdown complete")
    return 0


def _cmd_status(system: MatchfolioSystem) -> int:
    users = system.user_store.find_users_with_portfolio()
    match_ids = active_match_ids(users)

    scores = system.match_store.all()
    completed = sum(1 for s in scores if s.is_match_complete)

    print(f"\nUsers: {system.user_store.count()} ({len(users)} with portfolios)")
    print(f"Cached match scores: {len(scores)} ({completed} complete)")
    print(f"Matches with active holdings: {len(match_ids)}\n")
    print(f"{'Match ID':<24} {'Holders':<8} {'State'}")
    print("-" * 50)
    for match_id in match_ids:
        holders = sum(1 for u in users if u.has_active_holding(match_id))
        score = system.match_store.get(match_id)
        if score is None:
            state = "UNKNOWN"
        else:
            state = "COMPLETE" if score.is_match_complete else (score.status or "LIVE")
        print(f"{match_id:<24} {holders:<8} {state}")
    return 0


def _cmd_add_user(system: MatchfolioSystem, args: argparse.Namespace) -> int:
    system.user_store.create_user(args.user_id)
    print(f"User {args.user_id} ready")
    return 0


def _cmd_buy(system: MatchfolioSystem, args: argparse.Namespace) -> int:
    system.portfolio.buy(
        args.user_id,
        args.match_id,
        args.player_id,
        team=args.team,
        price=args.price,
        quantity=args.quantity,
        player_name=args.player_name,
        initial_price=args.initial_price,
    )
    print("Portfolio updated successfully")
    return _cmd_portfolio(system, args)


def _cmd_sell(system: MatchfolioSystem, args: argparse.Namespace) -> int:
    system.portfolio.sell(
        args.user_id,
        args.match_id,
        args.player_id,
        price=args.price,
        quantity=args.quantity,
        auto_sold=args.auto_sold,
        reason=args.reason,
    )
    print("Successfully sold")
    return _cmd_portfolio(system, args)


def _cmd_portfolio(system: MatchfolioSystem, args: argparse.Namespace) -> int:
    entries = system.portfolio.get_portfolio(args.user_id)
    print(f"\nPortfolio for {args.user_id} ({len(entries)} entries)\n")
    print(f"{'Match':<16} {'Player':<20} {'Team':<12} {'Holdings':>10} {'Txns':>5}")
    print("-" * 67)
    for entry in entries:
        player = entry.player_name or entry.player_id
        print(
            f"{entry.match_id:<16} {player:<20} {entry.team:<12} "
            f"{entry.current_holdings:>10g} {len(entry.transactions):>5}"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging(settings.log_level, json_output=settings.json_logs)
    system = build_system(settings)

    try:
        if args.command == "run":
            return asyncio.run(_cmd_run(system))
        elif args.command == "status":
            return _cmd_status(system)
        elif args.command == "add-user":
            return _cmd_add_user(system, args)
        elif args.command == "buy":
            return _cmd_buy(system, args)
        elif args.command == "sell":
            return _cmd_sell(system, args)
        elif args.command == "portfolio":
            return _cmd_portfolio(system, args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1
    except PortfolioError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
