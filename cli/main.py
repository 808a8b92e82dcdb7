"""Entry-point for ladder command-line operations."""

from __future__ import annotations

import argparse
import os
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

import orjson
from dotenv import load_dotenv

from core.config import LadderConfig, load_config
from core.kill_switch import KillSwitch
from core.logging import setup_logging
from services.execution.audit import CommandJournal
from services.ladder.errors import ConfigError
from services.ladder.pricing import compute_ladder_prices
from services.ladder.types import MarketSnapshot
from services.runtime.runner import build_paper_runner, summarize_paper_run

DEFAULT_JOURNAL = Path("data/logs/ladder_journal.ndjson")


def _load_env() -> None:
    load_dotenv(override=False)


def _config_path(raw: Optional[str]) -> Optional[Path]:
    value = raw or os.getenv("LADDER_CONFIG")
    return Path(value) if value else None


def _load(raw: Optional[str]) -> LadderConfig:
    return load_config(_config_path(raw))


def _print_json(payload: object) -> None:
    print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


def cmd_check(config_path: Optional[str]) -> int:
    _load_env()
    try:
        config = _load(config_path)
    except ConfigError as exc:
        print(f"NOT READY: {exc}")
        return 1
    instrument = config.instrument.resolve(config.symbol)
    print(
        f"READY symbol={config.symbol} owner_tag={config.owner_tag} "
        f"tick={instrument.tick_size} precision={instrument.precision}"
    )
    return 0


def cmd_prices(config_path: Optional[str], bid: float, ask: float) -> int:
    _load_env()
    try:
        config = _load(config_path)
    except ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 1
    instrument = config.instrument.resolve(config.symbol)
    snapshot = MarketSnapshot(symbol=config.symbol, bid=bid, ask=ask)
    if not snapshot.available:
        print(f"quote unavailable: bid={bid} ask={ask}", file=sys.stderr)
        return 2
    prices = compute_ladder_prices(
        snapshot,
        config.gap_points,
        config.take_profit_points,
        instrument.tick_size,
        instrument.precision,
    )
    _print_json(
        {
            "symbol": config.symbol,
            "buy_stop": prices.buy_stop,
            "buy_take_profit": prices.buy_take_profit,
            "sell_stop": prices.sell_stop,
            "sell_take_profit": prices.sell_take_profit,
        }
    )
    return 0


def cmd_paper(args: argparse.Namespace) -> int:
    _load_env()
    setup_logging(level=args.log_level)
    try:
        config = _load(args.config)
        if args.trailing:
            config = config.with_overrides(trailing_enabled=True)
    except ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 1
    runner, ledger = build_paper_runner(
        config,
        iterations=args.iterations,
        seed=args.seed,
        drop_rate=args.drop_rate,
        interval=args.interval,
        journal_path=Path(args.journal) if args.journal else None,
        kill_switch=KillSwitch(),
    )
    previous = runner.install_signal_handlers()
    try:
        summary = summarize_paper_run(runner, ledger)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
    _print_json(summary.to_dict())
    return 0


def cmd_journal(path: str, count: int) -> int:
    for event in CommandJournal(Path(path)).tail(count):
        print(orjson.dumps(event).decode())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ladder", description="Breakout ladder control CLI")
    parser.add_argument("--config", help="YAML config file (defaults to $LADDER_CONFIG)")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("check", help="Validate the configuration")

    prices = sub.add_parser("prices", help="Print the ladder that would be placed for a quote")
    prices.add_argument("--bid", type=float, required=True)
    prices.add_argument("--ask", type=float, required=True)

    paper = sub.add_parser("paper", help="Run the controller against the mock feed and paper venue")
    paper.add_argument("--iterations", type=int, default=200)
    paper.add_argument("--seed", type=int, default=42)
    paper.add_argument("--drop-rate", type=float, default=0.02)
    paper.add_argument("--interval", type=float, default=0.0, help="Seconds to pause between cycles")
    paper.add_argument("--trailing", action="store_true", help="Force trailing stops on")
    paper.add_argument("--journal", default=str(DEFAULT_JOURNAL), help="Command journal path ('' to disable)")
    paper.add_argument("--log-level", default=None)

    journal = sub.add_parser("journal", help="Show the latest journaled commands")
    journal.add_argument("--path", default=str(DEFAULT_JOURNAL))
    journal.add_argument("-n", "--count", type=int, default=20)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "check":
        return cmd_check(args.config)
    if args.cmd == "prices":
        return cmd_prices(args.config, args.bid, args.ask)
    if args.cmd == "paper":
        return cmd_paper(args)
    if args.cmd == "journal":
        return cmd_journal(args.path, args.count)

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
