"""Command-line entry point: ``chatsim --users 6``."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
from collections.abc import Sequence
from pathlib import Path

from chatsim.config import MIN_USERS, ChatSimConfig, load_config
from chatsim.console import configure_logging
from chatsim.errors import ConfigError
from chatsim.simulation import run_simulation


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatsim",
        description="Simulate chat users that create rooms, talk and close rooms at random",
    )
    parser.add_argument(
        "--users",
        type=int,
        default=None,
        help=f"Number of concurrent chat users (minimum of {MIN_USERS}, default: 4)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between each user's decisions (default: 1.0)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until interrupted)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to chatsim.toml (default: discovered from the current directory)",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    return parser


def resolve_config(args: argparse.Namespace, parser: argparse.ArgumentParser) -> ChatSimConfig:
    """Load the config file and apply command-line overrides.

    Invalid values end the process through ``parser.error`` (exit status 2).
    """
    if args.users is not None and args.users < MIN_USERS:
        parser.error(f'invalid value "{args.users}" for --users')
    try:
        config = load_config(args.config).with_overrides(
            users=args.users,
            tick_interval=args.interval,
            seed=args.seed,
            duration=args.duration,
        )
        if args.log_level is not None:
            config = replace(config, logging=replace(config.logging, level=args.log_level))
    except (ConfigError, FileNotFoundError) as exc:
        parser.error(str(exc))
    return config


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = resolve_config(args, parser)

    configure_logging(
        config.logging.level,
        color=config.logging.color and not args.no_color,
    )
    try:
        asyncio.run(run_simulation(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
