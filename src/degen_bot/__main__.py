"""CLI entry point for degen-bot."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from degen_bot.app import DegenBotApp
from degen_bot.config import AppConfig, load_config
from degen_bot.errors import ConfigError
from degen_bot.log import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="degen-bot",
        description="Telegram bot that puts the Degen Point of View overlay on your photos",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (("start", "Start the bot"), ("config-check", "Validate configuration")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-c", "--config", default="config.toml", help="Path to config file")
        sub.add_argument("-e", "--env", default=".env", help="Path to .env file")

    args = parser.parse_args()

    if args.command is None:
        args.command = "start"
        args.config = "config.toml"
        args.env = ".env"

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "start":
        _run(args.config, args.env)


def _load_or_exit(config_path: str, env_path: str) -> AppConfig:
    try:
        return load_config(config_path, env_path)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("Copy config.example.toml to config.toml and .env.example to .env", file=sys.stderr)
        sys.exit(1)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    config = _load_or_exit(config_path, env_path)
    print(f"Configuration valid: {config_path}")
    print(f"  Telegram enabled: {config.telegram.enabled}")
    print(f"  Bot token: {'set' if config.bot_token else 'not set'}")
    print(f"  HTTP: {config.http.host}:{config.http.port} -> {config.http.redirect_url}")
    print(f"  Overlays: {config.assets.portrait_path}, {config.assets.landscape_path}")
    for path in (config.assets.portrait_path, config.assets.landscape_path):
        if not path.is_file():
            print(f"  WARNING: overlay asset missing: {path}")


def _run(config_path: str, env_path: str) -> None:
    """Load config and run the application until SIGINT/SIGTERM."""
    config = _load_or_exit(config_path, env_path)
    setup_logging(config.log_level, config.log_format)

    async def _async_main() -> None:
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(stop_event.set))

        await DegenBotApp(config).run_until(stop_event)

    try:
        asyncio.run(_async_main())
    except Exception as e:
        print(f"degen-bot stopped with an error: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
