"""CLI entry point for celo-bot."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from celo_bot.app import CeloBotApp
from celo_bot.config import AppConfig, load_config
from celo_bot.core.errors import CeloBotError
from celo_bot.core.types import is_address
from celo_bot.log import setup_logging
from celo_bot.services.service_manager import ServiceManager
from celo_bot.storage.cache import CacheStore
from celo_bot.storage.database import Database


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
    parser.add_argument("-e", "--env", default=".env", help="Path to .env file")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="celo-bot",
        description="Telegram assistant answering questions about Celo accounts",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _add_config_args(subparsers.add_parser("start", help="Start the bot"))
    check_parser = subparsers.add_parser("config-check", help="Validate configuration")
    _add_config_args(check_parser)
    check_parser.add_argument(
        "--services", action="store_true", help="Also health-check the RPC node and indexer"
    )

    _add_config_args(subparsers.add_parser("init", help="Create the data directory, database and cache"))

    ask_parser = subparsers.add_parser("ask", help="Run a single query without Telegram")
    _add_config_args(ask_parser)
    ask_parser.add_argument("query", help="Question to ask")
    ask_parser.add_argument("-u", "--user", default="cli", help="User id for address book lookups")
    ask_parser.add_argument("--conversation", default="cli", help="Conversation id")

    friends_parser = subparsers.add_parser("friends", help="Manage the address book")
    _add_config_args(friends_parser)
    friends_parser.add_argument("action", choices=["list", "add", "remove"])
    friends_parser.add_argument("-u", "--user", required=True, help="User id owning the entries")
    friends_parser.add_argument("name", nargs="?", help="Friend name (add/remove)")
    friends_parser.add_argument("address", nargs="?", help="Friend address (add)")

    args = parser.parse_args()

    if args.command is None:
        # Default to start
        args.command = "start"
        args.config = "config.yaml"
        args.env = ".env"

    if args.command == "config-check":
        config = _check_config(args.config, args.env)
        if args.services:
            sys.exit(asyncio.run(_check_services(config)))
        return

    config = _load_or_exit(args.config, args.env)
    setup_logging(config.log_level, config.log_file)

    if args.command == "init":
        sys.exit(asyncio.run(_init(config)))
    elif args.command == "ask":
        sys.exit(asyncio.run(_ask(config, args.conversation, args.user, args.query)))
    elif args.command == "friends":
        sys.exit(asyncio.run(_friends(config, args.action, args.user, args.name, args.address)))
    elif args.command == "start":
        asyncio.run(_run(config))


def _load_or_exit(config_path: str, env_path: str) -> AppConfig:
    try:
        return load_config(config_path, env_path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Copy config.example.yaml to config.yaml and .env.example to .env first")
        sys.exit(1)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_config(config_path: str, env_path: str) -> AppConfig:
    """Validate configuration and print summary."""
    try:
        config = load_config(config_path, env_path)
        print(f"Configuration valid: {config_path}")
        print(f"  Data directory: {config.data_dir}")
        print(f"  Network: {config.chain.network}")
        print(f"  RPC: {config.chain.rpc_url}")
        print(f"  Indexer: {config.chain.indexer_url}")
        print(f"  Model: {config.completion.model} ({config.completion.base_url})")
        print(f"  Cache: {config.cache.path} (ttl={config.cache.ttl_seconds}s)")
        print(f"  Storage: {config.storage.db_path}")
        print(f"  Telegram: {'configured' if config.telegram else 'not configured'}")
        return config
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


async def _check_services(config: AppConfig) -> int:
    """Health-check every upstream client; non-zero exit if any is unreachable."""
    manager = ServiceManager(config.chain)
    await manager.start_all()
    try:
        results = await manager.health_check_all()
    finally:
        await manager.stop_all()
    for name, healthy in results.items():
        print(f"  {name}: {'ok' if healthy else 'unreachable'}")
    return 0 if all(results.values()) else 1


async def _init(config: AppConfig) -> int:
    """Create the data directory, the address book schema and an empty cache snapshot."""
    Path(config.data_dir).mkdir(parents=True, exist_ok=True)
    if config.log_file:
        Path(config.log_file).parent.mkdir(parents=True, exist_ok=True)

    db = Database(config.storage.db_path)
    await db.initialize()
    await db.close()
    print(f"Address book ready: {config.storage.db_path}")

    cache = CacheStore(config.cache.path, ttl_seconds=config.cache.ttl_seconds)
    if cache.path.exists():
        print(f"Cache snapshot already exists: {cache.path}")
    else:
        cache.bot_address = config.chain.bot_address
        cache.save()
        print(f"Created cache snapshot: {cache.path}")
    return 0


async def _ask(config: AppConfig, conversation_id: str, user_id: str, query: str) -> int:
    app = CeloBotApp(config)
    try:
        coordinator = await app.setup()
        answer = await coordinator.process_query(conversation_id, user_id, query)
        print(answer)
        return 0
    except CeloBotError as e:
        print(f"Query failed: {e}", file=sys.stderr)
        return 1
    finally:
        await app.stop()


async def _friends(
    config: AppConfig, action: str, user_id: str, name: str | None, address: str | None
) -> int:
    app = CeloBotApp(config)
    await app.db.initialize()
    try:
        book = app.address_book
        if action == "list":
            for friend in await book.list(user_id):
                print(f"{friend.name}\t{friend.address}")
            return 0
        if not name:
            print("A friend name is required", file=sys.stderr)
            return 2
        if action == "add":
            if not address or not is_address(address):
                print("A valid 0x address is required", file=sys.stderr)
                return 2
            await book.add(user_id, name, address)
            return 0
        if not await book.remove(user_id, name):
            print(f"No friend named {name}", file=sys.stderr)
            return 1
        return 0
    finally:
        await app.db.close()


async def _run(config: AppConfig) -> None:
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            signal.signal(sig, lambda s, f: _signal_handler())

    app = CeloBotApp(config)
    try:
        await app.start()
        await stop_event.wait()
    finally:
        await app.stop()


if __name__ == "__main__":
    main()
