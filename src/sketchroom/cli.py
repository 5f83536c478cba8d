# Area: Shared
"""
sketchroom.cli — Command-line interface
=======================================

Provides the CLI entry point for the demo and the headless client.

Usage:
    python -m sketchroom --demo                              # Three-bot demo game
    python -m sketchroom --config config.json --room ABC234  # Follow a room
    python -m sketchroom --config config.json --create       # Create and host a room

Config keys can also come from environment variables or a .env file
(see ``sketchroom._client_config.ENV_MAPPINGS``).
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Dict

from ._client_config import load_config, validate_config
from ._shared import setup_logging
from ._store.base import RoomStore
from ._store import FirestoreRoomStore, InMemoryRoomStore
from ._sync.models import Player
from .errors import ConfigError

logger = logging.getLogger("sketchroom")


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Sketchroom - room synchronization client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m sketchroom --demo
  python -m sketchroom --demo --rounds 3 --seed 7
  python -m sketchroom --config config.json --room ABC234
  SKETCHROOM_PLAYER_ID=me python -m sketchroom --create
        """,
    )

    parser.add_argument(
        "--demo",
        action="store_true",
        help="Play a three-client demo game against an in-memory store",
    )
    parser.add_argument("--config", type=str, help="Path to JSON config file")
    parser.add_argument("--room", type=str, help="Room code to join and follow")
    parser.add_argument(
        "--create",
        action="store_true",
        help="Create a new room and follow it as host",
    )
    parser.add_argument("--rounds", type=int, default=2, help="Demo rounds (default: 2)")
    parser.add_argument("--seed", type=int, help="Demo random seed")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    return parser.parse_args(argv)


def build_store(config: Dict[str, Any]) -> RoomStore:
    """Build the configured room store."""
    if config.get("store") == "firestore":
        return FirestoreRoomStore(
            project=config.get("firestore_project"),
            collection=config.get("firestore_collection", "rooms"),
            emulator_host=config.get("firestore_emulator_host"),
        )
    return InMemoryRoomStore()


def build_client(config: Dict[str, Any], store: RoomStore):
    from ._profile import ProgressRepository
    from .client import RoomClient

    player = Player(id=config["player_id"], name=config.get("player_name", "Player"))
    return RoomClient(
        store,
        player,
        progress_repository=ProgressRepository(config["profile_db_path"]),
        poll_interval=config["poll_interval_seconds"],
        kick_debounce=config["kick_debounce_seconds"],
        stuck_timeout=config["stuck_timeout_seconds"],
        ended_countdown=config["ended_countdown_seconds"],
    )


async def run_client(config: Dict[str, Any], room_code: str = None, create: bool = False) -> int:
    """Run a headless client until interrupted or sent home."""
    client = build_client(config, build_store(config))

    if create:
        result = await client.actions.create_room()
    else:
        result = await client.actions.join_room(room_code)
    if not result.ok:
        logger.error(f"Could not enter room: {result.message}")
        return 1
    logger.info(f"In room {client.sync.room_code} as {client.player.id}")

    async def tick() -> None:
        await client.tick()
        if client.sync.room_code is None and client.ended_at is None:
            client.stop()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, client.stop)
    except NotImplementedError:
        logger.debug("Signal handlers not supported on this platform")

    await client.sync.run(on_tick=tick)
    await client.notifications.drain()
    for message in client.messages:
        logger.info(message)
    return 0


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    config = load_config(args.config)
    level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(log_file_path=config.get("log_file"), level=level)

    if args.demo:
        from .demo import run_demo
        asyncio.run(run_demo(rounds=args.rounds, seed=args.seed))
        return 0

    if args.room:
        config["room_code"] = args.room
    try:
        validate_config(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Set via config file or environment variables.", file=sys.stderr)
        return 1

    if not args.create and not config.get("room_code"):
        print("Error: pass --room CODE or --create", file=sys.stderr)
        return 1

    try:
        return asyncio.run(run_client(config, config.get("room_code"), create=args.create))
    except KeyboardInterrupt:
        return 0
