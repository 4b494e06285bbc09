#!/usr/bin/env python3
"""
mini-redis Command Line Client

Usage:
    mini-redis-cli get <key>                          # Print the value or (nil)
    mini-redis-cli set <key> <value>                  # Store a value
    mini-redis-cli set <key> <value> --expires 1500   # Expire after 1.5 seconds
    mini-redis-cli ping [message]                     # Ping the server
    mini-redis-cli --host 10.0.0.5 --port 6380 get k  # Custom server
    mini-redis-cli --debug get k                      # Enable debug logging

Environment Variables:
    MINI_REDIS_HOST     - Default server host
    MINI_REDIS_PORT     - Default server port
    MINI_REDIS_DEBUG    - Enable debug mode (true/false)
"""

import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from typing import List, Optional

from .config.settings import settings
from .errors import MiniRedisError
from .network.connection import Address, connect

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mini-redis-cli",
        description="Issue mini-redis commands",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Server host",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Server port",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    get_cmd = commands.add_parser("get", help="Get the value of a key")
    get_cmd.add_argument("key")

    set_cmd = commands.add_parser("set", help="Set a key to a value")
    set_cmd.add_argument("key")
    set_cmd.add_argument("value")
    set_cmd.add_argument(
        "--expires",
        type=int,
        default=None,
        metavar="MILLIS",
        help="Expire the key after this many milliseconds",
    )

    ping_cmd = commands.add_parser("ping", help="Ping the server")
    ping_cmd.add_argument("message", nargs="?", default=None)

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def _display(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return repr(value)


async def run(args: argparse.Namespace) -> int:
    """
    Execute the requested command and print its result.

    Returns:
        Process exit status (0 on success, 1 on any client error).
    """
    try:
        async with await connect(Address(args.host, args.port)) as conn:
            if args.command == "get":
                value = await conn.get(args.key)
                print("(nil)" if value is None else _display(value))
            elif args.command == "set":
                expire = timedelta(milliseconds=args.expires) if args.expires is not None else None
                await conn.set(args.key, args.value, expire=expire)
                print("OK")
            elif args.command == "ping":
                print(_display(await conn.ping(args.message)))
    except MiniRedisError as exc:
        logger.debug(f"{args.command} failed: {exc!r}")
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    """Main entry point for the CLI."""
    args = parse_args()
    setup_logging(debug=args.debug)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
