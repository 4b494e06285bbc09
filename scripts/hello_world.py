#!/usr/bin/env python3
"""
Hello world client.

Connects to a mini-redis server, sets key "hello" to "world", then gets it
back and reports whether a value was returned.

Usage:
    python scripts/hello_world.py                       # 127.0.0.1:6379
    python scripts/hello_world.py --address host:port
"""

import argparse
import asyncio

from mini_redis import connect
from mini_redis.cli import setup_logging
from mini_redis.config.settings import settings


async def main(address: str) -> None:
    async with await connect(address) as client:
        await client.set("hello", b"world")
        result = await client.get("hello")

    print(f"got value from the server; success={result is not None}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="mini-redis hello world")
    parser.add_argument(
        "--address",
        default=f"{settings.HOST}:{settings.PORT}",
        help="Server address as host:port",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    setup_logging(debug=args.debug)
    asyncio.run(main(args.address))
