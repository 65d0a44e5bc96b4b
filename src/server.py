"""Protean Engine runner for the FreshCart domain.

Starts the Engine that processes events asynchronously when the
``production`` overlay switches event processing to ``async``: fulfillment
progress into order status, stock decrements and customer notifications.

Usage:
    python src/server.py
    python src/server.py --test-mode   # Process pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine


async def run(test_mode: bool = False):
    from freshcart.domain import freshcart

    freshcart.init()
    engine = Engine(freshcart, test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="FreshCart Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Drain pending messages once and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(args.test_mode))


if __name__ == "__main__":
    main()
