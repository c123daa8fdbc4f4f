"""Protean Engine runner for HarvestMart.

Starts the Engine that processes marketplace events asynchronously when the
domain runs with ``event_processing = "async"`` (the production overlay):
the outbox processor publishes events and subscriptions invoke projectors
such as the order listing.

Usage:
    PROTEAN_ENV=production python src/server.py
    PROTEAN_ENV=production python src/server.py --test-mode
"""

import argparse

from protean.server.engine import Engine

from marketplace.domain import marketplace
from marketplace.utils.logging import configure_logging


def main():
    parser = argparse.ArgumentParser(description="HarvestMart Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    configure_logging()
    marketplace.init()

    engine = Engine(marketplace, test_mode=args.test_mode)
    engine.run()


if __name__ == "__main__":
    main()
