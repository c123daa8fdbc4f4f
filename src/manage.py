"""HarvestMart database management CLI.

Creates and drops the relational schema for the marketplace domain. Only
SQL-backed providers are touched; the default memory provider needs no
schema.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys

from marketplace.domain import marketplace
from marketplace.utils.db import drop_db, setup_db


def main():
    parser = argparse.ArgumentParser(description="HarvestMart database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    print("Initializing marketplace domain...")
    marketplace.init()

    if args.command == "setup-db":
        count = setup_db(marketplace)
        print(f"  Schema created for {count} provider(s).")
    elif args.command == "drop-db":
        count = drop_db(marketplace)
        print(f"  Schema dropped for {count} provider(s).")
    else:
        parser.print_help()
        sys.exit(1)

    print("Done.")


if __name__ == "__main__":
    main()
