"""Marketplace Orders database management CLI.

Creates or drops the database schemas of the ordering and fulfillment
domains. In-memory providers have nothing to create and are skipped.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db --domain fulfillment   # Drop one domain's tables
"""

import argparse
import sys

DOMAIN_NAMES = ["ordering", "fulfillment"]


def _load_domains(names):
    from fulfillment.domain import fulfillment
    from ordering.domain import ordering

    all_domains = {"ordering": ordering, "fulfillment": fulfillment}
    return {name: all_domains[name] for name in (names or DOMAIN_NAMES)}


def setup_databases(domains=None):
    """Create database schemas for the specified (or all) domains."""
    from shared.db import setup_db

    for name, domain in _load_domains(domains).items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Creating {name} database schema...")
        setup_db(domain)
        print(f"  {name} schema ready.")

    print("Done.")


def drop_databases(domains=None):
    """Drop database schemas for the specified (or all) domains."""
    from shared.db import drop_db

    for name, domain in _load_domains(domains).items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Dropping {name} database schema...")
        drop_db(domain)
        print(f"  {name} schema dropped.")

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Marketplace Orders database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup-db", help="Create all database tables")
    setup_parser.add_argument(
        "--domain",
        choices=DOMAIN_NAMES,
        nargs="*",
        help="Specific domain(s) to set up (default: all)",
    )

    drop_parser = subparsers.add_parser("drop-db", help="Drop all database tables")
    drop_parser.add_argument(
        "--domain",
        choices=DOMAIN_NAMES,
        nargs="*",
        help="Specific domain(s) to drop (default: all)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(args.domain)
    elif args.command == "drop-db":
        drop_databases(args.domain)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
