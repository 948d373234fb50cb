"""Shopu management CLI.

Creates and drops the database schema and registers shops from the shell.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py create-tenant "Tea House" teahouse --owner-email owner@teahouse.ge
"""

import argparse
import sys


def setup_database():
    """Create the database schema for the shopu domain."""
    from shopu.domain import shop
    from shopu.utils.db import setup_db

    print("Initializing shopu domain...")
    shop.init()
    print("Creating database schema...")
    if setup_db(shop):
        print("  Schema ready.")
    else:
        print("  No SQL provider configured; nothing to create.")

    print("Done.")


def drop_database():
    """Drop the database schema for the shopu domain."""
    from shopu.domain import shop
    from shopu.utils.db import drop_db

    print("Initializing shopu domain...")
    shop.init()
    print("Dropping database schema...")
    if drop_db(shop):
        print("  Schema dropped.")
    else:
        print("  No SQL provider configured; nothing to drop.")

    print("Done.")


def create_tenant(name, subdomain, owner_email=None):
    """Register a shop and print its API key (shown only once)."""
    from shopu.domain import shop
    from shopu.tenancy.registration import RegisterTenant

    shop.init()
    with shop.domain_context():
        result = shop.process(
            RegisterTenant(name=name, subdomain=subdomain.strip().lower(), owner_email=owner_email),
            asynchronous=False,
        )

    print(f"Tenant created: {result['tenant_id']}")
    print(f"API key: {result['api_key']}")
    print("Store the API key now; it cannot be retrieved later.")


def main():
    parser = argparse.ArgumentParser(description="Shopu management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    tenant_parser = subparsers.add_parser("create-tenant", help="Register a new shop")
    tenant_parser.add_argument("name", help="Shop name")
    tenant_parser.add_argument("subdomain", help="Platform subdomain, e.g. 'teahouse'")
    tenant_parser.add_argument("--owner-email", default=None, help="Shop owner's email")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "create-tenant":
        create_tenant(args.name, args.subdomain, args.owner_email)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
