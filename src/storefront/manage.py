"""NexoShop Storefront database management CLI.

Usage:
    python -m storefront.manage setup-db              # Create all tables
    python -m storefront.manage drop-db               # Drop all tables
    python -m storefront.manage seed                  # Load the starter catalogue
    python -m storefront.manage grant-admin USER_ID   # Give a user admin access
"""

import argparse
import os
import sys


def _init_domain(database_url=None):
    # domain.toml reads STOREFRONT_DATABASE_URL when the domain is imported
    if database_url:
        os.environ["STOREFRONT_DATABASE_URL"] = database_url

    from storefront.domain import storefront

    print("Initializing storefront domain...")
    storefront.init()
    return storefront


def setup_database(database_url=None):
    from storefront.utils.db import setup_db

    storefront = _init_domain(database_url)
    print("Creating database schema...")
    setup_db(storefront)
    print("  schema ready.")


def drop_database(database_url=None):
    from storefront.utils.db import drop_db

    storefront = _init_domain(database_url)
    print("Dropping database schema...")
    drop_db(storefront)
    print("  schema dropped.")


def seed_catalogue(database_url=None):
    from storefront.catalogue.seed import load_seed_catalogue

    storefront = _init_domain(database_url)
    with storefront.domain_context():
        created = load_seed_catalogue()
    if created:
        print(f"Loaded {created} products.")
    else:
        print("Catalogue already has products; nothing loaded.")


def grant_admin(user_id, database_url=None):
    from storefront.identity.management import bootstrap_admin

    storefront = _init_domain(database_url)
    with storefront.domain_context():
        added = bootstrap_admin(user_id)
    print(f"{user_id} is {'now' if added else 'already'} an administrator.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="NexoShop Storefront database management")
    parser.add_argument("--database-url", help="Override STOREFRONT_DATABASE_URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed", help="Load the starter catalogue into an empty store")
    admin_parser = subparsers.add_parser("grant-admin", help="Give a user the admin role")
    admin_parser.add_argument("user_id")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database(args.database_url)
    elif args.command == "drop-db":
        drop_database(args.database_url)
    elif args.command == "seed":
        seed_catalogue(args.database_url)
    elif args.command == "grant-admin":
        grant_admin(args.user_id, args.database_url)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
