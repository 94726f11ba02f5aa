#!/usr/bin/env python3
"""Marketplace command line tools: schema setup, seeding and stats"""

import argparse
import json
import os
import sys
from typing import Dict, List

import structlog
from tabulate import tabulate

from marketplace.config.settings import settings
from marketplace.database.documents import (
    APPLICATIONS, BUYERS, COLLECTIONS, LANDLORDS, LEASES, LOCATIONS, MANAGERS,
    PROPERTIES, SELLER_PROPERTIES, TENANTS, USER_COLLECTIONS, build_store,
)
from marketplace.database.postgres_store import PostgresStore
from marketplace.database.schema import init_schema
from marketplace.utils.exceptions import MarketplaceException

logger = structlog.get_logger(__name__)

# Referenced collections load before the ones pointing at them
SEED_ORDER = (LOCATIONS, MANAGERS, LANDLORDS, TENANTS, BUYERS, PROPERTIES, LEASES, APPLICATIONS,
              SELLER_PROPERTIES)

# relation name -> (foreign key field, key inside the connect object, referenced collection)
RELATIONS = {
    "location": ("locationId", "id", LOCATIONS),
    "manager": ("managerCognitoId", "cognitoId", MANAGERS),
    "landlord": ("managerCognitoId", "cognitoId", LANDLORDS),
    "tenant": ("tenantCognitoId", "cognitoId", TENANTS),
    "property": ("propertyId", "id", PROPERTIES),
    "lease": ("leaseId", "id", LEASES),
}


class SeedError(Exception):
    pass


def _connect_key(item: Dict):
    return item.get("cognitoId", item.get("id"))


def normalize_record(store, record: Dict) -> Dict:
    """
    Flatten relation objects of the form ``{"connect": {...}}``.

    Single relations become their foreign key field; list relations
    (``favorites``, ``tenants``, ``properties``) become plain key lists.
    A user connected by numeric id is translated to its cognitoId.
    """
    normalized = {}
    for key, value in record.items():
        if not (isinstance(value, dict) and "connect" in value):
            normalized[key] = value
            continue

        connect = value["connect"]
        if isinstance(connect, list):
            normalized[key] = [_connect_key(item) for item in connect if isinstance(item, dict)]
            continue

        if key not in RELATIONS or not isinstance(connect, dict):
            raise SeedError(f"Unsupported relation {key!r} in record {record.get('id')}")

        field, connect_field, collection = RELATIONS[key]
        if connect_field in connect:
            normalized[field] = connect[connect_field]
        elif "id" in connect and collection in USER_COLLECTIONS:
            user = store.find_by_id(collection, connect["id"])
            if user is None:
                raise SeedError(f"{key} {connect['id']} referenced by record {record.get('id')} does not exist")
            normalized[field] = user["cognitoId"]
        else:
            raise SeedError(f"Relation {key!r} of record {record.get('id')} has no {connect_field}")
    return normalized


def load_records(path: str) -> List[Dict]:
    with open(path, encoding="utf-8") as handle:
        records = json.load(handle)
    if not isinstance(records, list):
        raise SeedError(f"{path} must contain a JSON array")
    return records


def seed(store, directory: str, keep: bool = False) -> List[List]:
    """Load every known collection file found in ``directory``"""
    if not keep:
        for collection in reversed(SEED_ORDER):
            store.clear(collection)

    summary = []
    for collection in SEED_ORDER:
        path = os.path.join(directory, f"{collection}.json")
        if not os.path.exists(path):
            summary.append([collection, 0, "skipped (no file)"])
            continue

        inserted = 0
        for record in load_records(path):
            document = normalize_record(store, record)
            if collection in (TENANTS, BUYERS):
                document.setdefault("favorites", [])
                document.setdefault("properties", [])
            if collection == PROPERTIES:
                document.setdefault("tenants", [])

            if document.get("id") is None:
                store.insert(collection, document)
            else:
                store.insert_seed(collection, document)
            inserted += 1

        logger.info("Collection seeded", collection=collection, inserted=inserted)
        summary.append([collection, inserted, "loaded"])
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rental marketplace maintenance commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s init-db
  %(prog)s seed ./seed-data
  %(prog)s seed ./seed-data --keep
  %(prog)s stats
        """
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create collection tables, sequences and indexes")

    seed_parser = subparsers.add_parser("seed", help="Load seed data from a directory of JSON files")
    seed_parser.add_argument("directory", help="Directory holding <collection>.json files")
    seed_parser.add_argument("--keep", action="store_true", help="Keep existing documents")

    subparsers.add_parser("stats", help="Show document counts per collection")
    return parser


def main(argv: List[str] = None, store=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    store = store or build_store(settings)
    try:
        if args.command == "init-db":
            if not isinstance(store, PostgresStore):
                print("init-db only applies to the postgres storage backend")
                return 1
            init_schema(store.pool)
            print(f"Schema ready for {len(COLLECTIONS)} collections")

        elif args.command == "seed":
            summary = seed(store, args.directory, keep=args.keep)
            print(tabulate(summary, headers=["Collection", "Documents", "Status"], tablefmt="grid"))

        elif args.command == "stats":
            rows = [[collection, store.count(collection)] for collection in COLLECTIONS]
            print(tabulate(rows, headers=["Collection", "Documents"], tablefmt="grid"))

    except (SeedError, MarketplaceException, OSError, ValueError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"Error: {e}")
        return 1
    finally:
        store.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
