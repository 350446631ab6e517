#!/usr/bin/env python3
"""
Script to import legacy JSON operating hours into the hours tables
Usage: python -m app.scripts.migrate_location_hours <shop_id> [--dry-run]
"""
import asyncio
import sys
import uuid

from app.config.database import AsyncSessionLocal, engine
from app.services.location.hours_migration_service import LocationHoursMigrationService
from app.services.store.record_store import RecordStore
from app.utils.my_logging import setup_logging


async def migrate(shop_id: uuid.UUID, dry_run: bool) -> dict:
    try:
        async with AsyncSessionLocal() as db:
            service = LocationHoursMigrationService(RecordStore(db))
            return await service.migrate_shop(shop_id, dry_run=dry_run)
    finally:
        await engine.dispose()


def main(argv) -> int:
    args = [a for a in argv if not a.startswith("--")]
    if len(args) != 1:
        print(__doc__)
        return 1

    try:
        shop_id = uuid.UUID(args[0])
    except ValueError:
        print(f"Invalid shop id: {args[0]}")
        return 1

    dry_run = "--dry-run" in argv
    summary = asyncio.run(migrate(shop_id, dry_run))

    print(f"\nLocations: {summary['total_locations']}, migrated: {summary['locations_migrated']}"
          f"{' (dry run)' if dry_run else ''}")
    print(f"Rules created: {summary['rules_created']}")
    print(f"Exceptions created: {summary['exceptions_created']}")
    for result in summary["results"]:
        print(f"  {result['location_id']}: {result['status']} {result.get('reason') or result.get('error') or ''}")

    failed = [r for r in summary["results"] if r["status"] == "failed"]
    return 1 if failed else 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(main(sys.argv[1:]))
