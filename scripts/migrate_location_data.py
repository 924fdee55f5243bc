#!/usr/bin/env python3
"""Convert place coordinates into the map-location format used by the admin map field.

For every place without a `map_location` object, writes
`{"lat": latitude, "lng": longitude, "address": address}`. Places that already
have one are skipped, so the script can be re-run safely.

Usage:
    DATABASE_URL=postgres://... python scripts/migrate_location_data.py
    DATABASE_URL=postgres://... python scripts/migrate_location_data.py --dry-run
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add api/ to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "api"))

from core import config, db
from places import repository as place_repository

logging.basicConfig(level=config.log_level(), format="%(asctime)s %(levelname)s %(message)s")
LOGGER = logging.getLogger("migrate_location_data")


def has_map_location(place: dict) -> bool:
    value = place.get("map_location")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return False
    return isinstance(value, dict)


def build_map_location(place: dict) -> dict:
    return {
        "lat": float(place["latitude"]),
        "lng": float(place["longitude"]),
        "address": place.get("address"),
    }


async def migrate(dry_run: bool = False) -> tuple[int, int, int]:
    """Return (total, updated, failed)."""
    places = await place_repository.list_places_for_location_migration()
    LOGGER.info("Found %s places to migrate", len(places))

    updated = 0
    failed = 0
    for place in places:
        if has_map_location(place):
            LOGGER.info("Place %s (%s) already has mapLocation data, skipping", place["id"], place["name"])
            continue
        try:
            location = build_map_location(place)
            if not dry_run:
                await place_repository.set_map_location(place["id"], json.dumps(location, ensure_ascii=False))
            LOGGER.info("Updated place %s (%s)%s", place["id"], place["name"], " [dry-run]" if dry_run else "")
            updated += 1
        except Exception:
            LOGGER.exception("Error updating place %s (%s)", place["id"], place["name"])
            failed += 1

    return len(places), updated, failed


async def run(dry_run: bool) -> None:
    await db.init_pool()
    try:
        total, updated, failed = await migrate(dry_run=dry_run)
    finally:
        await db.close_pool()
    LOGGER.info("Migration completed. Updated %s out of %s places (%s failed).", updated, total, failed)


def main() -> int:
    parser = argparse.ArgumentParser(description="Migrate place coordinates to map-location JSON")
    parser.add_argument("--dry-run", action="store_true", help="Preview without writing")
    args = parser.parse_args()

    try:
        asyncio.run(run(args.dry_run))
    except Exception:
        LOGGER.exception("Migration failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
