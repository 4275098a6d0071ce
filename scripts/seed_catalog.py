#!/usr/bin/env python3
"""Seed the resource catalog from a JSON file.

Creates the territory tables if needed and appends every city in the
catalog file. Existing ids are left untouched, so re-running is safe.

Usage:
    DATABASE_URL=postgresql://... python scripts/seed_catalog.py
    DATABASE_URL=postgresql://... python scripts/seed_catalog.py --catalog cities.json
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from territory.application.services.resource_catalog_service import (
    ResourceCatalogService,
)
from territory.bootstrap.database import (
    close_database_engine,
    database_configured,
    get_session_factory,
)
from territory.bootstrap.logging import configure_structlog
from territory.infrastructure.adapters.json_catalog_loader import (
    BUNDLED_CATALOG_PATH,
    load_catalog_file,
)
from territory.infrastructure.adapters.sql_territory_store import (
    SqlTerritoryStore,
    apply_schema,
)


async def run(catalog_path: Path, create_schema: bool) -> int:
    session_factory = get_session_factory()
    try:
        if create_schema:
            async with session_factory() as session:
                async with session.begin():
                    await apply_schema(session)
        catalog = ResourceCatalogService(SqlTerritoryStore(session_factory))
        inserted, skipped = await catalog.load_catalog(load_catalog_file(catalog_path))
        availability = await catalog.countries_with_availability()
    finally:
        await close_database_engine()

    print(f"Inserted {inserted} resources, skipped {skipped} existing")
    for country in availability:
        print(
            f"  {country.country_code}: {country.available_count} available "
            f"of {country.total_count}"
        )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the resource catalog")
    parser.add_argument(
        "--catalog",
        type=Path,
        default=BUNDLED_CATALOG_PATH,
        help="Catalog JSON file (default: bundled city list)",
    )
    parser.add_argument(
        "--skip-schema",
        action="store_true",
        help="Do not create tables before seeding",
    )
    parser.add_argument("--environment", default=None)
    args = parser.parse_args()

    configure_structlog(args.environment)
    if not database_configured():
        print("DATABASE_URL must be set to seed the catalog.", file=sys.stderr)
        return 2
    return asyncio.run(run(args.catalog, create_schema=not args.skip_schema))


if __name__ == "__main__":
    sys.exit(main())
