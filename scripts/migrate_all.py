"""Migrate transient source URLs to permanent ones for every project."""

import asyncio
import sys

from photo_harvest.catalog.repository import list_projects
from photo_harvest.catalog.store import CatalogStore
from photo_harvest.db import get_connection
from photo_harvest.migration import RULES, MigrationEngine


async def migrate_all(engine: MigrationEngine, project_ids: list[tuple[int, str]]) -> int:
    """Run every known migration rule for every project. Returns total failures."""
    total_migrated = 0
    total_failed = 0

    for i, (project_id, name) in enumerate(project_ids, 1):
        print(f"[{i}/{len(project_ids)}] {name}")
        for source in RULES:
            status = await engine.scan_for_migration(project_id, source)
            if status.needing_migration == 0:
                print(f"  {source}: nothing to migrate ({status.total_for_source} entries)")
                continue
            result = await engine.migrate(project_id, source)
            total_migrated += result.migrated
            total_failed += result.failed
            print(f"  {source}: migrated {result.migrated}/{result.total}, {result.failed} failed")

    print(f"\nDone! Migrated {total_migrated} entries, {total_failed} failed.")
    return total_failed


def main() -> None:
    conn = get_connection()
    projects = [(p.id, p.name) for p in list_projects(conn)]
    if not projects:
        print("No projects found.")
        conn.close()
        return

    print(f"Found {len(projects)} projects\n")
    failed = asyncio.run(migrate_all(MigrationEngine(CatalogStore(conn)), projects))
    conn.close()
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
