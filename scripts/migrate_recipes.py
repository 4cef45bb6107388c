#!/usr/bin/env python3
"""
Migrate legacy recipes (recetas + ingredientes) into embedded recipes.

Every migrated recipe keeps its legacy id (``legacyId`` and a
``migrado-id-<n>`` tag) so plan rows can be linked afterwards.

Usage:
    python scripts/migrate_recipes.py               # migrate with backup
    python scripts/migrate_recipes.py --dry-run     # report only
    python scripts/migrate_recipes.py --clear-new   # empty recetas_optimizadas first
"""

import sys
import logging
import argparse
from pathlib import Path

import anyio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("migrate_recipes")


async def run(dry_run: bool, backup: bool, clear_new: bool) -> bool:
    import adapters.mongo_adapter as mongo_adapter
    from app.config import MONGO_URI, MONGO_DB, settings
    from services.migration_service import LegacyMigrator, MigrationOptions

    logger.info("Connecting to MongoDB...")
    db = await mongo_adapter.connect(MONGO_URI, MONGO_DB)
    try:
        migrator = LegacyMigrator.for_database(db, settings)
        report = await migrator.migrate_recipes(
            MigrationOptions(dry_run=dry_run, backup=backup, clear_new=clear_new)
        )
        total = await migrator.recipes.count()
    finally:
        await mongo_adapter.close()

    logger.info("=" * 60)
    logger.info("RECIPE MIGRATION SUMMARY")
    logger.info("=" * 60)
    logger.info(f"✓ Processed: {report.processed}")
    logger.info(f"✓ Written: {len(report.created)}")
    logger.info(f"✗ Errors: {len(report.errors)}")
    for error in report.errors:
        logger.info(f"  - {error['name']} ({error['record']}): {error['error']}")
    if report.dry_run:
        logger.info("DRY RUN - no changes were made to the database")
    logger.info(f"✓ Recipes in {settings.recipes_collection}: {total}")
    logger.info("=" * 60)
    return not report.errors


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Migrate legacy recipes to the embedded recipe collection"
    )
    parser.add_argument("--dry-run", action="store_true", help="Build and report, write nothing")
    parser.add_argument("--no-backup", action="store_true", help="Skip the backup collection")
    parser.add_argument(
        "--clear-new", action="store_true", help="Empty the recipe collection first"
    )
    args = parser.parse_args()

    try:
        success = anyio.run(run, args.dry_run, not args.no_backup, args.clear_new)
    except Exception as e:
        logger.error(f"✗ Migration failed: {e}")
        sys.exit(1)

    sys.exit(0 if success else 2)
