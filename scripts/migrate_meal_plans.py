#!/usr/bin/env python3
"""
Migrate legacy meal plans (planes + planRecetas) into embedded meal plans.

Run the recipe migration first: plan rows are linked to recipes through the
legacy recipe ids recorded by it.

Usage:
    python scripts/migrate_meal_plans.py                    # basic migration with backup
    python scripts/migrate_meal_plans.py basic --dry-run    # report only, write nothing
    python scripts/migrate_meal_plans.py fresh --clear-new  # sample plan from existing recipes
    python scripts/migrate_meal_plans.py sample             # status of legacy and new data
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
logger = logging.getLogger("migrate_meal_plans")


async def run(strategy: str, dry_run: bool, backup: bool, clear_new: bool) -> bool:
    import adapters.mongo_adapter as mongo_adapter
    from app.config import MONGO_URI, MONGO_DB, settings
    from services.migration_service import LegacyMigrator, MigrationOptions

    logger.info("Connecting to MongoDB...")
    db = await mongo_adapter.connect(MONGO_URI, MONGO_DB)
    try:
        migrator = LegacyMigrator.for_database(db, settings)
        report = await migrator.run(
            strategy, MigrationOptions(dry_run=dry_run, backup=backup, clear_new=clear_new)
        )
    finally:
        await mongo_adapter.close()

    logger.info("=" * 60)
    logger.info(f"MEAL PLAN MIGRATION SUMMARY ({strategy})")
    logger.info("=" * 60)
    if report.status:
        for key, value in report.status.items():
            logger.info(f"  {key}: {value}")
    else:
        logger.info(f"✓ Processed: {report.processed}")
        logger.info(f"✓ Written: {len(report.created)}")
        logger.info(f"✗ Errors: {len(report.errors)}")
        for error in report.errors:
            logger.info(f"  - {error['name']} ({error['record']}): {error['error']}")
        for name, count in report.backups.items():
            logger.info(f"  backup {name}: {count} documents")
        if report.dry_run:
            logger.info("DRY RUN - no changes were made to the database")
    logger.info("=" * 60)
    return not report.errors


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Migrate legacy meal plans to the embedded meal plan collection"
    )
    parser.add_argument(
        "strategy",
        nargs="?",
        default="basic",
        choices=["basic", "fresh", "sample"],
        help="basic: migrate legacy plans, fresh: sample plan, sample: show status",
    )
    parser.add_argument("--dry-run", action="store_true", help="Build and report, write nothing")
    parser.add_argument("--no-backup", action="store_true", help="Skip backup collections")
    parser.add_argument(
        "--clear-new", action="store_true", help="Empty the meal plan collection first"
    )
    args = parser.parse_args()

    try:
        success = anyio.run(
            run, args.strategy, args.dry_run, not args.no_backup, args.clear_new
        )
    except Exception as e:
        logger.error(f"✗ Migration failed: {e}")
        sys.exit(1)

    sys.exit(0 if success else 2)
