"""Migration 001: Backfill legacy single-course enrollments.

Accounts created before multi-course orders keep their purchase in the
legacy fields, or hold only one of the two practice courses. Login migrates
such accounts lazily; this script applies the same migration to every
stored student so reports and support tools see the final shape.

Running it twice changes nothing the second time.

Usage:
    cd api && python -m scripts.migrations.001_backfill_legacy_enrollments [--dry-run]
"""

import asyncio
import sys
from datetime import UTC, datetime
from pathlib import Path

# Add scsm to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scsm.config.settings import get_settings
from scsm.core.context import RequestContext
from scsm.core.database import init_async_cassandra, shutdown_async_cassandra
from scsm.core.logging import configure_structlog, get_logger
from scsm.enrollments.migration import migrate_legacy
from scsm.enrollments.store import CassandraUserStore


logger = get_logger(__name__)

MIGRATION_NAME = "001_backfill_legacy_enrollments"


async def backfill(session, store: CassandraUserStore, dry_run: bool = False) -> tuple[int, int]:
    """Migrate every student that still needs it.

    Args:
        session: Cassandra session with aexecute support
        store: Student record store on the same session
        dry_run: Report what would change without saving

    Returns:
        Tuple of (migrated_count, unchanged_count)
    """
    migrated = 0
    unchanged = 0
    now = datetime.now(UTC)

    rows = await session.aexecute(f"SELECT id FROM {store.keyspace}.students")  # noqa: S608
    for row in rows:
        with RequestContext(request_id=f"{MIGRATION_NAME}:{row.id}", student_id=row.id):
            student = await store.find_by_id(row.id)
            if student is None or not migrate_legacy(student, now):
                unchanged += 1
                continue

            if not dry_run:
                await store.save(student)
            migrated += 1

    return migrated, unchanged


async def run_migration(dry_run: bool = False) -> None:
    """Run the backfill."""
    settings = get_settings()
    configure_structlog(settings, file_output=False)

    logger.info(
        "migration_starting",
        migration=MIGRATION_NAME,
        keyspace=settings.cassandra_keyspace,
        hosts=settings.cassandra_hosts,
        dry_run=dry_run,
    )

    session = await init_async_cassandra(settings)
    store = CassandraUserStore(session=session, keyspace=settings.cassandra_keyspace)

    try:
        migrated, unchanged = await backfill(session, store, dry_run=dry_run)
        logger.info(
            "migration_completed",
            migration=MIGRATION_NAME,
            migrated=migrated,
            unchanged=unchanged,
            dry_run=dry_run,
        )
    finally:
        await shutdown_async_cassandra()


if __name__ == "__main__":
    asyncio.run(run_migration(dry_run="--dry-run" in sys.argv[1:]))
