"""
Migration: Add submission_date to timesheets and make it unique per user.

Tables created by the earlier deployment only carry created_at, so one user
could end up with several rows for the same day. This migration:
1. Adds the submission_date column (YYYY-MM-DD)
2. Backfills it with the organisation-local day of created_at (stored as UTC)
3. Creates the unique index on (user_slack_id, submission_date), unless
   duplicates already exist - those are reported and left in place

Handles PostgreSQL, MySQL and SQLite.
"""
import logging
from datetime import UTC, datetime

from sqlalchemy import inspect, text

from eligibility import local_date

logger = logging.getLogger(__name__)

UNIQUE_INDEX = "uniq_timesheets_user_day"
SUPPORTED_DIALECTS = ("postgresql", "mysql", "sqlite")


def migrate(engine):
    """Run migration."""
    dialect = engine.dialect.name
    if dialect not in SUPPORTED_DIALECTS:
        raise RuntimeError(f"Migration 001 does not support the {dialect} dialect")

    with engine.connect() as conn:
        trans = conn.begin()

        try:
            applied = migrate_timesheets(conn)
            trans.commit()
            if applied:
                logger.info(f"Migration 001 completed successfully ({dialect})")
            return applied
        except Exception as e:
            trans.rollback()
            logger.error(f"Migration 001 failed: {str(e)}")
            raise


def migrate_timesheets(conn):
    inspector = inspect(conn)
    if not inspector.has_table("timesheets"):
        logger.info("timesheets table does not exist, skipping migration")
        return False

    columns = [column["name"] for column in inspector.get_columns("timesheets")]
    if "submission_date" in columns:
        logger.info("submission_date column already exists, skipping migration")
        return False

    logger.info("Adding submission_date column...")
    conn.execute(text("ALTER TABLE timesheets ADD COLUMN submission_date VARCHAR(10)"))

    backfill_submission_dates(conn)
    create_unique_index(conn)
    return True


def parse_created_at(value) -> datetime:
    # SQLite hands back the stored text; other drivers return datetimes
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def backfill_submission_dates(conn):
    logger.info("Backfilling submission_date from created_at...")
    rows = conn.execute(text("SELECT id, created_at FROM timesheets WHERE created_at IS NOT NULL")).fetchall()
    updates = [{"id": row[0], "day": local_date(parse_created_at(row[1]))} for row in rows]
    if updates:
        conn.execute(text("UPDATE timesheets SET submission_date = :day WHERE id = :id"), updates)
    logger.info(f"Backfilled {len(updates)} rows")


def find_duplicate_days(conn):
    result = conn.execute(text("""
        SELECT user_slack_id, submission_date, COUNT(*) AS count
        FROM timesheets
        GROUP BY user_slack_id, submission_date
        HAVING COUNT(*) > 1
    """))
    return result.fetchall()


def create_unique_index(conn):
    duplicates = find_duplicate_days(conn)
    if duplicates:
        logger.warning(f"Found {len(duplicates)} duplicate (user_slack_id, submission_date) pairs:")
        for dup in duplicates:
            logger.warning(f"   - user: {dup[0]}, day: {dup[1]}, count: {dup[2]}")
        logger.warning(f"Skipping {UNIQUE_INDEX}; resolve the duplicates and create it manually")
        return False

    logger.info("Creating unique index on (user_slack_id, submission_date)...")
    conn.execute(text(f"CREATE UNIQUE INDEX {UNIQUE_INDEX} ON timesheets (user_slack_id, submission_date)"))
    return True


if __name__ == "__main__":
    from db import engine
    migrate(engine)
