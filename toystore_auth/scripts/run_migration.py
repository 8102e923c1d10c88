"""
Run Migration Script
Executes a SQL migration file as a single batch against DATABASE_URL, so
dollar-quoted blocks and multi-statement files run unchanged.

    python -m toystore_auth.scripts.run_migration [path/to/file.sql]
"""

import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from toystore_auth.config import settings
from toystore_auth.database.sql_pool import SqlPool
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_MIGRATION = project_root / "migrations" / "001_create_profiles.sql"


def run_migration(pool: SqlPool, migration_file: Path) -> bool:
    sql = Path(migration_file).read_text(encoding="utf-8")
    logger.info(f"Running migration file: {migration_file}")
    try:
        pool.execute_script(sql)
    except Exception as e:
        logger.warning(f"Migration failed: {e}")
        return False
    logger.info("Migration completed.")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    migration_file = Path(argv[0]) if argv else DEFAULT_MIGRATION

    if not settings.database_url:
        logger.error("DATABASE_URL is not set. Please set it in your environment or .env file.")
        return 2

    pool = SqlPool.from_settings(settings.model_copy(update={"use_pg": True}))
    if pool is None:
        logger.error("Could not create Postgres pool")
        return 1
    try:
        logger.info("Connecting to DB...")
        run_migration(pool, migration_file)
    finally:
        pool.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
