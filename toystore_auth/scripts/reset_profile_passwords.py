"""
Reset Profile Passwords Script
Sets profiles.password to a plaintext value, either for every row or only for
profile-only accounts (auth_id IS NULL). Development/testing only.

    python -m toystore_auth.scripts.reset_profile_passwords --via api --only-unlinked
    python -m toystore_auth.scripts.reset_profile_passwords --via sql --password gg123456
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from toystore_auth.config import settings
from toystore_auth.database.sql_pool import SqlPool
from toystore_auth.database.supabase_client import SupabaseClient
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "gg123456"
BATCH_SIZE = 200
SAMPLE_SIZE = 10


def reset_via_api(
    supabase: Client,
    password: str,
    only_unlinked: bool = False,
    table: str = "profiles",
    batch_size: int = BATCH_SIZE,
) -> int:
    """Update passwords through the Supabase data API (needs the service role to bypass RLS)"""
    if only_unlinked:
        logger.info(f'Updating {table} WHERE auth_id IS NULL -> set password = "{password}"')
        result = supabase.table(table)\
            .update({"password": password})\
            .is_("auth_id", "null")\
            .execute()
        rows = result.data or []
        logger.info(f"Update completed. Rows updated: {len(rows)}")
        if rows:
            logger.info(f"Sample: {rows[:SAMPLE_SIZE]}")
        return len(rows)

    logger.info(f'Updating ALL {table} -> set password = "{password}"')
    updated = 0
    offset = 0
    while True:
        page = supabase.table(table)\
            .select("id")\
            .order("id")\
            .range(offset, offset + batch_size - 1)\
            .execute()
        ids = [r["id"] for r in (page.data or [])]
        if not ids:
            break
        result = supabase.table(table)\
            .update({"password": password})\
            .in_("id", ids)\
            .execute()
        count = len(result.data) if result.data is not None else len(ids)
        updated += count
        logger.info(f"Updated batch, rows: {count}")
        offset += batch_size
    logger.info(f"All done. Rows updated: {updated}")
    return updated


def reset_via_sql(pool: SqlPool, password: str, only_unlinked: bool = False, table: str = "profiles") -> int:
    """Update passwords with a single UPDATE over a direct Postgres connection"""
    where = " WHERE auth_id IS NULL" if only_unlinked else ""
    logger.info(f'Updating {table}{where} -> set password = "{password}"')
    rows = pool.execute(
        f"UPDATE {table} SET password = :password{where} RETURNING id, email, username",
        {"password": password},
    )
    logger.info(f"Updated rows: {len(rows)}")
    if rows:
        logger.info(f"Sample updated rows: {rows[:SAMPLE_SIZE]}")
    return len(rows)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set plaintext passwords on profile rows (dev only)")
    parser.add_argument("--via", choices=["api", "sql"], default="api")
    parser.add_argument("--password", default=DEFAULT_PASSWORD)
    parser.add_argument("--only-unlinked", action="store_true", help="Only rows with auth_id IS NULL")
    parser.add_argument("--batch-size", type=int, default=BATCH_SIZE)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    table = settings.profiles_table

    if args.via == "sql":
        if not settings.database_url:
            logger.error("DATABASE_URL not set in environment or .env")
            return 2
        pool = SqlPool.from_settings(settings.model_copy(update={"use_pg": True}))
        if pool is None:
            logger.error("Could not create Postgres pool")
            return 1
        try:
            reset_via_sql(pool, args.password, args.only_unlinked, table)
        except Exception as e:
            logger.error(f"Update failed: {e}")
            return 1
        finally:
            pool.dispose()
        return 0

    if not settings.supabase_url or not settings.has_service_role:
        logger.error("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY in .env")
        return 2
    try:
        reset_via_api(
            SupabaseClient.get_service_client(),
            args.password,
            args.only_unlinked,
            table,
            args.batch_size,
        )
    except Exception as e:
        logger.error(f"Supabase update error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
