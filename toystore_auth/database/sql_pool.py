"""
Direct Postgres access for the profiles table.

The engine is owned by ``SqlPool`` and replaced (never dropped) when the server or
the Supabase pooler kills connections, so the SQL paths stay usable for later requests.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

import sqlalchemy.exc
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from toystore_auth.config.settings import Settings

logger = logging.getLogger(__name__)

SUPABASE_POOLER_HOST = "pooler.supabase.com"


class SqlConnectionError(RuntimeError):
    """Connection-level failure; the pool has already been reset when this is raised."""


def normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        return "postgresql+psycopg2://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+psycopg2://" + url[len("postgresql://"):]
    return url


def is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (sqlalchemy.exc.OperationalError, sqlalchemy.exc.InterfaceError)):
        return True
    return isinstance(exc, sqlalchemy.exc.DBAPIError) and bool(exc.connection_invalidated)


class SqlPool:
    def __init__(self, url: str, **engine_kwargs):
        self._url = url
        self._engine_kwargs = engine_kwargs
        self._lock = threading.Lock()
        self._engine: Engine = self._create_engine()
        self.generation = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["SqlPool"]:
        if not settings.database_url:
            return None
        if not settings.use_pg:
            logger.info("DATABASE_URL present but USE_PG is false; using the Supabase client only")
            return None
        sslmode = settings.database_sslmode
        if SUPABASE_POOLER_HOST in settings.database_url:
            # sslmode=require encrypts without verifying the pooler certificate. Local dev only.
            logger.warning("Detected Supabase pooler in DATABASE_URL; disabling TLS certificate verification")
            sslmode = "require"
        try:
            pool = cls(normalize_database_url(settings.database_url), connect_args={"sslmode": sslmode})
        except Exception as e:
            logger.error(f"Failed to create Postgres pool: {e}")
            return None
        logger.info("Postgres pool created")
        return pool

    def _create_engine(self) -> Engine:
        return create_engine(self._url, pool_pre_ping=True, **self._engine_kwargs)

    @property
    def engine(self) -> Engine:
        return self._engine

    def reset(self, reason: Optional[Exception] = None, generation: Optional[int] = None) -> bool:
        """
        Swap in a fresh engine and dispose of the broken one.

        ``generation`` is the generation the caller saw fail. If another caller has
        already replaced that engine, nothing happens and False is returned.
        """
        with self._lock:
            if generation is not None and generation != self.generation:
                logger.info(f"Postgres pool already reset (generation {self.generation}), skipping")
                return False
            old = self._engine
            self._engine = self._create_engine()
            self.generation += 1
            current = self.generation
        logger.warning(f"Postgres pool reset (generation {current}): {reason}")
        try:
            old.dispose()
        except Exception as e:
            logger.error(f"Error while disposing old Postgres engine: {e}")
        return True

    def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run one statement in its own transaction and return any rows as dicts."""
        with self._lock:
            engine, generation = self._engine, self.generation
        try:
            with engine.begin() as conn:
                result = conn.execute(text(sql), params or {})
                if not result.returns_rows:
                    return []
                return [dict(row._mapping) for row in result]
        except sqlalchemy.exc.DBAPIError as e:
            if is_connection_error(e):
                self.reset(e, generation=generation)
                raise SqlConnectionError(str(e)) from e
            raise

    def fetch_one(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        rows = self.execute(sql, params)
        return rows[0] if rows else None

    def execute_script(self, sql: str) -> None:
        """Run a multi-statement script as a single batch (migrations)."""
        with self._engine.begin() as conn:
            conn.exec_driver_sql(sql)

    def now(self):
        row = self.fetch_one("SELECT CURRENT_TIMESTAMP AS now")
        return row["now"] if row else None

    def dispose(self) -> None:
        self._engine.dispose()
