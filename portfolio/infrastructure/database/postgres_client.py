"""PostgreSQL database client for local development.

Used instead of Supabase when ``USE_LOCAL_DB=1``. The schema lives in
``schema.sql`` next to this module.
"""
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Generator

from psycopg2 import pool
from psycopg2.extras import RealDictCursor

logger = logging.getLogger(__name__)


class PostgresClient:
    """PostgreSQL database client with connection pooling."""

    def __init__(self) -> None:
        self.enabled = os.getenv("USE_LOCAL_DB", "0") == "1"
        self._pool: Any = None

        if self.enabled:
            try:
                self._pool = pool.SimpleConnectionPool(
                    minconn=1,
                    maxconn=5,
                    host=os.getenv("POSTGRES_HOST", "localhost"),
                    port=int(os.getenv("POSTGRES_PORT", "5432")),
                    database=os.getenv("POSTGRES_DB", "portfolio"),
                    user=os.getenv("POSTGRES_USER", "portfolio"),
                    password=os.getenv("POSTGRES_PASSWORD", "portfolio_dev_password"),
                )
            except Exception as exc:  # pragma: no cover
                raise RuntimeError(f"Failed to initialize PostgreSQL connection pool: {exc}") from exc
            logger.info("Using local PostgreSQL at %s", os.getenv("POSTGRES_HOST", "localhost"))

    @contextmanager
    def transaction(self) -> Generator[Any, None, None]:
        """Dict cursor whose statements commit together or not at all.

        Raises:
            RuntimeError: If local database is not enabled.
        """
        if not self.enabled or self._pool is None:
            raise RuntimeError("Local PostgreSQL database is not enabled")

        conn = self._pool.getconn()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def execute_one(self, query: str, params: tuple = ()) -> dict[str, Any] | None:
        """Run a query and return the first row, or None."""
        with self.transaction() as cursor:
            cursor.execute(query, params)
            result = cursor.fetchone()
            return dict(result) if result else None

    def execute_many(self, query: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Run a query and return all rows."""
        with self.transaction() as cursor:
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def execute_returning(self, query: str, params: tuple = ()) -> dict[str, Any]:
        """Run an INSERT/UPDATE with a RETURNING clause and return the row.

        Raises:
            RuntimeError: If the statement returned nothing.
        """
        row = self.execute_one(query, params)
        if row is None:
            raise RuntimeError("Query did not return a row")
        return row

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Run an UPDATE or DELETE and return the number of affected rows."""
        with self.transaction() as cursor:
            cursor.execute(query, params)
            return cursor.rowcount


_POSTGRES_CLIENT: PostgresClient | None = None


def get_postgres_client() -> PostgresClient | None:
    """PostgreSQL client singleton, or None unless ``USE_LOCAL_DB=1``."""
    global _POSTGRES_CLIENT
    if os.getenv("USE_LOCAL_DB", "0") != "1":
        return None
    if _POSTGRES_CLIENT is None:
        _POSTGRES_CLIENT = PostgresClient()
    return _POSTGRES_CLIENT
