from __future__ import annotations

import os
from dataclasses import replace
from typing import Any

from supabase import Client

from portfolio.domain.entities.profile import CONTENT_FIELDS, ProfileEntity
from portfolio.domain.errors import NotFoundError, PersistenceError
from portfolio.infrastructure.database.postgres_client import get_postgres_client

TABLE = "portfolio_data"
# every write targets this key, so there is never more than one row to race over
SINGLETON_ID = "00000000-0000-4000-8000-000000000001"

# module-level in-memory store for disabled mode
_MEM_PORTFOLIO: dict[str, ProfileEntity] = {}


class PortfolioRepository:
    """The singleton profile row (``portfolio_data``)."""

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = get_postgres_client() if self.use_local_db else None

    def _row_to_entity(self, row: dict) -> ProfileEntity:
        """Convert a database row to ProfileEntity."""
        data = {name: row.get(name) for name in CONTENT_FIELDS}
        data["age"] = row.get("age") or 0
        for name in ("tagline", "grade", "bio"):
            data[name] = data[name] or ""
        return ProfileEntity(id=str(row["id"]), **data)

    @staticmethod
    def _entity_to_row(profile: ProfileEntity) -> dict[str, Any]:
        row: dict[str, Any] = {"id": SINGLETON_ID}
        row.update({name: getattr(profile, name) for name in CONTENT_FIELDS})
        return row

    def get(self) -> ProfileEntity | None:
        """Return the authoritative profile.

        Rows written before the fixed key existed may carry any id; the
        oldest row wins.

        Returns:
            The profile, or None when nothing has been saved yet.
        """
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                row = self.pg_client.execute_one(
                    f"SELECT * FROM {TABLE} ORDER BY created_at ASC LIMIT 1"
                )
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL get profile failed: {exc}") from exc
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            return next(iter(_MEM_PORTFOLIO.values()), None)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table(TABLE).select("*").order("created_at").limit(1).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise PersistenceError(f"Supabase get profile failed: {exc}") from exc

    def create(self, profile: ProfileEntity) -> ProfileEntity:
        """Write ``profile`` as the singleton row, overwriting a seeded one.

        Args:
            profile: Complete profile content; its ``id`` is ignored.

        Returns:
            The stored profile.

        Raises:
            PersistenceError: If the write fails.
        """
        row = self._entity_to_row(profile)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            columns = ", ".join(row)
            placeholders = ", ".join(["%s"] * len(row))
            updates = ", ".join(f"{name} = EXCLUDED.{name}" for name in CONTENT_FIELDS)
            try:
                created = self.pg_client.execute_returning(
                    f"INSERT INTO {TABLE} ({columns}) VALUES ({placeholders}) "
                    f"ON CONFLICT (id) DO UPDATE SET {updates}, updated_at = now() RETURNING *",
                    tuple(row.values()),
                )
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL create profile failed: {exc}") from exc
            return self._row_to_entity(created)

        # In-memory mode
        if self.disabled or self.client is None:
            entity = replace(profile, id=SINGLETON_ID)
            _MEM_PORTFOLIO[SINGLETON_ID] = entity
            return entity

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table(TABLE).upsert(row, on_conflict="id").execute()
            return self._row_to_entity(res.data[0])
        except Exception as exc:
            raise PersistenceError(f"Supabase create profile failed: {exc}") from exc

    def seed(self, profile: ProfileEntity) -> ProfileEntity:
        """Insert ``profile`` only if no profile row exists yet.

        A concurrent :meth:`create` always wins over the seed, whichever
        lands first.

        Returns:
            The authoritative profile after the insert attempt.
        """
        current = self.get()
        if current is not None:
            return current
        row = self._entity_to_row(profile)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            columns = ", ".join(row)
            placeholders = ", ".join(["%s"] * len(row))
            try:
                self.pg_client.execute_update(
                    f"INSERT INTO {TABLE} ({columns}) VALUES ({placeholders}) ON CONFLICT (id) DO NOTHING",
                    tuple(row.values()),
                )
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL seed profile failed: {exc}") from exc

        # In-memory mode
        elif self.disabled or self.client is None:
            _MEM_PORTFOLIO.setdefault(SINGLETON_ID, replace(profile, id=SINGLETON_ID))

        # Supabase mode
        else:
            try:  # pragma: no cover - network
                self.client.table(TABLE).upsert(row, on_conflict="id", ignore_duplicates=True).execute()
            except Exception as exc:
                raise PersistenceError(f"Supabase seed profile failed: {exc}") from exc

        seeded = self.get()
        if seeded is None:
            raise PersistenceError("Profile row missing right after seeding it")
        return seeded

    def update(self, profile_id: str, changes: dict[str, Any]) -> ProfileEntity:
        """Write only the supplied columns.

        Args:
            profile_id: Id of the row to update.
            changes: Column name to new value, content fields only.

        Raises:
            NotFoundError: If the row does not exist.
            PersistenceError: If the write fails.
        """
        unknown = set(changes) - set(CONTENT_FIELDS)
        if unknown:
            raise PersistenceError(f"Unknown profile columns: {', '.join(sorted(unknown))}")

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            assignments = ", ".join(f"{name} = %s" for name in changes)
            try:
                row = self.pg_client.execute_one(
                    f"UPDATE {TABLE} SET {assignments}, updated_at = now() WHERE id = %s RETURNING *",
                    (*changes.values(), profile_id),
                )
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL update profile failed: {exc}") from exc
            if row is None:
                raise NotFoundError(f"Profile {profile_id} not found")
            return self._row_to_entity(row)

        # In-memory mode
        if self.disabled or self.client is None:
            current = _MEM_PORTFOLIO.get(profile_id)
            if current is None:
                raise NotFoundError(f"Profile {profile_id} not found")
            updated = replace(current, **changes)
            _MEM_PORTFOLIO[profile_id] = updated
            return updated

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table(TABLE).update(changes).eq("id", profile_id).execute()
            rows = res.data or []
        except Exception as exc:
            raise PersistenceError(f"Supabase update profile failed: {exc}") from exc
        if not rows:  # pragma: no cover - network
            raise NotFoundError(f"Profile {profile_id} not found")
        return self._row_to_entity(rows[0])  # pragma: no cover - network


def clear_memory_portfolio() -> None:
    _MEM_PORTFOLIO.clear()
