from __future__ import annotations

import logging
import os
import uuid
from dataclasses import replace
from typing import Any, Iterable

from supabase import Client

from portfolio.domain.errors import PersistenceError
from portfolio.infrastructure.database.postgres_client import get_postgres_client

logger = logging.getLogger(__name__)

# module-level in-memory store for disabled mode: table -> id -> entity
_MEM_ROWS: dict[str, dict[str, Any]] = {}


def clear_memory_rows() -> None:
    _MEM_ROWS.clear()


class CollectionRepository:
    """Ordered rows owned by the profile (skills, packages, projects).

    Subclasses set ``table`` and ``columns`` and convert rows to entities.
    Every entity carries ``id``, ``portfolio_id`` and ``sort_order``.
    """

    table: str = ""
    columns: tuple[str, ...] = ()

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = get_postgres_client() if self.use_local_db else None

    def _row_to_entity(self, row: dict) -> Any:
        raise NotImplementedError

    def _entity_to_row(self, entity: Any) -> dict[str, Any]:
        row = {name: getattr(entity, name) for name in self.columns}
        for name, value in row.items():
            # tuples would be sent as records, not arrays
            if isinstance(value, tuple):
                row[name] = list(value)
        row["id"] = entity.id
        row["portfolio_id"] = entity.portfolio_id
        row["sort_order"] = entity.sort_order
        return row

    @property
    def _mem(self) -> dict[str, Any]:
        return _MEM_ROWS.setdefault(self.table, {})

    @staticmethod
    def _with_id(entity: Any) -> Any:
        return entity if entity.id else replace(entity, id=str(uuid.uuid4()))

    def _upsert_sql(self, row: dict[str, Any]) -> str:
        columns = ", ".join(row)
        placeholders = ", ".join(["%s"] * len(row))
        updates = ", ".join(f"{name} = EXCLUDED.{name}" for name in row if name != "id")
        return (
            f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders}) "
            f"ON CONFLICT (id) DO UPDATE SET {updates} RETURNING *"
        )

    def list_ordered(self) -> list[Any]:
        """Return every row, ascending by ``sort_order``.

        Raises:
            PersistenceError: If the read fails.
        """
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                rows = self.pg_client.execute_many(
                    f"SELECT * FROM {self.table} ORDER BY sort_order ASC, created_at ASC"
                )
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL list {self.table} failed: {exc}") from exc
            return [self._row_to_entity(row) for row in rows]

        # In-memory mode
        if self.disabled or self.client is None:
            return sorted(self._mem.values(), key=lambda e: e.sort_order)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table(self.table).select("*").order("sort_order", desc=False).execute()
            return [self._row_to_entity(row) for row in res.data or []]
        except Exception as exc:
            raise PersistenceError(f"Supabase list {self.table} failed: {exc}") from exc

    def get(self, item_id: str) -> Any | None:
        """Return one row by id, or None if it does not exist."""
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                row = self.pg_client.execute_one(f"SELECT * FROM {self.table} WHERE id = %s", (item_id,))
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL get {self.table} failed: {exc}") from exc
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            return self._mem.get(item_id)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table(self.table).select("*").eq("id", item_id).limit(1).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise PersistenceError(f"Supabase get {self.table} failed: {exc}") from exc

    def upsert(self, entity: Any) -> Any:
        return self.upsert_many([entity])[0]

    def upsert_many(self, entities: Iterable[Any]) -> list[Any]:
        """Insert or update rows by id. Entities without an id get a new one.

        Args:
            entities: Entities carrying their final ``portfolio_id`` and ``sort_order``.

        Returns:
            The stored entities, in the order given.

        Raises:
            PersistenceError: If the write fails.
        """
        entities = [self._with_id(e) for e in entities]
        if not entities:
            return []

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            out = []
            try:
                with self.pg_client.transaction() as cursor:
                    for entity in entities:
                        row = self._entity_to_row(entity)
                        cursor.execute(self._upsert_sql(row), tuple(row.values()))
                        out.append(self._row_to_entity(dict(cursor.fetchone())))
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL upsert {self.table} failed: {exc}") from exc
            return out

        # In-memory mode
        if self.disabled or self.client is None:
            for entity in entities:
                self._mem[entity.id] = entity
            return entities

        # Supabase mode
        try:  # pragma: no cover - network
            rows = [self._entity_to_row(e) for e in entities]
            res = self.client.table(self.table).upsert(rows, on_conflict="id").execute()
            return [self._row_to_entity(row) for row in res.data or []]
        except Exception as exc:
            raise PersistenceError(f"Supabase upsert {self.table} failed: {exc}") from exc

    def delete(self, item_id: str) -> bool:
        """Delete one row.

        Returns:
            True if a row was deleted, False if none had this id.
        """
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                affected = self.pg_client.execute_update(f"DELETE FROM {self.table} WHERE id = %s", (item_id,))
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL delete {self.table} failed: {exc}") from exc
            return affected > 0

        # In-memory mode
        if self.disabled or self.client is None:
            return self._mem.pop(item_id, None) is not None

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table(self.table).delete().eq("id", item_id).execute()
            return bool(res.data)
        except Exception as exc:
            raise PersistenceError(f"Supabase delete {self.table} failed: {exc}") from exc

    def delete_for_portfolio(self, portfolio_id: str) -> int:
        """Delete rows owned by the profile, plus unowned seed rows."""
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                return self.pg_client.execute_update(
                    f"DELETE FROM {self.table} WHERE portfolio_id = %s OR portfolio_id IS NULL",
                    (portfolio_id,),
                )
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL clear {self.table} failed: {exc}") from exc

        # In-memory mode
        if self.disabled or self.client is None:
            ids = [k for k, v in self._mem.items() if v.portfolio_id in (portfolio_id, None)]
            for k in ids:
                self._mem.pop(k, None)
            return len(ids)

        # Supabase mode
        try:  # pragma: no cover - network
            res = (
                self.client.table(self.table)
                .delete()
                .or_(f"portfolio_id.eq.{portfolio_id},portfolio_id.is.null")
                .execute()
            )
            return len(res.data or [])
        except Exception as exc:
            raise PersistenceError(f"Supabase clear {self.table} failed: {exc}") from exc

    def replace_for_portfolio(self, portfolio_id: str, entities: Iterable[Any]) -> list[Any]:
        """Destructive replace: afterwards the collection holds exactly ``entities``.

        Entities must already carry ``portfolio_id`` and ``sort_order``.
        Only the PostgreSQL mode runs delete and insert in one transaction.
        """
        entities = [self._with_id(e) for e in entities]

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            out = []
            try:
                with self.pg_client.transaction() as cursor:
                    cursor.execute(
                        f"DELETE FROM {self.table} WHERE portfolio_id = %s OR portfolio_id IS NULL",
                        (portfolio_id,),
                    )
                    for entity in entities:
                        row = self._entity_to_row(entity)
                        cursor.execute(self._upsert_sql(row), tuple(row.values()))
                        out.append(self._row_to_entity(dict(cursor.fetchone())))
            except Exception as exc:
                raise PersistenceError(f"PostgreSQL replace {self.table} failed: {exc}") from exc
            return out

        removed = self.delete_for_portfolio(portfolio_id)
        logger.debug("Cleared %d rows from %s before insert", removed, self.table)
        try:
            return self.upsert_many(entities)
        except PersistenceError:
            # delete already committed; the collection is now empty
            logger.error("Insert into %s failed after clearing it", self.table)
            raise
