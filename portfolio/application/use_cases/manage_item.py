from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.replace_collection import check_items, parse_kind
from portfolio.application.use_cases.store_call import call_store
from portfolio.domain.entities.snapshot import CollectionKind, PortfolioSnapshot
from portfolio.domain.errors import NotFoundError
from portfolio.infrastructure.database.repositories.content_store import ContentStore

logger = logging.getLogger(__name__)


@dataclass
class UpsertItemUseCase:
    """Create or update one item. New items go to the end of the collection."""

    store: ContentStore
    gate: SessionGate
    loader: LoadPortfolioUseCase

    async def execute(self, kind: CollectionKind | str, item_id: str, item: Any) -> PortfolioSnapshot:
        self.gate.require_admin()
        kind = parse_kind(kind)
        check_items(kind, [item])
        repo = self.store.collection(kind)

        owner = await call_store(self.store.ensure_profile, label="Load profile")
        existing = await call_store(repo.get, item_id, label=f"Load {kind.value}")
        if existing is not None:
            sort_order = existing.sort_order
        else:
            current = await call_store(repo.list_ordered, label=f"Load {kind.value}")
            sort_order = max((i.sort_order for i in current), default=-1) + 1

        await call_store(
            repo.upsert,
            replace(item, id=item_id, portfolio_id=owner.id, sort_order=sort_order),
            label=f"Save {kind.value}",
        )
        logger.info("%s %s in %s", "Updated" if existing else "Created", item_id, kind.value)
        return await self.loader.execute()


@dataclass
class DeleteItemUseCase:
    store: ContentStore
    gate: SessionGate
    loader: LoadPortfolioUseCase

    async def execute(self, kind: CollectionKind | str, item_id: str) -> PortfolioSnapshot:
        self.gate.require_admin()
        kind = parse_kind(kind)
        deleted = await call_store(self.store.collection(kind).delete, item_id, label=f"Delete {kind.value}")
        if not deleted:
            raise NotFoundError(f"No {kind.value} item with id {item_id}")
        logger.info("Deleted %s from %s", item_id, kind.value)
        return await self.loader.execute()
