from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable

from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.store_call import call_store
from portfolio.domain.entities.package import PackageEntity
from portfolio.domain.entities.project import ProjectEntity
from portfolio.domain.entities.skill import SkillEntity
from portfolio.domain.entities.snapshot import CollectionKind, PortfolioSnapshot
from portfolio.domain.errors import ValidationError
from portfolio.infrastructure.database.repositories.content_store import ContentStore

logger = logging.getLogger(__name__)

ENTITY_TYPES = {
    CollectionKind.SKILLS: SkillEntity,
    CollectionKind.PACKAGES: PackageEntity,
    CollectionKind.PROJECTS: ProjectEntity,
}


def parse_kind(kind: CollectionKind | str) -> CollectionKind:
    try:
        return CollectionKind(kind)
    except ValueError as exc:
        raise ValidationError(f"Unknown collection '{kind}'") from exc


def check_items(kind: CollectionKind, items: list[Any]) -> None:
    """Reject items of the wrong type and duplicate ids."""
    expected = ENTITY_TYPES[kind]
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, expected):
            raise ValidationError(f"{kind.value} expects {expected.__name__}, got {type(item).__name__}")
        if item.id:
            if item.id in seen:
                raise ValidationError(f"Duplicate id {item.id} in {kind.value}")
            seen.add(item.id)


@dataclass
class ReplaceCollectionUseCase:
    """
    Replace a whole collection with a new ordered list.

    Existing rows owned by the profile are deleted, then ``items`` are
    inserted with ``sort_order`` set to their list position. Outside the
    local PostgreSQL mode the delete and the insert are separate calls: a
    failure in between leaves the collection empty.
    """

    store: ContentStore
    gate: SessionGate
    loader: LoadPortfolioUseCase

    async def execute(self, kind: CollectionKind | str, items: Iterable[Any]) -> PortfolioSnapshot:
        await self.write(kind, items)
        return await self.loader.execute()

    async def write(self, kind: CollectionKind | str, items: Iterable[Any]) -> list[Any]:
        self.gate.require_admin()
        kind = parse_kind(kind)
        items = list(items)
        check_items(kind, items)

        owner = await call_store(self.store.ensure_profile, label="Load profile")
        prepared = [replace(item, portfolio_id=owner.id, sort_order=index) for index, item in enumerate(items)]
        saved = await call_store(
            self.store.collection(kind).replace_for_portfolio,
            owner.id,
            prepared,
            label=f"Replace {kind.value}",
        )
        logger.info("Replaced %s with %d items", kind.value, len(saved))
        return saved
