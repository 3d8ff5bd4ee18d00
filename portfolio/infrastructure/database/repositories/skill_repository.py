from __future__ import annotations

from portfolio.domain.entities.skill import SkillEntity
from portfolio.infrastructure.database.repositories.collection_repository import CollectionRepository


class SkillRepository(CollectionRepository):
    table = "skills"
    columns = ("name", "percentage", "category")

    def _row_to_entity(self, row: dict) -> SkillEntity:
        portfolio_id = row.get("portfolio_id")
        return SkillEntity(
            id=str(row["id"]),
            portfolio_id=str(portfolio_id) if portfolio_id else None,
            name=row["name"],
            # out-of-range legacy values are clamped by the entity
            percentage=row.get("percentage") or 0,
            category=row.get("category"),
            sort_order=row.get("sort_order") or 0,
        )
