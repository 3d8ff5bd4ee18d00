from __future__ import annotations

from portfolio.domain.entities.project import ProjectEntity
from portfolio.infrastructure.database.repositories.collection_repository import CollectionRepository


class ProjectRepository(CollectionRepository):
    table = "projects"
    columns = ("title", "description", "image", "category", "technologies", "live_url", "github_url")

    def _row_to_entity(self, row: dict) -> ProjectEntity:
        portfolio_id = row.get("portfolio_id")
        return ProjectEntity(
            id=str(row["id"]),
            portfolio_id=str(portfolio_id) if portfolio_id else None,
            title=row["title"],
            description=row.get("description"),
            image=row.get("image"),
            category=row.get("category"),
            technologies=tuple(row.get("technologies") or ()),
            live_url=row.get("live_url"),
            github_url=row.get("github_url"),
            sort_order=row.get("sort_order") or 0,
        )
