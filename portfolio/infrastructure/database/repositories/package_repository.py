from __future__ import annotations

from portfolio.domain.entities.package import PackageEntity
from portfolio.infrastructure.database.repositories.collection_repository import CollectionRepository


class PackageRepository(CollectionRepository):
    table = "packages"
    columns = ("name", "price_min", "price_max", "features")

    def _row_to_entity(self, row: dict) -> PackageEntity:
        portfolio_id = row.get("portfolio_id")
        return PackageEntity(
            id=str(row["id"]),
            portfolio_id=str(portfolio_id) if portfolio_id else None,
            name=row["name"],
            price_min=row.get("price_min") or 0,
            price_max=row.get("price_max") or 0,
            features=tuple(row.get("features") or ()),
            sort_order=row.get("sort_order") or 0,
        )
