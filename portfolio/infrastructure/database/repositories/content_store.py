from __future__ import annotations

from dataclasses import dataclass

from supabase import Client

from portfolio.domain.entities.profile import DEFAULT_PROFILE, ProfileEntity
from portfolio.domain.entities.snapshot import CollectionKind
from portfolio.infrastructure.database.repositories.collection_repository import (
    CollectionRepository,
    clear_memory_rows,
)
from portfolio.infrastructure.database.repositories.package_repository import PackageRepository
from portfolio.infrastructure.database.repositories.portfolio_repository import (
    PortfolioRepository,
    clear_memory_portfolio,
)
from portfolio.infrastructure.database.repositories.project_repository import ProjectRepository
from portfolio.infrastructure.database.repositories.skill_repository import SkillRepository


@dataclass
class ContentStore:
    """The four addressable collections behind the portfolio."""

    profiles: PortfolioRepository
    skills: SkillRepository
    packages: PackageRepository
    projects: ProjectRepository

    @classmethod
    def from_client(cls, client: Client | None) -> ContentStore:
        return cls(
            profiles=PortfolioRepository(client),
            skills=SkillRepository(client),
            packages=PackageRepository(client),
            projects=ProjectRepository(client),
        )

    def collection(self, kind: CollectionKind) -> CollectionRepository:
        return getattr(self, CollectionKind(kind).value)

    def ensure_profile(self) -> ProfileEntity:
        """The stored profile, seeding it from defaults on first write."""
        return self.profiles.seed(DEFAULT_PROFILE)


def clear_memory_store() -> None:
    clear_memory_portfolio()
    clear_memory_rows()
