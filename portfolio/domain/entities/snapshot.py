from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from portfolio.domain.entities.package import PackageEntity
from portfolio.domain.entities.profile import ProfileEntity
from portfolio.domain.entities.project import ProjectEntity
from portfolio.domain.entities.skill import SkillEntity


class CollectionKind(str, Enum):
    SKILLS = "skills"
    PACKAGES = "packages"
    PROJECTS = "projects"


@dataclass(frozen=True)
class PortfolioSnapshot:
    profile: ProfileEntity
    skills: tuple[SkillEntity, ...] = ()
    packages: tuple[PackageEntity, ...] = ()
    projects: tuple[ProjectEntity, ...] = ()
    is_default: bool = False  # True when no profile row exists yet

    def collection(self, kind: CollectionKind) -> tuple:
        return getattr(self, CollectionKind(kind).value)
