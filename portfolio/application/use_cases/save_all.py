from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.replace_collection import ReplaceCollectionUseCase, check_items
from portfolio.application.use_cases.save_profile import SaveProfileUseCase
from portfolio.domain.entities.package import PackageEntity
from portfolio.domain.entities.profile import DEFAULT_PROFILE, ProfilePatch
from portfolio.domain.entities.project import ProjectEntity
from portfolio.domain.entities.skill import SkillEntity
from portfolio.domain.entities.snapshot import CollectionKind, PortfolioSnapshot
from portfolio.domain.errors import BatchSaveError, PersistenceError, StoreTimeout

logger = logging.getLogger(__name__)


@dataclass
class SaveAllUseCase:
    """
    Save a full draft: profile, skills, packages, projects.

    This is a best-effort batch, not a transaction. The four writes run one
    after another; each succeeds or fails on its own and earlier writes stay
    committed when a later one fails. Failures are reported together in a
    single :class:`BatchSaveError` that names what did and did not save.
    A step that times out is reported as unknown rather than failed: its
    write may still land after the error is raised.
    """

    profile_saver: SaveProfileUseCase
    collection_saver: ReplaceCollectionUseCase
    loader: LoadPortfolioUseCase
    gate: SessionGate

    async def execute(
        self,
        profile: ProfilePatch,
        skills: Iterable[SkillEntity],
        packages: Iterable[PackageEntity],
        projects: Iterable[ProjectEntity],
    ) -> PortfolioSnapshot:
        self.gate.require_admin()
        collections = {
            CollectionKind.SKILLS: list(skills),
            CollectionKind.PACKAGES: list(packages),
            CollectionKind.PROJECTS: list(projects),
        }
        # validate the whole draft up front so bad input never causes a partial save
        profile.apply(DEFAULT_PROFILE)
        for kind, items in collections.items():
            check_items(kind, items)

        steps: list[tuple[str, Callable[[], Awaitable[Any]]]] = [
            ("profile", lambda: self.profile_saver.write(profile)),
        ]
        for kind, items in collections.items():
            steps.append((kind.value, lambda kind=kind, items=items: self.collection_saver.write(kind, items)))

        succeeded: list[str] = []
        failed: dict[str, str] = {}
        unknown: list[str] = []
        for name, step in steps:
            try:
                await step()
            except StoreTimeout as exc:
                logger.error("Saving %s timed out, outcome unknown: %s", name, exc)
                unknown.append(name)
            except PersistenceError as exc:
                logger.error("Saving %s failed: %s", name, exc)
                failed[name] = str(exc)
            else:
                succeeded.append(name)

        try:
            snapshot = await self.loader.execute()
        except PersistenceError as exc:
            if not failed and not unknown:
                raise
            logger.warning("Reload after partial save failed: %s", exc)

        if failed or unknown:
            logger.warning(
                "Partial save: saved %s, failed %s, unknown %s", succeeded or "nothing", list(failed), unknown
            )
            raise BatchSaveError(succeeded, failed, unknown)
        logger.info("Saved full portfolio draft")
        return snapshot
